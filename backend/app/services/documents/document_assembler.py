"""
Document Assembler

Turns a case aggregate into one of the document variants.

The assembler ONLY assembles - it does not render.
Rendering is the responsibility of the delivery layer (PdfRenderer).
"""

from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Union

from ...config import BuyerProfile, Settings, get_settings
from ...errors import ValidationError
from ...models.case_models import CaseAggregate
from ...models.document_model import DocumentKind, DocumentModel, Section
from ..risk.risk_scorer import RiskAssessment, RiskScorer

from . import bill_of_sale, case_summary, quote_summary
from .bill_of_sale import SignatureCapture


class DocumentAssembler:
    """
    Assembles DocumentModels from case snapshots.

    Complete package order:
    1. Cover (package title, case, contents)
    2. Quote summary (analytic variant) - new page
    3. Inspection report digest - new page
    4. Bill of sale - new page

    The assembler produces deterministic output:
    - Same snapshot and generated_at -> same sections -> same hash
    """

    def __init__(
        self,
        risk_scorer: Optional[RiskScorer] = None,
        settings: Optional[Settings] = None,
    ):
        """
        Initialize the document assembler.

        Args:
            risk_scorer: RiskScorer instance for the analytic variant
            settings: Settings carrying the buyer profile (defaults to environment)
        """
        self.risk_scorer = risk_scorer or RiskScorer()
        self.settings = settings or get_settings()

    @property
    def buyer(self) -> BuyerProfile:
        return self.settings.buyer

    def assemble(
        self,
        kind: Union[DocumentKind, str],
        aggregate: Union[CaseAggregate, Mapping[str, Any]],
        *,
        generated_at: Optional[datetime] = None,
        signature: Optional[SignatureCapture] = None,
    ) -> DocumentModel:
        """
        Assemble one document.

        Args:
            kind: Document variant
            aggregate: CaseAggregate, or its camelCase dict form (validated here)
            generated_at: Generation timestamp (defaults to now, UTC)
            signature: Seller signature, used by SIGNED_BILL_OF_SALE only

        Raises:
            ValidationError: unknown kind or malformed aggregate
        """
        try:
            kind = DocumentKind(kind)
        except ValueError:
            raise ValidationError(f"Unknown document kind {kind!r}", {"field": "kind"})
        if not isinstance(aggregate, CaseAggregate):
            aggregate = CaseAggregate.from_dict(aggregate)
        generated_at = generated_at or datetime.now(timezone.utc)

        if kind == DocumentKind.SIGNED_BILL_OF_SALE:
            return self._signed_bill_of_sale(aggregate, generated_at, signature)

        builders = {
            DocumentKind.BILL_OF_SALE: self._bill_of_sale,
            DocumentKind.QUOTE_SUMMARY_BASIC: self._quote_summary_basic,
            DocumentKind.QUOTE_SUMMARY_ANALYTIC: self._quote_summary_analytic,
            DocumentKind.CASE_SUMMARY: self._case_summary,
            DocumentKind.COMPLETE_PACKAGE: self._complete_package,
        }
        return builders[kind](aggregate, generated_at)

    # =========================================================================
    # VARIANTS
    # =========================================================================

    def _bill_of_sale(self, aggregate: CaseAggregate, generated_at: datetime) -> DocumentModel:
        return DocumentModel(
            kind=DocumentKind.BILL_OF_SALE,
            title=bill_of_sale.TITLE,
            subtitle=bill_of_sale.preamble(aggregate, generated_at),
            sections=bill_of_sale.clauses(aggregate, self.buyer, generated_at),
            case_id=aggregate.case_id,
            generated_at=generated_at,
        )

    def _signed_bill_of_sale(
        self,
        aggregate: CaseAggregate,
        generated_at: datetime,
        signature: Optional[SignatureCapture] = None,
    ) -> DocumentModel:
        return DocumentModel(
            kind=DocumentKind.SIGNED_BILL_OF_SALE,
            title=bill_of_sale.TITLE,
            subtitle=bill_of_sale.preamble(aggregate, generated_at),
            sections=(
                *bill_of_sale.clauses(aggregate, self.buyer, generated_at),
                bill_of_sale.signature_section(signature),
            ),
            case_id=aggregate.case_id,
            watermark="SIGNED",
            generated_at=generated_at,
        )

    def _quote_summary_basic(self, aggregate: CaseAggregate, generated_at: datetime) -> DocumentModel:
        return DocumentModel(
            kind=DocumentKind.QUOTE_SUMMARY_BASIC,
            title=quote_summary.basic_title(self.buyer),
            sections=quote_summary.basic_sections(aggregate),
            case_id=aggregate.case_id,
            generated_at=generated_at,
        )

    def _quote_summary_analytic(self, aggregate: CaseAggregate, generated_at: datetime) -> DocumentModel:
        risk = self.risk_scorer.assess_case(aggregate)
        return DocumentModel(
            kind=DocumentKind.QUOTE_SUMMARY_ANALYTIC,
            title=quote_summary.analytic_title(self.buyer),
            sections=quote_summary.analytic_sections(aggregate, risk, self.buyer),
            case_id=aggregate.case_id,
            generated_at=generated_at,
            metadata={"risk": risk.to_dict()},
        )

    def _case_summary(self, aggregate: CaseAggregate, generated_at: datetime) -> DocumentModel:
        return DocumentModel(
            kind=DocumentKind.CASE_SUMMARY,
            title=case_summary.TITLE,
            sections=case_summary.case_summary_sections(aggregate, self.buyer, generated_at),
            case_id=aggregate.case_id,
            generated_at=generated_at,
        )

    def _complete_package(self, aggregate: CaseAggregate, generated_at: datetime) -> DocumentModel:
        risk: RiskAssessment = self.risk_scorer.assess_case(aggregate)

        # 1. Cover
        sections = [case_summary.package_cover(aggregate, self.buyer, generated_at)]

        # 2. Quote summary
        sections.append(Section(title="QUOTE SUMMARY", new_page=True))
        sections.extend(quote_summary.analytic_sections(aggregate, risk, self.buyer))

        # 3. Inspection report
        sections.extend(quote_summary.inspection_digest(aggregate))

        # 4. Bill of sale
        sections.append(bill_of_sale.header_section(aggregate, generated_at, new_page=True))
        sections.extend(bill_of_sale.clauses(aggregate, self.buyer, generated_at))

        return DocumentModel(
            kind=DocumentKind.COMPLETE_PACKAGE,
            title=f"{self.buyer.short_name} - COMPLETE CASE PACKAGE",
            sections=tuple(sections),
            case_id=aggregate.case_id,
            generated_at=generated_at,
            metadata={"risk": risk.to_dict(), "contains": list(case_summary.PACKAGE_CONTENTS)},
        )
