"""
Webhook Package Builder

Normalizes a case snapshot plus a generated-document URL into the flat
record posted to the outbound automation channel.

The consumer is schema-rigid: every declared key is ALWAYS present, with an
explicit default ('' / None / 0 / 'pending') when the source is absent.
A key holding None and a missing key are not interchangeable.

No sending here - generation only.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Union

from ...models.case_models import (
    ActingUser, CaseAggregate, Inspection, OfferDecisionType, Quote, Transaction,
)
from ..documents.case_summary import PACKAGE_CONTENTS
from ..documents.formatting import first_present

ACTION = "pdf_package_sent"
PACKAGE_TYPE = "complete_case_documentation"
PACKAGE_VERSION = "1.0"


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass
class BuyerBlock:
    """Staff member handling the case."""
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    user_id: Optional[str] = None
    role: str = ""


@dataclass
class SellerBlock:
    """Customer selling the vehicle."""
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    user_id: Optional[str] = None


@dataclass
class VehicleBlock:
    year: str = ""
    make: str = ""
    model: str = ""
    vin: str = ""
    color: str = ""
    mileage: Any = ""
    estimated_value: Optional[float] = None


@dataclass
class TransactionBlock:
    sale_price: Optional[float] = None
    sale_date: Optional[str] = None
    payment_method: str = ""
    title_status: str = ""


@dataclass
class InspectionBlock:
    overall_rating: Optional[float] = None
    overall_score: Optional[float] = None
    inspector_name: str = ""
    completed_at: Optional[str] = None
    sections_count: int = 0


@dataclass
class QuoteBlock:
    offer_amount: Optional[float] = None
    estimated_value: Optional[float] = None
    status: str = ""
    decision: str = OfferDecisionType.PENDING.value
    generated_at: Optional[str] = None


@dataclass
class PdfPackageBlock:
    url: Optional[str] = None
    generated_at: Optional[str] = None
    contains: List[str] = field(default_factory=lambda: list(PACKAGE_CONTENTS))
    file_size: Optional[int] = None
    expires_at: Optional[str] = None


@dataclass
class MetadataBlock:
    sent_at: Optional[str] = None
    package_type: str = PACKAGE_TYPE
    version: str = PACKAGE_VERSION


@dataclass
class WebhookPackage:
    """
    Flat, fully-defaulted record for the automation channel.

    Constructed on demand, sent once, not retained.
    """
    case_id: str = ""
    case_status: str = ""
    case_created_at: Optional[str] = None
    action: str = ACTION
    buyer: BuyerBlock = field(default_factory=BuyerBlock)
    seller: SellerBlock = field(default_factory=SellerBlock)
    vehicle: VehicleBlock = field(default_factory=VehicleBlock)
    transaction: TransactionBlock = field(default_factory=TransactionBlock)
    inspection: InspectionBlock = field(default_factory=InspectionBlock)
    quote: QuoteBlock = field(default_factory=QuoteBlock)
    pdf_package: PdfPackageBlock = field(default_factory=PdfPackageBlock)
    metadata: MetadataBlock = field(default_factory=MetadataBlock)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "action": self.action,
            "case_id": self.case_id,
            "case_status": self.case_status,
            "case_created_at": self.case_created_at,
            "buyer": asdict(self.buyer),
            "seller": asdict(self.seller),
            "vehicle": asdict(self.vehicle),
            "transaction": asdict(self.transaction),
            "inspection": asdict(self.inspection),
            "quote": asdict(self.quote),
            "pdf_package": asdict(self.pdf_package),
            "metadata": asdict(self.metadata),
        }


class PackageBuilder:
    """
    Builds WebhookPackages.

    Pure transform: no I/O, timestamps injectable for determinism.
    """

    def build(
        self,
        aggregate: Union[CaseAggregate, Mapping[str, Any]],
        acting_user: Optional[Union[ActingUser, Mapping[str, Any]]],
        document_url: Optional[str],
        *,
        sent_at: Optional[datetime] = None,
        generated_at: Optional[datetime] = None,
        file_size: Optional[int] = None,
    ) -> WebhookPackage:
        """
        Build the outbound record for a case.

        Args:
            aggregate: CaseAggregate or its camelCase dict form
            acting_user: staff member on whose behalf the package is sent
            document_url: where the rendered package was stored
            sent_at: send timestamp (defaults to now, UTC)
            generated_at: document generation timestamp (defaults to sent_at)
            file_size: rendered document size in bytes, when known
        """
        if not isinstance(aggregate, CaseAggregate):
            aggregate = CaseAggregate.from_dict(aggregate)
        if acting_user is None:
            acting_user = ActingUser()
        elif not isinstance(acting_user, ActingUser):
            acting_user = ActingUser.from_dict(acting_user)

        sent_at = sent_at or datetime.now(timezone.utc)
        generated_at = generated_at or sent_at

        return WebhookPackage(
            case_id=aggregate.case_id or "",
            case_status=aggregate.status or "",
            case_created_at=_iso(aggregate.created_at),
            buyer=self._buyer(acting_user),
            seller=self._seller(aggregate),
            vehicle=self._vehicle(aggregate),
            transaction=self._transaction(aggregate),
            inspection=self._inspection(aggregate),
            quote=self._quote(aggregate),
            pdf_package=PdfPackageBlock(
                url=document_url,
                generated_at=_iso(generated_at),
                file_size=file_size,
            ),
            metadata=MetadataBlock(sent_at=_iso(sent_at)),
        )

    # =========================================================================
    # BLOCKS
    # =========================================================================

    def _buyer(self, user: ActingUser) -> BuyerBlock:
        return BuyerBlock(
            first_name=user.first_name or "",
            last_name=user.last_name or "",
            email=user.email or "",
            user_id=user.user_id or None,
            role=user.role or "",
        )

    def _seller(self, aggregate: CaseAggregate) -> SellerBlock:
        customer = aggregate.customer
        return SellerBlock(
            first_name=customer.first_name or "",
            last_name=customer.last_name or "",
            email=customer.email1 or "",
            phone=customer.cell_phone or "",
            user_id=customer.customer_id or None,
        )

    def _vehicle(self, aggregate: CaseAggregate) -> VehicleBlock:
        vehicle = aggregate.vehicle
        return VehicleBlock(
            year=vehicle.year or "",
            make=vehicle.make or "",
            model=vehicle.model or "",
            vin=vehicle.vin or "",
            color=vehicle.color or "",
            mileage=vehicle.current_mileage if vehicle.current_mileage is not None else "",
            estimated_value=vehicle.estimated_value,
        )

    def _transaction(self, aggregate: CaseAggregate) -> TransactionBlock:
        transaction = aggregate.transaction or Transaction()
        bos = transaction.bill_of_sale
        quote = aggregate.quote or Quote()
        return TransactionBlock(
            sale_price=first_present(bos.sale_price if bos else None, quote.offer_amount),
            sale_date=_iso(bos.sale_date) if bos else None,
            payment_method=first_present(
                bos.payment_method if bos else None, transaction.preferred_payment_method
            ) or "",
            title_status=first_present(
                aggregate.vehicle.title_status, bos.title_status if bos else None
            ) or "",
        )

    def _inspection(self, aggregate: CaseAggregate) -> InspectionBlock:
        inspection = aggregate.inspection or Inspection()
        return InspectionBlock(
            overall_rating=inspection.overall_rating,
            overall_score=inspection.overall_score,
            inspector_name=inspection.inspector.full_name if inspection.inspector else "",
            completed_at=_iso(inspection.completed_at),
            sections_count=len(inspection.sections),
        )

    def _quote(self, aggregate: CaseAggregate) -> QuoteBlock:
        quote = aggregate.quote or Quote()
        decision = quote.offer_decision.decision if quote.offer_decision else None
        return QuoteBlock(
            offer_amount=quote.offer_amount,
            estimated_value=first_present(quote.estimated_value, aggregate.vehicle.estimated_value),
            status=quote.status or "",
            decision=decision or OfferDecisionType.PENDING.value,
            generated_at=_iso(quote.generated_at),
        )
