"""
Quote Summaries

Two variants built from the same case snapshot:

- Basic ("VOS VEHICLE SUMMARY"): identification and inspection overview,
  no market or risk analysis.
- Analytic ("VOS - VEHICLE OFFER SUMMARY"): full analysis, sections in
  this fixed order:
    vehicle identification -> customer -> market value ->
    inspection overview -> per-section detail -> OBD2 -> safety ->
    maintenance -> risk -> recommendations -> documentation

Every section is always emitted; absent data degrades to default text.
"""
from typing import List, Optional, Tuple

from ...config import BuyerProfile
from ...models.case_models import (
    CaseAggregate, Inspection, Priority, Quote, Severity,
)
from ...models.document_model import KeyValueRow, Paragraph, ParagraphStyle, Section
from ..risk.risk_scorer import RiskAssessment
from .formatting import (
    MarketPosition, analyze_market, count_by, format_currency, format_long_date, overflow_line,
    rating_text, resolve_vehicle, source_label, summarize_obd2, summarize_questions, take,
    text, yes_no,
)

NOT_PROVIDED = "Not provided"
NOT_SPECIFIED = "Not specified"

ISSUE_PREVIEW_LIMIT = 3
CODE_PREVIEW_LIMIT = 3
FACTOR_PREVIEW_LIMIT = 3
RECOMMENDATION_PREVIEW_LIMIT = 5


def basic_title(buyer: BuyerProfile) -> str:
    return f"{buyer.short_name} VEHICLE SUMMARY"


def analytic_title(buyer: BuyerProfile) -> str:
    return f"{buyer.short_name} - VEHICLE OFFER SUMMARY"


def _note(message: str) -> Paragraph:
    return Paragraph(message, ParagraphStyle.NOTE)


def _inspection(aggregate: CaseAggregate) -> Inspection:
    return aggregate.inspection or Inspection()


def _quote(aggregate: CaseAggregate) -> Quote:
    return aggregate.quote or Quote()


def _inspection_date(inspection: Inspection) -> str:
    return format_long_date(inspection.completed_at) if inspection.completed_at else "Not completed"


def _overall_score(inspection: Inspection) -> str:
    return f"{text(inspection.overall_score, 'N/A')}/{text(inspection.max_possible_score, 'N/A')}"


# =============================================================================
# SHARED SECTIONS
# =============================================================================

def vehicle_identification(aggregate: CaseAggregate, include_title_status: bool = True) -> Section:
    vehicle = resolve_vehicle(aggregate.vehicle, aggregate.bill_of_sale)
    rows = [
        KeyValueRow("Year", text(vehicle.year, "N/A")),
        KeyValueRow("Make", text(vehicle.make, "N/A")),
        KeyValueRow("Model", text(vehicle.model, "N/A")),
        KeyValueRow("VIN", text(vehicle.vin, NOT_PROVIDED)),
        KeyValueRow("Mileage", text(vehicle.mileage, "N/A")),
        KeyValueRow("Color", text(vehicle.color, "N/A")),
    ]
    if include_title_status:
        rows.append(KeyValueRow("Title Status", text(vehicle.title_status, NOT_SPECIFIED)))
    return Section(title="VEHICLE IDENTIFICATION", blocks=tuple(rows))


def customer_information(aggregate: CaseAggregate, include_source: bool = True) -> Section:
    customer = aggregate.customer
    rows = [
        KeyValueRow("Full Name", text(customer.full_name, NOT_PROVIDED)),
        KeyValueRow("Primary Phone", text(customer.cell_phone, NOT_PROVIDED)),
        KeyValueRow("Secondary Phone", text(customer.home_phone, NOT_PROVIDED)),
        KeyValueRow("Primary Email", text(customer.email1, NOT_PROVIDED)),
        KeyValueRow("Secondary Email", text(customer.email2, NOT_PROVIDED)),
    ]
    if include_source:
        rows.append(KeyValueRow("Source", text(source_label(customer.source), NOT_SPECIFIED)))
        rows.append(KeyValueRow("How They Heard", text(customer.hear_about_vos, NOT_SPECIFIED)))
    return Section(title="CUSTOMER INFORMATION", blocks=tuple(rows))


def documentation_rows(aggregate: CaseAggregate) -> List[KeyValueRow]:
    vehicle = aggregate.vehicle
    return [
        KeyValueRow("Title Status", text(vehicle.title_status, NOT_SPECIFIED)),
        KeyValueRow("Title in Possession", yes_no(vehicle.has_title_in_possession)),
        KeyValueRow("Title in Owner's Name", yes_no(vehicle.title_in_own_name)),
        KeyValueRow("Loan Status", text(vehicle.loan_status, NOT_SPECIFIED)),
        KeyValueRow(
            "Outstanding Loan",
            format_currency(vehicle.loan_amount) if vehicle.loan_amount else "None",
        ),
        KeyValueRow("Second Set of Keys", yes_no(vehicle.second_set_of_keys)),
    ]


def market_value_analysis(aggregate: CaseAggregate, buyer: BuyerProfile) -> Section:
    analysis = analyze_market(aggregate.vehicle.estimated_value, _quote(aggregate).offer_amount)
    if analysis is None:
        return Section(
            title="MARKET VALUE ANALYSIS",
            blocks=(_note("MarketCheck Estimated Value: Not available"),),
        )
    style = ParagraphStyle.WARNING if analysis.position == MarketPosition.ABOVE else ParagraphStyle.POSITIVE
    return Section(
        title="MARKET VALUE ANALYSIS",
        blocks=(
            KeyValueRow("MarketCheck Value", format_currency(analysis.estimated_value)),
            KeyValueRow(f"{buyer.short_name} Offer", format_currency(analysis.offer_amount)),
            KeyValueRow(
                "Difference",
                f"{format_currency(analysis.difference)} ({analysis.percentage:.1f}%)",
            ),
            Paragraph(f"Market Position: {analysis.position.label}", style),
        ),
    )


def obd2_summary(aggregate: CaseAggregate, detailed: bool = True) -> Section:
    scan = _quote(aggregate).obd2_scan
    summary = summarize_obd2(scan)
    if summary.total_codes == 0 and summary.critical_codes == 0:
        return Section(title="OBD2 DIAGNOSTIC SUMMARY", blocks=(_note("No diagnostic codes recorded"),))

    blocks = [
        KeyValueRow("Total Codes Found", str(summary.total_codes)),
        KeyValueRow("Critical Codes", str(summary.critical_codes)),
    ]
    if detailed:
        blocks.append(KeyValueRow("Unknown Codes", str(summary.unknown_codes)))
        if scan and scan.critical_codes:
            shown, remaining = take(scan.critical_codes, CODE_PREVIEW_LIMIT)
            blocks.append(Paragraph("CRITICAL CODES:", ParagraphStyle.WARNING))
            for code in shown:
                blocks.append(
                    Paragraph(f"{code.code}: {text(code.description)}", ParagraphStyle.BULLET, indent=1)
                )
            more = overflow_line(remaining)
            if more:
                blocks.append(Paragraph(more, ParagraphStyle.NOTE, indent=1))
    return Section(title="OBD2 DIAGNOSTIC SUMMARY", blocks=tuple(blocks))


def safety_assessment(aggregate: CaseAggregate, with_warning: bool = True) -> Section:
    inspection = _inspection(aggregate)
    if not inspection.safety_issues:
        return Section(title="SAFETY ASSESSMENT", blocks=(_note("No safety issues reported"),))
    counts = count_by(
        (issue.severity for issue in inspection.safety_issues),
        [s.value for s in (Severity.CRITICAL, Severity.HIGH, Severity.MEDIUM, Severity.LOW)],
    )
    blocks = [
        KeyValueRow("Critical Issues", str(counts[Severity.CRITICAL.value])),
        KeyValueRow("High Priority", str(counts[Severity.HIGH.value])),
        KeyValueRow("Medium Priority", str(counts[Severity.MEDIUM.value])),
        KeyValueRow("Low Priority", str(counts[Severity.LOW.value])),
    ]
    if with_warning and counts[Severity.CRITICAL.value] > 0:
        blocks.append(Paragraph("CRITICAL SAFETY ISSUES DETECTED", ParagraphStyle.WARNING))
    return Section(title="SAFETY ASSESSMENT", blocks=tuple(blocks))


def recommendations(aggregate: CaseAggregate) -> Section:
    items = _inspection(aggregate).recommendations
    if not items:
        return Section(title="PROFESSIONAL RECOMMENDATIONS", blocks=(_note("No recommendations provided"),))
    shown, remaining = take(items, RECOMMENDATION_PREVIEW_LIMIT)
    blocks = [Paragraph(f"{index}. {item}") for index, item in enumerate(shown, start=1)]
    more = overflow_line(remaining, "recommendations")
    if more:
        blocks.append(_note(more))
    return Section(title="PROFESSIONAL RECOMMENDATIONS", blocks=tuple(blocks))


def inspection_overview(aggregate: CaseAggregate) -> Section:
    inspection = _inspection(aggregate)
    inspector = inspection.inspector.full_name if inspection.inspector else ""
    return Section(
        title="INSPECTION OVERVIEW",
        blocks=(
            KeyValueRow("Overall Rating", rating_text(inspection.overall_rating)),
            KeyValueRow("Inspector", text(inspector, "Not assigned")),
            KeyValueRow("Inspection Date", _inspection_date(inspection)),
            KeyValueRow("Total Sections", str(len(inspection.sections))),
            KeyValueRow("Overall Score", _overall_score(inspection)),
        ),
    )


# =============================================================================
# ANALYTIC VARIANT
# =============================================================================

def analytic_section_detail(aggregate: CaseAggregate, with_questions: bool = True) -> Section:
    inspection = _inspection(aggregate)
    if not inspection.sections:
        return Section(title="DETAILED SECTION ANALYSIS", blocks=(_note("No inspection sections recorded"),))

    blocks = []
    for index, section in enumerate(inspection.sections, start=1):
        blocks.append(Paragraph(f"{index}. {section.name.upper()}", ParagraphStyle.SUBHEADING))
        blocks.append(KeyValueRow("Rating", rating_text(section.rating)))
        blocks.append(KeyValueRow("Score", f"{text(section.score, 'N/A')}/{text(section.max_score, 'N/A')}"))
        blocks.append(KeyValueRow("Status", "COMPLETED" if section.completed else "INCOMPLETE"))
        if section.description:
            blocks.append(_note(f"Description: {section.description}"))

        if with_questions and section.questions:
            summary = summarize_questions(section)
            blocks.append(KeyValueRow("Questions Answered", f"{summary.answered}/{summary.total}"))
            blocks.append(KeyValueRow("Critical Issues", str(len(summary.critical))))
            if summary.critical:
                blocks.append(Paragraph("Issues Found:", ParagraphStyle.WARNING))
                shown, remaining = take(summary.critical, ISSUE_PREVIEW_LIMIT)
                for question in shown:
                    blocks.append(
                        Paragraph(
                            f"{text(question.question)}: {question.answer}",
                            ParagraphStyle.BULLET,
                            indent=1,
                        )
                    )
                more = overflow_line(remaining, "issues")
                if more:
                    blocks.append(Paragraph(more, ParagraphStyle.NOTE, indent=1))
    return Section(title="DETAILED SECTION ANALYSIS", blocks=tuple(blocks))


def maintenance_analysis(aggregate: CaseAggregate) -> Section:
    items = _inspection(aggregate).maintenance_items
    if not items:
        return Section(title="MAINTENANCE ANALYSIS", blocks=(_note("No maintenance items reported"),))
    counts = count_by((item.priority for item in items), [p.value for p in (Priority.HIGH, Priority.MEDIUM, Priority.LOW)])
    return Section(
        title="MAINTENANCE ANALYSIS",
        blocks=(
            KeyValueRow("High Priority", str(counts[Priority.HIGH.value])),
            KeyValueRow("Medium Priority", str(counts[Priority.MEDIUM.value])),
            KeyValueRow("Low Priority", str(counts[Priority.LOW.value])),
        ),
    )


def risk_assessment(risk: RiskAssessment) -> Section:
    blocks = [
        KeyValueRow("Risk Score", f"{risk.score}/10"),
        KeyValueRow("Risk Level", risk.level.label),
    ]
    if risk.factors:
        blocks.append(Paragraph("Risk Factors:"))
        shown, remaining = take(risk.factors, FACTOR_PREVIEW_LIMIT)
        for factor in shown:
            blocks.append(Paragraph(factor, ParagraphStyle.BULLET, indent=1))
        more = overflow_line(remaining)
        if more:
            blocks.append(Paragraph(more, ParagraphStyle.NOTE, indent=1))
    return Section(title="RISK ASSESSMENT", blocks=tuple(blocks))


def vehicle_documentation(aggregate: CaseAggregate) -> Section:
    blocks = list(documentation_rows(aggregate))
    if aggregate.vehicle.known_defects:
        blocks.append(Paragraph("Known Defects:"))
        blocks.append(Paragraph(aggregate.vehicle.known_defects, indent=1))
    return Section(title="VEHICLE DOCUMENTATION", blocks=tuple(blocks))


def analytic_sections(
    aggregate: CaseAggregate,
    risk: RiskAssessment,
    buyer: BuyerProfile,
) -> Tuple[Section, ...]:
    return (
        vehicle_identification(aggregate),
        customer_information(aggregate),
        market_value_analysis(aggregate, buyer),
        inspection_overview(aggregate),
        analytic_section_detail(aggregate),
        obd2_summary(aggregate),
        safety_assessment(aggregate),
        maintenance_analysis(aggregate),
        risk_assessment(risk),
        recommendations(aggregate),
        vehicle_documentation(aggregate),
    )


# =============================================================================
# BASIC VARIANT
# =============================================================================

def _is_scan_section(name: str) -> bool:
    lowered = name.lower()
    return "obd2" in lowered or "scan" in lowered


def basic_section_detail(aggregate: CaseAggregate) -> Section:
    inspection = _inspection(aggregate)
    if not inspection.sections:
        return Section(title="DETAILED SECTION ANALYSIS", blocks=(_note("No inspection sections recorded"),))

    scan = _quote(aggregate).obd2_scan
    blocks = []
    for index, section in enumerate(inspection.sections, start=1):
        blocks.append(Paragraph(f"{index}. {section.name.upper()}", ParagraphStyle.SUBHEADING))
        blocks.append(KeyValueRow("Status", "COMPLETED" if section.completed else "INCOMPLETE"))
        if section.description:
            blocks.append(KeyValueRow("Description", section.description))
        if section.questions:
            summary = summarize_questions(section)
            blocks.append(KeyValueRow("Questions Answered", f"{summary.answered}/{summary.total}"))
        if section.rating:
            blocks.append(KeyValueRow("Section Rating", rating_text(section.rating)))
        if section.questions:
            critical = len(summarize_questions(section).critical)
            if critical > 0:
                blocks.append(KeyValueRow("Critical Issues", str(critical)))
        if _is_scan_section(section.name):
            total = str(len(scan.extracted_codes)) if scan else ""
            blocks.append(KeyValueRow("Total Diagnostic Trouble Code(s)", total))
    return Section(title="DETAILED SECTION ANALYSIS", blocks=tuple(blocks))


def basic_inspection_overview(aggregate: CaseAggregate) -> Section:
    inspection = _inspection(aggregate)
    inspector: Optional[str] = inspection.inspector.full_name if inspection.inspector else None
    return Section(
        title="INSPECTION OVERVIEW",
        blocks=(
            KeyValueRow("Inspection Date", _inspection_date(inspection)),
            KeyValueRow("Inspector Name", inspector if inspector is not None else "Not assigned"),
            KeyValueRow("Overall Rating", rating_text(inspection.overall_rating)),
            KeyValueRow("Car Sections Inspected", str(len(inspection.sections))),
            KeyValueRow("Overall Score", _overall_score(inspection)),
        ),
    )


def basic_sections(aggregate: CaseAggregate) -> Tuple[Section, ...]:
    return (
        vehicle_identification(aggregate, include_title_status=False),
        customer_information(aggregate, include_source=False),
        Section(title="VEHICLE DOCUMENTATION OVERVIEW", blocks=tuple(documentation_rows(aggregate))),
        basic_inspection_overview(aggregate),
        basic_section_detail(aggregate),
    )


# =============================================================================
# INSPECTION DIGEST (complete package)
# =============================================================================

def inspection_digest(aggregate: CaseAggregate) -> Tuple[Section, ...]:
    """Inspection report pages of the complete package: overview and counts, no question detail."""
    return (
        Section(title="INSPECTION REPORT", new_page=True),
        inspection_overview(aggregate),
        analytic_section_detail(aggregate, with_questions=False),
        obd2_summary(aggregate, detailed=False),
        safety_assessment(aggregate, with_warning=False),
        recommendations(aggregate),
    )
