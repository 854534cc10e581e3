"""
Case Summary and Package Cover

Case metadata, customer, vehicle and transaction digest, followed by the
bill of sale and the inspection summary, each on its own page.
"""
from datetime import datetime
from typing import Tuple

from ...config import BuyerProfile
from ...models.case_models import CaseAggregate, Inspection
from ...models.document_model import KeyValueRow, Paragraph, ParagraphStyle, Section
from . import bill_of_sale
from .formatting import (
    format_currency, format_long_date, rating_text, resolve_vehicle, source_label, text,
)

TITLE = "Vehicle Offer Service - Case Summary"

PACKAGE_CONTENTS = ("Quote Summary", "Inspection Report", "Bill of Sale")


def case_overview(aggregate: CaseAggregate) -> Section:
    return Section(
        title="Case Overview",
        blocks=(
            KeyValueRow("Case ID", text(aggregate.case_id, "Unknown")),
            KeyValueRow(
                "Created",
                format_long_date(aggregate.created_at) if aggregate.created_at else "Unknown",
            ),
            KeyValueRow("Status", text(aggregate.status, "Unknown")),
        ),
    )


def customer_digest(aggregate: CaseAggregate) -> Section:
    customer = aggregate.customer
    return Section(
        title="Customer Information",
        blocks=(
            KeyValueRow("Name", customer.full_name),
            KeyValueRow("Phone", text(customer.cell_phone)),
            KeyValueRow("Email", text(customer.email1)),
            KeyValueRow("Source", text(source_label(customer.source), "Not specified")),
        ),
    )


def vehicle_digest(aggregate: CaseAggregate) -> Section:
    vehicle = resolve_vehicle(aggregate.vehicle, aggregate.bill_of_sale)
    return Section(
        title="Vehicle Information",
        blocks=(
            KeyValueRow("Year", text(vehicle.year)),
            KeyValueRow("Make", text(vehicle.make)),
            KeyValueRow("Model", text(vehicle.model)),
            KeyValueRow("VIN", text(vehicle.vin)),
            KeyValueRow("Mileage", text(vehicle.mileage)),
            KeyValueRow("Color", text(vehicle.color)),
        ),
    )


def transaction_digest(aggregate: CaseAggregate) -> Section:
    bos = aggregate.bill_of_sale
    if bos is None:
        return Section(
            title="Transaction Details",
            blocks=(Paragraph("No transaction recorded", ParagraphStyle.NOTE),),
        )
    sale_price = bos.sale_price if bos.sale_price is not None else 0
    return Section(
        title="Transaction Details",
        blocks=(
            KeyValueRow("Sale Price", format_currency(sale_price)),
            KeyValueRow("Sale Date", format_long_date(bos.sale_date) if bos.sale_date else "Not completed"),
            KeyValueRow("Payment Method", text(bos.payment_method, "Not specified")),
        ),
    )


def inspection_summary(aggregate: CaseAggregate) -> Section:
    inspection = aggregate.inspection or Inspection()
    if not inspection.sections:
        return Section(
            title="Vehicle Inspection Summary",
            blocks=(Paragraph("No inspection recorded", ParagraphStyle.NOTE),),
            new_page=True,
        )
    blocks = [
        KeyValueRow("Overall Rating", rating_text(inspection.overall_rating)),
        KeyValueRow(
            "Completed on",
            format_long_date(inspection.completed_at) if inspection.completed_at else "Not completed",
        ),
    ]
    for section in inspection.sections:
        blocks.append(Paragraph(section.name, ParagraphStyle.SUBHEADING))
        blocks.append(KeyValueRow("Rating", rating_text(section.rating)))
    return Section(title="Vehicle Inspection Summary", blocks=tuple(blocks), new_page=True)


def case_summary_sections(
    aggregate: CaseAggregate,
    buyer: BuyerProfile,
    generated_at: datetime,
) -> Tuple[Section, ...]:
    return (
        case_overview(aggregate),
        customer_digest(aggregate),
        vehicle_digest(aggregate),
        transaction_digest(aggregate),
        bill_of_sale.header_section(aggregate, generated_at, new_page=True),
        *bill_of_sale.clauses(aggregate, buyer, generated_at),
        inspection_summary(aggregate),
    )


def package_cover(aggregate: CaseAggregate, buyer: BuyerProfile, generated_at: datetime) -> Section:
    vehicle = resolve_vehicle(aggregate.vehicle, aggregate.bill_of_sale)
    vehicle_line = " ".join(text(v) for v in (vehicle.year, vehicle.make, vehicle.model) if text(v))
    return Section(
        title=f"{buyer.short_name} - COMPLETE CASE PACKAGE",
        blocks=(
            KeyValueRow("Case ID", text(aggregate.case_id, "Unknown")),
            KeyValueRow("Customer", text(aggregate.customer.full_name, "Not provided")),
            KeyValueRow("Vehicle", text(vehicle_line, "Not provided")),
            KeyValueRow("VIN", text(vehicle.vin, "Not provided")),
            KeyValueRow("Prepared", format_long_date(generated_at)),
            Paragraph("Contents:", ParagraphStyle.SUBHEADING),
            *(Paragraph(item, ParagraphStyle.BULLET, indent=1) for item in PACKAGE_CONTENTS),
        ),
    )
