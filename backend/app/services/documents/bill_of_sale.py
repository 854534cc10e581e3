"""
Bill of Sale

The eleven-clause vehicle bill of sale, built as Sections so it can stand
alone or be embedded in the case summary and the complete package.

Every clause is always emitted; missing data degrades to literal defaults
("Not Provided", "Not Specified", "None known", "Clean").
"""
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Tuple

from ...config import BuyerProfile
from ...models.case_models import CaseAggregate
from ...models.document_model import (
    CheckboxRow, KeyValueRow, Paragraph, ParagraphStyle, Section, SignatureBlock,
)
from .formatting import (
    PAYMENT_CHECKBOXES, TAX_CHECKBOXES, PaymentOption, format_currency, format_iso_date, format_money,
    format_signed_at, itemize, resolve_payment_option, resolve_seller, resolve_tax_payer,
    resolve_vehicle, text,
)

NOT_PROVIDED = "Not Provided"
TITLE = "VEHICLE BILL OF SALE"


@dataclass(frozen=True)
class SignatureCapture:
    """Seller signature captured at signing time."""
    image_data: str  # base64 PNG, optionally as a data URL
    signed_at: datetime

    @property
    def image_base64(self) -> str:
        if self.image_data.startswith("data:image") and "," in self.image_data:
            return self.image_data.split(",", 1)[1]
        return self.image_data


def sale_date_text(aggregate: CaseAggregate, generated_at: datetime) -> str:
    """Sale date as YYYY-MM-DD; the generation date when no sale date is recorded."""
    bos = aggregate.bill_of_sale
    sale_date = bos.sale_date if bos and bos.sale_date else generated_at
    return format_iso_date(sale_date)


def preamble(aggregate: CaseAggregate, generated_at: datetime) -> str:
    return (
        f"This Bill of Sale is made and entered into on {sale_date_text(aggregate, generated_at)}, "
        "by and between the following parties:"
    )


def header_section(aggregate: CaseAggregate, generated_at: datetime, new_page: bool = True) -> Section:
    """Title block used when the bill of sale is embedded in a larger document."""
    return Section(
        title=TITLE,
        blocks=(Paragraph(preamble(aggregate, generated_at)),),
        new_page=new_page,
    )


def clauses(aggregate: CaseAggregate, buyer: BuyerProfile, generated_at: datetime) -> Tuple[Section, ...]:
    """The eleven numbered clauses, in order."""
    bos = aggregate.bill_of_sale
    seller = resolve_seller(aggregate.customer, bos)
    vehicle = resolve_vehicle(aggregate.vehicle, bos)
    sale_date = sale_date_text(aggregate, generated_at)
    payment_method = bos.payment_method if bos else None
    agent_name = bos.agent_name if bos else None
    short = buyer.short_name

    # 1. Seller Information
    seller_section = Section(
        title="1. Seller Information",
        blocks=(
            KeyValueRow("Full Legal Name(s)", text(seller.name, NOT_PROVIDED)),
            KeyValueRow("Address", text(seller.address, NOT_PROVIDED)),
            Paragraph(
                f"{text(seller.city, NOT_PROVIDED)}, {text(seller.state, NOT_PROVIDED)}, "
                f"{text(seller.zip_code, NOT_PROVIDED)}",
                indent=1,
            ),
            KeyValueRow("Driver's License/ID Number", text(seller.dl_number, NOT_PROVIDED)),
            KeyValueRow("Issuing State", text(seller.dl_state, NOT_PROVIDED)),
            KeyValueRow("Contact Phone Number", text(seller.phone, NOT_PROVIDED)),
            KeyValueRow("Email Address", text(seller.email, NOT_PROVIDED)),
        ),
    )

    # 2. Buyer Information
    buyer_blocks = [
        KeyValueRow("Buyer Name", buyer.name),
        KeyValueRow("Agent Name", text(agent_name, "Not Specified"), indent=1),
        KeyValueRow("Address", text(bos.buyer_address if bos else None, buyer.address)),
        Paragraph(
            f"{text(bos.buyer_city if bos else None, buyer.city)}, "
            f"{text(bos.buyer_state if bos else None, buyer.state)}, "
            f"{text(bos.buyer_zip if bos else None, buyer.zip_code)}",
            indent=1,
        ),
    ]
    if buyer.business_license:
        buyer_blocks.append(KeyValueRow("Business License", buyer.business_license))
    buyer_section = Section(title="2. Buyer Information", blocks=tuple(buyer_blocks))

    # 3. Vehicle Information
    odometer_note = "(Actual mileage)" if bos and bos.odometer_accurate else "(Not Actual mileage)"
    vehicle_section = Section(
        title="3. Vehicle Information",
        blocks=(
            Paragraph("The Seller hereby sells, transfers, and conveys to the Buyer the following vehicle:"),
            KeyValueRow("Year", text(vehicle.year, NOT_PROVIDED), indent=1),
            KeyValueRow("Make", text(vehicle.make, NOT_PROVIDED), indent=1),
            KeyValueRow("Model", text(vehicle.model, NOT_PROVIDED), indent=1),
            KeyValueRow("VIN (Vehicle Identification Number)", text(vehicle.vin, NOT_PROVIDED), indent=1),
            KeyValueRow("Odometer Reading", f"{text(vehicle.mileage, NOT_PROVIDED)} {odometer_note}", indent=1),
            KeyValueRow("License Plate Number", text(vehicle.license_plate, NOT_PROVIDED), indent=1),
            KeyValueRow("Title Status (as represented by Seller)", text(vehicle.title_status, "Clean"), indent=1),
            KeyValueRow(
                "Any known significant defects or issues (as disclosed by Seller)",
                text(vehicle.known_defects, "None known"),
            ),
        ),
    )

    # 4. Sale Terms and Payment
    sale_price = bos.sale_price if bos and bos.sale_price is not None else 0
    terms_section = Section(
        title="4. Sale Terms and Payment",
        blocks=(
            KeyValueRow("Purchase Price", f"{format_currency(sale_price)} Dollars (USD)", indent=1),
            KeyValueRow("Payment Method", text(payment_method, "Not Specified"), indent=1),
            KeyValueRow("Payment Date", sale_date, indent=1),
            Paragraph("The Seller acknowledges receipt of the full purchase price from the Buyer."),
        ),
    )

    # 5. Exchange of Ownership and Possession
    selected = resolve_payment_option(payment_method)
    payment_rows: List[CheckboxRow] = []
    for option, label, sentence in PAYMENT_CHECKBOXES:
        checked = option == selected
        detail = (payment_method or "") if option == PaymentOption.OTHER and checked else ""
        payment_rows.append(CheckboxRow(label=label, checked=checked, text=sentence, detail=detail))
    exchange_section = Section(
        title="5. Exchange of Ownership and Possession",
        blocks=(
            Paragraph(
                "The Seller agrees to transfer ownership and possession of the above-described vehicle "
                "to the Buyer in exchange for the agreed-upon consideration, which can be in one of the "
                "following forms (please check applicable):"
            ),
            *payment_rows,
        ),
    )

    # 6. Itemization of Purchase
    items = itemize(bos)
    itemization_section = Section(
        title="6. Itemization of Purchase",
        blocks=(
            KeyValueRow("Base Vehicle Price", format_currency(items.base_price), indent=1),
            KeyValueRow("Less: Repairs/Reconditioning Adjustment", f"-${format_money(items.adjustment)}", indent=1),
            KeyValueRow(
                "Less: Outstanding Loan Payoff (if applicable)", f"-${format_money(items.loan_payoff)}", indent=1
            ),
            KeyValueRow("Total Purchase Price", format_currency(items.total_price), indent=1),
        ),
    )

    # 7. Taxes
    tax_payer = resolve_tax_payer(bos.taxes_paid_by if bos else None)
    taxes_section = Section(
        title="7. Taxes",
        blocks=(
            Paragraph(
                "All municipal, county, and state taxes in relation to the sale of the Vehicle, "
                "including sales taxes, shall be paid by (please check one):"
            ),
            *(
                CheckboxRow(label=label, checked=payer == tax_payer, text=sentence)
                for payer, label, sentence in TAX_CHECKBOXES
            ),
        ),
    )

    # 8. Seller's Representations and Warranties
    warranties_section = Section(
        title="8. Seller's Representations and Warranties",
        blocks=(
            Paragraph("The Seller hereby certifies that:"),
            Paragraph(
                "The Seller is the legal owner of the vehicle and has the full right and authority "
                "to sell and transfer it.",
                ParagraphStyle.BULLET, indent=1,
            ),
            Paragraph(
                "The vehicle is free from all liens, encumbrances, and claims, except as explicitly "
                "disclosed to the Buyer (e.g., outstanding loan as detailed in intake).",
                ParagraphStyle.BULLET, indent=1,
            ),
            Paragraph(
                "The information provided in this Bill of Sale is true and accurate to the best of "
                "the Seller's knowledge.",
                ParagraphStyle.BULLET, indent=1,
            ),
        ),
    )

    # 9. Transfer of Ownership and Condition
    transfer_section = Section(
        title="9. Transfer of Ownership and Condition",
        blocks=(
            Paragraph(
                f"The Seller agrees to transfer full ownership of the above-described vehicle to {short} "
                "upon receipt of the full purchase price and completion of all required documentation, "
                "including the vehicle title."
            ),
            Paragraph(
                'The vehicle is sold in "AS-IS, WHERE-IS" condition, unless otherwise specified in a '
                "separate written agreement. The Buyer acknowledges that they have had the opportunity "
                f"to inspect the vehicle (via {short}'s inspection process)."
            ),
        ),
    )

    # 10. Acknowledgment of Title Transfer Requirement
    title_section = Section(
        title="10. Acknowledgment of Title Transfer Requirement",
        blocks=(
            Paragraph(
                "The Seller understands and acknowledges that the official transfer of vehicle ownership "
                f"to {short} is contingent upon the Seller providing a valid, clear, and transferable "
                f"vehicle title within 48 hours of accepting {short}'s offer. Failure to provide the title "
                "within this timeframe may result in the voiding of the current offer and potentially "
                "require a new inspection and renegotiation of the purchase price."
            ),
        ),
    )

    # 11. Signatures
    signatures_section = Section(
        title="11. Signatures",
        blocks=(
            Paragraph(
                "By signing below, the parties agree to all terms and conditions set forth in this "
                "Bill of Sale. This document authorizes the Buyer's and Seller's signatures below."
            ),
            Paragraph("SELLER(S):", ParagraphStyle.SUBHEADING),
            SignatureBlock("Signature", printed_name=text(seller.name, "[Seller's Printed Name]")),
            SignatureBlock(
                "Signature (If applicable, for co-owner)", printed_name="[Co-Seller's Printed Name]"
            ),
            Paragraph(f"FOR {short} (BUYER):", ParagraphStyle.SUBHEADING),
            SignatureBlock(
                "Authorized Signature",
                printed_name=text(agent_name, f"[Printed Name and Title of {short} Representative]"),
            ),
        ),
    )

    return (
        seller_section,
        buyer_section,
        vehicle_section,
        terms_section,
        exchange_section,
        itemization_section,
        taxes_section,
        warranties_section,
        transfer_section,
        title_section,
        signatures_section,
    )


def signature_section(signature: Optional[SignatureCapture]) -> Section:
    """Captured seller signature, appended to the signed bill of sale."""
    if signature is None:
        return Section(
            title="Seller's Signature",
            blocks=(Paragraph("No signature captured", ParagraphStyle.NOTE),),
        )
    return Section(
        title="Seller's Signature",
        blocks=(
            SignatureBlock(
                "Seller's Signature",
                image_base64=signature.image_base64,
                signed_at_text=f"Signed on: {format_signed_at(signature.signed_at)}",
            ),
        ),
    )
