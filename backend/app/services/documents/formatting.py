"""
Document Formatting Rules

Derivation rules shared by every document variant:
- fallback chains (bill-of-sale override -> underlying record -> literal)
- payment-method and taxes checkbox tables
- itemization arithmetic
- market value banding
- OBD2 and inspection question summaries
- money/date display

Single-choice groups are lookup tables keyed by an enum, so every input
resolves to exactly one option.
"""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Iterable, List, Optional, Sequence, Tuple, TypeVar

from ...models.case_models import (
    BillOfSale, Customer, InspectionQuestion, InspectionSection, OBD2Scan, Vehicle,
)

T = TypeVar("T")


# =============================================================================
# DISPLAY HELPERS
# =============================================================================

def is_present(value: Any) -> bool:
    """None and empty strings are absent; zero and False are values."""
    if value is None:
        return False
    if isinstance(value, str) and value == "":
        return False
    return True


def first_present(*values: Any) -> Any:
    """First present value in the chain, else None."""
    for value in values:
        if is_present(value):
            return value
    return None


def format_number(value: Any) -> str:
    """Plain number display: 45000.0 -> '45000', 3.5 -> '3.5'."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def text(value: Any, default: str = "") -> str:
    """Display a scalar, substituting `default` when absent."""
    if not is_present(value):
        return default
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return format_number(value)
    return str(value)


def format_money(value: Any) -> str:
    """
    Thousands-separated amount without the currency sign.

    Whole amounts print without decimals; fractional amounts keep up to
    three decimal places (45000 -> '45,000', 1250.5 -> '1,250.5').
    """
    if value is None:
        value = 0
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, int):
        return f"{value:,}"
    return f"{value:,.3f}".rstrip("0").rstrip(".")


def format_currency(value: Any) -> str:
    """Dollar amount with the sign ahead of the symbol ('-$4,000')."""
    if value is not None and value < 0:
        return f"-${format_money(-value)}"
    return f"${format_money(value)}"


def yes_no(value: Any) -> str:
    return "Yes" if value else "No"


def format_long_date(value: Optional[datetime]) -> str:
    """'March 5, 2024'"""
    return f"{value:%B} {value.day}, {value.year}"


def format_iso_date(value: datetime) -> str:
    return value.strftime("%Y-%m-%d")


def format_signed_at(value: datetime) -> str:
    """'March 5, 2024 at 2:07 PM'"""
    hour = value.hour % 12 or 12
    return f"{format_long_date(value)} at {hour}:{value:%M} {value:%p}"


def rating_text(rating: Any) -> str:
    return f"{text(rating, 'N/A')}/5"


def take(items: Sequence[T], limit: int) -> Tuple[Sequence[T], int]:
    """First `limit` items and how many were left out."""
    return items[:limit], max(len(items) - limit, 0)


def overflow_line(remaining: int, noun: str = "") -> Optional[str]:
    """'... and 2 more issues', or None when nothing was left out."""
    if remaining <= 0:
        return None
    suffix = f" {noun}" if noun else ""
    return f"... and {remaining} more{suffix}"


# =============================================================================
# CUSTOMER SOURCE
# =============================================================================

SOURCE_LABELS = {
    "contact_form": "Contact Us Form Submission",
    "walk_in": "Walk-In",
    "phone": "Phone",
    "online": "Online",
    "on_the_road": "On the Road",
    "social_media": "Social Media",
    "other": "Other",
}


def source_label(source: Optional[str]) -> Optional[str]:
    """Human-readable lead source; unknown keys pass through unchanged."""
    if not source:
        return None
    return SOURCE_LABELS.get(source, source)


# =============================================================================
# FALLBACK CHAINS
# =============================================================================

@dataclass(frozen=True)
class SellerDetails:
    """Seller fields after applying bill-of-sale overrides. None = unknown."""
    name: Optional[str]
    address: Optional[str]
    city: Optional[str]
    state: Optional[str]
    zip_code: Optional[str]
    phone: Optional[str]
    email: Optional[str]
    dl_number: Optional[str]
    dl_state: Optional[str]


@dataclass(frozen=True)
class VehicleDetails:
    """Vehicle fields after applying bill-of-sale overrides. None = unknown."""
    year: Optional[str]
    make: Optional[str]
    model: Optional[str]
    vin: Optional[str]
    color: Optional[str]
    mileage: Any
    license_plate: Optional[str]
    title_status: Optional[str]
    known_defects: Optional[str]


def resolve_seller(customer: Customer, bill_of_sale: Optional[BillOfSale]) -> SellerDetails:
    bos = bill_of_sale or BillOfSale()
    return SellerDetails(
        name=first_present(bos.seller_name, customer.full_name),
        address=first_present(bos.seller_address, customer.address),
        city=first_present(bos.seller_city, customer.city),
        state=first_present(bos.seller_state, customer.state),
        zip_code=first_present(bos.seller_zip, customer.zip_code),
        phone=first_present(bos.seller_phone, customer.cell_phone),
        email=first_present(bos.seller_email, customer.email1),
        dl_number=first_present(bos.seller_dl_number),
        dl_state=first_present(bos.seller_dl_state),
    )


def resolve_vehicle(vehicle: Vehicle, bill_of_sale: Optional[BillOfSale]) -> VehicleDetails:
    bos = bill_of_sale or BillOfSale()
    return VehicleDetails(
        year=first_present(bos.vehicle_year, vehicle.year),
        make=first_present(bos.vehicle_make, vehicle.make),
        model=first_present(bos.vehicle_model, vehicle.model),
        vin=first_present(bos.vehicle_vin, vehicle.vin),
        color=first_present(bos.vehicle_color, vehicle.color),
        mileage=first_present(bos.odometer_reading, bos.vehicle_mileage, vehicle.current_mileage),
        license_plate=first_present(bos.vehicle_license_plate, vehicle.license_plate),
        title_status=first_present(bos.title_status, vehicle.title_status),
        known_defects=first_present(bos.known_defects, vehicle.known_defects),
    )


# =============================================================================
# PAYMENT METHOD
# =============================================================================

class PaymentOption(str, Enum):
    CASH = "cash"
    CHECK = "check"
    WIRE_ACH = "wire_ach"
    TRADE = "trade"
    GIFT = "gift"
    OTHER = "other"


# Exact lower-cased match; anything else is OTHER
PAYMENT_ALIASES = {
    "cash": PaymentOption.CASH,
    "check": PaymentOption.CHECK,
    "wire transfer": PaymentOption.WIRE_ACH,
    "ach": PaymentOption.WIRE_ACH,
    "wire": PaymentOption.WIRE_ACH,
    "bank transfer": PaymentOption.WIRE_ACH,
    "trade": PaymentOption.TRADE,
    "gift": PaymentOption.GIFT,
}

# Rendered order: (option, label, sentence)
PAYMENT_CHECKBOXES = (
    (PaymentOption.CASH, "Cash Payment",
     "The full purchase price will be paid to the Seller in cash."),
    (PaymentOption.CHECK, "Check",
     "A check for the full purchase price will be issued to the Seller."),
    (PaymentOption.WIRE_ACH, "Wire Transfer/ACH",
     "The full purchase price will be transferred electronically to the Seller's designated bank account."),
    (PaymentOption.TRADE, "Trade",
     "The vehicle is exchanged for another vehicle or goods of agreed-upon value."),
    (PaymentOption.GIFT, "Gift",
     "The vehicle is transferred as a gift, with no monetary exchange."),
    (PaymentOption.OTHER, "Other", ""),
)


def resolve_payment_option(payment_method: Optional[str]) -> PaymentOption:
    return PAYMENT_ALIASES.get((payment_method or "").lower(), PaymentOption.OTHER)


# =============================================================================
# TAXES
# =============================================================================

class TaxPayer(str, Enum):
    BUYER = "buyer"
    SELLER = "seller"


TAX_CHECKBOXES = (
    (TaxPayer.BUYER, "Buyer", "And are not included as part of the exchange price."),
    (TaxPayer.SELLER, "Seller", "And are included as part of the exchange price."),
)


def resolve_tax_payer(taxes_paid_by: Optional[str]) -> TaxPayer:
    """Seller only when explicitly 'seller' (any case); buyer otherwise."""
    if (taxes_paid_by or "").lower() == TaxPayer.SELLER.value:
        return TaxPayer.SELLER
    return TaxPayer.BUYER


# =============================================================================
# ITEMIZATION
# =============================================================================

@dataclass(frozen=True)
class Itemization:
    base_price: Any
    adjustment: Any
    loan_payoff: Any

    @property
    def total_price(self):
        return self.base_price - self.adjustment - self.loan_payoff


def itemize(bill_of_sale: Optional[BillOfSale]) -> Itemization:
    bos = bill_of_sale or BillOfSale()
    base = bos.base_vehicle_price if bos.base_vehicle_price is not None else bos.sale_price
    return Itemization(
        base_price=base if base is not None else 0,
        adjustment=bos.repairs_adjustment if bos.repairs_adjustment is not None else 0,
        loan_payoff=bos.loan_payoff if bos.loan_payoff is not None else 0,
    )


# =============================================================================
# MARKET VALUE
# =============================================================================

class MarketPosition(str, Enum):
    SIGNIFICANTLY_BELOW = "significantly below market"
    BELOW = "below market"
    AT = "at market"
    ABOVE = "above market"

    @property
    def label(self) -> str:
        """'Significantly below market value'"""
        return f"{self.value[0].upper()}{self.value[1:]} value"


# (exclusive lower bound on percentage, position), checked in order
MARKET_BANDS = (
    (15, MarketPosition.SIGNIFICANTLY_BELOW),
    (5, MarketPosition.BELOW),
    (-5, MarketPosition.AT),
)


def market_position(percentage: float) -> MarketPosition:
    for lower_bound, position in MARKET_BANDS:
        if percentage > lower_bound:
            return position
    return MarketPosition.ABOVE


@dataclass(frozen=True)
class MarketAnalysis:
    estimated_value: Any
    offer_amount: Any
    difference: Any
    percentage: float
    position: MarketPosition


def analyze_market(estimated_value: Any, offer_amount: Any) -> Optional[MarketAnalysis]:
    """None when no estimated value is known."""
    if estimated_value is None:
        return None
    offer = offer_amount if offer_amount is not None else 0
    difference = estimated_value - offer
    percentage = (difference / estimated_value * 100) if estimated_value > 0 else 0.0
    return MarketAnalysis(
        estimated_value=estimated_value,
        offer_amount=offer,
        difference=difference,
        percentage=percentage,
        position=market_position(percentage),
    )


# =============================================================================
# DIAGNOSTICS AND INSPECTION QUESTIONS
# =============================================================================

@dataclass(frozen=True)
class OBD2Summary:
    total_codes: int
    critical_codes: int

    @property
    def unknown_codes(self) -> int:
        # Not clamped: inconsistent scans surface as a negative count
        return self.total_codes - self.critical_codes


def summarize_obd2(scan: Optional[OBD2Scan]) -> OBD2Summary:
    if scan is None:
        return OBD2Summary(total_codes=0, critical_codes=0)
    return OBD2Summary(total_codes=len(scan.extracted_codes), critical_codes=len(scan.critical_codes))


# Substring match, not word match: "noisy" counts because it contains "no"
CRITICAL_ANSWER_TOKENS = ("no", "fail", "issue", "problem")


def is_critical_answer(answer: Any) -> bool:
    if not isinstance(answer, str) or not answer:
        return False
    lowered = answer.lower()
    return any(token in lowered for token in CRITICAL_ANSWER_TOKENS)


def is_answered(answer: Any) -> bool:
    return bool(answer)


@dataclass(frozen=True)
class SectionQuestionSummary:
    answered: int
    total: int
    critical: List[InspectionQuestion]


def summarize_questions(section: InspectionSection) -> SectionQuestionSummary:
    return SectionQuestionSummary(
        answered=sum(1 for q in section.questions if is_answered(q.answer)),
        total=len(section.questions),
        critical=[q for q in section.questions if is_critical_answer(q.answer)],
    )


def count_by(values: Iterable[Optional[str]], keys: Sequence[str]) -> dict:
    """Occurrences of each key; values outside `keys` are ignored."""
    counts = {key: 0 for key in keys}
    for value in values:
        if value in counts:
            counts[value] += 1
    return counts
