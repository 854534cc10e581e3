"""
Case Aggregate Models

Typed records for the data a case carries: customer, vehicle, inspection,
quote and transaction. These records are owned by other collaborators and
arrive as loosely-typed camelCase JSON; from_dict() validates the shape once
at the boundary so downstream code never re-checks types.

Shape rules:
- Missing keys and JSON null become None (or an empty tuple for lists)
- Numeric strings are coerced ("500" -> 500, "1,250.50" -> 1250.5)
- Values of the wrong type that cannot be coerced raise ValidationError
  naming the field path (e.g. "vehicle.loanAmount")
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum, IntEnum
from typing import Any, Dict, Mapping, Optional, Tuple

from dateutil import parser as date_parser

from ..errors import ValidationError


# =============================================================================
# ENUMS
# =============================================================================

class CaseStage(IntEnum):
    """The seven workflow stages, numbered as persisted in current_stage."""
    INTAKE = 1
    SCHEDULE_INSPECTION = 2
    INSPECTION = 3
    QUOTE_PREPARATION = 4
    OFFER_DECISION = 5
    PAPERWORK = 6
    COMPLETION = 7

    @property
    def time_key(self) -> str:
        """Key used for this stage in TimeTracking.stage_times."""
        return _STAGE_TIME_KEYS[self]

    @classmethod
    def from_time_key(cls, key: str) -> Optional["CaseStage"]:
        for stage, stage_key in _STAGE_TIME_KEYS.items():
            if stage_key == key:
                return stage
        return None


_STAGE_TIME_KEYS = {
    CaseStage.INTAKE: "intake",
    CaseStage.SCHEDULE_INSPECTION: "scheduleInspection",
    CaseStage.INSPECTION: "inspection",
    CaseStage.QUOTE_PREPARATION: "quotePreparation",
    CaseStage.OFFER_DECISION: "offerDecision",
    CaseStage.PAPERWORK: "paperwork",
    CaseStage.COMPLETION: "completion",
}


class TitleStatus(str, Enum):
    CLEAN = "clean"
    SALVAGE = "salvage"
    REBUILT = "rebuilt"
    LEMON = "lemon"
    FLOOD = "flood"
    JUNK = "junk"
    NOT_SURE = "not-sure"


class LoanStatus(str, Enum):
    PAID_OFF = "paid-off"
    STILL_HAS_LOAN = "still-has-loan"
    NOT_SURE = "not-sure"


class Severity(str, Enum):
    """Safety issue severity."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class Priority(str, Enum):
    """Maintenance item priority."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class OfferDecisionType(str, Enum):
    ACCEPTED = "accepted"
    NEGOTIATING = "negotiating"
    DECLINED = "declined"
    PENDING = "pending"


# =============================================================================
# COERCION HELPERS
# =============================================================================

def _mapping(value: Any, path: str) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ValidationError(f"{path} must be an object", {"field": path})
    return value


def _list(value: Any, path: str) -> Tuple[Any, ...]:
    if value is None:
        return ()
    if not isinstance(value, (list, tuple)):
        raise ValidationError(f"{path} must be a list", {"field": path})
    return tuple(value)


def _str(value: Any, path: str) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    raise ValidationError(f"{path} must be a string", {"field": path})


def _number(value: Any, path: str):
    """int/float passthrough; numeric strings parsed; '' treated as missing."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{path} must be a number", {"field": path})
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        text = value.strip().replace(",", "").lstrip("$")
        if not text:
            return None
        try:
            return int(text)
        except ValueError:
            pass
        try:
            return float(text)
        except ValueError:
            pass
    raise ValidationError(f"{path} must be a number", {"field": path})


def _bool(value: Any, path: str) -> Optional[bool]:
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return bool(value)
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise ValidationError(f"{path} must be a boolean", {"field": path})


def _datetime(value: Any, path: str) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        # Epoch milliseconds
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OSError, OverflowError, ValueError):
            raise ValidationError(f"{path} is out of range: {value!r}", {"field": path})
    if isinstance(value, str):
        try:
            return date_parser.parse(value)
        except (ValueError, OverflowError):
            raise ValidationError(f"{path} is not a valid date: {value!r}", {"field": path})
    raise ValidationError(f"{path} must be a date", {"field": path})


# =============================================================================
# COLLABORATOR RECORDS
# =============================================================================

@dataclass(frozen=True)
class Customer:
    """Seller of the vehicle."""
    first_name: Optional[str] = None
    middle_initial: Optional[str] = None
    last_name: Optional[str] = None
    cell_phone: Optional[str] = None
    home_phone: Optional[str] = None
    email1: Optional[str] = None
    email2: Optional[str] = None
    hear_about_vos: Optional[str] = None
    source: Optional[str] = None
    customer_id: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None

    @property
    def full_name(self) -> str:
        """'First Last', or '' when neither part is known."""
        return " ".join(p for p in (self.first_name, self.last_name) if p)

    @classmethod
    def from_dict(cls, data: Any, path: str = "customer") -> "Customer":
        d = _mapping(data, path)
        return cls(
            first_name=_str(d.get("firstName"), f"{path}.firstName"),
            middle_initial=_str(d.get("middleInitial"), f"{path}.middleInitial"),
            last_name=_str(d.get("lastName"), f"{path}.lastName"),
            cell_phone=_str(d.get("cellPhone"), f"{path}.cellPhone"),
            home_phone=_str(d.get("homePhone"), f"{path}.homePhone"),
            email1=_str(d.get("email1"), f"{path}.email1"),
            email2=_str(d.get("email2"), f"{path}.email2"),
            hear_about_vos=_str(d.get("hearAboutVOS"), f"{path}.hearAboutVOS"),
            source=_str(d.get("source"), f"{path}.source"),
            customer_id=_str(d.get("customerId"), f"{path}.customerId"),
            address=_str(d.get("address"), f"{path}.address"),
            city=_str(d.get("city"), f"{path}.city"),
            state=_str(d.get("state"), f"{path}.state"),
            zip_code=_str(d.get("zip"), f"{path}.zip"),
        )


@dataclass(frozen=True)
class Vehicle:
    year: Optional[str] = None
    make: Optional[str] = None
    model: Optional[str] = None
    vin: Optional[str] = None
    current_mileage: Optional[float] = None
    color: Optional[str] = None
    body_style: Optional[str] = None
    license_plate: Optional[str] = None
    license_state: Optional[str] = None
    title_number: Optional[str] = None
    title_status: Optional[str] = None
    loan_status: Optional[str] = None
    loan_amount: Optional[float] = None
    second_set_of_keys: Optional[bool] = None
    has_title_in_possession: Optional[bool] = None
    title_in_own_name: Optional[bool] = None
    known_defects: Optional[str] = None
    estimated_value: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Any, path: str = "vehicle") -> "Vehicle":
        d = _mapping(data, path)
        return cls(
            year=_str(d.get("year"), f"{path}.year"),
            make=_str(d.get("make"), f"{path}.make"),
            model=_str(d.get("model"), f"{path}.model"),
            vin=_str(d.get("vin"), f"{path}.vin"),
            current_mileage=_number(d.get("currentMileage"), f"{path}.currentMileage"),
            color=_str(d.get("color"), f"{path}.color"),
            body_style=_str(d.get("bodyStyle"), f"{path}.bodyStyle"),
            license_plate=_str(d.get("licensePlate"), f"{path}.licensePlate"),
            license_state=_str(d.get("licenseState"), f"{path}.licenseState"),
            title_number=_str(d.get("titleNumber"), f"{path}.titleNumber"),
            title_status=_str(d.get("titleStatus"), f"{path}.titleStatus"),
            loan_status=_str(d.get("loanStatus"), f"{path}.loanStatus"),
            loan_amount=_number(d.get("loanAmount"), f"{path}.loanAmount"),
            second_set_of_keys=_bool(d.get("secondSetOfKeys"), f"{path}.secondSetOfKeys"),
            has_title_in_possession=_bool(d.get("hasTitleInPossession"), f"{path}.hasTitleInPossession"),
            title_in_own_name=_bool(d.get("titleInOwnName"), f"{path}.titleInOwnName"),
            known_defects=_str(d.get("knownDefects"), f"{path}.knownDefects"),
            estimated_value=_number(d.get("estimatedValue"), f"{path}.estimatedValue"),
        )


@dataclass(frozen=True)
class Person:
    """Inspector, estimator or other staff member referenced by a record."""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None

    @property
    def full_name(self) -> str:
        return " ".join(p for p in (self.first_name, self.last_name) if p)

    @classmethod
    def from_dict(cls, data: Any, path: str) -> Optional["Person"]:
        if data is None:
            return None
        d = _mapping(data, path)
        return cls(
            first_name=_str(d.get("firstName"), f"{path}.firstName"),
            last_name=_str(d.get("lastName"), f"{path}.lastName"),
            email=_str(d.get("email"), f"{path}.email"),
            phone=_str(d.get("phone"), f"{path}.phone"),
        )


@dataclass(frozen=True)
class InspectionQuestion:
    id: Optional[str] = None
    question: Optional[str] = None
    type: Optional[str] = None
    answer: Any = None  # free-form: string, bool, number or list
    notes: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any, path: str) -> "InspectionQuestion":
        d = _mapping(data, path)
        return cls(
            id=_str(d.get("id"), f"{path}.id"),
            question=_str(d.get("question"), f"{path}.question"),
            type=_str(d.get("type"), f"{path}.type"),
            answer=d.get("answer"),
            notes=_str(d.get("notes"), f"{path}.notes"),
        )


@dataclass(frozen=True)
class InspectionSection:
    id: Optional[str] = None
    name: str = ""
    description: Optional[str] = None
    questions: Tuple[InspectionQuestion, ...] = ()
    rating: Optional[float] = None
    score: Optional[float] = None
    max_score: Optional[float] = None
    completed: bool = False

    @classmethod
    def from_dict(cls, data: Any, path: str) -> "InspectionSection":
        d = _mapping(data, path)
        questions = _list(d.get("questions"), f"{path}.questions")
        return cls(
            id=_str(d.get("id"), f"{path}.id"),
            name=_str(d.get("name"), f"{path}.name") or "",
            description=_str(d.get("description"), f"{path}.description"),
            questions=tuple(
                InspectionQuestion.from_dict(q, f"{path}.questions[{i}]")
                for i, q in enumerate(questions)
            ),
            rating=_number(d.get("rating"), f"{path}.rating"),
            score=_number(d.get("score"), f"{path}.score"),
            max_score=_number(d.get("maxScore"), f"{path}.maxScore"),
            completed=bool(_bool(d.get("completed"), f"{path}.completed")),
        )


@dataclass(frozen=True)
class SafetyIssue:
    severity: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    estimated_cost: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Any, path: str) -> "SafetyIssue":
        d = _mapping(data, path)
        return cls(
            severity=_str(d.get("severity"), f"{path}.severity"),
            description=_str(d.get("description"), f"{path}.description"),
            location=_str(d.get("location"), f"{path}.location"),
            estimated_cost=_number(d.get("estimatedCost"), f"{path}.estimatedCost"),
        )


@dataclass(frozen=True)
class MaintenanceItem:
    priority: Optional[str] = None
    description: Optional[str] = None
    estimated_cost: Optional[float] = None
    recommended_action: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any, path: str) -> "MaintenanceItem":
        d = _mapping(data, path)
        return cls(
            priority=_str(d.get("priority"), f"{path}.priority"),
            description=_str(d.get("description"), f"{path}.description"),
            estimated_cost=_number(d.get("estimatedCost"), f"{path}.estimatedCost"),
            recommended_action=_str(d.get("recommendedAction"), f"{path}.recommendedAction"),
        )


@dataclass(frozen=True)
class Inspection:
    inspector: Optional[Person] = None
    sections: Tuple[InspectionSection, ...] = ()
    overall_rating: Optional[float] = None
    overall_score: Optional[float] = None
    max_possible_score: Optional[float] = None
    completed_at: Optional[datetime] = None
    recommendations: Tuple[str, ...] = ()
    safety_issues: Tuple[SafetyIssue, ...] = ()
    maintenance_items: Tuple[MaintenanceItem, ...] = ()

    @classmethod
    def from_dict(cls, data: Any, path: str = "inspection") -> "Inspection":
        d = _mapping(data, path)
        sections = _list(d.get("sections"), f"{path}.sections")
        recommendations = _list(d.get("recommendations"), f"{path}.recommendations")
        safety = _list(d.get("safetyIssues"), f"{path}.safetyIssues")
        maintenance = _list(d.get("maintenanceItems"), f"{path}.maintenanceItems")
        return cls(
            inspector=Person.from_dict(d.get("inspector"), f"{path}.inspector"),
            sections=tuple(
                InspectionSection.from_dict(s, f"{path}.sections[{i}]")
                for i, s in enumerate(sections)
            ),
            overall_rating=_number(d.get("overallRating"), f"{path}.overallRating"),
            overall_score=_number(d.get("overallScore"), f"{path}.overallScore"),
            max_possible_score=_number(d.get("maxPossibleScore"), f"{path}.maxPossibleScore"),
            completed_at=_datetime(d.get("completedAt"), f"{path}.completedAt"),
            recommendations=tuple(
                _str(r, f"{path}.recommendations[{i}]") or "" for i, r in enumerate(recommendations)
            ),
            safety_issues=tuple(
                SafetyIssue.from_dict(s, f"{path}.safetyIssues[{i}]") for i, s in enumerate(safety)
            ),
            maintenance_items=tuple(
                MaintenanceItem.from_dict(m, f"{path}.maintenanceItems[{i}]")
                for i, m in enumerate(maintenance)
            ),
        )


@dataclass(frozen=True)
class OBD2Code:
    code: str = ""
    description: Optional[str] = None

    @classmethod
    def from_value(cls, value: Any, path: str) -> "OBD2Code":
        # Extracted codes arrive either as bare strings or as {code, description}
        if isinstance(value, str):
            return cls(code=value)
        d = _mapping(value, path)
        return cls(
            code=_str(d.get("code"), f"{path}.code") or "",
            description=_str(d.get("description"), f"{path}.description"),
        )


@dataclass(frozen=True)
class OBD2Scan:
    extracted_codes: Tuple[OBD2Code, ...] = ()
    critical_codes: Tuple[OBD2Code, ...] = ()

    @classmethod
    def from_dict(cls, data: Any, path: str) -> Optional["OBD2Scan"]:
        if data is None:
            return None
        d = _mapping(data, path)
        extracted = _list(d.get("extractedCodes"), f"{path}.extractedCodes")
        critical = _list(d.get("criticalCodes"), f"{path}.criticalCodes")
        return cls(
            extracted_codes=tuple(
                OBD2Code.from_value(c, f"{path}.extractedCodes[{i}]") for i, c in enumerate(extracted)
            ),
            critical_codes=tuple(
                OBD2Code.from_value(c, f"{path}.criticalCodes[{i}]") for i, c in enumerate(critical)
            ),
        )


@dataclass(frozen=True)
class OfferDecision:
    decision: Optional[str] = None
    counter_offer: Optional[float] = None
    customer_notes: Optional[str] = None
    final_amount: Optional[float] = None
    decided_at: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: Any, path: str) -> Optional["OfferDecision"]:
        if data is None:
            return None
        d = _mapping(data, path)
        return cls(
            decision=_str(d.get("decision"), f"{path}.decision"),
            counter_offer=_number(d.get("counterOffer"), f"{path}.counterOffer"),
            customer_notes=_str(d.get("customerNotes"), f"{path}.customerNotes"),
            final_amount=_number(d.get("finalAmount"), f"{path}.finalAmount"),
            decided_at=_datetime(d.get("decidedAt"), f"{path}.decidedAt"),
        )


@dataclass(frozen=True)
class Quote:
    offer_amount: Optional[float] = None
    estimated_value: Optional[float] = None
    status: Optional[str] = None
    offer_decision: Optional[OfferDecision] = None
    generated_at: Optional[datetime] = None
    estimator: Optional[Person] = None
    obd2_scan: Optional[OBD2Scan] = None

    @property
    def is_declined(self) -> bool:
        return bool(self.offer_decision and self.offer_decision.decision == OfferDecisionType.DECLINED.value)

    @classmethod
    def from_dict(cls, data: Any, path: str = "quote") -> "Quote":
        d = _mapping(data, path)
        return cls(
            offer_amount=_number(d.get("offerAmount"), f"{path}.offerAmount"),
            estimated_value=_number(d.get("estimatedValue"), f"{path}.estimatedValue"),
            status=_str(d.get("status"), f"{path}.status"),
            offer_decision=OfferDecision.from_dict(d.get("offerDecision"), f"{path}.offerDecision"),
            generated_at=_datetime(d.get("generatedAt"), f"{path}.generatedAt"),
            estimator=Person.from_dict(d.get("estimator"), f"{path}.estimator"),
            obd2_scan=OBD2Scan.from_dict(d.get("obd2Scan"), f"{path}.obd2Scan"),
        )


@dataclass(frozen=True)
class BillOfSale:
    """Document-level overrides and sale terms entered during paperwork."""
    seller_name: Optional[str] = None
    seller_address: Optional[str] = None
    seller_city: Optional[str] = None
    seller_state: Optional[str] = None
    seller_zip: Optional[str] = None
    seller_phone: Optional[str] = None
    seller_email: Optional[str] = None
    seller_dl_number: Optional[str] = None
    seller_dl_state: Optional[str] = None
    buyer_address: Optional[str] = None
    buyer_city: Optional[str] = None
    buyer_state: Optional[str] = None
    buyer_zip: Optional[str] = None
    agent_name: Optional[str] = None
    vehicle_vin: Optional[str] = None
    vehicle_year: Optional[str] = None
    vehicle_make: Optional[str] = None
    vehicle_model: Optional[str] = None
    vehicle_color: Optional[str] = None
    vehicle_license_plate: Optional[str] = None
    vehicle_mileage: Optional[float] = None
    sale_date: Optional[datetime] = None
    sale_price: Optional[float] = None
    payment_method: Optional[str] = None
    odometer_reading: Optional[float] = None
    odometer_accurate: Optional[bool] = None
    title_status: Optional[str] = None
    known_defects: Optional[str] = None
    base_vehicle_price: Optional[float] = None
    repairs_adjustment: Optional[float] = None
    loan_payoff: Optional[float] = None
    taxes_paid_by: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any, path: str) -> Optional["BillOfSale"]:
        if data is None:
            return None
        d = _mapping(data, path)
        s = lambda key: _str(d.get(key), f"{path}.{key}")  # noqa: E731
        n = lambda key: _number(d.get(key), f"{path}.{key}")  # noqa: E731
        return cls(
            seller_name=s("sellerName"),
            seller_address=s("sellerAddress"),
            seller_city=s("sellerCity"),
            seller_state=s("sellerState"),
            seller_zip=s("sellerZip"),
            seller_phone=s("sellerPhone"),
            seller_email=s("sellerEmail"),
            seller_dl_number=s("sellerDLNumber"),
            seller_dl_state=s("sellerDLState"),
            buyer_address=s("buyerAddress"),
            buyer_city=s("buyerCity"),
            buyer_state=s("buyerState"),
            buyer_zip=s("buyerZip"),
            agent_name=s("agentName"),
            vehicle_vin=s("vehicleVIN"),
            vehicle_year=s("vehicleYear"),
            vehicle_make=s("vehicleMake"),
            vehicle_model=s("vehicleModel"),
            vehicle_color=s("vehicleColor"),
            vehicle_license_plate=s("vehicleLicensePlate"),
            vehicle_mileage=n("vehicleMileage"),
            sale_date=_datetime(d.get("saleDate"), f"{path}.saleDate"),
            sale_price=n("salePrice"),
            payment_method=s("paymentMethod"),
            odometer_reading=n("odometerReading"),
            odometer_accurate=_bool(d.get("odometerAccurate"), f"{path}.odometerAccurate"),
            title_status=s("titleStatus"),
            known_defects=s("knownDefects"),
            base_vehicle_price=n("baseVehiclePrice"),
            repairs_adjustment=n("repairsAdjustment"),
            loan_payoff=n("loanPayoff"),
            taxes_paid_by=s("taxesPaidBy"),
        )


@dataclass(frozen=True)
class Transaction:
    bill_of_sale: Optional[BillOfSale] = None
    preferred_payment_method: Optional[str] = None
    payment_status: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any, path: str = "transaction") -> "Transaction":
        d = _mapping(data, path)
        return cls(
            bill_of_sale=BillOfSale.from_dict(d.get("billOfSale"), f"{path}.billOfSale"),
            preferred_payment_method=_str(d.get("preferredPaymentMethod"), f"{path}.preferredPaymentMethod"),
            payment_status=_str(d.get("paymentStatus"), f"{path}.paymentStatus"),
        )


@dataclass(frozen=True)
class Completion:
    """Hand-over checklist recorded when a case is closed."""
    thank_you_sent: bool = False
    sent_at: Optional[datetime] = None
    vehicle_left: bool = False
    keys_handed_over: bool = False
    documents_received: bool = False
    pdf_generated: bool = False
    title_confirmation: bool = False
    completed_at: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: Any, path: str = "completion") -> "Completion":
        d = _mapping(data, path)
        leave_behinds = _mapping(d.get("leaveBehinds"), f"{path}.leaveBehinds")
        flag = lambda value, key: bool(_bool(value, key))  # noqa: E731
        return cls(
            thank_you_sent=flag(d.get("thankYouSent"), f"{path}.thankYouSent"),
            sent_at=_datetime(d.get("sentAt"), f"{path}.sentAt"),
            vehicle_left=flag(leave_behinds.get("vehicleLeft"), f"{path}.leaveBehinds.vehicleLeft"),
            keys_handed_over=flag(leave_behinds.get("keysHandedOver"), f"{path}.leaveBehinds.keysHandedOver"),
            documents_received=flag(
                leave_behinds.get("documentsReceived"), f"{path}.leaveBehinds.documentsReceived"
            ),
            pdf_generated=flag(d.get("pdfGenerated"), f"{path}.pdfGenerated"),
            title_confirmation=flag(d.get("titleConfirmation"), f"{path}.titleConfirmation"),
            completed_at=_datetime(d.get("completedAt"), f"{path}.completedAt"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Persisted camelCase layout."""
        return {
            "thankYouSent": self.thank_you_sent,
            "sentAt": self.sent_at.isoformat() if self.sent_at else None,
            "leaveBehinds": {
                "vehicleLeft": self.vehicle_left,
                "keysHandedOver": self.keys_handed_over,
                "documentsReceived": self.documents_received,
            },
            "pdfGenerated": self.pdf_generated,
            "titleConfirmation": self.title_confirmation,
            "completedAt": self.completed_at.isoformat() if self.completed_at else None,
        }


@dataclass(frozen=True)
class ActingUser:
    """Staff member on whose behalf a package is sent (the buyer side)."""
    user_id: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any, path: str = "user") -> "ActingUser":
        d = _mapping(data, path)
        return cls(
            user_id=_str(d.get("id") if d.get("id") is not None else d.get("userId"), f"{path}.id"),
            first_name=_str(d.get("firstName"), f"{path}.firstName"),
            last_name=_str(d.get("lastName"), f"{path}.lastName"),
            email=_str(d.get("email"), f"{path}.email"),
            role=_str(d.get("role"), f"{path}.role"),
        )


# =============================================================================
# CASE AGGREGATE
# =============================================================================

@dataclass(frozen=True)
class CaseAggregate:
    """
    Snapshot of a case and every record it references.

    customer and vehicle are always present (possibly empty); inspection,
    quote and transaction are None until the workflow has produced them.
    """
    case_id: Optional[str] = None
    status: Optional[str] = None
    current_stage: Optional[int] = None
    stage_statuses: Dict[str, str] = field(default_factory=dict)
    created_at: Optional[datetime] = None
    customer: Customer = field(default_factory=Customer)
    vehicle: Vehicle = field(default_factory=Vehicle)
    inspection: Optional[Inspection] = None
    quote: Optional[Quote] = None
    transaction: Optional[Transaction] = None
    completion: Optional[Completion] = None
    pdf_case_file: Optional[str] = None

    @property
    def bill_of_sale(self) -> Optional[BillOfSale]:
        return self.transaction.bill_of_sale if self.transaction else None

    @classmethod
    def from_dict(cls, data: Any, path: str = "case") -> "CaseAggregate":
        d = _mapping(data, path)
        case_id = d.get("caseId") if d.get("caseId") is not None else d.get("id")
        stage_statuses = _mapping(d.get("stageStatuses"), f"{path}.stageStatuses")
        current_stage = _number(d.get("currentStage"), f"{path}.currentStage")
        return cls(
            case_id=_str(case_id, f"{path}.caseId"),
            status=_str(d.get("status"), f"{path}.status"),
            current_stage=int(current_stage) if current_stage is not None else None,
            stage_statuses={str(k): str(v) for k, v in stage_statuses.items()},
            created_at=_datetime(d.get("createdAt"), f"{path}.createdAt"),
            customer=Customer.from_dict(d.get("customer")),
            vehicle=Vehicle.from_dict(d.get("vehicle")),
            inspection=Inspection.from_dict(d["inspection"]) if d.get("inspection") is not None else None,
            quote=Quote.from_dict(d["quote"]) if d.get("quote") is not None else None,
            transaction=Transaction.from_dict(d["transaction"]) if d.get("transaction") is not None else None,
            completion=Completion.from_dict(d["completion"]) if d.get("completion") is not None else None,
            pdf_case_file=_str(d.get("pdfCaseFile"), f"{path}.pdfCaseFile"),
        )
