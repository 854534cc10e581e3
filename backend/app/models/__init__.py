"""Case Engine - Data Models"""
from .case_models import (
    # Enums
    CaseStage, TitleStatus, LoanStatus, Severity, Priority, OfferDecisionType,
    # Collaborator records
    Customer, Vehicle, Person, InspectionQuestion, InspectionSection,
    SafetyIssue, MaintenanceItem, Inspection, OBD2Code, OBD2Scan,
    OfferDecision, Quote, BillOfSale, Transaction, Completion, ActingUser,
    # Aggregate
    CaseAggregate,
)
from .document_model import (
    DocumentKind, ParagraphStyle, KeyValueRow, Paragraph, CheckboxRow,
    SignatureBlock, Section, DocumentModel,
)

__all__ = [
    "CaseStage", "TitleStatus", "LoanStatus", "Severity", "Priority", "OfferDecisionType",
    "Customer", "Vehicle", "Person", "InspectionQuestion", "InspectionSection",
    "SafetyIssue", "MaintenanceItem", "Inspection", "OBD2Code", "OBD2Scan",
    "OfferDecision", "Quote", "BillOfSale", "Transaction", "Completion", "ActingUser",
    "CaseAggregate",
    "DocumentKind", "ParagraphStyle", "KeyValueRow", "Paragraph", "CheckboxRow",
    "SignatureBlock", "Section", "DocumentModel",
]
