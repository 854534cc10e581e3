"""
Case Engine - SQLAlchemy ORM Models
Persistent storage for cases and stage time tracking
"""
from datetime import datetime
from enum import Enum
from typing import Any, Dict

from sqlalchemy import Column, String, Integer, BigInteger, DateTime, Text, JSON, Enum as SQLEnum
from ..database import Base


# =============================================================================
# ENUMS FOR CASE WORKFLOW
# =============================================================================

class CaseStatus(str, Enum):
    """Overall workflow status of a case."""
    NEW = "new"
    ACTIVE = "active"
    SCHEDULED = "scheduled"
    QUOTE_READY = "quote-ready"
    NEGOTIATING = "negotiating"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class StageStatus(str, Enum):
    """Status of a single workflow stage."""
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETE = "complete"


class CasePriority(str, Enum):
    """Operator-assigned priority."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class CaseDB(Base):
    """
    Vehicle acquisition case.

    Customer, vehicle, inspection, quote and transaction data are owned by
    other collaborators; the case keeps a JSON snapshot of each record as
    last supplied (camelCase keys, parsed by case_models).
    """
    __tablename__ = "cases"

    id = Column(String(36), primary_key=True)  # UUID
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # ==========================================================================
    # WORKFLOW STATE
    # ==========================================================================
    current_stage = Column(Integer, nullable=False, default=1)  # 1..7
    # Format: {"1": "active", "2": "pending", ...}
    stage_statuses = Column(JSON, nullable=False, default=dict)
    status = Column(SQLEnum(CaseStatus), nullable=False, default=CaseStatus.NEW)
    priority = Column(SQLEnum(CasePriority), nullable=False, default=CasePriority.MEDIUM)
    stage_started_at = Column(DateTime, nullable=True)  # When current_stage became active

    # Format: {"description": "...", "timestamp": "ISO-8601"}
    last_activity = Column(JSON, nullable=True)
    # Format: {"thankYouSent": bool, "leaveBehinds": {...}, "pdfGenerated": bool, ...}
    completion = Column(JSON, nullable=True)

    # ==========================================================================
    # COLLABORATOR SNAPSHOTS
    # ==========================================================================
    customer_data = Column(JSON, nullable=True)
    vehicle_data = Column(JSON, nullable=True)
    inspection_data = Column(JSON, nullable=True)
    quote_data = Column(JSON, nullable=True)
    transaction_data = Column(JSON, nullable=True)

    pdf_case_file = Column(Text, nullable=True)  # URL of last generated package

    def to_aggregate_dict(self) -> Dict[str, Any]:
        """Case as the camelCase dictionary consumed by CaseAggregate.from_dict."""
        return {
            "caseId": self.id,
            "status": self.status.value if self.status else None,
            "priority": self.priority.value if self.priority else None,
            "currentStage": self.current_stage,
            "stageStatuses": dict(self.stage_statuses or {}),
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "lastActivity": self.last_activity,
            "completion": self.completion,
            "pdfCaseFile": self.pdf_case_file,
            "customer": self.customer_data,
            "vehicle": self.vehicle_data,
            "inspection": self.inspection_data,
            "quote": self.quote_data,
            "transaction": self.transaction_data,
        }


class TimeTrackingDB(Base):
    """
    Per-case stage time record.

    total_time must always equal the sum of stage_times[*].totalTime.
    Writes are version-checked; a concurrent update raises StaleDataError.
    """
    __tablename__ = "time_tracking"

    id = Column(String(36), primary_key=True)  # UUID
    case_id = Column(String(36), unique=True, nullable=False, index=True)

    # Format: {"inspection": {"startTime": "...", "endTime": "...", "totalTime": 1234, ...}}
    stage_times = Column(JSON, nullable=False, default=dict)
    total_time = Column(BigInteger, nullable=False, default=0)  # milliseconds
    last_updated = Column(DateTime, default=datetime.utcnow)

    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "caseId": self.case_id,
            "stageTimes": dict(self.stage_times or {}),
            "totalTime": self.total_time,
            "lastUpdated": self.last_updated.isoformat() if self.last_updated else None,
        }
