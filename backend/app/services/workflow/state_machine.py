"""
Case Stage State Machine

Deterministic seven-stage workflow for a vehicle acquisition case.
Every explicit stage write applies the same policy:
- stages before the target are complete
- the target stage is active
- stages after the target are pending

Out-of-order jumps (operator corrections) follow the same policy.
The state machine never commits; the caller owns the transaction.
"""
import logging
from datetime import datetime
from typing import Any, Dict, Mapping, Optional, Union
from uuid import uuid4

from ...errors import NotFoundError, ValidationError
from ...models.case_models import CaseStage, Completion, Quote
from ...models.db_models import CaseDB, CaseStatus, CasePriority, StageStatus

logger = logging.getLogger(__name__)


# =============================================================================
# STAGE CONFIGURATION
# =============================================================================

STAGE_CONFIG = {
    CaseStage.INTAKE: {
        "label": "Intake",
        "description": "Customer and vehicle details captured",
        "activity": "Case moved to Intake",
    },
    CaseStage.SCHEDULE_INSPECTION: {
        "label": "Schedule Inspection",
        "description": "Inspection appointment being arranged",
        "activity": "Case moved to Schedule Inspection",
    },
    CaseStage.INSPECTION: {
        "label": "Inspection",
        "description": "Vehicle inspection in progress",
        "activity": "Case moved to Inspection",
    },
    CaseStage.QUOTE_PREPARATION: {
        "label": "Quote Preparation",
        "description": "Offer being prepared from inspection and market data",
        "activity": "Case moved to Quote Preparation",
    },
    CaseStage.OFFER_DECISION: {
        "label": "Offer Decision",
        "description": "Awaiting customer decision on the offer",
        "activity": "Case moved to Offer Decision",
    },
    CaseStage.PAPERWORK: {
        "label": "Paperwork",
        "description": "Bill of sale and title paperwork",
        "activity": "Case moved to Paperwork",
    },
    CaseStage.COMPLETION: {
        "label": "Completion",
        "description": "Vehicle handed over, case closing",
        "activity": "Case moved to Completion",
    },
}


def initial_stage_statuses() -> Dict[str, str]:
    """Stage 1 active, all others pending."""
    return {
        str(stage.value): (StageStatus.ACTIVE.value if stage == CaseStage.INTAKE else StageStatus.PENDING.value)
        for stage in CaseStage
    }


def stage_statuses_for(target: CaseStage) -> Dict[str, str]:
    """Statuses produced by advancing to `target`."""
    statuses = {}
    for stage in CaseStage:
        if stage < target:
            statuses[str(stage.value)] = StageStatus.COMPLETE.value
        elif stage == target:
            statuses[str(stage.value)] = StageStatus.ACTIVE.value
        else:
            statuses[str(stage.value)] = StageStatus.PENDING.value
    return statuses


def validate_stage(target_stage: Any) -> CaseStage:
    """Coerce a stage number to CaseStage or raise ValidationError."""
    if isinstance(target_stage, bool) or not isinstance(target_stage, int):
        raise ValidationError(
            f"Stage must be an integer between 1 and 7, got {target_stage!r}",
            {"field": "targetStage"},
        )
    try:
        return CaseStage(target_stage)
    except ValueError:
        raise ValidationError(
            f"Stage must be between 1 and 7, got {target_stage}",
            {"field": "targetStage"},
        )


# =============================================================================
# STATE MACHINE
# =============================================================================

class CaseStateMachine:
    """
    Stage bookkeeping for cases.

    Core Principles:
    - Exactly one stage is active and it equals current_stage,
      unless every stage is complete
    - Reapplying the current stage leaves statuses untouched but
      still records the activity
    - Time tracking is the caller's concern (see CaseWorkflow)
    """

    def __init__(self, db_session):
        """Initialize with database session."""
        self.db = db_session

    def get_stage_config(self, stage: CaseStage) -> Dict[str, Any]:
        """Get configuration for a stage."""
        return STAGE_CONFIG.get(stage, {})

    def get_case(self, case_id: str) -> CaseDB:
        """Load a case or raise NotFoundError."""
        if not case_id:
            raise ValidationError("case_id is required", {"field": "caseId"})
        case = self.db.query(CaseDB).filter(CaseDB.id == case_id).first()
        if case is None:
            raise NotFoundError(f"Case {case_id} not found", {"case_id": case_id})
        return case

    def open_case(
        self,
        records: Optional[Mapping[str, Any]] = None,
        case_id: Optional[str] = None,
        priority: Union[CasePriority, str] = CasePriority.MEDIUM,
        now: Optional[datetime] = None,
    ) -> CaseDB:
        """
        Create a case in its initial state.

        records: optional camelCase snapshots keyed by customer/vehicle/
        inspection/quote/transaction.
        """
        now = now or datetime.utcnow()
        records = records or {}
        try:
            priority = CasePriority(priority)
        except ValueError:
            raise ValidationError(f"Unknown priority {priority!r}", {"field": "priority"})

        case = CaseDB(
            id=case_id or str(uuid4()),
            created_at=now,
            updated_at=now,
            current_stage=CaseStage.INTAKE.value,
            stage_statuses=initial_stage_statuses(),
            status=CaseStatus.NEW,
            priority=priority,
            stage_started_at=now,
            last_activity={"description": "Case created", "timestamp": now.isoformat()},
            customer_data=records.get("customer"),
            vehicle_data=records.get("vehicle"),
            inspection_data=records.get("inspection"),
            quote_data=records.get("quote"),
            transaction_data=records.get("transaction"),
        )
        self.db.add(case)
        logger.info(f"Opened case {case.id}")
        return case

    def advance_to(
        self,
        case_id: str,
        target_stage: Any,
        activity: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> CaseDB:
        """
        Move a case to target_stage.

        Raises ValidationError for a stage outside 1..7 (checked before the
        lookup) and NotFoundError when the case does not exist.
        """
        target = validate_stage(target_stage)
        case = self.get_case(case_id)
        now = now or datetime.utcnow()

        config = self.get_stage_config(target)
        description = activity or config.get("activity", f"Case moved to stage {target.value}")

        if case.current_stage != target.value:
            previous = case.current_stage
            case.stage_statuses = stage_statuses_for(target)
            case.current_stage = target.value
            case.stage_started_at = now
            if case.status == CaseStatus.NEW and target > CaseStage.INTAKE:
                case.status = CaseStatus.ACTIVE
            logger.info(f"Case {case.id} moved from stage {previous} to {target.value}")

        case.last_activity = {"description": description, "timestamp": now.isoformat()}
        case.updated_at = now
        return case

    def complete_case(
        self,
        case_id: str,
        completion: Optional[Union[Completion, Mapping[str, Any]]] = None,
        now: Optional[datetime] = None,
    ) -> CaseDB:
        """
        Close a case.

        A declined offer cancels the case and leaves stage statuses as they
        are; otherwise every stage becomes complete and status is completed.
        """
        case = self.get_case(case_id)
        now = now or datetime.utcnow()

        if completion is None:
            record = Completion()
        elif isinstance(completion, Completion):
            record = completion
        else:
            record = Completion.from_dict(completion)
        case.completion = {**record.to_dict(), "completedAt": now.isoformat()}

        quote = Quote.from_dict(case.quote_data) if case.quote_data is not None else None
        if quote is not None and quote.is_declined:
            case.status = CaseStatus.CANCELLED
            description = "Case cancelled - offer declined"
        else:
            case.status = CaseStatus.COMPLETED
            case.stage_statuses = {str(stage.value): StageStatus.COMPLETE.value for stage in CaseStage}
            case.current_stage = CaseStage.COMPLETION.value
            description = "Case completed"

        case.last_activity = {"description": description, "timestamp": now.isoformat()}
        case.updated_at = now
        logger.info(f"Case {case.id} closed with status {case.status.value}")
        return case

    def is_terminal(self, case: CaseDB) -> bool:
        """Check if every stage of a case is complete."""
        statuses = case.stage_statuses or {}
        return all(statuses.get(str(stage.value)) == StageStatus.COMPLETE.value for stage in CaseStage)

    def active_stage(self, case: CaseDB) -> Optional[CaseStage]:
        """The single active stage, or None for a fully complete case."""
        for stage in CaseStage:
            if (case.stage_statuses or {}).get(str(stage.value)) == StageStatus.ACTIVE.value:
                return stage
        return None
