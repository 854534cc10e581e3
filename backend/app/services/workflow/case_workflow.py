"""
Case Workflow

Couples the state machine to its side effects:
- a stage transition closes the previous stage's time entry
- completion generates and publishes the complete case package

State changes are committed before any side effect runs, so a tracker or
delivery failure never rolls back a transition.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Mapping, Optional, Union

from ...errors import CaseEngineError
from ...models.case_models import ActingUser, CaseStage, Completion
from ...models.db_models import CaseDB
from ...models.document_model import DocumentKind
from ..delivery.delivery_service import DeliveryResult, DocumentDeliveryService
from ..documents.document_assembler import DocumentAssembler
from .state_machine import CaseStateMachine, validate_stage
from .time_tracker import StageTimeTracker

logger = logging.getLogger(__name__)


@dataclass
class TransitionResult:
    case: CaseDB
    previous_stage: int
    stage_changed: bool
    time_tracking: Optional[Dict[str, Any]] = None


@dataclass
class CompletionResult:
    case: CaseDB
    delivery: DeliveryResult
    time_tracking: Optional[Dict[str, Any]] = None


class CaseWorkflow:
    """
    Drives cases through their stages.

    Usage:
        workflow = CaseWorkflow(db)
        workflow.advance(case_id, 3)
        workflow.complete(case_id, acting_user)
    """

    def __init__(
        self,
        db_session,
        tracker: Optional[StageTimeTracker] = None,
        assembler: Optional[DocumentAssembler] = None,
        delivery: Optional[DocumentDeliveryService] = None,
    ):
        self.db = db_session
        self.state_machine = CaseStateMachine(db_session)
        self.tracker = tracker or StageTimeTracker()
        self.assembler = assembler or DocumentAssembler()
        self.delivery = delivery or DocumentDeliveryService()

    def advance(
        self,
        case_id: str,
        target_stage: Any,
        activity: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> TransitionResult:
        """
        Move a case to target_stage and record time for the stage it leaves.

        Raises ValidationError / NotFoundError from the state machine.
        """
        validate_stage(target_stage)
        now = now or datetime.utcnow()
        case = self.state_machine.get_case(case_id)
        previous_stage = case.current_stage
        started_at = case.stage_started_at

        case = self.state_machine.advance_to(case_id, target_stage, activity=activity, now=now)
        self.db.commit()

        stage_changed = case.current_stage != previous_stage
        time_tracking = None
        if stage_changed:
            time_tracking = self._close_stage(case_id, previous_stage, started_at, now)

        return TransitionResult(
            case=case,
            previous_stage=previous_stage,
            stage_changed=stage_changed,
            time_tracking=time_tracking,
        )

    def complete(
        self,
        case_id: str,
        acting_user: Optional[Union[ActingUser, Mapping[str, Any]]] = None,
        completion: Optional[Union[Completion, Mapping[str, Any]]] = None,
        now: Optional[datetime] = None,
    ) -> CompletionResult:
        """
        Close a case, then generate and publish its complete package.

        Publishing is best effort; its outcome is reported in
        CompletionResult.delivery.
        """
        now = now or datetime.utcnow()
        case = self.state_machine.get_case(case_id)
        previous_stage = case.current_stage
        started_at = case.stage_started_at

        case = self.state_machine.complete_case(case_id, completion=completion, now=now)
        self.db.commit()

        time_tracking = self._close_stage(case_id, previous_stage, started_at, now)

        try:
            document = self.assembler.assemble(
                DocumentKind.COMPLETE_PACKAGE, case.to_aggregate_dict(), generated_at=now
            )
        except CaseEngineError as e:
            logger.warning(f"Could not assemble package for case {case_id}: {e.message}")
            return CompletionResult(
                case=case,
                delivery=DeliveryResult(success=False, error=e.message),
                time_tracking=time_tracking,
            )

        delivery = self.delivery.publish(case.to_aggregate_dict(), acting_user, document)
        if delivery.success and delivery.pdf_url:
            case.pdf_case_file = delivery.pdf_url
            case.completion = {**(case.completion or {}), "pdfGenerated": True}
            self.db.commit()
            logger.info(f"Case {case_id} package stored at {delivery.pdf_url}")

        return CompletionResult(case=case, delivery=delivery, time_tracking=time_tracking)

    def _close_stage(
        self,
        case_id: str,
        stage_number: int,
        started_at: Optional[datetime],
        now: datetime,
    ) -> Optional[Dict[str, Any]]:
        try:
            stage = CaseStage(stage_number)
        except ValueError:
            logger.warning(f"Case {case_id} has invalid stage {stage_number}; time not recorded")
            return None
        return self.tracker.record_stage_time(
            case_id,
            stage.time_key,
            started_at or now,
            now,
            now=now,
        )
