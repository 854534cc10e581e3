"""
Case Engine - Cases API Router

Case creation, stage transitions, completion, stage time tracking,
risk assessment and structured document previews.
"""
from __future__ import annotations
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..database import get_db
from ..errors import CaseEngineError, NotFoundError
from ..models.case_models import CaseAggregate, CaseStage
from ..services.documents.document_assembler import DocumentAssembler
from ..services.risk.risk_scorer import RiskScorer
from ..services.workflow.case_workflow import CaseWorkflow
from ..services.workflow.state_machine import CaseStateMachine, STAGE_CONFIG
from ..services.workflow.time_tracker import StageTimeTracker

logger = logging.getLogger(__name__)

router = APIRouter(tags=["cases"])


# =============================================================================
# PYDANTIC MODELS FOR API
# =============================================================================

class CreateCaseRequest(BaseModel):
    case_id: Optional[str] = None
    priority: str = "medium"
    customer: Optional[Dict[str, Any]] = None
    vehicle: Optional[Dict[str, Any]] = None
    inspection: Optional[Dict[str, Any]] = None
    quote: Optional[Dict[str, Any]] = None
    transaction: Optional[Dict[str, Any]] = None


class AdvanceStageRequest(BaseModel):
    target_stage: Any
    activity: Optional[str] = None


class CompleteCaseRequest(BaseModel):
    acting_user: Optional[Dict[str, Any]] = None
    completion: Optional[Dict[str, Any]] = None


class StageTimeRequest(BaseModel):
    case_id: str
    stage_name: str
    start_time: Optional[Any] = None
    end_time: Optional[Any] = None
    extra_fields: Optional[Dict[str, Any]] = None


class CaseResponse(BaseModel):
    case_id: str
    status: str
    priority: str
    current_stage: int
    stage_label: str
    stage_statuses: Dict[str, str]
    created_at: Optional[datetime] = None
    last_activity: Optional[Dict[str, Any]] = None
    completion: Optional[Dict[str, Any]] = None
    pdf_case_file: Optional[str] = None


class StageTimeResponse(BaseModel):
    success: bool
    time_tracking: Optional[Dict[str, Any]] = None


# =============================================================================
# DEPENDENCIES
# =============================================================================

def get_tracker() -> StageTimeTracker:
    return StageTimeTracker()


def get_assembler() -> DocumentAssembler:
    return DocumentAssembler()


def get_workflow(
    db: Session = Depends(get_db),
    tracker: StageTimeTracker = Depends(get_tracker),
    assembler: DocumentAssembler = Depends(get_assembler),
) -> CaseWorkflow:
    return CaseWorkflow(db, tracker=tracker, assembler=assembler)


def _raise_http(e: CaseEngineError):
    status_code = 404 if isinstance(e, NotFoundError) else 400
    raise HTTPException(status_code=status_code, detail=e.to_dict())


def _case_response(case) -> CaseResponse:
    stage_label = STAGE_CONFIG.get(CaseStage(case.current_stage), {}).get("label", "")
    return CaseResponse(
        case_id=case.id,
        status=case.status.value,
        priority=case.priority.value,
        current_stage=case.current_stage,
        stage_label=stage_label,
        stage_statuses=dict(case.stage_statuses or {}),
        created_at=case.created_at,
        last_activity=case.last_activity,
        completion=case.completion,
        pdf_case_file=case.pdf_case_file,
    )


# =============================================================================
# CASES
# =============================================================================

@router.post("/cases", response_model=CaseResponse, status_code=201)
async def create_case(request: CreateCaseRequest, db: Session = Depends(get_db)):
    """Open a case from a snapshot of its records."""
    machine = CaseStateMachine(db)
    records = request.model_dump(include={"customer", "vehicle", "inspection", "quote", "transaction"})
    try:
        # Reject snapshots the document layer could not read
        CaseAggregate.from_dict(records)
        case = machine.open_case(records=records, case_id=request.case_id, priority=request.priority)
        db.commit()
    except CaseEngineError as e:
        db.rollback()
        _raise_http(e)
    return _case_response(case)


@router.get("/cases/{case_id}", response_model=CaseResponse)
async def get_case(case_id: str, db: Session = Depends(get_db)):
    """Get case state."""
    try:
        case = CaseStateMachine(db).get_case(case_id)
    except CaseEngineError as e:
        _raise_http(e)
    return _case_response(case)


@router.post("/cases/{case_id}/stage", response_model=CaseResponse)
def advance_stage(
    case_id: str,
    request: AdvanceStageRequest,
    workflow: CaseWorkflow = Depends(get_workflow),
):
    """Move a case to a stage (1-7). Records time for the stage being closed."""
    try:
        result = workflow.advance(case_id, request.target_stage, activity=request.activity)
    except CaseEngineError as e:
        _raise_http(e)
    return _case_response(result.case)


@router.post("/cases/{case_id}/complete")
def complete_case(
    case_id: str,
    request: CompleteCaseRequest,
    workflow: CaseWorkflow = Depends(get_workflow),
):
    """
    Complete a case and publish its package.

    The case is closed even when publishing fails; the delivery outcome is
    returned alongside the case.
    """
    try:
        result = workflow.complete(case_id, request.acting_user, completion=request.completion)
    except CaseEngineError as e:
        _raise_http(e)
    return {
        "case": _case_response(result.case).model_dump(mode="json"),
        "delivery": result.delivery.to_dict(),
    }


@router.get("/cases/{case_id}/risk")
async def get_case_risk(case_id: str, db: Session = Depends(get_db)):
    """Risk assessment for the case's current snapshot."""
    try:
        case = CaseStateMachine(db).get_case(case_id)
        aggregate = CaseAggregate.from_dict(case.to_aggregate_dict())
    except CaseEngineError as e:
        _raise_http(e)
    return RiskScorer().assess_case(aggregate).to_dict()


@router.get("/cases/{case_id}/documents/{kind}")
async def get_case_document(
    case_id: str,
    kind: str,
    db: Session = Depends(get_db),
    assembler: DocumentAssembler = Depends(get_assembler),
):
    """Structured document model (JSON) for one document variant."""
    try:
        case = CaseStateMachine(db).get_case(case_id)
        document = assembler.assemble(kind, case.to_aggregate_dict())
    except CaseEngineError as e:
        _raise_http(e)
    return document.to_dict()


# =============================================================================
# TIME TRACKING
# =============================================================================

@router.post("/stage-time", response_model=StageTimeResponse)
async def record_stage_time(request: StageTimeRequest, tracker: StageTimeTracker = Depends(get_tracker)):
    """
    Record one stage's time. Always 200: a rejected or lost update is
    reported as success=false.
    """
    record = tracker.record_stage_time(
        request.case_id,
        request.stage_name,
        request.start_time,
        request.end_time,
        extra_fields=request.extra_fields,
    )
    return StageTimeResponse(success=record is not None, time_tracking=record)


@router.get("/cases/{case_id}/time-tracking")
async def get_time_tracking(case_id: str, tracker: StageTimeTracker = Depends(get_tracker)):
    """Stored stage times for a case."""
    try:
        return tracker.get_time_tracking(case_id)
    except CaseEngineError as e:
        _raise_http(e)


@router.get("/time-tracking/analytics")
async def get_time_tracking_analytics(tracker: StageTimeTracker = Depends(get_tracker)):
    """Average time per stage across all tracked cases."""
    return tracker.stage_averages()
