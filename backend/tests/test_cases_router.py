"""
Cases API Tests

Tests verify:
1. Case creation and lookup
2. Stage transitions map errors to 400/404
3. Stage time endpoint is always 200
4. Risk and document preview endpoints
"""

import asyncio
import inspect
import pytest
from unittest.mock import MagicMock

from fastapi.testclient import TestClient

from app.database import get_db
from app.main import app
from app.routers.cases import advance_stage, complete_case, get_assembler, get_tracker, get_workflow
from app.services.delivery import DeliveryResult
from app.services.documents import DocumentAssembler
from app.services.workflow import CaseWorkflow, StageTimeTracker


@pytest.fixture
def delivery():
    service = MagicMock()
    service.publish.return_value = DeliveryResult(success=True, pdf_url="http://testserver/uploads/pdfs/p.pdf")
    return service


@pytest.fixture
def client(session_factory, settings, delivery):
    tracker = StageTimeTracker(session_factory=session_factory)
    assembler = DocumentAssembler(settings=settings)

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    def override_get_workflow():
        db = session_factory()
        try:
            yield CaseWorkflow(db, tracker=tracker, assembler=assembler, delivery=delivery)
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_tracker] = lambda: tracker
    app.dependency_overrides[get_assembler] = lambda: assembler
    app.dependency_overrides[get_workflow] = override_get_workflow
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def created_case(client, full_case):
    body = {key: full_case[key] for key in ("customer", "vehicle", "inspection", "quote", "transaction")}
    response = client.post("/cases", json={"case_id": "case-001", **body})
    assert response.status_code == 201
    return response.json()


# =============================================================================
# CASES
# =============================================================================

class TestCaseEndpoints:
    """Create, read, advance, complete."""

    def test_health(self, client):
        assert client.get("/health").json()["status"] == "healthy"

    def test_create_case(self, created_case):
        assert created_case["case_id"] == "case-001"
        assert created_case["status"] == "new"
        assert created_case["current_stage"] == 1
        assert created_case["stage_label"] == "Intake"
        assert created_case["stage_statuses"]["1"] == "active"

    def test_create_rejects_malformed_snapshot(self, client):
        response = client.post("/cases", json={"vehicle": {"loanAmount": "lots"}})
        assert response.status_code == 400
        assert response.json()["detail"]["error_type"] == "VALIDATION_ERROR"

    def test_get_missing_case(self, client):
        assert client.get("/cases/nope").status_code == 404

    def test_advance(self, client, created_case):
        response = client.post("/cases/case-001/stage", json={"target_stage": 3})

        assert response.status_code == 200
        body = response.json()
        assert body["current_stage"] == 3
        assert body["status"] == "active"
        assert body["stage_statuses"]["2"] == "complete"

    @pytest.mark.parametrize("target", [0, 8, "3", True])
    def test_advance_invalid_stage(self, client, created_case, target):
        response = client.post("/cases/case-001/stage", json={"target_stage": target})
        assert response.status_code == 400

    def test_advance_missing_case(self, client):
        assert client.post("/cases/nope/stage", json={"target_stage": 2}).status_code == 404

    def test_complete(self, client, created_case):
        response = client.post("/cases/case-001/complete", json={"acting_user": {"id": "user-1"}})

        assert response.status_code == 200
        body = response.json()
        assert body["case"]["status"] == "completed"
        assert body["case"]["pdf_case_file"] == "http://testserver/uploads/pdfs/p.pdf"
        assert body["delivery"]["success"] is True

    def test_complete_publishes_off_the_event_loop(self, client, created_case, delivery):
        """Rendering and the webhook call block; they must run in the threadpool."""
        loops = []

        def publish(*args, **kwargs):
            try:
                loops.append(asyncio.get_running_loop())
            except RuntimeError:
                loops.append(None)
            return DeliveryResult(success=True, pdf_url="http://testserver/uploads/pdfs/p.pdf")

        delivery.publish.side_effect = publish
        response = client.post("/cases/case-001/complete", json={})

        assert response.status_code == 200
        assert loops == [None]

    @pytest.mark.parametrize("handler", [advance_stage, complete_case])
    def test_blocking_handlers_are_sync(self, handler):
        assert not inspect.iscoroutinefunction(handler)


# =============================================================================
# TIME TRACKING
# =============================================================================

class TestTimeTrackingEndpoints:
    """Stage time recording and analytics."""

    def test_record_and_read(self, client):
        response = client.post("/stage-time", json={
            "case_id": "case-001",
            "stage_name": "inspection",
            "start_time": "2024-03-05T10:00:00Z",
            "end_time": "2024-03-05T10:30:00Z",
        })
        assert response.status_code == 200
        assert response.json()["success"] is True

        record = client.get("/cases/case-001/time-tracking").json()
        assert record["stageTimes"]["inspection"]["totalTime"] == 1_800_000

    def test_rejected_time_is_still_200(self, client):
        response = client.post("/stage-time", json={
            "case_id": "case-001",
            "stage_name": "inspection",
            "start_time": "2024-03-05T10:30:00Z",
            "end_time": "2024-03-05T10:00:00Z",
        })
        assert response.status_code == 200
        assert response.json() == {"success": False, "time_tracking": None}

    def test_missing_tracking_is_404(self, client):
        assert client.get("/cases/nope/time-tracking").status_code == 404

    def test_analytics(self, client):
        client.post("/stage-time", json={
            "case_id": "case-001", "stage_name": "intake", "extra_fields": {"totalTime": 4000},
        })
        body = client.get("/time-tracking/analytics").json()

        assert body["totalCases"] == 1
        assert body["stageAverages"]["intake"] == 4000


# =============================================================================
# RISK AND DOCUMENTS
# =============================================================================

class TestPreviewEndpoints:
    """Risk assessment and structured documents."""

    def test_risk(self, client, created_case):
        body = client.get("/cases/case-001/risk").json()
        assert body == {"score": 0, "level": "LOW", "factors": []}

    def test_document_preview(self, client, created_case):
        response = client.get("/cases/case-001/documents/QUOTE_SUMMARY_ANALYTIC")

        assert response.status_code == 200
        body = response.json()
        assert body["kind"] == "QUOTE_SUMMARY_ANALYTIC"
        assert body["sections"][2]["title"] == "MARKET VALUE ANALYSIS"

    def test_unknown_document_kind(self, client, created_case):
        assert client.get("/cases/case-001/documents/INVOICE").status_code == 400
