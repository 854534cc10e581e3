"""
Stage Time Tracker

Per-case, per-stage elapsed time with a reconciled case total.

Recording a stage again REPLACES that stage's figure; the case total is
recomputed as total - old_stage_total + new_stage_total, so it always equals
the sum of the latest per-stage totals (corrections, out-of-order webhooks
and manual overrides never double count).

The read-recompute-write runs in its own session and is version-checked:
a concurrent writer makes the flush raise StaleDataError (or IntegrityError
on a racing first insert), and the whole sequence is retried.

Recording is best-effort: it never raises into the caller's workflow.
"""
import logging
import math
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional
from uuid import uuid4

from dateutil import parser as date_parser
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from ...database import SessionLocal
from ...errors import NotFoundError, ValidationError
from ...models.case_models import CaseStage
from ...models.db_models import TimeTrackingDB

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3

# total_time is a signed 64-bit column
MAX_TOTAL_TIME_MS = 2 ** 63 - 1


def _parse_time(value: Any, name: str) -> Optional[datetime]:
    """datetime, ISO-8601 string or epoch milliseconds -> aware UTC datetime."""
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            parsed = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OSError, OverflowError, ValueError):
            raise ValidationError(f"{name} is out of range: {value!r}", {"field": name})
    elif isinstance(value, str):
        try:
            parsed = date_parser.parse(value)
        except (ValueError, OverflowError):
            raise ValidationError(f"{name} is not a valid timestamp: {value!r}", {"field": name})
    else:
        raise ValidationError(f"{name} must be a timestamp", {"field": name})
    if parsed.tzinfo is None:
        # Naive timestamps are UTC throughout the application
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _json_safe(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def compute_stage_total(
    start_time: Optional[datetime],
    end_time: Optional[datetime],
    extra_fields: Mapping[str, Any],
) -> int:
    """
    Milliseconds to record for a stage.

    An explicit extra_fields["totalTime"] (anything but None, including 0)
    overrides the wall-clock difference.
    """
    override = extra_fields.get("totalTime")
    if override is not None:
        if isinstance(override, bool) or not isinstance(override, (int, float)):
            raise ValidationError(f"totalTime must be a number, got {override!r}", {"field": "totalTime"})
        if isinstance(override, float) and not math.isfinite(override):
            raise ValidationError(f"totalTime must be finite, got {override!r}", {"field": "totalTime"})
        total = int(round(override))
    else:
        if start_time is None or end_time is None:
            raise ValidationError(
                "startTime and endTime are required when totalTime is not given",
                {"field": "startTime"},
            )
        total = int(round((end_time - start_time).total_seconds() * 1000))
    if total < 0:
        raise ValidationError(f"Stage time cannot be negative ({total} ms)", {"field": "totalTime"})
    if total > MAX_TOTAL_TIME_MS:
        raise ValidationError(f"Stage time is out of range ({total} ms)", {"field": "totalTime"})
    return total


class StageTimeTracker:
    """
    Records stage durations for cases.

    Args:
        session_factory: callable returning a new SQLAlchemy session
        max_attempts: compare-and-swap attempts before giving up
    """

    def __init__(self, session_factory=SessionLocal, max_attempts: int = DEFAULT_MAX_ATTEMPTS):
        self.session_factory = session_factory
        self.max_attempts = max_attempts

    def record_stage_time(
        self,
        case_id: str,
        stage_name: str,
        start_time: Any,
        end_time: Any,
        extra_fields: Optional[Mapping[str, Any]] = None,
        now: Optional[datetime] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Record (or re-record) one stage's time for a case.

        Returns the stored TimeTracking record as a dict, or None when the
        update could not be applied. Never raises.
        """
        try:
            return self._record(case_id, stage_name, start_time, end_time, extra_fields or {}, now)
        except ValidationError as e:
            logger.warning(f"Stage time for case {case_id} ignored: {e.message}")
            return None
        except SQLAlchemyError as e:
            logger.error(f"Failed to record {stage_name} time for case {case_id}: {e}")
            return None

    def _record(
        self,
        case_id: str,
        stage_name: str,
        start_time: Any,
        end_time: Any,
        extra_fields: Mapping[str, Any],
        now: Optional[datetime],
    ) -> Optional[Dict[str, Any]]:
        if not case_id:
            raise ValidationError("case_id is required", {"field": "caseId"})
        if CaseStage.from_time_key(stage_name) is None:
            raise ValidationError(f"Unknown stage name {stage_name!r}", {"field": "stageName"})

        start = _parse_time(start_time, "startTime")
        end = _parse_time(end_time, "endTime")
        new_total = compute_stage_total(start, end, extra_fields)

        entry = {
            "startTime": start.isoformat() if start else None,
            "endTime": end.isoformat() if end else None,
            **{key: _json_safe(value) for key, value in extra_fields.items()},
            "totalTime": new_total,
        }

        for attempt in range(1, self.max_attempts + 1):
            session = self.session_factory()
            try:
                record = session.query(TimeTrackingDB).filter(TimeTrackingDB.case_id == case_id).first()
                updated_at = now or datetime.utcnow()

                if record is None:
                    record = TimeTrackingDB(
                        id=str(uuid4()),
                        case_id=case_id,
                        stage_times={stage_name: entry},
                        total_time=new_total,
                        last_updated=updated_at,
                    )
                    session.add(record)
                else:
                    stage_times = dict(record.stage_times or {})
                    old_stage_total = (stage_times.get(stage_name) or {}).get("totalTime") or 0
                    record.total_time = (record.total_time or 0) - old_stage_total + new_total
                    if record.total_time > MAX_TOTAL_TIME_MS:
                        raise ValidationError(
                            f"Total time for case {case_id} is out of range", {"field": "totalTime"}
                        )
                    stage_times[stage_name] = entry
                    record.stage_times = stage_times
                    record.last_updated = updated_at

                session.commit()
                result = record.to_dict()
                logger.info(
                    f"Recorded {stage_name}={new_total}ms for case {case_id} "
                    f"(total {result['totalTime']}ms)"
                )
                return result
            except (StaleDataError, IntegrityError) as e:
                session.rollback()
                logger.warning(
                    f"Concurrent time update for case {case_id} "
                    f"(attempt {attempt}/{self.max_attempts}): {e.__class__.__name__}"
                )
            finally:
                session.close()

        logger.error(f"Gave up recording {stage_name} time for case {case_id} after {self.max_attempts} attempts")
        return None

    def get_time_tracking(self, case_id: str) -> Dict[str, Any]:
        """Stored record for a case, or NotFoundError."""
        session = self.session_factory()
        try:
            record = session.query(TimeTrackingDB).filter(TimeTrackingDB.case_id == case_id).first()
            if record is None:
                raise NotFoundError(f"No time tracking for case {case_id}", {"case_id": case_id})
            return record.to_dict()
        finally:
            session.close()

    def stage_averages(self) -> Dict[str, Any]:
        """
        Mean recorded time per stage across all cases.

        Only records with a positive figure for a stage count towards
        that stage's mean.
        """
        session = self.session_factory()
        try:
            records = session.query(TimeTrackingDB).all()
            averages = {}
            for stage in CaseStage:
                values = [
                    (r.stage_times or {}).get(stage.time_key, {}).get("totalTime") or 0
                    for r in records
                ]
                values = [v for v in values if v > 0]
                averages[stage.time_key] = round(sum(values) / len(values)) if values else 0
            return {"stageAverages": averages, "totalCases": len(records)}
        finally:
            session.close()
