from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional
from sqlmodel import select
from sqlalchemy.orm import Session

from app.models.integration_monitor import IntegrationMonitor
from app.models.integration_metric import IntegrationMetric
from app.schemas.health import ProbeResult
from app.core.exceptions.exceptions import MonitorNotFoundError


class MonitorService:
    """Service encapsulating DB access for integration monitors and their metrics.

    Keeps ORM access out of the controllers and the sweep job. Deleted
    monitors are soft-deleted (`deleted_at` set) and hidden from every query.
    """

    @staticmethod
    def create_monitor(db: Session, data: Dict[str, Any]) -> IntegrationMonitor:
        monitor = IntegrationMonitor(
            client_id=data["client_id"],
            service_type=data["service_type"],
            service_name=data["service_name"],
            api_endpoint=data.get("api_endpoint") or None,
            credentials=data.get("credentials") or None,
            workato_recipe_ids=data.get("workato_recipe_ids") or None,
            is_enabled=data.get("is_enabled") is not False,
            check_interval_minutes=data.get("check_interval_minutes") or 5,
            current_status="unknown",
        )
        db.add(monitor)
        db.commit()
        db.refresh(monitor)
        return monitor

    @staticmethod
    def list_monitors(db: Session, client_id: Optional[str] = None) -> List[IntegrationMonitor]:
        """List non-deleted monitors, newest first, optionally for one client."""
        stmt = select(IntegrationMonitor).where(IntegrationMonitor.deleted_at.is_(None))
        if client_id:
            stmt = stmt.where(IntegrationMonitor.client_id == client_id)
        stmt = stmt.order_by(IntegrationMonitor.created_at.desc(), IntegrationMonitor.id.desc())
        return db.execute(stmt).scalars().all()

    @staticmethod
    def get_monitor(db: Session, monitor_id: int) -> IntegrationMonitor:
        stmt = select(IntegrationMonitor).where(
            IntegrationMonitor.id == monitor_id,
            IntegrationMonitor.deleted_at.is_(None),
        )
        monitor = db.execute(stmt).scalars().one_or_none()
        if monitor is None:
            raise MonitorNotFoundError(monitor_id)
        return monitor

    @staticmethod
    def update_monitor(db: Session, monitor_id: int, changes: Dict[str, Any]) -> IntegrationMonitor:
        """Apply a partial update; only keys present in `changes` are written."""
        monitor = MonitorService.get_monitor(db, monitor_id)
        for field, value in changes.items():
            setattr(monitor, field, value)
        monitor.updated_at = datetime.now()
        db.add(monitor)
        db.commit()
        db.refresh(monitor)
        return monitor

    @staticmethod
    def delete_monitor(db: Session, monitor_id: int) -> None:
        monitor = MonitorService.get_monitor(db, monitor_id)
        monitor.deleted_at = datetime.now()
        db.add(monitor)
        db.commit()

    @staticmethod
    def list_due_monitors(db: Session, now: Optional[datetime] = None, force: bool = False) -> List[IntegrationMonitor]:
        """Enabled monitors never checked or whose check interval has elapsed."""
        now = now or datetime.now()
        stmt = select(IntegrationMonitor).where(
            IntegrationMonitor.deleted_at.is_(None),
            IntegrationMonitor.is_enabled.is_(True),
        )
        monitors = db.execute(stmt).scalars().all()
        if force:
            return monitors
        return [
            m for m in monitors
            if m.last_checked_at is None
            or m.last_checked_at + timedelta(minutes=m.check_interval_minutes) <= now
        ]

    @staticmethod
    def record_result(
        db: Session, monitor: IntegrationMonitor, result: ProbeResult, checked_at: Optional[datetime] = None
    ) -> IntegrationMetric:
        """Persist a probe result as a metric row and refresh the monitor's current status."""
        checked_at = checked_at or datetime.now()
        metric = IntegrationMetric(
            monitor_id=monitor.id,
            status=result.status.value,
            response_time_ms=result.response_time_ms,
            error_message=result.error_message,
            recipe_statuses=(
                [r.model_dump(mode="json") for r in result.recipe_statuses]
                if result.recipe_statuses else None
            ),
            checked_at=checked_at,
        )
        monitor.current_status = result.status.value
        monitor.last_error_message = result.error_message
        monitor.last_checked_at = checked_at
        db.add(metric)
        db.add(monitor)
        db.commit()
        db.refresh(metric)
        return metric

    @staticmethod
    def recent_metrics(db: Session, monitor_id: int, limit: int = 10) -> List[IntegrationMetric]:
        stmt = (
            select(IntegrationMetric)
            .where(IntegrationMetric.monitor_id == monitor_id)
            .order_by(IntegrationMetric.checked_at.desc(), IntegrationMetric.id.desc())
            .limit(limit)
        )
        return db.execute(stmt).scalars().all()

    @staticmethod
    def metrics_since(db: Session, monitor_id: int, since: datetime) -> List[IntegrationMetric]:
        stmt = (
            select(IntegrationMetric)
            .where(
                IntegrationMetric.monitor_id == monitor_id,
                IntegrationMetric.checked_at >= since,
            )
            .order_by(IntegrationMetric.checked_at.desc(), IntegrationMetric.id.desc())
        )
        return db.execute(stmt).scalars().all()
