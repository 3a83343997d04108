from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.services.database import get_db
from app.middleware.security import Security
from app.schemas.integration import (
    CheckResponse,
    MetricOut,
    MetricsSummaryOut,
    MonitorCreate,
    MonitorOut,
    MonitorStatusOut,
    MonitorUpdate,
)
from app.services.monitor_service import MonitorService
from app.services.metrics_service import DEFAULT_TIME_RANGE, MetricsService
from app.jobs.monitor_sweep import check_monitor
from app.core.exceptions.exceptions import (
    InvalidEndpointError,
    InvalidServiceTypeError,
    MonitorNotFoundError,
)
from app.utils.log import app_logger

router = APIRouter(prefix="/integrations", tags=["Integrations"])

NON_NULLABLE_UPDATE_FIELDS = ("service_name", "is_enabled", "check_interval_minutes")


def _not_found(e: MonitorNotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)


@router.get("", response_model=List[MonitorOut])
def list_integrations(
    client_id: Optional[str] = None,
    db: Session = Depends(get_db),
) -> List[MonitorOut]:
    """List integration monitors, optionally restricted to one client."""
    return [MonitorOut.from_monitor(m) for m in MonitorService.list_monitors(db, client_id)]


@router.post("", response_model=MonitorOut, status_code=status.HTTP_201_CREATED)
def create_integration(
    payload: MonitorCreate,
    db: Session = Depends(get_db),
) -> MonitorOut:
    sec = Security()
    if not sec.is_valid_service_type(payload.service_type):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=InvalidServiceTypeError(payload.service_type).message,
        )
    if not sec.is_valid_endpoint(payload.api_endpoint):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=InvalidEndpointError(payload.api_endpoint).message,
        )

    monitor = MonitorService.create_monitor(db, payload.model_dump())
    app_logger.info("api.integrations.created", monitor_id=monitor.id, service_type=monitor.service_type)
    return MonitorOut.from_monitor(monitor)


@router.get("/{monitor_id}", response_model=MonitorOut)
def get_integration(monitor_id: int, db: Session = Depends(get_db)) -> MonitorOut:
    try:
        return MonitorOut.from_monitor(MonitorService.get_monitor(db, monitor_id))
    except MonitorNotFoundError as e:
        raise _not_found(e)


@router.put("/{monitor_id}", response_model=MonitorOut)
def update_integration(
    monitor_id: int,
    payload: MonitorUpdate,
    db: Session = Depends(get_db),
) -> MonitorOut:
    # only fields sent by the client are applied
    changes = payload.model_dump(exclude_unset=True)
    nulls = [field for field in NON_NULLABLE_UPDATE_FIELDS if field in changes and changes[field] is None]
    if nulls:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Fields cannot be null: {', '.join(nulls)}",
        )
    if "api_endpoint" in changes and not Security().is_valid_endpoint(changes["api_endpoint"]):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=InvalidEndpointError(changes["api_endpoint"]).message,
        )
    try:
        monitor = MonitorService.update_monitor(db, monitor_id, changes)
    except MonitorNotFoundError as e:
        raise _not_found(e)
    app_logger.info("api.integrations.updated", monitor_id=monitor_id, fields=sorted(changes))
    return MonitorOut.from_monitor(monitor)


@router.delete("/{monitor_id}")
def delete_integration(monitor_id: int, db: Session = Depends(get_db)) -> dict:
    try:
        MonitorService.delete_monitor(db, monitor_id)
    except MonitorNotFoundError as e:
        raise _not_found(e)
    app_logger.info("api.integrations.deleted", monitor_id=monitor_id)
    return {"success": True}


@router.get("/{monitor_id}/status", response_model=MonitorStatusOut)
def integration_status(monitor_id: int, db: Session = Depends(get_db)) -> MonitorStatusOut:
    """Current status plus the last 10 stored checks."""
    try:
        monitor = MonitorService.get_monitor(db, monitor_id)
    except MonitorNotFoundError as e:
        raise _not_found(e)
    recent = MonitorService.recent_metrics(db, monitor_id, limit=10)
    return MonitorStatusOut(
        monitor=MonitorOut.from_monitor(monitor),
        recent_metrics=[MetricOut.model_validate(m) for m in recent],
    )


@router.get("/{monitor_id}/metrics", response_model=MetricsSummaryOut)
def integration_metrics(
    monitor_id: int,
    time_range: str = Query(default=DEFAULT_TIME_RANGE, description="One of 1h, 6h, 24h, 7d, 30d"),
    db: Session = Depends(get_db),
) -> MetricsSummaryOut:
    try:
        MonitorService.get_monitor(db, monitor_id)
    except MonitorNotFoundError as e:
        raise _not_found(e)

    summary = MetricsService.metrics_for_range(db, monitor_id, time_range)
    return MetricsSummaryOut(
        time_range=summary["time_range"],
        total_checks=summary["total_checks"],
        uptime_percentage=summary["uptime_percentage"],
        avg_response_time=summary["avg_response_time"],
        metrics=[MetricOut.model_validate(m) for m in summary["metrics"]],
    )


@router.post("/{monitor_id}/check", response_model=CheckResponse)
def check_integration_now(monitor_id: int) -> CheckResponse:
    """Probe the integration immediately and store the result.

    Runs in FastAPI's worker threadpool; the probe itself is bounded by the
    family timeout (10s, or 15s for Workato).
    """
    try:
        outcome = check_monitor(monitor_id)
    except MonitorNotFoundError as e:
        raise _not_found(e)
    except Exception as e:
        app_logger.error("api.integrations.check_error", monitor_id=monitor_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to check integration. Please try again later.",
        )
    return CheckResponse(
        monitor_id=monitor_id,
        checked_at=outcome["checked_at"],
        result=outcome["result"],
        status_changed=outcome["status_change"] is not None,
    )
