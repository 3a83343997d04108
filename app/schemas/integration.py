from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field

from app.schemas.health import ProbeResult, ServiceType


class MonitorCreate(BaseModel):
    client_id: str = Field(..., min_length=1, max_length=255)
    # kept as str so an unsupported type is reported as a 400, not a 422
    service_type: str
    service_name: str = Field(..., min_length=1, max_length=255)
    api_endpoint: Optional[str] = None
    credentials: Optional[Dict[str, Any]] = None
    workato_recipe_ids: Optional[List[str]] = None
    is_enabled: bool = True
    check_interval_minutes: int = Field(default=5, ge=1, le=1440)


class MonitorUpdate(BaseModel):
    service_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    api_endpoint: Optional[str] = None
    credentials: Optional[Dict[str, Any]] = None
    workato_recipe_ids: Optional[List[str]] = None
    is_enabled: Optional[bool] = None
    check_interval_minutes: Optional[int] = Field(default=None, ge=1, le=1440)


class MonitorOut(BaseModel):
    """Monitor as returned by the API; credentials are never echoed back."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    client_id: str
    service_type: ServiceType
    service_name: str
    api_endpoint: Optional[str]
    workato_recipe_ids: Optional[List[str]]
    has_credentials: bool = False
    is_enabled: bool
    check_interval_minutes: int
    last_checked_at: Optional[datetime]
    current_status: str
    last_error_message: Optional[str]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_monitor(cls, monitor) -> "MonitorOut":
        out = cls.model_validate(monitor)
        return out.model_copy(update={"has_credentials": bool(monitor.credentials)})


class MetricOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    monitor_id: int
    status: str
    response_time_ms: Optional[int]
    error_message: Optional[str]
    recipe_statuses: Optional[List[Dict[str, Any]]]
    checked_at: datetime


class MonitorStatusOut(BaseModel):
    monitor: MonitorOut
    recent_metrics: List[MetricOut]


class MetricsSummaryOut(BaseModel):
    time_range: str
    total_checks: int
    uptime_percentage: float
    avg_response_time: int
    metrics: List[MetricOut]


class CheckResponse(BaseModel):
    monitor_id: int
    checked_at: datetime
    result: ProbeResult
    status_changed: bool
