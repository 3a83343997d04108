from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ServiceType(str, Enum):
    HIBOB = "hibob"
    KEYPAY = "keypay"
    WORKATO = "workato"


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    DOWN = "down"
    UNKNOWN = "unknown"


class RunningStatus(str, Enum):
    RUNNING = "running"
    STOPPED = "stopped"


class RecipeStatus(BaseModel):
    """Running state of one requested Workato recipe."""
    model_config = ConfigDict(frozen=True)

    recipe_id: str
    running_status: RunningStatus
    last_run_at: Optional[str] = None


class ProbeResult(BaseModel):
    """Outcome of a single health probe.

    - `response_time_ms` is None only for UNKNOWN (no request was sent).
    - `error_message` is None only for HEALTHY.
    - `recipe_statuses` is only set by Workato probes that matched a requested recipe.
    """
    model_config = ConfigDict(frozen=True)

    status: HealthStatus
    response_time_ms: Optional[int] = Field(default=None, ge=0)
    error_message: Optional[str] = None
    recipe_statuses: Optional[List[RecipeStatus]] = None

    @classmethod
    def unknown(cls, message: str) -> "ProbeResult":
        return cls(status=HealthStatus.UNKNOWN, response_time_ms=None, error_message=message)

    @classmethod
    def healthy(cls, response_time_ms: int, recipe_statuses: Optional[List[RecipeStatus]] = None) -> "ProbeResult":
        return cls(
            status=HealthStatus.HEALTHY,
            response_time_ms=response_time_ms,
            error_message=None,
            recipe_statuses=recipe_statuses or None,
        )

    @classmethod
    def degraded(cls, response_time_ms: int, message: str, recipe_statuses: Optional[List[RecipeStatus]] = None) -> "ProbeResult":
        return cls(
            status=HealthStatus.DEGRADED,
            response_time_ms=response_time_ms,
            error_message=message,
            recipe_statuses=recipe_statuses or None,
        )

    @classmethod
    def down(cls, response_time_ms: int, message: str) -> "ProbeResult":
        return cls(status=HealthStatus.DOWN, response_time_ms=response_time_ms, error_message=message)
