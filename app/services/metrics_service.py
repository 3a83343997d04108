from datetime import datetime, timedelta
from typing import Dict, Iterable, Optional, Tuple

from sqlalchemy.orm import Session

from app.models.integration_metric import IntegrationMetric
from app.schemas.health import HealthStatus
from app.services.monitor_service import MonitorService


DEFAULT_TIME_RANGE = "24h"

TIME_RANGES: Dict[str, timedelta] = {
    "1h": timedelta(hours=1),
    "6h": timedelta(hours=6),
    "24h": timedelta(hours=24),
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
}


def resolve_time_range(time_range: Optional[str], now: Optional[datetime] = None) -> Tuple[str, datetime]:
    """Return the effective range label and window start; unknown labels fall back to 24h."""
    now = now or datetime.now()
    label = time_range if time_range in TIME_RANGES else DEFAULT_TIME_RANGE
    return label, now - TIME_RANGES[label]


def summarize(metrics: Iterable[IntegrationMetric]) -> Dict[str, float]:
    """Uptime percentage and mean response time over a set of stored results.

    Checks without a response time (status unknown) count towards uptime
    but not towards the average.
    """
    metrics = list(metrics)
    total = len(metrics)
    healthy = sum(1 for m in metrics if m.status == HealthStatus.HEALTHY.value)
    uptime = (healthy / total) * 100 if total else 0.0

    timings = [m.response_time_ms for m in metrics if m.response_time_ms is not None]
    avg = sum(timings) / len(timings) if timings else 0

    return {
        "total_checks": total,
        "uptime_percentage": round(uptime, 2),
        "avg_response_time": int(round(avg)),
    }


class MetricsService:

    @staticmethod
    def metrics_for_range(db: Session, monitor_id: int, time_range: Optional[str], now: Optional[datetime] = None) -> Dict:
        label, since = resolve_time_range(time_range, now)
        metrics = MonitorService.metrics_since(db, monitor_id, since)
        return {"time_range": label, **summarize(metrics), "metrics": metrics}
