from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime
from typing import Dict, List, Optional

from app.services.database import SessionLocal
from app.services.monitor_service import MonitorService
from app.services.prober_service import ProberService
from app.schemas.health import ProbeResult
from app.utils.log import app_logger
from app.config.settings import settings
from app.services.notifier import notifier as default_notifier


def _probe_target(monitor) -> Dict:
    # plain values only: ORM objects stay in the session that loaded them
    return {
        "monitor_id": monitor.id,
        "service_type": monitor.service_type,
        "service_name": monitor.service_name,
        "api_endpoint": monitor.api_endpoint,
        "credentials": monitor.credentials,
        "recipe_ids": monitor.workato_recipe_ids or [],
    }


def _run_probe(prober: ProberService, target: Dict) -> ProbeResult:
    return prober.probe(target["service_type"], target["api_endpoint"], target["credentials"], target["recipe_ids"])


def _persist(target: Dict, result: ProbeResult, checked_at: datetime) -> Optional[Dict]:
    """Store one result in its own session; returns a status-change dict when the status moved."""
    writer = SessionLocal()
    try:
        monitor = MonitorService.get_monitor(writer, target["monitor_id"])
        previous = monitor.current_status
        MonitorService.record_result(writer, monitor, result, checked_at)
        if previous != result.status.value:
            return {
                "monitor_id": target["monitor_id"],
                "service_name": target["service_name"],
                "service_type": target["service_type"],
                "previous_status": previous,
                "current_status": result.status.value,
                "error_message": result.error_message,
                "checked_at": checked_at,
            }
        return None
    except Exception:
        writer.rollback()
        raise
    finally:
        writer.close()


def check_monitor(monitor_id: int, prober: Optional[ProberService] = None) -> Dict:
    """Probe a single monitor right now and persist the result ("check now").

    Raises MonitorNotFoundError for unknown or deleted monitors.
    """
    session = SessionLocal()
    try:
        target = _probe_target(MonitorService.get_monitor(session, monitor_id))
    finally:
        session.close()

    prober = prober or ProberService()
    result = _run_probe(prober, target)
    checked_at = datetime.now()
    change = _persist(target, result, checked_at)
    app_logger.info("check_monitor.done", monitor_id=monitor_id, status=result.status.value, changed=bool(change))
    return {"monitor_id": monitor_id, "checked_at": checked_at, "result": result, "status_change": change}


def run_monitor_sweep(
    max_workers: int = settings.PROBE_MAX_WORKERS,
    force: bool = False,
    prober: Optional[ProberService] = None,
    notifier=None,
) -> List[Dict]:
    """Probe every enabled monitor that is due and store the results.

    - Loads due monitors (or all enabled ones when `force`)
    - Probes them concurrently (ThreadPoolExecutor)
    - Persists each result in its own session so one failure does not lose the others
    - Sends one batched notification for every status transition

    Returns a list of {"monitor_id", "status", "response_time_ms", "error_message"} dicts.
    """
    app_logger.info("monitor_sweep.start", max_workers=max_workers, force=force)

    session = SessionLocal()
    try:
        targets = [_probe_target(m) for m in MonitorService.list_due_monitors(session, force=force)]
    finally:
        session.close()

    if not targets:
        app_logger.info("monitor_sweep.no_due_monitors")
        return []

    prober = prober or ProberService()
    notifier = notifier or default_notifier

    results: List[Dict] = []
    changes: List[Dict] = []

    with ThreadPoolExecutor(max_workers=max(1, max_workers)) as exe:
        future_to_target = {exe.submit(_run_probe, prober, t): t for t in targets}
        for fut in as_completed(future_to_target):
            target = future_to_target[fut]
            try:
                result = fut.result()
            except Exception as e:
                app_logger.error("monitor_sweep.worker_error", monitor_id=target["monitor_id"], error=str(e))
                continue

            try:
                change = _persist(target, result, datetime.now())
            except Exception as e:
                app_logger.error("monitor_sweep.commit_error", monitor_id=target["monitor_id"], error=str(e))
                continue

            results.append({
                "monitor_id": target["monitor_id"],
                "status": result.status.value,
                "response_time_ms": result.response_time_ms,
                "error_message": result.error_message,
            })
            if change:
                changes.append(change)

    app_logger.info("monitor_sweep.finished", total=len(results), status_changes=len(changes))

    if changes:
        try:
            notifier.notify_status_changes(changes)
        except Exception as e:
            app_logger.error("notifier.batch_error", error=str(e))

    return results


if __name__ == "__main__":
    # quick runner for manual execution
    res = run_monitor_sweep(force=True)
    print(f"Probed: {len(res)} monitors")
