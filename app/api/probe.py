from fastapi import APIRouter, BackgroundTasks, HTTPException, status

from app.jobs.monitor_sweep import run_monitor_sweep
from app.utils.log import app_logger
from app.schemas.probe import ProbeResponse

router = APIRouter(tags=["Probing"])


@router.post(
    "/probe",
    response_model=ProbeResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Trigger manual monitor sweep",
    description="Schedules a background job that probes every enabled integration monitor, "
                "regardless of its check interval. Probes run concurrently.",
    responses={
        202: {
            "description": "Sweep successfully scheduled",
            "model": ProbeResponse,
        },
        500: {
            "description": "Internal server error while scheduling the sweep",
        },
    },
)
async def probe_now(
    background_tasks: BackgroundTasks,
) -> ProbeResponse:
    """Trigger the monitor sweep manually (runs in background).

    This endpoint schedules a background task that will:
    - Fetch every enabled integration monitor
    - Probe each integration once
    - Store the results and update each monitor's current status
    - Send notifications for status changes

    Returns:
        ProbeResponse with status and message

    Raises:
        HTTPException: If there's an error scheduling the sweep
    """
    try:
        background_tasks.add_task(run_monitor_sweep, force=True)

        app_logger.info("api.probe.scheduled")

        return ProbeResponse(
            status="scheduled",
            message="Sweep scheduled for all enabled integration monitors",
        )
    except Exception as e:
        app_logger.error("api.probe.error", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to schedule sweep. Please try again later.",
        )
