from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.jobstores.sqlalchemy import SQLAlchemyJobStore
from app.utils.log import app_logger
from app.config.settings import settings
from app.services.database import engine
from app.jobs.monitor_sweep import run_monitor_sweep

SWEEP_JOB_ID = "integration_monitor_sweep"

# Use the application's SQLAlchemy engine so APScheduler persists jobs
_scheduler = BackgroundScheduler(jobstores={
    'default': SQLAlchemyJobStore(engine=engine)
})


def start_scheduler():
    if not _scheduler.running:
        _scheduler.start()
        app_logger.info("scheduler: started")


def shutdown_scheduler():
    if _scheduler.running:
        _scheduler.shutdown(wait=True)
        app_logger.info("scheduler: shutdown")


def add_monitor_sweep_job(interval_minutes: int = settings.MONITOR_SWEEP_INTERVAL_MINUTES):
    """Schedule the monitor sweep on a fixed interval (persistent jobstore).

    Each monitor's own `check_interval_minutes` is honored by the sweep, so
    this interval only sets the resolution. If the job already exists, this
    is a no-op.
    """
    if _scheduler.get_job(SWEEP_JOB_ID):
        app_logger.info(f"scheduler: sweep job already exists {SWEEP_JOB_ID}")
        return

    # coalesce + max_instances=1: a slow sweep is never stacked on top of itself
    _scheduler.add_job(
        run_monitor_sweep,
        'interval',
        minutes=interval_minutes,
        id=SWEEP_JOB_ID,
        replace_existing=False,
        coalesce=True,
        max_instances=1,
    )
    app_logger.info(f"scheduler: added sweep job {SWEEP_JOB_ID} every {interval_minutes} min")


def remove_monitor_sweep_job():
    job = _scheduler.get_job(SWEEP_JOB_ID)
    if job:
        _scheduler.remove_job(SWEEP_JOB_ID)
        app_logger.info(f"scheduler: removed sweep job {SWEEP_JOB_ID}")
