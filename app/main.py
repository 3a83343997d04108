from fastapi import FastAPI
from contextlib import asynccontextmanager
from app.api.integrations import router as integrations_router
from app.api.probe import router as probe_router
from app.config.settings import settings
from app.services.database import init_db
from app.jobs.scheduler import start_scheduler, shutdown_scheduler, add_monitor_sweep_job

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup logic
    init_db()
    if settings.SCHEDULER_ENABLED:
        start_scheduler()
        # register the periodic sweep (idempotent if already present)
        add_monitor_sweep_job()
    yield
    # Shutdown logic
    if settings.SCHEDULER_ENABLED:
        shutdown_scheduler()

app = FastAPI(title="Integration Health Monitor", lifespan=lifespan)

# include routes
app.include_router(integrations_router)
app.include_router(probe_router)
