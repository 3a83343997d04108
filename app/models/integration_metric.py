from typing import Any, Dict, List, Optional
from datetime import datetime

from sqlmodel import Field, Column, DateTime
from sqlalchemy import JSON, ForeignKey, Integer, String, Text

from app.models.base_model import BaseTable


class IntegrationMetric(BaseTable, table=True):
    __tablename__ = "integration_metrics"

    monitor_id: int = Field(
        sa_column=Column(Integer, ForeignKey("integration_monitors.id", ondelete="CASCADE"), nullable=False, index=True)
    )
    status: str = Field(sa_column=Column(String(16), nullable=False))
    response_time_ms: Optional[int] = Field(default=None, sa_column=Column(Integer, nullable=True))
    error_message: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    # workato only: [{"recipe_id", "running_status", "last_run_at"}]
    recipe_statuses: Optional[List[Dict[str, Any]]] = Field(default=None, sa_column=Column(JSON, nullable=True))
    checked_at: datetime = Field(default_factory=datetime.now, sa_column=Column(DateTime, nullable=False, index=True))
