from typing import Any, Dict, List, Optional
from datetime import datetime

from sqlmodel import Field, Column, DateTime
from sqlalchemy import JSON, Boolean, Index, Integer, String, Text

from app.models.base_model import BaseTable


class IntegrationMonitor(BaseTable, table=True):
    __tablename__ = "integration_monitors"
    __table_args__ = (
        Index("integration_monitors_client_idx", "client_id"),
        Index("integration_monitors_status_idx", "current_status"),
    )

    client_id: str = Field(sa_column=Column(String(255), nullable=False))
    # one of app.schemas.health.ServiceType
    service_type: str = Field(sa_column=Column(String(32), nullable=False))
    service_name: str = Field(sa_column=Column(String(255), nullable=False))
    # falls back to the service family's default endpoint when empty
    api_endpoint: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    credentials: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON, nullable=True))
    workato_recipe_ids: Optional[List[str]] = Field(default=None, sa_column=Column(JSON, nullable=True))
    is_enabled: bool = Field(default=True, sa_column=Column(Boolean, nullable=False, default=True))
    check_interval_minutes: int = Field(default=5, sa_column=Column(Integer, nullable=False, default=5))
    last_checked_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime, nullable=True))
    current_status: str = Field(default="unknown", sa_column=Column(String(16), nullable=False, default="unknown"))
    last_error_message: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    updated_at: datetime = Field(default_factory=datetime.now, sa_column=Column(DateTime, nullable=False))
    # soft delete marker
    deleted_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime, nullable=True))
