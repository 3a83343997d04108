from datetime import datetime
from typing import Optional
from sqlmodel import Field, SQLModel


class BaseTable(SQLModel):
    id: Optional[int] = Field(default=None, unique=True, nullable=False, primary_key=True, index=True)
    created_at: datetime = Field(
        default_factory=datetime.now,
        nullable=False,
        )
