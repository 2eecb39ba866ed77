from datetime import datetime
from typing import Optional
from uuid import uuid4

from sqlmodel import SQLModel, Field
from sqlalchemy import Column, JSON


class OrderEvent(SQLModel, table=True):
    """One entry in an order's timeline. Rows are never updated."""

    __tablename__ = "order_event"

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    order_id: int = Field(foreign_key="orders.id", index=True)

    event_type: str = Field(index=True, max_length=50)
    label: str
    # "system", "user:<id>" or "admin:<id>"
    actor: str = Field(default="system", max_length=100)
    details: Optional[dict] = Field(default=None, sa_column=Column(JSON))

    created_at: datetime = Field(default_factory=datetime.utcnow)
