from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import Boolean, DateTime, Integer, String, Text
from sqlalchemy.dialects import mysql
from sqlalchemy.orm import Mapped, mapped_column

from .db import Base

# MySQL senza fsp tronca ai secondi: teniamo i microsecondi
LocalDateTime = DateTime().with_variant(mysql.DATETIME(fsp=6), "mysql")


def rfc3339(value: datetime) -> str:
    """Timestamp RFC3339 al secondo; i naive sono interpretati come ora locale."""
    aware = value if value.tzinfo is not None else value.astimezone()
    text = aware.isoformat(timespec="seconds")
    if text.endswith("+00:00"):
        return text[:-6] + "Z"
    return text


class Appointment(Base):
    __tablename__ = "appointments"
    # su SQLite evita il riuso degli id dopo cancellazioni manuali
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    client_name: Mapped[str] = mapped_column(String(255), nullable=False)
    # ora locale naive (equivalente di loc=Local nel DSN MySQL)
    date_time: Mapped[datetime] = mapped_column(LocalDateTime, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    confirmed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "client_name": self.client_name,
            "date_time": rfc3339(self.date_time),
            "description": self.description,
            "confirmed": self.confirmed,
        }

    def __repr__(self) -> str:
        return f"Appointment({self.id}, {self.client_name}, {self.date_time.isoformat()})"
