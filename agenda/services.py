from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator

from sqlalchemy import Engine, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .db import build_engine, db_session, make_session_factory
from .errors import QueryError, ScheduleError
from .migrations import apply_migrations, reset_schema
from .models import Appointment

logger = logging.getLogger(__name__)


def to_local_naive(value: datetime) -> datetime:
    """Le date aware vengono portate all'ora locale dell'host e rese naive."""
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


class AppointmentStore:
    """
    Archivio appuntamenti: possiede l'engine e apre una sessione per operazione.
    Si costruisce esplicitamente e si passa a chi lo usa (CLI, API, test).
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self._sessions = make_session_factory(engine)

    @classmethod
    def from_url(cls, database_url: str, echo: bool = False) -> "AppointmentStore":
        return cls(build_engine(database_url, echo=echo))

    def close(self) -> None:
        self.engine.dispose()

    @contextmanager
    def session(self) -> Iterator[Session]:
        with db_session(self._sessions) as s:
            yield s

    # =========================
    # Schema
    # =========================
    def migrate(self) -> int:
        return apply_migrations(self.engine)

    def reset_schema(self) -> None:
        reset_schema(self.engine)

    # =========================
    # Operazioni
    # =========================
    def schedule(self, client_name: str, date_time: datetime, description: str, confirmed: bool = False) -> int:
        """Inserisce un appuntamento e ritorna l'id assegnato dal DB."""
        try:
            with self.session() as s:
                app = Appointment(
                    client_name=client_name,
                    date_time=to_local_naive(date_time),
                    description=description,
                    confirmed=confirmed,
                )
                s.add(app)
                s.flush()
                appointment_id = app.id
        except SQLAlchemyError as exc:
            raise ScheduleError(f"impossibile registrare l'appuntamento: {exc}") from exc

        logger.debug("Appuntamento %d registrato per %s", appointment_id, client_name)
        return appointment_id

    def list_in_range(self, start: datetime, end: datetime) -> list[Appointment]:
        """Appuntamenti con start <= date_time <= end, in ordine di id."""
        q = (
            select(Appointment)
            .where(Appointment.date_time.between(to_local_naive(start), to_local_naive(end)))
            .order_by(Appointment.id.asc())
        )
        return self._fetch(q)

    def list_all(self) -> list[Appointment]:
        return self._fetch(select(Appointment).order_by(Appointment.id.asc()))

    def _fetch(self, q) -> list[Appointment]:
        try:
            with self.session() as s:
                return list(s.scalars(q))
        except SQLAlchemyError as exc:
            raise QueryError(f"impossibile leggere gli appuntamenti: {exc}") from exc


@contextmanager
def open_store(database_url: str, echo: bool = False) -> Iterator[AppointmentStore]:
    """Apre lo store e rilascia sempre l'engine all'uscita."""
    store = AppointmentStore.from_url(database_url, echo=echo)
    try:
        yield store
    finally:
        store.close()
