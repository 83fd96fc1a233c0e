from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable

from sqlalchemy import Column, Connection, DateTime, Engine, Integer, MetaData, String, Table, func, inspect, select, text
from sqlalchemy.exc import SQLAlchemyError

from .errors import MigrationError
from .models import Appointment

logger = logging.getLogger(__name__)

DATE_TIME_INDEX = "ix_appointments_date_time"

# Tabella di servizio: non fa parte del modello di dominio
_metadata = MetaData()
schema_version = Table(
    "schema_version",
    _metadata,
    Column("version", Integer, primary_key=True, autoincrement=False),
    Column("description", String(255), nullable=False),
    Column("applied_at", DateTime, nullable=False),
)


def _create_appointments(conn: Connection) -> None:
    Appointment.__table__.create(conn, checkfirst=True)


def _index_date_time(conn: Connection) -> None:
    existing = {ix["name"] for ix in inspect(conn).get_indexes(Appointment.__tablename__)}
    if DATE_TIME_INDEX not in existing:
        conn.execute(text(f"CREATE INDEX {DATE_TIME_INDEX} ON {Appointment.__tablename__} (date_time)"))


# Ordinate per versione; mai rinumerare quelle già rilasciate
MIGRATIONS: list[tuple[int, str, Callable[[Connection], None]]] = [
    (1, "create appointments table", _create_appointments),
    (2, "index appointments.date_time", _index_date_time),
]


def current_version(conn: Connection) -> int:
    if not inspect(conn).has_table(schema_version.name):
        return 0
    return conn.execute(select(func.max(schema_version.c.version))).scalar() or 0


def apply_migrations(engine: Engine) -> int:
    """
    Applica solo le migrazioni con versione superiore a quella registrata,
    ognuna nella propria transazione. Ritorna quante ne ha applicate.
    """
    applied = 0
    try:
        with engine.begin() as conn:
            _metadata.create_all(conn)

        for version, description, step in MIGRATIONS:
            with engine.begin() as conn:
                if version <= current_version(conn):
                    continue
                logger.info("Migrazione %d: %s", version, description)
                step(conn)
                conn.execute(
                    schema_version.insert().values(version=version, description=description, applied_at=datetime.now())
                )
                applied += 1
    except SQLAlchemyError as exc:
        raise MigrationError(f"migrazione dello schema fallita: {exc}") from exc

    if applied == 0:
        logger.debug("Schema già aggiornato")
    return applied


def reset_schema(engine: Engine) -> None:
    """
    Reset distruttivo: elimina la tabella appuntamenti (e lo storico migrazioni)
    e ricrea lo schema da zero. Solo per demo/bootstrap.
    """
    logger.warning("Reset dello schema: tutti gli appuntamenti verranno eliminati")
    try:
        with engine.begin() as conn:
            Appointment.__table__.drop(conn, checkfirst=True)
            schema_version.drop(conn, checkfirst=True)
    except SQLAlchemyError as exc:
        raise MigrationError(f"eliminazione della tabella fallita: {exc}") from exc

    apply_migrations(engine)
