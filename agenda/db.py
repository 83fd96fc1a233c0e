from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator

from sqlalchemy import Engine, create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .errors import StoreConnectionError

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base ORM per tutti i modelli."""
    pass


def build_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Crea l'engine e verifica subito la connessione.
    SQLite in memoria usa StaticPool: una sola connessione condivisa,
    altrimenti ogni sessione vedrebbe un DB vuoto.
    """
    try:
        url = make_url(database_url)
        kwargs: dict[str, Any] = {"echo": echo}
        if url.get_backend_name() == "sqlite":
            kwargs["connect_args"] = {"check_same_thread": False}
            if url.database in (None, "", ":memory:"):
                kwargs["poolclass"] = StaticPool
        else:
            kwargs["pool_pre_ping"] = True

        engine = create_engine(url, **kwargs)
        with engine.connect():
            pass
    except (SQLAlchemyError, ImportError) as exc:
        raise StoreConnectionError(f"connessione al database fallita: {exc}") from exc

    logger.info("Connesso a %s", engine.url.render_as_string(hide_password=True))
    return engine


def make_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(
        bind=engine,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
    )


@contextmanager
def db_session(factory: sessionmaker[Session]) -> Iterator[Session]:
    """
    Context manager per gestire correttamente la sessione:
    - commit se tutto ok
    - rollback su eccezioni
    - close sempre
    """
    session: Session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
