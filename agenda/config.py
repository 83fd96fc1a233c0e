from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from dotenv import load_dotenv
from sqlalchemy.engine import URL

from .errors import ConfigError

# Root del progetto (accanto a pyproject.toml)
PROJECT_ROOT = Path(__file__).resolve().parents[1]
DEFAULT_SQLITE_PATH = PROJECT_ROOT / "agenda.sqlite"
DEFAULT_SEED_FILE = PROJECT_ROOT / "data" / "seed_appointments.json"


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    database_url: str
    seed_file: Path
    sql_echo: bool = False
    log_level: str = "INFO"


def database_url_from_env(env: Mapping[str, str]) -> str:
    """
    Ordine di precedenza:
    - DATABASE_URL completo
    - variabili DB_* (MySQL via PyMySQL, charset utf8mb4)
    - SQLite su file nella root del progetto
    """
    url = (env.get("DATABASE_URL") or "").strip()
    if url:
        return url

    database = (env.get("DB_DATABASE") or "").strip()
    if not database:
        return f"sqlite:///{DEFAULT_SQLITE_PATH}"

    port_raw = (env.get("DB_PORT") or "").strip()
    try:
        port = int(port_raw) if port_raw else None
    except ValueError as exc:
        raise ConfigError(f"DB_PORT non valido: {port_raw!r}") from exc

    mysql_url = URL.create(
        "mysql+pymysql",
        username=env.get("DB_USERNAME") or None,
        password=env.get("DB_PASSWORD") or None,
        host=(env.get("DB_HOST") or "").strip() or "localhost",
        port=port,
        database=database,
        query={"charset": "utf8mb4"},
    )
    return mysql_url.render_as_string(hide_password=False)


def load_settings(env: Mapping[str, str] | None = None) -> Settings:
    if env is None:
        # .env non sovrascrive le variabili già presenti nell'ambiente
        load_dotenv()
        env = os.environ

    seed_file = (env.get("AGENDA_SEED_FILE") or "").strip()
    log_level = (env.get("AGENDA_LOG_LEVEL") or "INFO").strip().upper()
    if not isinstance(logging.getLevelName(log_level), int):
        raise ConfigError(f"AGENDA_LOG_LEVEL non valido: {log_level!r}")

    return Settings(
        database_url=database_url_from_env(env),
        seed_file=Path(seed_file) if seed_file else DEFAULT_SEED_FILE,
        sql_echo=_get_bool(env.get("AGENDA_SQL_ECHO")),
        log_level=log_level,
    )
