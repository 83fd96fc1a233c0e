from __future__ import annotations

import logging
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Iterable

from pydantic import BaseModel, ConfigDict, StrictBool, StrictInt, StrictStr, TypeAdapter, ValidationError

from .errors import SeedError
from .services import AppointmentStore

logger = logging.getLogger(__name__)


class SeedRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    client_name: StrictStr
    days_from_now: StrictInt
    description: StrictStr
    confirmed: StrictBool = False


_seed_adapter = TypeAdapter(list[SeedRecord])


def parse_seed(data: Any) -> list[SeedRecord]:
    try:
        return _seed_adapter.validate_python(data)
    except ValidationError as exc:
        raise SeedError(f"seed non valido: {exc}") from exc


def load_seed_file(path: Path) -> list[SeedRecord]:
    try:
        raw = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise SeedError(f"impossibile leggere il file di seed {path}: {exc}") from exc
    try:
        return _seed_adapter.validate_json(raw)
    except ValidationError as exc:
        raise SeedError(f"file di seed {path} non valido: {exc}") from exc


def seed_appointments(
    store: AppointmentStore,
    records: Iterable[SeedRecord],
    now: datetime | None = None,
) -> list[int]:
    """
    Registra i record di seed con data = now + days_from_now giorni.
    Non è idempotente: ogni chiamata inserisce nuove righe.
    """
    now = now or datetime.now()
    ids = [
        store.schedule(r.client_name, now + timedelta(days=r.days_from_now), r.description, r.confirmed)
        for r in records
    ]
    logger.info("Seed completato: %d appuntamenti", len(ids))
    return ids
