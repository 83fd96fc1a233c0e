from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, AsyncIterator

from fastapi import Depends, FastAPI, HTTPException, Query, Request, status
from pydantic import BaseModel

from agenda.config import load_settings
from agenda.errors import AgendaError
from agenda.services import AppointmentStore

logger = logging.getLogger(__name__)

# il dettaglio completo resta nei log, mai nella risposta
DB_ERROR_DETAIL = "errore del database"


# Schemi

class AppointmentCreateIn(BaseModel):
    client_name: str
    date_time: datetime
    description: str
    confirmed: bool = False


class AppointmentCreatedOut(BaseModel):
    ok: bool = True
    id: int


# Dipendenze

def get_store(request: Request) -> AppointmentStore:
    return request.app.state.store


def create_app(store: AppointmentStore | None = None) -> FastAPI:
    """
    Senza store esplicito lo crea all'avvio dalla configurazione (.env / ambiente)
    e lo chiude allo shutdown. All'avvio applica solo le migrazioni, mai il reset.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        owned = app.state.store is None
        if owned:
            settings = load_settings()
            app.state.store = AppointmentStore.from_url(settings.database_url, echo=settings.sql_echo)
        try:
            app.state.store.migrate()
            yield
        finally:
            if owned:
                app.state.store.close()
                app.state.store = None

    app = FastAPI(title="Agenda API", version="1.0.0", lifespan=lifespan)
    app.state.store = store

    @app.get("/api/health")
    def health() -> dict[str, Any]:
        return {"ok": True}

    @app.post("/api/appointments", response_model=AppointmentCreatedOut, status_code=status.HTTP_201_CREATED)
    def create_appointment(
        payload: AppointmentCreateIn,
        store: AppointmentStore = Depends(get_store),
    ) -> AppointmentCreatedOut:
        try:
            appointment_id = store.schedule(
                payload.client_name,
                payload.date_time,
                payload.description,
                confirmed=payload.confirmed,
            )
        except AgendaError as e:
            logger.error("POST /api/appointments: %s", e)
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=DB_ERROR_DETAIL)
        return AppointmentCreatedOut(id=appointment_id)

    @app.get("/api/appointments")
    def list_appointments(
        start: datetime | None = Query(None),
        end: datetime | None = Query(None),
        store: AppointmentStore = Depends(get_store),
    ) -> list[dict]:
        if (start is None) != (end is None):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="start ed end vanno indicati insieme")
        try:
            if start is None:
                appointments = store.list_all()
            else:
                appointments = store.list_in_range(start, end)
        except AgendaError as e:
            logger.error("GET /api/appointments: %s", e)
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=DB_ERROR_DETAIL)
        return [a.to_dict() for a in appointments]

    return app


# uvicorn agenda.api_main:app
app = create_app()
