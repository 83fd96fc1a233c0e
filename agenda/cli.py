from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime, timedelta
from pathlib import Path
from typing import Sequence

from agenda.config import Settings, load_settings
from agenda.errors import AgendaError
from agenda.models import Appointment, rfc3339
from agenda.seed import load_seed_file, seed_appointments
from agenda.services import AppointmentStore, open_store

logger = logging.getLogger("agenda")

DEFAULT_WINDOW_DAYS = 7


def format_appointment(appt: Appointment) -> str:
    return (
        f"ID: {appt.id} | Client: {appt.client_name} | Date & Time: {rfc3339(appt.date_time)}"
        f" | Description: {appt.description} | Confirmed: {str(appt.confirmed).lower()}"
    )


def print_appointments(appointments: Sequence[Appointment]) -> None:
    print("Scheduled Appointments:")
    for appt in appointments:
        print(format_appointment(appt))


def _iso_datetime(value: str) -> datetime:
    # fromisoformat accetta la "Z" finale solo da Python 3.11
    text = value[:-1] + "+00:00" if value.endswith(("Z", "z")) else value
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"data non valida: {value!r} (formato ISO, es: 2026-01-14T10:30)")


def cmd_init(store: AppointmentStore, settings: Settings, args: argparse.Namespace) -> None:
    applied = store.migrate()
    print(f"Schema aggiornato ({applied} migrazioni applicate).")


def cmd_reset(store: AppointmentStore, settings: Settings, args: argparse.Namespace) -> None:
    store.reset_schema()
    print("Schema ricreato: tabella appuntamenti vuota.")


def cmd_seed(store: AppointmentStore, settings: Settings, args: argparse.Namespace) -> None:
    store.migrate()
    records = load_seed_file(args.file or settings.seed_file)
    ids = seed_appointments(store, records)
    print(f"Inseriti {len(ids)} appuntamenti.")


def cmd_book(store: AppointmentStore, settings: Settings, args: argparse.Namespace) -> None:
    store.migrate()
    appointment_id = store.schedule(args.client, args.at, args.description, confirmed=args.confirmed)
    print(f"Appuntamento ID: {appointment_id}")


def cmd_list(store: AppointmentStore, settings: Settings, args: argparse.Namespace) -> None:
    store.migrate()
    if args.all:
        appointments = store.list_all()
    elif args.start is not None:
        appointments = store.list_in_range(args.start, args.end)
    else:
        now = datetime.now()
        appointments = store.list_in_range(now, now + timedelta(days=args.days))
    print_appointments(appointments)


def cmd_demo(store: AppointmentStore, settings: Settings, args: argparse.Namespace) -> None:
    """
    Flusso dimostrativo:
    - reset (solo con --reset) oppure migrazione
    - seed dal file configurato
    - lista dei prossimi N giorni
    """
    if args.reset:
        store.reset_schema()
    else:
        store.migrate()

    seed_appointments(store, load_seed_file(settings.seed_file))

    now = datetime.now()
    print_appointments(store.list_in_range(now, now + timedelta(days=args.days)))


def cmd_show_db(store: AppointmentStore, settings: Settings, args: argparse.Namespace) -> None:
    print("ENGINE URL:", store.engine.url.render_as_string(hide_password=True))
    print("DB        :", store.engine.url.database)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="agenda", description="Agenda appuntamenti")
    sub = p.add_subparsers(required=True)

    p_init = sub.add_parser("init", help="Applica le migrazioni dello schema")
    p_init.set_defaults(func=cmd_init)

    p_reset = sub.add_parser("reset", help="Elimina e ricrea la tabella appuntamenti (distruttivo)")
    p_reset.set_defaults(func=cmd_reset)

    p_seed = sub.add_parser("seed", help="Carica gli appuntamenti dal file di seed")
    p_seed.add_argument("--file", type=Path, default=None, help="File JSON (default: AGENDA_SEED_FILE)")
    p_seed.set_defaults(func=cmd_seed)

    p_book = sub.add_parser("book", help="Registra un appuntamento")
    p_book.add_argument("--client", required=True)
    p_book.add_argument("--at", type=_iso_datetime, required=True, help="ISO datetime es: 2026-01-14T10:30")
    p_book.add_argument("--description", required=True)
    p_book.add_argument("--confirmed", action="store_true")
    p_book.set_defaults(func=cmd_book)

    p_list = sub.add_parser("list", help="Elenca gli appuntamenti in un intervallo (estremi inclusi)")
    p_list.add_argument("--start", type=_iso_datetime, default=None)
    p_list.add_argument("--end", type=_iso_datetime, default=None)
    p_list.add_argument("--days", type=int, default=DEFAULT_WINDOW_DAYS, help="Finestra da adesso (default: 7)")
    p_list.add_argument("--all", action="store_true", help="Tutti gli appuntamenti")
    p_list.set_defaults(func=cmd_list)

    p_demo = sub.add_parser("demo", help="Seed + lista dei prossimi giorni")
    p_demo.add_argument("--reset", action="store_true", help="Reset distruttivo dello schema prima del seed")
    p_demo.add_argument("--days", type=int, default=DEFAULT_WINDOW_DAYS)
    p_demo.set_defaults(func=cmd_demo)

    p_show = sub.add_parser("show-db", help="Mostra il database in uso")
    p_show.set_defaults(func=cmd_show_db)

    return p


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.func is cmd_list and (args.start is None) != (args.end is None):
        parser.error("--start e --end vanno indicati insieme")

    try:
        settings = load_settings()
        configure_logging(settings.log_level)
        with open_store(settings.database_url, echo=settings.sql_echo) as store:
            args.func(store, settings, args)
    except AgendaError as exc:
        logger.critical("%s", exc)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
