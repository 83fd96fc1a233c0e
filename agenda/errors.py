from __future__ import annotations


class AgendaError(Exception):
    """Errore base dell'agenda: tutti gli errori del dominio derivano da qui."""


class ConfigError(AgendaError):
    pass


class StoreConnectionError(AgendaError):
    pass


class MigrationError(AgendaError):
    pass


class ScheduleError(AgendaError):
    pass


class QueryError(AgendaError):
    pass


class SeedError(AgendaError):
    pass
