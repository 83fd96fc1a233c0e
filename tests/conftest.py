import pytest

from agenda.services import AppointmentStore


@pytest.fixture
def bare_store():
    store = AppointmentStore.from_url("sqlite://")
    try:
        yield store
    finally:
        store.close()


@pytest.fixture
def store(bare_store: AppointmentStore) -> AppointmentStore:
    bare_store.migrate()
    return bare_store
