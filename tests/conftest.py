import pytest

from snippet_dedup.models import TextRecord
from snippet_dedup.store import InMemoryRecordStore

# Import fixtures from fixtures directory
from tests.fixtures.test_data_generator import data_generator  # noqa: F401


@pytest.fixture
def make_record():
    """Factory for snippet records with sensible defaults."""
    def _make(record_id, content="", name="", **fields):
        return TextRecord(id=record_id, name=name, content=content, **fields)
    return _make


@pytest.fixture
def hello_records(make_record):
    return [
        make_record(1, "Hello World", name="greeting"),
        make_record(2, "Hello World!", name="greeting"),
    ]


@pytest.fixture
def chain_records(make_record):
    """A~B and B~C above 0.85, but A~C below it."""
    return [
        make_record('A', "aaaaaaaaaa", name="same"),
        make_record('B', "aaaaaaaaab", name="same"),
        make_record('C', "aaaaaaaabb", name="same"),
    ]


@pytest.fixture
def memory_store(hello_records, chain_records):
    return InMemoryRecordStore(hello_records + chain_records)
