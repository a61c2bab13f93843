"""
Record Store Collaborator

The engine never owns records. It mutates them only through the narrow
delete/update contract below. InMemoryRecordStore is a reference store used by
tests and by callers that keep their snippets in process.
"""

import time
import logging
import asyncio
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from .models import TextRecord, RecordId
from .exceptions import InvalidRecordError, RecordNotFoundError


@runtime_checkable
class RecordStore(Protocol):
    """Mutation contract the resolution coordinator relies on.

    Methods may be coroutines or plain blocking functions. Errors are
    store-defined and are not classified further by the engine.
    """

    def delete_record(self, record_id: RecordId) -> Any:
        ...

    def update_record(self, record_id: RecordId, fields: Dict[str, Any]) -> Any:
        ...


class InMemoryRecordStore:
    """Dictionary-backed record store."""

    UPDATABLE_FIELDS = ('name', 'content', 'description', 'tags')

    def __init__(self, records: Optional[List[TextRecord]] = None):
        self._records: Dict[RecordId, TextRecord] = {}
        self._lock = asyncio.Lock()
        for record in records or []:
            self._records[record.id] = record

    def add_record(self, record: TextRecord) -> TextRecord:
        if record.id in self._records:
            raise InvalidRecordError(f"Record '{record.id}' already exists", record_id=record.id)
        self._records[record.id] = record
        return record

    def get_record(self, record_id: RecordId) -> TextRecord:
        record = self._records.get(record_id)
        if record is None:
            raise RecordNotFoundError(record_id)
        return record

    def get_all_records(self) -> List[TextRecord]:
        """Snapshot of all records, oldest first."""
        return sorted(self._records.values(), key=lambda r: (r.created_at, str(r.id)))

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, record_id: RecordId) -> bool:
        return record_id in self._records

    async def delete_record(self, record_id: RecordId) -> bool:
        """Delete a record by id.

        Raises:
            RecordNotFoundError: If no record has this id
        """
        async with self._lock:
            if record_id not in self._records:
                raise RecordNotFoundError(record_id)
            del self._records[record_id]

        logging.info(f"Deleted record {record_id}")
        return True

    async def update_record(self, record_id: RecordId, fields: Dict[str, Any]) -> TextRecord:
        """Apply a partial update and bump updated_at.

        Raises:
            RecordNotFoundError: If no record has this id
            InvalidRecordError: If the update blanks the name or content,
                or names a field that cannot be updated
        """
        unknown = set(fields) - set(self.UPDATABLE_FIELDS)
        if unknown:
            raise InvalidRecordError(
                f"Cannot update fields: {', '.join(sorted(unknown))}", record_id=record_id
            )
        for field in ('name', 'content'):
            if field in fields and not str(fields[field] or "").strip():
                raise InvalidRecordError(f"Record {field} cannot be empty", record_id=record_id)

        async with self._lock:
            current = self.get_record(record_id)
            updated = TextRecord.model_validate(
                {**current.model_dump(), **fields, 'updated_at': int(time.time())}
            )
            self._records[record_id] = updated

        logging.info(f"Updated record {record_id}: {', '.join(sorted(fields))}")
        return updated
