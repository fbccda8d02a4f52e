"""
Call record writers.

The scoring core only produces a CallRecord. Persisting it is up to a writer
that implements CallRecordWriter. InMemoryCallRecordWriter is the reference
implementation used by the API and the tests.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional, Protocol, Tuple

from .models.schemas import CallRecord

logger = logging.getLogger(__name__)


class CallRecordWriter(Protocol):
    """
    Creates or updates the stored record for a finished qualification.

    Implementations raise CallRecordWriteError when the record cannot be stored.
    """

    def write(self, record: CallRecord) -> CallRecord:
        ...


class InMemoryCallRecordWriter:
    """
    Upserts call records keyed by (client_id, rep_id) and marks the lead as
    completed, keeping everything in process memory.
    """

    def __init__(self):
        self.records: Dict[Tuple[Optional[str], Optional[str]], CallRecord] = {}
        self.lead_statuses: Dict[str, Dict[str, str]] = {}
        self.writes = 0

    def write(self, record: CallRecord) -> CallRecord:
        key = (record.client_id, record.rep_id)
        now = datetime.now(timezone.utc)
        existing = self.records.get(key)

        if existing:
            stored = record.model_copy(update={
                "record_id": existing.record_id,
                "created_at": existing.created_at,
                "updated_at": now,
            })
            logger.info(f"Updated call record {stored.record_id} for client {record.client_id}")
        else:
            stored = record.model_copy(update={
                "record_id": record.record_id or str(uuid.uuid4()),
                "created_at": now,
                "updated_at": now,
            })
            logger.info(f"Created call record {stored.record_id} for client {record.client_id}")

        self.records[key] = stored
        self.writes += 1

        if record.client_id:
            self.lead_statuses[record.client_id] = {
                "status": "completed",
                "notes": (
                    f"Qualification score: {record.score}% - "
                    f"{record.qualification_status.value.upper()}"
                ),
            }

        return stored

    def get(self, client_id: Optional[str], rep_id: Optional[str]) -> Optional[CallRecord]:
        """Stored record for a client/rep pair"""
        return self.records.get((client_id, rep_id))

    def list_records(self) -> List[CallRecord]:
        """All stored records, most recently updated first"""
        return sorted(self.records.values(), key=lambda r: r.updated_at, reverse=True)
