"""
Domain package for the Kiosk Ingest Benchmark.

Exports the event and row models, sequence allocation and the wire serializer.
Keep this package free of transport and database I/O.
"""

from kiosk_bench.domain.models import INSERT_COLUMNS, RowRecord, SyntheticEvent
from kiosk_bench.domain.sequence import ENTITY_CHUNK_SIZE, SequenceAllocator, derive_entity_id
from kiosk_bench.domain.serializer import EventSerializer

__all__ = [
    "ENTITY_CHUNK_SIZE",
    "EventSerializer",
    "INSERT_COLUMNS",
    "RowRecord",
    "SequenceAllocator",
    "SyntheticEvent",
    "derive_entity_id",
]
