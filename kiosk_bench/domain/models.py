"""
Domain models for the Kiosk Ingest Benchmark.

`SyntheticEvent` is what the producer puts on the wire; `RowRecord` is what the
consumer writes into the `kiosk_events` table (see `kiosk_bench/db/init.sql`). Both are
frozen: an event is built once per sequence number, serialized, then dropped.
"""
from __future__ import annotations

import random
from datetime import datetime, timedelta
from typing import Any, Optional, Tuple

from pydantic import BaseModel, Field, field_validator

from kiosk_bench.domain.sequence import derive_entity_id

# Column order of the bulk INSERT; RowRecord.as_params() follows it.
INSERT_COLUMNS: Tuple[str, ...] = (
    "mall_id",
    "kiosk_id",
    "event_type",
    "event_ts",
    "amount_cents",
    "total_items",
    "payment_method",
    "status",
    "created_at",
    "updated_at",
)

HISTORY_DAYS = 365

# Range of the INTEGER columns in `kiosk_events`.
PG_INT_MIN = -(2**31)
PG_INT_MAX = 2**31 - 1


class SyntheticEvent(BaseModel):
    """
    One generated kiosk interaction.
    """

    mall_id: int = Field(1, description="Mall the kiosk belongs to.")
    kiosk_id: int = Field(..., description="Entity id derived from the sequence number.")
    event_type: str = Field("visit", description="Kind of interaction.")
    event_ts: datetime = Field(..., description="Randomized historical timestamp.")
    amount_cents: int = Field(1000, description="Transaction amount in cents.")
    total_items: int = Field(5, description="Items in the transaction.")
    payment_method: int = Field(1, description="Payment method code.")
    status: int = Field(0, description="Status code.")

    model_config = {
        "frozen": True,
    }

    @classmethod
    def for_sequence(
        cls, seq: int, now: datetime, rng: Optional[random.Random] = None
    ) -> "SyntheticEvent":
        """
        Build the event for an allocated sequence number.

        The timestamp is `now` shifted back by a uniformly random whole number
        of days in [0, HISTORY_DAYS).
        """
        rng = rng or random
        days_back = rng.randrange(HISTORY_DAYS)
        return cls(kiosk_id=derive_entity_id(seq), event_ts=now - timedelta(days=days_back))


class RowRecord(BaseModel):
    """
    Representation of a single row in the `kiosk_events` table.

    Numeric fields are optional: a payload missing one is still ingested and the
    column is written as NULL. Values the table would reject (out-of-range
    integers, NUL in text) fail validation at decode time.
    """

    mall_id: Optional[int] = Field(None, ge=PG_INT_MIN, le=PG_INT_MAX)
    kiosk_id: Optional[int] = Field(None, ge=PG_INT_MIN, le=PG_INT_MAX)
    event_type: str
    event_ts: datetime
    amount_cents: Optional[int] = Field(None, ge=PG_INT_MIN, le=PG_INT_MAX)
    total_items: Optional[int] = Field(None, ge=PG_INT_MIN, le=PG_INT_MAX)
    payment_method: Optional[int] = Field(None, ge=PG_INT_MIN, le=PG_INT_MAX)
    status: Optional[int] = Field(None, ge=PG_INT_MIN, le=PG_INT_MAX)
    created_at: datetime
    updated_at: datetime

    model_config = {
        "frozen": True,
    }

    @field_validator("event_type")
    @classmethod
    def _no_nul(cls, value: str) -> str:
        if "\x00" in value:
            raise ValueError("event_type must not contain NUL characters")
        return value

    def as_params(self) -> Tuple[Any, ...]:
        """Values in INSERT_COLUMNS order."""
        return tuple(getattr(self, column) for column in INSERT_COLUMNS)


__all__ = [
    "HISTORY_DAYS",
    "INSERT_COLUMNS",
    "PG_INT_MAX",
    "PG_INT_MIN",
    "RowRecord",
    "SyntheticEvent",
]
