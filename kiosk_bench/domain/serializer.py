"""
Wire format for kiosk events.

Producer side: `SyntheticEvent` -> UTF-8 JSON with lower-snake-case fields
(`mall_id, kiosk_id, event_type, event_ts, amount_cents, total_items,
payment_method, status`), keyed by the entity id as text.

Consumer side: raw JSON -> `RowRecord`, with the origin tag prefixed onto
`event_type` and ingestion timestamps stamped at decode time.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Optional, Union

from pydantic import ValidationError

from kiosk_bench.domain.models import RowRecord, SyntheticEvent
from kiosk_bench.errors import DecodeError
from kiosk_bench.utils.clock import Clock, SystemClock


def _parse_timestamp(value: Any, fallback: datetime) -> datetime:
    """ISO-8601 string -> aware datetime; anything unusable falls back to `fallback`."""
    if not isinstance(value, str) or not value:
        return fallback
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return fallback
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class EventSerializer:
    """
    Encodes events for the outbound topic and decodes inbound messages into rows.
    """

    def __init__(self, origin_tag: str = "python", clock: Optional[Clock] = None) -> None:
        self.origin_tag = origin_tag
        self._clock = clock or SystemClock()

    @staticmethod
    def key_for(event: SyntheticEvent) -> str:
        return str(event.kiosk_id)

    @staticmethod
    def serialize(event: SyntheticEvent) -> bytes:
        return event.model_dump_json().encode("utf-8")

    def decode(self, raw: Union[bytes, str, None]) -> RowRecord:
        """
        Decode one inbound payload.

        Raises
        ------
        DecodeError
            If the payload is not a JSON object or a field has the wrong type.
            A bad or missing `event_ts` is not an error: it becomes the
            ingestion time.
        """
        if raw is None:
            raise DecodeError("Empty payload")
        try:
            payload = json.loads(raw)
        except (ValueError, RecursionError) as exc:
            # Oversized int literals raise a bare ValueError, deep nesting RecursionError.
            raise DecodeError(f"Invalid JSON payload: {type(exc).__name__}") from exc
        if not isinstance(payload, dict):
            raise DecodeError(f"Expected a JSON object, got {type(payload).__name__}")

        now = self._clock.now()
        event_type = payload.get("event_type")
        tagged_type = f"{self.origin_tag}-{'unknown' if event_type is None else event_type}"

        try:
            return RowRecord(
                mall_id=payload.get("mall_id"),
                kiosk_id=payload.get("kiosk_id"),
                event_type=tagged_type,
                event_ts=_parse_timestamp(payload.get("event_ts"), now),
                amount_cents=payload.get("amount_cents"),
                total_items=payload.get("total_items"),
                payment_method=payload.get("payment_method"),
                status=payload.get("status"),
                created_at=now,
                updated_at=now,
            )
        except ValidationError as exc:
            raise DecodeError(f"Invalid field values: {exc.error_count()} error(s)") from exc


__all__ = ["EventSerializer"]
