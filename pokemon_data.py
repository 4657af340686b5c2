from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Iterable, List, Mapping, Set, Tuple

import requests

from record_table import STAT_FIELDS, DataIntegrityError, LoadError, Record

logger = logging.getLogger(__name__)

DATA_SOURCE_ENV = "POKETABLE_DATA_SOURCE"
DEFAULT_DATA_SOURCE = Path(__file__).parent / "pokemon.json"
REQUEST_TIMEOUT = 10


def resolve_data_source() -> str:
    override = os.getenv(DATA_SOURCE_ENV, "").strip()
    return override or str(DEFAULT_DATA_SOURCE)


def _is_url(source: str) -> bool:
    return source.lower().startswith(("http://", "https://"))


def _read_types(raw: Mapping[str, object], record_id: object) -> Tuple[str, ...]:
    # The bundled data file calls the tag list "type".
    value = raw.get("types", raw.get("type"))
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)) or not value:
        raise DataIntegrityError(
            f"record {record_id!r}: needs at least one type tag, got {value!r}",
            record_id=record_id,
            field_name="types",
        )
    if not all(isinstance(tag, str) and tag for tag in value):
        raise DataIntegrityError(
            f"record {record_id!r}: type tags must be non-empty strings, got {value!r}",
            record_id=record_id,
            field_name="types",
        )
    return tuple(value)


def record_from_dict(raw: Mapping[str, object]) -> Record:
    """Build a ``Record`` from one JSON object, raising ``DataIntegrityError`` on bad data."""
    if not isinstance(raw, Mapping):
        raise DataIntegrityError(f"expected an object, got {type(raw).__name__}")
    record_id = raw.get("id")
    if isinstance(record_id, bool) or not isinstance(record_id, int):
        raise DataIntegrityError(f"record id must be an integer, got {record_id!r}", record_id, "id")
    name = raw.get("name")
    if not isinstance(name, str):
        raise DataIntegrityError(f"record {record_id!r}: name must be a string, got {name!r}", record_id, "name")
    stats = {}
    for field_name in STAT_FIELDS:
        value = raw.get(field_name)
        if isinstance(value, bool) or not isinstance(value, int):
            raise DataIntegrityError(
                f"record {record_id!r}: {field_name!r} must be an integer, got {value!r}",
                record_id,
                field_name,
            )
        if value < 0:
            raise DataIntegrityError(
                f"record {record_id!r}: {field_name!r} must not be negative, got {value}",
                record_id,
                field_name,
            )
        stats[field_name] = value
    return Record(id=record_id, name=name, types=_read_types(raw, record_id), **stats)


def parse_records(items: Iterable[object]) -> Tuple[Record, ...]:
    """Turn raw JSON objects into records, skipping malformed ones and repeated ids."""
    records: List[Record] = []
    seen: Set[int] = set()
    for position, item in enumerate(items):
        try:
            record = record_from_dict(item)  # type: ignore[arg-type]
        except DataIntegrityError as exc:
            logger.warning("Skipping record at position %d: %s", position, exc)
            continue
        if record.id in seen:
            logger.warning("Skipping record at position %d: duplicate id %d", position, record.id)
            continue
        seen.add(record.id)
        records.append(record)
    return tuple(records)


def fetch_records(source: str) -> List[object]:
    """Read the raw JSON array from a file path or an http(s) URL."""
    try:
        if _is_url(source):
            resp = requests.get(source, timeout=REQUEST_TIMEOUT)
            resp.raise_for_status()
            payload = resp.json()
        else:
            payload = json.loads(Path(source).read_text(encoding="utf-8"))
    except (requests.RequestException, OSError, ValueError, RecursionError) as exc:
        raise LoadError(f"could not read records from {source}: {exc}") from exc
    if not isinstance(payload, list):
        raise LoadError(f"expected a JSON array in {source}, got {type(payload).__name__}")
    return payload


def load_records(source: str | None = None) -> Tuple[Record, ...]:
    """One-time bulk load. A failed load leaves an empty collection instead of raising."""
    source = source or resolve_data_source()
    try:
        items = fetch_records(source)
    except LoadError:
        logger.error("Record load failed, continuing with an empty table", exc_info=True)
        return ()
    records = parse_records(items)
    logger.info("Loaded %d records from %s", len(records), source)
    return records
