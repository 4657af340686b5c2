"""Record table engine: power metric, filtering, pagination and window stats.

Everything here is a pure function of its inputs. The caller owns the record
snapshot, the filter criteria and the page state, and re-runs ``build_view``
whenever any of them changes.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from typing import Callable, List, Mapping, Sequence, Tuple

logger = logging.getLogger(__name__)

ALL = "all"
ROW_HEIGHT_PX = 53
DEFAULT_ROWS_PER_PAGE = 5
ROWS_PER_PAGE_OPTIONS: Tuple[int | str, ...] = (5, 10, 25, ALL)
STAT_FIELDS: Tuple[str, ...] = (
    "hp",
    "attack",
    "defense",
    "special_attack",
    "special_defense",
    "speed",
)

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


class RecordTableError(Exception):
    """Base class for errors raised by the record table engine."""


class DataIntegrityError(RecordTableError, ValueError):
    """A record is missing a required field or carries a non-integer stat."""

    def __init__(self, message: str, record_id: object = None, field_name: str | None = None) -> None:
        super().__init__(message)
        self.record_id = record_id
        self.field_name = field_name


class InvalidFilterInput(RecordTableError, ValueError):
    """The power threshold entered by the user is not a number."""


class LoadError(RecordTableError):
    """The bulk read of the record collection failed."""


@dataclass(frozen=True)
class Record:
    id: int
    name: str
    types: Tuple[str, ...]
    hp: int
    attack: int
    defense: int
    special_attack: int
    special_defense: int
    speed: int

    @property
    def type_label(self) -> str:
        return ", ".join(self.types)


@dataclass(frozen=True)
class FilterCriteria:
    name_query: str = ""
    min_power: int = 0

    def __post_init__(self) -> None:
        if isinstance(self.min_power, bool) or not isinstance(self.min_power, int):
            raise TypeError(f"min_power must be an int, got {self.min_power!r}")


@dataclass(frozen=True)
class PageState:
    page_index: int = 0
    page_size: int | str = DEFAULT_ROWS_PER_PAGE

    def __post_init__(self) -> None:
        if self.page_index < 0:
            raise ValueError(f"page_index must be >= 0, got {self.page_index}")
        _check_page_size(self.page_size)

    def with_page_size(self, page_size: int | str) -> "PageState":
        # A new page size always starts over on the first page.
        return PageState(0, page_size)

    def clamped(self, pages: int) -> "PageState":
        index = clamp_page_index(self.page_index, pages)
        if index == self.page_index:
            return self
        return PageState(index, self.page_size)

    def previous(self) -> "PageState":
        return PageState(max(0, self.page_index - 1), self.page_size)

    def next(self, pages: int) -> "PageState":
        return PageState(clamp_page_index(self.page_index + 1, pages), self.page_size)

    def go_to(self, page_index: int, pages: int) -> "PageState":
        return PageState(clamp_page_index(page_index, pages), self.page_size)


@dataclass(frozen=True)
class VisibleWindow:
    rows: Tuple[Record, ...]
    empty_row_count: int = 0


@dataclass(frozen=True)
class PowerSummary:
    min_power: int
    max_power: int


@dataclass(frozen=True)
class TableView:
    """Everything the presentation layer needs to draw one page of the table."""

    rows: Tuple[Record, ...]
    empty_row_count: int
    summary: PowerSummary | None
    total_filtered_count: int
    total_pages: int
    page_state: PageState
    skipped_ids: Tuple[object, ...] = field(default_factory=tuple)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped_ids)

    @property
    def has_previous(self) -> bool:
        return self.page_state.page_index > 0

    @property
    def has_next(self) -> bool:
        return self.page_state.page_index < self.total_pages - 1

    @property
    def padding_height_px(self) -> int:
        return ROW_HEIGHT_PX * self.empty_row_count

    @property
    def first_row_number(self) -> int:
        if not self.rows:
            return 0
        if self.page_state.page_size == ALL:
            return 1
        return self.page_state.page_index * int(self.page_state.page_size) + 1

    @property
    def last_row_number(self) -> int:
        if not self.rows:
            return 0
        return self.first_row_number + len(self.rows) - 1

    @property
    def range_label(self) -> str:
        return f"{self.first_row_number}–{self.last_row_number} of {self.total_filtered_count}"


def _check_page_size(page_size: int | str) -> int | str:
    if page_size == ALL:
        return ALL
    if isinstance(page_size, bool) or not isinstance(page_size, int) or page_size <= 0:
        raise ValueError(f"page_size must be a positive int or {ALL!r}, got {page_size!r}")
    return page_size


def _stat_value(record: Record | Mapping[str, object], field_name: str) -> int:
    if isinstance(record, Mapping):
        value = record.get(field_name)
        record_id = record.get("id")
    else:
        value = getattr(record, field_name, None)
        record_id = getattr(record, "id", None)
    if isinstance(value, bool) or not isinstance(value, int):
        raise DataIntegrityError(
            f"record {record_id!r}: {field_name!r} must be an integer, got {value!r}",
            record_id=record_id,
            field_name=field_name,
        )
    return value


def power(record: Record | Mapping[str, object]) -> int:
    """Sum of the six stat fields. Raises ``DataIntegrityError`` if one is missing."""
    return sum(_stat_value(record, field_name) for field_name in STAT_FIELDS)


def filter_records(
    records: Sequence[Record],
    criteria: FilterCriteria,
    on_skip: Callable[[Record, DataIntegrityError], None] | None = None,
) -> List[Record]:
    """Keep records whose name contains the query and whose power reaches the threshold.

    Input order is preserved. A record whose power cannot be computed is
    dropped (and reported through ``on_skip``) instead of failing the batch.
    """
    needle = criteria.name_query.lower()
    kept: List[Record] = []
    for record in records:
        if needle not in record.name.lower():
            continue
        try:
            record_power = power(record)
        except DataIntegrityError as exc:
            logger.warning("Skipping malformed record: %s", exc)
            if on_skip is not None:
                on_skip(record, exc)
            continue
        if record_power >= criteria.min_power:
            kept.append(record)
    return kept


def total_pages(count: int, page_size: int | str) -> int:
    if _check_page_size(page_size) == ALL:
        return 1
    return math.ceil(count / int(page_size))


def clamp_page_index(page_index: int, pages: int) -> int:
    if pages <= 0:
        return 0
    return min(max(page_index, 0), pages - 1)


def paginate(records: Sequence[Record], page_index: int, page_size: int | str) -> VisibleWindow:
    """Slice one page out of ``records``.

    The page index is not clamped here; an offset past the end yields no rows.
    ``empty_row_count`` is the number of blank rows needed after a short
    page so the table keeps the height of a full one.
    """
    if page_index < 0:
        raise ValueError(f"page_index must be >= 0, got {page_index}")
    if _check_page_size(page_size) == ALL:
        return VisibleWindow(tuple(records), 0)
    size = int(page_size)
    start = page_index * size
    rows = tuple(records[start:start + size])
    empty_row_count = max(0, (page_index + 1) * size - len(records)) if page_index > 0 else 0
    return VisibleWindow(rows, empty_row_count)


def summarize(visible_rows: Sequence[Record]) -> PowerSummary | None:
    """Min/max power over the visible rows, or ``None`` when nothing is visible."""
    powers = [power(record) for record in visible_rows]
    if not powers:
        return None
    return PowerSummary(min(powers), max(powers))


def parse_min_power(value: object) -> int:
    """Read a power threshold the way a browser number box does.

    Leading integer digits are taken (``"40.5"`` -> 40, ``"12abc"`` -> 12),
    blank text means no threshold. Anything else raises ``InvalidFilterInput``.
    """
    if isinstance(value, bool):
        raise InvalidFilterInput(f"not a power threshold: {value!r}")
    if isinstance(value, int):
        return value
    if value is None:
        return 0
    text = str(value)
    if not text.strip():
        return 0
    match = _LEADING_INT.match(text)
    if not match:
        raise InvalidFilterInput(f"not a power threshold: {text!r}")
    try:
        return int(match.group(1))
    except ValueError as exc:
        raise InvalidFilterInput(f"power threshold out of range: {text[:20]!r}...") from exc


def coerce_min_power(value: object) -> int:
    try:
        return parse_min_power(value)
    except InvalidFilterInput as exc:
        logger.debug("Ignoring power threshold: %s", exc)
        return 0


def parse_page_size(value: object) -> int | str:
    """Map a rows-per-page choice to a page size; ``-1`` and ``"all"`` mean every row."""
    if isinstance(value, str):
        text = value.strip().lower()
        if text == ALL:
            return ALL
        try:
            value = int(text)
        except ValueError:
            raise ValueError(f"unknown page size: {value!r}") from None
    if value == -1:
        return ALL
    return _check_page_size(value)  # type: ignore[arg-type]


def build_view(
    records: Sequence[Record],
    criteria: FilterCriteria | None = None,
    page_state: PageState | None = None,
) -> TableView:
    """Run filter, pagination and statistics for one render of the table."""
    criteria = criteria or FilterCriteria()
    page_state = page_state or PageState()
    skipped: List[object] = []
    filtered = filter_records(records, criteria, on_skip=lambda record, _exc: skipped.append(record.id))
    pages = total_pages(len(filtered), page_state.page_size)
    state = page_state.clamped(pages)
    window = paginate(filtered, state.page_index, state.page_size)
    return TableView(
        rows=window.rows,
        empty_row_count=window.empty_row_count,
        summary=summarize(window.rows),
        total_filtered_count=len(filtered),
        total_pages=pages,
        page_state=state,
        skipped_ids=tuple(skipped),
    )
