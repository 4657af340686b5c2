import math

import pytest

import record_table as rt
from record_table import (
    ALL,
    DataIntegrityError,
    FilterCriteria,
    InvalidFilterInput,
    PageState,
    PowerSummary,
    Record,
)


def make_record(record_id: int, name: str = "", total: int = 0, **stats: int) -> Record:
    """Record whose power is ``total`` unless explicit stats are given."""
    values = {field: 0 for field in rt.STAT_FIELDS}
    values["hp"] = total
    values.update(stats)
    return Record(id=record_id, name=name or f"mon-{record_id}", types=("Normal",), **values)


@pytest.fixture
def twelve() -> list:
    return [make_record(i, total=100 + i) for i in range(12)]


def test_power_is_exact_sum_of_stats() -> None:
    record = Record(1, "Bulbasaur", ("Grass", "Poison"), 45, 49, 49, 65, 65, 45)
    assert rt.power(record) == 45 + 49 + 49 + 65 + 65 + 45


def test_power_handles_zero_and_large_values() -> None:
    assert rt.power(make_record(1)) == 0
    big = 10**18
    record = make_record(2, hp=big, attack=big, defense=big, special_attack=big, special_defense=big, speed=big)
    assert rt.power(record) == 6 * big


def test_power_accepts_mappings() -> None:
    raw = {"id": 7, "hp": 1, "attack": 2, "defense": 3, "special_attack": 4, "special_defense": 5, "speed": 6}
    assert rt.power(raw) == 21


def test_power_missing_field_raises_data_integrity_error() -> None:
    raw = {"id": 7, "hp": 1, "attack": 2, "defense": 3, "special_attack": 4, "special_defense": 5}
    with pytest.raises(DataIntegrityError) as excinfo:
        rt.power(raw)
    assert excinfo.value.record_id == 7
    assert excinfo.value.field_name == "speed"


def test_power_rejects_non_integer_stat() -> None:
    record = make_record(3, speed="fast")  # type: ignore[arg-type]
    with pytest.raises(DataIntegrityError):
        rt.power(record)


def test_type_label_joins_tags() -> None:
    record = Record(6, "Charizard", ("Fire", "Flying"), 78, 84, 78, 109, 85, 100)
    assert record.type_label == "Fire, Flying"


def test_filter_by_min_power() -> None:
    records = [make_record(1, total=50), make_record(2, total=80), make_record(3, total=30)]
    result = rt.filter_records(records, FilterCriteria(min_power=40))
    assert [rt.power(r) for r in result] == [50, 80]
    assert len(result) == 2


def test_filter_min_power_is_inclusive() -> None:
    records = [make_record(1, total=40), make_record(2, total=39)]
    assert [r.id for r in rt.filter_records(records, FilterCriteria(min_power=40))] == [1]


def test_filter_name_is_case_insensitive_substring() -> None:
    records = [make_record(1, "Charmander"), make_record(2, "Squirtle"), make_record(3, "Charizard")]
    result = rt.filter_records(records, FilterCriteria(name_query="CHAR"))
    assert [r.name for r in result] == ["Charmander", "Charizard"]


def test_filter_empty_query_matches_everything(twelve) -> None:
    assert rt.filter_records(twelve, FilterCriteria()) == twelve


def test_filter_predicates_are_anded() -> None:
    records = [
        make_record(1, "Charmander", total=309),
        make_record(2, "Charizard", total=534),
        make_record(3, "Blastoise", total=530),
    ]
    result = rt.filter_records(records, FilterCriteria(name_query="char", min_power=400))
    assert [r.id for r in result] == [2]


def test_filter_is_idempotent_and_order_preserving() -> None:
    records = [make_record(i, name=f"mon{i % 3}", total=(i * 37) % 100) for i in range(30)]
    criteria = FilterCriteria(name_query="mon1", min_power=20)
    once = rt.filter_records(records, criteria)
    assert rt.filter_records(once, criteria) == once
    positions = [records.index(r) for r in once]
    assert positions == sorted(positions)


def test_filter_skips_malformed_records_without_aborting() -> None:
    bad = make_record(2, "Broken", attack=None)  # type: ignore[arg-type]
    records = [make_record(1, total=10), bad, make_record(3, total=20)]
    skipped = []
    result = rt.filter_records(records, FilterCriteria(), on_skip=lambda record, exc: skipped.append(record.id))
    assert [r.id for r in result] == [1, 3]
    assert skipped == [2]


def test_filter_criteria_requires_int_threshold() -> None:
    with pytest.raises(TypeError):
        FilterCriteria(min_power="40")  # type: ignore[arg-type]


def test_paginate_last_short_page(twelve) -> None:
    window = rt.paginate(twelve, 2, 5)
    assert list(window.rows) == twelve[10:12]
    assert window.empty_row_count == 3


def test_paginate_first_page_never_padded() -> None:
    records = [make_record(i) for i in range(2)]
    window = rt.paginate(records, 0, 5)
    assert len(window.rows) == 2
    assert window.empty_row_count == 0


def test_paginate_all_returns_everything(twelve) -> None:
    window = rt.paginate(twelve, 0, ALL)
    assert list(window.rows) == twelve
    assert window.empty_row_count == 0
    assert rt.total_pages(len(twelve), ALL) == 1


def test_paginate_out_of_range_page_is_empty(twelve) -> None:
    window = rt.paginate(twelve, 10, 5)
    assert window.rows == ()


@pytest.mark.parametrize("count,size", [(0, 5), (1, 5), (5, 5), (12, 5), (25, 10), (26, 25)])
def test_paginate_partitions_filtered_set(count: int, size: int) -> None:
    records = [make_record(i) for i in range(count)]
    pages = rt.total_pages(count, size)
    assert pages == math.ceil(count / size)
    collected = []
    for index in range(pages):
        rows = rt.paginate(records, index, size).rows
        if index < pages - 1:
            assert len(rows) == size
        else:
            assert len(rows) == (count % size or size)
        collected.extend(rows)
    assert collected == records


@pytest.mark.parametrize("size", [0, -3, 2.5, True])
def test_paginate_rejects_bad_page_size(size) -> None:
    with pytest.raises(ValueError):
        rt.paginate([], 0, size)


def test_paginate_rejects_negative_index() -> None:
    with pytest.raises(ValueError):
        rt.paginate([], -1, 5)


def test_clamp_page_index() -> None:
    assert rt.clamp_page_index(-1, 3) == 0
    assert rt.clamp_page_index(5, 3) == 2
    assert rt.clamp_page_index(1, 3) == 1
    assert rt.clamp_page_index(4, 0) == 0


def test_summarize_visible_rows_only(twelve) -> None:
    window = rt.paginate(twelve, 1, 5)
    assert rt.summarize(window.rows) == PowerSummary(min_power=105, max_power=109)


def test_summarize_empty_window_is_absent() -> None:
    assert rt.summarize([]) is None


@pytest.mark.parametrize(
    "text,expected",
    [("40", 40), (" 40 ", 40), ("40.5", 40), ("12abc", 12), ("-5", -5), ("", 0), ("   ", 0), (None, 0), (25, 25)],
)
def test_parse_min_power(text, expected) -> None:
    assert rt.parse_min_power(text) == expected


@pytest.mark.parametrize("text", ["abc", "e10", "--1", True])
def test_parse_min_power_rejects_non_numeric(text) -> None:
    with pytest.raises(InvalidFilterInput):
        rt.parse_min_power(text)


def test_coerce_min_power_falls_back_to_no_minimum() -> None:
    assert rt.coerce_min_power("abc") == 0
    assert rt.coerce_min_power("300") == 300


def test_overlong_threshold_digits_are_invalid_input() -> None:
    with pytest.raises(InvalidFilterInput):
        rt.parse_min_power("9" * 5000)
    assert rt.coerce_min_power("9" * 5000) == 0


@pytest.mark.parametrize("value,expected", [(5, 5), ("10", 10), ("All", ALL), ("all", ALL), (-1, ALL), ("-1", ALL)])
def test_parse_page_size(value, expected) -> None:
    assert rt.parse_page_size(value) == expected


@pytest.mark.parametrize("value", ["many", 0, -2])
def test_parse_page_size_rejects_unknown(value) -> None:
    with pytest.raises(ValueError):
        rt.parse_page_size(value)


def test_page_state_size_change_resets_index() -> None:
    state = PageState(3, 5)
    assert state.with_page_size(10) == PageState(0, 10)
    assert state.with_page_size(ALL) == PageState(0, ALL)


def test_page_state_navigation_is_clamped() -> None:
    state = PageState(0, 5)
    assert state.previous() == PageState(0, 5)
    assert state.next(3) == PageState(1, 5)
    assert PageState(2, 5).next(3) == PageState(2, 5)
    assert state.go_to(99, 3) == PageState(2, 5)


def test_page_state_validates_inputs() -> None:
    with pytest.raises(ValueError):
        PageState(-1, 5)
    with pytest.raises(ValueError):
        PageState(0, 0)


def test_build_view_short_last_page(twelve) -> None:
    view = rt.build_view(twelve, FilterCriteria(), PageState(2, 5))
    assert [r.id for r in view.rows] == [10, 11]
    assert view.empty_row_count == 3
    assert view.padding_height_px == 3 * rt.ROW_HEIGHT_PX
    assert view.total_filtered_count == 12
    assert view.total_pages == 3
    assert view.summary == PowerSummary(110, 111)
    assert view.has_previous and not view.has_next
    assert view.range_label == "11–12 of 12"


def test_build_view_clamps_page_after_filter_shrinks_results(twelve) -> None:
    view = rt.build_view(twelve, FilterCriteria(min_power=108), PageState(2, 5))
    assert view.total_filtered_count == 4
    assert view.page_state == PageState(0, 5)
    assert [r.id for r in view.rows] == [8, 9, 10, 11]
    assert not view.has_previous and not view.has_next


def test_build_view_nothing_matches() -> None:
    records = [make_record(1, "Pikachu", total=320)]
    view = rt.build_view(records, FilterCriteria(name_query="mew"), PageState(0, 5))
    assert view.rows == ()
    assert view.summary is None
    assert view.total_pages == 0
    assert view.range_label == "0–0 of 0"


def test_build_view_all_rows(twelve) -> None:
    view = rt.build_view(twelve, FilterCriteria(), PageState(0, ALL))
    assert len(view.rows) == 12
    assert view.empty_row_count == 0
    assert view.total_pages == 1
    assert view.range_label == "1–12 of 12"


def test_build_view_reports_skipped_records() -> None:
    bad = make_record(9, defense=None)  # type: ignore[arg-type]
    view = rt.build_view([make_record(1, total=5), bad])
    assert view.skipped_ids == (9,)
    assert view.skipped_count == 1
    assert view.total_filtered_count == 1
