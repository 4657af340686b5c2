from __future__ import annotations

import html
import logging
import os
from typing import Dict, List, Sequence, Tuple

import streamlit as st
from PIL import Image, ImageDraw

from pokemon_data import load_records, resolve_data_source
from record_table import (
    ALL,
    DEFAULT_ROWS_PER_PAGE,
    ROWS_PER_PAGE_OPTIONS,
    FilterCriteria,
    PageState,
    Record,
    TableView,
    build_view,
    coerce_min_power,
    parse_page_size,
)

PAGE_TITLE = "PokéTable"
LOG_LEVEL_ENV = "POKETABLE_LOG_LEVEL"
EMPTY_STAT = "—"

COLOR_PALETTE: Dict[str, str] = {
    "red": "#ff0000",
    "blue": "#3b4cca",
    "yellow": "#ffde00",
    "header": "#F9F9F9",
}

TYPE_COLORS: Dict[str, str] = {
    "normal": "#A8A77A",
    "fire": "#EE8130",
    "water": "#6390F0",
    "electric": "#F7D02C",
    "grass": "#7AC74C",
    "ice": "#96D9D6",
    "fighting": "#C22E28",
    "poison": "#A33EA1",
    "ground": "#E2BF65",
    "flying": "#A98FF3",
    "psychic": "#F95587",
    "bug": "#A6B91A",
    "rock": "#B6A136",
    "ghost": "#735797",
    "dragon": "#6F35FC",
    "dark": "#705746",
    "steel": "#B7B7CE",
    "fairy": "#D685AD",
}

TABLE_COLUMNS: Sequence[Tuple[str, str]] = (
    ("ID", "id"),
    ("Name", "name"),
    ("Type", "types"),
    ("Health", "hp"),
    ("Attack", "attack"),
    ("Defense", "defense"),
    ("Special Attack", "special_attack"),
    ("Special Defense", "special_defense"),
    ("Speed", "speed"),
)


def configure_logging() -> None:
    level_name = os.getenv(LOG_LEVEL_ENV, "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_page_icon(px: int = 64) -> Image.Image:
    """Yellow disc with a blue lightning bolt, used as the browser tab icon."""
    img = Image.new("RGBA", (px, px), (0, 0, 0, 0))
    draw = ImageDraw.Draw(img)
    draw.ellipse((1, 1, px - 2, px - 2), fill=COLOR_PALETTE["yellow"], outline=COLOR_PALETTE["blue"], width=max(1, px // 16))
    bolt = [(0.56, 0.12), (0.28, 0.55), (0.48, 0.55), (0.40, 0.88), (0.72, 0.42), (0.52, 0.42), (0.60, 0.12)]
    draw.polygon([(x * px, y * px) for x, y in bolt], fill=COLOR_PALETTE["blue"])
    return img


def set_page_metadata() -> None:
    st.set_page_config(
        page_title=PAGE_TITLE,
        page_icon=build_page_icon(),
        layout="wide",
        initial_sidebar_state="collapsed",
    )
    colors = COLOR_PALETTE
    custom_css = f"""
    <style>
      :root {{
        --poke-red: {colors["red"]};
        --poke-blue: {colors["blue"]};
        --poke-yellow: {colors["yellow"]};
      }}
      .stats-card {{
        background: rgba(255, 255, 255, 0.96);
        border-radius: 12px;
        border: 1px solid rgba(59, 76, 202, 0.15);
        box-shadow: 0 6px 16px rgba(0, 0, 0, 0.08);
        padding: 0.8rem 1.2rem;
        margin-bottom: 1rem;
      }}
      .stats-card p {{
        margin: 0.15rem 0;
      }}
      .poke-table-wrapper {{
        border-radius: 12px;
        box-shadow: 0 6px 16px rgba(0, 0, 0, 0.08);
        overflow-x: auto;
      }}
      table.poke-table {{
        width: 100%;
        border-collapse: collapse;
      }}
      table.poke-table thead {{
        background-color: {colors["header"]};
      }}
      table.poke-table th, table.poke-table td {{
        text-align: center;
        padding: 0.55rem 0.75rem;
        border-bottom: 1px solid rgba(0, 0, 0, 0.08);
      }}
      .poke-chip {{
        display: inline-block;
        padding: 0.1rem 0.55rem;
        margin: 0 0.15rem;
        border-radius: 999px;
        color: #ffffff;
        font-size: 0.8rem;
        font-weight: 600;
      }}
      .pager-label {{
        text-align: right;
        padding-top: 0.45rem;
        color: rgba(0, 0, 0, 0.65);
      }}
    </style>
    """
    st.markdown(custom_css, unsafe_allow_html=True)


def ensure_state() -> None:
    if "name_query" not in st.session_state:
        st.session_state["name_query"] = ""
    if "min_power_text" not in st.session_state:
        st.session_state["min_power_text"] = "0"
    if "page_index" not in st.session_state:
        st.session_state["page_index"] = 0
    if "page_size" not in st.session_state:
        st.session_state["page_size"] = DEFAULT_ROWS_PER_PAGE


@st.cache_data(show_spinner=False)
def get_records(source: str) -> Tuple[Record, ...]:
    return load_records(source)


def current_page_state() -> PageState:
    page_size = parse_page_size(st.session_state.get("page_size", DEFAULT_ROWS_PER_PAGE))
    return PageState(int(st.session_state.get("page_index", 0)), page_size)


def _handle_page_size_change() -> None:
    state = current_page_state().with_page_size(parse_page_size(st.session_state["page_size"]))
    st.session_state["page_index"] = state.page_index


def _step_page(delta: int, pages: int) -> None:
    state = current_page_state()
    st.session_state["page_index"] = state.go_to(state.page_index + delta, pages).page_index


def format_page_size(option: int | str) -> str:
    return "All" if option == ALL else str(option)


def format_power(value: int | None) -> str:
    return EMPTY_STAT if value is None else str(value)


def build_type_chips_html(types: Sequence[str] | None) -> str:
    spans: List[str] = []
    for t in types or []:
        label = str(t)
        color = TYPE_COLORS.get(label.lower(), "#777777")
        spans.append(
            f'<span class="poke-chip" style="background-color:{color};">{html.escape(label.title())}</span>'
        )
    return "".join(spans)


def render_summary_html(view: TableView) -> str:
    summary = view.summary
    min_power = format_power(summary.min_power if summary else None)
    max_power = format_power(summary.max_power if summary else None)
    return (
        '<div class="stats-card">'
        f"<p>Min Power: {min_power}</p>"
        f"<p>Max Power: {max_power}</p>"
        "</div>"
    )


def _render_cell(record: Record, attr: str) -> str:
    if attr == "types":
        return build_type_chips_html(record.types)
    return html.escape(str(getattr(record, attr)))


def render_table_html(view: TableView) -> str:
    head = "".join(f"<th>{html.escape(label)}</th>" for label, _attr in TABLE_COLUMNS)
    body: List[str] = []
    for record in view.rows:
        cells = "".join(f"<td>{_render_cell(record, attr)}</td>" for _label, attr in TABLE_COLUMNS)
        body.append(f'<tr data-id="{record.id}">{cells}</tr>')
    if view.empty_row_count > 0:
        body.append(
            f'<tr class="empty-rows" style="height:{view.padding_height_px}px">'
            f'<td colspan="{len(TABLE_COLUMNS)}"></td></tr>'
        )
    return (
        '<div class="poke-table-wrapper"><table class="poke-table">'
        f"<thead><tr>{head}</tr></thead>"
        f"<tbody>{''.join(body)}</tbody>"
        "</table></div>"
    )


def render_pager(view: TableView) -> None:
    cols = st.columns([2, 1, 2, 1, 1], vertical_alignment="center")
    with cols[0]:
        st.markdown('<div class="pager-label">Rows per page:</div>', unsafe_allow_html=True)
    with cols[1]:
        st.selectbox(
            "Rows per page",
            list(ROWS_PER_PAGE_OPTIONS),
            key="page_size",
            format_func=format_page_size,
            on_change=_handle_page_size_change,
            label_visibility="collapsed",
        )
    with cols[2]:
        st.markdown(f'<div class="pager-label">{html.escape(view.range_label)}</div>', unsafe_allow_html=True)
    with cols[3]:
        st.button(
            "‹",
            key="page_prev",
            help="Previous page",
            disabled=not view.has_previous,
            on_click=_step_page,
            args=(-1, view.total_pages),
            use_container_width=True,
        )
    with cols[4]:
        st.button(
            "›",
            key="page_next",
            help="Next page",
            disabled=not view.has_next,
            on_click=_step_page,
            args=(1, view.total_pages),
            use_container_width=True,
        )


def main() -> None:
    set_page_metadata()
    ensure_state()

    records = get_records(resolve_data_source())

    filter_cols = st.columns(2)
    with filter_cols[0]:
        st.text_input("Search", key="name_query", placeholder="Search...", label_visibility="collapsed")
    with filter_cols[1]:
        st.text_input("Power threshold", key="min_power_text", placeholder="Power threshold")

    criteria = FilterCriteria(
        name_query=st.session_state["name_query"],
        min_power=coerce_min_power(st.session_state["min_power_text"]),
    )
    view = build_view(records, criteria, current_page_state())
    # Filters may shrink the result set below the current page.
    st.session_state["page_index"] = view.page_state.page_index

    st.markdown(render_summary_html(view), unsafe_allow_html=True)
    if not records:
        st.warning("No Pokémon data could be loaded.")
    elif not view.total_filtered_count:
        st.warning("No Pokémon match the current filters. Try a different combination.")
    if view.skipped_count:
        st.caption(f"{view.skipped_count} malformed record(s) hidden.")

    st.markdown(render_table_html(view), unsafe_allow_html=True)
    render_pager(view)


if __name__ == "__main__":
    configure_logging()
    main()
