#!/usr/bin/env python3
"""
Evidence timeline viewer.

Loads an evidence dataset (JSON), lays it out on three tracks with the
evidence_timeline engine and shows it as a Plotly figure.

Dependencies:
    pip install -e .

Run:
    streamlit run app.py
"""

from __future__ import annotations

import logging
from typing import Optional

import streamlit as st

from evidence_timeline import (
    AppSettings,
    DatasetLoadError,
    JsonFileStore,
    LabelOverrideStore,
    RenderConfig,
    TimelineController,
    Track,
    load_dataset,
)
from evidence_timeline.interaction import DragState
from evidence_timeline.labels import LabelPlacement
from evidence_timeline.models import Event, TRACK_LABELS
from evidence_timeline.overrides import Point

logger = logging.getLogger(__name__)

TOGGLES = [
    ("show_t1", "Show T1: direct sources", True),
    ("show_t2", "Show T2: secondary view", True),
    ("show_t3", "Show T3: micro-actions", True),
    ("expand_sources", "Expand sources (no deduplication)", False),
    ("show_chains", "Show communication chains", True),
    ("show_postwar", "Show postwar reconstructions", False),
    ("highlight_gaps", "Highlight information gaps", False),
    ("show_uncertainty", "Show temporal uncertainty", True),
]


# -----------------------
# Hover text
# -----------------------

def wrap_text(text: str, width: int = 30) -> str:
    """Insert <br> every `width` characters without splitting words."""
    if not text:
        return ""
    words = text.split()
    lines = []
    current = []
    count = 0

    for w in words:
        if count + len(w) + len(current) > width:
            lines.append(" ".join(current))
            current = [w]
            count = len(w)
        else:
            current.append(w)
            count += len(w)

    if current:
        lines.append(" ".join(current))

    return "<br>".join(lines)


def event_hover(event: Event) -> str:
    parts = [
        f"<b>{event.type_label}</b>",
        f"ID: {event.id or 'n/c'}",
        f"Date: {event.raw_start or 'n/c'}",
        f"Confidence: {event.confidence.value} / {event.precision.value}",
    ]
    if event.place:
        parts.append(f"Place: {event.place}")
    if event.evidence_class:
        parts.append(f"Evidence: {event.evidence_class}")
    if event.description:
        parts.append(wrap_text(event.description, width=50))
    return "<br>".join(parts)


# -----------------------
# State
# -----------------------

def remember_click(placement: LabelPlacement) -> None:
    st.session_state.selected_event = placement.event_ref


def make_controller(dataset, settings: AppSettings) -> TimelineController:
    store = LabelOverrideStore(JsonFileStore(settings.override_store_path))
    return TimelineController(
        dataset,
        viewport_width=settings.default_viewport_width,
        store=store,
        hover_text=event_hover,
        on_click=remember_click,
    )


def load_into_state(source, settings: AppSettings) -> bool:
    try:
        dataset = load_dataset(source)
    except DatasetLoadError as e:
        logger.error("Dataset load failed: %s", e)
        st.session_state.controller = None
        st.session_state.load_error = e.reason
        return False
    st.session_state.controller = make_controller(dataset, settings)
    st.session_state.load_error = None
    st.session_state.selected_event = None
    return True


def init_state(settings: AppSettings):
    if "controller" not in st.session_state:
        st.session_state.controller = None
        st.session_state.load_error = None
        st.session_state.selected_event = None
        if settings.data_path is not None:
            load_into_state(settings.data_path, settings)


# -----------------------
# Sidebar
# -----------------------

def data_tab(settings: AppSettings):
    json_file = st.file_uploader("Upload timeline data.json", type="json")
    if st.button("Load JSON data"):
        if json_file is None:
            st.error("Please upload a JSON file.")
        elif load_into_state(json_file, settings):
            st.success("Loaded data from JSON.")

    controller: Optional[TimelineController] = st.session_state.controller
    if controller is None:
        return
    st.markdown("---")
    st.subheader("Statistics")
    for track in Track:
        st.metric(TRACK_LABELS[track], len(controller.dataset.events(track)))
    st.metric("Chain links", len(controller.dataset.chain_links))
    st.metric("Information gaps", len(controller.dataset.gaps))
    for key, value in controller.dataset.statistics.items():
        if isinstance(value, (int, float)):
            st.caption(f"{key}: {value}")


def display_tab(settings: AppSettings) -> RenderConfig:
    values = {}
    for name, label, default in TOGGLES:
        values[name] = st.checkbox(label, value=default, key=f"toggle_{name}")

    st.markdown("---")
    st.slider(
        "Viewport width (px)",
        min_value=480,
        max_value=2400,
        value=settings.default_viewport_width,
        step=20,
        key="viewport_width",
        help="Widths under 768 px use the narrow layout, under 1024 px the medium one.",
    )
    return RenderConfig(**values)


def chains_tab(controller: TimelineController):
    links = controller.dataset.chain_links
    if not links:
        st.caption("No communication chains in this dataset.")
        return None
    options = ["(none)"] + [
        f"{i}: {link.from_id} → {link.to_id} ({link.link_type.value})" for i, link in enumerate(links)
    ]
    choice = st.selectbox("Highlight the chain through", options, key="chain_hover")
    if choice == "(none)":
        return None
    return links[int(choice.split(":", 1)[0])]


def labels_tab(controller: TimelineController):
    result = controller.result
    if result is None or not result.all_labels():
        st.caption("No floating labels in the current view.")
        return

    track = st.radio(
        "Track",
        [Track.PRIMARY, Track.SECONDARY],
        format_func=lambda t: TRACK_LABELS[t],
        key="label_track",
    )
    placements = result.labels.get(track, [])
    if not placements:
        st.caption("No labels on this track.")
        return

    options = {f"{p.index}: {p.text}": p for p in placements}
    placement = options[st.selectbox("Label", list(options.keys()), key="label_select")]

    col_x, col_y = st.columns(2)
    with col_x:
        x = st.number_input("x", value=float(placement.resolved_x), step=5.0, key=f"label_x_{track.value}_{placement.index}")
    with col_y:
        y = st.number_input("y", value=float(placement.resolved_y), step=5.0, key=f"label_y_{track.value}_{placement.index}")

    if st.button("Move label", key="move_label_btn"):
        outcome = controller.move_label_to(track, placement.index, Point(x, y))
        if outcome is DragState.COMMITTED:
            st.success("Label position saved.")
        elif outcome is DragState.CANCELLED_AS_CLICK:
            st.info("Moved less than the drag threshold; showing details instead.")

    if st.button("Reset label positions", key="reset_labels_btn"):
        controller.reset_labels(track)
        st.success("Saved positions cleared.")


# -----------------------
# App
# -----------------------

def show_selected_event():
    event: Optional[Event] = st.session_state.selected_event
    if event is None:
        return
    st.subheader(event.type_label)
    st.markdown(event_hover(event).replace("<br>", "  \n"))
    if event.source_quote:
        st.caption(event.source_quote)


def main():
    settings = AppSettings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    st.set_page_config(page_title="Evidence timeline", layout="wide")
    init_state(settings)

    st.title("Evidence timeline")

    # ---- SIDEBAR UI ----
    hovered = None
    with st.sidebar:
        st.header("Controls")

        tab_data, tab_display, tab_chains, tab_labels = st.tabs(
                ["Data", "Display", "Chains", "Labels"]
                )

        with tab_data:
            data_tab(settings)

        with tab_display:
            config = display_tab(settings)

        controller: Optional[TimelineController] = st.session_state.controller

        if controller is not None:
            with tab_chains:
                hovered = chains_tab(controller)
            with tab_labels:
                labels_tab(controller)

    # ---- MAIN AREA ----
    if st.session_state.load_error:
        st.error(f"Could not load the timeline data: {st.session_state.load_error}")
        st.stop()

    if controller is None:
        st.info("Upload a timeline dataset (JSON) in the sidebar to begin.")
        return

    controller.config = config
    width = st.session_state.viewport_width
    if width != controller.viewport_width:
        # each committed slider value is already the settled one
        controller.resize(width)
        controller.viewport_width = controller.debouncer.flush()

    if hovered is not None:
        controller.hover_link(hovered)
    else:
        controller.leave_link()

    st.subheader("Timeline")
    st.plotly_chart(controller.surface.to_figure(), use_container_width=False)
    show_selected_event()


if __name__ == "__main__":
    main()
