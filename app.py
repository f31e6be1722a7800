# app.py: Seismic Lands Streamlit app

"""
Interactive choropleth of New Zealand regional seismic statistics with a
coordinated bar chart. The dropdown switches the displayed attribute; the
map colours and the bar order and colours follow the selection.

Data is loaded and joined once per server process. Each selection change
goes through ``MapSession.select`` which recomputes the colour classes and
notifies the views.

Run from the repository root:

    streamlit run app.py
"""

import logging

import streamlit as st
from streamlit_folium import st_folium

from seismic.config import load_settings
from seismic.join import join_records
from seismic.loader import DataLoadError, load_sources
from seismic.render import breakpoint_labels, build_chart, build_map
from seismic.session import MapSession

LOGGER = logging.getLogger(__name__)

TITLE = "Seismic Lands"
DATES = "Information for March 7th and 8th 2017"

st.set_page_config(page_title=TITLE, layout="wide")


@st.cache_resource
def load_joined_features():
    """Load both sources and join them; cached for the server lifetime."""
    settings = load_settings()
    sources = load_sources(settings)
    return settings, join_records(sources.features, sources.rows, settings.attributes, settings.key)


def _redraw(session: MapSession, classification) -> None:
    st.session_state["views"] = {
        "map": build_map(session.features, session.attribute, classification, session.settings),
        "chart": build_chart(session.ranking(), session.attribute, classification, session.settings),
        "labels": breakpoint_labels(classification),
    }


def get_session() -> MapSession:
    if "map_session" not in st.session_state:
        settings, features = load_joined_features()
        session = MapSession(features, settings)
        session.subscribe(_redraw)
        LOGGER.info("Started map session on %s", session.attribute)
        _redraw(session, session.classification)
        st.session_state["map_session"] = session
    return st.session_state["map_session"]


def _on_attribute_change() -> None:
    get_session().select(st.session_state["attribute_select"])


def main() -> None:
    st.markdown(f"## **{TITLE}**")
    st.caption(DATES)

    try:
        session = get_session()
    except DataLoadError as exc:
        st.error(f"Could not load map data: {exc}. See data/README.md for the expected input files.")
        st.stop()

    st.selectbox(
        "Select Attribute",
        session.settings.attributes,
        index=session.settings.attributes.index(session.attribute),
        key="attribute_select",
        on_change=_on_attribute_change,
    )

    views = st.session_state["views"]
    col_map, col_chart = st.columns([0.5, 0.5])
    with col_map:
        st_folium(views["map"], width=620, height=600, key=f"map_{session.attribute}")
    with col_chart:
        st.plotly_chart(views["chart"], use_container_width=True)
        with st.expander("Classes", expanded=False):
            for color, label in zip(session.classification.colors, views["labels"]):
                st.markdown(
                    f"<span style='background:{color};padding:0 12px'>&nbsp;</span> {label}",
                    unsafe_allow_html=True,
                )
            st.markdown(
                f"<span style='background:{session.classification.fallback};padding:0 12px'>&nbsp;</span> no data",
                unsafe_allow_html=True,
            )


if __name__ == "__main__":
    main()
