"""
Streamlit app entrypoint - navigation for the Find Help pages.

This module serves as the landing point and handles:
- Logging setup from the app configuration
- Configuration checks surfaced once per session
- Navigation to the core pages (Find Help, Results, Locations)

Location and filter state live in ``st.session_state`` for the session only.
"""

from __future__ import annotations

import logging
from pathlib import Path

import streamlit as st

st.set_page_config(page_title="Street Support - Find Help", page_icon=":round_pushpin:", layout="wide")

from src.utils.config import configure_logging, validate_configuration  # noqa: E402 - must import after set_page_config

logger = logging.getLogger(__name__)

__all__ = ["show_configuration_status"]


def show_configuration_status():
    """Log configuration issues once per session; never blocks the UI."""
    if st.session_state.get("_config_checked"):
        return
    st.session_state["_config_checked"] = True
    for component, issue in validate_configuration().items():
        logger.warning(f"Configuration issue ({component}): {issue}")


_current_file = Path(__file__).name
_nav_items = [
    ("pages/1_🔎_Find_Help.py", "Find Help", "🔎"),
    ("pages/2_📄_Results.py", "Results", "📄"),
    ("pages/3_📍_Locations.py", "Locations", "📍"),
]


def _build_and_run_app():
    """Build navigation and run the selected page.

    Encapsulated so pages importing this module do not render navigation twice.
    """
    configure_logging()
    show_configuration_status()

    nav_pages = [st.Page(path, title=title, icon=icon) for path, title, icon in _nav_items if path != _current_file]
    pg = st.navigation(nav_pages)
    pg.run()


if __name__ == "__main__":
    _build_and_run_app()
