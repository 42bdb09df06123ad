"""Completion progress bar shown above the form."""

import streamlit as st

from voiceform.services.progress import display_progress


def render_progress(value: float) -> None:
    """Render the answered-questions bar with a rounded percentage caption."""
    percent = display_progress(value)
    st.progress(percent, text=f"{percent}% Erledigt")
