"""
Submit section — consent toggle, submit control and in-flight progress.

The button stays disabled until every question is answered and consent is
given; while a submission runs, a progress bar shows upload/write progress.
"""

import logging

import streamlit as st

from voiceform.core.models import SubmissionProgress
from voiceform.services.form import InterviewForm
from voiceform.services.progress import display_progress
from voiceform.ui.runtime import AsyncRunner

logger = logging.getLogger(__name__)


def _consent_label(privacy_policy_url: str) -> str:
    if privacy_policy_url:
        return f"Ich stimme den [Datenschutzbestimmungen]({privacy_policy_url}) zu."
    return "Ich stimme den Datenschutzbestimmungen zu."


def render_submit(form: InterviewForm, runner: AsyncRunner, privacy_policy_url: str = "") -> None:
    """Render consent + submit and run the submission when clicked."""
    form.consent = st.checkbox(
        _consent_label(privacy_policy_url),
        value=form.consent,
        key="consent",
        disabled=form.coordinator.is_pending,
    )

    error = form.coordinator.last_error
    if error is not None:
        st.error(error.detail)

    clicked = st.button(
        "Interview einreichen",
        type="primary",
        disabled=not form.can_submit(),
        use_container_width=True,
    )
    if not clicked:
        return

    bar = st.progress(0, text="wird eingereicht (0%)")

    def _on_progress(update: SubmissionProgress) -> None:
        percent = display_progress(update.percent)
        bar.progress(percent, text=f"wird eingereicht ({percent}%)")

    form.coordinator.set_progress_callback(_on_progress)
    try:
        result = runner.run(form.submit())
    finally:
        form.coordinator.set_progress_callback(None)

    if result.ok:
        st.session_state.view = "submitted"
    else:
        logger.info("Submission failed: %s", result.error.detail if result.error else "unknown")
    st.rerun()
