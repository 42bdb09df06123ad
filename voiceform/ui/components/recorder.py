"""
Recorder component — per-question audio capture.

The browser records through ``st.audio_input``; each finished recording is
run through a :class:`RecordingSession` and handed to the question's slot.
The widget key is rotated after every take so the next take starts empty.
"""

import logging

import streamlit as st

from voiceform.core.exceptions import CaptureUnavailableError, RecordingStateError
from voiceform.services.audio.capture import AudioInputCapture
from voiceform.services.form import InterviewForm

logger = logging.getLogger(__name__)


def _widget_key(question_id: str) -> str:
    counter_key = f"_rec_counter_{question_id}"
    if counter_key not in st.session_state:
        st.session_state[counter_key] = 0
    return f"audio_input_{question_id}_{st.session_state[counter_key]}"


def _rotate_widget(question_id: str) -> None:
    st.session_state[f"_rec_counter_{question_id}"] += 1


@st.dialog("Mikrofon nicht verfügbar")
def _capture_unavailable_dialog(detail: str) -> None:
    st.error(detail)
    if st.button("OK", type="primary", use_container_width=True):
        st.session_state.pop("_capture_alert", None)
        st.rerun()


def _capture(form: InterviewForm, question_id: str, payload: bytes) -> None:
    """Turn a finished browser recording into a clip on the slot."""
    try:
        clip = form.record_clip(question_id, AudioInputCapture(payload))
    except CaptureUnavailableError as exc:
        logger.warning("Capture unavailable for %s: %s", question_id, exc.detail)
        st.session_state["_capture_alert"] = exc.detail
        return
    except RecordingStateError as exc:
        logger.warning("Recording for %s rejected: %s", question_id, exc.detail)
        st.session_state[f"_rec_error_{question_id}"] = exc.detail
        return

    st.session_state.pop(f"_rec_error_{question_id}", None)
    if clip is not None and form.processor.is_silent(clip.data):
        st.session_state[f"_rec_warning_{question_id}"] = (
            "Die Aufnahme scheint stumm zu sein. Bitte prüfen Sie Ihr Mikrofon."
        )
    else:
        st.session_state.pop(f"_rec_warning_{question_id}", None)


def _render_replace_confirmation(form: InterviewForm, question_id: str) -> bool:
    """Show the destructive-action prompt. Returns True while it is pending."""
    slot = form.slot(question_id)
    if not slot.pending_replace:
        return False

    st.warning("Die vorherige Aufnahme wird gelöscht. Möchten Sie fortfahren?")
    yes, cancel = st.columns(2)
    if yes.button("Ja", key=f"replace_yes_{question_id}"):
        slot.confirm_replace()
        st.rerun()
    if cancel.button("Abbrechen", key=f"replace_no_{question_id}"):
        slot.cancel_replace()
        st.rerun()
    return True


def render_capture_alert() -> None:
    """Open the blocking alert if a take could not reach the microphone."""
    detail = st.session_state.get("_capture_alert")
    if detail:
        _capture_unavailable_dialog(detail)


def render_recorder(form: InterviewForm, question_id: str, disabled: bool = False) -> None:
    """Render the record control for one question."""
    slot = form.slot(question_id)

    error = st.session_state.get(f"_rec_error_{question_id}")
    if error:
        st.error(error)
    warning = st.session_state.get(f"_rec_warning_{question_id}")
    if warning:
        st.warning(warning)

    if _render_replace_confirmation(form, question_id):
        return

    if not slot.ready_for_take:
        if st.button("Neue Aufnahme", key=f"new_take_{question_id}", disabled=disabled):
            slot.request_new_recording()
            st.rerun()
        return

    audio = st.audio_input(
        "Antwort aufnehmen",
        key=_widget_key(question_id),
        disabled=disabled,
    )
    if audio is not None:
        _capture(form, question_id, audio.getvalue())
        _rotate_widget(question_id)
        st.rerun()
