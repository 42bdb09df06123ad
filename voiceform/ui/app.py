"""
VoiceForm Streamlit UI — main entry point.

Run with: ``streamlit run voiceform/ui/app.py``

Views: "form" (questions, recordings, consent, submit) and "submitted"
(read-only confirmation). No other navigation.
"""

# ---------------------------------------------------------------------------
# Ensure project root is on sys.path so ``from voiceform.xxx`` imports work.
# Streamlit replaces sys.path[0] with the script directory (voiceform/ui/),
# which removes the project root needed for absolute imports.
# ---------------------------------------------------------------------------
import sys  # noqa: E402
from pathlib import Path  # noqa: E402

_project_root = str(Path(__file__).resolve().parent.parent.parent)
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

import streamlit as st  # noqa: E402

from voiceform.services.form import InterviewForm  # noqa: E402
from voiceform.ui.components.personal_info import render_personal_info  # noqa: E402
from voiceform.ui.components.progress_bar import render_progress  # noqa: E402
from voiceform.ui.components.question_item import render_question  # noqa: E402
from voiceform.ui.components.recorder import render_capture_alert  # noqa: E402
from voiceform.ui.components.submit_button import render_submit  # noqa: E402
from voiceform.ui.runtime import get_runtime  # noqa: E402

# ---------------------------------------------------------------------------
# Page config (must be first Streamlit call)
# ---------------------------------------------------------------------------
st.set_page_config(
    page_title="VoiceForm",
    page_icon="\U0001f399️",
    layout="centered",
)

runtime = get_runtime()
settings = runtime.settings

# ---------------------------------------------------------------------------
# Session state defaults
# ---------------------------------------------------------------------------
if "form" not in st.session_state:
    st.session_state.form = InterviewForm(runtime.questions, runtime.gateway, settings)
if "view" not in st.session_state:
    st.session_state.view = "form"

form: InterviewForm = st.session_state.form

# ---------------------------------------------------------------------------
# Header
# ---------------------------------------------------------------------------
st.title(settings.form_title)
st.write(settings.form_intro)

# ---------------------------------------------------------------------------
# Submitted view (read-only)
# ---------------------------------------------------------------------------
if st.session_state.view == "submitted":
    render_progress(100)
    st.success("Vielen Dank! Ihr Interview wurde erfolgreich eingereicht.")
    st.caption(f"Referenz: {form.coordinator.document_id}")
    st.stop()

# ---------------------------------------------------------------------------
# Form view
# ---------------------------------------------------------------------------
render_progress(form.completion)

locked = form.coordinator.is_pending

if settings.collect_personal_info:
    form.personal_info = render_personal_info(form.personal_info, disabled=locked)

for question in form.questions:
    render_question(form, question, disabled=locked)

render_submit(form, runtime.runner, settings.privacy_policy_url)

render_capture_alert()
