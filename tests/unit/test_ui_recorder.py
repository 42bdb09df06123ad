"""Tests for the recorder component's capture handling (Streamlit is mocked)."""

from unittest.mock import MagicMock, patch

import pytest

from voiceform.services.audio.capture import AudioInputCapture
from voiceform.services.form import InterviewForm
from voiceform.ui.components import recorder


@pytest.fixture
def mock_st():
    with patch.object(recorder, "st") as st:
        st.session_state = {}
        yield st


@pytest.fixture
def form(questions, mock_gateway, settings):
    return InterviewForm(questions, mock_gateway, settings)


class TestCaptureAlert:
    def test_denied_microphone_opens_blocking_dialog(self, form, mock_st):
        recorder._capture(form, "q0", None)

        assert "_capture_alert" in mock_st.session_state
        assert form.slot("q0").clips == ()

        with patch.object(recorder, "_capture_unavailable_dialog") as dialog:
            recorder.render_capture_alert()
        dialog.assert_called_once_with(mock_st.session_state["_capture_alert"])

    def test_busy_microphone_opens_blocking_dialog(self, form, mock_st):
        form.start_recording("q0", AudioInputCapture(b"pending"))

        recorder._capture(form, "q1", b"audio")

        assert "busy" in mock_st.session_state["_capture_alert"]
        assert form.slot("q1").clips == ()

    def test_no_dialog_without_alert(self, mock_st):
        with patch.object(recorder, "_capture_unavailable_dialog") as dialog:
            recorder.render_capture_alert()
        dialog.assert_not_called()

    def test_successful_take_reaches_slot(self, form, mock_st, sample_wav_bytes):
        form.processor.is_silent = MagicMock(return_value=False)

        recorder._capture(form, "q0", sample_wav_bytes)

        assert len(form.slot("q0").clips) == 1
        assert "_capture_alert" not in mock_st.session_state
