"""Question card: written answer, record control and the list of takes."""

import streamlit as st

from voiceform.core.models import Question
from voiceform.services.form import InterviewForm
from voiceform.ui.components.recorder import render_recorder


def _render_clips(form: InterviewForm, question_id: str, disabled: bool) -> None:
    """Preview every take, with delete + confirm for each."""
    slot = form.slot(question_id)
    for index, (clip, handle) in enumerate(zip(slot.clips, slot.preview_handles, strict=True)):
        preview = form.previews.resolve(handle)
        if preview is None:
            continue

        label = f"Aufnahme {index + 1}"
        if clip.duration is not None:
            label += f" ({clip.duration:.1f} s)"
        st.caption(label)
        st.audio(preview.data, format=clip.content_type)

        if slot.pending_deletion == index:
            st.warning("Diese Aufnahme wird gelöscht. Möchten Sie fortfahren?")
            yes, cancel = st.columns(2)
            if yes.button("Ja", key=f"delete_yes_{question_id}_{clip.id}"):
                slot.confirm_clip_deletion()
                st.rerun()
            if cancel.button("Abbrechen", key=f"delete_no_{question_id}_{clip.id}"):
                slot.cancel_clip_deletion()
                st.rerun()
        elif st.button("Löschen", key=f"delete_{question_id}_{clip.id}", disabled=disabled):
            slot.request_clip_deletion(index)
            st.rerun()


def render_question(form: InterviewForm, question: Question, disabled: bool = False) -> None:
    """Render one question card and push edits into its answer slot."""
    slot = form.slot(question.id)

    with st.container(border=True):
        st.subheader(question.text)

        text = st.text_area(
            "Schriftliche Antwort",
            value=slot.text,
            key=f"text_{question.id}",
            placeholder="Geben Sie Ihre Antwort hier ein oder per Audio...",
            height=120,
            disabled=disabled,
        )
        if text != slot.text:
            slot.on_text_changed(text)

        st.markdown("**Audio Antwort**")
        render_recorder(form, question.id, disabled=disabled)
        _render_clips(form, question.id, disabled)
