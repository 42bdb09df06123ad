"""Optional respondent details block (enabled by ``collect_personal_info``)."""

import streamlit as st

from voiceform.core.models import PersonalInfo

_FIELDS = (
    ("name", "Vor- und Nachname"),
    ("company", "Unternehmen"),
    ("position", "Position"),
)


def render_personal_info(current: PersonalInfo, disabled: bool = False) -> PersonalInfo:
    """Render the three inputs and return the updated values."""
    with st.container(border=True):
        st.subheader("Persönliche Informationen")
        values = {
            field: st.text_input(
                label,
                value=getattr(current, field),
                key=f"personal_{field}",
                disabled=disabled,
            )
            for field, label in _FIELDS
        }
    return PersonalInfo(**values)
