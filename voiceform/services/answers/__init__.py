"""
Answers module - per-question answer slots and clip preview handles.
"""

from .preview import PreviewRegistry
from .slot import AnswerSlot, ReportCallback

__all__ = ["AnswerSlot", "PreviewRegistry", "ReportCallback"]
