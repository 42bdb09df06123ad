"""
Question catalogue.

The question set is fixed at process start: either the built-in placeholder
list or a YAML file (a plain list of strings, or ``{"questions": [...]}``).
Keys are derived from position, so reordering the file changes the keys.
"""

import logging
from pathlib import Path

import yaml

from voiceform.core.exceptions import QuestionCatalogError
from voiceform.core.models import Question

logger = logging.getLogger(__name__)

DEFAULT_QUESTIONS: tuple[str, ...] = tuple(f"Hier steht Frage {i}?" for i in range(1, 11))


def question_key(index: int) -> str:
    """Stable ordinal-derived key (``q0`` .. ``qN``)."""
    return f"q{index}"


def build_questions(texts: list[str] | tuple[str, ...]) -> tuple[Question, ...]:
    """Turn an ordered list of texts into keyed, immutable questions."""
    return tuple(
        Question(id=question_key(i), index=i, text=text) for i, text in enumerate(texts)
    )


def load_questions(path: str | Path) -> tuple[Question, ...]:
    """Load question texts from a YAML file.

    Raises:
        QuestionCatalogError: File missing, unparsable, empty, or not a list of strings.
    """
    file_path = Path(path)
    try:
        raw = yaml.safe_load(file_path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise QuestionCatalogError(f"Cannot read question file {file_path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise QuestionCatalogError(f"Invalid YAML in {file_path}: {exc}") from exc

    if isinstance(raw, dict):
        raw = raw.get("questions")
    if not isinstance(raw, list) or not raw:
        raise QuestionCatalogError(f"{file_path} must contain a non-empty list of questions")
    if not all(isinstance(item, str) and item.strip() for item in raw):
        raise QuestionCatalogError(f"{file_path} contains blank or non-text questions")

    logger.info("Loaded %d questions from %s", len(raw), file_path)
    return build_questions([item.strip() for item in raw])


def resolve_questions(questions_file: str = "") -> tuple[Question, ...]:
    """The configured question set: *questions_file* if given, else the built-in one."""
    if questions_file:
        return load_questions(questions_file)
    return build_questions(DEFAULT_QUESTIONS)
