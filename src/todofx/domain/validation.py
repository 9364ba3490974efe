"""Field rules for todo input.

Each rule inspects a ``TodoDraft`` and returns a ``FieldError`` or None.
``todofx.effects.validate`` runs all of them and accumulates the failures,
so a bad title and a bad description are reported together.
"""

from __future__ import annotations

from pydantic import BaseModel

from todofx.domain.todo import DESCRIPTION_MAX_LENGTH, TITLE_MAX_LENGTH
from todofx.effects.outcome import FieldError

TITLE_MESSAGE = f"Title is required and must be less than {TITLE_MAX_LENGTH} characters"
DESCRIPTION_MESSAGE = f"Description must be less than {DESCRIPTION_MAX_LENGTH} characters"


class TodoDraft(BaseModel):
    """Unvalidated title/description as supplied by a caller."""

    model_config = {"frozen": True}

    title: str
    description: str | None = None


def title_rule(draft: TodoDraft) -> FieldError | None:
    title = draft.title
    if not title or not title.strip() or len(title) > TITLE_MAX_LENGTH:
        return FieldError(field="title", message=TITLE_MESSAGE)
    return None


def description_rule(draft: TodoDraft) -> FieldError | None:
    if draft.description is not None and len(draft.description) > DESCRIPTION_MAX_LENGTH:
        return FieldError(field="description", message=DESCRIPTION_MESSAGE)
    return None


TODO_RULES = (title_rule, description_rule)
