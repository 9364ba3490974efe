"""Tests for todo field rules."""

import pytest

from todofx.domain.validation import (
    DESCRIPTION_MESSAGE,
    TITLE_MESSAGE,
    TODO_RULES,
    TodoDraft,
    description_rule,
    title_rule,
)


def _errors(title: str, description: str | None = None) -> list[str]:
    draft = TodoDraft(title=title, description=description)
    return [e.field for e in (rule(draft) for rule in TODO_RULES) if e is not None]


class TestTitleRule:
    @pytest.mark.parametrize("title", ["", "   ", "x" * 201], ids=["empty", "blank", "too-long"])
    def test_rejects(self, title: str) -> None:
        err = title_rule(TodoDraft(title=title))
        assert err is not None
        assert err.field == "title"
        assert err.message == TITLE_MESSAGE

    @pytest.mark.parametrize("title", ["a", "x" * 200], ids=["short", "at-limit"])
    def test_accepts(self, title: str) -> None:
        assert title_rule(TodoDraft(title=title)) is None


class TestDescriptionRule:
    def test_none_is_fine(self) -> None:
        assert description_rule(TodoDraft(title="t")) is None

    def test_at_limit_is_fine(self) -> None:
        assert description_rule(TodoDraft(title="t", description="d" * 1000)) is None

    def test_over_limit(self) -> None:
        err = description_rule(TodoDraft(title="t", description="d" * 1001))
        assert err is not None
        assert err.message == DESCRIPTION_MESSAGE


class TestAccumulation:
    def test_both_fields_reported(self) -> None:
        assert _errors("", "d" * 1001) == ["title", "description"]

    def test_valid_draft(self) -> None:
        assert _errors("Buy milk", "2 litres") == []

    def test_messages_match_original_wording(self) -> None:
        assert TITLE_MESSAGE == "Title is required and must be less than 200 characters"
        assert DESCRIPTION_MESSAGE == "Description must be less than 1000 characters"
