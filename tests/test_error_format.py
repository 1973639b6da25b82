"""Tests for display-safe error formatting."""

from __future__ import annotations

from box_collection.errors import BoxAlreadyExists
from box_collection.utils.error_format import escape_markup
from box_collection.utils.error_format import format_error_message


class TestFormatErrorMessage:
    def test_box_errors_shown_without_type(self):
        message = format_error_message(BoxAlreadyExists("pkg", "virtualbox", "1.0"))
        assert message.startswith("The box 'pkg' (v1.0)")

    def test_other_errors_get_type_prefix(self):
        assert format_error_message(ValueError("invalid input")) == "ValueError: invalid input"

    def test_type_prefix_can_be_disabled(self):
        assert format_error_message(ValueError("invalid input"), include_type=False) == "invalid input"

    def test_empty_message_uses_friendly_fallback(self):
        assert format_error_message(KeyboardInterrupt()) == "KeyboardInterrupt: Operation interrupted by user."

    def test_empty_unknown_error(self):
        assert format_error_message(RuntimeError()) == "RuntimeError: (no additional details)"


class TestEscapeMarkup:
    def test_brackets_survive(self):
        assert "/boxes/pkg" in escape_markup("[/boxes/pkg]")

    def test_plain_text_unchanged(self):
        assert escape_markup("Box not found") == "Box not found"

    def test_non_string_input(self):
        assert escape_markup(ValueError("boom")) == "boom"
