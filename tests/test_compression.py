"""
Unit tests for prompt compression.
"""

from api_optimizer.core.compression import (
    MAX_SYSTEM_LENGTH,
    TRUNCATION_MARKER,
    compress_prompt,
)
from api_optimizer.core.request import Message


class TestCompressPrompt:
    """Test duplicate removal and system truncation."""

    def test_drops_consecutive_duplicates(self):
        messages = [
            Message("user", "hello"),
            Message("user", "hello"),
            Message("assistant", "hi"),
        ]
        assert compress_prompt(messages) == [Message("user", "hello"), Message("assistant", "hi")]

    def test_duplicate_with_different_role_is_dropped(self):
        messages = [Message("user", "ok"), Message("assistant", "ok")]
        assert compress_prompt(messages) == [Message("user", "ok")]

    def test_non_adjacent_duplicates_are_kept(self):
        messages = [Message("user", "a"), Message("assistant", "b"), Message("user", "a")]
        assert compress_prompt(messages) == messages

    def test_truncates_long_system_message(self):
        messages = [Message("system", "s" * 1500), Message("user", "question")]
        compressed = compress_prompt(messages)
        assert compressed[0].role == "system"
        assert compressed[0].content == "s" * MAX_SYSTEM_LENGTH + TRUNCATION_MARKER
        assert compressed[1] == Message("user", "question")

    def test_system_message_at_limit_is_untouched(self):
        messages = [Message("system", "s" * 1000)]
        assert compress_prompt(messages) == messages

    def test_long_user_message_is_untouched(self):
        messages = [Message("user", "u" * 5000)]
        assert compress_prompt(messages) == messages

    def test_empty_list(self):
        assert compress_prompt([]) == []

    def test_input_is_not_mutated(self):
        messages = [Message("user", "x"), Message("user", "x")]
        compress_prompt(messages)
        assert len(messages) == 2
