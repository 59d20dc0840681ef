"""Unit tests for user input sanitization."""

from pantry_chef.hooks.sanitize_input import sanitize_user_input


class TestSanitizeUserInput:
    """Test that user text is made safe for prompt interpolation."""

    def test_script_tags_newlines_and_length(self):
        """Test brackets removed, newline runs collapsed and length capped."""
        text = "<script>alert(1)</script>" + "\n" * 5 + "a" * 200

        result = sanitize_user_input(text, max_length=100)

        assert "<" not in result and ">" not in result
        assert "\n\n\n" not in result
        assert len(result) <= 100
        assert result.startswith("scriptalert(1)/script\n\naaa")

    def test_removes_all_bracket_characters(self):
        assert sanitize_user_input('{"role": "system"} [ignore] <b>') == '"role": "system" ignore b'

    def test_keeps_two_newlines(self):
        assert sanitize_user_input("less salt\n\nmore garlic") == "less salt\n\nmore garlic"

    def test_normalizes_line_endings(self):
        assert sanitize_user_input("a\r\n\r\n\r\n\r\nb") == "a\n\nb"

    def test_strips_control_characters(self):
        assert sanitize_user_input("spicy\x00\x07 please\x1b") == "spicy please"

    def test_trims_surrounding_whitespace(self):
        assert sanitize_user_input("   make it vegan   ") == "make it vegan"

    def test_empty_and_none(self):
        assert sanitize_user_input("") == ""
        assert sanitize_user_input(None) == ""

    def test_default_length_is_100(self):
        assert len(sanitize_user_input("b" * 250)) == 100

    def test_truncation_does_not_leave_trailing_space(self):
        assert sanitize_user_input("word " * 30, max_length=10) == "word word"

    def test_idempotent(self):
        """Test that sanitizing twice changes nothing."""
        once = sanitize_user_input("<b>hi</b>\n\n\n\nthere {x}", max_length=50)

        assert sanitize_user_input(once, max_length=50) == once
