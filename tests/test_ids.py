"""Tests for paste id generation and id shape checks."""

from app.services.ids import ALPHABET, ID_LENGTH, generate_paste_id, is_valid_paste_id


class TestGeneratePasteId:
    def test_length(self):
        assert len(generate_paste_id()) == ID_LENGTH == 8

    def test_alphabet(self):
        assert len(ALPHABET) == 62
        for _ in range(200):
            assert set(generate_paste_id()) <= set(ALPHABET)

    def test_custom_length(self):
        assert len(generate_paste_id(12)) == 12

    def test_ids_differ(self):
        ids = {generate_paste_id() for _ in range(1000)}
        assert len(ids) == 1000


class TestIsValidPasteId:
    def test_generated_ids_are_valid(self):
        for _ in range(50):
            assert is_valid_paste_id(generate_paste_id())

    def test_max_length(self):
        assert is_valid_paste_id("a" * 10)
        assert not is_valid_paste_id("a" * 11)

    def test_empty(self):
        assert not is_valid_paste_id("")

    def test_rejects_non_alphanumeric(self):
        for bad in ["abc-123", "abc_123", "../etc", "ab cd", "abc\n", "pâte"]:
            assert not is_valid_paste_id(bad), bad
