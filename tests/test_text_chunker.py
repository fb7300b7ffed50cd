"""Unit tests for the outbound text chunker."""
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

import pytest
from services.text_chunker import chunk_text


def _without_whitespace(text: str) -> str:
    return "".join(text.split())


class TestChunkText:
    """Test suite for chunk_text."""

    def test_short_text_single_chunk(self):
        """Test that text within the limit comes back as one trimmed segment."""
        assert chunk_text("  Hello there  ") == ["Hello there"]

    def test_text_exactly_max_size(self):
        """Test the boundary where length equals max_size."""
        text = "a" * 3500
        assert chunk_text(text) == [text]

    def test_splits_on_newline(self):
        """Test that a newline inside the search window is preferred."""
        text = "a" * 80 + "\n" + "b" * 50
        chunks = chunk_text(text, max_size=100, search_window=50)

        assert chunks == ["a" * 80, "b" * 50]

    def test_newline_preferred_over_space(self):
        """Test that a newline wins even when a later space exists."""
        text = "a" * 70 + "\n" + "b" * 10 + " " + "c" * 40
        chunks = chunk_text(text, max_size=100, search_window=50)

        assert chunks[0] == "a" * 70
        assert chunks[1] == "b" * 10 + " " + "c" * 40

    def test_splits_on_space_without_newline(self):
        """Test that the last space is used when no newline is found."""
        text = "word " * 30
        chunks = chunk_text(text, max_size=42, search_window=20)

        for chunk in chunks:
            assert len(chunk) <= 42
            assert not chunk.startswith(" ")
            assert all(part == "word" for part in chunk.split(" "))

    def test_hard_cut_without_boundaries(self):
        """Test a hard cut at max_size when there is no whitespace."""
        text = "x" * 250
        chunks = chunk_text(text, max_size=100)

        assert [len(chunk) for chunk in chunks] == [100, 100, 50]
        assert "".join(chunks) == text

    def test_boundary_outside_search_window_is_ignored(self):
        """Test that a space earlier than the search window does not trigger a cut."""
        text = "a" * 10 + " " + "b" * 200
        chunks = chunk_text(text, max_size=100, search_window=20)

        assert len(chunks[0]) == 100

    def test_long_text_properties(self):
        """Test size limits, non-empty segments and order preservation."""
        paragraphs = [f"Line {i}: " + "concrete delivery details " * (i % 7 + 1) for i in range(400)]
        text = "\n".join(paragraphs)

        chunks = chunk_text(text)

        assert len(chunks) > 1
        for chunk in chunks:
            assert 0 < len(chunk) <= 3500
            assert chunk.strip() == chunk
        assert _without_whitespace("".join(chunks)) == _without_whitespace(text)

    def test_whitespace_runs_produce_no_empty_segments(self):
        """Test that stretches of whitespace do not yield empty segments."""
        text = "a" * 60 + "\n" * 90 + "b" * 60
        chunks = chunk_text(text, max_size=50, search_window=50)

        assert all(chunk.strip() for chunk in chunks)
        assert _without_whitespace("".join(chunks)) == "a" * 60 + "b" * 60

    def test_long_blank_text_returns_single_empty_segment(self):
        assert chunk_text(" " * 4000, max_size=3500) == [""]
        assert chunk_text("  ", max_size=3500) == [""]

    def test_invalid_max_size(self):
        """Test that a non-positive max_size is rejected."""
        with pytest.raises(ValueError, match="max_size must be positive"):
            chunk_text("hello", max_size=0)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
