"""Unit tests for note drafts seeded from transcripts."""

import pytest

from voicenotes.core.models import NOTE_COLORS
from voicenotes.services.notes import NoteDraftCollector, draft_from_transcript


class TestDraftFromTranscript:
    def test_content_is_transcript(self):
        draft = draft_from_transcript("  merhaba dünya \n")
        assert draft.content == "merhaba dünya"
        assert draft.title == ""
        assert draft.color == "blue"

    @pytest.mark.parametrize("color", NOTE_COLORS)
    def test_palette_colors(self, color):
        assert draft_from_transcript("x", color=color).color == color

    def test_unknown_color(self):
        with pytest.raises(ValueError, match="Unknown note color"):
            draft_from_transcript("x", color="pink")

    def test_blank_transcript(self):
        with pytest.raises(ValueError, match="empty transcript"):
            draft_from_transcript("   ")


class TestNoteDraftCollector:
    def test_collects_in_order(self):
        collector = NoteDraftCollector(color="green")
        assert collector.latest is None
        collector("first")
        collector("second")
        assert [d.content for d in collector.drafts] == ["first", "second"]
        assert collector.latest.content == "second"
        assert collector.latest.color == "green"
