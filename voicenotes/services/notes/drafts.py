"""Note drafts seeded from recognized speech.

The capture controller's completion callback hands its text here; saving
the draft belongs to the note store, which lives outside this package.
"""

import logging

from voicenotes.core.models import NOTE_COLORS, NoteDraft

logger = logging.getLogger(__name__)


def draft_from_transcript(text: str, title: str = "", color: str = "blue") -> NoteDraft:
    """Build an unsaved note whose content is the transcript.

    Raises:
        ValueError: If ``text`` is blank or ``color`` is not in the palette.
    """
    content = text.strip()
    if not content:
        raise ValueError("Cannot draft a note from an empty transcript")
    if color not in NOTE_COLORS:
        raise ValueError(f"Unknown note color: {color} (expected one of {', '.join(NOTE_COLORS)})")
    return NoteDraft(title=title.strip(), content=content, color=color)


class NoteDraftCollector:
    """Completion callback that keeps every draft it receives, newest last."""

    def __init__(self, color: str = "blue") -> None:
        self._color = color
        self.drafts: list[NoteDraft] = []

    def __call__(self, text: str) -> None:
        draft = draft_from_transcript(text, color=self._color)
        self.drafts.append(draft)
        logger.info("Drafted note from transcript (%d characters)", len(draft.content))

    @property
    def latest(self) -> NoteDraft | None:
        return self.drafts[-1] if self.drafts else None
