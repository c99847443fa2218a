"""
Notes module - note drafts seeded from transcripts.
"""

from .drafts import NoteDraftCollector, draft_from_transcript

__all__ = ["NoteDraftCollector", "draft_from_transcript"]
