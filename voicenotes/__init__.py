"""Voice Notes: voice-to-text capture for a personal note-taking app."""

__version__ = "0.1.0"
