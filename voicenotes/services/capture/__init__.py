"""
Capture module - client-side recording lifecycle and relay invocation.
"""

from .controller import CaptureController
from .media import MediaDevices, MediaRecorder, MediaStream, MediaTrack
from .relay_client import RelayClient
from .session import RecordingSession

__all__ = [
    "CaptureController",
    "MediaDevices",
    "MediaRecorder",
    "MediaStream",
    "MediaTrack",
    "RecordingSession",
    "RelayClient",
]
