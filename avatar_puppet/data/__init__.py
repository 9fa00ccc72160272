"""
Recorded landmark sessions for deterministic replay.
"""

from avatar_puppet.data.recording import (
    Recording,
    RecordingError,
    load_recording,
    save_recording,
)

__all__ = [
    "Recording",
    "RecordingError",
    "load_recording",
    "save_recording",
]
