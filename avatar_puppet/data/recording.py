"""
Recorded landmark sessions.

A recording stores the landmark frames of a capture session as JSON so the
puppeteer can be replayed deterministically without a camera or tracker.
"""

from dataclasses import dataclass, field
import json
import logging
from pathlib import Path
from typing import Iterator, List, Tuple

from avatar_puppet.core.landmarks import LandmarkFrame

logger = logging.getLogger(__name__)

RECORDING_FORMAT = "avatar_puppet_landmarks"
RECORDING_VERSION = "1.0"


class RecordingError(Exception):
    """Raised when a recording cannot be read."""


@dataclass
class Recording:
    """Sequence of landmark frames captured at a nominal frame rate."""

    frames: List[LandmarkFrame] = field(default_factory=list)
    fps: float = 30.0
    name: str = "untitled"

    @property
    def num_frames(self) -> int:
        return len(self.frames)

    @property
    def duration(self) -> float:
        """Get duration in seconds."""
        if not self.frames:
            return 0.0
        first, last = self.frames[0].timestamp, self.frames[-1].timestamp
        if first is not None and last is not None:
            return last - first
        return self.num_frames / self.fps if self.fps > 0 else 0.0

    def add_frame(self, frame: LandmarkFrame):
        self.frames.append(frame)

    def iter_deltas(self) -> Iterator[Tuple[LandmarkFrame, float]]:
        """
        Iterate frames with the time elapsed since the previous frame.

        Timestamps are used when both frames carry one, otherwise the
        nominal frame interval.
        """
        nominal = 1.0 / self.fps if self.fps > 0 else 0.0
        previous = None
        for frame in self.frames:
            if (previous is not None and previous.timestamp is not None
                    and frame.timestamp is not None):
                delta = max(frame.timestamp - previous.timestamp, 0.0)
            else:
                delta = nominal
            yield frame, delta
            previous = frame


def save_recording(recording: Recording, output_path: Path, pretty_print: bool = False):
    """
    Write a recording to a JSON file.

    Args:
        recording: Recording to save
        output_path: Output file path
        pretty_print: Indent the JSON for readability
    """
    export_data = {
        "version": RECORDING_VERSION,
        "format": RECORDING_FORMAT,
        "metadata": {
            "name": recording.name,
            "fps": recording.fps,
            "num_frames": recording.num_frames,
        },
        "frames": [frame.to_dict() for frame in recording.frames],
    }

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w', encoding='utf-8') as f:
        if pretty_print:
            json.dump(export_data, f, indent=2)
        else:
            json.dump(export_data, f)

    logger.info("Saved %d frames to %s", recording.num_frames, output_path)


def load_recording(file_path: Path) -> Recording:
    """
    Read a recording from a JSON file.

    Args:
        file_path: Path to JSON file

    Returns:
        The loaded Recording

    Raises:
        RecordingError: If the file is missing, not JSON, or not a recording
    """
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except OSError as e:
        raise RecordingError(f"Cannot read recording {file_path}: {e}") from e
    except ValueError as e:
        # JSONDecodeError and UnicodeDecodeError
        raise RecordingError(f"Recording {file_path} is not valid JSON: {e}") from e

    if not isinstance(data, dict) or data.get("format") != RECORDING_FORMAT:
        raise RecordingError(f"{file_path} is not an avatar puppet recording")

    metadata = data.get("metadata", {})
    if not isinstance(metadata, dict):
        raise RecordingError(f"Recording {file_path} has malformed metadata")

    try:
        fps = float(metadata.get("fps", 30.0))
    except (TypeError, ValueError) as e:
        raise RecordingError(f"Recording {file_path} has an invalid fps: {e}") from e

    frames = data.get("frames", [])
    if not isinstance(frames, list):
        raise RecordingError(f"Recording {file_path} has no frame list")

    recording = Recording(
        fps=fps,
        name=str(metadata.get("name", Path(file_path).stem)),
    )

    for index, frame_data in enumerate(frames):
        try:
            recording.add_frame(LandmarkFrame.from_dict(frame_data))
        except (TypeError, ValueError, AttributeError) as e:
            raise RecordingError(f"Malformed frame {index} in {file_path}: {e}") from e

    logger.debug("Loaded %d frames from %s", recording.num_frames, file_path)
    return recording
