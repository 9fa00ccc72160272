"""
Landmark frames delivered by an external pose / hand / face tracker.

A frame bundles up to four independent landmark sequences:
- 33 body pose landmarks
- 21 landmarks per hand
- up to 468 face mesh landmarks

Any sequence may be missing. Missing data is never an error, lookups
simply return None.
"""

from dataclasses import dataclass
from typing import Any, NamedTuple, Optional, Sequence


class Landmark(NamedTuple):
    """A single normalized landmark point with optional visibility."""
    x: float
    y: float
    z: float = 0.0
    visibility: float = 1.0


LandmarkList = Sequence[Optional[Landmark]]


# MediaPipe landmark indices for pose
class PoseLandmark:
    """Pose landmark indices matching MediaPipe's model output."""
    NOSE = 0
    LEFT_EYE_INNER = 1
    LEFT_EYE = 2
    LEFT_EYE_OUTER = 3
    RIGHT_EYE_INNER = 4
    RIGHT_EYE = 5
    RIGHT_EYE_OUTER = 6
    LEFT_EAR = 7
    RIGHT_EAR = 8
    MOUTH_LEFT = 9
    MOUTH_RIGHT = 10
    LEFT_SHOULDER = 11
    RIGHT_SHOULDER = 12
    LEFT_ELBOW = 13
    RIGHT_ELBOW = 14
    LEFT_WRIST = 15
    RIGHT_WRIST = 16
    LEFT_PINKY = 17
    RIGHT_PINKY = 18
    LEFT_INDEX = 19
    RIGHT_INDEX = 20
    LEFT_THUMB = 21
    RIGHT_THUMB = 22
    LEFT_HIP = 23
    RIGHT_HIP = 24
    LEFT_KNEE = 25
    RIGHT_KNEE = 26
    LEFT_ANKLE = 27
    RIGHT_ANKLE = 28
    LEFT_HEEL = 29
    RIGHT_HEEL = 30
    LEFT_FOOT_INDEX = 31
    RIGHT_FOOT_INDEX = 32

    COUNT = 33


# Hand landmark indices
class HandLandmark:
    """Hand landmark indices matching MediaPipe's model output."""
    WRIST = 0
    THUMB_CMC = 1
    THUMB_MCP = 2
    THUMB_IP = 3
    THUMB_TIP = 4
    INDEX_FINGER_MCP = 5
    INDEX_FINGER_PIP = 6
    INDEX_FINGER_DIP = 7
    INDEX_FINGER_TIP = 8
    MIDDLE_FINGER_MCP = 9
    MIDDLE_FINGER_PIP = 10
    MIDDLE_FINGER_DIP = 11
    MIDDLE_FINGER_TIP = 12
    RING_FINGER_MCP = 13
    RING_FINGER_PIP = 14
    RING_FINGER_DIP = 15
    RING_FINGER_TIP = 16
    PINKY_MCP = 17
    PINKY_PIP = 18
    PINKY_DIP = 19
    PINKY_TIP = 20

    COUNT = 21


class FaceLandmark:
    """The face mesh indices used for expression detection."""
    UPPER_LIP = 13
    LOWER_LIP = 14
    MOUTH_CENTER = 17
    MOUTH_LEFT_CORNER = 61
    MOUTH_RIGHT_CORNER = 291

    LEFT_EYE_OUTER = 33
    LEFT_EYE_INNER = 133
    LEFT_EYE_TOP = 159
    LEFT_EYE_BOTTOM = 145

    RIGHT_EYE_INNER = 362
    RIGHT_EYE_OUTER = 263
    RIGHT_EYE_TOP = 386
    RIGHT_EYE_BOTTOM = 374

    MESH_SIZE = 468


def landmark_at(landmarks: Optional[LandmarkList], index: int) -> Optional[Landmark]:
    """
    Safe landmark lookup.

    Returns None when the sequence is absent, too short, or holds no
    landmark at ``index``.
    """
    if landmarks is None or index < 0 or index >= len(landmarks):
        return None
    return landmarks[index]


def _row_to_landmark(row) -> Optional[Landmark]:
    """Convert an [x, y, z?, visibility?] row into a Landmark."""
    if row is None:
        return None
    return Landmark(*(float(v) for v in row[:4]))


def _rows_to_landmarks(rows) -> Optional[list[Optional[Landmark]]]:
    if rows is None:
        return None
    return [_row_to_landmark(row) for row in rows]


def _landmarks_to_rows(landmarks: Optional[LandmarkList]) -> Optional[list]:
    if landmarks is None:
        return None
    return [
        None if lm is None else [lm.x, lm.y, lm.z, lm.visibility]
        for lm in landmarks
    ]


def _convert_mediapipe(landmarks) -> Optional[list[Landmark]]:
    """Convert a MediaPipe landmark list to our Landmark format."""
    if landmarks is None:
        return None

    result = []
    for lm in landmarks.landmark:
        result.append(Landmark(
            x=lm.x,
            y=lm.y,
            z=getattr(lm, 'z', 0.0),
            visibility=getattr(lm, 'visibility', 1.0),
        ))
    return result


@dataclass(frozen=True)
class LandmarkFrame:
    """All landmark sequences observed in a single tick."""

    pose: Optional[LandmarkList] = None
    left_hand: Optional[LandmarkList] = None
    right_hand: Optional[LandmarkList] = None
    face: Optional[LandmarkList] = None
    timestamp: Optional[float] = None

    @property
    def has_pose(self) -> bool:
        return bool(self.pose)

    @property
    def has_hands(self) -> bool:
        return bool(self.left_hand) or bool(self.right_hand)

    @property
    def has_face(self) -> bool:
        return bool(self.face)

    @property
    def is_empty(self) -> bool:
        """True when no sequence carries any landmark."""
        return not (self.has_pose or self.has_hands or self.has_face)

    def pose_point(self, index: int) -> Optional[Landmark]:
        return landmark_at(self.pose, index)

    def face_point(self, index: int) -> Optional[Landmark]:
        return landmark_at(self.face, index)

    @classmethod
    def from_holistic(cls, results: Any, timestamp: Optional[float] = None) -> "LandmarkFrame":
        """
        Build a frame from a MediaPipe Holistic result object.

        Args:
            results: Object exposing pose_landmarks, left_hand_landmarks,
                right_hand_landmarks and face_landmarks (each may be None)
            timestamp: Optional capture time in seconds

        Returns:
            LandmarkFrame with converted landmark lists
        """
        return cls(
            pose=_convert_mediapipe(getattr(results, 'pose_landmarks', None)),
            left_hand=_convert_mediapipe(getattr(results, 'left_hand_landmarks', None)),
            right_hand=_convert_mediapipe(getattr(results, 'right_hand_landmarks', None)),
            face=_convert_mediapipe(getattr(results, 'face_landmarks', None)),
            timestamp=timestamp,
        )

    @classmethod
    def from_dict(cls, data: dict) -> "LandmarkFrame":
        """Create from a dictionary of landmark rows."""
        timestamp = data.get("timestamp")
        return cls(
            pose=_rows_to_landmarks(data.get("pose")),
            left_hand=_rows_to_landmarks(data.get("left_hand")),
            right_hand=_rows_to_landmarks(data.get("right_hand")),
            face=_rows_to_landmarks(data.get("face")),
            timestamp=float(timestamp) if timestamp is not None else None,
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        data = {"timestamp": self.timestamp}
        for name in ("pose", "left_hand", "right_hand", "face"):
            rows = _landmarks_to_rows(getattr(self, name))
            if rows is not None:
                data[name] = rows
        return data
