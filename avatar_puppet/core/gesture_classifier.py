"""
Gesture and expression classification.

Turns landmark frames into:
- A raw per-frame gesture label (first matching detector wins)
- A debounced gesture label that only changes once the raw label persists
  or recurs
- Independent smile / blink / wave flags that are never debounced

Every detector is a total function: missing landmarks give False, and
malformed landmark values are caught at the detector boundary.
"""

from collections import deque
from dataclasses import dataclass, field
from enum import Enum
import functools
import logging
import math
from typing import Callable, Optional

from avatar_puppet.config.settings import GestureConfig, DebounceConfig
from avatar_puppet.core.landmarks import (
    FaceLandmark,
    HandLandmark,
    LandmarkFrame,
    LandmarkList,
    PoseLandmark,
    landmark_at,
)

logger = logging.getLogger(__name__)


class GestureLabel(Enum):
    """Recognized gestures, in detection priority order."""
    NONE = "none"
    WAVING = "waving"
    THUMBS_UP = "thumbs_up"
    PEACE_SIGN = "peace_sign"
    POINTING = "pointing"
    OPEN_PALM = "open_palm"
    CLOSED_FIST = "closed_fist"

    @property
    def display_name(self) -> str:
        """Human readable name, empty for NONE."""
        return _DISPLAY_NAMES[self]


_DISPLAY_NAMES = {
    GestureLabel.NONE: "",
    GestureLabel.WAVING: "Waving",
    GestureLabel.THUMBS_UP: "Thumbs Up",
    GestureLabel.PEACE_SIGN: "Peace Sign",
    GestureLabel.POINTING: "Pointing",
    GestureLabel.OPEN_PALM: "Open Palm",
    GestureLabel.CLOSED_FIST: "Closed Fist",
}


@dataclass(frozen=True)
class ExpressionFlags:
    """Undebounced per-frame expression flags."""
    is_smiling: bool = False
    is_blinking: bool = False
    is_waving: bool = False


Detector = Callable[[LandmarkFrame, GestureConfig], bool]

# (tip, mcp) pairs in thumb, index, middle, ring, pinky order
FINGERS = (
    (HandLandmark.THUMB_TIP, HandLandmark.THUMB_MCP),
    (HandLandmark.INDEX_FINGER_TIP, HandLandmark.INDEX_FINGER_MCP),
    (HandLandmark.MIDDLE_FINGER_TIP, HandLandmark.MIDDLE_FINGER_MCP),
    (HandLandmark.RING_FINGER_TIP, HandLandmark.RING_FINGER_MCP),
    (HandLandmark.PINKY_TIP, HandLandmark.PINKY_MCP),
)
THUMB, INDEX, MIDDLE, RING, PINKY = FINGERS


def fail_safe(detector: Detector) -> Detector:
    """Convert malformed-landmark errors inside a detector into False."""

    @functools.wraps(detector)
    def wrapper(frame: LandmarkFrame, config: GestureConfig) -> bool:
        try:
            return bool(detector(frame, config))
        except (TypeError, ValueError, IndexError, AttributeError, ZeroDivisionError) as e:
            logger.debug("%s failed on malformed landmarks: %s", detector.__name__, e)
            return False

    return wrapper


def primary_hand(frame: LandmarkFrame) -> Optional[LandmarkList]:
    """The right hand when present, otherwise the left hand."""
    if frame.right_hand:
        return frame.right_hand
    return frame.left_hand or None


def _complete_hand(frame: LandmarkFrame) -> Optional[LandmarkList]:
    hand = primary_hand(frame)
    if hand is None or len(hand) < HandLandmark.COUNT:
        return None
    return hand


def _finger_points(hand: LandmarkList, finger):
    tip_idx, mcp_idx = finger
    return landmark_at(hand, tip_idx), landmark_at(hand, mcp_idx)


def _is_extended(hand: LandmarkList, finger, margin: float) -> Optional[bool]:
    """Tip above the knuckle by ``margin``; None when a point is missing."""
    tip, mcp = _finger_points(hand, finger)
    if tip is None or mcp is None:
        return None
    return tip.y < mcp.y - margin


def _is_folded(hand: LandmarkList, finger, margin: float) -> Optional[bool]:
    """Tip below the knuckle by ``margin``; None when a point is missing."""
    tip, mcp = _finger_points(hand, finger)
    if tip is None or mcp is None:
        return None
    return tip.y > mcp.y + margin


def _all_true(*checks: Optional[bool]) -> bool:
    return all(check is True for check in checks)


def _arm_is_waving(hand: Optional[LandmarkList], frame: LandmarkFrame,
                   shoulder_idx: int, elbow_idx: int, pose_wrist_idx: int,
                   config: GestureConfig) -> bool:
    # The arm is only considered when the body tracker also sees its wrist
    if frame.pose_point(pose_wrist_idx) is None:
        return False

    wrist = landmark_at(hand, HandLandmark.WRIST)
    shoulder = frame.pose_point(shoulder_idx)
    elbow = frame.pose_point(elbow_idx)
    if wrist is None or shoulder is None or elbow is None:
        return False

    hand_raised = wrist.y < shoulder.y - config.wave_shoulder_margin and wrist.y < elbow.y
    hand_to_side = abs(wrist.x - shoulder.x) > config.wave_side_offset
    return hand_raised and hand_to_side


@fail_safe
def is_waving(frame: LandmarkFrame, config: GestureConfig) -> bool:
    """Either wrist raised above its shoulder and out to the side."""
    if not frame.has_pose:
        return False

    # Right hand has priority, the left is only checked when it fails
    if _arm_is_waving(frame.right_hand, frame, PoseLandmark.RIGHT_SHOULDER,
                      PoseLandmark.RIGHT_ELBOW, PoseLandmark.RIGHT_WRIST, config):
        return True
    return _arm_is_waving(frame.left_hand, frame, PoseLandmark.LEFT_SHOULDER,
                          PoseLandmark.LEFT_ELBOW, PoseLandmark.LEFT_WRIST, config)


@fail_safe
def is_thumbs_up(frame: LandmarkFrame, config: GestureConfig) -> bool:
    hand = _complete_hand(frame)
    if hand is None:
        return False

    return _all_true(
        _is_extended(hand, THUMB, config.extended_margin),
        _is_folded(hand, INDEX, config.folded_margin),
        _is_folded(hand, MIDDLE, config.folded_margin),
        _is_folded(hand, RING, config.folded_margin),
        _is_folded(hand, PINKY, config.folded_margin),
    )


@fail_safe
def is_peace_sign(frame: LandmarkFrame, config: GestureConfig) -> bool:
    hand = _complete_hand(frame)
    if hand is None:
        return False

    index_tip = landmark_at(hand, HandLandmark.INDEX_FINGER_TIP)
    middle_tip = landmark_at(hand, HandLandmark.MIDDLE_FINGER_TIP)
    if index_tip is None or middle_tip is None:
        return False

    # Fingers must be spread into a V
    splayed = abs(index_tip.x - middle_tip.x) > config.peace_min_separation

    return splayed and _all_true(
        _is_extended(hand, INDEX, config.extended_margin),
        _is_extended(hand, MIDDLE, config.extended_margin),
        _is_folded(hand, RING, config.folded_margin),
        _is_folded(hand, PINKY, config.folded_margin),
    )


@fail_safe
def is_pointing(frame: LandmarkFrame, config: GestureConfig) -> bool:
    hand = _complete_hand(frame)
    if hand is None:
        return False

    return _all_true(
        _is_extended(hand, INDEX, config.extended_margin),
        _is_folded(hand, MIDDLE, config.folded_margin),
        _is_folded(hand, RING, config.folded_margin),
        _is_folded(hand, PINKY, config.folded_margin),
    )


@fail_safe
def is_open_palm(frame: LandmarkFrame, config: GestureConfig) -> bool:
    hand = _complete_hand(frame)
    if hand is None:
        return False

    extended = sum(
        _is_extended(hand, finger, config.open_palm_margin) is True
        for finger in FINGERS
    )
    return extended >= config.open_palm_min_extended


@fail_safe
def is_closed_fist(frame: LandmarkFrame, config: GestureConfig) -> bool:
    hand = _complete_hand(frame)
    if hand is None:
        return False

    # Thumb position is ignored for a fist
    folded = sum(
        _is_folded(hand, finger, config.closed_fist_margin) is True
        for finger in (INDEX, MIDDLE, RING, PINKY)
    )
    return folded >= config.closed_fist_min_folded


@fail_safe
def is_smiling(frame: LandmarkFrame, config: GestureConfig) -> bool:
    """Mouth corners raised above the mouth center and the mouth widened."""
    if not frame.has_face:
        return False

    left_corner = frame.face_point(FaceLandmark.MOUTH_LEFT_CORNER)
    right_corner = frame.face_point(FaceLandmark.MOUTH_RIGHT_CORNER)
    upper_lip = frame.face_point(FaceLandmark.UPPER_LIP)
    lower_lip = frame.face_point(FaceLandmark.LOWER_LIP)
    mouth_center = frame.face_point(FaceLandmark.MOUTH_CENTER)
    if None in (left_corner, right_corner, upper_lip, lower_lip, mouth_center):
        return False

    mouth_width = abs(right_corner.x - left_corner.x)
    mouth_height = abs(lower_lip.y - upper_lip.y)

    left_elevation = mouth_center.y - left_corner.y
    right_elevation = mouth_center.y - right_corner.y
    avg_elevation = (left_elevation + right_elevation) / 2

    if mouth_height > 0:
        aspect = mouth_width / mouth_height
    else:
        # Closed lips: any width counts as an unbounded ratio
        aspect = math.inf if mouth_width > 0 else 0.0

    return avg_elevation > config.smile_min_elevation and aspect > config.smile_min_aspect


def _eye_aspect_ratio(frame: LandmarkFrame, top_idx: int, bottom_idx: int,
                      outer_idx: int, inner_idx: int) -> Optional[float]:
    top = frame.face_point(top_idx)
    bottom = frame.face_point(bottom_idx)
    outer = frame.face_point(outer_idx)
    inner = frame.face_point(inner_idx)
    if None in (top, bottom, outer, inner):
        return None

    width = abs(inner.x - outer.x)
    if width <= 0:
        return None
    return abs(top.y - bottom.y) / width


@fail_safe
def is_blinking(frame: LandmarkFrame, config: GestureConfig) -> bool:
    """Average eye aspect ratio of both eyes below the blink threshold."""
    if not frame.has_face:
        return False

    left_ear = _eye_aspect_ratio(
        frame,
        FaceLandmark.LEFT_EYE_TOP,
        FaceLandmark.LEFT_EYE_BOTTOM,
        FaceLandmark.LEFT_EYE_OUTER,
        FaceLandmark.LEFT_EYE_INNER,
    )
    right_ear = _eye_aspect_ratio(
        frame,
        FaceLandmark.RIGHT_EYE_TOP,
        FaceLandmark.RIGHT_EYE_BOTTOM,
        FaceLandmark.RIGHT_EYE_OUTER,
        FaceLandmark.RIGHT_EYE_INNER,
    )
    if left_ear is None or right_ear is None:
        return False

    return (left_ear + right_ear) / 2 < config.blink_max_aspect


# Evaluated in order, first match wins
GESTURE_DETECTORS: list[tuple[Detector, GestureLabel]] = [
    (is_waving, GestureLabel.WAVING),
    (is_thumbs_up, GestureLabel.THUMBS_UP),
    (is_peace_sign, GestureLabel.PEACE_SIGN),
    (is_pointing, GestureLabel.POINTING),
    (is_open_palm, GestureLabel.OPEN_PALM),
    (is_closed_fist, GestureLabel.CLOSED_FIST),
]


def detect_raw_gesture(
    frame: LandmarkFrame,
    config: GestureConfig,
    detectors: Optional[list[tuple[Detector, GestureLabel]]] = None,
) -> GestureLabel:
    """
    Classify a single frame without any temporal smoothing.

    Args:
        frame: Landmark frame to classify
        config: Detector thresholds
        detectors: Ordered (predicate, label) pairs, defaults to
            GESTURE_DETECTORS

    Returns:
        Label of the first matching detector, or GestureLabel.NONE
    """
    for predicate, label in detectors or GESTURE_DETECTORS:
        if predicate(frame, config):
            return label
    return GestureLabel.NONE


@dataclass
class ClassifierState:
    """Debounce state owned by one classifier."""
    previous_label: GestureLabel = GestureLabel.NONE
    confidence_count: int = 0
    history: deque = field(default_factory=lambda: deque(maxlen=DebounceConfig.history_length))

    @classmethod
    def initial(cls, config: DebounceConfig) -> "ClassifierState":
        return cls(history=deque(maxlen=config.history_length))

    def observe(self, raw: GestureLabel, config: DebounceConfig) -> GestureLabel:
        """
        Record a raw label and return the debounced label.

        A label is reported once it was seen ``min_confidence`` frames in a
        row, or at least ``min_recent_count`` times within the last
        ``recent_window`` frames.
        """
        self.history.append(raw)

        if raw == self.previous_label:
            self.confidence_count += 1
        else:
            self.confidence_count = 1
            self.previous_label = raw

        recent = list(self.history)[-config.recent_window:]
        recent_count = recent.count(raw)

        if (self.confidence_count >= config.min_confidence
                or recent_count >= config.min_recent_count):
            return raw
        return GestureLabel.NONE


class GestureClassifier:
    """
    Stateful gesture classifier with debounced output.

    Example:
        >>> classifier = GestureClassifier()
        >>> label = classifier.classify(frame)
        >>> flags = classifier.expressions(frame)
    """

    def __init__(
        self,
        gesture_config: Optional[GestureConfig] = None,
        debounce_config: Optional[DebounceConfig] = None,
    ):
        self.gesture_config = gesture_config or GestureConfig()
        self.debounce_config = debounce_config or DebounceConfig()
        self.state = ClassifierState.initial(self.debounce_config)
        self._label = GestureLabel.NONE
        self._raw_label = GestureLabel.NONE

    @property
    def label(self) -> GestureLabel:
        """The most recently reported debounced label."""
        return self._label

    @property
    def last_raw_label(self) -> GestureLabel:
        """The undebounced label of the last classified frame."""
        return self._raw_label

    def raw_label(self, frame: LandmarkFrame) -> GestureLabel:
        return detect_raw_gesture(frame, self.gesture_config)

    def classify(self, frame: LandmarkFrame) -> GestureLabel:
        """Classify a frame and update the debounce state."""
        raw = self.raw_label(frame)
        label = self.state.observe(raw, self.debounce_config)
        self._raw_label = raw
        if label != self._label:
            logger.debug("Gesture changed: %s -> %s (raw %s)",
                         self._label.name, label.name, raw.name)
        self._label = label
        return label

    def is_smiling(self, frame: LandmarkFrame) -> bool:
        return is_smiling(frame, self.gesture_config)

    def is_blinking(self, frame: LandmarkFrame) -> bool:
        return is_blinking(frame, self.gesture_config)

    def is_waving(self, frame: LandmarkFrame) -> bool:
        return is_waving(frame, self.gesture_config)

    def expressions(self, frame: LandmarkFrame) -> ExpressionFlags:
        """Evaluate all undebounced flags for a frame."""
        return ExpressionFlags(
            is_smiling=self.is_smiling(frame),
            is_blinking=self.is_blinking(frame),
            is_waving=self.is_waving(frame),
        )

    def reset(self):
        """Return to the freshly constructed state."""
        self.state = ClassifierState.initial(self.debounce_config)
        self._label = GestureLabel.NONE
        self._raw_label = GestureLabel.NONE


def describe_gesture(label: GestureLabel) -> str:
    """Get human-readable description of a gesture."""
    descriptions = {
        GestureLabel.NONE: "No gesture detected",
        GestureLabel.WAVING: "Waving hello",
        GestureLabel.THUMBS_UP: "Thumbs up",
        GestureLabel.PEACE_SIGN: "Peace sign",
        GestureLabel.POINTING: "Pointing",
        GestureLabel.OPEN_PALM: "Open palm",
        GestureLabel.CLOSED_FIST: "Closed fist",
    }
    return descriptions.get(label, "Unknown")
