"""Tests for core.gesture_classifier: detectors, priority and debouncing."""

import pytest

from avatar_puppet.config.settings import DebounceConfig, GestureConfig
from avatar_puppet.core.gesture_classifier import (
    ClassifierState,
    ExpressionFlags,
    GestureClassifier,
    GestureLabel,
    describe_gesture,
    detect_raw_gesture,
    is_blinking,
    is_smiling,
    is_waving,
)
from avatar_puppet.core.landmarks import FaceLandmark, Landmark, LandmarkFrame, PoseLandmark
from landmark_builders import build_face, build_hand, build_pose

CONFIG = GestureConfig()

T = GestureLabel.THUMBS_UP
P = GestureLabel.PEACE_SIGN
N = GestureLabel.NONE


def _raw(frame):
    return detect_raw_gesture(frame, CONFIG)


# --- per-frame detectors ---


def test_thumbs_up(thumbs_up_frame):
    assert _raw(thumbs_up_frame) is GestureLabel.THUMBS_UP


def test_peace_sign(peace_frame):
    assert _raw(peace_frame) is GestureLabel.PEACE_SIGN


def test_peace_sign_needs_spread_fingers():
    """Index and middle tips only 0.02 apart do not form a V."""
    hand = build_hand(index="extended", middle="extended", ring="folded",
                      pinky="folded", tip_x={"index": 0.48})
    assert _raw(LandmarkFrame(right_hand=hand)) is GestureLabel.NONE


def test_pointing():
    hand = build_hand(index="extended", middle="folded", ring="folded", pinky="folded")
    assert _raw(LandmarkFrame(right_hand=hand)) is GestureLabel.POINTING


def test_open_palm():
    hand = build_hand(thumb="extended", index="extended", middle="extended",
                      ring="extended", pinky="extended")
    assert _raw(LandmarkFrame(right_hand=hand)) is GestureLabel.OPEN_PALM


def test_closed_fist():
    hand = build_hand(index="folded", middle="folded", ring="folded", pinky="folded")
    assert _raw(LandmarkFrame(right_hand=hand)) is GestureLabel.CLOSED_FIST


def test_neutral_hand_is_no_gesture():
    assert _raw(LandmarkFrame(right_hand=build_hand())) is GestureLabel.NONE


def test_waving(waving_frame):
    assert _raw(waving_frame) is GestureLabel.WAVING


def test_waving_with_left_hand():
    frame = LandmarkFrame(pose=build_pose(), left_hand=build_hand(wrist=(0.2, 0.3)))
    assert is_waving(frame, CONFIG) is True


def test_waving_requires_pose():
    frame = LandmarkFrame(right_hand=build_hand(wrist=(0.8, 0.3)))
    assert is_waving(frame, CONFIG) is False


def test_hand_below_shoulder_is_not_waving():
    frame = LandmarkFrame(pose=build_pose(), right_hand=build_hand(wrist=(0.8, 0.55)))
    assert is_waving(frame, CONFIG) is False


def test_waving_needs_pose_wrist():
    pose = build_pose(missing=(PoseLandmark.RIGHT_WRIST,))
    frame = LandmarkFrame(pose=pose, right_hand=build_hand(wrist=(0.8, 0.3)))
    assert is_waving(frame, CONFIG) is False


def test_waving_falls_back_to_left_when_right_pose_wrist_missing():
    pose = build_pose(missing=(PoseLandmark.RIGHT_WRIST,))
    frame = LandmarkFrame(pose=pose, right_hand=build_hand(wrist=(0.8, 0.3)),
                          left_hand=build_hand(wrist=(0.2, 0.3)))
    assert is_waving(frame, CONFIG) is True


def test_waving_has_priority_over_thumbs_up():
    hand = build_hand(wrist=(0.8, 0.3), thumb="extended", index="folded",
                      middle="folded", ring="folded", pinky="folded")
    frame = LandmarkFrame(pose=build_pose(), right_hand=hand)
    assert _raw(frame) is GestureLabel.WAVING


def test_left_hand_used_when_right_missing(thumbs_up_hand):
    assert _raw(LandmarkFrame(left_hand=thumbs_up_hand)) is GestureLabel.THUMBS_UP


def test_right_hand_preferred(thumbs_up_hand):
    palm = build_hand(thumb="extended", index="extended", middle="extended",
                      ring="extended", pinky="extended")
    frame = LandmarkFrame(left_hand=thumbs_up_hand, right_hand=palm)
    assert _raw(frame) is GestureLabel.OPEN_PALM


def test_short_hand_matches_nothing(thumbs_up_hand):
    frame = LandmarkFrame(left_hand=thumbs_up_hand, right_hand=thumbs_up_hand[:10])
    assert _raw(frame) is GestureLabel.NONE


def test_hand_with_missing_fingertip(thumbs_up_hand):
    hand = list(thumbs_up_hand)
    hand[8] = None
    assert _raw(LandmarkFrame(right_hand=hand)) is not GestureLabel.THUMBS_UP


def test_empty_frame():
    frame = LandmarkFrame()
    assert _raw(frame) is GestureLabel.NONE
    assert is_smiling(frame, CONFIG) is False
    assert is_blinking(frame, CONFIG) is False


def test_custom_detector_order(thumbs_up_frame):
    detectors = [(lambda frame, config: True, GestureLabel.CLOSED_FIST)]
    assert detect_raw_gesture(thumbs_up_frame, CONFIG, detectors) is GestureLabel.CLOSED_FIST


# --- expressions ---


def test_smiling():
    assert is_smiling(LandmarkFrame(face=build_face(smiling=True)), CONFIG) is True
    assert is_smiling(LandmarkFrame(face=build_face()), CONFIG) is False


def test_smile_with_closed_lips():
    face = build_face(smiling=True)
    face[FaceLandmark.LOWER_LIP] = face[FaceLandmark.UPPER_LIP]
    assert is_smiling(LandmarkFrame(face=face), CONFIG) is True


def test_blinking():
    assert is_blinking(LandmarkFrame(face=build_face(blinking=True)), CONFIG) is True
    assert is_blinking(LandmarkFrame(face=build_face()), CONFIG) is False


def test_zero_width_eye_is_not_blinking():
    face = build_face(blinking=True)
    face[FaceLandmark.LEFT_EYE_INNER] = face[FaceLandmark.LEFT_EYE_OUTER]
    assert is_blinking(LandmarkFrame(face=face), CONFIG) is False


def test_truncated_face_mesh():
    face = build_face(smiling=True, blinking=True)[:100]
    frame = LandmarkFrame(face=face)
    assert is_smiling(frame, CONFIG) is False
    assert is_blinking(frame, CONFIG) is False


def test_malformed_landmarks_do_not_raise(thumbs_up_hand):
    face = [Landmark("bad", "bad") for _ in range(FaceLandmark.MESH_SIZE)]
    frame = LandmarkFrame(right_hand=thumbs_up_hand, face=face)

    classifier = GestureClassifier()
    assert classifier.expressions(frame) == ExpressionFlags()
    classifier.classify(frame)
    assert classifier.last_raw_label is GestureLabel.THUMBS_UP


# --- debouncing ---


def _observe_all(labels, config=None):
    config = config or DebounceConfig()
    state = ClassifierState.initial(config)
    return [state.observe(label, config) for label in labels], state


def test_debounce_needs_three_consecutive_frames():
    outputs, _ = _observe_all([T, T, T])
    assert outputs == [N, N, T]


def test_debounce_interrupted_streak():
    outputs, state = _observe_all([T, T, P])
    assert outputs == [N, N, N]
    assert state.previous_label is P
    assert state.confidence_count == 1


def test_debounce_recent_frequency():
    """Alternating labels pass once one appears 3 times in the last 5 frames."""
    outputs, _ = _observe_all([T, P, T, P, T])
    assert outputs == [N, N, N, N, T]


def test_debounce_history_is_bounded():
    config = DebounceConfig()
    state = ClassifierState.initial(config)
    for tick in range(1000):
        state.observe((T, P, N)[tick % 3], config)
        assert len(state.history) <= 10
    assert len(state.history) == 10


def test_debounce_custom_threshold():
    config = DebounceConfig(min_confidence=1)
    outputs, _ = _observe_all([P], config)
    assert outputs == [P]


def test_classifier_reports_debounced_label(thumbs_up_frame):
    classifier = GestureClassifier()
    labels = [classifier.classify(thumbs_up_frame) for _ in range(3)]
    assert labels == [N, N, T]
    assert classifier.label is T
    assert classifier.last_raw_label is T


def test_classifier_reset(thumbs_up_frame):
    classifier = GestureClassifier()
    for _ in range(4):
        classifier.classify(thumbs_up_frame)

    classifier.reset()

    fresh = GestureClassifier()
    assert classifier.state == fresh.state
    assert classifier.label is N
    assert classifier.last_raw_label is N
    assert classifier.classify(thumbs_up_frame) is N


def test_expressions_are_not_debounced(waving_frame):
    frame = LandmarkFrame(pose=waving_frame.pose, right_hand=waving_frame.right_hand,
                          face=build_face(smiling=True, blinking=True))
    flags = GestureClassifier().expressions(frame)
    assert flags == ExpressionFlags(is_smiling=True, is_blinking=True, is_waving=True)


@pytest.mark.parametrize("label", list(GestureLabel))
def test_every_label_is_described(label):
    assert describe_gesture(label) != "Unknown"


def test_display_names():
    assert GestureLabel.NONE.display_name == ""
    assert GestureLabel.THUMBS_UP.display_name == "Thumbs Up"
    assert GestureLabel.PEACE_SIGN.value == "peace_sign"
