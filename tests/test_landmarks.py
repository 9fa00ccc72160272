"""Tests for core.landmarks: frames, safe lookup and conversion."""

from types import SimpleNamespace

from avatar_puppet.core.landmarks import (
    HandLandmark,
    Landmark,
    LandmarkFrame,
    PoseLandmark,
    landmark_at,
)
from landmark_builders import build_face, build_pose


def test_landmark_defaults():
    lm = Landmark(0.1, 0.2)
    assert lm.z == 0.0
    assert lm.visibility == 1.0


def test_landmark_at_bounds():
    points = [Landmark(0.0, 0.0), None]
    assert landmark_at(points, 0) == Landmark(0.0, 0.0)
    assert landmark_at(points, 1) is None
    assert landmark_at(points, 2) is None
    assert landmark_at(points, -1) is None
    assert landmark_at(None, 0) is None


def test_frame_presence():
    empty = LandmarkFrame()
    assert empty.is_empty
    assert not empty.has_pose and not empty.has_hands and not empty.has_face

    assert LandmarkFrame(pose=[]).is_empty

    frame = LandmarkFrame(pose=build_pose(), face=build_face())
    assert frame.has_pose and frame.has_face
    assert not frame.has_hands
    assert not frame.is_empty


def test_pose_point():
    frame = LandmarkFrame(pose=build_pose(missing=(PoseLandmark.NOSE,)))
    assert frame.pose_point(PoseLandmark.NOSE) is None
    assert frame.pose_point(PoseLandmark.LEFT_SHOULDER) == Landmark(0.4, 0.5)
    assert frame.face_point(0) is None


def test_dict_conversion(thumbs_up_hand):
    frame = LandmarkFrame(pose=build_pose(missing=(PoseLandmark.NOSE,)),
                          right_hand=thumbs_up_hand, timestamp=0.25)
    data = frame.to_dict()

    assert "left_hand" not in data
    assert data["pose"][PoseLandmark.NOSE] is None
    assert len(data["right_hand"]) == HandLandmark.COUNT

    restored = LandmarkFrame.from_dict(data)
    assert restored.timestamp == 0.25
    assert restored.left_hand is None
    assert list(restored.right_hand) == list(thumbs_up_hand)


def test_from_dict_short_rows():
    frame = LandmarkFrame.from_dict({"pose": [[0.1, 0.2]]})
    assert frame.pose[0] == Landmark(0.1, 0.2, 0.0, 1.0)
    assert frame.timestamp is None


def _mp_landmarks(*points):
    return SimpleNamespace(landmark=[SimpleNamespace(x=x, y=y, z=0.5) for x, y in points])


def test_from_holistic():
    results = SimpleNamespace(
        pose_landmarks=_mp_landmarks((0.1, 0.2), (0.3, 0.4)),
        left_hand_landmarks=None,
        right_hand_landmarks=_mp_landmarks((0.5, 0.6)),
        face_landmarks=None,
    )
    frame = LandmarkFrame.from_holistic(results, timestamp=2.0)

    assert frame.pose == [Landmark(0.1, 0.2, 0.5, 1.0), Landmark(0.3, 0.4, 0.5, 1.0)]
    assert frame.right_hand == [Landmark(0.5, 0.6, 0.5, 1.0)]
    assert frame.left_hand is None
    assert frame.face is None
    assert frame.timestamp == 2.0
