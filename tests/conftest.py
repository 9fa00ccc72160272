"""Shared fixtures for avatar puppet tests."""

import pytest

from avatar_puppet.core.landmarks import LandmarkFrame
from landmark_builders import build_hand, build_pose


@pytest.fixture
def thumbs_up_hand():
    return build_hand(thumb="extended", index="folded", middle="folded",
                      ring="folded", pinky="folded")


@pytest.fixture
def thumbs_up_frame(thumbs_up_hand):
    return LandmarkFrame(right_hand=thumbs_up_hand)


@pytest.fixture
def peace_frame():
    return LandmarkFrame(right_hand=build_hand(index="extended", middle="extended",
                                               ring="folded", pinky="folded"))


@pytest.fixture
def standing_pose():
    return build_pose()


@pytest.fixture
def waving_frame():
    """Right wrist raised above the right shoulder and out to the side."""
    return LandmarkFrame(
        pose=build_pose(),
        right_hand=build_hand(wrist=(0.8, 0.3)),
    )
