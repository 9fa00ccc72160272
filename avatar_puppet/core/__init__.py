"""
Core avatar puppeteering module.

Contains the per-frame processing pipeline:
- Landmark frames and index topologies
- Gesture classification with temporal debouncing
- Pose-to-rig mapping
- Animation damping with waving and idle overrides
"""

from avatar_puppet.core.landmarks import (
    Landmark,
    LandmarkFrame,
    PoseLandmark,
    HandLandmark,
    FaceLandmark,
)
from avatar_puppet.core.gesture_classifier import (
    GestureLabel,
    GestureClassifier,
    ClassifierState,
    ExpressionFlags,
    describe_gesture,
)
from avatar_puppet.core.pose_mapper import Euler, RigTarget, PoseToRigMapper, map_pose
from avatar_puppet.core.animator import AnimatorState, AnimationDamper
from avatar_puppet.core.puppeteer import AvatarPuppeteer, PuppetFrame

__all__ = [
    "Landmark",
    "LandmarkFrame",
    "PoseLandmark",
    "HandLandmark",
    "FaceLandmark",
    "GestureLabel",
    "GestureClassifier",
    "ClassifierState",
    "ExpressionFlags",
    "describe_gesture",
    "Euler",
    "RigTarget",
    "PoseToRigMapper",
    "map_pose",
    "AnimatorState",
    "AnimationDamper",
    "AvatarPuppeteer",
    "PuppetFrame",
]
