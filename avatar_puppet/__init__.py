"""
Avatar Puppet - Gesture-driven avatar animation from body landmarks

Turns a stream of pose, hand and face landmarks into a stable gesture label,
expression flags and smoothly animated joint rotations for a puppeted avatar.

Features:
- Body pose mapping (33 pose landmarks)
- Hand gesture recognition (waving, thumbs up, peace sign, pointing,
  open palm, closed fist)
- Smile and blink detection from face mesh landmarks
- Debounced gesture labels
- Frame-rate independent damping with procedural waving and idle motion
- Replay of recorded landmark sessions

License: MIT
"""

__version__ = "1.0.0"
__author__ = "Avatar Puppet Contributors"
__license__ = "MIT"

from avatar_puppet.core.landmarks import Landmark, LandmarkFrame
from avatar_puppet.core.gesture_classifier import GestureClassifier, GestureLabel
from avatar_puppet.core.animator import AnimationDamper, AnimatorState
from avatar_puppet.core.puppeteer import AvatarPuppeteer

__all__ = [
    "Landmark",
    "LandmarkFrame",
    "GestureClassifier",
    "GestureLabel",
    "AnimationDamper",
    "AnimatorState",
    "AvatarPuppeteer",
]
