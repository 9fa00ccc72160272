"""
Pose-to-rig mapping.

Derives target joint rotations for the avatar rig from the body pose
landmarks of a single frame. Each limb is solved independently from the
angle of the segment between its two joints; limbs whose joints are missing
keep their previous target.
"""

from dataclasses import dataclass, replace
import logging
from typing import NamedTuple, Optional

from avatar_puppet.config.settings import MappingConfig
from avatar_puppet.core.gesture_classifier import ExpressionFlags, GestureLabel
from avatar_puppet.core.landmarks import LandmarkFrame, LandmarkList, PoseLandmark, landmark_at
from avatar_puppet.utils.math_utils import midpoint, segment_angle

logger = logging.getLogger(__name__)


class Euler(NamedTuple):
    """Rotation in radians around the x, y and z axes."""
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


NEUTRAL_SCALE = 1.0
GESTURE_SCALE = 1.1

# Raised by the geometry helpers on non-numeric landmark values
MALFORMED_LANDMARK_ERRORS = (TypeError, ValueError, AttributeError)


@dataclass(frozen=True)
class RigTarget:
    """Target pose for the avatar rig, derived from one frame."""

    head: Euler = Euler()
    body: Euler = Euler()
    left_arm: Euler = Euler()
    right_arm: Euler = Euler()
    left_leg: Euler = Euler()
    right_leg: Euler = Euler()

    is_smiling: bool = False
    is_blinking: bool = False
    is_waving: bool = False
    gesture_scale: float = NEUTRAL_SCALE


def _limb_rotation(pose: LandmarkList, start_idx: int, end_idx: int,
                   offset: float) -> Optional[float]:
    start = landmark_at(pose, start_idx)
    end = landmark_at(pose, end_idx)
    if start is None or end is None:
        return None
    try:
        return segment_angle(start, end) + offset
    except MALFORMED_LANDMARK_ERRORS as e:
        logger.debug("Malformed limb landmarks %d -> %d: %s", start_idx, end_idx, e)
        return None


def map_pose(
    pose: Optional[LandmarkList],
    previous: RigTarget,
    config: Optional[MappingConfig] = None,
) -> RigTarget:
    """
    Compute a new rig target from pose landmarks.

    Args:
        pose: 33 pose landmarks (or None)
        previous: Target from the previous frame; channels that cannot be
            solved keep these values
        config: Mapping weights

    Returns:
        Updated RigTarget, or ``previous`` unchanged when shoulders or hips
        are missing
    """
    config = config or MappingConfig()

    left_shoulder = landmark_at(pose, PoseLandmark.LEFT_SHOULDER)
    right_shoulder = landmark_at(pose, PoseLandmark.RIGHT_SHOULDER)
    left_hip = landmark_at(pose, PoseLandmark.LEFT_HIP)
    right_hip = landmark_at(pose, PoseLandmark.RIGHT_HIP)
    if None in (left_shoulder, right_shoulder, left_hip, right_hip):
        return previous

    # Shoulder line tilt drives the torso and part of the head roll
    try:
        shoulder_angle = segment_angle(left_shoulder, right_shoulder)
        center_x = midpoint(left_shoulder, right_shoulder)[0]
    except MALFORMED_LANDMARK_ERRORS as e:
        logger.debug("Malformed torso landmarks, keeping previous rig target: %s", e)
        return previous
    body = previous.body._replace(z=config.body_tilt_weight * shoulder_angle)

    head = previous.head
    nose = landmark_at(pose, PoseLandmark.NOSE)
    if nose is not None:
        try:
            head = head._replace(
                y=float(config.head_yaw_gain * (nose.x - center_x)),
                z=config.head_roll_weight * shoulder_angle,
            )
        except MALFORMED_LANDMARK_ERRORS as e:
            logger.debug("Malformed nose landmark, keeping previous head: %s", e)

    limbs = {
        "left_arm": (PoseLandmark.LEFT_ELBOW, PoseLandmark.LEFT_WRIST, config.arm_angle_offset),
        "right_arm": (PoseLandmark.RIGHT_ELBOW, PoseLandmark.RIGHT_WRIST, config.arm_angle_offset),
        "left_leg": (PoseLandmark.LEFT_KNEE, PoseLandmark.LEFT_ANKLE, config.leg_angle_offset),
        "right_leg": (PoseLandmark.RIGHT_KNEE, PoseLandmark.RIGHT_ANKLE, config.leg_angle_offset),
    }
    updates = {}
    for name, (start_idx, end_idx, offset) in limbs.items():
        rotation = _limb_rotation(pose, start_idx, end_idx, offset)
        if rotation is not None:
            updates[name] = getattr(previous, name)._replace(z=rotation)

    return replace(previous, head=head, body=body, **updates)


def apply_gesture(target: RigTarget, label: GestureLabel, flags: ExpressionFlags) -> RigTarget:
    """Attach the gesture and expression state of a frame to a target."""
    return replace(
        target,
        is_smiling=flags.is_smiling,
        is_blinking=flags.is_blinking,
        is_waving=label is GestureLabel.WAVING,
        gesture_scale=GESTURE_SCALE if label is not GestureLabel.NONE else NEUTRAL_SCALE,
    )


class PoseToRigMapper:
    """
    Keeps the latest rig target and updates it frame by frame.

    Channels that cannot be solved from a frame retain the value from the
    last frame that could solve them.
    """

    def __init__(self, config: Optional[MappingConfig] = None):
        self.config = config or MappingConfig()
        self.target = RigTarget()

    def update(
        self,
        frame: LandmarkFrame,
        label: GestureLabel = GestureLabel.NONE,
        flags: Optional[ExpressionFlags] = None,
    ) -> RigTarget:
        """Map a frame onto the current target and return the new target."""
        target = map_pose(frame.pose, self.target, self.config)
        if target is self.target and frame.has_pose:
            logger.debug("Pose lacks shoulders or hips, keeping previous rig target")
        self.target = apply_gesture(target, label, flags or ExpressionFlags())
        return self.target

    def reset(self):
        self.target = RigTarget()
