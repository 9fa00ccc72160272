"""
Frame-rate independent animation damping for the avatar rig.

The damper keeps the currently displayed rig state and moves every channel
exponentially toward its target each tick. The decay is expressed per
second rather than per frame, so the motion looks the same at any tick
rate.

Two procedural paths replace the damped motion:
- Waving swings both arms in antiphase on a sinusoid
- Idle motion bobs and sways the avatar root while no frame is available
"""

from dataclasses import dataclass, replace
import logging
import math
from typing import Optional

from avatar_puppet.config.settings import AnimationConfig
from avatar_puppet.core.gesture_classifier import ExpressionFlags, GestureLabel
from avatar_puppet.core.pose_mapper import Euler, RigTarget
from avatar_puppet.utils.math_utils import damping_factor, lerp

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnimatorState:
    """Smoothed rig state read by the renderer between ticks."""

    head: Euler = Euler()
    body: Euler = Euler()
    left_arm: Euler = Euler()
    right_arm: Euler = Euler()
    left_leg: Euler = Euler()
    right_leg: Euler = Euler()

    head_scale: float = 1.0
    left_hand_scale: float = 1.0
    right_hand_scale: float = 1.0

    is_smiling: bool = False
    is_blinking: bool = False
    is_waving: bool = False

    wave_phase: float = 0.0
    elapsed: float = 0.0

    # Idle root motion
    root_offset_y: float = 0.0
    root_yaw: float = 0.0


def _damp_euler(current: Euler, target: Euler, factor: float) -> Euler:
    return Euler(
        lerp(current.x, target.x, factor),
        lerp(current.y, target.y, factor),
        lerp(current.z, target.z, factor),
    )


def idle_step(state: AnimatorState, delta_time: float,
              config: Optional[AnimationConfig] = None) -> AnimatorState:
    """Advance the idle bob / sway of the avatar root."""
    config = config or AnimationConfig()
    elapsed = state.elapsed + max(delta_time, 0.0)
    return replace(
        state,
        elapsed=elapsed,
        root_offset_y=math.sin(elapsed * config.idle_bob_frequency) * config.idle_bob_amplitude,
        root_yaw=math.sin(elapsed * config.idle_sway_frequency) * config.idle_sway_amplitude,
    )


def step(
    state: AnimatorState,
    target: Optional[RigTarget],
    label: GestureLabel,
    flags: ExpressionFlags,
    delta_time: float,
    config: Optional[AnimationConfig] = None,
) -> AnimatorState:
    """
    Compute the next animator state.

    Args:
        state: Current animator state
        target: Rig target of the latest frame, None when no frame is
            available (idle motion)
        label: Debounced gesture label
        flags: Expression flags of the latest frame
        delta_time: Seconds since the previous tick
        config: Animation parameters

    Returns:
        New AnimatorState; ``state`` is left untouched
    """
    config = config or AnimationConfig()

    if target is None:
        return idle_step(state, delta_time, config)

    dt = max(delta_time, 0.0)
    factor = damping_factor(dt, config.damping_base)
    waving = label is GestureLabel.WAVING

    head_scale_target = config.smile_head_scale if flags.is_smiling else 1.0
    hand_scale_target = config.gesture_hand_scale if label is not GestureLabel.NONE else 1.0

    wave_phase = state.wave_phase
    if waving:
        wave_phase += dt * config.wave_speed
        left_arm = state.left_arm._replace(
            z=math.sin(wave_phase) * config.wave_amplitude - config.wave_offset)
        right_arm = state.right_arm._replace(
            z=math.sin(wave_phase + math.pi) * config.wave_amplitude + config.wave_offset)
    else:
        left_arm = state.left_arm._replace(
            z=lerp(state.left_arm.z, target.left_arm.z, factor))
        right_arm = state.right_arm._replace(
            z=lerp(state.right_arm.z, target.right_arm.z, factor))

    return replace(
        state,
        head=_damp_euler(state.head, target.head, factor),
        body=state.body._replace(z=lerp(state.body.z, target.body.z, factor)),
        left_arm=left_arm,
        right_arm=right_arm,
        left_leg=state.left_leg._replace(z=lerp(state.left_leg.z, target.left_leg.z, factor)),
        right_leg=state.right_leg._replace(z=lerp(state.right_leg.z, target.right_leg.z, factor)),
        head_scale=lerp(state.head_scale, head_scale_target, factor),
        left_hand_scale=lerp(state.left_hand_scale, hand_scale_target, factor),
        right_hand_scale=lerp(state.right_hand_scale, hand_scale_target, factor),
        is_smiling=flags.is_smiling,
        is_blinking=flags.is_blinking,
        is_waving=waving,
        wave_phase=wave_phase,
        elapsed=state.elapsed + dt,
    )


class AnimationDamper:
    """
    Owns the animator state and advances it once per tick.

    Example:
        >>> damper = AnimationDamper()
        >>> state = damper.tick(target, GestureLabel.NONE, ExpressionFlags(), 1 / 30)
    """

    def __init__(self, config: Optional[AnimationConfig] = None):
        self.config = config or AnimationConfig()
        self._state = AnimatorState()

    @property
    def state(self) -> AnimatorState:
        """Current smoothed state. Immutable, safe to hand to a renderer."""
        return self._state

    def tick(
        self,
        target: Optional[RigTarget],
        label: GestureLabel = GestureLabel.NONE,
        flags: Optional[ExpressionFlags] = None,
        delta_time: float = 1.0 / 30.0,
    ) -> AnimatorState:
        """Advance the rig one tick toward ``target`` (or idle when None)."""
        if delta_time < 0:
            logger.warning("Negative delta time %.4f treated as 0", delta_time)
        self._state = step(
            self._state,
            target,
            label,
            flags or ExpressionFlags(),
            delta_time,
            self.config,
        )
        return self._state

    def reset(self):
        self._state = AnimatorState()
