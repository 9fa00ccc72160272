"""
Avatar puppeteer engine.

Orchestrates the per-frame pipeline:
- Gesture classification with debouncing
- Expression flags
- Pose-to-rig mapping
- Animation damping, waving override and idle fallback

Frames are delivered synchronously, one call per frame. The renderer pulls
``animator_state`` once per draw.
"""

from dataclasses import dataclass
import logging
from typing import Callable, Optional

from avatar_puppet.config.settings import Settings
from avatar_puppet.core.animator import AnimationDamper, AnimatorState
from avatar_puppet.core.gesture_classifier import (
    ExpressionFlags,
    GestureClassifier,
    GestureLabel,
)
from avatar_puppet.core.landmarks import LandmarkFrame
from avatar_puppet.core.pose_mapper import PoseToRigMapper, RigTarget

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PuppetFrame:
    """Classification and mapping result for a single landmark frame."""

    label: GestureLabel = GestureLabel.NONE
    raw_label: GestureLabel = GestureLabel.NONE
    flags: ExpressionFlags = ExpressionFlags()
    target: Optional[RigTarget] = None
    timestamp: Optional[float] = None

    @property
    def has_gesture(self) -> bool:
        return self.label is not GestureLabel.NONE


class AvatarPuppeteer:
    """
    Drives an avatar rig from a stream of landmark frames.

    Example:
        >>> puppeteer = AvatarPuppeteer()
        >>> for frame in frames:
        ...     state = puppeteer.process(frame, 1 / 30)
        ...     print(puppeteer.gesture.display_name, state.body.z)
        >>> puppeteer.reset()
    """

    def __init__(self, settings: Optional[Settings] = None):
        """
        Initialize the puppeteer.

        Args:
            settings: Thresholds and animation parameters (or use defaults)
        """
        self.settings = settings or Settings()

        self.classifier = GestureClassifier(self.settings.gesture, self.settings.debounce)
        self.mapper = PoseToRigMapper(self.settings.mapping)
        self.damper = AnimationDamper(self.settings.animation)

        self._last_frame = PuppetFrame()
        self._has_live_data = False
        self._frame_callback: Optional[Callable[[PuppetFrame], None]] = None

    def set_frame_callback(self, callback: Optional[Callable[[PuppetFrame], None]]):
        """Register a callback invoked with every processed frame."""
        self._frame_callback = callback

    @property
    def gesture(self) -> GestureLabel:
        """Debounced gesture label of the last frame."""
        return self._last_frame.label

    @property
    def expressions(self) -> ExpressionFlags:
        return self._last_frame.flags

    @property
    def last_frame(self) -> PuppetFrame:
        return self._last_frame

    @property
    def animator_state(self) -> AnimatorState:
        return self.damper.state

    @property
    def has_live_data(self) -> bool:
        """Whether the latest delivery carried any landmarks."""
        return self._has_live_data

    def on_frame(self, frame: Optional[LandmarkFrame]) -> PuppetFrame:
        """
        Process a landmark frame delivered by the tracker.

        Args:
            frame: Landmarks of the current frame, or None when the tracker
                reports nothing

        Returns:
            PuppetFrame with the labels, flags and rig target
        """
        if frame is None or frame.is_empty:
            if self._has_live_data:
                logger.debug("Landmarks lost, switching to idle motion")
            self._has_live_data = False
            frame = frame or LandmarkFrame()
        else:
            if not self._has_live_data:
                logger.debug("Landmarks acquired, driving avatar from pose")
            self._has_live_data = True

        label = self.classifier.classify(frame)
        flags = self.classifier.expressions(frame)
        target = self.mapper.update(frame, label, flags)

        if label is not self._last_frame.label:
            logger.info("Gesture: %s", label.display_name or "none")

        result = PuppetFrame(
            label=label,
            raw_label=self.classifier.last_raw_label,
            flags=flags,
            target=target,
            timestamp=frame.timestamp,
        )
        self._last_frame = result

        if self._frame_callback is not None:
            self._frame_callback(result)

        return result

    def update(self, delta_time: float) -> AnimatorState:
        """
        Advance the animation by one tick.

        Uses the latest rig target while live landmarks are available and
        the idle motion otherwise.
        """
        target = self._last_frame.target if self._has_live_data else None
        return self.damper.tick(
            target,
            self._last_frame.label,
            self._last_frame.flags,
            delta_time,
        )

    def process(self, frame: Optional[LandmarkFrame], delta_time: float) -> AnimatorState:
        """Handle one frame and advance the animation in a single tick."""
        self.on_frame(frame)
        return self.update(delta_time)

    def reset(self):
        """Restore classifier, mapper and animator to their initial state."""
        self.classifier.reset()
        self.mapper.reset()
        self.damper.reset()
        self._last_frame = PuppetFrame()
        self._has_live_data = False
        logger.info("Puppeteer reset")
