"""
Tunable constants for gesture detection, debouncing, pose mapping and
animation.

Every threshold the core uses lives in one of these dataclasses so it can
be tuned from a YAML file without touching the algorithms.
"""

from dataclasses import dataclass, field, fields
import math
from pathlib import Path
from typing import List, Optional

import yaml


@dataclass
class GestureConfig:
    """Geometric thresholds for the per-frame detectors (normalized units)."""

    # Waving: wrist raised above the shoulder and held out to the side
    wave_shoulder_margin: float = 0.05
    wave_side_offset: float = 0.1

    # Finger extension / folding relative to the MCP knuckle
    extended_margin: float = 0.02
    folded_margin: float = 0.01
    peace_min_separation: float = 0.03

    # Open palm and closed fist counting
    open_palm_margin: float = 0.01
    open_palm_min_extended: int = 4
    closed_fist_margin: float = 0.01
    closed_fist_min_folded: int = 3

    # Facial expressions
    smile_min_elevation: float = 0.004
    smile_min_aspect: float = 2.2
    blink_max_aspect: float = 0.18


@dataclass
class DebounceConfig:
    """Temporal smoothing of raw gesture labels."""

    min_confidence: int = 3  # Consecutive frames before a label is reported
    history_length: int = 10
    recent_window: int = 5
    min_recent_count: int = 3  # Occurrences within recent_window


@dataclass
class MappingConfig:
    """Weights used to turn pose landmarks into rig rotations."""

    body_tilt_weight: float = -0.5
    head_yaw_gain: float = 2.0
    head_roll_weight: float = -0.3
    arm_angle_offset: float = -math.pi / 2
    leg_angle_offset: float = 0.0


@dataclass
class AnimationConfig:
    """Damping, procedural wave and idle motion parameters."""

    # Fraction of the gap left after one second of smoothing
    damping_base: float = 0.01

    # Procedural wave
    wave_speed: float = 8.0
    wave_amplitude: float = 0.5
    wave_offset: float = 0.5

    # Scale targets
    smile_head_scale: float = 1.05
    gesture_hand_scale: float = 1.1

    # Idle sway / bob
    idle_bob_frequency: float = 2.0
    idle_bob_amplitude: float = 0.1
    idle_sway_frequency: float = 0.5
    idle_sway_amplitude: float = 0.1


def _coerce(name: str, default, value):
    """Convert a loaded value to the type of the field's default."""
    kind = type(default)
    try:
        if kind is int:
            number = float(value)
            if not number.is_integer():
                raise ValueError("not a whole number")
            return int(number)
        return kind(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"{name}: expected {kind.__name__}, got {value!r}") from e


def _section_from_dict(cls, data: Optional[dict], section: str = ""):
    """
    Build a config section, ignoring keys the dataclass does not know.

    Raises:
        ValueError: If the section is not a mapping or a value has the
            wrong type
    """
    config = cls()
    if not data:
        return config
    if not isinstance(data, dict):
        raise ValueError(f"Settings section '{section}' must be a mapping")
    known = {f.name for f in fields(cls)}
    for key, value in data.items():
        if key in known:
            setattr(config, key, _coerce(f"{section}.{key}", getattr(config, key), value))
    return config


def _section_to_dict(section) -> dict:
    return {f.name: getattr(section, f.name) for f in fields(section)}


@dataclass
class Settings:
    """Aggregate settings for an avatar puppeteer session."""

    gesture: GestureConfig = field(default_factory=GestureConfig)
    debounce: DebounceConfig = field(default_factory=DebounceConfig)
    mapping: MappingConfig = field(default_factory=MappingConfig)
    animation: AnimationConfig = field(default_factory=AnimationConfig)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "gesture": _section_to_dict(self.gesture),
            "debounce": _section_to_dict(self.debounce),
            "mapping": _section_to_dict(self.mapping),
            "animation": _section_to_dict(self.animation),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Settings":
        """Create from dictionary."""
        data = data or {}
        return cls(
            gesture=_section_from_dict(GestureConfig, data.get("gesture"), "gesture"),
            debounce=_section_from_dict(DebounceConfig, data.get("debounce"), "debounce"),
            mapping=_section_from_dict(MappingConfig, data.get("mapping"), "mapping"),
            animation=_section_from_dict(AnimationConfig, data.get("animation"), "animation"),
        )

    @classmethod
    def from_yaml(cls, path: Path) -> "Settings":
        """Load settings from a YAML file."""
        with open(path, "r") as f:
            data = yaml.safe_load(f)
        if data is not None and not isinstance(data, dict):
            raise ValueError(f"Settings file {path} must contain a mapping")
        return cls.from_dict(data or {})

    def to_yaml(self, path: Path) -> None:
        """Save settings to a YAML file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)

    def validate(self) -> List[str]:
        """Validate settings and return a list of problems."""
        issues = []

        if self.debounce.history_length < 1:
            issues.append("debounce.history_length must be at least 1")
        if self.debounce.recent_window > self.debounce.history_length:
            issues.append(
                "debounce.recent_window is larger than debounce.history_length"
            )
        if self.debounce.min_recent_count > self.debounce.recent_window:
            issues.append(
                "debounce.min_recent_count can never be reached within recent_window"
            )
        if self.debounce.min_confidence < 1:
            issues.append("debounce.min_confidence must be at least 1")

        if not 0.0 < self.animation.damping_base < 1.0:
            issues.append("animation.damping_base must be between 0 and 1 (exclusive)")

        if not 0 <= self.gesture.open_palm_min_extended <= 5:
            issues.append("gesture.open_palm_min_extended must be between 0 and 5")
        if not 0 <= self.gesture.closed_fist_min_folded <= 4:
            issues.append("gesture.closed_fist_min_folded must be between 0 and 4")

        return issues
