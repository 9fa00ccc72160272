"""Configuration module for avatar puppet."""

from avatar_puppet.config.settings import (
    Settings,
    GestureConfig,
    DebounceConfig,
    MappingConfig,
    AnimationConfig,
)

__all__ = [
    "Settings",
    "GestureConfig",
    "DebounceConfig",
    "MappingConfig",
    "AnimationConfig",
]
