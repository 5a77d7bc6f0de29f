from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from PIL import Image

from fusion.domain.errors import InvalidSpecError

DEFAULT_SCALE = 0.35
MAX_SCALE = 0.9

BRIGHTNESS_RANGE = (-1.0, 2.0)
SHADOW_RANGE = (0.0, 1.0)
# Full shadow intensity maps to this overlay opacity.
SHADOW_MAX_OPACITY = 0.3


def _finite(name: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidSpecError(f"{name} must be a number (got {value!r})")
    value = float(value)
    if not math.isfinite(value):
        raise InvalidSpecError(f"{name} must be finite (got {value!r})")
    return value


def _pick(data: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return None


@dataclass(frozen=True)
class PlacementSpec:
    """Where the product goes: (x, y) is the CENTER in background pixels, None = background center."""

    x: Optional[float] = None
    y: Optional[float] = None
    scale: float = DEFAULT_SCALE

    def __post_init__(self):
        if self.x is not None:
            object.__setattr__(self, "x", _finite("x", self.x))
        if self.y is not None:
            object.__setattr__(self, "y", _finite("y", self.y))
        scale = _finite("scale", self.scale)
        if scale <= 0:
            raise InvalidSpecError(f"scale must be > 0 (got {scale})")
        object.__setattr__(self, "scale", scale)

    @property
    def effective_scale(self) -> float:
        return min(self.scale, MAX_SCALE)

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "PlacementSpec":
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise InvalidSpecError(f"placement must be an object (got {type(data).__name__})")
        scale = _pick(data, "scale")
        return cls(
            x=_pick(data, "x"),
            y=_pick(data, "y"),
            scale=DEFAULT_SCALE if scale is None else scale,
        )

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "scale": self.scale}


@dataclass(frozen=True)
class LightingSpec:
    enabled: bool = False
    brightness: float = 0.0
    shadow_intensity: float = 0.0

    def __post_init__(self):
        if not isinstance(self.enabled, bool):
            raise InvalidSpecError(f"enabled must be a boolean (got {self.enabled!r})")
        brightness = _finite("brightness", self.brightness)
        lo, hi = BRIGHTNESS_RANGE
        if not lo <= brightness <= hi:
            raise InvalidSpecError(f"brightness must be within [{lo}, {hi}] (got {brightness})")
        shadow = _finite("shadow_intensity", self.shadow_intensity)
        lo, hi = SHADOW_RANGE
        if not lo <= shadow <= hi:
            raise InvalidSpecError(f"shadow_intensity must be within [{lo}, {hi}] (got {shadow})")
        object.__setattr__(self, "brightness", brightness)
        object.__setattr__(self, "shadow_intensity", shadow)

    @property
    def gain(self) -> float:
        return 1.0 + self.brightness

    @property
    def shadow_opacity(self) -> float:
        return self.shadow_intensity * SHADOW_MAX_OPACITY

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "LightingSpec":
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise InvalidSpecError(f"lighting must be an object (got {type(data).__name__})")
        brightness = _pick(data, "brightness")
        shadow = _pick(data, "shadow_intensity", "shadowIntensity")
        return cls(
            enabled=data.get("enabled", False),
            brightness=0.0 if brightness is None else brightness,
            shadow_intensity=0.0 if shadow is None else shadow,
        )

    def to_dict(self) -> dict:
        return {
            "enabled": self.enabled,
            "brightness": self.brightness,
            "shadowIntensity": self.shadow_intensity,
        }


# What the advisor always recommends; also the analyzer's "neutral" outcome.
DEFAULT_LIGHTING = LightingSpec(enabled=True, brightness=0.0, shadow_intensity=0.2)


@dataclass(frozen=True)
class PlacementSuggestion:
    x: int
    y: int
    scale: float
    lighting: LightingSpec = DEFAULT_LIGHTING

    @property
    def placement(self) -> PlacementSpec:
        return PlacementSpec(x=self.x, y=self.y, scale=self.scale)

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "scale": self.scale, "lighting": self.lighting.to_dict()}


@dataclass(frozen=True)
class LightingAnalysis:
    brightness: float
    shadow_intensity: float
    recommendation: str
    # mean RGB value of the background normalized to [0, 1]
    scene_brightness: float

    def to_lighting_spec(self) -> LightingSpec:
        return LightingSpec(enabled=True, brightness=self.brightness, shadow_intensity=self.shadow_intensity)

    def to_dict(self) -> dict:
        return {
            "brightness": self.brightness,
            "shadowIntensity": self.shadow_intensity,
            "recommendation": self.recommendation,
            "sceneBrightness": self.scene_brightness,
        }


@dataclass
class CompositeResult:
    image: Image.Image
    top_left: tuple[int, int]
    product_size: tuple[int, int]
    scale: float
    lighting: LightingSpec = field(default_factory=LightingSpec)

    @property
    def bbox(self) -> tuple[int, int, int, int]:
        x, y = self.top_left
        w, h = self.product_size
        return (x, y, x + w, y + h)
