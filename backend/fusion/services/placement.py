from __future__ import annotations

import math
from typing import Any

from fusion.domain.errors import InvalidDimensionsError
from fusion.domain.specs import DEFAULT_LIGHTING, DEFAULT_SCALE, PlacementSuggestion
from fusion.services.compositor import round_half_up
from fusion.services.image_io import ImageSource, image_size

# keyword -> fraction of the background along that axis
HORIZONTAL_KEYWORDS = {"left": 0.25, "right": 0.75}
VERTICAL_KEYWORDS = {"top": 0.25, "bottom": 0.75}
CENTER_KEYWORD = "center"

# keyword -> scale
SIZE_KEYWORDS = {
    "large": 0.5,
    "prominent": 0.5,
    "small": 0.25,
    "subtle": 0.25,
}


def _dimension(name: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidDimensionsError(f"{name} must be a number (got {value!r})")
    if not math.isfinite(value) or value <= 0:
        raise InvalidDimensionsError(f"{name} must be a positive finite number (got {value!r})")
    return float(value)


def _last_keyword(desc: str, table: dict[str, float]) -> float | None:
    """Value of the keyword whose last occurrence is furthest right in desc, if any."""
    best_pos = -1
    best_val = None
    for keyword, value in table.items():
        pos = desc.rfind(keyword)
        if pos > best_pos:
            best_pos, best_val = pos, value
    return best_val


def suggest_placement(background_size: tuple[int, int], description: str | None) -> PlacementSuggestion:
    """Keyword heuristic placement without any vision API.

    - Position: left/right and top/bottom move the center to 25%/75% of the axis;
      "center" anywhere resets both axes to the middle.
    - Scale: large/prominent -> 0.5, small/subtle -> 0.25, else 0.35.
    - Colliding keywords on one axis (or sizes): the one mentioned last wins.
    """
    try:
        width, height = background_size
    except (TypeError, ValueError) as exc:
        raise InvalidDimensionsError(f"background size must be (width, height) (got {background_size!r})") from exc
    width = _dimension("width", width)
    height = _dimension("height", height)

    desc = (description or "").lower()

    x_frac = _last_keyword(desc, HORIZONTAL_KEYWORDS) or 0.5
    y_frac = _last_keyword(desc, VERTICAL_KEYWORDS) or 0.5
    if CENTER_KEYWORD in desc:
        x_frac = y_frac = 0.5

    scale = _last_keyword(desc, SIZE_KEYWORDS) or DEFAULT_SCALE

    return PlacementSuggestion(
        x=round_half_up(width * x_frac),
        y=round_half_up(height * y_frac),
        scale=scale,
        lighting=DEFAULT_LIGHTING,
    )


def suggest_placement_for_image(background: ImageSource, description: str | None) -> PlacementSuggestion:
    return suggest_placement(image_size(background), description)
