from __future__ import annotations

import numpy as np
from PIL import Image

from fusion.domain.specs import DEFAULT_LIGHTING, LightingAnalysis
from fusion.services.image_io import ImageSource, load_image, to_8bit

DARK_THRESHOLD = 0.3
BRIGHT_THRESHOLD = 0.7


def _scene_brightness(img: Image.Image) -> float:
    # Alpha is ignored; 16-bit, grayscale and palette images are brought to 8-bit RGB first.
    rgb = np.asarray(to_8bit(img).convert("RGB"), dtype=np.float64)
    channel_means = rgb.reshape(-1, 3).mean(axis=0)
    return float(channel_means.mean() / 255.0)


def analyze_lighting_image(img: Image.Image) -> LightingAnalysis:
    """Global-mean brightness heuristic: darken the product in dark scenes, brighten it in bright ones."""
    level = _scene_brightness(img)

    if level < DARK_THRESHOLD:
        return LightingAnalysis(
            brightness=-0.15,
            shadow_intensity=0.4,
            recommendation="Dark scene detected - product darkened with stronger shadows",
            scene_brightness=level,
        )
    if level > BRIGHT_THRESHOLD:
        return LightingAnalysis(
            brightness=0.1,
            shadow_intensity=0.1,
            recommendation="Bright scene detected - product brightened with subtle shadows",
            scene_brightness=level,
        )
    return LightingAnalysis(
        brightness=DEFAULT_LIGHTING.brightness,
        shadow_intensity=DEFAULT_LIGHTING.shadow_intensity,
        recommendation="Neutral lighting with subtle shadows",
        scene_brightness=level,
    )


def analyze_lighting(background: ImageSource) -> LightingAnalysis:
    return analyze_lighting_image(load_image(background))
