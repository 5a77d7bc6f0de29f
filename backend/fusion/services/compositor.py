from __future__ import annotations

import math
import os
from pathlib import Path
from typing import Optional, Union

import numpy as np
from PIL import Image

from fusion.core.config import get_settings
from fusion.core.logger import TaskLogger
from fusion.domain.errors import CompositingError
from fusion.domain.specs import SHADOW_MAX_OPACITY, CompositeResult, LightingSpec, PlacementSpec
from fusion.services.image_io import ImageSource, load_image, new_output_name, save_png_atomic


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def fit_inside(size: tuple[int, int], box: tuple[int, int]) -> tuple[int, int]:
    """Largest aspect-preserving size of `size` that fits inside `box` (may grow or shrink)."""
    w, h = size
    max_w, max_h = box
    ratio = min(max_w / w, max_h / h)
    fw = min(max_w, max(1, round_half_up(w * ratio)))
    fh = min(max_h, max(1, round_half_up(h * ratio)))
    return fw, fh


def target_box(bg_size: tuple[int, int], scale: float) -> tuple[int, int]:
    bw, bh = bg_size
    return max(1, round_half_up(bw * scale)), max(1, round_half_up(bh * scale))


def resolve_top_left(
    bg_size: tuple[int, int],
    product_size: tuple[int, int],
    x: Optional[float] = None,
    y: Optional[float] = None,
) -> tuple[int, int]:
    """Turn a center point (None = background center) into a clamped top-left corner.

    The product's bounding box always ends up inside [0, W-w] x [0, H-h].
    """
    bw, bh = bg_size
    pw, ph = product_size

    left = round_half_up(x - pw / 2) if x is not None else round_half_up((bw - pw) / 2)
    top = round_half_up(y - ph / 2) if y is not None else round_half_up((bh - ph) / 2)

    left = max(0, min(left, max(0, bw - pw)))
    top = max(0, min(top, max(0, bh - ph)))
    return left, top


def apply_brightness(product_rgba: Image.Image, brightness: float) -> Image.Image:
    """Linear gain of (1 + brightness) on RGB; black stays black, alpha is untouched."""
    rgba = np.array(product_rgba.convert("RGBA"), dtype=np.float32)
    rgba[..., :3] = np.clip(np.rint(rgba[..., :3] * (1.0 + brightness)), 0, 255)
    return Image.fromarray(rgba.astype(np.uint8), mode="RGBA")


def apply_shadow_overlay(product_rgba: Image.Image, shadow_intensity: float) -> Image.Image:
    """Multiply-blend a black overlay of opacity shadow_intensity * 0.3 over the product.

    result = base * (1 - a) + (base * black) * a. Alpha is untouched, so the
    transparent padding around a cutout does not pick up a dark box.
    """
    overlay_opacity = shadow_intensity * SHADOW_MAX_OPACITY
    w, h = product_rgba.size
    overlay = np.zeros((h, w, 3), dtype=np.float32)

    rgba = np.array(product_rgba.convert("RGBA"), dtype=np.float32)
    base = rgba[..., :3]
    multiplied = base * overlay / 255.0
    rgba[..., :3] = np.clip(np.rint(base * (1.0 - overlay_opacity) + multiplied * overlay_opacity), 0, 255)
    return Image.fromarray(rgba.astype(np.uint8), mode="RGBA")


class Compositor:
    @staticmethod
    def render(
        background: ImageSource,
        product: ImageSource,
        placement: Optional[PlacementSpec] = None,
        lighting: Optional[LightingSpec] = None,
        *,
        logger: Optional[TaskLogger] = None,
    ) -> CompositeResult:
        """
        Place the product cutout on the background and return the composite in memory.

        Args:
            background: path, bytes or binary stream; its size is the output size
            product: path, bytes or binary stream; alpha is used when present
            placement: center point + scale; defaults to centered at 0.35
            lighting: optional brightness/shadow adjustment of the product only
        """
        logger = logger or TaskLogger()
        placement = placement or PlacementSpec()
        lighting = lighting or LightingSpec()

        # 1. Background: decoded once from its original bytes, never resized.
        bg_img = load_image(background)
        bw, bh = bg_img.size
        logger.info("Background decoded", width=bw, height=bh, format=bg_img.format)

        # 2. Product
        prod_img = load_image(product)
        prod_rgba = prod_img.convert("RGBA")
        logger.info("Product decoded", width=prod_rgba.width, height=prod_rgba.height, mode=prod_img.mode)

        # 3-4. Fit the product into the scaled box; geometry uses the actual size.
        scale = placement.effective_scale
        box = target_box((bw, bh), scale)
        aw, ah = fit_inside(prod_rgba.size, box)
        if (aw, ah) != prod_rgba.size:
            prod_rgba = prod_rgba.resize((aw, ah), Image.Resampling.LANCZOS)
        logger.info("Product resized", scale=scale, max_width=box[0], max_height=box[1], width=aw, height=ah)

        # 5. Lighting (product layer only)
        if lighting.enabled:
            if lighting.brightness != 0:
                prod_rgba = apply_brightness(prod_rgba, lighting.brightness)
                logger.info("Brightness adjusted", gain=lighting.gain)
            if lighting.shadow_intensity > 0:
                prod_rgba = apply_shadow_overlay(prod_rgba, lighting.shadow_intensity)
                logger.info("Shadow overlay applied", opacity=lighting.shadow_opacity)

        # 6. Placement
        top_left = resolve_top_left((bw, bh), (aw, ah), placement.x, placement.y)
        logger.info("Product placed", center_x=placement.x, center_y=placement.y, left=top_left[0], top=top_left[1])

        # 7. Source-over on an untouched copy of the background
        canvas = bg_img.convert("RGBA")
        canvas.alpha_composite(prod_rgba, dest=top_left)

        if canvas.size != (bw, bh):
            raise CompositingError(f"composite size {canvas.size} differs from background {(bw, bh)}")

        return CompositeResult(
            image=canvas,
            top_left=top_left,
            product_size=(aw, ah),
            scale=scale,
            lighting=lighting,
        )

    def composite(
        self,
        background: ImageSource,
        product: ImageSource,
        placement: Optional[PlacementSpec] = None,
        lighting: Optional[LightingSpec] = None,
        *,
        output_dir: Union[str, os.PathLike, None] = None,
        output_path: Union[str, os.PathLike, None] = None,
        logger: Optional[TaskLogger] = None,
    ) -> Path:
        """Composite and write a PNG. Returns the written path.

        Without output_path a fresh `fusion-composite-<ms>-<hex>.png` is created in
        output_dir (default: FUSION_OUTPUT_DIR).
        """
        logger = logger or TaskLogger()
        try:
            result = self.render(background, product, placement, lighting, logger=logger)
            if output_path is None:
                out_dir = Path(output_dir) if output_dir is not None else get_settings().output_dir
                output_path = out_dir / new_output_name()
            written = save_png_atomic(result.image, output_path)
        except CompositingError as exc:
            logger.error("Compositing failed", error_type=type(exc).__name__, error=str(exc))
            raise

        logger.info("Composite written", path=str(written), width=result.image.width, height=result.image.height)
        return written
