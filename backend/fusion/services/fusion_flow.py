from __future__ import annotations

import os
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from fusion.core.logger import TaskLogger
from fusion.domain.errors import CompositingError
from fusion.domain.specs import LightingAnalysis, LightingSpec, PlacementSpec
from fusion.services.compositor import Compositor
from fusion.services.image_io import ImageSource, decode_image, read_source_bytes
from fusion.services.lighting import analyze_lighting_image
from fusion.services.placement import suggest_placement

compositor = Compositor()


@dataclass(frozen=True)
class FusionResult:
    output_path: Path
    placement: PlacementSpec
    lighting: LightingSpec
    lighting_analysis: Optional[LightingAnalysis]
    trace_id: str

    def to_dict(self) -> dict:
        return {
            "output_path": str(self.output_path),
            "placement": self.placement.to_dict(),
            "lighting": self.lighting.to_dict(),
            "lighting_analysis": self.lighting_analysis.to_dict() if self.lighting_analysis else None,
            "trace_id": self.trace_id,
        }


def generate_fusion_visual(
    background: ImageSource,
    product: ImageSource,
    *,
    description: Optional[str] = None,
    placement: Optional[PlacementSpec] = None,
    lighting: Optional[LightingSpec] = None,
    auto_lighting: bool = False,
    output_dir: Union[str, os.PathLike, None] = None,
) -> FusionResult:
    """Fill in placement/lighting defaults the way a fusion-visual handler does, then composite.

    Precedence:
    - placement: explicit > suggested from description > compositor default
    - lighting: explicit > analyzer (auto_lighting) > advisor default (only with a description)
    """
    task_id = str(uuid.uuid4())
    logger = TaskLogger(trace_id=task_id)

    analysis = None
    suggested_lighting = None
    try:
        # Inputs are read once; every step below works on the same bytes.
        bg_bytes = read_source_bytes(background)
        prod_bytes = read_source_bytes(product)

        if placement is None and description:
            bg_img = decode_image(bg_bytes)
            suggestion = suggest_placement(bg_img.size, description)
            placement = suggestion.placement
            suggested_lighting = suggestion.lighting
            logger.info("Placement suggested", description=description, **suggestion.to_dict())

        if lighting is None and auto_lighting:
            analysis = analyze_lighting_image(decode_image(bg_bytes))
            lighting = analysis.to_lighting_spec()
            logger.info("Lighting analyzed", **analysis.to_dict())
    except CompositingError as exc:
        logger.error("Fusion inputs failed", error_type=type(exc).__name__, error=str(exc))
        raise

    placement = placement or PlacementSpec()
    lighting = lighting or suggested_lighting or LightingSpec()

    output_path = compositor.composite(
        bg_bytes,
        prod_bytes,
        placement,
        lighting,
        output_dir=output_dir,
        logger=logger,
    )

    return FusionResult(
        output_path=output_path,
        placement=placement,
        lighting=lighting,
        lighting_analysis=analysis,
        trace_id=task_id,
    )
