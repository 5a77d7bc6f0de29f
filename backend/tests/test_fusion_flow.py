import io
import tempfile
import unittest
from pathlib import Path

from PIL import Image

from fusion.domain.errors import DecodeError
from fusion.domain.specs import DEFAULT_LIGHTING, LightingSpec, PlacementSpec
from fusion.services.fusion_flow import generate_fusion_visual


def _png_bytes(img: Image.Image) -> bytes:
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


class TestGenerateFusionVisual(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.out_dir = Path(self._tmp.name)
        self.bg = _png_bytes(Image.new("RGB", (1000, 800), (20, 20, 20)))
        self.prod = _png_bytes(Image.new("RGBA", (100, 100), (255, 255, 255, 255)))

    def tearDown(self):
        self._tmp.cleanup()

    def test_description_drives_placement_and_lighting(self):
        res = generate_fusion_visual(self.bg, self.prod, description="left, large", output_dir=self.out_dir)
        self.assertEqual((res.placement.x, res.placement.y, res.placement.scale), (250, 400, 0.5))
        self.assertEqual(res.lighting, DEFAULT_LIGHTING)
        self.assertIsNone(res.lighting_analysis)
        with Image.open(res.output_path) as img:
            self.assertEqual(img.size, (1000, 800))

    def test_auto_lighting_overrides_advisor_default(self):
        res = generate_fusion_visual(
            self.bg, self.prod, description="bottom", auto_lighting=True, output_dir=self.out_dir
        )
        self.assertIsNotNone(res.lighting_analysis)
        self.assertEqual((res.lighting.brightness, res.lighting.shadow_intensity), (-0.15, 0.4))

    def test_explicit_values_win(self):
        placement = PlacementSpec(x=100, y=100, scale=0.2)
        lighting = LightingSpec(enabled=False)
        res = generate_fusion_visual(
            self.bg,
            self.prod,
            description="right, small",
            placement=placement,
            lighting=lighting,
            auto_lighting=True,
            output_dir=self.out_dir,
        )
        self.assertEqual(res.placement, placement)
        self.assertEqual(res.lighting, lighting)
        self.assertIsNone(res.lighting_analysis)

    def test_no_hints_means_plain_centered_composite(self):
        res = generate_fusion_visual(self.bg, self.prod, output_dir=self.out_dir)
        self.assertEqual(res.placement, PlacementSpec())
        self.assertFalse(res.lighting.enabled)
        # product is white, centered, unlit
        with Image.open(res.output_path) as img:
            self.assertEqual(img.getpixel((500, 400)), (255, 255, 255, 255))

    def test_to_dict(self):
        res = generate_fusion_visual(self.bg, self.prod, description="top", output_dir=self.out_dir)
        data = res.to_dict()
        self.assertEqual(data["placement"]["y"], 200)
        self.assertEqual(data["lighting"]["shadowIntensity"], 0.2)
        self.assertEqual(data["trace_id"], res.trace_id)

    def test_bad_background(self):
        with self.assertRaises(DecodeError):
            generate_fusion_visual(b"nope", self.prod, description="left", output_dir=self.out_dir)


if __name__ == "__main__":
    unittest.main()
