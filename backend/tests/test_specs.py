import unittest

from fusion.domain.errors import InvalidSpecError
from fusion.domain.specs import LightingSpec, PlacementSpec


class TestPlacementSpec(unittest.TestCase):
    def test_defaults(self):
        p = PlacementSpec()
        self.assertIsNone(p.x)
        self.assertIsNone(p.y)
        self.assertEqual(p.scale, 0.35)

    def test_scale_ceiling(self):
        for requested, effective in [(0.1, 0.1), (0.9, 0.9), (1.0, 0.9), (3.0, 0.9)]:
            with self.subTest(requested=requested):
                self.assertEqual(PlacementSpec(scale=requested).effective_scale, effective)

    def test_rejects_bad_values(self):
        for kwargs in [
            {"scale": 0},
            {"scale": -0.2},
            {"scale": float("inf")},
            {"x": float("nan")},
            {"y": "10"},
            {"x": True},
        ]:
            with self.subTest(**{k: repr(v) for k, v in kwargs.items()}):
                with self.assertRaises(InvalidSpecError):
                    PlacementSpec(**kwargs)

    def test_invalid_spec_is_value_error(self):
        with self.assertRaises(ValueError):
            PlacementSpec(scale=0)

    def test_from_dict(self):
        p = PlacementSpec.from_dict({"x": 10, "y": 20.5})
        self.assertEqual((p.x, p.y, p.scale), (10.0, 20.5, 0.35))
        self.assertEqual(PlacementSpec.from_dict(None), PlacementSpec())
        with self.assertRaises(InvalidSpecError):
            PlacementSpec.from_dict(["x", 1])


class TestLightingSpec(unittest.TestCase):
    def test_defaults_disabled(self):
        spec = LightingSpec()
        self.assertFalse(spec.enabled)
        self.assertEqual(spec.gain, 1.0)
        self.assertEqual(spec.shadow_opacity, 0.0)

    def test_shadow_opacity_caps_at_thirty_percent(self):
        self.assertAlmostEqual(LightingSpec(enabled=True, shadow_intensity=1.0).shadow_opacity, 0.3)
        self.assertAlmostEqual(LightingSpec(enabled=True, shadow_intensity=0.5).shadow_opacity, 0.15)

    def test_ranges(self):
        LightingSpec(enabled=True, brightness=-1.0, shadow_intensity=0.0)
        LightingSpec(enabled=True, brightness=2.0, shadow_intensity=1.0)
        for kwargs in [
            {"brightness": -1.01},
            {"brightness": 2.5},
            {"shadow_intensity": -0.1},
            {"shadow_intensity": 1.1},
            {"brightness": float("nan")},
            {"enabled": "yes"},
        ]:
            with self.subTest(**{k: repr(v) for k, v in kwargs.items()}):
                with self.assertRaises(InvalidSpecError):
                    LightingSpec(**kwargs)

    def test_from_dict_accepts_camel_case(self):
        spec = LightingSpec.from_dict({"enabled": True, "brightness": 0.1, "shadowIntensity": 0.4})
        self.assertEqual(spec, LightingSpec(enabled=True, brightness=0.1, shadow_intensity=0.4))
        self.assertEqual(spec.to_dict(), {"enabled": True, "brightness": 0.1, "shadowIntensity": 0.4})

    def test_from_dict_missing_fields(self):
        spec = LightingSpec.from_dict({"enabled": True})
        self.assertEqual((spec.brightness, spec.shadow_intensity), (0.0, 0.0))


if __name__ == "__main__":
    unittest.main()
