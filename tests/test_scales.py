from __future__ import annotations

import math
import unittest

from mediascope_plot.scales import (
    BandScale,
    LinearScale,
    PointScale,
    RadialScale,
    band_scale,
    extent,
    format_tick,
    format_ticks,
    linear_scale,
    nice_ticks,
    point_scale,
    radial_scale,
    resolve_position,
    scale_ticks,
)


class BandScaleTests(unittest.TestCase):
    def test_bands_follow_encounter_order_with_padding(self) -> None:
        scale = band_scale(["b", "a", "c", "a"], 310.0)
        self.assertEqual(scale.domain, ("b", "a", "c"))
        self.assertAlmostEqual(scale.step, 100.0)
        self.assertAlmostEqual(scale.bandwidth, 90.0)
        self.assertAlmostEqual(scale.start_of("b"), 10.0)
        self.assertAlmostEqual(scale.start_of("c"), 210.0)
        self.assertAlmostEqual(scale.center_of("a"), 155.0)

    def test_sorted_domain_and_unknown_label(self) -> None:
        scale = band_scale(["b", "a"], 100.0, sort=True)
        self.assertEqual(scale.domain, ("a", "b"))
        self.assertIsNone(scale.start_of("z"))

    def test_rejects_invalid_padding(self) -> None:
        with self.assertRaises(ValueError):
            band_scale(["a"], 100.0, padding=1.0)


class LinearScaleTests(unittest.TestCase):
    def test_default_domain_has_headroom(self) -> None:
        scale = linear_scale([2.0, 10.0], 110.0)
        self.assertEqual(scale.domain[0], 0.0)
        self.assertAlmostEqual(scale.domain[1], 11.0)
        self.assertAlmostEqual(scale(5.5), 55.0)

    def test_non_positive_max_falls_back_to_unit_domain(self) -> None:
        self.assertEqual(linear_scale([0.0, -3.0], 10.0).domain, (0.0, 1.0))
        self.assertEqual(linear_scale([], 10.0).domain, (0.0, 1.0))

    def test_inverted_range_for_y_axes(self) -> None:
        scale = linear_scale([], 200.0, domain=(0.0, 10.0), invert=True)
        self.assertEqual(scale(0.0), 200.0)
        self.assertEqual(scale(10.0), 0.0)
        self.assertAlmostEqual(scale.invert(50.0), 7.5)

    def test_degenerate_domain_maps_to_middle(self) -> None:
        scale = LinearScale(domain=(3.0, 3.0), range=(0.0, 100.0))
        self.assertEqual(scale(3.0), 50.0)

    def test_extent_skips_nan(self) -> None:
        self.assertEqual(extent([3.0, math.nan, -1.0]), (-1.0, 3.0))
        self.assertEqual(extent([]), (0.0, 1.0))


class PointAndRadialScaleTests(unittest.TestCase):
    def test_point_scale_positions(self) -> None:
        scale = point_scale(["x", "y", "z"], 300.0)
        self.assertEqual([scale(v) for v in ("x", "y", "z")], [50.0, 150.0, 250.0])
        self.assertIsNone(scale("w"))

    def test_radial_explicit_max_wins(self) -> None:
        scale = radial_scale(4, 100.0, max_value=10.0, values=[50.0])
        self.assertEqual(scale.max_value, 10.0)
        self.assertAlmostEqual(scale.radius_of(5.0), 50.0)

    def test_radial_max_from_values(self) -> None:
        scale = radial_scale(4, 100.0, values=[2.0, 8.0])
        self.assertEqual(scale.max_value, 8.0)
        self.assertEqual(radial_scale(3, 100.0).radius_of(5.0), 0.0)

    def test_radial_points_go_around_from_base_angle(self) -> None:
        scale = RadialScale(n_axes=4, radius=100.0, max_value=10.0, base_angle=0.0)
        x, y = scale.point(1, 10.0)
        self.assertAlmostEqual(x, 0.0)
        self.assertAlmostEqual(y, 100.0)


class ResolvePositionTests(unittest.TestCase):
    def test_dispatches_on_every_variant(self) -> None:
        self.assertAlmostEqual(resolve_position(BandScale(("a", "b"), (0.0, 210.0), 0.1), "b"), 110.0)
        self.assertEqual(resolve_position(PointScale(("a", "b"), (0.0, 200.0), 0.5), "a"), 50.0)
        self.assertEqual(resolve_position(LinearScale((0.0, 10.0), (0.0, 100.0)), 2), 20.0)
        self.assertEqual(resolve_position(RadialScale(5, 80.0, 4.0), 2.0), 40.0)

    def test_rejects_unknown_scale(self) -> None:
        with self.assertRaises(TypeError):
            resolve_position(object(), 1.0)  # type: ignore[arg-type]


class TickTests(unittest.TestCase):
    def test_nice_ticks(self) -> None:
        self.assertEqual(list(nice_ticks(0.0, 11.0, 5)), [0.0, 2.0, 4.0, 6.0, 8.0, 10.0])
        self.assertEqual(list(nice_ticks(3.0, 3.0)), [3.0])

    def test_scale_ticks_for_categorical_scales_are_the_domain(self) -> None:
        self.assertEqual(scale_ticks(band_scale(["a", "b"], 10.0)), ("a", "b"))

    def test_tick_formatting_uses_step_decimals(self) -> None:
        self.assertEqual(format_ticks([1.5, 2.0, 2.5, 3.0]), ["1.5", "2", "2.5", "3"])
        self.assertEqual(format_ticks([20.0, 30.0, 40.0]), ["20", "30", "40"])
        self.assertEqual(format_tick(-4.4409e-16, step=1.0), "0")


if __name__ == "__main__":
    unittest.main()
