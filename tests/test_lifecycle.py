from __future__ import annotations

import unittest

from mediascope_plot.errors import PlotDataError
from mediascope_plot.lifecycle import MarkLayer, Transition, ease_cubic_in_out, interpolate_value
from mediascope_plot.marks import Mark


def _bar(key: str, height: float = 10.0) -> Mark:
    return Mark(key=key, kind="rect", attrs={"x": 0.0, "y": 0.0, "width": 5.0, "height": height, "opacity": 1.0})


def _grow(mark: Mark) -> dict[str, float]:
    return {"height": 0.0, "opacity": 0.0}


class EasingTests(unittest.TestCase):
    def test_cubic_in_out_endpoints_and_midpoint(self) -> None:
        self.assertEqual(ease_cubic_in_out(0.0), 0.0)
        self.assertEqual(ease_cubic_in_out(0.5), 0.5)
        self.assertEqual(ease_cubic_in_out(1.0), 1.0)
        self.assertLess(ease_cubic_in_out(0.25), 0.25)

    def test_interpolate_value_kinds(self) -> None:
        self.assertEqual(interpolate_value(0.0, 10.0, 0.5), 5.0)
        self.assertEqual(interpolate_value("#000000", "#ffffff", 0.5), "#808080")
        self.assertEqual(interpolate_value(((0.0, 0.0),), ((2.0, 4.0),), 0.5), ((1.0, 2.0),))
        self.assertEqual(interpolate_value("start", "end", 0.5), "start")
        self.assertEqual(interpolate_value("start", "end", 1.0), "end")

    def test_transition_progress_clamps(self) -> None:
        t = Transition({"r": 0.0}, {"r": 4.0}, start_ms=100.0, duration_ms=200.0)
        self.assertEqual(t.progress(50.0), 0.0)
        self.assertEqual(t.attrs_at(200.0), {"r": 2.0})
        self.assertTrue(t.done(300.0))


class MarkLayerTests(unittest.TestCase):
    def test_keyed_diff_enter_update_exit(self) -> None:
        layer = MarkLayer("bars")
        layer.join([_bar("A"), _bar("B"), _bar("C")], 0.0, enter=_grow)
        layer.advance(1000.0)
        result = layer.join([_bar("B"), _bar("C", 20.0), _bar("D")], 1000.0, enter=_grow)
        self.assertEqual(result.enter, ("D",))
        self.assertEqual(result.update, ("B", "C"))
        self.assertEqual(result.exit, ("A",))

        exiting = layer.get("A")
        self.assertIsNotNone(exiting)
        self.assertFalse(exiting.interactive)
        layer.advance(1000.0 + 300.0)
        self.assertNotIn("A", layer)
        self.assertEqual(layer.keys(), ("B", "C", "D"))
        layer.advance(1000.0 + 500.0)
        self.assertEqual(layer.get("C").attrs["height"], 20.0)
        self.assertTrue(layer.settled)

    def test_enter_starts_from_pre_transition_attrs(self) -> None:
        layer = MarkLayer()
        layer.join([_bar("A", 40.0)], 0.0, enter=_grow)
        self.assertEqual(layer.get("A", 0.0).attrs["height"], 0.0)
        self.assertAlmostEqual(layer.get("A", 250.0).attrs["height"], 20.0)
        self.assertFalse(layer.get("A", 250.0).interactive)
        layer.advance(500.0)
        mark = layer.get("A")
        self.assertEqual(mark.attrs["height"], 40.0)
        self.assertTrue(mark.interactive)

    def test_update_starts_from_current_attrs_mid_transition(self) -> None:
        layer = MarkLayer()
        layer.join([_bar("A", 40.0)], 0.0, enter=_grow)
        layer.join([_bar("A", 100.0)], 250.0)
        self.assertAlmostEqual(layer.get("A", 250.0).attrs["height"], 20.0)
        layer.advance(750.0)
        self.assertEqual(layer.get("A").attrs["height"], 100.0)

    def test_rejoining_identical_targets_is_idempotent(self) -> None:
        layer = MarkLayer()
        targets = [_bar("A"), _bar("B", 30.0)]
        layer.join(targets, 0.0)
        layer.advance(600.0)
        before = layer.marks()
        result = layer.join(targets, 700.0)
        self.assertEqual(result.update, ("A", "B"))
        self.assertTrue(layer.settled)
        self.assertEqual(layer.marks(), before)

    def test_exiting_mark_can_come_back(self) -> None:
        layer = MarkLayer()
        layer.join([_bar("A")], 0.0)
        layer.advance(500.0)
        layer.join([], 500.0)
        result = layer.join([_bar("A")], 600.0)
        self.assertEqual(result.enter, ("A",))
        layer.advance(1200.0)
        self.assertEqual(layer.get("A").attrs["opacity"], 1.0)

    def test_zero_duration_layer_applies_immediately(self) -> None:
        layer = MarkLayer(duration_ms=0.0, exit_duration_ms=0.0)
        layer.join([_bar("A")], 0.0)
        self.assertTrue(layer.settled)
        result = layer.join([], 10.0)
        self.assertEqual(result.exit, ("A",))
        self.assertEqual(len(layer), 0)

    def test_duplicate_keys_are_rejected(self) -> None:
        with self.assertRaises(PlotDataError):
            MarkLayer().join([_bar("A"), _bar("A")], 0.0)

    def test_emphasis_animates_and_reverts_without_blocking(self) -> None:
        layer = MarkLayer()
        layer.join([_bar("A")], 0.0)
        layer.advance(500.0)
        self.assertTrue(layer.emphasize("A", {"opacity": 0.8}, 500.0, duration_ms=200.0))
        self.assertTrue(layer.get("A", 600.0).interactive)
        layer.advance(700.0)
        self.assertEqual(layer.get("A").attrs["opacity"], 0.8)
        layer.emphasize("A", None, 700.0, duration_ms=200.0)
        layer.advance(900.0)
        self.assertEqual(layer.get("A").attrs["opacity"], 1.0)
        self.assertFalse(layer.emphasize("missing", {"opacity": 0.5}, 900.0))

    def test_hit_test_prefers_topmost_interactive_mark(self) -> None:
        layer = MarkLayer(duration_ms=0.0)
        layer.join([_bar("under"), _bar("over")], 0.0)
        self.assertEqual(layer.hit_test(2.0, 2.0).key, "over")
        self.assertIsNone(layer.hit_test(50.0, 50.0))


if __name__ == "__main__":
    unittest.main()
