from __future__ import annotations

import contextlib
import io
import json
from pathlib import Path
import tempfile
import unittest

from mediascope_core import AnimationClock, Dashboard, DashboardEvent, DimensionTracker, Dimensions, default_panels
from mediascope_core.__main__ import _parse_filters, main
from mediascope_data import RangeBounds, Record
from mediascope_plot.marks import Scene


def _record(student_id: int, **overrides: object) -> Record:
    values: dict[str, object] = {
        "student_id": student_id,
        "age": 20.0,
        "gender": "Female",
        "academic_level": "Undergraduate",
        "country": "USA",
        "avg_daily_usage_hours": 4.0,
        "most_used_platform": "Instagram",
        "affects_academic_performance": True,
        "sleep_hours_per_night": 7.0,
        "mental_health_score": 6.0,
        "relationship_status": "Single",
        "conflicts_over_social_media": 2.0,
        "addicted_score": 6.0,
    }
    values.update(overrides)
    return Record(**values)  # type: ignore[arg-type]


RECORDS = (
    _record(1, age=19.0, most_used_platform="TikTok", sleep_hours_per_night=5.0, addicted_score=9.0),
    _record(2, age=20.0, gender="Male", most_used_platform="TikTok", academic_level="Graduate"),
    _record(3, age=22.0, most_used_platform="TikTok", sleep_hours_per_night=6.0, addicted_score=8.0),
    _record(4, age=24.0, gender="Male", most_used_platform="Instagram", academic_level="Graduate"),
    _record(5, age=21.0, most_used_platform="Instagram", sleep_hours_per_night=8.0, addicted_score=3.0),
    _record(6, age=23.0, gender="Male", most_used_platform="YouTube", country="India", affects_academic_performance=False),
)

CSV_HEADER = (
    "Student_ID,Age,Gender,Academic_Level,Country,Avg_Daily_Usage_Hours,Most_Used_Platform,"
    "Affects_Academic_Performance,Sleep_Hours_Per_Night,Mental_Health_Score,Relationship_Status,"
    "Conflicts_Over_Social_Media,Addicted_Score"
)
CSV_ROWS = (
    "1,19,Female,Undergraduate,Bangladesh,5.2,Instagram,Yes,6.5,6,In Relationship,3,8",
    "2,22,Male,Graduate,India,2.1,Twitter,No,7.5,8,Single,0,3",
    "3,20,Female,Undergraduate,USA,6.0,TikTok,Yes,5.0,5,Complicated,4,9",
)


class DimensionTrackerTests(unittest.TestCase):
    def test_first_observation_emits_immediately(self) -> None:
        seen: list[Dimensions] = []
        tracker = DimensionTracker(seen.append)
        self.assertEqual(tracker.observe(700, 450), Dimensions(700.0, 450.0))
        self.assertEqual(seen, [Dimensions(700.0, 450.0)])
        self.assertFalse(tracker.pending)

    def test_later_observations_coalesce_until_flush(self) -> None:
        seen: list[Dimensions] = []
        tracker = DimensionTracker(seen.append)
        tracker.observe(700, 450)
        self.assertIsNone(tracker.observe(600, 400))
        self.assertIsNone(tracker.observe(500, 300))
        self.assertTrue(tracker.pending)
        self.assertEqual(tracker.flush(), Dimensions(500.0, 300.0))
        self.assertEqual(len(seen), 2)
        self.assertIsNone(tracker.flush())
        self.assertEqual(tracker.current, Dimensions(500.0, 300.0))

    def test_unchanged_size_emits_nothing(self) -> None:
        seen: list[Dimensions] = []
        tracker = DimensionTracker(seen.append)
        tracker.observe(10, 10)
        tracker.observe(10, 10)
        self.assertFalse(tracker.pending)
        self.assertIsNone(tracker.flush())
        self.assertEqual(len(seen), 1)

    def test_zero_size_is_valid_but_negative_is_not(self) -> None:
        self.assertEqual(DimensionTracker().observe(0, 0), Dimensions(0.0, 0.0))
        with self.assertRaises(ValueError):
            DimensionTracker().observe(-1, 5)


class AnimationClockTests(unittest.TestCase):
    def test_frames_end_exactly_on_the_target(self) -> None:
        clock = AnimationClock(target_fps=10)
        self.assertEqual(clock.frame_ms, 100.0)
        self.assertEqual(list(clock.frames(0.0, 250.0)), [0.0, 100.0, 200.0, 250.0])
        self.assertEqual(list(clock.frames(10.0, 0.0)), [])

    def test_should_present_paces_frames(self) -> None:
        clock = AnimationClock(target_fps=10)
        self.assertTrue(clock.should_present(0.0))
        self.assertFalse(clock.should_present(50.0))
        self.assertTrue(clock.should_present(100.0))
        self.assertTrue(clock.should_present(350.0))
        self.assertFalse(clock.should_present(360.0))

    def test_rejects_non_positive_fps(self) -> None:
        with self.assertRaises(ValueError):
            AnimationClock(target_fps=0)


class DashboardTests(unittest.TestCase):
    def setUp(self) -> None:
        self.dashboard = Dashboard(default_panels())
        self.dashboard.load(RECORDS, 0.0)

    def test_panels_render_only_once_sized(self) -> None:
        self.assertEqual(self.dashboard.scenes(), {})
        scene = self.dashboard.resize("platforms", 700, 450, 0.0)
        self.assertIsInstance(scene, Scene)
        self.assertIsNotNone(scene.find("bar:TikTok"))
        self.assertEqual(set(self.dashboard.scenes()), {"platforms"})

    def test_every_default_panel_renders(self) -> None:
        for name in self.dashboard.panels:
            scene = self.dashboard.resize(name, 600, 400, 0.0)
            self.assertTrue(scene.marks, name)
        self.dashboard.advance(1000.0)
        self.assertTrue(self.dashboard.settled)
        self.assertNotIn("world", self.dashboard.panels)

    def test_resizes_are_debounced(self) -> None:
        self.dashboard.resize("gender", 400, 300, 0.0)
        self.assertIsNone(self.dashboard.resize("gender", 500, 300, 10.0))
        self.assertIsNone(self.dashboard.resize("gender", 600, 300, 20.0))
        flushed = self.dashboard.flush_resizes(30.0)
        self.assertEqual(set(flushed), {"gender"})
        self.assertEqual(flushed["gender"].width, 600.0)
        self.assertEqual(self.dashboard.flush_resizes(40.0), {})

    def test_category_colors_survive_filtering(self) -> None:
        self.dashboard.resize("platforms", 700, 450, 0.0)
        before = self.dashboard.advance(1000.0)["platforms"].find("bar:YouTube").attrs["fill"]
        self.dashboard.toggle_filter("Most_Used_Platform", "YouTube", 1000.0)
        after = self.dashboard.advance(2000.0)["platforms"]
        self.assertIsNone(after.find("bar:TikTok"))
        self.assertEqual(after.find("bar:YouTube").attrs["fill"], before)

    def test_filters_drive_every_panel(self) -> None:
        self.dashboard.resize("platforms", 700, 450, 0.0)
        scenes = self.dashboard.toggle_filter("Gender", "Male", 100.0)
        self.assertEqual(set(scenes), {"platforms"})
        self.assertEqual([r.student_id for r in self.dashboard.filtered], [2, 4, 6])
        self.assertAlmostEqual(self.dashboard.selection_ratio, 0.5)
        self.assertEqual(self.dashboard.insights().gender_split, {"Male": 3.0})
        self.dashboard.clear_filters(200.0)
        self.assertEqual(len(self.dashboard.filtered), 6)

    def test_range_filter(self) -> None:
        self.dashboard.set_range("Age", 20.0, 22.0, 0.0)
        self.assertEqual(self.dashboard.criteria["age"], RangeBounds(20.0, 22.0))
        self.assertEqual([r.student_id for r in self.dashboard.filtered], [2, 3, 5])
        self.dashboard.set_range("Age", 19.0, 24.0, 10.0)
        self.assertNotIn("age", self.dashboard.criteria)

    def test_clicking_a_bar_toggles_its_filter(self) -> None:
        self.dashboard.resize("platforms", 700, 450, 0.0)
        bar = self.dashboard.advance(600.0)["platforms"].find("bar:TikTok")
        x = bar.attrs["x"] + bar.attrs["width"] / 2.0
        y = bar.attrs["y"] + bar.attrs["height"] / 2.0
        mark = self.dashboard.click("platforms", x, y, 600.0)
        self.assertEqual(mark.key, "bar:TikTok")
        self.assertEqual(self.dashboard.criteria["Most_Used_Platform"], frozenset({"TikTok"}))
        self.assertEqual(len(self.dashboard.filtered), 3)

    def test_metric_and_group_selection(self) -> None:
        self.dashboard.resize("platforms", 700, 450, 0.0)
        scene = self.dashboard.select_metric("platforms", "Addicted_Score", 10.0)
        self.assertEqual(self.dashboard.panel("platforms").metric, "Addicted_Score")
        self.assertAlmostEqual(scene.find("bar:TikTok").datum.value, (9.0 + 6.0 + 8.0) / 3.0)
        scene = self.dashboard.select_group("platforms", "Gender", 20.0)
        self.assertIsNotNone(scene.find("bar:Male"))
        with self.assertRaises(KeyError):
            self.dashboard.select_group("platforms", "Shoe_Size", 30.0)

    def test_reload_warns(self) -> None:
        with self.assertLogs("mediascope_core.dashboard", level="WARNING"):
            self.dashboard.load(RECORDS[:2], 10.0)
        self.assertEqual(len(self.dashboard.records), 2)

    def test_unknown_panel_and_duplicate_names(self) -> None:
        with self.assertRaises(ValueError):
            self.dashboard.resize("nope", 10, 10, 0.0)
        panels = default_panels()
        with self.assertRaises(ValueError):
            Dashboard([panels[0], panels[0]])


class DispatchTests(unittest.TestCase):
    def setUp(self) -> None:
        self.dashboard = Dashboard(default_panels())
        self.dashboard.load(RECORDS, 0.0)

    def test_resize_and_pointer_events(self) -> None:
        scene = self.dashboard.dispatch(DashboardEvent("resize", 0.0, panel="gender", width=400.0, height=300.0))
        self.assertIsNotNone(scene.find("slice:Male"))
        self.dashboard.dispatch(DashboardEvent("pointer_move", 600.0, panel="gender", x=200.0, y=100.0))
        self.assertIsNotNone(self.dashboard.panel("gender").chart.tooltip.current)
        scene = self.dashboard.dispatch(DashboardEvent("pointer_leave", 700.0, panel="gender"))
        self.assertIsNone(scene.find("tooltip"))

    def test_filter_events(self) -> None:
        self.dashboard.dispatch(DashboardEvent("filter", 0.0, field="Age", value=(19.0, 20.0)))
        self.assertEqual(self.dashboard.criteria["age"], RangeBounds(19.0, 20.0))
        self.dashboard.dispatch(DashboardEvent("filter", 10.0, field="Gender", value="Male"))
        self.assertEqual([r.student_id for r in self.dashboard.filtered], [2])
        self.dashboard.dispatch(DashboardEvent("filter", 20.0))
        self.assertEqual(len(self.dashboard.criteria), 0)

    def test_metric_and_group_events(self) -> None:
        self.dashboard.dispatch(DashboardEvent("metric", 0.0, panel="platform_bubbles", value="Addicted_Score"))
        self.dashboard.dispatch(DashboardEvent("group", 0.0, panel="platform_bubbles", value="Country"))
        panel = self.dashboard.panel("platform_bubbles")
        self.assertEqual((panel.metric, panel.group), ("Addicted_Score", "Country"))

    def test_drag_brushes_the_scatter(self) -> None:
        self.dashboard.resize("sleep_vs_addiction", 600, 400, 0.0)
        self.dashboard.advance(600.0)
        self.dashboard.dispatch(DashboardEvent("drag", 600.0, panel="sleep_vs_addiction", x=60.0, y=20.0, delta_x=520.0, delta_y=320.0))
        chart = self.dashboard.panel("sleep_vs_addiction").chart
        self.assertEqual(len(chart.selection), 6)

    def test_events_without_a_panel_are_rejected(self) -> None:
        with self.assertRaises(ValueError):
            self.dashboard.dispatch(DashboardEvent("click", 0.0, x=1.0, y=1.0))


class CliTests(unittest.TestCase):
    def _dataset(self, tmp: str) -> Path:
        path = Path(tmp) / "dataset.csv"
        path.write_text("\n".join((CSV_HEADER, *CSV_ROWS)) + "\n", encoding="utf-8")
        return path

    def test_parse_filters_coerces_values(self) -> None:
        parsed = _parse_filters(["Gender=Male,Female", "Age=19,22", "Affects_Academic_Performance=Yes"])
        self.assertEqual(parsed, {"Gender": ["Male", "Female"], "Age": [19.0, 22.0], "Affects_Academic_Performance": [True]})
        with self.assertRaises(ValueError):
            _parse_filters(["Gender"])

    def test_insights_command_prints_json(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            out = io.StringIO()
            with contextlib.redirect_stdout(out):
                main(["insights", str(self._dataset(tmp)), "--filter", "Gender=Female"])
        result = json.loads(out.getvalue())
        self.assertEqual(result["academic_impact_yes"], 2)
        self.assertEqual(result["academic_impact_no"], 0)

    def test_render_command_writes_files(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            out_dir = Path(tmp) / "out"
            with contextlib.redirect_stdout(io.StringIO()):
                main(["render", str(self._dataset(tmp)), "--out", str(out_dir), "--panel", "platforms", "--svg", "--width", "300", "--height", "200"])
            self.assertTrue((out_dir / "platforms.png").exists())
            self.assertTrue((out_dir / "platforms.svg").exists())
            self.assertFalse((out_dir / "gender.png").exists())


if __name__ == "__main__":
    unittest.main()
