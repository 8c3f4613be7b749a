from __future__ import annotations

import math
from pathlib import Path
import tempfile
import unittest

from mediascope_data import RecordLoadError, generate_insights, load_records


HEADER = (
    "Student_ID,Age,Gender,Academic_Level,Country,Avg_Daily_Usage_Hours,Most_Used_Platform,"
    "Affects_Academic_Performance,Sleep_Hours_Per_Night,Mental_Health_Score,Relationship_Status,"
    "Conflicts_Over_Social_Media,Addicted_Score"
)
ROWS = (
    "1,19,Female,Undergraduate,Bangladesh,5.2,Instagram,Yes,6.5,6,In Relationship,3,8",
    "2,22,Male,Graduate,India,2.1,Twitter,No,7.5,8,Single,0,3",
    "3,20,Female,Undergraduate,USA,6.0,TikTok,Yes,5.0,5,Complicated,4,9",
    "4,20,Male,High School,USA,abc,Instagram,No,8.0,7,Single,1,4",
)


class LoaderTests(unittest.TestCase):
    def _write(self, text: str) -> Path:
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        path = Path(tmp.name) / "dataset.csv"
        path.write_text(text, encoding="utf-8")
        return path

    def test_loads_typed_records(self) -> None:
        records = load_records(self._write("\n".join((HEADER, *ROWS)) + "\n"))
        self.assertEqual(len(records), 4)
        first = records[0]
        self.assertEqual(first.student_id, 1)
        self.assertEqual(first.age, 19.0)
        self.assertEqual(first.most_used_platform, "Instagram")
        self.assertTrue(first.affects_academic_performance)
        self.assertFalse(records[1].affects_academic_performance)
        self.assertEqual(first.get("Addicted_Score"), 8.0)

    def test_malformed_number_becomes_nan(self) -> None:
        with self.assertLogs("mediascope_data.loader", level="WARNING"):
            records = load_records(self._write("\n".join((HEADER, *ROWS))))
        self.assertTrue(math.isnan(records[3].avg_daily_usage_hours))

    def test_missing_column_is_rejected(self) -> None:
        header = HEADER.replace(",Addicted_Score", "")
        row = ROWS[0].rsplit(",", 1)[0]
        with self.assertRaisesRegex(RecordLoadError, "Addicted_Score"):
            load_records(self._write(f"{header}\n{row}\n"))

    def test_empty_cell_is_rejected(self) -> None:
        row = ROWS[0].replace("Bangladesh", "")
        with self.assertRaisesRegex(RecordLoadError, "empty"):
            load_records(self._write(f"{HEADER}\n{row}\n"))

    def test_missing_file_is_rejected(self) -> None:
        with self.assertRaises(RecordLoadError):
            load_records(Path(tempfile.gettempdir()) / "no-such-mediascope-dataset.csv")


class InsightsTests(unittest.TestCase):
    def setUp(self) -> None:
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        path = Path(tmp.name) / "dataset.csv"
        path.write_text("\n".join((HEADER, *ROWS)), encoding="utf-8")
        with self.assertLogs("mediascope_data.loader", level="WARNING"):
            self.records = load_records(path)

    def test_summary_values(self) -> None:
        insights = generate_insights(self.records)
        self.assertAlmostEqual(insights.avg_usage, (5.2 + 2.1 + 6.0) / 3)
        self.assertAlmostEqual(insights.avg_sleep, 6.75)
        self.assertEqual(insights.top_platform, "Instagram")
        self.assertEqual(insights.academic_impact_yes, 2)
        self.assertEqual(insights.academic_impact_no, 2)
        self.assertEqual(insights.gender_split, {"Female": 2.0, "Male": 2.0})
        self.assertEqual(insights.age_distribution[20.0], 2.0)

    def test_conflicts_grouped_by_rounded_usage(self) -> None:
        insights = generate_insights(self.records)
        self.assertEqual(insights.conflicts_by_daily_usage, {5: 3.0, 2: 0.0, 6: 4.0})

    def test_empty_records(self) -> None:
        insights = generate_insights(())
        self.assertEqual(insights.avg_usage, 0.0)
        self.assertEqual(insights.top_platform, "")
        self.assertIsNone(insights.peak_usage_age)


if __name__ == "__main__":
    unittest.main()
