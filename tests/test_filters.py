from __future__ import annotations

import unittest

from mediascope_data import FilterCriteria, RangeBounds, Record, criteria_from_raw, filter_records
from mediascope_data.filters import range_bounds, selection_ratio, unique_values


def _record(student_id: int, **overrides: object) -> Record:
    values: dict[str, object] = {
        "student_id": student_id,
        "age": 20.0,
        "gender": "Female",
        "academic_level": "Undergraduate",
        "country": "Japan",
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
    _record(1, age=19.0, gender="Female", most_used_platform="TikTok"),
    _record(2, age=20.0, gender="Male", most_used_platform="TikTok"),
    _record(3, age=22.0, gender="Female", most_used_platform="Instagram"),
    _record(4, age=24.0, gender="Female", most_used_platform="TikTok"),
    _record(5, age=21.0, gender="Male", most_used_platform="YouTube"),
)


class FilterRecordsTests(unittest.TestCase):
    def test_empty_criteria_keeps_everything(self) -> None:
        self.assertEqual(filter_records(RECORDS, FilterCriteria()), RECORDS)

    def test_keys_combine_with_and(self) -> None:
        criteria = criteria_from_raw({"Gender": ["Female"], "Most_Used_Platform": ["TikTok"]})
        ids = [r.student_id for r in filter_records(RECORDS, criteria)]
        self.assertEqual(ids, [1, 4])

    def test_age_pair_is_an_inclusive_range(self) -> None:
        criteria = criteria_from_raw({"Age": [20, 22]})
        self.assertIsInstance(criteria["age"], RangeBounds)
        ids = [r.student_id for r in filter_records(RECORDS, criteria)]
        self.assertEqual(ids, [2, 3, 5])

    def test_age_pair_in_plain_mapping_is_a_range(self) -> None:
        ids = [r.student_id for r in filter_records(RECORDS, {"Age": [20, 22]})]
        self.assertEqual(ids, [2, 3, 5])
        criteria = FilterCriteria({"Age": [20, 22]})
        self.assertEqual(criteria["age"], RangeBounds(20.0, 22.0))
        self.assertEqual([r.student_id for r in filter_records(RECORDS, criteria)], [2, 3, 5])

    def test_scalar_in_plain_mapping_is_one_value(self) -> None:
        ids = [r.student_id for r in filter_records(RECORDS, {"Gender": "Male"})]
        self.assertEqual(ids, [2, 5])

    def test_pair_on_categorical_field_is_a_set(self) -> None:
        criteria = criteria_from_raw({"Gender": ["Female", "Male"]})
        self.assertEqual(criteria["gender"], frozenset({"Female", "Male"}))
        self.assertEqual(len(filter_records(RECORDS, criteria)), 5)

    def test_plain_mapping_is_accepted(self) -> None:
        ids = [r.student_id for r in filter_records(RECORDS, {"Most_Used_Platform": {"YouTube"}})]
        self.assertEqual(ids, [5])

    def test_filtering_does_not_mutate_input(self) -> None:
        source = list(RECORDS)
        filter_records(source, criteria_from_raw({"Gender": "Male"}))
        self.assertEqual(tuple(source), RECORDS)


class FilterCriteriaTests(unittest.TestCase):
    def test_empty_set_is_never_stored(self) -> None:
        criteria = FilterCriteria({"Gender": []})
        self.assertNotIn("gender", criteria)
        criteria = FilterCriteria().with_values("Gender", ["Male"]).with_values("Gender", [])
        self.assertEqual(len(criteria), 0)

    def test_toggle_adds_then_removes(self) -> None:
        criteria = FilterCriteria().toggle_value("Gender", "Male")
        self.assertEqual(criteria["gender"], frozenset({"Male"}))
        self.assertNotIn("gender", criteria.toggle_value("Gender", "Male"))

    def test_remove_value_and_without(self) -> None:
        criteria = FilterCriteria().with_values("Gender", ["Male", "Female"])
        self.assertEqual(criteria.remove_value("Gender", "Male")["gender"], frozenset({"Female"}))
        self.assertNotIn("gender", criteria.without("Gender"))

    def test_full_range_clears_the_key(self) -> None:
        criteria = FilterCriteria().with_range("Age", 19, 24, full_bounds=(19.0, 24.0))
        self.assertNotIn("age", criteria)
        narrowed = criteria.with_range("Age", 20, 22, full_bounds=(19.0, 24.0))
        self.assertEqual(narrowed["age"], RangeBounds(20.0, 22.0))

    def test_criteria_are_immutable_values(self) -> None:
        a = FilterCriteria().with_values("Gender", ["Male"])
        b = a.with_values("Country", ["Japan"])
        self.assertNotIn("country", a)
        self.assertEqual(a, FilterCriteria({"gender": frozenset({"Male"})}))
        self.assertEqual(len(b.cleared()), 0)

    def test_invalid_range_raises(self) -> None:
        with self.assertRaises(ValueError):
            RangeBounds(3.0, 1.0)

    def test_unknown_field_raises(self) -> None:
        with self.assertRaises(KeyError):
            FilterCriteria({"Shoe_Size": ["9"]})


class FilterHelperTests(unittest.TestCase):
    def test_unique_values_in_encounter_order(self) -> None:
        self.assertEqual(unique_values(RECORDS, "Most_Used_Platform"), ("TikTok", "Instagram", "YouTube"))

    def test_range_bounds_and_selection_ratio(self) -> None:
        self.assertEqual(range_bounds(RECORDS, "Age"), (19.0, 24.0))
        self.assertEqual(range_bounds((), "Age"), (16.0, 30.0))
        self.assertEqual(selection_ratio(RECORDS[:2], RECORDS), 0.4)
        self.assertEqual(selection_ratio((), ()), 0.0)


if __name__ == "__main__":
    unittest.main()
