from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
import math

from mediascope_data.aggregate import count, group_reduce, mean, mean_of
from mediascope_data.records import Record


@dataclass(frozen=True)
class Insights:
    avg_usage: float
    avg_sleep: float
    avg_mental_health: float
    top_platform: str
    addiction_vs_sleep: float
    gender_split: dict[str, float]
    platform_distribution: dict[str, float]
    usage_by_age: dict[float, float]
    academic_impact_yes: int
    academic_impact_no: int
    relationship_stats: dict[str, float]
    age_distribution: dict[float, float]
    conflict_distribution: dict[float, float]
    conflicts_by_daily_usage: dict[int, float]

    @property
    def peak_usage_age(self) -> float | None:
        if not self.usage_by_age:
            return None
        return max(self.usage_by_age.items(), key=lambda kv: kv[1])[0]


def generate_insights(records: Sequence[Record]) -> Insights:
    platform_counts = group_reduce(records, lambda r: r.most_used_platform, count)
    top_platform = max(platform_counts.items(), key=lambda kv: kv[1])[0] if platform_counts else ""
    ratios = (
        r.addicted_score / r.sleep_hours_per_night
        for r in records
        if r.sleep_hours_per_night and not math.isnan(r.sleep_hours_per_night)
    )
    affected = sum(1 for r in records if r.affects_academic_performance)
    return Insights(
        avg_usage=mean(r.avg_daily_usage_hours for r in records),
        avg_sleep=mean(r.sleep_hours_per_night for r in records),
        avg_mental_health=mean(r.mental_health_score for r in records),
        top_platform=top_platform,
        addiction_vs_sleep=mean(ratios),
        gender_split=group_reduce(records, lambda r: r.gender, count),
        platform_distribution=platform_counts,
        usage_by_age=group_reduce(records, lambda r: r.age, mean_of("avg_daily_usage_hours")),
        academic_impact_yes=affected,
        academic_impact_no=len(records) - affected,
        relationship_stats=group_reduce(records, lambda r: r.relationship_status, count),
        age_distribution=group_reduce(records, lambda r: r.age, count),
        conflict_distribution=group_reduce(records, lambda r: r.conflicts_over_social_media, count),
        conflicts_by_daily_usage=group_reduce(
            (r for r in records if not math.isnan(r.avg_daily_usage_hours)),
            lambda r: int(math.floor(r.avg_daily_usage_hours + 0.5)),
            mean_of("conflicts_over_social_media"),
        ),
    )
