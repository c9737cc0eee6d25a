"""
report.py — Summary statistics for detection and matching runs.
Used by the HTTP layer (`stats` in responses) and the CLI report.
"""

from etl.models import DetectionResult, MatchResult
from logic.constants import ELIGIBILITY_MAP

SCORE_BUCKETS = [(80, '80-100'), (60, '60-79'), (40, '40-59'), (0, '0-39')]


def detection_stats(result: DetectionResult, total_records: int) -> dict:
    """
    Returns:
        {
            'total_records': int,
            'total_groups': int,
            'total_duplicates': int,
            'unique_after_merge': int,
            'duplicate_rate': float,
            'by_reason': { reason: groups },
            'largest_group': int,
            'suggested_removals': [ids],
        }
    """
    summary = result.summary
    removals = []
    largest = 0
    for g in result.groups:
        largest = max(largest, len(g.records))
        removals.extend(r.id for r in g.records if r.id != g.suggested_keep_id)

    return {
        'total_records': total_records,
        'total_groups': summary.total_groups,
        'total_duplicates': summary.total_duplicates,
        'unique_after_merge': total_records - summary.total_duplicates,
        'duplicate_rate': round(summary.total_duplicates / total_records, 3) if total_records else 0.0,
        'by_reason': dict(summary.by_reason),
        'largest_group': largest,
        'suggested_removals': removals,
    }


def match_stats(results: list[MatchResult], total_programs: int) -> dict:
    """
    Returns:
        {
            'total_programs': int,
            'matched': int,
            'fully_eligible': int,
            'conditionally_eligible': int,
            'by_eligibility': { level: {'label': str, 'count': int} },
            'avg_score': float,
            'top_score': int,
            'score_distribution': { bucket: count },
            'top_failed_criteria': [ [criterion, count], ... ],
        }
    """
    total = len(results)
    level_counts = {'FULLY_ELIGIBLE': 0, 'CONDITIONALLY_ELIGIBLE': 0}
    distribution = {label: 0 for _, label in SCORE_BUCKETS}
    failed_counts = {}
    total_score = 0

    for r in results:
        level_counts[r.eligibility_level] = level_counts.get(r.eligibility_level, 0) + 1
        total_score += r.score
        bucket = next(label for floor, label in SCORE_BUCKETS if r.score >= floor)
        distribution[bucket] += 1
        for c in r.failed_criteria:
            failed_counts[c] = failed_counts.get(c, 0) + 1

    # Most common mismatches first
    top_failed = sorted(failed_counts.items(), key=lambda x: x[1], reverse=True)[:10]

    return {
        'total_programs': total_programs,
        'matched': total,
        'fully_eligible': level_counts['FULLY_ELIGIBLE'],
        'conditionally_eligible': level_counts['CONDITIONALLY_ELIGIBLE'],
        'by_eligibility': {
            level.value: {'label': info.label, 'count': level_counts.get(level.value, 0)}
            for level, info in ELIGIBILITY_MAP.items()
        },
        'avg_score': round(total_score / total, 1) if total else 0,
        'top_score': max((r.score for r in results), default=0),
        'score_distribution': distribution,
        'top_failed_criteria': [list(x) for x in top_failed],
    }
