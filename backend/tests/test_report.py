"""Run statistics for detection and matching responses."""
from datetime import timedelta

from etl.duplicates import detect_duplicates
from etl.report import detection_stats, match_stats
from logic import generate_matches


def test_match_stats_counts_levels_with_labels(make_org, make_program, now):
    startup = make_org(company_scale_type='STARTUP')
    programs = [
        make_program(id='full', title='2026년 창업 도약 패키지', biz_type='창업',
                     application_end=now + timedelta(days=5)),
        make_program(id='cond', title='2026년 창업 도약 패키지', biz_type='창업',
                     is_female_owner=True, application_end=now + timedelta(days=5)),
    ]
    results = generate_matches(startup, programs, now=now)

    stats = match_stats(results, total_programs=3)

    assert stats['total_programs'] == 3
    assert stats['matched'] == 2
    assert stats['fully_eligible'] == 1
    assert stats['conditionally_eligible'] == 1
    assert stats['by_eligibility'] == {
        'FULLY_ELIGIBLE': {'label': '지원 가능', 'count': 1},
        'CONDITIONALLY_ELIGIBLE': {'label': '조건부 지원 가능', 'count': 1},
        'INELIGIBLE': {'label': '지원 불가', 'count': 0},
    }
    assert stats['avg_score'] == 59.0
    assert stats['score_distribution']['40-59'] == 2


def test_match_stats_empty():
    stats = match_stats([], total_programs=0)
    assert stats['matched'] == 0
    assert stats['avg_score'] == 0
    assert stats['top_score'] == 0
    assert stats['by_eligibility']['FULLY_ELIGIBLE']['count'] == 0


def test_detection_stats(make_record):
    records = [
        make_record('a', title='공고 A', content_hash='h', match_count=5),
        make_record('b', title='공고 B', content_hash='h'),
        make_record('c', title='전혀 다른 공고'),
    ]
    result = detect_duplicates(records)

    stats = detection_stats(result, total_records=len(records))

    assert stats['total_groups'] == 1
    assert stats['total_duplicates'] == 1
    assert stats['unique_after_merge'] == 2
    assert stats['suggested_removals'] == ['b']
