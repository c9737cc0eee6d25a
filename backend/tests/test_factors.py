"""Scoring factors, hard gates and soft flags."""
from dataclasses import replace
from datetime import date, datetime, timedelta

import pytest

from logic.constants import DEFAULT_CONFIG, FACTOR_MAX, MAX_RAW_SCORE, ScoringConfig
from logic.factors import (
    check_hard_gates, collect_soft_warnings, days_until, derive_org_lifecycle, is_past,
    round_half_up, score_biz_type, score_business_age, score_certifications,
    score_company_scale, score_deadline, score_employee_count, score_financial_relevance,
    score_industry_content, score_lifecycle, score_region, score_revenue_range,
    score_sport_type,
)


def test_factor_ceilings_sum_to_150():
    assert MAX_RAW_SCORE == 150
    assert FACTOR_MAX['biz_type'] == 28 and FACTOR_MAX['industry_content'] == 30


def test_config_rejects_points_above_ceiling():
    with pytest.raises(ValueError, match=r'deadline_steps\[0\]=20'):
        replace(DEFAULT_CONFIG, deadline_steps=((7, 20),))
    with pytest.raises(ValueError, match='industry_max=40'):
        ScoringConfig(industry_max=40)
    with pytest.raises(ValueError, match='biz_type_strong'):
        ScoringConfig(biz_type_strong=29)


def test_config_rejects_inconsistent_ceilings():
    with pytest.raises(ValueError, match='max_raw_score'):
        ScoringConfig(factor_max={**FACTOR_MAX, 'deadline': 20})
    with pytest.raises(ValueError, match='missing'):
        ScoringConfig(factor_max={'deadline': 15}, max_raw_score=15)
    with pytest.raises(ValueError, match='partial credit'):
        ScoringConfig(region_open=10)


@pytest.mark.parametrize('value,expected', [(59.5, 60), (0.5, 1), (2.4999, 2), (59.333, 59)])
def test_round_half_up(value, expected):
    assert round_half_up(value) == expected


def test_days_until_rounds_up(now):
    assert days_until(now + timedelta(days=4, hours=5), now) == 5
    assert days_until(now + timedelta(days=7), now) == 7
    assert days_until(now - timedelta(hours=12), now) == 0
    # Naive deadlines are read in the reference clock's zone
    assert days_until(datetime(2026, 3, 4, 9, 0), now) == 2
    assert days_until(date(2026, 3, 12), now) == 10


def test_is_past(now):
    assert is_past(now - timedelta(seconds=1), now)
    assert not is_past(now + timedelta(seconds=1), now)


# ── hard gates ──

def test_gate_large_enterprise(make_org, make_program):
    reason = check_hard_gates(make_org(company_scale_type='LARGE_ENTERPRISE'),
                              make_program(target_company_scale_cd=['CC10']), [])
    assert reason == '대기업은 중소기업 지원사업에 지원할 수 없습니다'


def test_gate_startup_only(make_org, make_program):
    program = make_program(target_company_scale_cd=['CC60'])
    assert check_hard_gates(make_org(company_scale_type='SME'), program, []) == '창업기업 전용 프로그램입니다'
    assert check_hard_gates(make_org(company_scale_type='STARTUP'), program, []) is None
    # Unknown scale cannot be excluded
    assert check_hard_gates(make_org(), program, []) is None
    # A mixed list is not startup-only
    mixed = make_program(target_company_scale_cd=['CC60', 'CC30'])
    assert check_hard_gates(make_org(company_scale_type='SME'), mixed, []) is None


def test_gate_certifications(make_org, make_program):
    program = make_program(required_certs_cd=['EC06'])
    assert check_hard_gates(make_org(), program, []) == '필요 인증 미보유: 기술혁신형중소기업'

    met = []
    assert check_hard_gates(make_org(certifications=['이노비즈']), program, met) is None
    assert met == ['필요 인증 보유: 기술혁신형중소기업']


def test_gate_region(make_org, make_program):
    seoul_only = make_program(target_region_codes=['1100'])
    assert check_hard_gates(make_org(regions=['BUSAN']), seoul_only, []) == '지역 제한 미충족'
    assert check_hard_gates(make_org(), seoul_only, []) == '지역 제한 미충족'
    assert check_hard_gates(make_org(regions=['SEOUL']), seoul_only, []) is None

    nationwide = make_program(target_region_codes=['1000', '1100'])
    assert check_hard_gates(make_org(regions=['BUSAN']), nationwide, []) is None


def test_gate_pre_startup(make_org, make_program):
    program = make_program(is_pre_startup=True)
    assert check_hard_gates(make_org(business_established_date=date(2024, 1, 1)), program, []) \
        == '예비창업자 전용 프로그램입니다'
    assert check_hard_gates(make_org(), program, []) is None


def test_soft_warnings(make_program):
    warnings = collect_soft_warnings(make_program(is_restart=True, is_female_owner=True,
                                                  max_ceo_age=39))
    assert warnings == [
        '재창업/재기 기업 대상 프로그램입니다',
        '여성 대표 기업 대상 프로그램입니다',
        '대표자 연령 제한: 39세 이하',
    ]
    assert collect_soft_warnings(make_program(min_ceo_age=19, max_ceo_age=39)) \
        == ['대표자 연령 제한: 19~39세']
    assert collect_soft_warnings(make_program()) == []


# ── eligibility factors ──

def test_company_scale(make_org, make_program):
    open_program = make_program()
    coded = make_program(target_company_scale_cd=['CC10', 'CC60'])
    failed = []
    assert score_company_scale(make_org(), open_program, [], []) == 10
    assert score_company_scale(make_org(), coded, [], failed) == 8
    assert failed == ['기업규모 정보 필요']
    assert score_company_scale(make_org(company_scale_type='STARTUP'), coded, [], []) == 20
    assert score_company_scale(make_org(company_scale_type='MID_SIZED'), coded, [], []) == 10


def test_revenue_range(make_org, make_program):
    coded = make_program(target_sales_range_cd=['SI01'])
    warnings, failed = [], []
    assert score_revenue_range(make_org(), make_program(), [], [], []) == 7
    assert score_revenue_range(make_org(), coded, [], [], warnings) == 8
    assert warnings == ['매출액 정보가 없어 일부 조건을 확인할 수 없습니다']
    assert score_revenue_range(make_org(revenue_range='UNDER_1B'), coded, [], [], []) == 15
    assert score_revenue_range(make_org(revenue_range='OVER_100B'), coded, [], failed, []) == 4
    assert failed == ['매출액 조건 미충족']


def test_employee_count(make_org, make_program):
    coded = make_program(target_employee_range_cd=['EI01'])
    assert score_employee_count(make_org(), make_program(), [], []) == 5
    assert score_employee_count(make_org(), coded, [], []) == 5
    assert score_employee_count(make_org(employee_count='UNDER_10'), coded, [], []) == 10
    assert score_employee_count(make_org(employee_count='OVER_300'), coded, [], []) == 3


def test_business_age(make_org, make_program, now):
    today = now.date()
    young = make_org(business_established_date=date(2025, 1, 1))
    old = make_org(business_established_date=date(2010, 1, 1))
    coded = make_program(target_business_age_cd=['OI01'])
    failed = []
    assert score_business_age(young, make_program(), [], [], today) == 5
    assert score_business_age(make_org(), coded, [], [], today) == 5
    assert score_business_age(young, coded, [], [], today) == 10
    assert score_business_age(old, coded, [], failed, today) == 5
    assert failed == ['업력 조건 부분 충족']
    capped = make_program(target_business_age_cd=['OI01'], max_business_age=7)
    assert score_business_age(old, capped, [], [], today) == 2


def test_region(make_org, make_program):
    met, failed = [], []
    assert score_region(make_org(), make_program(), met, []) == 7
    assert met == ['전국 대상 프로그램']
    assert score_region(make_org(), make_program(target_region_codes=['1000']), [], []) == 7
    seoul = make_program(target_region_codes=['1100'])
    assert score_region(make_org(regions=['SEOUL']), seoul, [], []) == 10
    assert score_region(make_org(), seoul, [], failed) == 3
    assert failed == ['소재지 정보 필요']
    assert score_region(make_org(regions=['BUSAN']), seoul, [], []) == 0


def test_certification_bonus_is_capped(make_org, make_program):
    assert score_certifications(make_org(), make_program(), []) == 0
    assert score_certifications(make_org(certifications=['벤처']), make_program(), []) == 2
    met = []
    held = make_org(certifications=['이노비즈', '벤처', 'MAINBIZ'])
    assert score_certifications(held, make_program(), met) == 5
    assert met == ['인증 보유: 3개']
    # Non-preferred certifications earn nothing
    assert score_certifications(make_org(certifications=['여성기업']), make_program(), []) == 0


# ── relevance factors ──

@pytest.mark.parametrize('biz_type,org_fields,expected', [
    ('기술', {'rd_experience': True}, 28),
    ('기술', {'industry_sector': 'ICT'}, 22),
    ('기술', {}, 6),
    ('금융', {'company_scale_type': 'STARTUP'}, 28),
    ('금융', {'company_scale_type': 'SME'}, 22),
    ('금융', {'revenue_range': 'UNDER_1B'}, 22),
    ('금융', {}, 8),
    ('창업', {'company_scale_type': 'STARTUP'}, 28),
    ('창업', {'business_established_date': date(2024, 6, 1)}, 22),
    ('창업', {'business_established_date': date(2021, 1, 1)}, 14),
    ('창업', {}, 3),
    ('수출', {'revenue_range': 'FROM_1B_TO_10B'}, 24),
    ('수출', {'revenue_range': 'NONE'}, 6),
    ('인력', {}, 14),
    ('경영', {}, 14),
    ('내수', {'revenue_range': 'UNDER_1B'}, 22),
    ('중견', {'company_scale_type': 'MID_SIZED'}, 28),
    ('중견', {'company_scale_type': 'SME'}, 14),
    ('소상공인', {'revenue_range': 'NONE'}, 24),
    ('소상공인', {'company_scale_type': 'MID_SIZED'}, 4),
    (None, {}, 8),
    ('알수없음', {}, 8),
])
def test_biz_type(biz_type, org_fields, expected, make_org, make_program, now):
    score = score_biz_type(make_org(**org_fields), make_program(biz_type=biz_type), [], now.date())
    assert score == expected
    assert 0 <= score <= 28


def test_lifecycle(make_org, make_program, now):
    today = now.date()
    startup = make_org(company_scale_type='STARTUP')
    growth = make_org(business_established_date=date(2015, 1, 1))
    met = []
    assert derive_org_lifecycle(startup, today) == 'startup'
    assert derive_org_lifecycle(growth, today) == 'growth'
    assert derive_org_lifecycle(make_org(), today) is None

    tagged = make_program(life_cycle=['창업기', '성장기'])
    assert score_lifecycle(startup, tagged, met, today) == 2
    assert met == ['생애주기 부합: 창업기']
    assert score_lifecycle(make_org(), tagged, [], today) == 1
    assert score_lifecycle(growth, make_program(life_cycle=['창업기']), [], today) == 0
    assert score_lifecycle(growth, make_program(life_cycle='재기'), [], today) == 1

    startup_type = make_program(biz_type='창업')
    assert score_lifecycle(startup, startup_type, [], today) == 2
    assert score_lifecycle(growth, startup_type, [], today) == 0
    assert score_lifecycle(growth, make_program(), [], today) == 1


def test_industry_content_insufficient_text(make_org, make_program):
    org = make_org(industry_sector='ICT')
    assert score_industry_content(org, make_program(title='AI'), []) == 8
    assert score_industry_content(org, make_program(title='2026년 도약 패키지 모집 공고'), []) == 8


def test_industry_content_scales_relevance(make_org, make_program):
    program = make_program(title='AI 소프트웨어 기업 육성',
                           description='클라우드 데이터 서비스 고도화')
    met = []
    assert score_industry_content(make_org(industry_sector='ICT'), program, met) == 30
    assert met == ['업종 일치: ICT/정보통신']
    met = []
    assert score_industry_content(make_org(industry_sector='MANUFACTURING'), program, met) == 15
    assert met == ['관련 업종: ICT/정보통신']
    assert score_industry_content(make_org(), program, []) == 15
    assert score_industry_content(make_org(industry_sector='DEFENSE'), program, []) == 9


@pytest.mark.parametrize('delta,expected', [
    (timedelta(days=5), 15),
    (timedelta(days=7), 15),
    (timedelta(days=7, hours=1), 12),
    (timedelta(days=30), 12),
    (timedelta(days=31), 8),
    (timedelta(days=60), 8),
    (timedelta(days=61), 5),
    (timedelta(days=-1), 0),
])
def test_deadline_steps(delta, expected, make_program, now):
    assert score_deadline(make_program(application_end=now + delta), [], now) == expected


def test_deadline_missing_and_labels(make_program, now):
    assert score_deadline(make_program(), [], now) == 5
    met = []
    score_deadline(make_program(application_end=now + timedelta(days=3)), met, now)
    assert met == ['마감 3일 전 - 긴급']
    met = []
    score_deadline(make_program(application_end=now + timedelta(days=20)), met, now)
    assert met == ['마감 20일 전']


def test_financial_relevance(make_org, make_program):
    org = make_org(revenue_range='FROM_1B_TO_10B')   # ~5B KRW
    met = []
    assert score_financial_relevance(org, make_program(max_support_amount=100_000_000), met) == 2
    assert met == ['지원 규모 적정']
    assert score_financial_relevance(org, make_program(max_support_amount=3_000_000_000), []) == 1
    assert score_financial_relevance(org, make_program(), []) == 1
    assert score_financial_relevance(make_org(revenue_range='NONE'),
                                     make_program(max_support_amount=10_000_000), []) == 1


@pytest.mark.parametrize('sport_type,org_fields,expected', [
    ('기술개발', {'rd_experience': True}, 3),
    ('기술개발', {}, 1),
    ('창업', {'company_scale_type': 'STARTUP'}, 3),
    ('수출지원', {'revenue_range': 'UNDER_1B'}, 3),
    ('정책자금', {}, 2),
    ('인력지원', {}, 2),
    ('스마트공장', {'industry_sector': 'manufacturing'}, 3),
    ('소상공인', {'revenue_range': 'UNDER_1B'}, 3),
    ('정보', {}, 1),
    (None, {}, 1),
])
def test_sport_type(sport_type, org_fields, expected, make_org, make_program):
    assert score_sport_type(make_org(**org_fields), make_program(sport_type=sport_type), []) == expected


def test_factors_stay_within_ceilings_for_empty_inputs(make_org, make_program, now):
    org, program = make_org(), make_program()
    today = now.date()
    scores = {
        'company_scale': score_company_scale(org, program, [], []),
        'revenue_range': score_revenue_range(org, program, [], [], []),
        'employee_count': score_employee_count(org, program, [], []),
        'business_age': score_business_age(org, program, [], [], today),
        'region': score_region(org, program, [], []),
        'certifications': score_certifications(org, program, []),
        'biz_type': score_biz_type(org, program, [], today),
        'lifecycle': score_lifecycle(org, program, [], today),
        'industry_content': score_industry_content(org, program, []),
        'deadline': score_deadline(program, [], now),
        'financial_relevance': score_financial_relevance(org, program, []),
        'sport_type': score_sport_type(org, program, []),
    }
    for name, value in scores.items():
        assert 0 <= value <= DEFAULT_CONFIG.factor_max[name], name
    # Unconstrained dimensions get partial credit, not zero (certifications is bonus-only)
    assert all(v > 0 for k, v in scores.items() if k != 'certifications')


def test_biz_and_sport_points_follow_config(make_org, make_program, now):
    config = replace(DEFAULT_CONFIG, biz_type_strong=20, sport_type_matched=2,
                     sport_type_funding=3)
    startup = make_org(company_scale_type='STARTUP')
    assert score_biz_type(startup, make_program(biz_type='창업'), [], now.date(), config) == 20
    assert score_sport_type(startup, make_program(sport_type='창업'), [], config) == 2
    assert score_sport_type(startup, make_program(sport_type='정책자금'), [], config) == 3
