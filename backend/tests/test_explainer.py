"""Korean explanation generation from score breakdowns."""
from datetime import timedelta

import pytest

from logic import calculate_match_score, enrich_match_explanations, generate_explanation
from logic.explainer import (
    DEFAULT_REASON, format_deadline, format_interest_rate, format_krw_amount,
)


@pytest.fixture
def startup(make_org):
    return make_org(company_scale_type='STARTUP')


@pytest.fixture
def startup_result(startup, make_program, now):
    program = make_program(id='p-startup', title='2026년 창업 도약 패키지', biz_type='창업',
                           application_end=now + timedelta(days=5))
    return calculate_match_score(startup, program, now=now)


def test_startup_explanation(startup, startup_result, now):
    exp = generate_explanation(startup_result, startup, now=now)

    assert exp.summary == ('중소벤처기업부의 「2026년 창업 도약 패키지」은(는) 귀사에 부분적으로 '
                           '적합합니다. 세부 요건을 확인하세요.')
    assert exp.reasons == [
        '✓ 창업 지원 유형으로 귀사에 적합합니다. (창업기업)',
        '창업기 기업 대상 프로그램으로 귀사의 생애주기에 부합합니다.',
    ]
    assert exp.warnings == [
        '⚠️ 마감 5일 전 (2026년 3월 7일) - 신속한 신청이 필요합니다.',
        '온라인 신청 링크가 없습니다. 지원기관에 직접 문의가 필요할 수 있습니다.',
        '프로필 미완성: 매출액, 종업원수, 설립일, 업종 정보를 입력하면 더 정확한 매칭이 가능합니다.',
    ]
    assert exp.recommendations == [
        '세부 지원 요건을 공고문에서 확인한 후 지원을 검토하세요.',
        '마감까지 5일 남았습니다. 서류 준비를 서두르세요.',
        '프로필에 업종 정보를 추가하면 업종 기반 매칭 정확도가 향상됩니다.',
    ]


@pytest.mark.parametrize('score,fragment', [
    (85, '매우 적합한 지원사업입니다'),
    (70, '귀사에 적합한 지원사업입니다.'),
    (55, '부분적으로 적합합니다'),
    (30, '적합도가 낮으나 지원 가능합니다'),
])
def test_summary_bands(score, fragment, startup, startup_result, now):
    result = startup_result.model_copy(update={'score': score})
    assert fragment in generate_explanation(result, startup, now=now).summary


def test_conditional_summary_mentions_checks(startup, startup_result, now):
    result = startup_result.model_copy(update={
        'score': 70, 'eligibility_level': 'CONDITIONALLY_ELIGIBLE',
    })
    assert generate_explanation(result, startup, now=now).summary.endswith('일부 조건 확인이 필요합니다.')


def test_strong_industry_and_financial_reasons(make_org, make_program, now):
    org = make_org(industry_sector='ICT', revenue_range='FROM_1B_TO_10B')
    program = make_program(title='AI 소프트웨어 기업 육성', description='클라우드 데이터 서비스',
                           max_support_amount=150_000_000, min_interest_rate=2.0,
                           max_interest_rate=3.5, application_url='https://example.org/apply')
    result = calculate_match_score(org, program, now=now)
    exp = generate_explanation(result, org, now=now)

    assert '✓ ICT/정보통신 분야 프로그램으로 귀사의 업종과 높은 연관성이 있습니다.' in exp.reasons
    assert '💰 최대 1억 5000만원 지원 가능' in exp.reasons
    assert '금리: 2~3.5%' in exp.reasons
    assert '온라인 신청이 가능합니다.' in exp.recommendations
    assert not any('온라인 신청 링크' in w for w in exp.warnings)


def test_met_eligibility_criteria_are_repeated(make_org, make_program, now):
    org = make_org(regions=['SEOUL'])
    result = calculate_match_score(org, make_program(target_region_codes=['1100']), now=now)
    exp = generate_explanation(result, org, now=now)
    assert '✓ 지역 조건 충족' in exp.reasons


def test_default_reason_when_nothing_stands_out(make_org, make_program, now):
    org = make_org()
    result = calculate_match_score(org, make_program(), now=now)
    assert generate_explanation(result, org, now=now).reasons == [DEFAULT_REASON]


def test_deadline_reasons_by_distance(startup, make_program, now):
    def reasons_for(days):
        program = make_program(application_end=now + timedelta(days=days))
        result = calculate_match_score(startup, program, now=now)
        return generate_explanation(result, startup, now=now).reasons

    assert any('(20일 남음) - 서류 준비를 시작하세요.' in r for r in reasons_for(20))
    assert any(r.endswith('(45일 남음)') for r in reasons_for(45))
    assert any('충분한 준비 기간이 있습니다' in r for r in reasons_for(90))


def test_rd_recommendation_for_tech_programs(make_org, make_program, now):
    org = make_org(industry_sector='GENERAL')
    result = calculate_match_score(org, make_program(biz_type='기술'), now=now)
    exp = generate_explanation(result, org, now=now)
    assert 'R&D 경험 정보를 프로필에 추가하면 기술지원사업 매칭이 개선됩니다.' in exp.recommendations
    assert '기술 지원 유형으로 귀사의 특성과 다소 차이가 있습니다.' in exp.reasons


def test_enrich_replaces_explanations(startup, startup_result, now):
    enriched = enrich_match_explanations([startup_result], startup, now=now)
    assert len(enriched) == 1
    assert enriched[0].explanation != startup_result.explanation
    assert enriched[0].score == startup_result.score
    assert enriched[0].program.id == 'p-startup'


def test_formatting_helpers(now):
    assert format_krw_amount(150_000_000) == '1억 5000만원'
    assert format_krw_amount(300_000_000) == '3억원'
    assert format_krw_amount(5_000_000) == '500만원'
    assert format_krw_amount(5_000) == '5,000원'
    assert format_interest_rate(2.5, 2.5) == '2.5%'
    assert format_interest_rate(1, None) == '1% 이상'
    assert format_interest_rate(None, 4) == '최대 4%'
    assert format_interest_rate(None, None) is None
    assert format_deadline(now) == '2026년 3월 2일'


def test_local_program_without_region_codes_warns(make_org, make_program, now):
    org = make_org(regions=['SEOUL'])
    warning = '지역 기반 사업입니다. 공고문의 소재지 요건을 확인하세요.'

    local = make_program(title='2026 로컬크리에이터 육성 사업')
    exp = generate_explanation(calculate_match_score(org, local, now=now), org, now=now)
    assert warning in exp.warnings

    coded = make_program(title='2026 로컬크리에이터 육성 사업', target_region_codes=['1100'])
    exp = generate_explanation(calculate_match_score(org, coded, now=now), org, now=now)
    assert warning not in exp.warnings
