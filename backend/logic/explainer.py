"""
explainer.py — Korean explanation generator for SME match results.

Builds the user-facing explanation from the twelve-factor score breakdown
instead of the inline met-criteria list:
  - summary sentence keyed by score band (80 / 65 / 50 / below)
  - reasons only for factors that scored strongly
  - warnings for deadlines, unverifiable restrictions and incomplete profiles
  - a short list of concrete next steps
"""

import logging
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from etl.models import MatchExplanation, MatchResult, OrganizationProfile, Program

from .classifier import industry_label, is_regional_required_program
from .constants import DEFAULT_CONFIG, DEFAULT_INSTITUTION, ScoringConfig
from .factors import ceo_age_range, classify_program_text, days_until

logger = logging.getLogger(__name__)

DEFAULT_REASON = '이 프로그램에 지원 가능한 기업입니다.'

# Met-criteria keywords worth repeating as explicit eligibility reasons
ELIGIBILITY_KEYWORDS = ('기업규모', '매출액', '종업원수', '업력', '지역', '인증')

SPORT_TYPE_LABELS = {
    '기술개발': '기술개발 지원',
    '창업': '창업 지원',
    '수출지원': '수출 지원',
    '정책자금': '정책자금 지원',
    '인력지원': '인력 지원',
    '스마트공장': '스마트공장 구축 지원',
    '소상공인': '소상공인 지원',
}

# (org attribute, breakdown field, threshold, label): the field is reported
# as missing when it is empty and its factor stayed below the threshold
PROFILE_FIELD_CHECKS = [
    ('company_scale_type', 'company_scale', 15, '기업규모'),
    ('revenue_range', 'revenue_range', 10, '매출액'),
    ('employee_count', 'employee_count', 8, '종업원수'),
    ('business_established_date', 'business_age', 8, '설립일'),
    ('industry_sector', 'industry_content', 15, '업종'),
]


def generate_explanation(result: MatchResult, org: OrganizationProfile,
                         now: Optional[datetime] = None,
                         config: ScoringConfig = DEFAULT_CONFIG) -> MatchExplanation:
    """Build the full explanation for one match result."""
    now = now or datetime.now(timezone.utc)
    program = result.program
    reasons: List[str] = []
    warnings: List[str] = []
    recommendations: List[str] = []

    summary = _summary(program, result.score, result.eligibility_level)

    _biz_type_reason(result, org, reasons, config)
    _industry_reason(result, reasons, config)
    _deadline_reason(program, now, reasons, warnings)
    _financial_reason(program, reasons)
    _lifecycle_reason(result, org, reasons, config)
    _sport_type_reason(result, reasons, config)
    for item in result.met_criteria:
        if any(kw in item for kw in ELIGIBILITY_KEYWORDS):
            reasons.append(f"✓ {item}")

    _program_warnings(program, warnings)
    _profile_warnings(result, org, warnings)

    _recommendations(result, org, now, recommendations, config)

    return MatchExplanation(
        summary=summary,
        reasons=reasons or [DEFAULT_REASON],
        warnings=warnings,
        recommendations=recommendations,
    )


def enrich_match_explanations(results: Iterable[MatchResult], org: OrganizationProfile,
                              now: Optional[datetime] = None,
                              config: ScoringConfig = DEFAULT_CONFIG) -> List[MatchResult]:
    """Replace each result's inline explanation with the full one."""
    enriched = [
        r.model_copy(update={'explanation': generate_explanation(r, org, now, config)})
        for r in results
    ]
    logger.debug(f"Generated explanations for {len(enriched)} matches")
    return enriched


# ═══════════════════════════════════════════════════════
#  Summary
# ═══════════════════════════════════════════════════════

def _summary(program: Program, score: int, level: str) -> str:
    institution = program.support_institution or DEFAULT_INSTITUTION
    head = f"{institution}의 「{program.title or '지원사업'}」은(는)"

    if score >= 80:
        return f"{head} 귀사에 매우 적합한 지원사업입니다. 적극적인 신청을 권장드립니다."
    if score >= 65:
        tail = ' 일부 조건 확인이 필요합니다.' if level == 'CONDITIONALLY_ELIGIBLE' else ''
        return f"{head} 귀사에 적합한 지원사업입니다.{tail}"
    if score >= 50:
        return f"{head} 귀사에 부분적으로 적합합니다. 세부 요건을 확인하세요."
    return f"{head} 적합도가 낮으나 지원 가능합니다. 프로필 업데이트로 적합도를 높일 수 있습니다."


# ═══════════════════════════════════════════════════════
#  Reasons (one per scoring dimension)
# ═══════════════════════════════════════════════════════

def _threshold(config: ScoringConfig, factor: str, ratio: float) -> float:
    return config.factor_max[factor] * ratio


def _biz_type_detail(biz_type: str, org: OrganizationProfile) -> Optional[str]:
    scale = org.company_scale_type
    if biz_type == '기술' and org.rd_experience:
        return 'R&D 경험 보유'
    if biz_type == '금융':
        if scale == 'STARTUP':
            return '창업기업 대상'
        if scale == 'SME':
            return '중소기업 대상'
    if biz_type == '창업' and scale == 'STARTUP':
        return '창업기업'
    if biz_type == '수출' and org.revenue_range and org.revenue_range != 'NONE':
        return '매출 보유 기업'
    if biz_type == '중견' and scale == 'MID_SIZED':
        return '중견기업 대상'
    return None


def _biz_type_reason(result: MatchResult, org: OrganizationProfile,
                     reasons: List[str], config: ScoringConfig):
    biz_type = result.program.biz_type
    if not biz_type:
        return
    score = result.score_breakdown.biz_type

    if score >= _threshold(config, 'biz_type', config.strong_match_ratio):
        detail = _biz_type_detail(biz_type, org)
        suffix = f" ({detail})" if detail else ''
        reasons.append(f"✓ {biz_type} 지원 유형으로 귀사에 적합합니다.{suffix}")
    elif score >= _threshold(config, 'biz_type', config.moderate_match_ratio):
        reasons.append(f"{biz_type} 지원 유형의 프로그램입니다.")
    elif 0 < score < _threshold(config, 'biz_type', config.weak_match_ratio):
        reasons.append(f"{biz_type} 지원 유형으로 귀사의 특성과 다소 차이가 있습니다.")


def _industry_reason(result: MatchResult, reasons: List[str], config: ScoringConfig):
    score = result.score_breakdown.industry_content
    strong = score >= _threshold(config, 'industry_content', config.strong_match_ratio)
    moderate = score >= _threshold(config, 'industry_content', config.moderate_match_ratio)
    if not moderate:
        return

    classification = classify_program_text(result.program, config)
    label = industry_label(classification.industry) if classification else None

    if strong:
        if label:
            reasons.append(f"✓ {label} 분야 프로그램으로 귀사의 업종과 높은 연관성이 있습니다.")
        else:
            reasons.append('✓ 귀사의 업종과 높은 연관성이 있는 프로그램입니다.')
    elif label:
        reasons.append(f"{label} 분야 관련 프로그램입니다.")


def format_deadline(deadline) -> str:
    return f"{deadline.year}년 {deadline.month}월 {deadline.day}일"


def _deadline_reason(program: Program, now: datetime,
                     reasons: List[str], warnings: List[str]):
    if not program.application_end:
        return

    days = days_until(program.application_end, now)
    deadline_str = format_deadline(program.application_end)

    if days <= 0:
        warnings.append(f"마감일 경과 ({deadline_str}) - 다음 모집 시기를 확인하세요.")
    elif days <= 7:
        warnings.append(f"⚠️ 마감 {days}일 전 ({deadline_str}) - 신속한 신청이 필요합니다.")
    elif days <= 30:
        reasons.append(f"마감일: {deadline_str} ({days}일 남음) - 서류 준비를 시작하세요.")
    elif days <= 60:
        reasons.append(f"마감일: {deadline_str} ({days}일 남음)")
    else:
        reasons.append(f"마감일: {deadline_str} - 충분한 준비 기간이 있습니다.")


def _financial_reason(program: Program, reasons: List[str]):
    amount = program.max_support_amount
    if not amount or amount <= 0:
        return

    reasons.append(f"💰 최대 {format_krw_amount(amount)} 지원 가능")

    rate = format_interest_rate(program.min_interest_rate, program.max_interest_rate)
    if rate:
        reasons.append(f"금리: {rate}")


def _lifecycle_reason(result: MatchResult, org: OrganizationProfile,
                      reasons: List[str], config: ScoringConfig):
    if result.score_breakdown.lifecycle < _threshold(config, 'lifecycle', config.strong_match_ratio):
        return

    program = result.program
    from_biz_type = not program.life_cycle and program.biz_type == '창업'
    if org.company_scale_type == 'STARTUP' or from_biz_type:
        reasons.append('창업기 기업 대상 프로그램으로 귀사의 생애주기에 부합합니다.')
    elif program.life_cycle:
        stages = ', '.join(
            '창업기' if '창업' in lc else '성장기' if '성장' in lc else lc
            for lc in program.life_cycle
        )
        reasons.append(f"기업 생애주기({stages}) 대상 프로그램입니다.")


def _sport_type_reason(result: MatchResult, reasons: List[str], config: ScoringConfig):
    sport_type = result.program.sport_type
    # '정보' is the generic information type
    if not sport_type or sport_type == '정보':
        return
    if result.score_breakdown.sport_type < _threshold(config, 'sport_type', config.strong_match_ratio):
        return
    label = SPORT_TYPE_LABELS.get(sport_type, sport_type)
    reasons.append(f"{label} 유형의 프로그램입니다.")


# ═══════════════════════════════════════════════════════
#  Warnings
# ═══════════════════════════════════════════════════════

def _program_warnings(program: Program, warnings: List[str]):
    if program.is_restart:
        warnings.append('재창업/재기 기업 대상 프로그램입니다. 해당 여부를 확인하세요.')
    if program.is_female_owner:
        warnings.append('여성 대표 기업 대상 프로그램입니다. 해당 여부를 확인하세요.')

    age_range = ceo_age_range(program)
    if age_range:
        warnings.append(f"대표자 연령 제한이 있습니다: {age_range}")

    # Local programs without region codes still restrict applicants by location
    if not program.target_region_codes \
            and is_regional_required_program(program.title, program.description):
        warnings.append('지역 기반 사업입니다. 공고문의 소재지 요건을 확인하세요.')

    if not program.application_url and not program.detail_url:
        warnings.append('온라인 신청 링크가 없습니다. 지원기관에 직접 문의가 필요할 수 있습니다.')


def _profile_warnings(result: MatchResult, org: OrganizationProfile, warnings: List[str]):
    missing = [
        label for attr, factor, threshold, label in PROFILE_FIELD_CHECKS
        if not getattr(org, attr) and getattr(result.score_breakdown, factor) < threshold
    ]
    if missing:
        warnings.append(
            f"프로필 미완성: {', '.join(missing)} 정보를 입력하면 더 정확한 매칭이 가능합니다."
        )


# ═══════════════════════════════════════════════════════
#  Recommendations
# ═══════════════════════════════════════════════════════

def _recommendations(result: MatchResult, org: OrganizationProfile, now: datetime,
                     recommendations: List[str], config: ScoringConfig):
    score = result.score
    program = result.program
    breakdown = result.score_breakdown

    if score >= 80:
        recommendations.append('이 프로그램은 귀사에 매우 적합합니다. 빠른 신청을 권장드립니다.')
    elif score >= 65:
        recommendations.append('적합도가 높은 프로그램입니다. 공고문을 상세히 검토하고 지원서류를 준비하세요.')
    elif score >= 50:
        recommendations.append('세부 지원 요건을 공고문에서 확인한 후 지원을 검토하세요.')
    else:
        recommendations.append('프로필 정보를 업데이트하면 적합도가 향상될 수 있습니다.')

    if program.application_end:
        days = days_until(program.application_end, now)
        if 0 < days <= 14:
            recommendations.append(f"마감까지 {days}일 남았습니다. 서류 준비를 서두르세요.")

    moderate_industry = _threshold(config, 'industry_content', config.moderate_match_ratio)
    if breakdown.industry_content < moderate_industry and not org.industry_sector:
        recommendations.append('프로필에 업종 정보를 추가하면 업종 기반 매칭 정확도가 향상됩니다.')

    moderate_biz = _threshold(config, 'biz_type', config.moderate_match_ratio)
    if breakdown.biz_type < moderate_biz and program.biz_type == '기술' and not org.rd_experience:
        recommendations.append('R&D 경험 정보를 프로필에 추가하면 기술지원사업 매칭이 개선됩니다.')

    if program.application_url:
        recommendations.append('온라인 신청이 가능합니다.')
    elif program.detail_url:
        recommendations.append('공고 상세 페이지에서 신청 방법을 확인하세요.')


# ═══════════════════════════════════════════════════════
#  Formatting helpers
# ═══════════════════════════════════════════════════════

def format_krw_amount(amount: float) -> str:
    """1억 5000만원, 3억원, 500만원, 5,000원."""
    amount = int(amount)
    if amount >= 100_000_000:
        eok, remainder = divmod(amount, 100_000_000)
        man = remainder // 10_000
        return f"{eok}억 {man}만원" if man > 0 else f"{eok}억원"
    if amount >= 10_000:
        return f"{amount // 10_000}만원"
    return f"{amount:,}원"


def _fmt_rate(rate: float) -> str:
    return f"{rate:g}"


def format_interest_rate(min_rate: Optional[float], max_rate: Optional[float]) -> Optional[str]:
    if min_rate is not None and max_rate is not None:
        if min_rate == max_rate:
            return f"{_fmt_rate(min_rate)}%"
        return f"{_fmt_rate(min_rate)}~{_fmt_rate(max_rate)}%"
    if min_rate is not None:
        return f"{_fmt_rate(min_rate)}% 이상"
    if max_rate is not None:
        return f"최대 {_fmt_rate(max_rate)}%"
    return None
