"""
factors.py — The twelve scoring factors, hard eligibility gates and soft flags.

Every factor is a pure function of (organization, program) that returns raw
points within its own ceiling (see FACTOR_MAX). A factor never raises: missing
organization data or an unconstrained program dimension earns the documented
partial credit from ScoringConfig. Human-readable met/failed criteria are
appended to the lists passed in.

Gate/factor order follows the matcher; see matcher.calculate_match_score.
"""

import math
from datetime import date, datetime, time
from typing import List, Optional

from etl.models import OrganizationProfile, Program

from .classifier import classify_program, get_industry_relevance, industry_label
from .codes import (
    calculate_business_age, check_certification_eligibility,
    check_region_eligibility, check_revenue_eligibility, map_business_age_to_code,
    map_certifications_to_codes, map_company_scale_to_code,
    map_employee_count_to_code, map_regions_to_codes, revenue_midpoint,
)
from .constants import (
    DEFAULT_CONFIG, NATIONWIDE_REGION_CODE, STARTUP_ONLY_SCALE_CODE, ScoringConfig,
)

TECH_SECTORS = {'ICT', 'BIO_HEALTH', 'MANUFACTURING', 'ENERGY'}
SMALL_REVENUE = {'NONE', 'UNDER_1B'}


# ═══════════════════════════════════════════════════════
#  Helpers
# ═══════════════════════════════════════════════════════

def round_half_up(value: float) -> int:
    """Round .5 away from zero for positives (Python's round() is banker's)."""
    return int(math.floor(value + 0.5))


def _align(deadline, now: datetime):
    if not isinstance(deadline, datetime):
        deadline = datetime.combine(deadline, time.min)
    if deadline.tzinfo is None and now.tzinfo is not None:
        deadline = deadline.replace(tzinfo=now.tzinfo)
    elif deadline.tzinfo is not None and now.tzinfo is None:
        now = now.replace(tzinfo=deadline.tzinfo)
    return deadline, now


def days_until(deadline, now: datetime) -> int:
    """Whole days left, rounded up: 4.2 days → 5, -0.5 days → 0."""
    deadline, now = _align(deadline, now)
    return math.ceil((deadline - now).total_seconds() / 86400)


def is_past(deadline, now: datetime) -> bool:
    deadline, now = _align(deadline, now)
    return deadline < now


def ceo_age_range(program: Program) -> Optional[str]:
    lo, hi = program.min_ceo_age, program.max_ceo_age
    if lo and hi:
        return f"{lo}~{hi}세"
    if lo:
        return f"{lo}세 이상"
    if hi:
        return f"{hi}세 이하"
    return None


def derive_org_lifecycle(org: OrganizationProfile, today: date) -> Optional[str]:
    """'startup' | 'growth' | None (unknown)."""
    if org.company_scale_type == 'STARTUP':
        return 'startup'
    age = calculate_business_age(org.business_established_date, today)
    if age is None:
        return None
    return 'startup' if age < 3 else 'growth'


def program_text_parts(program: Program) -> List[str]:
    """Non-empty title, description, support contents and target industry."""
    return [t for t in (program.title, program.description,
                        program.support_contents, program.target_industry) if t]


# ═══════════════════════════════════════════════════════
#  Hard gates and soft flags
# ═══════════════════════════════════════════════════════

def check_hard_gates(org: OrganizationProfile, program: Program,
                     met: List[str]) -> Optional[str]:
    """
    Return the reason of the first failed hard requirement, or None.
    Passed certification/region gates are recorded in `met`.
    """
    scale_codes = program.target_company_scale_cd
    if scale_codes:
        if org.company_scale_type == 'LARGE_ENTERPRISE':
            return '대기업은 중소기업 지원사업에 지원할 수 없습니다'

        org_code = map_company_scale_to_code(org.company_scale_type)
        startup_only = scale_codes == [STARTUP_ONLY_SCALE_CODE]
        if org_code and org_code not in scale_codes and startup_only \
                and org.company_scale_type != 'STARTUP':
            return '창업기업 전용 프로그램입니다'

    if program.required_certs_cd:
        check = check_certification_eligibility(org.certifications, program.required_certs_cd)
        if not check.eligible:
            return f"필요 인증 미보유: {', '.join(check.missing)}"
        met.append(f"필요 인증 보유: {', '.join(check.met)}")

    region_codes = program.target_region_codes
    if region_codes:
        check = check_region_eligibility(org.regions, region_codes)
        if not check.eligible and NATIONWIDE_REGION_CODE not in region_codes:
            return '지역 제한 미충족'
        if check.eligible:
            met.append(check.reason)

    if program.is_pre_startup and org.business_established_date:
        return '예비창업자 전용 프로그램입니다'

    return None


def collect_soft_warnings(program: Program) -> List[str]:
    """Restrictions we cannot verify from the profile: downgrade, never exclude."""
    warnings = []
    if program.is_restart:
        warnings.append('재창업/재기 기업 대상 프로그램입니다')
    if program.is_female_owner:
        warnings.append('여성 대표 기업 대상 프로그램입니다')
    age_range = ceo_age_range(program)
    if age_range:
        warnings.append(f"대표자 연령 제한: {age_range}")
    return warnings


# ═══════════════════════════════════════════════════════
#  Eligibility factors (70 raw)
# ═══════════════════════════════════════════════════════

def score_company_scale(org: OrganizationProfile, program: Program, met: List[str],
                        failed: List[str], config: ScoringConfig = DEFAULT_CONFIG) -> int:
    codes = program.target_company_scale_cd
    if not codes:
        return config.company_scale_open

    if not org.company_scale_type:
        failed.append('기업규모 정보 필요')
        return config.company_scale_unknown

    org_code = map_company_scale_to_code(org.company_scale_type)
    if not org_code:
        return config.company_scale_unknown

    if org_code in codes:
        met.append('기업규모 조건 충족')
        return config.company_scale_matched

    failed.append('기업규모 조건 부분 충족')
    return config.company_scale_partial


def score_revenue_range(org: OrganizationProfile, program: Program, met: List[str],
                        failed: List[str], warnings: List[str],
                        config: ScoringConfig = DEFAULT_CONFIG) -> int:
    codes = program.target_sales_range_cd
    if not codes:
        return config.revenue_open

    if not org.revenue_range:
        warnings.append('매출액 정보가 없어 일부 조건을 확인할 수 없습니다')
        return config.revenue_unknown

    if check_revenue_eligibility(org.revenue_range, codes).eligible:
        met.append('매출액 조건 충족')
        return config.revenue_matched

    failed.append('매출액 조건 미충족')
    return config.revenue_mismatch


def score_employee_count(org: OrganizationProfile, program: Program, met: List[str],
                         failed: List[str], config: ScoringConfig = DEFAULT_CONFIG) -> int:
    codes = program.target_employee_range_cd
    if not codes:
        return config.employee_open

    org_code = map_employee_count_to_code(org.employee_count)
    if not org_code:
        return config.employee_open

    if org_code in codes:
        met.append('종업원수 조건 충족')
        return config.employee_matched

    failed.append('종업원수 조건 부분 충족')
    return config.employee_mismatch


def score_business_age(org: OrganizationProfile, program: Program, met: List[str],
                       failed: List[str], today: date,
                       config: ScoringConfig = DEFAULT_CONFIG) -> int:
    codes = program.target_business_age_cd
    if not codes:
        return config.business_age_open

    age = calculate_business_age(org.business_established_date, today)
    org_code = map_business_age_to_code(age)
    if not org_code:
        return config.business_age_open

    if org_code in codes:
        met.append('업력 조건 충족')
        return config.business_age_matched

    if program.min_business_age is not None and age < program.min_business_age:
        failed.append(f"최소 업력 {program.min_business_age}년 필요")
        return config.business_age_out_of_range

    if program.max_business_age is not None and age > program.max_business_age:
        failed.append(f"업력 {program.max_business_age}년 이하 기업 대상")
        return config.business_age_out_of_range

    failed.append('업력 조건 부분 충족')
    return config.business_age_open


def score_region(org: OrganizationProfile, program: Program, met: List[str],
                 failed: List[str], config: ScoringConfig = DEFAULT_CONFIG) -> int:
    codes = program.target_region_codes
    # Nationwide is open, not matched
    if not codes or NATIONWIDE_REGION_CODE in codes:
        met.append('전국 대상 프로그램')
        return config.region_open

    if not map_regions_to_codes(org.regions):
        failed.append('소재지 정보 필요')
        return config.region_unknown

    if check_region_eligibility(org.regions, codes).eligible:
        met.append('지역 조건 충족')
        return config.region_matched

    failed.append('지역 조건 미충족')
    return 0


def score_certifications(org: OrganizationProfile, program: Program, met: List[str],
                         config: ScoringConfig = DEFAULT_CONFIG) -> int:
    """Bonus only: InnoBiz / MainBiz / Venture holders."""
    held = map_certifications_to_codes(org.certifications)
    preferred = [c for c in held if c in config.preferred_certifications]
    if not preferred:
        return 0
    met.append(f"인증 보유: {len(preferred)}개")
    return min(config.certification_max, len(preferred) * config.certification_points)


# ═══════════════════════════════════════════════════════
#  Relevance factors (80 raw)
# ═══════════════════════════════════════════════════════

def score_biz_type(org: OrganizationProfile, program: Program, met: List[str],
                   today: date, config: ScoringConfig = DEFAULT_CONFIG) -> int:
    """
    Program business type (사업유형) against organization traits.
    Point values come from the biz_type_* fields of ScoringConfig.
    """
    biz_type = program.biz_type
    scale = org.company_scale_type
    revenue = org.revenue_range

    if biz_type == '기술':
        if org.rd_experience:
            met.append('R&D 경험 보유 - 기술지원사업 적합')
            return config.biz_type_strong
        if org.industry_sector and org.industry_sector.upper() in TECH_SECTORS:
            met.append('기술 분야 기업 - 기술지원사업 적합')
            return config.biz_type_moderate
        return config.biz_type_low

    if biz_type == '금융':
        if scale == 'STARTUP':
            met.append('창업기업 - 금융지원사업 적합')
            return config.biz_type_strong
        if scale == 'SME':
            met.append('중소기업 - 금융지원사업 적합')
            return config.biz_type_moderate
        if revenue in SMALL_REVENUE:
            return config.biz_type_moderate
        return config.biz_type_default

    if biz_type == '창업':
        if scale == 'STARTUP':
            met.append('창업기업 - 창업지원사업 적합')
            return config.biz_type_strong
        age = calculate_business_age(org.business_established_date, today)
        if age is not None and age < 3:
            met.append('업력 3년 미만 - 창업지원사업 적합')
            return config.biz_type_moderate
        if age is not None and age < 7:
            return config.biz_type_fair
        return config.biz_type_weak

    if biz_type == '수출':
        if revenue and revenue != 'NONE':
            met.append('매출 보유 - 수출지원사업 적합')
            return config.biz_type_good
        return config.biz_type_low

    if biz_type in ('인력', '경영'):
        return config.biz_type_fair

    if biz_type == '내수':
        if revenue and revenue != 'NONE':
            return config.biz_type_moderate
        return config.biz_type_default

    if biz_type == '중견':
        if scale == 'MID_SIZED':
            met.append('중견기업 대상 사업 적합')
            return config.biz_type_strong
        if scale == 'SME':
            return config.biz_type_fair
        return config.biz_type_weak

    if biz_type == '소상공인':
        if scale == 'STARTUP' or revenue in SMALL_REVENUE:
            met.append('소상공인 지원사업 적합')
            return config.biz_type_good
        return config.biz_type_minimal

    return config.biz_type_default


def score_lifecycle(org: OrganizationProfile, program: Program, met: List[str],
                    today: date, config: ScoringConfig = DEFAULT_CONFIG) -> int:
    stage = derive_org_lifecycle(org, today)

    if program.life_cycle:
        if stage is None:
            return config.lifecycle_default
        for lc in program.life_cycle:
            if '창업' in lc and stage == 'startup':
                met.append('생애주기 부합: 창업기')
                return config.lifecycle_matched
            if '성장' in lc and stage == 'growth':
                met.append('생애주기 부합: 성장기')
                return config.lifecycle_matched
            if '폐업' in lc or '재기' in lc:
                return config.lifecycle_default
        return 0

    # No lifecycle tags: a startup-type program implies the startup stage
    if program.biz_type == '창업':
        if stage == 'startup':
            return config.lifecycle_matched
        if stage == 'growth':
            return 0
    return config.lifecycle_default


def classify_program_text(program: Program, config: ScoringConfig = DEFAULT_CONFIG):
    """Classification of a program's free text, or None when there is too little text."""
    if len(' '.join(program_text_parts(program))) < config.industry_min_text_length:
        return None
    rest = ' '.join(t for t in (program.description, program.support_contents,
                                program.target_industry) if t)
    return classify_program(program.title, rest or None, None)


def score_industry_content(org: OrganizationProfile, program: Program, met: List[str],
                           config: ScoringConfig = DEFAULT_CONFIG) -> int:
    """
    Keyword-classify the program text, then scale industry relevance onto
    0..industry_max. Text that is too short or carries no industry keyword
    earns the "insufficient text" partial credit.
    """
    classification = classify_program_text(program, config)
    if classification is None or not classification.is_classified:
        return config.industry_insufficient

    relevance = get_industry_relevance(org.industry_sector, classification.industry)
    if relevance >= 0.8:
        met.append(f"업종 일치: {industry_label(classification.industry)}")
    elif relevance >= 0.5:
        met.append(f"관련 업종: {industry_label(classification.industry)}")

    return round_half_up(relevance * config.industry_max)


def score_deadline(program: Program, met: List[str], now: datetime,
                   config: ScoringConfig = DEFAULT_CONFIG) -> int:
    if not program.application_end:
        return config.deadline_default

    days = days_until(program.application_end, now)
    if days < 0:
        return config.deadline_expired

    labels = (f"마감 {days}일 전 - 긴급", f"마감 {days}일 전")
    for i, (max_days, points) in enumerate(config.deadline_steps):
        if days <= max_days:
            if i < len(labels):
                met.append(labels[i])
            return points
    return config.deadline_default


def score_financial_relevance(org: OrganizationProfile, program: Program, met: List[str],
                              config: ScoringConfig = DEFAULT_CONFIG) -> int:
    """Sweet spot: maximum support between 1% and 30% of annual revenue."""
    if not program.max_support_amount or not org.revenue_range:
        return config.financial_default

    midpoint = revenue_midpoint(org.revenue_range)
    if midpoint == 0:
        return config.financial_default

    ratio = program.max_support_amount / midpoint
    low, high = config.financial_ratio_range
    if low <= ratio <= high:
        met.append('지원 규모 적정')
        return config.financial_matched
    return config.financial_default


def score_sport_type(org: OrganizationProfile, program: Program, met: List[str],
                     config: ScoringConfig = DEFAULT_CONFIG) -> int:
    sport_type = program.sport_type
    default = config.sport_type_default

    if sport_type == '기술개발':
        if org.rd_experience:
            met.append('기술개발 지원유형 적합')
            return config.sport_type_matched
        return default

    if sport_type == '창업':
        return config.sport_type_matched if org.company_scale_type == 'STARTUP' else default

    if sport_type == '수출지원':
        if org.revenue_range and org.revenue_range != 'NONE':
            return config.sport_type_matched
        return default

    if sport_type in ('정책자금', '인력지원'):
        return config.sport_type_funding

    if sport_type == '스마트공장':
        if org.industry_sector and org.industry_sector.upper() == 'MANUFACTURING':
            met.append('제조업 - 스마트공장 지원 적합')
            return config.sport_type_matched
        return default

    if sport_type == '소상공인':
        if org.company_scale_type == 'STARTUP' or org.revenue_range in SMALL_REVENUE:
            return config.sport_type_matched
        return default

    # '정보' (general information) and unknown types
    return default
