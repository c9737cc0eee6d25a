"""
═══════════════════════════════════════════════════════════════════════════════
SME PROGRAM MATCHING: CONSTANTS AND CONFIGURATION
Scoring weights, partial-credit values and SME24 code tables
═══════════════════════════════════════════════════════════════════════════════
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import Dict, Tuple


class EligibilityLevel(str, Enum):
    """Eligibility verdict of a single program/organization pair"""
    FULLY_ELIGIBLE = 'FULLY_ELIGIBLE'
    CONDITIONALLY_ELIGIBLE = 'CONDITIONALLY_ELIGIBLE'
    INELIGIBLE = 'INELIGIBLE'


@dataclass
class EligibilityInfo:
    priority: int
    label: str


ELIGIBILITY_MAP: Dict[EligibilityLevel, EligibilityInfo] = {
    EligibilityLevel.FULLY_ELIGIBLE: EligibilityInfo(
        priority=0,
        label='지원 가능',
    ),
    EligibilityLevel.CONDITIONALLY_ELIGIBLE: EligibilityInfo(
        priority=1,
        label='조건부 지원 가능',
    ),
    EligibilityLevel.INELIGIBLE: EligibilityInfo(
        priority=2,
        label='지원 불가',
    ),
}


# ═══════════════════════════════════════════════════════
#  Factor ceilings (raw points, sum = 150)
# ═══════════════════════════════════════════════════════
FACTOR_MAX: Dict[str, int] = {
    # Eligibility factors (70)
    'company_scale':       20,
    'revenue_range':       15,
    'employee_count':      10,
    'business_age':        10,
    'region':              10,
    'certifications':       5,
    # Relevance factors (80)
    'biz_type':            28,
    'lifecycle':            2,
    'industry_content':    30,
    'deadline':            15,
    'financial_relevance':  2,
    'sport_type':           3,
}

MAX_RAW_SCORE = sum(FACTOR_MAX.values())

# Point values each factor can award, checked against its ceiling
_FACTOR_POINTS: Dict[str, Tuple[str, ...]] = {
    'company_scale': ('company_scale_open', 'company_scale_unknown',
                      'company_scale_matched', 'company_scale_partial'),
    'revenue_range': ('revenue_open', 'revenue_unknown', 'revenue_matched', 'revenue_mismatch'),
    'employee_count': ('employee_open', 'employee_matched', 'employee_mismatch'),
    'business_age': ('business_age_open', 'business_age_matched',
                     'business_age_out_of_range'),
    'region': ('region_open', 'region_unknown', 'region_matched'),
    'certifications': ('certification_max',),
    'biz_type': ('biz_type_strong', 'biz_type_good', 'biz_type_moderate', 'biz_type_fair',
                 'biz_type_default', 'biz_type_low', 'biz_type_minimal', 'biz_type_weak'),
    'lifecycle': ('lifecycle_matched', 'lifecycle_default'),
    'industry_content': ('industry_max', 'industry_insufficient'),
    'deadline': ('deadline_default', 'deadline_expired'),
    'financial_relevance': ('financial_matched', 'financial_default'),
    'sport_type': ('sport_type_matched', 'sport_type_funding', 'sport_type_default'),
}


@dataclass(frozen=True)
class ScoringConfig:
    """
    Tunable scoring rubric.

    Every "*_open" value is the partial credit granted when the program
    leaves that dimension unconstrained, and stays strictly between 0 and
    the factor ceiling. Every other point value stays within 0..ceiling,
    and max_raw_score must equal the sum of factor_max. Raises ValueError
    otherwise.
    """
    max_raw_score: int = MAX_RAW_SCORE

    # Company scale (0-20)
    company_scale_open: int = 10
    company_scale_unknown: int = 8
    company_scale_matched: int = 20
    company_scale_partial: int = 10

    # Revenue range (0-15)
    revenue_open: int = 7
    revenue_unknown: int = 8
    revenue_matched: int = 15
    revenue_mismatch: int = 4

    # Employee count (0-10)
    employee_open: int = 5
    employee_matched: int = 10
    employee_mismatch: int = 3

    # Business age (0-10)
    business_age_open: int = 5
    business_age_matched: int = 10
    business_age_out_of_range: int = 2

    # Region (0-10)
    region_open: int = 7
    region_unknown: int = 3
    region_matched: int = 10

    # Certifications (0-5, bonus only)
    certification_points: int = 2
    certification_max: int = 5
    preferred_certifications: Tuple[str, ...] = ('EC06', 'EC07', 'EC08')

    # Business type (0-28)
    biz_type_strong: int = 28
    biz_type_good: int = 24
    biz_type_moderate: int = 22
    biz_type_fair: int = 14
    biz_type_default: int = 8
    biz_type_low: int = 6
    biz_type_minimal: int = 4
    biz_type_weak: int = 3

    # Relevance defaults
    lifecycle_matched: int = 2
    lifecycle_default: int = 1
    industry_max: int = 30
    industry_insufficient: int = 8
    industry_min_text_length: int = 5

    # Deadline urgency: (max days, points), first step that fits wins
    deadline_steps: Tuple[Tuple[int, int], ...] = ((7, 15), (30, 12), (60, 8))
    deadline_default: int = 5
    deadline_expired: int = 0

    # Financial relevance: support amount / revenue midpoint sweet spot
    financial_matched: int = 2
    financial_default: int = 1
    financial_ratio_range: Tuple[float, float] = (0.01, 0.30)

    # Support type (0-3)
    sport_type_matched: int = 3
    sport_type_funding: int = 2
    sport_type_default: int = 1

    # Explanation thresholds, as a share of each factor ceiling
    strong_match_ratio: float = 0.7
    moderate_match_ratio: float = 0.45
    weak_match_ratio: float = 0.35

    factor_max: Dict[str, int] = field(default_factory=lambda: dict(FACTOR_MAX))

    def __post_init__(self):
        missing = set(FACTOR_MAX) - set(self.factor_max)
        if missing:
            raise ValueError(f"factor_max is missing {sorted(missing)}")
        if self.max_raw_score != sum(self.factor_max.values()):
            raise ValueError(
                f"max_raw_score {self.max_raw_score} != sum of factor_max "
                f"{sum(self.factor_max.values())}"
            )

        for factor, names in _FACTOR_POINTS.items():
            ceiling = self.factor_max[factor]
            points = [(name, getattr(self, name)) for name in names]
            if factor == 'deadline':
                points += [(f"deadline_steps[{i}]", p) for i, (_, p) in enumerate(self.deadline_steps)]
            for name, value in points:
                if not 0 <= value <= ceiling:
                    raise ValueError(f"{name}={value} outside 0..{ceiling} ({factor})")
                if name.endswith('_open') and not 0 < value < ceiling:
                    raise ValueError(f"{name}={value} must be partial credit for {factor}")


DEFAULT_CONFIG = ScoringConfig()


# ═══════════════════════════════════════════════════════
#  Summary bands
# ═══════════════════════════════════════════════════════
SUMMARY_BANDS = [
    (75, '매우 적합'),
    (55, '적합'),
    (0, '부분 적합'),
]

DEFAULT_INSTITUTION = '중소벤처기업부'
NATIONWIDE_REGION_CODE = '1000'
STARTUP_ONLY_SCALE_CODE = 'CC60'


# ═══════════════════════════════════════════════════════
#  SME24 code tables
# ═══════════════════════════════════════════════════════

# LARGE_ENTERPRISE has no code: not eligible for SME programs
COMPANY_SCALE_TO_CODE: Dict[str, str] = {
    'STARTUP': 'CC60',
    'SME': 'CC10',
    'MID_SIZED': 'CC50',
}

# NONE has no code: a company without revenue cannot meet a sales band
REVENUE_TO_CODE: Dict[str, str] = {
    'UNDER_1B': 'SI01',
    'FROM_1B_TO_10B': 'SI02',
    'FROM_10B_TO_50B': 'SI04',
    'FROM_50B_TO_100B': 'SI05',
    'OVER_100B': 'SI06',
}

# KRW
REVENUE_MIDPOINTS: Dict[str, int] = {
    'NONE': 0,
    'UNDER_1B': 500_000_000,
    'FROM_1B_TO_10B': 5_000_000_000,
    'FROM_10B_TO_50B': 30_000_000_000,
    'FROM_50B_TO_100B': 75_000_000_000,
    'OVER_100B': 150_000_000_000,
}

EMPLOYEE_COUNT_TO_CODE: Dict[str, str] = {
    'UNDER_10': 'EI01',
    'FROM_10_TO_50': 'EI04',
    'FROM_50_TO_100': 'EI05',
    'FROM_100_TO_300': 'EI06',
    'OVER_300': 'EI06',
}

# (upper bound in years, exclusive) → code
BUSINESS_AGE_BANDS = [
    (3, 'OI01'),
    (5, 'OI02'),
    (7, 'OI03'),
    (10, 'OI04'),
    (15, 'OI05'),
]
BUSINESS_AGE_TOP_CODE = 'OI06'

CERTIFICATION_CODES: Dict[str, str] = {
    'EC01': '수출유망중소기업',
    'EC02': '여성기업',
    'EC03': '장애인기업',
    'EC04': '중소기업',
    'EC05': '소상공인',
    'EC06': '기술혁신형중소기업',
    'EC07': '경영혁신형중소기업',
    'EC08': '벤처기업',
    'EC09': '우수그린비즈',
    'EC10': '사회적기업',
    'EC11': '연구소보유',
    'EC12': '지식재산경영인증 기업',
    'EC13': '부품소재기업',
    'EC14': '뿌리기술기업',
    'EC15': '에너지기술기업',
    'EC16': '기술전문기업',
    'EC17': '직접생산확인기업',
}

# Name variants → code (lookup is case-insensitive)
CERT_NAME_TO_CODE: Dict[str, str] = {
    # InnoBiz
    '이노비즈': 'EC06',
    'INNO-BIZ': 'EC06',
    'INNOBIZ': 'EC06',
    '기술혁신형중소기업': 'EC06',
    # MainBiz
    '메인비즈': 'EC07',
    'MAIN-BIZ': 'EC07',
    'MAINBIZ': 'EC07',
    '경영혁신형중소기업': 'EC07',
    # Venture
    '벤처기업': 'EC08',
    'VENTURE': 'EC08',
    '벤처': 'EC08',
    # Others, aligned with CERTIFICATION_CODES
    '수출유망중소기업': 'EC01',
    '여성기업': 'EC02',
    '장애인기업': 'EC03',
    '녹색인증기업': 'EC09',
    '우수그린비즈': 'EC09',
    '사회적기업': 'EC10',
    '기업부설연구소': 'EC11',
    '연구소보유': 'EC11',
    '부품소재기업': 'EC13',
    '뿌리기술기업': 'EC14',
}

REGION_TO_CODE: Dict[str, str] = {
    'SEOUL': '1100',
    'GYEONGGI': '3100',
    'INCHEON': '2300',
    'BUSAN': '2100',
    'DAEGU': '2200',
    'GWANGJU': '2400',
    'DAEJEON': '2500',
    'ULSAN': '2600',
    'SEJONG': '2900',
    'GANGWON': '3200',
    'CHUNGBUK': '3300',
    'CHUNGNAM': '3400',
    'JEONBUK': '3500',
    'JEONNAM': '3600',
    'GYEONGBUK': '3700',
    'GYEONGNAM': '3800',
    'JEJU': '3900',
}

CODE_TO_REGION: Dict[str, str] = {code: region for region, code in REGION_TO_CODE.items()}
