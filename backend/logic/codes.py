"""
codes.py — Organization attribute ↔ SME24 code mapping and eligibility checks.

Program announcements express their eligibility as SME24 codes
(CC* company scale, SI* sales band, EI* headcount, OI* business age,
EC* certification, 4-digit region codes). Organization profiles use
enum names. Everything here is a pure lookup: unknown input maps to None
instead of raising.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, List, Optional

from .constants import (
    BUSINESS_AGE_BANDS, BUSINESS_AGE_TOP_CODE, CERT_NAME_TO_CODE,
    CERTIFICATION_CODES, CODE_TO_REGION, COMPANY_SCALE_TO_CODE, EMPLOYEE_COUNT_TO_CODE,
    NATIONWIDE_REGION_CODE, REVENUE_MIDPOINTS, REVENUE_TO_CODE, REGION_TO_CODE,
)


@dataclass
class EligibilityCheck:
    """Verdict of one eligibility check plus human-readable detail."""
    eligible: bool
    reason: str = ''
    met: List[str] = field(default_factory=list)
    missing: List[str] = field(default_factory=list)


# ═══════════════════════════════════════════════════════
#  Company scale
# ═══════════════════════════════════════════════════════

def map_company_scale_to_code(scale: Optional[str]) -> Optional[str]:
    """STARTUP → CC60, SME → CC10, MID_SIZED → CC50. LARGE_ENTERPRISE has no code."""
    if not scale:
        return None
    return COMPANY_SCALE_TO_CODE.get(scale)


# ═══════════════════════════════════════════════════════
#  Revenue
# ═══════════════════════════════════════════════════════

def map_revenue_to_code(revenue: Optional[str]) -> Optional[str]:
    if not revenue:
        return None
    return REVENUE_TO_CODE.get(revenue)


def revenue_midpoint(revenue: Optional[str]) -> int:
    """Approximate annual revenue in KRW, 0 when unknown."""
    if not revenue:
        return 0
    return REVENUE_MIDPOINTS.get(revenue, 0)


def check_revenue_eligibility(org_revenue: Optional[str],
                              program_codes: Iterable[str]) -> EligibilityCheck:
    codes = list(program_codes or [])
    if not codes:
        return EligibilityCheck(True, '매출액 제한 없음')

    if not org_revenue:
        return EligibilityCheck(False, '매출액 정보 필요')

    org_code = map_revenue_to_code(org_revenue)
    if not org_code:
        return EligibilityCheck(False, '매출액 정보 매핑 실패')

    eligible = org_code in codes
    return EligibilityCheck(eligible, '매출액 조건 충족' if eligible else '매출액 조건 미충족')


# ═══════════════════════════════════════════════════════
#  Employee count
# ═══════════════════════════════════════════════════════

def map_employee_count_to_code(count_range: Optional[str]) -> Optional[str]:
    if not count_range:
        return None
    return EMPLOYEE_COUNT_TO_CODE.get(count_range)


# ═══════════════════════════════════════════════════════
#  Business age
# ═══════════════════════════════════════════════════════

def calculate_business_age(established: Optional[date], today: Optional[date] = None) -> Optional[int]:
    """Full years since establishment; the current year counts once the anniversary has passed."""
    if not established:
        return None
    today = today or date.today()
    years = today.year - established.year
    if (today.month, today.day) < (established.month, established.day):
        years -= 1
    return years


def map_business_age_to_code(years: Optional[int]) -> Optional[str]:
    if years is None:
        return None
    for upper, code in BUSINESS_AGE_BANDS:
        if years < upper:
            return code
    return BUSINESS_AGE_TOP_CODE


# ═══════════════════════════════════════════════════════
#  Certifications
# ═══════════════════════════════════════════════════════

# Case-insensitive index over name variants, official names and raw codes
_CERT_LOOKUP = {name.upper(): code for name, code in CERT_NAME_TO_CODE.items()}
for _code, _name in CERTIFICATION_CODES.items():
    _CERT_LOOKUP.setdefault(_name.upper(), _code)
    _CERT_LOOKUP.setdefault(_code, _code)


def map_certification_to_code(certification: Optional[str]) -> Optional[str]:
    if not certification:
        return None
    return _CERT_LOOKUP.get(certification.strip().upper())


def map_certifications_to_codes(certifications: Iterable[str]) -> List[str]:
    """Translate held certifications, silently dropping unknown names."""
    codes = []
    for cert in certifications or []:
        code = map_certification_to_code(cert)
        if code:
            codes.append(code)
    return codes


def certification_name(code: str) -> str:
    return CERTIFICATION_CODES.get(code, code)


def check_certification_eligibility(org_certifications: Iterable[str],
                                    required_codes: Iterable[str]) -> EligibilityCheck:
    required = list(required_codes or [])
    if not required:
        return EligibilityCheck(True)

    held = set(map_certifications_to_codes(org_certifications))
    met, missing = [], []
    for code in required:
        if code in held:
            met.append(certification_name(code))
        else:
            missing.append(certification_name(code))

    return EligibilityCheck(
        eligible=not missing,
        reason='필요 인증 보유' if not missing else '필요 인증 미보유',
        met=met,
        missing=missing,
    )


# ═══════════════════════════════════════════════════════
#  Regions
# ═══════════════════════════════════════════════════════

def map_region_to_code(region: Optional[str]) -> Optional[str]:
    """Accepts an enum name (SEOUL) or an already-coded value (1100)."""
    if not region:
        return None
    region = region.strip()
    if region in CODE_TO_REGION or region == NATIONWIDE_REGION_CODE:
        return region
    return REGION_TO_CODE.get(region.upper())


def map_regions_to_codes(regions: Iterable[str]) -> List[str]:
    codes = []
    for region in regions or []:
        code = map_region_to_code(region)
        if code and code not in codes:
            codes.append(code)
    return codes


def check_region_eligibility(org_regions: Iterable[str],
                             program_codes: Iterable[str]) -> EligibilityCheck:
    codes = list(program_codes or [])
    if not codes or NATIONWIDE_REGION_CODE in codes:
        return EligibilityCheck(True, '지역 제한 없음')

    org_codes = map_regions_to_codes(org_regions)
    if not org_codes:
        return EligibilityCheck(False, '소재지 정보 필요')

    matched = [c for c in codes if c in org_codes]
    if matched:
        return EligibilityCheck(True, '지역 조건 충족', met=matched)
    return EligibilityCheck(False, '지역 조건 미충족', missing=codes)
