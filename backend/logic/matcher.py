"""
matcher.py — SME Program Matching Engine.

Architecture:
  1. Pre-filter     — inactive or expired programs are skipped
  2. Hard gates     — scale / certification / region / pre-startup;
                      a failure yields INELIGIBLE (score 0) and the program
                      never reaches the ranked output
  3. Soft flags     — restart / female owner / CEO age; downgrade only
  4. Scoring        — twelve factors, 150 raw → normalized 0..100
  5. Eligibility    — FULLY_ELIGIBLE unless anything failed or warned
  6. Ranking        — eligibility level first, then score (stable)

Eligibility levels:
  FULLY_ELIGIBLE          — every checked condition met, no warnings
  CONDITIONALLY_ELIGIBLE  — partial mismatches or unverifiable restrictions
  INELIGIBLE              — hard requirement failed (filtered out)
"""

import logging
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from etl.models import (
    MatchExplanation, MatchResult, OrganizationProfile, Program, ScoreBreakdown,
)

from .constants import (
    DEFAULT_CONFIG, DEFAULT_INSTITUTION, ELIGIBILITY_MAP, SUMMARY_BANDS,
    EligibilityLevel, ScoringConfig,
)
from .factors import (
    check_hard_gates, collect_soft_warnings, is_past, round_half_up,
    score_biz_type, score_business_age, score_certifications, score_company_scale,
    score_deadline, score_employee_count, score_financial_relevance,
    score_industry_content, score_lifecycle, score_region, score_revenue_range,
    score_sport_type,
)

logger = logging.getLogger(__name__)

ACTIVE_STATUS = 'ACTIVE'
PROFILE_UPDATE_RECOMMENDATION = '프로필 정보를 업데이트하여 적합성을 향상시킬 수 있습니다'


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_matches(org: OrganizationProfile, programs: Iterable[Program],
                     minimum_score: int = 40, include_expired: bool = False,
                     limit: int = 50, config: ScoringConfig = DEFAULT_CONFIG,
                     now: Optional[datetime] = None) -> List[MatchResult]:
    """
    Score every program against one organization and return the ranked list.

    Args:
        org: validated organization profile
        programs: validated programs
        minimum_score: results below this normalized score are dropped
        include_expired: keep inactive/expired programs
        limit: maximum number of results returned
        config: scoring rubric
        now: reference time for deadline logic (defaults to current UTC time)

    Returns:
        MatchResult list: FULLY_ELIGIBLE first, then score descending.
        Equal keys keep input order.
    """
    if limit < 0:
        raise ValueError(f"limit must be >= 0, got {limit}")

    now = now or _utcnow()
    programs = list(programs or [])
    if org is None or not programs:
        return []

    matches: List[MatchResult] = []
    skipped = {'inactive': 0, 'expired': 0, 'ineligible': 0, 'low_score': 0}

    for program in programs:
        if not include_expired:
            if program.status != ACTIVE_STATUS:
                skipped['inactive'] += 1
                continue
            if program.application_end and is_past(program.application_end, now):
                skipped['expired'] += 1
                continue

        result = calculate_match_score(org, program, config=config, now=now)

        if result.eligibility_level == EligibilityLevel.INELIGIBLE.value:
            skipped['ineligible'] += 1
            logger.debug(f"Program {program.id} excluded: {result.failed_criteria[0]}")
            continue

        if result.score < minimum_score:
            skipped['low_score'] += 1
            continue

        matches.append(result)

    ranked = rank_matches(matches)[:limit]

    logger.info(
        f"Matched org {org.id}: {len(ranked)} results from {len(programs)} programs "
        f"(skipped {skipped})"
    )
    return ranked


def rank_matches(matches: Iterable[MatchResult]) -> List[MatchResult]:
    """Eligibility level first, then score descending. Equal keys keep input order."""
    return sorted(
        matches,
        key=lambda m: (ELIGIBILITY_MAP[EligibilityLevel(m.eligibility_level)].priority, -m.score),
    )


def calculate_match_score(org: OrganizationProfile, program: Program,
                          config: ScoringConfig = DEFAULT_CONFIG,
                          now: Optional[datetime] = None) -> MatchResult:
    """Score a single program. Never filters: INELIGIBLE results are returned as such."""
    now = now or _utcnow()
    today = now.date()

    met: List[str] = []
    failed: List[str] = []

    # ── Hard gates ──
    reason = check_hard_gates(org, program, met)
    if reason:
        return _ineligible_result(program, reason)

    # ── Soft flags ──
    warnings = collect_soft_warnings(program)

    # ── Scoring ──
    breakdown = ScoreBreakdown(
        company_scale=score_company_scale(org, program, met, failed, config),
        revenue_range=score_revenue_range(org, program, met, failed, warnings, config),
        employee_count=score_employee_count(org, program, met, failed, config),
        business_age=score_business_age(org, program, met, failed, today, config),
        region=score_region(org, program, met, failed, config),
        certifications=score_certifications(org, program, met, config),
        biz_type=score_biz_type(org, program, met, today, config),
        lifecycle=score_lifecycle(org, program, met, today, config),
        industry_content=score_industry_content(org, program, met, config),
        deadline=score_deadline(program, met, now, config),
        financial_relevance=score_financial_relevance(org, program, met, config),
        sport_type=score_sport_type(org, program, met, config),
    )

    score = round_half_up(breakdown.total / config.max_raw_score * 100)

    if failed or warnings:
        level = EligibilityLevel.CONDITIONALLY_ELIGIBLE
    else:
        level = EligibilityLevel.FULLY_ELIGIBLE

    recommendations = [PROFILE_UPDATE_RECOMMENDATION] if failed else []

    return MatchResult(
        program=program,
        score=score,
        eligibility_level=level.value,
        score_breakdown=breakdown,
        met_criteria=met,
        failed_criteria=failed,
        explanation=MatchExplanation(
            summary=_build_summary(program, score, level),
            reasons=_build_reasons(met, program),
            warnings=warnings,
            recommendations=recommendations,
        ),
    )


def _ineligible_result(program: Program, reason: str) -> MatchResult:
    return MatchResult(
        program=program,
        score=0,
        eligibility_level=EligibilityLevel.INELIGIBLE.value,
        score_breakdown=ScoreBreakdown(),
        met_criteria=[],
        failed_criteria=[reason],
        explanation=MatchExplanation(summary=reason, warnings=[reason]),
    )


def _build_summary(program: Program, score: int, level: EligibilityLevel) -> str:
    desc = next(label for floor, label in SUMMARY_BANDS if score >= floor)
    institution = program.support_institution or DEFAULT_INSTITUTION
    tail = ('지원 자격을 모두 충족합니다.' if level == EligibilityLevel.FULLY_ELIGIBLE
            else '일부 조건 확인이 필요합니다.')
    return f"{institution}의 {program.title}은(는) 귀사에 {desc}한 지원사업입니다. {tail}"


def _build_reasons(met: List[str], program: Program) -> List[str]:
    reasons = list(met)
    if program.max_support_amount:
        reasons.append(f"최대 {format_amount(program.max_support_amount)} 지원")
    if program.biz_type:
        reasons.append(f"{program.biz_type} 지원사업")
    return reasons


def format_amount(amount: float) -> str:
    """Short KRW form: 억원 / 만원 / 원."""
    if amount >= 100_000_000:
        return f"{int(amount // 100_000_000)}억원"
    if amount >= 10_000:
        return f"{int(amount // 10_000)}만원"
    return f"{int(amount)}원"
