"""
models.py — Pydantic models for engine input/output validation.
Every record, organization and program is validated here before it reaches
the duplicate detector or the matcher; both engines assume clean input.
Wire format is camelCase (as exported by the admin console), Python code
uses snake_case. Both spellings are accepted on input.
"""

from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import (
    BaseModel, ConfigDict, Field, computed_field, field_validator, model_validator,
)
from pydantic.alias_generators import to_camel


class CompanyScale(str, Enum):
    STARTUP = 'STARTUP'
    SME = 'SME'
    MID_SIZED = 'MID_SIZED'
    LARGE_ENTERPRISE = 'LARGE_ENTERPRISE'


class RevenueRange(str, Enum):
    NONE = 'NONE'
    UNDER_1B = 'UNDER_1B'
    FROM_1B_TO_10B = 'FROM_1B_TO_10B'
    FROM_10B_TO_50B = 'FROM_10B_TO_50B'
    FROM_50B_TO_100B = 'FROM_50B_TO_100B'
    OVER_100B = 'OVER_100B'


class EmployeeCountRange(str, Enum):
    UNDER_10 = 'UNDER_10'
    FROM_10_TO_50 = 'FROM_10_TO_50'
    FROM_50_TO_100 = 'FROM_50_TO_100'
    FROM_100_TO_300 = 'FROM_100_TO_300'
    OVER_300 = 'OVER_300'


class DuplicateReason(str, Enum):
    CONTENT_HASH = 'contentHash'
    PBLANC_SEQ = 'pblancSeq'
    TITLE_SIMILARITY = 'titleSimilarity'


ELIGIBILITY_LEVELS = {'FULLY_ELIGIBLE', 'CONDITIONALLY_ELIGIBLE', 'INELIGIBLE'}


class WireModel(BaseModel):
    """Base: camelCase aliases, enum fields stored as plain strings."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
    )


def _blank_to_none(v):
    if v is None:
        return None
    if isinstance(v, str):
        v = v.strip()
        return v or None
    return v


def _split_codes(v) -> list:
    """Accept None, a list, or a comma/pipe separated string."""
    if v is None:
        return []
    if isinstance(v, str):
        parts = v.replace('|', ',').split(',')
        return [p.strip() for p in parts if p.strip()]
    return [str(x).strip() for x in v if x is not None and str(x).strip()]


# ═══════════════════════════════════════════════════════
#  Duplicate detection
# ═══════════════════════════════════════════════════════

class Completeness(WireModel):
    """How many of the record's tracked fields are filled."""
    percent: float = Field(ge=0, le=100, default=0)
    filled: int = Field(ge=0, default=0)
    total: int = Field(ge=0, default=0)


class CandidateRecord(WireModel):
    """
    A program row checked for duplicates.
    id is mandatory: a batch with an unidentified row is rejected.
    """
    id: str = Field(min_length=1)
    title: Optional[str] = None
    pblanc_seq: Optional[str] = None
    content_hash: Optional[str] = None
    status: Optional[str] = None
    completeness: Completeness = Completeness()
    match_count: int = Field(ge=0, default=0)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator('id', mode='before')
    @classmethod
    def coerce_id(cls, v):
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(int(v))
        return v.strip() if isinstance(v, str) else v

    @field_validator('pblanc_seq', mode='before')
    @classmethod
    def coerce_seq(cls, v):
        # Exported sequence numbers may arrive as ints or floats (pandas)
        if isinstance(v, float) and v.is_integer():
            v = int(v)
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return _blank_to_none(v)

    @field_validator('title', 'content_hash', 'status', mode='before')
    @classmethod
    def blank_strings(cls, v):
        return _blank_to_none(v)


class DuplicateGroup(WireModel):
    group_id: str
    reason: DuplicateReason
    similarity: float = Field(ge=0.0, le=1.0)
    records: list[CandidateRecord] = Field(min_length=2)
    suggested_keep_id: str


class DetectionSummary(WireModel):
    total_groups: int = 0
    total_duplicates: int = 0
    by_reason: dict[str, int] = {}


class DetectionResult(WireModel):
    groups: list[DuplicateGroup] = []
    summary: DetectionSummary = DetectionSummary()


# ═══════════════════════════════════════════════════════
#  Program matching
# ═══════════════════════════════════════════════════════

class OrganizationProfile(WireModel):
    """
    Organization attributes used as lookup keys against program codes.
    Everything but the id is optional: missing data earns partial credit.
    """
    id: str = Field(min_length=1)
    name: Optional[str] = None
    company_scale_type: Optional[CompanyScale] = None
    revenue_range: Optional[RevenueRange] = None
    employee_count: Optional[EmployeeCountRange] = None
    business_established_date: Optional[date] = None
    regions: list[str] = []
    certifications: list[str] = []
    industry_sector: Optional[str] = None
    rd_experience: bool = False

    @model_validator(mode='before')
    @classmethod
    def regions_from_locations(cls, data):
        # Console exports nest regions under locations: [{region: 'SEOUL'}]
        if isinstance(data, dict) and not data.get('regions') and data.get('locations'):
            data = dict(data)
            data['regions'] = [
                loc.get('region') for loc in data['locations']
                if isinstance(loc, dict) and loc.get('region')
            ]
        return data

    @field_validator('id', mode='before')
    @classmethod
    def coerce_id(cls, v):
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator('business_established_date', mode='before')
    @classmethod
    def date_from_datetime(cls, v):
        if isinstance(v, datetime):
            return v.date()
        if isinstance(v, str) and 'T' in v:
            return v.split('T', 1)[0]
        return _blank_to_none(v)

    @field_validator('company_scale_type', 'revenue_range', 'employee_count',
                     'industry_sector', mode='before')
    @classmethod
    def blank_enums(cls, v):
        return _blank_to_none(v)

    @field_validator('regions', 'certifications', mode='before')
    @classmethod
    def split_lists(cls, v):
        return _split_codes(v)


class Program(WireModel):
    """
    A funding/support program announcement.
    Empty code lists mean "no restriction" for that dimension.
    """
    id: str = Field(min_length=1)
    title: str
    status: str = 'ACTIVE'
    description: Optional[str] = None
    support_contents: Optional[str] = None
    target_industry: Optional[str] = None
    biz_type: Optional[str] = None
    sport_type: Optional[str] = None
    life_cycle: list[str] = []

    target_company_scale_cd: list[str] = []
    target_sales_range_cd: list[str] = []
    target_employee_range_cd: list[str] = []
    target_business_age_cd: list[str] = []
    required_certs_cd: list[str] = []
    target_region_codes: list[str] = []

    min_business_age: Optional[int] = None
    max_business_age: Optional[int] = None
    is_pre_startup: bool = False
    is_restart: bool = False
    is_female_owner: bool = False
    min_ceo_age: Optional[int] = Field(ge=0, default=None)
    max_ceo_age: Optional[int] = Field(ge=0, default=None)

    application_start: Optional[datetime] = None
    application_end: Optional[datetime] = None
    max_support_amount: Optional[float] = Field(ge=0, default=None)
    min_interest_rate: Optional[float] = None
    max_interest_rate: Optional[float] = None

    support_institution: Optional[str] = None
    application_url: Optional[str] = None
    detail_url: Optional[str] = None

    @field_validator('id', mode='before')
    @classmethod
    def coerce_id(cls, v):
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator('life_cycle', 'target_company_scale_cd', 'target_sales_range_cd',
                     'target_employee_range_cd', 'target_business_age_cd',
                     'required_certs_cd', 'target_region_codes', mode='before')
    @classmethod
    def split_lists(cls, v):
        return _split_codes(v)

    @field_validator('description', 'support_contents', 'target_industry', 'biz_type',
                     'sport_type', 'support_institution', 'application_url',
                     'detail_url', 'application_start', 'application_end', mode='before')
    @classmethod
    def blank_strings(cls, v):
        return _blank_to_none(v)

    @field_validator('status', mode='before')
    @classmethod
    def default_status(cls, v):
        return _blank_to_none(v) or 'ACTIVE'


class ScoreBreakdown(WireModel):
    """Raw per-factor points. Ceilings come from the ScoringConfig in use (150 by default)."""
    company_scale: int = Field(ge=0, default=0)
    revenue_range: int = Field(ge=0, default=0)
    employee_count: int = Field(ge=0, default=0)
    business_age: int = Field(ge=0, default=0)
    region: int = Field(ge=0, default=0)
    certifications: int = Field(ge=0, default=0)
    biz_type: int = Field(ge=0, default=0)
    lifecycle: int = Field(ge=0, default=0)
    industry_content: int = Field(ge=0, default=0)
    deadline: int = Field(ge=0, default=0)
    financial_relevance: int = Field(ge=0, default=0)
    sport_type: int = Field(ge=0, default=0)

    @computed_field
    @property
    def total(self) -> int:
        return (
            self.company_scale + self.revenue_range + self.employee_count
            + self.business_age + self.region + self.certifications
            + self.biz_type + self.lifecycle + self.industry_content
            + self.deadline + self.financial_relevance + self.sport_type
        )


class MatchExplanation(WireModel):
    summary: str = ''
    reasons: list[str] = []
    warnings: list[str] = []
    recommendations: list[str] = []


class MatchResult(WireModel):
    """
    One program scored against one organization.
    INELIGIBLE results carry score 0 and never leave the matcher's ranking.
    """
    program: Program
    score: int = Field(ge=0, default=0)
    eligibility_level: str = 'INELIGIBLE'
    score_breakdown: ScoreBreakdown = ScoreBreakdown()
    met_criteria: list[str] = []
    failed_criteria: list[str] = []
    explanation: MatchExplanation = MatchExplanation()

    @field_validator('eligibility_level', mode='before')
    @classmethod
    def validate_level(cls, v):
        v = getattr(v, 'value', v)
        if v not in ELIGIBILITY_LEVELS:
            raise ValueError(f"eligibility_level must be one of {ELIGIBILITY_LEVELS}, got '{v}'")
        return v
