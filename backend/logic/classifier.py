"""
classifier.py — Keyword-based industry classification for program text.

Deterministic rules instead of a model: a ministry contributes +10 to each
industry it is associated with, every keyword found in the text contributes
+5 to its industry, and the highest total wins. Text without a single hit
is classified as GENERAL.

The keyword tables are tuning data, not structure. Replace
KEYWORD_INDUSTRY_MAP / MINISTRY_INDUSTRY_MAP to retune without touching
the scoring code.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)

INDUSTRIES = (
    'BIO_HEALTH', 'ICT', 'MANUFACTURING', 'ENERGY', 'ENVIRONMENT',
    'CONSTRUCTION', 'DEFENSE', 'CULTURAL', 'GENERAL', 'MARINE_FISHERIES',
    'MARINE_SECURITY', 'FORESTRY', 'VETERINARY', 'AGRICULTURE',
    'AEROSPACE', 'TRANSPORTATION',
)

MINISTRY_WEIGHT = 10
KEYWORD_WEIGHT = 5
FULL_CONFIDENCE_SCORE = 25   # ministry + 3 keywords
UNCLASSIFIED_CONFIDENCE = 0.5
UNRELATED_RELEVANCE = 0.2
UNKNOWN_ORG_RELEVANCE = 0.5


# ═══════════════════════════════════════════════════════
#  Ministry → industries
# ═══════════════════════════════════════════════════════
MINISTRY_INDUSTRY_MAP: Dict[str, List[str]] = {
    # Health
    '보건복지부': ['BIO_HEALTH'],
    '식품의약품안전처': ['BIO_HEALTH'],
    '질병관리청': ['BIO_HEALTH'],
    # Marine
    '해양수산부': ['MARINE_FISHERIES'],
    '해양경찰청': ['MARINE_SECURITY'],
    # Agriculture / forestry
    '농림축산식품부': ['AGRICULTURE', 'VETERINARY'],
    '농촌진흥청': ['AGRICULTURE'],
    '산림청': ['FORESTRY'],
    # Domain-specific
    '우주항공청': ['AEROSPACE'],
    '기후에너지환경부': ['ENVIRONMENT', 'ENERGY'],
    '환경부': ['ENVIRONMENT'],
    '원자력안전위원회': ['ENERGY'],
    '문화체육관광부': ['CULTURAL'],
    '국가유산청': ['CULTURAL'],
    '문화재청': ['CULTURAL'],
    # Cross-domain
    '과학기술정보통신부': ['BIO_HEALTH', 'ICT'],
    '산업통상자원부': ['MANUFACTURING', 'ENERGY'],
    '산업통상부': ['MANUFACTURING', 'ENERGY'],
    '국토교통부': ['CONSTRUCTION', 'TRANSPORTATION'],
    '교육부': ['GENERAL'],
    # Government / defense
    '국방부': ['DEFENSE'],
    '방위사업청': ['DEFENSE'],
    '경찰청': ['ICT'],
    '소방청': ['CONSTRUCTION'],
    # Regulatory
    '기상청': ['ENVIRONMENT'],
    '기획재정부': ['GENERAL'],
    '고용노동부': ['GENERAL'],
    '개인정보보호위원회': ['ICT'],
    '행정안전부': ['ICT'],
}
# 중소벤처기업부 programs are cross-industry and carry no ministry signal


# ═══════════════════════════════════════════════════════
#  Keyword → industry
# ═══════════════════════════════════════════════════════
KEYWORD_INDUSTRY_MAP: Dict[str, str] = {
    # BIO_HEALTH
    '바이오': 'BIO_HEALTH', '의료': 'BIO_HEALTH', '의료기기': 'BIO_HEALTH',
    '신약': 'BIO_HEALTH', '치료': 'BIO_HEALTH', '치료제': 'BIO_HEALTH',
    '진단': 'BIO_HEALTH', '백신': 'BIO_HEALTH', '세포': 'BIO_HEALTH',
    '줄기세포': 'BIO_HEALTH', '재생의료': 'BIO_HEALTH', '치매': 'BIO_HEALTH',
    '정밀의료': 'BIO_HEALTH', '헬스케어': 'BIO_HEALTH', '희귀질환': 'BIO_HEALTH',
    '간호': 'BIO_HEALTH', '재활': 'BIO_HEALTH', '감염병': 'BIO_HEALTH',
    '독성': 'BIO_HEALTH', '의약품': 'BIO_HEALTH', '임상': 'BIO_HEALTH',
    '임상시험': 'BIO_HEALTH', '유전체': 'BIO_HEALTH', '게놈': 'BIO_HEALTH',
    '뇌연구': 'BIO_HEALTH', '노화': 'BIO_HEALTH', '면역': 'BIO_HEALTH',
    '질병': 'BIO_HEALTH',

    # ICT
    'ICT': 'ICT', 'AI': 'ICT', '인공지능': 'ICT', '디지털': 'ICT',
    '소프트웨어': 'ICT', 'SW': 'ICT', '정보통신': 'ICT', '데이터': 'ICT',
    '빅데이터': 'ICT', '클라우드': 'ICT', '반도체': 'ICT', '양자': 'ICT',
    '양자컴퓨팅': 'ICT', '네트워크': 'ICT', '5G': 'ICT', '6G': 'ICT',
    '사이버': 'ICT', '사이버보안': 'ICT', '블록체인': 'ICT', '메타버스': 'ICT',
    '로봇': 'ICT', '자율주행': 'ICT', '초연결': 'ICT', 'IoT': 'ICT',
    '개인정보': 'ICT', '플랫폼': 'ICT', 'XR': 'ICT',

    # MARINE_FISHERIES
    '해양': 'MARINE_FISHERIES', '수산': 'MARINE_FISHERIES', '해안': 'MARINE_FISHERIES',
    '어업': 'MARINE_FISHERIES', '양식': 'MARINE_FISHERIES', '항만': 'MARINE_FISHERIES',
    '해운': 'MARINE_FISHERIES', '조선': 'MARINE_FISHERIES', '선박': 'MARINE_FISHERIES',
    '극지': 'MARINE_FISHERIES', '심해': 'MARINE_FISHERIES', '연안': 'MARINE_FISHERIES',
    '해저': 'MARINE_FISHERIES', '어선': 'MARINE_FISHERIES', '수중': 'MARINE_FISHERIES',
    '해조류': 'MARINE_FISHERIES',

    # MARINE_SECURITY
    'VTS': 'MARINE_SECURITY', '해양재난': 'MARINE_SECURITY', '선박충돌': 'MARINE_SECURITY',
    '해양안전': 'MARINE_SECURITY', '해양경비': 'MARINE_SECURITY', '해양경찰': 'MARINE_SECURITY',
    '수색구조': 'MARINE_SECURITY', '해상교통': 'MARINE_SECURITY', '유도선': 'MARINE_SECURITY',

    # AGRICULTURE
    '농업': 'AGRICULTURE', '농촌': 'AGRICULTURE', '축산': 'AGRICULTURE',
    '식품': 'AGRICULTURE', '종자': 'AGRICULTURE', '농기계': 'AGRICULTURE',
    '스마트팜': 'AGRICULTURE', '가축': 'AGRICULTURE', '곡물': 'AGRICULTURE',
    '원예': 'AGRICULTURE', '작물': 'AGRICULTURE', '비료': 'AGRICULTURE',
    '농약': 'AGRICULTURE', '육종': 'AGRICULTURE', '영농': 'AGRICULTURE',
    '품종': 'AGRICULTURE', '수직농장': 'AGRICULTURE', '마이크로바이옴': 'AGRICULTURE',
    '그린바이오': 'AGRICULTURE',

    # VETERINARY
    '반려동물': 'VETERINARY', '동물의약품': 'VETERINARY', '동물의료기기': 'VETERINARY',
    '동물감염병': 'VETERINARY', '수의': 'VETERINARY', '가축질병': 'VETERINARY',
    '경제동물': 'VETERINARY', '동물백신': 'VETERINARY', '동물약품': 'VETERINARY',

    # FORESTRY
    '산림': 'FORESTRY', '임업': 'FORESTRY', '목재': 'FORESTRY', '목구조': 'FORESTRY',
    '산불': 'FORESTRY', '산사태': 'FORESTRY', '임도': 'FORESTRY', '임산물': 'FORESTRY',

    # AEROSPACE
    '우주': 'AEROSPACE', '항공': 'AEROSPACE', '위성': 'AEROSPACE', '로켓': 'AEROSPACE',
    '발사체': 'AEROSPACE', '드론': 'AEROSPACE', 'UAM': 'AEROSPACE', '천문': 'AEROSPACE',

    # CONSTRUCTION
    '건설': 'CONSTRUCTION', '건축': 'CONSTRUCTION', '주거': 'CONSTRUCTION',
    '도시': 'CONSTRUCTION', '인프라': 'CONSTRUCTION', '터널': 'CONSTRUCTION',
    '교량': 'CONSTRUCTION', '소방': 'CONSTRUCTION', '방재': 'CONSTRUCTION',
    '재난': 'CONSTRUCTION', '스마트시티': 'CONSTRUCTION',

    # TRANSPORTATION
    '도로': 'TRANSPORTATION', '철도': 'TRANSPORTATION', '교통': 'TRANSPORTATION',
    '물류': 'TRANSPORTATION', '고속도로': 'TRANSPORTATION', '지하철': 'TRANSPORTATION',

    # ENVIRONMENT
    '환경': 'ENVIRONMENT', '기후': 'ENVIRONMENT', '대기': 'ENVIRONMENT',
    '폐기물': 'ENVIRONMENT', '오염': 'ENVIRONMENT', '생태': 'ENVIRONMENT',
    '탄소': 'ENVIRONMENT', '탄소중립': 'ENVIRONMENT', '기상': 'ENVIRONMENT',
    '수질': 'ENVIRONMENT', '미세먼지': 'ENVIRONMENT', '녹색': 'ENVIRONMENT',
    '탄소감축': 'ENVIRONMENT',

    # ENERGY
    '에너지': 'ENERGY', '배터리': 'ENERGY', '수소': 'ENERGY', '태양광': 'ENERGY',
    '신재생': 'ENERGY', '원자력': 'ENERGY', '원전': 'ENERGY', '전력': 'ENERGY',
    '풍력': 'ENERGY', '핵융합': 'ENERGY',

    # DEFENSE
    '국방': 'DEFENSE', '방위': 'DEFENSE', '군사': 'DEFENSE', '무기': 'DEFENSE',
    '전투': 'DEFENSE', '안보': 'DEFENSE',

    # CULTURAL
    '문화': 'CULTURAL', '콘텐츠': 'CULTURAL', '관광': 'CULTURAL', '체육': 'CULTURAL',
    '스포츠': 'CULTURAL', '유산': 'CULTURAL', '문화재': 'CULTURAL', '예술': 'CULTURAL',
    '미디어': 'CULTURAL', '방송': 'CULTURAL', '게임': 'CULTURAL', 'K-콘텐츠': 'CULTURAL',
    'K-뷰티': 'CULTURAL', '뷰티': 'CULTURAL',

    # MANUFACTURING
    '제조': 'MANUFACTURING', '소재': 'MANUFACTURING', '부품': 'MANUFACTURING',
    '장비': 'MANUFACTURING', '기계': 'MANUFACTURING', '금속': 'MANUFACTURING',
    '섬유': 'MANUFACTURING', '화학': 'MANUFACTURING', '플라스틱': 'MANUFACTURING',
    '나노': 'MANUFACTURING', '스마트공장': 'MANUFACTURING', '중소제조': 'MANUFACTURING',
    '산재예방': 'MANUFACTURING', '제조기업': 'MANUFACTURING', '제조혁신': 'MANUFACTURING',
    '소부장': 'MANUFACTURING',

    # Local/regional programs: industry-agnostic
    '로컬벤처': 'GENERAL', '로컬크리에이터': 'GENERAL', '로컬푸드': 'AGRICULTURE',
    '지역자원': 'GENERAL', '지역기반': 'GENERAL', '지역특화': 'GENERAL',
}


# ═══════════════════════════════════════════════════════
#  Cross-industry relevance (checked in both directions)
# ═══════════════════════════════════════════════════════
INDUSTRY_CROSS_RELEVANCE: Dict[str, Dict[str, float]] = {
    'MARINE_FISHERIES': {'MARINE_SECURITY': 0.3},
    'MARINE_SECURITY': {'MARINE_FISHERIES': 0.3},
    'FORESTRY': {'AGRICULTURE': 0.4, 'ENVIRONMENT': 0.5},
    'AGRICULTURE': {'FORESTRY': 0.4, 'VETERINARY': 0.7},
    'VETERINARY': {'AGRICULTURE': 0.7, 'BIO_HEALTH': 0.5},
    'BIO_HEALTH': {'VETERINARY': 0.5},
    'CONSTRUCTION': {'TRANSPORTATION': 0.6},
    'TRANSPORTATION': {'CONSTRUCTION': 0.6},
    'ENERGY': {'ENVIRONMENT': 0.6},
    'ENVIRONMENT': {'ENERGY': 0.6},
    'ICT': {
        'MANUFACTURING': 0.5, 'BIO_HEALTH': 0.4, 'ENERGY': 0.4,
        'CONSTRUCTION': 0.4, 'TRANSPORTATION': 0.5, 'MARINE_FISHERIES': 0.2,
        'MARINE_SECURITY': 0.2, 'AGRICULTURE': 0.3, 'VETERINARY': 0.2,
        'FORESTRY': 0.2, 'AEROSPACE': 0.4, 'CULTURAL': 0.5, 'ENVIRONMENT': 0.3,
    },
    'AEROSPACE': {'DEFENSE': 0.4, 'MANUFACTURING': 0.5, 'ICT': 0.4},
    'DEFENSE': {'AEROSPACE': 0.4, 'MANUFACTURING': 0.4, 'ICT': 0.3},
    # GENERAL programs relate moderately to every industry
    'GENERAL': {
        industry: 0.55 for industry in INDUSTRIES if industry != 'GENERAL'
    },
}

INDUSTRY_ALIASES: Dict[str, str] = {
    'BIO_HEALTH': 'BIO_HEALTH', 'BIOHEALTH': 'BIO_HEALTH', 'BIO': 'BIO_HEALTH',
    'HEALTH': 'BIO_HEALTH',
    'ICT': 'ICT', 'IT': 'ICT', 'SOFTWARE': 'ICT',
    'MANUFACTURING': 'MANUFACTURING', 'MANUFACTURE': 'MANUFACTURING',
    'ENERGY': 'ENERGY',
    'ENVIRONMENT': 'ENVIRONMENT', 'ENV': 'ENVIRONMENT',
    'CONSTRUCTION': 'CONSTRUCTION',
    'DEFENSE': 'DEFENSE',
    'CULTURAL': 'CULTURAL', 'CONTENT': 'CULTURAL',
    'MARINE': 'MARINE_FISHERIES', 'MARINE_FISHERIES': 'MARINE_FISHERIES',
    'MARINE_SECURITY': 'MARINE_SECURITY',
    'FORESTRY': 'FORESTRY',
    'AGRICULTURE': 'AGRICULTURE', 'AGRI': 'AGRICULTURE',
    'VETERINARY': 'VETERINARY', 'VET': 'VETERINARY',
    'AEROSPACE': 'AEROSPACE',
    'TRANSPORTATION': 'TRANSPORTATION', 'TRANSPORT': 'TRANSPORTATION',
    'GENERAL': 'GENERAL', 'OTHER': 'GENERAL',
}

INDUSTRY_KOREAN_LABELS: Dict[str, str] = {
    'BIO_HEALTH': '바이오/헬스케어',
    'ICT': 'ICT/정보통신',
    'MANUFACTURING': '제조업',
    'ENERGY': '에너지',
    'ENVIRONMENT': '환경',
    'CONSTRUCTION': '건설',
    'DEFENSE': '국방/방위',
    'CULTURAL': '문화/콘텐츠',
    'GENERAL': '일반/범용',
    'MARINE_FISHERIES': '해양/수산',
    'MARINE_SECURITY': '해양안전/경비',
    'FORESTRY': '산림/임업',
    'AGRICULTURE': '농업/축산',
    'VETERINARY': '수의/동물의약',
    'AEROSPACE': '우주항공',
    'TRANSPORTATION': '교통/물류',
}

# Local/regional programs are limited to their region regardless of industry
REGIONAL_REQUIRED_KEYWORDS = [
    '로컬벤처', '로컬크리에이터', '로컬푸드', '지역자원', '지역기반',
    '지역특화', '지역혁신선도', '지역혁신', '지역주도',
]


@dataclass
class Classification:
    industry: str
    confidence: float
    matched_keywords: List[str] = field(default_factory=list)
    ministry_based: bool = False
    requires_regional_filter: bool = False
    regional_keywords: List[str] = field(default_factory=list)

    @property
    def is_classified(self) -> bool:
        """True when the text carried at least one industry signal."""
        return bool(self.matched_keywords) or self.ministry_based


# ═══════════════════════════════════════════════════════
#  Classification
# ═══════════════════════════════════════════════════════

def classify_program(title: str, program_name: Optional[str] = None,
                     ministry: Optional[str] = None,
                     description: Optional[str] = None) -> Classification:
    """
    Classify a program by ministry + keywords.

    Ties between industries resolve to the one that scored first
    (ministry order, then keyword table order).
    """
    scores: Dict[str, int] = {}
    matched: List[str] = []
    ministry_based = False

    if ministry and ministry in MINISTRY_INDUSTRY_MAP:
        for industry in MINISTRY_INDUSTRY_MAP[ministry]:
            scores[industry] = scores.get(industry, 0) + MINISTRY_WEIGHT
        ministry_based = True

    text = f"{title or ''} {program_name or ''}"
    for keyword, industry in KEYWORD_INDUSTRY_MAP.items():
        if keyword in text:
            matched.append(keyword)
            scores[industry] = scores.get(industry, 0) + KEYWORD_WEIGHT

    regional_text = f"{text} {description or ''}".lower()
    regional = [kw for kw in REGIONAL_REQUIRED_KEYWORDS if kw.lower() in regional_text]

    if not scores:
        return Classification(
            industry='GENERAL',
            confidence=UNCLASSIFIED_CONFIDENCE,
            requires_regional_filter=bool(regional),
            regional_keywords=regional,
        )

    # sorted() is stable: equal scores keep insertion order
    top_industry, top_score = sorted(scores.items(), key=lambda kv: -kv[1])[0]
    logger.debug(f"Classified '{title[:40] if title else ''}' as {top_industry} "
                 f"(score={top_score}, keywords={matched})")

    return Classification(
        industry=top_industry,
        confidence=min(top_score / FULL_CONFIDENCE_SCORE, 1.0),
        matched_keywords=matched,
        ministry_based=ministry_based,
        requires_regional_filter=bool(regional),
        regional_keywords=regional,
    )


def is_regional_required_program(title: str, description: Optional[str] = None) -> bool:
    text = f"{title or ''} {description or ''}".lower()
    return any(kw.lower() in text for kw in REGIONAL_REQUIRED_KEYWORDS)


# ═══════════════════════════════════════════════════════
#  Relevance
# ═══════════════════════════════════════════════════════

def normalize_industry(industry: Optional[str]) -> str:
    """Map legacy/alias sector values onto INDUSTRIES. Unknown → GENERAL."""
    if not industry:
        return 'GENERAL'
    return INDUSTRY_ALIASES.get(industry.strip().upper(), 'GENERAL')


def get_industry_relevance(org_industry: Optional[str], program_industry: str) -> float:
    """Relevance in [0, 1] between an organization sector and a program industry."""
    if not org_industry:
        return UNKNOWN_ORG_RELEVANCE

    org = normalize_industry(org_industry)
    if org == program_industry:
        return 1.0

    forward = INDUSTRY_CROSS_RELEVANCE.get(org, {}).get(program_industry)
    if forward is not None:
        return forward

    reverse = INDUSTRY_CROSS_RELEVANCE.get(program_industry, {}).get(org)
    if reverse is not None:
        return reverse

    return UNRELATED_RELEVANCE


def industry_label(industry: str) -> str:
    return INDUSTRY_KOREAN_LABELS.get(industry, industry)
