# SME Program Matching Logic Module
from .matcher import generate_matches, calculate_match_score
from .explainer import generate_explanation, enrich_match_explanations
from .constants import EligibilityLevel, ScoringConfig, DEFAULT_CONFIG, MAX_RAW_SCORE

__all__ = [
    'generate_matches', 'calculate_match_score',
    'generate_explanation', 'enrich_match_explanations',
    'EligibilityLevel', 'ScoringConfig', 'DEFAULT_CONFIG', 'MAX_RAW_SCORE',
]
