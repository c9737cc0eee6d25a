"""
matching.py — Flask Blueprint for duplicate detection and program matching.
Routes: detect duplicates, generate matches, explain one match, health.

Request and response bodies are camelCase JSON. Options omitted from a
request fall back to the app config (SIMILARITY_THRESHOLD, ENABLE_PBLANC_SEQ,
MIN_MATCH_SCORE, MATCH_LIMIT).
"""

import json
import logging
from typing import Optional

from flask import Blueprint, current_app, jsonify, request
from pydantic import Field, ValidationError

from etl.duplicates import detect_duplicates
from etl.models import OrganizationProfile, Program, WireModel
from etl.report import detection_stats, match_stats
from logic import calculate_match_score, enrich_match_explanations, generate_explanation, generate_matches

logger = logging.getLogger(__name__)

matching_bp = Blueprint('matching', __name__)


class DetectRequest(WireModel):
    records: list[dict]
    enable_pblanc_seq: Optional[bool] = None
    similarity_threshold: Optional[float] = Field(gt=0, le=1, default=None)


class MatchRequest(WireModel):
    organization: OrganizationProfile
    programs: list[Program]
    minimum_score: Optional[int] = Field(ge=0, le=100, default=None)
    include_expired: bool = False
    limit: Optional[int] = Field(ge=0, default=None)
    explain: bool = True


class ExplainRequest(WireModel):
    organization: OrganizationProfile
    program: Program


def _bad_request(message: str, details=None):
    body = {'error': message}
    if details is not None:
        body['details'] = details
    return jsonify(body), 400


def _validation_details(e: ValidationError) -> list:
    # e.json() serializes error contexts that e.errors() leaves as exceptions
    return json.loads(e.json(include_url=False))


def _json_body() -> Optional[dict]:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else None


def _dump(model) -> dict:
    return model.model_dump(mode='json', by_alias=True)


@matching_bp.route('/api/health')
def health():
    return jsonify({'status': 'ok'})


@matching_bp.route('/api/duplicates/detect', methods=['POST'])
def detect():
    """
    Body: { records: [...], enablePblancSeq?: bool, similarityThreshold?: float }
    Returns: { data: [groups], totalCount, summary, stats }
    """
    body = _json_body()
    if body is None:
        return _bad_request('Request body must be a JSON object')

    try:
        req = DetectRequest.model_validate(body)
        enable_seq = req.enable_pblanc_seq
        if enable_seq is None:
            enable_seq = current_app.config['ENABLE_PBLANC_SEQ']
        threshold = req.similarity_threshold or current_app.config['SIMILARITY_THRESHOLD']
        result = detect_duplicates(req.records, enable_pblanc_seq=enable_seq,
                                   similarity_threshold=threshold)
    except ValidationError as e:
        logger.warning(f"Rejected detection request: {e.error_count()} validation errors")
        return _bad_request('Invalid records', _validation_details(e))
    except ValueError as e:
        logger.warning(f"Rejected detection request: {e}")
        return _bad_request(str(e))

    return jsonify({
        'data': [_dump(g) for g in result.groups],
        'totalCount': len(result.groups),
        'summary': _dump(result.summary),
        'stats': detection_stats(result, len(req.records)),
    })


@matching_bp.route('/api/matches/generate', methods=['POST'])
def generate():
    """
    Body: { organization, programs: [...], minimumScore?, includeExpired?, limit?, explain? }
    Returns: { data: [results], totalCount, stats }
    """
    body = _json_body()
    if body is None:
        return _bad_request('Request body must be a JSON object')

    try:
        req = MatchRequest.model_validate(body)
    except ValidationError as e:
        logger.warning(f"Rejected match request: {e.error_count()} validation errors")
        return _bad_request('Invalid organization or programs', _validation_details(e))

    cfg = current_app.config
    minimum = req.minimum_score if req.minimum_score is not None else cfg['MIN_MATCH_SCORE']
    limit = req.limit if req.limit is not None else cfg['MATCH_LIMIT']

    results = generate_matches(req.organization, req.programs, minimum_score=minimum,
                               include_expired=req.include_expired, limit=limit)
    if req.explain:
        results = enrich_match_explanations(results, req.organization)

    return jsonify({
        'data': [_dump(r) for r in results],
        'totalCount': len(results),
        'stats': match_stats(results, len(req.programs)),
    })


@matching_bp.route('/api/matches/explain', methods=['POST'])
def explain():
    """
    Score one program without filtering. INELIGIBLE results are returned
    as-is so the failing requirement is visible.
    Body: { organization, program }
    """
    body = _json_body()
    if body is None:
        return _bad_request('Request body must be a JSON object')

    try:
        req = ExplainRequest.model_validate(body)
    except ValidationError as e:
        logger.warning(f"Rejected explain request: {e.error_count()} validation errors")
        return _bad_request('Invalid organization or program', _validation_details(e))

    result = calculate_match_score(req.organization, req.program)
    if result.eligibility_level != 'INELIGIBLE':
        result = result.model_copy(update={
            'explanation': generate_explanation(result, req.organization),
        })

    return jsonify({'data': _dump(result)})
