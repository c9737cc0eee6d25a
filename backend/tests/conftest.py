"""Shared fixtures: backend/ on sys.path, fixed clock, model builders, Flask client."""
import os
import sys
from datetime import datetime, timezone

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from etl.models import CandidateRecord, OrganizationProfile, Program  # noqa: E402

NOW = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_org():
    def _make(**fields):
        data = {'id': 'org-1', 'name': '테스트기업'}
        data.update(fields)
        return OrganizationProfile(**data)
    return _make


@pytest.fixture
def make_program():
    def _make(**fields):
        data = {'id': 'prog-1', 'title': '2026년 도약 패키지 모집 공고'}
        data.update(fields)
        return Program(**data)
    return _make


@pytest.fixture
def make_record():
    def _make(record_id, **fields):
        return CandidateRecord(id=record_id, **fields)
    return _make


@pytest.fixture
def client():
    from app import create_app
    app = create_app({'TESTING': True})
    return app.test_client()
