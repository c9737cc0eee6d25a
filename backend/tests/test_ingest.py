"""File ingestion: CSV / JSON exports into validated models."""
import json

import pandas as pd
import pytest
from pydantic import ValidationError

from etl.ingest import IngestError, load_organization, load_programs, load_records, read_rows


def test_csv_with_korean_headers(tmp_path):
    path = tmp_path / 'records.csv'
    path.write_text(
        '아이디,공고명,내용해시,매칭수,완성도,수정일시\n'
        '1,청년 창업 지원,abc,3,80,2026-01-05T10:00:00\n'
        '2,청년 창업 지원,abc,,,\n'
        ',,,,,\n',
        encoding='utf-8',
    )
    records = load_records(str(path))

    assert [r.id for r in records] == ['1', '2']
    assert records[0].title == '청년 창업 지원'
    assert records[0].content_hash == 'abc'
    assert records[0].match_count == 3
    assert records[0].completeness.percent == 80
    assert records[0].updated_at.day == 5
    # Blank cells fall back to model defaults
    assert records[1].match_count == 0
    assert records[1].updated_at is None


def test_cp949_csv(tmp_path):
    path = tmp_path / 'programs.csv'
    path.write_bytes('id,title,bizType\np1,스마트공장 구축 지원,기술\n'.encode('cp949'))
    programs = load_programs(str(path))
    assert programs[0].title == '스마트공장 구축 지원'
    assert programs[0].biz_type == '기술'


def test_csv_list_columns_split(tmp_path):
    path = tmp_path / 'programs.csv'
    path.write_text('id,title,targetRegionCodes,requiredCertsCd\n'
                    'p1,지역 공고,1100|3100,EC06\n', encoding='utf-8')
    program = load_programs(str(path))[0]
    assert program.target_region_codes == ['1100', '3100']
    assert program.required_certs_cd == ['EC06']
    assert program.status == 'ACTIVE'


def test_json_wrapped_rows_keep_nesting(tmp_path):
    path = tmp_path / 'records.json'
    path.write_text(json.dumps({'data': [
        {'id': 'a', 'title': 'x', 'completeness': {'percent': 55, 'filled': 11, 'total': 20}},
        {'id': 'b', 'title': 'y'},
    ]}, ensure_ascii=False), encoding='utf-8')
    records = load_records(str(path))
    assert records[0].completeness.filled == 11
    assert records[1].completeness.percent == 0


def test_organization_json_object(tmp_path):
    path = tmp_path / 'org.json'
    path.write_text(json.dumps({
        'id': 'org-9', 'companyScaleType': 'SME',
        'locations': [{'region': 'SEOUL'}, {'region': 'BUSAN'}],
        'certifications': ['이노비즈'],
        'businessEstablishedDate': '2019-04-01T00:00:00Z',
    }), encoding='utf-8')
    org = load_organization(str(path))
    assert org.company_scale_type == 'SME'
    assert org.regions == ['SEOUL', 'BUSAN']
    assert org.business_established_date.year == 2019


def test_organization_from_excel(tmp_path):
    path = tmp_path / 'org.xlsx'
    pd.DataFrame([{'id': 'org-x', 'companyScaleType': 'STARTUP', 'rdExperience': True}]) \
        .to_excel(path, index=False)
    org = load_organization(str(path))
    assert org.id == 'org-x'
    assert org.rd_experience is True


def test_invalid_rows_raise_validation_error(tmp_path):
    path = tmp_path / 'programs.json'
    path.write_text(json.dumps([{'id': 'p1'}]), encoding='utf-8')
    with pytest.raises(ValidationError):
        load_programs(str(path))


def test_unreadable_files(tmp_path):
    with pytest.raises(IngestError, match='File not found'):
        read_rows(str(tmp_path / 'missing.csv'))

    pdf = tmp_path / 'notes.pdf'
    pdf.write_bytes(b'%PDF-1.4')
    with pytest.raises(IngestError, match='Unsupported file type'):
        read_rows(str(pdf))

    broken = tmp_path / 'broken.json'
    broken.write_text('{not json', encoding='utf-8')
    with pytest.raises(IngestError):
        read_rows(str(broken))
