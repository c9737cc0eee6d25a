"""
ingest.py — File ingestion for program exports and organization profiles.

Responsibilities:
  - Read CSV / TSV / Excel / JSON exports into plain row dicts
  - Detect encoding (CSV/TSV) with fallback; Korean exports are often cp949
  - Map Korean console headers onto wire field names
  - Rebuild nested fields from dotted columns (completeness.percent → {...})
  - Validate rows into CandidateRecord / Program / OrganizationProfile

Unlike the engines, reading is fail-loud: an unreadable file raises
IngestError, a malformed row raises pydantic.ValidationError.
"""

import json
import os
import re
import logging
from typing import Any

import pandas as pd

from etl.models import CandidateRecord, OrganizationProfile, Program

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = {'.csv', '.tsv', '.txt', '.xlsx', '.xls', '.json', '.jsonl'}

_ENCODINGS_TO_TRY = ['utf-8-sig', 'utf-8', 'cp949', 'euc-kr', 'latin-1']

# .txt exports have no fixed delimiter and are sniffed
_DELIMITERS = {'.csv': ',', '.tsv': '\t'}

# Keys under which wrapped JSON exports keep their rows
_JSON_ROW_KEYS = ('data', 'records', 'programs', 'items')

# Headers used by the Korean admin console export
COLUMN_ALIASES = {
    '아이디': 'id',
    '공고명': 'title',
    '사업명': 'title',
    '공고번호': 'pblancSeq',
    '공고일련번호': 'pblancSeq',
    '내용해시': 'contentHash',
    '상태': 'status',
    '매칭수': 'matchCount',
    '등록일시': 'createdAt',
    '수정일시': 'updatedAt',
    '완성도': 'completeness.percent',
    '사업유형': 'bizType',
    '지원유형': 'sportType',
    '지원기관': 'supportInstitution',
    '소관부처': 'supportInstitution',
    '접수시작일': 'applicationStart',
    '접수마감일': 'applicationEnd',
    '최대지원금액': 'maxSupportAmount',
    '지원내용': 'supportContents',
    '사업개요': 'description',
    '대상업종': 'targetIndustry',
}


class IngestError(Exception):
    """File could not be read into rows."""


# ═══════════════════════════════════════════════════════
#  Main entry points
# ═══════════════════════════════════════════════════════

def read_rows(filepath: str) -> list[dict]:
    """
    Read any supported file into a list of row dicts.
    Blank cells are dropped; columns are renamed through COLUMN_ALIASES.
    """
    if not os.path.exists(filepath):
        raise IngestError(f"File not found: {filepath}")

    ext = os.path.splitext(filepath)[1].lower()
    if ext not in SUPPORTED_EXTENSIONS:
        raise IngestError(f"Unsupported file type: {ext}")

    if ext in ('.json', '.jsonl'):
        rows = _read_json_rows(filepath, lines=(ext == '.jsonl'))
    else:
        if ext in ('.xlsx', '.xls'):
            df = _read_excel(filepath, ext)
        else:
            df = _read_delimited(filepath, sep=_DELIMITERS.get(ext))
        rows = _frame_to_rows(df)

    rows = [_normalize_row(r) for r in rows]
    rows = [r for r in rows if r]
    logger.info(f"Ingested {len(rows)} rows from {os.path.basename(filepath)}")
    return rows


def load_records(filepath: str) -> list[CandidateRecord]:
    """Duplicate-detection input. Raises ValidationError on the first bad row."""
    return [CandidateRecord.model_validate(r) for r in read_rows(filepath)]


def load_programs(filepath: str) -> list[Program]:
    return [Program.model_validate(r) for r in read_rows(filepath)]


def load_organization(filepath: str) -> OrganizationProfile:
    """
    One organization profile: a JSON object, or the first row of a table.
    """
    ext = os.path.splitext(filepath)[1].lower()
    if ext == '.json':
        data = _load_json(filepath)
        if isinstance(data, dict) and not any(k in data for k in _JSON_ROW_KEYS):
            return OrganizationProfile.model_validate(data)
    rows = read_rows(filepath)
    if not rows:
        raise IngestError(f"No organization row in {os.path.basename(filepath)}")
    if len(rows) > 1:
        logger.warning(f"{os.path.basename(filepath)} has {len(rows)} rows, using the first")
    return OrganizationProfile.model_validate(rows[0])


# ═══════════════════════════════════════════════════════
#  Readers
# ═══════════════════════════════════════════════════════

def _read_delimited(filepath: str, sep=None) -> pd.DataFrame:
    """CSV/TSV/TXT with multi-encoding fallback. sep=None sniffs the delimiter."""
    errors = []
    for enc in _ENCODINGS_TO_TRY:
        try:
            return pd.read_csv(filepath, encoding=enc, dtype=str, keep_default_na=False,
                               sep=sep, engine='python')
        except UnicodeDecodeError:
            continue
        except pd.errors.EmptyDataError:
            return pd.DataFrame()
        except (pd.errors.ParserError, ValueError) as e:
            errors.append(f"{enc}: {str(e)[:100]}")
            continue
    raise IngestError(f"Could not parse {os.path.basename(filepath)}: {'; '.join(errors) or 'encoding'}")


def _read_excel(filepath: str, ext: str) -> pd.DataFrame:
    """First sheet of a workbook. .xlsx goes through openpyxl."""
    engine = 'openpyxl' if ext == '.xlsx' else None
    try:
        return pd.read_excel(filepath, sheet_name=0, dtype=object, engine=engine)
    except (ValueError, ImportError, OSError) as e:
        raise IngestError(f"Could not read workbook {os.path.basename(filepath)}: {e}") from e


def _load_json(filepath: str) -> Any:
    try:
        with open(filepath, encoding='utf-8-sig') as f:
            return json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise IngestError(f"Invalid JSON in {os.path.basename(filepath)}: {e}") from e


def _read_json_rows(filepath: str, lines: bool = False) -> list[dict]:
    """
    A JSON array, an object wrapping the array under a known key,
    or line-delimited JSON. Nested objects are kept as dicts.
    """
    if lines:
        try:
            df = pd.read_json(filepath, lines=True, dtype=False)
        except ValueError as e:
            raise IngestError(f"Invalid JSON lines in {os.path.basename(filepath)}: {e}") from e
        return _frame_to_rows(df)

    data = _load_json(filepath)
    if isinstance(data, dict):
        for key in _JSON_ROW_KEYS:
            if isinstance(data.get(key), list):
                data = data[key]
                break
        else:
            data = [data]
    if not isinstance(data, list):
        raise IngestError(f"Expected a list of rows in {os.path.basename(filepath)}")
    return [r for r in data if isinstance(r, dict)]


# ═══════════════════════════════════════════════════════
#  Row cleanup
# ═══════════════════════════════════════════════════════

def _frame_to_rows(df: pd.DataFrame) -> list[dict]:
    if df is None or df.empty:
        return []
    df = df.dropna(how='all')
    df.columns = [_clean_column_name(c) for c in df.columns]
    # NaN/NaT → None; object dtype keeps ints from being widened to floats
    df = df.astype(object).where(pd.notna(df), None)
    return df.to_dict(orient='records')


def _clean_column_name(col: Any) -> str:
    """Strip and collapse whitespace, then apply the Korean header aliases."""
    s = re.sub(r'\s+', ' ', str(col).strip())
    return COLUMN_ALIASES.get(s, s)


def _clean_value(v: Any) -> Any:
    if isinstance(v, str):
        v = v.strip()
        return v or None
    if isinstance(v, float) and pd.isna(v):
        return None
    if isinstance(v, pd.Timestamp):
        return v.to_pydatetime()
    return v


def _normalize_row(row: dict) -> dict:
    """Blank cells → None, dotted keys → nested dicts."""
    out: dict = {}
    for key, value in row.items():
        key = _clean_column_name(key)
        value = _clean_value(value)
        if '.' in key:
            head, tail = key.split('.', 1)
            nested = out.setdefault(head, {})
            if isinstance(nested, dict) and value is not None:
                nested[tail] = value
            continue
        out[key] = value
    # Blank cells and empty nested objects are dropped so model defaults apply
    return {k: v for k, v in out.items() if v is not None and v != {}}
