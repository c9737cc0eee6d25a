"""
duplicates.py — Three-tier duplicate detection for program tables.

Tiers run in order; a record claimed by an earlier tier is invisible to later ones:
  1. contentHash      — identical content fingerprint (O(n) grouping)
  2. pblancSeq        — identical announcement sequence number, optional (O(n))
  3. titleSimilarity  — Damerau-Levenshtein similarity ≥ threshold between
                        titles, clustered transitively with union-find
                        (O(n²) pairs, most skipped by a length pre-filter)

Each group suggests one record to keep: highest completeness, then most
dependent matches, then most recently updated; remaining ties go to the
record that came first in the input.

Output order is deterministic: tier by tier, and within a tier by the input
position of each group's first member. Members keep input order.
"""

import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import Iterable, Optional, Union

from etl.models import (
    CandidateRecord, DetectionResult, DetectionSummary, DuplicateGroup, DuplicateReason,
)
from etl.similarity import length_ratio, title_similarity

logger = logging.getLogger(__name__)

DEFAULT_SIMILARITY_THRESHOLD = 0.90

_GROUP_PREFIX = {
    DuplicateReason.CONTENT_HASH: 'hash',
    DuplicateReason.PBLANC_SEQ: 'seq',
    DuplicateReason.TITLE_SIMILARITY: 'title',
}

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


class UnionFind:
    """Disjoint sets over record ids, with path compression."""

    def __init__(self, ids: Iterable[str]):
        self.parent = {i: i for i in ids}

    def find(self, x: str) -> str:
        root = x
        while self.parent[root] != root:
            root = self.parent[root]
        # Path compression
        while x != root:
            self.parent[x], x = root, self.parent[x]
        return root

    def union(self, a: str, b: str) -> None:
        ra, rb = self.find(a), self.find(b)
        if ra != rb:
            self.parent[ra] = rb


def _updated_key(record: CandidateRecord) -> datetime:
    ts = record.updated_at
    if ts is None:
        return _EPOCH
    return ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)


def pick_suggested_keep(records: list[CandidateRecord]) -> str:
    """Best record to keep. sorted() is stable, so full ties keep input order."""
    ranked = sorted(
        records,
        key=lambda r: (r.completeness.percent, r.match_count, _updated_key(r)),
        reverse=True,
    )
    # reverse=True keeps stability for equal keys, the first input record wins
    return ranked[0].id


def _build_group(counter: int, reason: DuplicateReason, members: list[CandidateRecord],
                 similarity: float) -> DuplicateGroup:
    return DuplicateGroup(
        group_id=f"{_GROUP_PREFIX[reason]}-{counter}",
        reason=reason,
        similarity=similarity,
        records=members,
        suggested_keep_id=pick_suggested_keep(members),
    )


def _group_by(records: list[CandidateRecord], attr: str, assigned: set) -> list[list[CandidateRecord]]:
    buckets: dict[str, list[CandidateRecord]] = defaultdict(list)
    for r in records:
        if r.id in assigned:
            continue
        value = getattr(r, attr)
        if not value:
            continue
        buckets[value].append(r)
    # dict preserves first-seen order, which is input order
    return [members for members in buckets.values() if len(members) >= 2]


def _title_clusters(records: list[CandidateRecord], threshold: float):
    """Yield (members, min pairwise similarity) for each component of size ≥ 2."""
    uf = UnionFind(r.id for r in records)
    edges: list[tuple[str, float]] = []
    compared = 0

    for i, a in enumerate(records):
        for b in records[i + 1:]:
            if length_ratio(a.title, b.title) < threshold:
                continue
            compared += 1
            sim = title_similarity(a.title, b.title)
            if sim >= threshold:
                uf.union(a.id, b.id)
                edges.append((a.id, sim))

    # Minimum over every edge of the final component, not of the root at union time
    min_sim: dict[str, float] = {}
    for rid, sim in edges:
        root = uf.find(rid)
        if root not in min_sim or sim < min_sim[root]:
            min_sim[root] = sim

    components: dict[str, list[CandidateRecord]] = defaultdict(list)
    for r in records:
        components[uf.find(r.id)].append(r)

    logger.debug(f"Title tier: {len(records)} records, {compared} pairs compared, "
                 f"{len(edges)} similar pairs")

    for root, members in components.items():
        if len(members) >= 2:
            yield members, min_sim.get(root, threshold)


def parse_records(items: Iterable[Union[CandidateRecord, dict]]) -> list[CandidateRecord]:
    """Validate raw rows. Raises pydantic.ValidationError on a malformed row."""
    return [i if isinstance(i, CandidateRecord) else CandidateRecord.model_validate(i)
            for i in items]


def detect_duplicates(records: Iterable[Union[CandidateRecord, dict]],
                      enable_pblanc_seq: bool = False,
                      similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
                      ) -> DetectionResult:
    """
    Group duplicate records.

    Raises:
        pydantic.ValidationError: a record is malformed (e.g. missing id)
        ValueError: duplicate record ids, or threshold outside (0, 1]
    """
    if not 0 < similarity_threshold <= 1:
        raise ValueError(f"similarity_threshold must be in (0, 1], got {similarity_threshold}")

    records = parse_records(records)
    seen: set[str] = set()
    for r in records:
        if r.id in seen:
            raise ValueError(f"Duplicate record id in batch: '{r.id}'")
        seen.add(r.id)

    groups: list[DuplicateGroup] = []
    assigned: set[str] = set()
    counter = 0

    # ── Tier 1: content hash ──
    for members in _group_by(records, 'content_hash', assigned):
        counter += 1
        groups.append(_build_group(counter, DuplicateReason.CONTENT_HASH, members, 1.0))
        assigned.update(r.id for r in members)
    tier1 = len(groups)

    # ── Tier 2: business key ──
    if enable_pblanc_seq:
        for members in _group_by(records, 'pblanc_seq', assigned):
            counter += 1
            groups.append(_build_group(counter, DuplicateReason.PBLANC_SEQ, members, 1.0))
            assigned.update(r.id for r in members)
    tier2 = len(groups) - tier1

    # ── Tier 3: title similarity ──
    titled = [r for r in records if r.id not in assigned and r.title]
    for members, sim in _title_clusters(titled, similarity_threshold):
        counter += 1
        groups.append(_build_group(counter, DuplicateReason.TITLE_SIMILARITY, members, sim))
        assigned.update(r.id for r in members)
    tier3 = len(groups) - tier1 - tier2

    summary = summarize_groups(groups)
    logger.info(
        f"Duplicate detection: {len(records)} records → {summary.total_groups} groups "
        f"(hash={tier1}, seq={tier2}, title={tier3}), "
        f"{summary.total_duplicates} duplicates"
    )
    return DetectionResult(groups=groups, summary=summary)


def summarize_groups(groups: list[DuplicateGroup]) -> DetectionSummary:
    by_reason = {reason.value: 0 for reason in DuplicateReason}
    total_duplicates = 0
    for g in groups:
        by_reason[g.reason] = by_reason.get(g.reason, 0) + 1
        total_duplicates += len(g.records) - 1
    return DetectionSummary(
        total_groups=len(groups),
        total_duplicates=total_duplicates,
        by_reason=by_reason,
    )


def find_group(result: DetectionResult, record_id: str) -> Optional[DuplicateGroup]:
    """The group a record belongs to, if any."""
    for g in result.groups:
        if any(r.id == record_id for r in g.records):
            return g
    return None
