"""
Freelancer recommendation scorer.

Ranks candidate freelancers for an open task by blending three signals:

- collaborative: accepted applications / requests on skill-similar tasks that
  are already in progress or completed, weighted by Jaccard skill similarity
  and by how recent the historical task is;
- direct skill overlap between the candidate and the task;
- the candidate's average rating.

The module is pure: callers fetch the snapshot (see ``marketplace.tasks``) and
pass it in, so the same inputs always produce the same ordering.
"""
from __future__ import annotations

import logging
import math
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Iterable, Optional, Sequence

logger = logging.getLogger("gigboard.recommender")

DEFAULT_LIMIT = 10

APPLICATION_WEIGHT = 3.0  # accepted application from the freelancer
REQUEST_WEIGHT = 2.0  # accepted direct request sent to the freelancer
UNRELATED_SIMILARITY = 0.2  # fetched task with no skill overlap still counts weakly
RECENCY_HALF_SCALE_DAYS = 30.0
SKILL_MATCH_WEIGHT = 2.0
RATING_WEIGHT = 0.4  # 0-5 stars -> 0-2.0


@dataclass(frozen=True)
class SimilarTask:
    """Historical task together with the freelancers it was accepted by."""
    task_id: str
    skills: tuple[str, ...]
    created_at: datetime
    application_freelancer_ids: tuple[str, ...] = ()
    request_freelancer_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class CandidateProfile:
    """Eligible freelancer as read from the user table."""
    id: str
    full_name: str
    image_url: Optional[str] = None
    title: Optional[str] = None
    hourly_rate: Optional[float] = None
    rating: Optional[float] = None
    completed_jobs: Optional[int] = None
    location: Optional[str] = None
    legacy_skills: tuple[str, ...] = ()
    relational_skills: tuple[str, ...] = ()


@dataclass(frozen=True)
class ScoredCandidate:
    id: str
    full_name: str
    image_url: Optional[str]
    title: Optional[str]
    hourly_rate: Optional[float]
    rating: Optional[float]
    completed_jobs: Optional[int]
    location: Optional[str]
    skills: tuple[str, ...]
    score: float

    def to_dict(self) -> dict:
        data = asdict(self)
        data["skills"] = list(self.skills)
        return data


@dataclass
class CollaborativeSignal:
    """Per-freelancer accumulators built from the similar-task corpus."""
    raw_scores: dict[str, float] = field(default_factory=dict)
    interactions: dict[str, int] = field(default_factory=dict)

    @property
    def has_signal(self) -> bool:
        return any(score != 0 for score in self.raw_scores.values())

    def add(self, freelancer_id: str, contribution: float) -> None:
        self.raw_scores[freelancer_id] = self.raw_scores.get(freelancer_id, 0.0) + contribution
        self.interactions[freelancer_id] = self.interactions.get(freelancer_id, 0) + 1

    def normalized(self, freelancer_id: str) -> float:
        raw = self.raw_scores.get(freelancer_id, 0.0)
        count = self.interactions.get(freelancer_id, 0)
        if raw and count > 0:
            # Square-root damping keeps many small interactions from dominating.
            return raw / math.sqrt(count)
        return raw


def normalize_limit(limit: Optional[int]) -> int:
    if limit is None or limit <= 0:
        return DEFAULT_LIMIT
    return limit


def merge_skills(*skill_lists: Iterable[str]) -> list[str]:
    """Union of skill lists, first occurrence wins the position."""
    merged: list[str] = []
    seen: set[str] = set()
    for skills in skill_lists:
        for skill in skills or ():
            if skill not in seen:
                seen.add(skill)
                merged.append(skill)
    return merged


def skill_similarity(task_skills: Sequence[str], other_skills: Sequence[str]) -> float:
    """Jaccard similarity with the neutral/baseline fallbacks.

    An empty target skill set carries no signal, so every task is equally
    similar (1.0). A fetched task sharing nothing with a non-empty target
    contributes at ``UNRELATED_SIMILARITY``.
    """
    target = set(task_skills)
    other = set(other_skills)
    overlap = len(target & other) if target and other else 0
    union = len(target | other)
    if overlap > 0 and union > 0:
        return overlap / union
    if not target:
        return 1.0
    return UNRELATED_SIMILARITY


def recency_weight(created_at: datetime, now: datetime) -> float:
    age_days = (now - created_at).total_seconds() / 86400.0
    return 1.0 / (1.0 + max(age_days, 0.0) / RECENCY_HALF_SCALE_DAYS)


def collect_signal(
    task_skills: Sequence[str],
    similar_tasks: Iterable[SimilarTask],
    now: datetime,
) -> CollaborativeSignal:
    signal = CollaborativeSignal()
    for similar in similar_tasks:
        weight = skill_similarity(task_skills, similar.skills) * recency_weight(similar.created_at, now)
        for freelancer_id in similar.application_freelancer_ids:
            signal.add(freelancer_id, APPLICATION_WEIGHT * weight)
        for freelancer_id in similar.request_freelancer_ids:
            signal.add(freelancer_id, REQUEST_WEIGHT * weight)
    return signal


def score_candidate(
    candidate: CandidateProfile,
    task_skills: Sequence[str],
    signal: CollaborativeSignal,
    use_collaborative: bool,
) -> ScoredCandidate:
    skills = merge_skills(candidate.legacy_skills, candidate.relational_skills)
    target = set(task_skills)
    skill_overlap = sum(1 for skill in skills if skill in target)

    collaborative = signal.normalized(candidate.id) if use_collaborative else 0.0
    rating_score = candidate.rating * RATING_WEIGHT if candidate.rating else 0.0
    score = collaborative + skill_overlap * SKILL_MATCH_WEIGHT + rating_score

    return ScoredCandidate(
        id=candidate.id,
        full_name=candidate.full_name,
        image_url=candidate.image_url,
        title=candidate.title,
        hourly_rate=candidate.hourly_rate,
        rating=candidate.rating,
        completed_jobs=candidate.completed_jobs,
        location=candidate.location,
        skills=tuple(skills),
        score=score,
    )


def rank(scored: Iterable[ScoredCandidate]) -> list[ScoredCandidate]:
    """Stable sort by score, then rating, then completed jobs (all descending)."""
    return sorted(
        scored,
        key=lambda c: (-c.score, -(c.rating or 0), -(c.completed_jobs or 0)),
    )


def recommend(
    task_skills: Sequence[str],
    similar_tasks: Iterable[SimilarTask],
    candidates: Iterable[CandidateProfile],
    limit: Optional[int] = None,
    now: Optional[datetime] = None,
) -> list[ScoredCandidate]:
    now = now or datetime.utcnow()
    similar_tasks = list(similar_tasks)
    candidates = list(candidates)

    signal = collect_signal(task_skills, similar_tasks, now)
    # Global switch: without any collaborative signal the term is dropped for everyone.
    use_collaborative = signal.has_signal

    ranked = rank(
        score_candidate(candidate, task_skills, signal, use_collaborative)
        for candidate in candidates
    )
    logger.debug(
        "[Recommend] corpus=%s candidates=%s has_signal=%s",
        len(similar_tasks),
        len(candidates),
        use_collaborative,
    )
    return ranked[: normalize_limit(limit)]
