"""
Weighted-sum recommendation scorers.

The weights (60/20/20 for jobs, 40/20/20/10/10 for people) are product
heuristics; changing them changes which recommendations users see.
"""
import math
from typing import Any, Dict, Iterable, List, Sequence

from app.models.models import JobProfile, MatchScore, UserProfile

JOB_SKILL_WEIGHT = 60
JOB_TYPE_BONUS = 20
WORK_LOCATION_BONUS = 20

PEOPLE_SKILL_WEIGHT = 40
SAME_CITY_BONUS = 20
SAME_COUNTRY_BONUS = 10
COMPLEMENTARY_ROLE_BONUS = 20
SIMILAR_ROLE_BONUS = 10
INFLUENCE_WEIGHT = 10
COMPANY_BONUS = 10
WELL_CONNECTED_THRESHOLD = 50

DEFAULT_LIMIT = 10


def round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def skill_names(skills) -> List[str]:
    return [s.name.lower() for s in skills]


def _same_text(a, b) -> bool:
    return bool(a) and bool(b) and a.lower() == b.lower()


def job_match_score(user: UserProfile, job: JobProfile) -> MatchScore:
    score = 0.0
    reasons = []

    user_skills = set(skill_names(user.skills))
    job_skills = skill_names(job.skills)
    matches = sum(1 for s in job_skills if s in user_skills)
    score += matches / max(len(job_skills), 1) * JOB_SKILL_WEIGHT
    if matches > 0:
        reasons.append(f"{matches} matching skills")

    prefs = user.job_preferences
    if prefs is not None:
        if job.job_type and job.job_type in prefs.job_types:
            score += JOB_TYPE_BONUS
            reasons.append("Preferred job type")
        if prefs.remote_work and prefs.remote_work == job.work_location:
            score += WORK_LOCATION_BONUS
            reasons.append("Preferred work location")

    return MatchScore(score=round_half_up(score), reasons=reasons or ["Basic profile match"])


def connection_match_score(current: UserProfile, candidate: UserProfile) -> MatchScore:
    score = 0.0
    reasons = []

    current_skills = set(skill_names(current.skills))
    candidate_skills = skill_names(candidate.skills)
    matches = sum(1 for s in candidate_skills if s in current_skills)
    if matches > 0:
        score += matches / max(len(candidate_skills), 1) * PEOPLE_SKILL_WEIGHT
        reasons.append(f"{matches} shared skills")

    # the location tiers only apply when both users have a city
    here = current.location
    there = candidate.location
    if here is not None and there is not None and here.city and there.city:
        if here.city.lower() == there.city.lower():
            score += SAME_CITY_BONUS
            reasons.append("Same city")
        elif _same_text(here.country, there.country):
            score += SAME_COUNTRY_BONUS
            reasons.append("Same country")

    if current.account_type == "job_seeker" and candidate.account_type == "employer":
        score += COMPLEMENTARY_ROLE_BONUS
        reasons.append("Potential employer")
    elif current.account_type == "employer" and candidate.account_type == "job_seeker":
        score += COMPLEMENTARY_ROLE_BONUS
        reasons.append("Potential candidate")
    elif current.account_type == candidate.account_type:
        score += SIMILAR_ROLE_BONUS
        reasons.append("Similar professional role")

    score += min(candidate.connection_count / 10, 1) * INFLUENCE_WEIGHT
    if candidate.connection_count > WELL_CONNECTED_THRESHOLD:
        reasons.append("Well-connected professional")

    if candidate.company_info is not None and candidate.company_info.name:
        score += COMPANY_BONUS
        reasons.append("Company representative")

    return MatchScore(score=round_half_up(score), reasons=reasons or ["Professional in your network"])


def _top(scored: List[Dict[str, Any]], limit: int) -> List[Dict[str, Any]]:
    # sorted() is stable, so equal scores keep the order the candidates were fetched in
    kept = [item for item in scored if item["score"] > 0]
    kept = sorted(kept, key=lambda item: item["score"], reverse=True)
    return kept[:max(limit, 0)]


def rank_jobs(user: UserProfile, jobs: Sequence[Dict[str, Any]], limit: int = DEFAULT_LIMIT) -> List[Dict[str, Any]]:
    """Score job documents against a user and return [{job, score, reasons}] best first."""
    scored = []
    for job in jobs:
        result = job_match_score(user, JobProfile.from_document(job))
        scored.append({"job": job, "score": result.score, "reasons": result.reasons})
    return _top(scored, limit)


def rank_connections(
    current: UserProfile,
    candidates: Sequence[Dict[str, Any]],
    limit: int = DEFAULT_LIMIT,
    exclude_ids: Iterable[str] = ()
) -> List[Dict[str, Any]]:
    """Score user documents as potential connections and return [{user, score, reasons}] best first."""
    excluded = set(exclude_ids)
    if current.user_id:
        excluded.add(current.user_id)

    scored = []
    for candidate in candidates:
        if candidate.get("user_id") in excluded:
            continue
        result = connection_match_score(current, UserProfile.from_document(candidate))
        scored.append({"user": candidate, "score": result.score, "reasons": result.reasons})
    return _top(scored, limit)
