"""
Generative AI features with deterministic fallbacks.

Whether the model is used at all is decided once, when the service is
constructed. Each feature makes at most one model call; any failure
(transport error, HTTP error, unparsable reply) is logged and the matching
fallback from app.services.fallbacks is returned instead.
"""
from functools import lru_cache
from typing import Any, Dict, List, Optional, Sequence

from app.helpers.prompts import (
    EXTRACT_SKILLS_PROMPT, JOB_RECOMMENDATION_PROMPT, JOB_LINE,
    SENTIMENT_PROMPT, POST_TAGS_PROMPT
)
from app.models.ai_settings import AIConfig
from app.models.models import JobProfile, PROFICIENCY_LEVELS, UserProfile
from app.services.fallbacks import fallback_post_tags, fallback_sentiment, fallback_skill_extraction
from app.services.matching import DEFAULT_LIMIT, rank_jobs, round_half_up
from app.utils.exceptions import ExternalServiceError
from app.utils.logging_config import get_logger
from app.utils.utils import gemini_generate, safe_json

logger = get_logger(__name__)

MAX_AI_SKILLS = 15
MAX_TAGS = 5
SENTIMENT_LABELS = ("positive", "neutral", "negative")


class AIService:
    """Skill extraction, job recommendations and post analysis"""

    def __init__(self, config: AIConfig):
        self.config = config
        self.enabled = config.enabled
        if not self.enabled:
            logger.warning("GEMINI_API_KEY not found. AI features will use deterministic fallbacks.")
        else:
            logger.info(f"AI service enabled with model {config.model_name}")

    def _generate_json(self, prompt: str, feature: str) -> Optional[Any]:
        """Run the model once and parse its reply; None means 'use the fallback'."""
        if not self.enabled:
            return None

        try:
            reply = gemini_generate(prompt, self.config)
        except ExternalServiceError as e:
            logger.error(f"AI request for {feature} failed: {e}")
            return None

        data = safe_json(reply, fallback=None)
        if data is None:
            logger.warning(f"Failed to parse AI response for {feature} as JSON, using fallback")
        return data

    # ---------- skills ----------

    def extract_skills(self, text: str) -> List[Dict]:
        data = self._generate_json(EXTRACT_SKILLS_PROMPT.format(text=text), "skill extraction")
        if not isinstance(data, list):
            if data is not None:
                logger.warning("AI skill extraction did not return an array, using fallback")
            return fallback_skill_extraction(text)

        skills = []
        for item in data:
            if not isinstance(item, dict) or not isinstance(item.get("name"), str) or not item["name"].strip():
                continue
            proficiency = item.get("proficiency")
            skills.append({
                "name": item["name"].strip(),
                "proficiency": proficiency if proficiency in PROFICIENCY_LEVELS else "Intermediate",
                "is_ai_extracted": True,
            })
        return skills[:MAX_AI_SKILLS]

    # ---------- job recommendations ----------

    def _job_recommendation_prompt(self, user: UserProfile, jobs: Sequence[Dict[str, Any]]) -> str:
        prefs = user.job_preferences
        if user.location and (user.location.city or user.location.country):
            location = ", ".join(p for p in (user.location.city, user.location.country) if p)
        else:
            location = "Any"

        lines = []
        for index, doc in enumerate(jobs):
            job = JobProfile.from_document(doc)
            lines.append(JOB_LINE.format(
                index=index,
                title=job.title,
                company=job.company_name or "Unknown company",
                skills=", ".join(s.name for s in job.skills) or "Not specified",
                job_type=job.job_type or "Not specified",
                work_location=job.work_location or "Not specified",
                experience_level=job.experience_level or "Not specified",
            ))

        return JOB_RECOMMENDATION_PROMPT.format(
            skills=", ".join(s.name for s in user.skills),
            roles=", ".join(prefs.roles) if prefs and prefs.roles else "Any",
            job_types=", ".join(prefs.job_types) if prefs and prefs.job_types else "Any",
            remote_work=prefs.remote_work if prefs and prefs.remote_work else "Any",
            location=location,
            jobs="\n".join(lines),
        )

    def recommend_jobs(
        self, user: UserProfile, jobs: Sequence[Dict[str, Any]], limit: int = DEFAULT_LIMIT
    ) -> List[Dict[str, Any]]:
        if not jobs:
            return []

        data = self._generate_json(self._job_recommendation_prompt(user, jobs), "job recommendations")
        if not isinstance(data, list):
            return rank_jobs(user, jobs, limit)

        recommendations = []
        for rec in data:
            if not isinstance(rec, dict):
                continue
            index = rec.get("jobIndex")
            if not isinstance(index, int) or isinstance(index, bool) or not 0 <= index < len(jobs):
                continue
            try:
                score = round_half_up(min(100.0, max(0.0, float(rec.get("score") or 0))))
            except (TypeError, ValueError):
                continue
            if score <= 0:
                continue
            reasons = rec.get("reasons")
            recommendations.append({
                "job": jobs[index],
                "score": score,
                "reasons": [str(r) for r in reasons] if isinstance(reasons, list) else ["AI-generated match"],
            })

        recommendations.sort(key=lambda r: r["score"], reverse=True)
        return recommendations[:max(limit, 0)]

    # ---------- posts ----------

    def analyze_sentiment(self, content: str) -> Dict:
        data = self._generate_json(SENTIMENT_PROMPT.format(content=content), "sentiment")
        if not isinstance(data, dict):
            return fallback_sentiment()

        try:
            score = float(data.get("score") or 0)
        except (TypeError, ValueError):
            score = 0.0
        label = data.get("label")
        return {
            "score": max(-1.0, min(1.0, score)),
            "label": label if label in SENTIMENT_LABELS else "neutral",
        }

    def generate_post_tags(self, content: str, category: str = "General") -> List[str]:
        data = self._generate_json(POST_TAGS_PROMPT.format(content=content, category=category), "post tags")
        if not isinstance(data, list):
            return fallback_post_tags(content, category)

        tags = [str(tag).replace("#", "", 1).strip() for tag in data[:MAX_TAGS]]
        return [t for t in tags if t]


@lru_cache()
def get_ai_service() -> AIService:
    """Process-wide service built from the environment; override in tests via dependency_overrides."""
    return AIService(AIConfig.from_env())
