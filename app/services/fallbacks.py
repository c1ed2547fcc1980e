"""
Deterministic stand-ins for the generative features, used when no API key is
configured or the model call fails.
"""
from typing import Dict, List

COMMON_SKILLS = [
    "JavaScript",
    "Python",
    "Java",
    "React",
    "Node.js",
    "HTML",
    "CSS",
    "SQL",
    "MongoDB",
    "PostgreSQL",
    "AWS",
    "Docker",
    "Kubernetes",
    "Git",
    "TypeScript",
    "Vue.js",
    "Angular",
    "Express.js",
    "Spring Boot",
    "Django",
    "Flask",
    "Machine Learning",
    "Data Analysis",
    "Project Management",
    "Agile",
]
MAX_FALLBACK_SKILLS = 10

CATEGORY_TAGS = {
    "Career Advice": ["career", "advice", "professional"],
    "Technology": ["tech", "technology", "innovation"],
    "Job Search": ["job", "hiring", "opportunity"],
    "Networking": ["networking", "connections", "community"],
    "Skills Development": ["skills", "learning", "development"],
}
DEFAULT_TAGS = ["professional", "career"]
STOP_WORDS = {"this", "that", "with", "have", "been"}
MAX_TAGS = 5


def fallback_skill_extraction(text: str) -> List[Dict]:
    """Substring scan of the text for well-known technology names."""
    text_lower = (text or "").lower()
    found = [
        {"name": skill, "proficiency": "Intermediate", "is_ai_extracted": True}
        for skill in COMMON_SKILLS
        if skill.lower() in text_lower
    ]
    return found[:MAX_FALLBACK_SKILLS]


def fallback_post_tags(content: str, category: str) -> List[str]:
    base_tags = CATEGORY_TAGS.get(category, DEFAULT_TAGS)

    keywords = [
        word for word in (content or "").lower().split()
        if len(word) > 4 and word not in STOP_WORDS
    ][:2]

    return (list(base_tags) + keywords)[:MAX_TAGS]


def fallback_sentiment() -> Dict:
    return {"score": 0.0, "label": "neutral"}
