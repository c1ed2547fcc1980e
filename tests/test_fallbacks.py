from app.services.fallbacks import (
    COMMON_SKILLS, MAX_FALLBACK_SKILLS, fallback_post_tags, fallback_sentiment, fallback_skill_extraction
)


class TestFallbackSkillExtraction:
    """Test cases for the keyword skill scan"""

    def test_reference_list_order_and_casing(self):
        skills = fallback_skill_extraction("I use python and REACT daily")

        assert skills == [
            {"name": "Python", "proficiency": "Intermediate", "is_ai_extracted": True},
            {"name": "React", "proficiency": "Intermediate", "is_ai_extracted": True},
        ]

    def test_capped_at_ten(self):
        text = " ".join(COMMON_SKILLS)
        skills = fallback_skill_extraction(text)

        assert len(skills) == MAX_FALLBACK_SKILLS
        assert [s["name"] for s in skills] == COMMON_SKILLS[:MAX_FALLBACK_SKILLS]

    def test_substring_matching(self):
        # "Java" is a substring of "JavaScript"
        names = [s["name"] for s in fallback_skill_extraction("Senior JavaScript developer")]

        assert names == ["JavaScript", "Java"]

    def test_empty_text(self):
        assert fallback_skill_extraction("") == []
        assert fallback_skill_extraction(None) == []


class TestFallbackPostTags:
    """Test cases for category and keyword tags"""

    def test_known_category_plus_keywords(self):
        tags = fallback_post_tags("Excited about learning Kubernetes this week", "Technology")

        assert tags == ["tech", "technology", "innovation", "excited", "about"]

    def test_unknown_category_uses_defaults(self):
        tags = fallback_post_tags("Just landed a great position", "General")

        assert tags == ["professional", "career", "landed", "great"]

    def test_stop_words_and_short_words_skipped(self):
        tags = fallback_post_tags("that with have been these", "Networking")

        assert tags == ["networking", "connections", "community", "these"]

    def test_never_more_than_five(self):
        tags = fallback_post_tags("alpha1 bravo2 charlie3 delta4", "Career Advice")

        assert len(tags) == 5


def test_fallback_sentiment_is_neutral():
    assert fallback_sentiment() == {"score": 0.0, "label": "neutral"}
