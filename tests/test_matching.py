import pytest

from app.models.models import JobProfile, UserProfile
from app.services.matching import (
    connection_match_score, job_match_score, rank_connections, rank_jobs, round_half_up
)


def make_user(**overrides):
    doc = {
        "user_id": "u-1",
        "skills": [{"name": "React"}, {"name": "Node.js"}],
        "job_preferences": {"job_types": ["Full-time"], "remote_work": "Remote"},
        "account_type": "job_seeker",
    }
    doc.update(overrides)
    return doc


def make_job(job_id="j-1", skills=("React", "Python"), job_type="Full-time", work_location="Remote"):
    return {
        "job_id": job_id,
        "title": "Frontend Engineer",
        "company": {"name": "Acme"},
        "skills": [{"name": s} for s in skills],
        "job_type": job_type,
        "work_location": work_location,
    }


class TestJobMatchScore:
    """Test cases for the job scorer"""

    def test_concrete_scenario(self):
        """Half the skills plus both preference bonuses is 70"""
        result = job_match_score(UserProfile.from_document(make_user()), JobProfile.from_document(make_job()))

        assert result.score == 70
        assert "1 matching skills" in result.reasons
        assert "Preferred job type" in result.reasons
        assert "Preferred work location" in result.reasons

    def test_skill_names_compared_case_insensitively(self):
        user = UserProfile.from_document(make_user(skills=[{"name": "react"}], job_preferences=None))
        job = JobProfile.from_document(make_job(skills=("REACT",)))

        assert job_match_score(user, job).score == 60

    def test_no_preferences_means_no_bonuses(self):
        user = UserProfile.from_document(make_user(skills=[], job_preferences=None))
        result = job_match_score(user, JobProfile.from_document(make_job()))

        assert result.score == 0
        assert result.reasons == ["Basic profile match"]

    def test_job_without_skills_does_not_divide_by_zero(self):
        user = UserProfile.from_document(make_user())
        result = job_match_score(user, JobProfile.from_document(make_job(skills=())))

        assert result.score == 40
        assert "1 matching skills" not in result.reasons

    def test_deterministic(self):
        user = UserProfile.from_document(make_user())
        job = JobProfile.from_document(make_job())

        assert job_match_score(user, job) == job_match_score(user, job)

    def test_more_matching_skills_never_lowers_score(self):
        job = JobProfile.from_document(make_job(skills=("React", "Python", "SQL")))
        scores = []
        for skills in ([], ["React"], ["React", "Python"], ["React", "Python", "SQL"]):
            user = UserProfile.from_document(make_user(skills=[{"name": s} for s in skills]))
            scores.append(job_match_score(user, job).score)

        assert scores == sorted(scores)

    def test_rounding_is_half_up(self):
        # 1/8 * 60 = 7.5
        user = UserProfile.from_document(make_user(skills=[{"name": "a"}], job_preferences=None))
        job = JobProfile.from_document(make_job(skills=("a", "b", "c", "d", "e", "f", "g", "h")))

        assert job_match_score(user, job).score == 8
        assert round_half_up(2.5) == 3


class TestConnectionMatchScore:
    """Test cases for the people scorer"""

    def test_concrete_scenario(self):
        current = UserProfile.from_document({
            "user_id": "a", "location": {"city": "NYC"}, "skills": [{"name": "Python"}], "account_type": "job_seeker"
        })
        candidate = UserProfile.from_document({
            "user_id": "b",
            "location": {"city": "NYC"},
            "skills": [{"name": "Python"}, {"name": "SQL"}],
            "account_type": "employer",
            "connection_count": 20,
        })

        result = connection_match_score(current, candidate)

        assert result.score == 70
        assert result.reasons == ["1 shared skills", "Same city", "Potential employer"]

    def test_same_country_when_cities_differ(self):
        current = UserProfile.from_document({"location": {"city": "Austin", "country": "USA"}, "account_type": "employer"})
        candidate = UserProfile.from_document({"location": {"city": "Boston", "country": "usa"}, "account_type": "job_seeker"})

        result = connection_match_score(current, candidate)

        assert "Same country" in result.reasons
        assert "Potential candidate" in result.reasons
        assert result.score == 30

    def test_country_ignored_without_cities(self):
        current = UserProfile.from_document({"location": {"country": "USA"}, "account_type": "both"})
        candidate = UserProfile.from_document({"location": {"country": "usa"}, "account_type": "job_seeker"})

        result = connection_match_score(current, candidate)

        assert result.score == 0
        assert "Same country" not in result.reasons

    def test_country_ignored_when_one_city_missing(self):
        current = UserProfile.from_document({"location": {"city": "Austin", "country": "USA"}, "account_type": "both"})
        candidate = UserProfile.from_document({"location": {"country": "USA"}, "account_type": "job_seeker"})

        assert connection_match_score(current, candidate).score == 0

    def test_missing_countries_do_not_match(self):
        current = UserProfile.from_document({"location": {"city": "Austin"}, "account_type": "both"})
        candidate = UserProfile.from_document({"location": {"city": "Boston"}, "account_type": "job_seeker"})

        result = connection_match_score(current, candidate)

        assert result.score == 0
        assert result.reasons == ["Professional in your network"]

    def test_influence_and_company(self):
        current = UserProfile.from_document({"account_type": "both"})
        candidate = UserProfile.from_document({
            "account_type": "both", "connection_count": 60, "company_info": {"name": "Acme"}
        })

        result = connection_match_score(current, candidate)

        assert result.score == 30
        assert "Similar professional role" in result.reasons
        assert "Well-connected professional" in result.reasons
        assert "Company representative" in result.reasons

    def test_connection_count_derived_from_accepted_edges(self):
        candidate = UserProfile.from_document({
            "connections": [{"user_id": "x", "status": "accepted"}, {"user_id": "y", "status": "pending"}]
        })
        assert candidate.connection_count == 1


class TestRanking:
    """Test cases for ranked recommendation lists"""

    def test_rank_jobs_sorted_positive_and_limited(self):
        user = UserProfile.from_document(make_user())
        jobs = [
            make_job("j-1", skills=("Go",), job_type="Contract", work_location="On-site"),
            make_job("j-2", skills=("React",)),
            make_job("j-3", skills=("React", "Python")),
            make_job("j-4", skills=("React", "Node.js")),
        ]

        result = rank_jobs(user, jobs, limit=2)

        assert [r["job"]["job_id"] for r in result] == ["j-2", "j-4"]
        assert all(r["score"] > 0 for r in result)
        assert result[0]["score"] >= result[1]["score"]

    def test_rank_jobs_drops_zero_scores(self):
        user = UserProfile.from_document(make_user(job_preferences=None))
        jobs = [make_job("j-1", skills=("Go",))]

        assert rank_jobs(user, jobs) == []

    @pytest.mark.parametrize("limit", [0, 1, 3, 10])
    def test_limit_respected(self, limit):
        user = UserProfile.from_document(make_user())
        jobs = [make_job(f"j-{i}") for i in range(5)]

        assert len(rank_jobs(user, jobs, limit=limit)) <= limit

    def test_ties_keep_input_order(self):
        user = UserProfile.from_document(make_user())
        jobs = [make_job(f"j-{i}") for i in range(3)]

        assert [r["job"]["job_id"] for r in rank_jobs(user, jobs)] == ["j-0", "j-1", "j-2"]

    def test_empty_pools(self):
        user = UserProfile.from_document(make_user())

        assert rank_jobs(user, []) == []
        assert rank_connections(user, []) == []

    def test_rank_connections_excludes_self_and_existing(self):
        current = UserProfile.from_document({"user_id": "me", "account_type": "job_seeker"})
        candidates = [
            {"user_id": "me", "account_type": "employer"},
            {"user_id": "friend", "account_type": "employer"},
            {"user_id": "stranger", "account_type": "employer"},
        ]

        result = rank_connections(current, candidates, exclude_ids=["friend"])

        assert [r["user"]["user_id"] for r in result] == ["stranger"]
        assert result[0]["score"] == 20
