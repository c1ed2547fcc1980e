import pytest
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock, patch, MagicMock

from app.utils.auth import get_current_user


def mock_cursor(docs):
    cursor = MagicMock()
    cursor.sort.return_value = cursor
    cursor.skip.return_value = cursor
    cursor.limit.return_value = cursor
    cursor.to_list = AsyncMock(return_value=docs)
    return cursor


@pytest.fixture
def current_user():
    return {
        "user_id": "employer-1",
        "first_name": "Eve",
        "last_name": "Boss",
        "account_type": "employer",
        "company_info": {"name": "Acme", "website": "https://acme.test", "description": "Widgets"},
        "skills": [{"name": "Python"}],
        "job_preferences": {"job_types": ["Full-time"], "remote_work": "Remote"},
    }


@pytest.fixture
def test_app(current_user):
    from fastapi import FastAPI
    from app.routers import jobs

    app = FastAPI()
    app.include_router(jobs.router, prefix="/jobs")
    app.dependency_overrides[get_current_user] = lambda: current_user
    return app


@pytest.fixture
def client(test_app):
    return TestClient(test_app)


def job_doc(**overrides):
    doc = {
        "job_id": "job-1",
        "title": "Backend Engineer",
        "description": "Build APIs",
        "employer_id": "someone-else",
        "company": {"name": "Other"},
        "job_type": "Full-time",
        "work_location": "Remote",
        "skills": [{"name": "Python", "level": "Intermediate", "is_required": True}],
        "experience_level": "Mid",
        "status": "active",
        "applications": [],
    }
    doc.update(overrides)
    return doc


JOB_PAYLOAD = {
    "title": "Data Engineer",
    "description": "Pipelines all day",
    "job_type": "Full-time",
    "work_location": "Hybrid",
    "experience_level": "Senior",
    "skills": [{"name": "SQL"}, {"level": "Expert"}],
}


class TestJobCrud:
    """Test cases for creating, reading, updating and deleting jobs"""

    @patch('app.routers.jobs.jobs_coll')
    def test_create_job_defaults_company(self, mock_jobs_coll, client):
        mock_jobs_coll.insert_one = AsyncMock()

        response = client.post("/jobs/", json=JOB_PAYLOAD)

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["company"]["name"] == "Acme"
        assert data["employer_id"] == "employer-1"
        assert data["status"] == "active"
        assert [s["name"] for s in data["skills"]] == ["SQL"]
        assert data["application_count"] == 0
        stored = mock_jobs_coll.insert_one.call_args[0][0]
        assert stored["expires_at"] > stored["created_at"]

    @patch('app.routers.jobs.jobs_coll')
    def test_create_job_without_any_company(self, mock_jobs_coll, client, current_user):
        current_user["company_info"] = None
        mock_jobs_coll.insert_one = AsyncMock()

        response = client.post("/jobs/", json=JOB_PAYLOAD)

        assert response.status_code == 400
        mock_jobs_coll.insert_one.assert_not_called()

    @patch('app.routers.jobs.jobs_coll')
    def test_get_job_increments_views(self, mock_jobs_coll, client):
        mock_jobs_coll.find_one_and_update = AsyncMock(return_value=job_doc(views=4))

        response = client.get("/jobs/job-1")

        assert response.status_code == 200
        assert response.json()["data"]["views"] == 5
        assert mock_jobs_coll.find_one_and_update.call_args[0][1] == {"$inc": {"views": 1}}

    @patch('app.routers.jobs.jobs_coll')
    def test_get_job_not_found(self, mock_jobs_coll, client):
        mock_jobs_coll.find_one_and_update = AsyncMock(return_value=None)

        assert client.get("/jobs/missing").status_code == 404

    @patch('app.routers.jobs.jobs_coll')
    def test_only_owner_can_update(self, mock_jobs_coll, client):
        mock_jobs_coll.find_one = AsyncMock(return_value=job_doc())
        mock_jobs_coll.update_one = AsyncMock()

        response = client.put("/jobs/job-1", json={"title": "New title"})

        assert response.status_code == 403
        mock_jobs_coll.update_one.assert_not_called()

    @patch('app.routers.jobs.jobs_coll')
    def test_owner_updates(self, mock_jobs_coll, client):
        mock_jobs_coll.find_one = AsyncMock(return_value=job_doc(employer_id="employer-1"))
        mock_jobs_coll.update_one = AsyncMock()

        response = client.put("/jobs/job-1", json={"title": "New title"})

        assert response.status_code == 200
        assert response.json()["data"]["title"] == "New title"
        assert set(mock_jobs_coll.update_one.call_args[0][1]["$set"]) == {"title", "updated_at"}

    @patch('app.routers.jobs.jobs_coll')
    def test_owner_deletes(self, mock_jobs_coll, client):
        mock_jobs_coll.find_one = AsyncMock(return_value=job_doc(employer_id="employer-1"))
        mock_jobs_coll.delete_one = AsyncMock()

        response = client.delete("/jobs/job-1")

        assert response.status_code == 200
        mock_jobs_coll.delete_one.assert_awaited_once_with({"job_id": "job-1"})


class TestJobListing:
    """Test cases for listing and recommendations"""

    @patch('app.routers.jobs.jobs_coll')
    def test_list_jobs_filters(self, mock_jobs_coll, client):
        mock_jobs_coll.find.return_value = mock_cursor([job_doc()])
        mock_jobs_coll.count_documents = AsyncMock(return_value=1)

        response = client.get("/jobs/?job_type=Full-time&salary_min=50000&search=api")

        assert response.status_code == 200
        data = response.json()
        assert data["pagination"] == {"current": 1, "pages": 1, "total": 1}
        assert "applications" not in data["data"][0]
        query = mock_jobs_coll.find.call_args[0][0]
        assert query["status"] == "active"
        assert query["job_type"] == "Full-time"
        assert query["salary.min"] == {"$gte": 50000}

    def test_list_jobs_rejects_unknown_sort(self, client):
        assert client.get("/jobs/?sort_by=password").status_code == 400

    @patch('app.routers.jobs.jobs_coll')
    def test_recommendations_use_weighted_scorer(self, mock_jobs_coll, client):
        mock_jobs_coll.find.return_value = mock_cursor([
            job_doc(job_id="match"),
            job_doc(job_id="miss", skills=[{"name": "Rust"}], job_type="Contract", work_location="On-site"),
        ])

        response = client.get("/jobs/recommendations")

        assert response.status_code == 200
        data = response.json()["data"]
        assert [r["job"]["job_id"] for r in data] == ["match"]
        assert data[0]["score"] == 100
        query = mock_jobs_coll.find.call_args[0][0]
        assert query["employer_id"] == {"$ne": "employer-1"}


class TestApplications:
    """Test cases for applying and reviewing applications"""

    @patch('app.routers.jobs.jobs_coll')
    def test_cannot_apply_to_own_job(self, mock_jobs_coll, client):
        mock_jobs_coll.find_one = AsyncMock(return_value=job_doc(employer_id="employer-1"))

        response = client.post("/jobs/job-1/apply", json={"cover_letter": "Hire me"})

        assert response.status_code == 400

    @patch('app.routers.jobs.jobs_coll')
    def test_cannot_apply_twice(self, mock_jobs_coll, client):
        mock_jobs_coll.find_one = AsyncMock(return_value=job_doc(
            applications=[{"application_id": "a-1", "applicant_id": "employer-1", "status": "pending"}]
        ))

        response = client.post("/jobs/job-1/apply", json={})

        assert response.status_code == 400
        assert "already applied" in response.json()["detail"]

    @patch('app.routers.jobs.jobs_coll')
    def test_apply(self, mock_jobs_coll, client):
        mock_jobs_coll.find_one = AsyncMock(return_value=job_doc())
        mock_jobs_coll.update_one = AsyncMock()

        response = client.post("/jobs/job-1/apply", json={"cover_letter": "Hire me"})

        assert response.status_code == 200
        application = response.json()["data"]
        assert application["status"] == "pending"
        assert application["applicant_id"] == "employer-1"
        pushed = mock_jobs_coll.update_one.call_args[0][1]["$push"]["applications"]
        assert pushed["cover_letter"] == "Hire me"

    @patch('app.routers.jobs.jobs_coll')
    def test_owner_reviews_application(self, mock_jobs_coll, client):
        mock_jobs_coll.find_one = AsyncMock(return_value=job_doc(
            employer_id="employer-1",
            applications=[{"application_id": "a-1", "applicant_id": "candidate", "status": "pending"}]
        ))
        mock_jobs_coll.update_one = AsyncMock()

        response = client.put("/jobs/job-1/applications/a-1", json={"status": "shortlisted", "feedback": "Great fit"})

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == "shortlisted"
        assert data["feedback"] == "Great fit"
        assert data["reviewed_at"] is not None

    @patch('app.routers.jobs.jobs_coll')
    def test_unknown_application(self, mock_jobs_coll, client):
        mock_jobs_coll.find_one = AsyncMock(return_value=job_doc(employer_id="employer-1"))

        response = client.put("/jobs/job-1/applications/nope", json={"status": "hired"})

        assert response.status_code == 404

    @patch('app.routers.jobs.jobs_coll')
    def test_my_applications(self, mock_jobs_coll, client):
        mock_jobs_coll.find.return_value = mock_cursor([job_doc(
            applications=[
                {"application_id": "a-0", "applicant_id": "other", "status": "pending"},
                {"application_id": "a-1", "applicant_id": "employer-1", "status": "reviewing"},
            ]
        )])
        mock_jobs_coll.count_documents = AsyncMock(return_value=1)

        response = client.get("/jobs/my/applications")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data[0]["application_id"] == "a-1"
        assert data[0]["job"]["title"] == "Backend Engineer"
