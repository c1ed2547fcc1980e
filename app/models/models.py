from pydantic import BaseModel, Field, validator
from typing import Any, Dict, List, Literal, Optional

Proficiency = Literal["Beginner", "Intermediate", "Advanced", "Expert"]
AccountType = Literal["job_seeker", "employer", "both"]
JobType = Literal["Full-time", "Part-time", "Contract", "Freelance", "Internship"]
WorkLocation = Literal["On-site", "Remote", "Hybrid"]

PROFICIENCY_LEVELS = ("Beginner", "Intermediate", "Advanced", "Expert")


def _named_entries(value):
    # documents read back from mongo may carry skill entries without a name
    if value is None:
        return []
    return [s for s in value if not isinstance(s, dict) or s.get("name")]


class Skill(BaseModel):
    name: str
    proficiency: Proficiency = "Intermediate"
    is_ai_extracted: bool = False


class JobSkill(BaseModel):
    name: str
    level: Proficiency = "Intermediate"
    is_required: bool = True


class Location(BaseModel):
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None


class SalaryRange(BaseModel):
    min: Optional[float] = None
    max: Optional[float] = None
    currency: str = "USD"


class JobPreferences(BaseModel):
    roles: List[str] = Field(default_factory=list)
    job_types: List[JobType] = Field(default_factory=list)
    remote_work: Optional[WorkLocation] = "Hybrid"
    salary_range: Optional[SalaryRange] = None


class CompanyInfo(BaseModel):
    name: Optional[str] = None
    website: Optional[str] = None
    size: Optional[Literal["1-10", "11-50", "51-200", "201-500", "501-1000", "1000+"]] = None
    industry: Optional[str] = None
    description: Optional[str] = None


class UserProfile(BaseModel):
    """The parts of a user document the recommendation scorers read."""
    user_id: Optional[str] = None
    skills: List[Skill] = Field(default_factory=list)
    location: Optional[Location] = None
    job_preferences: Optional[JobPreferences] = None
    account_type: AccountType = "job_seeker"
    connection_count: int = 0
    company_info: Optional[CompanyInfo] = None

    @validator("skills", pre=True)
    def drop_unnamed_skills(cls, v):
        return _named_entries(v)

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "UserProfile":
        connections = doc.get("connections") or []
        accepted = sum(1 for c in connections if c.get("status") == "accepted")
        return cls(
            user_id=doc.get("user_id"),
            skills=doc.get("skills") or [],
            location=doc.get("location"),
            job_preferences=doc.get("job_preferences"),
            account_type=doc.get("account_type") or "job_seeker",
            connection_count=doc.get("connection_count", accepted),
            company_info=doc.get("company_info"),
        )


class JobProfile(BaseModel):
    """The parts of a job document the recommendation scorers read."""
    job_id: Optional[str] = None
    title: str = ""
    company_name: Optional[str] = None
    skills: List[JobSkill] = Field(default_factory=list)
    job_type: Optional[JobType] = None
    work_location: Optional[WorkLocation] = None
    location: Optional[Location] = None
    experience_level: Optional[str] = None

    @validator("skills", pre=True)
    def drop_unnamed_skills(cls, v):
        return _named_entries(v)

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "JobProfile":
        return cls(
            job_id=doc.get("job_id"),
            title=doc.get("title") or "",
            company_name=(doc.get("company") or {}).get("name"),
            skills=doc.get("skills") or [],
            job_type=doc.get("job_type"),
            work_location=doc.get("work_location"),
            location=doc.get("location"),
            experience_level=doc.get("experience_level"),
        )


class MatchScore(BaseModel):
    score: int
    reasons: List[str]
