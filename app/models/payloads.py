from pydantic import BaseModel, Field, validator
from typing import List, Literal, Optional

from app.models.models import (
    AccountType, CompanyInfo, JobPreferences, JobSkill, JobType, Location, Skill, WorkLocation, _named_entries
)
from app.models.schemas import (
    ApplicationStatus, CompanyModel, ExperienceLevel, JobStatus, PostCategory, PostType, SalaryModel, Visibility
)

# Request bodies accepted by the routers


# -------- Auth --------
class RegisterPayload(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    email: str
    password: str = Field(..., min_length=6)
    account_type: AccountType = "job_seeker"
    company_info: Optional[CompanyInfo] = None

    @validator("email")
    def normalise_email(cls, v):
        v = v.strip().lower()
        if "@" not in v or v.startswith("@") or v.endswith("@"):
            raise ValueError("Please enter a valid email")
        return v


class LoginPayload(BaseModel):
    email: str
    password: str

    @validator("email")
    def normalise_email(cls, v):
        return v.strip().lower()


# -------- Users --------
class ProfileUpdatePayload(BaseModel):
    """Only these fields can be changed through the profile endpoint."""
    first_name: Optional[str] = Field(None, min_length=1, max_length=50)
    last_name: Optional[str] = Field(None, min_length=1, max_length=50)
    bio: Optional[str] = Field(None, max_length=500)
    linkedin_url: Optional[str] = None
    location: Optional[Location] = None
    job_preferences: Optional[JobPreferences] = None
    company_info: Optional[CompanyInfo] = None
    account_type: Optional[AccountType] = None


class SkillsPayload(BaseModel):
    skills: List[Skill] = []

    @validator("skills", pre=True)
    def drop_unnamed_skills(cls, v):
        return _named_entries(v)


class ConnectionActionPayload(BaseModel):
    action: Literal["accept", "reject"]


# -------- Jobs --------
class JobPayload(BaseModel):
    title: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=5000)
    company: Optional[CompanyModel] = None
    job_type: JobType
    work_location: WorkLocation
    location: Optional[Location] = None
    skills: List[JobSkill] = []
    experience_level: ExperienceLevel
    salary: Optional[SalaryModel] = None
    benefits: List[str] = []
    category: Optional[str] = None
    tags: List[str] = []
    status: JobStatus = "active"

    @validator("skills", pre=True)
    def drop_unnamed_skills(cls, v):
        return _named_entries(v)


class JobUpdatePayload(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, min_length=1, max_length=5000)
    company: Optional[CompanyModel] = None
    job_type: Optional[JobType] = None
    work_location: Optional[WorkLocation] = None
    location: Optional[Location] = None
    skills: Optional[List[JobSkill]] = None
    experience_level: Optional[ExperienceLevel] = None
    salary: Optional[SalaryModel] = None
    benefits: Optional[List[str]] = None
    category: Optional[str] = None
    tags: Optional[List[str]] = None
    status: Optional[JobStatus] = None


class ApplyPayload(BaseModel):
    cover_letter: str = Field("", max_length=2000)
    resume_url: Optional[str] = None


class ApplicationUpdatePayload(BaseModel):
    status: ApplicationStatus
    feedback: Optional[str] = None


# -------- Posts --------
class PostPayload(BaseModel):
    content: str = Field(..., min_length=1, max_length=2000)
    type: PostType = "text"
    category: PostCategory = "General"
    tags: List[str] = []
    visibility: Visibility = "public"
    is_commenting_enabled: bool = True


class PostUpdatePayload(BaseModel):
    content: Optional[str] = Field(None, min_length=1, max_length=2000)
    category: Optional[PostCategory] = None
    tags: Optional[List[str]] = None
    visibility: Optional[Visibility] = None
    is_commenting_enabled: Optional[bool] = None


class CommentPayload(BaseModel):
    content: str = Field(..., min_length=1, max_length=500)


class SharePayload(BaseModel):
    share_comment: str = Field("", max_length=500)


# -------- AI --------
# Lengths are checked in the routes so short input gets the API's 400 response.
class TextPayload(BaseModel):
    text: str = ""


class UpdateSkillsPayload(BaseModel):
    skills: List[Skill] = []
    merge_with_existing: bool = True

    @validator("skills", pre=True)
    def drop_unnamed_skills(cls, v):
        return _named_entries(v)


class ContentPayload(BaseModel):
    content: str = ""


class TagsPayload(BaseModel):
    content: str = ""
    category: str = "General"
