from pydantic import BaseModel, Field
from typing import Any, Dict, List, Literal, Optional
from datetime import datetime, timedelta
import uuid

from app.models.models import (
    AccountType, CompanyInfo, JobPreferences, JobSkill, JobType, Location, Skill, WorkLocation
)

ConnectionStatus = Literal["pending", "accepted", "rejected"]
JobStatus = Literal["draft", "active", "paused", "closed", "expired"]
ApplicationStatus = Literal["pending", "reviewing", "shortlisted", "rejected", "hired"]
ExperienceLevel = Literal["Entry", "Mid", "Senior", "Lead", "Executive"]
PostType = Literal["text", "image", "video", "job_share", "article"]
PostCategory = Literal[
    "General", "Career Advice", "Technology", "Job Search", "Networking", "Industry News", "Skills Development"
]
Visibility = Literal["public", "connections", "private"]

JOB_LIFETIME_DAYS = 30
PROFILE_FIELDS = 9


def new_id() -> str:
    return str(uuid.uuid4())


# -------- Users --------
class ConnectionModel(BaseModel):
    connection_id: str = Field(default_factory=new_id)
    user_id: str
    status: ConnectionStatus = "pending"
    connected_at: datetime = Field(default_factory=datetime.utcnow)


class ProfilePictureModel(BaseModel):
    url: str
    public_id: str


class UserModel(BaseModel):
    user_id: str = Field(default_factory=new_id)
    first_name: str
    last_name: str
    email: str
    password_hash: str
    bio: str = ""
    profile_picture: Optional[ProfilePictureModel] = None
    resume: Optional[Dict[str, Any]] = None
    linkedin_url: Optional[str] = None
    skills: List[Skill] = []
    location: Location = Field(default_factory=Location)
    job_preferences: JobPreferences = Field(default_factory=JobPreferences)
    account_type: AccountType = "job_seeker"
    company_info: Optional[CompanyInfo] = None
    connections: List[ConnectionModel] = []
    is_active: bool = True
    profile_completeness: int = 0
    last_login: Optional[datetime] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


PUBLIC_USER_FIELDS = (
    "user_id", "first_name", "last_name", "bio", "profile_picture", "skills", "location", "account_type", "company_info"
)


def profile_completeness(user: Dict[str, Any]) -> int:
    """Percentage of the nine headline profile fields that are filled in."""
    filled = [
        bool(user.get("first_name")),
        bool(user.get("last_name")),
        bool(user.get("email")),
        bool(user.get("bio")),
        bool(user.get("profile_picture")),
        bool((user.get("resume") or {}).get("filename")),
        bool(user.get("skills")),
        bool((user.get("location") or {}).get("city")),
        bool((user.get("job_preferences") or {}).get("roles")),
    ]
    return int(sum(filled) / PROFILE_FIELDS * 100 + 0.5)


def accepted_connections(user: Dict[str, Any]) -> List[Dict[str, Any]]:
    return [c for c in user.get("connections") or [] if c.get("status") == "accepted"]


def user_view(user: Dict[str, Any], full: bool = True) -> Dict[str, Any]:
    """JSON-safe view of a user document: never the password hash, only the public subset unless full."""
    if full:
        view = {k: v for k, v in user.items() if k not in ("_id", "password_hash")}
    else:
        view = {k: user.get(k) for k in PUBLIC_USER_FIELDS}
    view["full_name"] = f"{user.get('first_name', '')} {user.get('last_name', '')}".strip()
    view["connection_count"] = len(accepted_connections(user))
    return view


# -------- Jobs --------
class CompanyModel(BaseModel):
    name: str
    website: Optional[str] = None
    size: Optional[str] = None
    industry: Optional[str] = None


class SalaryModel(BaseModel):
    min: Optional[float] = None
    max: Optional[float] = None
    currency: str = "USD"
    period: Literal["hourly", "monthly", "yearly"] = "yearly"
    is_negotiable: bool = False


class ApplicationModel(BaseModel):
    application_id: str = Field(default_factory=new_id)
    applicant_id: str
    cover_letter: str = ""
    resume_url: Optional[str] = None
    status: ApplicationStatus = "pending"
    feedback: Optional[str] = None
    applied_at: datetime = Field(default_factory=datetime.utcnow)
    reviewed_at: Optional[datetime] = None


def _expiry() -> datetime:
    return datetime.utcnow() + timedelta(days=JOB_LIFETIME_DAYS)


class JobModel(BaseModel):
    job_id: str = Field(default_factory=new_id)
    title: str
    description: str
    employer_id: str
    company: CompanyModel
    job_type: JobType
    work_location: WorkLocation
    location: Location = Field(default_factory=Location)
    skills: List[JobSkill] = []
    experience_level: ExperienceLevel
    salary: Optional[SalaryModel] = None
    benefits: List[str] = []
    category: Optional[str] = None
    tags: List[str] = []
    status: JobStatus = "active"
    applications: List[ApplicationModel] = []
    views: int = 0
    expires_at: datetime = Field(default_factory=_expiry)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


def job_view(job: Dict[str, Any], include_applications: bool = False) -> Dict[str, Any]:
    view = {k: v for k, v in job.items() if k != "_id"}
    view["application_count"] = len(job.get("applications") or [])
    if not include_applications:
        view.pop("applications", None)
    return view


# -------- Posts --------
class LikeModel(BaseModel):
    user_id: str
    liked_at: datetime = Field(default_factory=datetime.utcnow)


class CommentModel(BaseModel):
    comment_id: str = Field(default_factory=new_id)
    author_id: str
    content: str = Field(..., max_length=500)
    created_at: datetime = Field(default_factory=datetime.utcnow)


class ShareModel(BaseModel):
    user_id: str
    share_comment: str = ""
    shared_at: datetime = Field(default_factory=datetime.utcnow)


class SentimentModel(BaseModel):
    score: float = 0.0
    label: Literal["positive", "neutral", "negative"] = "neutral"


class PostModel(BaseModel):
    post_id: str = Field(default_factory=new_id)
    author_id: str
    content: str = Field(..., max_length=2000)
    type: PostType = "text"
    category: PostCategory = "General"
    tags: List[str] = []
    visibility: Visibility = "public"
    likes: List[LikeModel] = []
    comments: List[CommentModel] = []
    shares: List[ShareModel] = []
    views: int = 0
    is_commenting_enabled: bool = True
    sentiment: SentimentModel = Field(default_factory=SentimentModel)
    suggested_tags: List[str] = []
    is_edited: bool = False
    edited_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


def post_view(post: Dict[str, Any], user_id: Optional[str] = None) -> Dict[str, Any]:
    view = {k: v for k, v in post.items() if k != "_id"}
    likes = post.get("likes") or []
    view["like_count"] = len(likes)
    view["comment_count"] = len(post.get("comments") or [])
    view["share_count"] = len(post.get("shares") or [])
    view["is_liked"] = user_id is not None and any(l.get("user_id") == user_id for l in likes)
    return view
