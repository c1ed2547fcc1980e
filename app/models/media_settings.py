"""
Image storage configuration
"""
import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, validator

load_dotenv()


class MediaConfig(BaseModel):
    """Cloudinary credentials for profile pictures; uploads are refused while any is missing"""
    cloud_name: Optional[str] = Field(default=None, description="Cloudinary cloud name")
    api_key: Optional[str] = Field(default=None, description="Cloudinary API key")
    api_secret: Optional[str] = Field(default=None, description="Cloudinary API secret")
    folder: str = Field(default="job-portal", description="Root folder for every upload")

    @validator("cloud_name", "api_key", "api_secret")
    def blank_means_unset(cls, v):
        if v is not None and not v.strip():
            return None
        return v

    @property
    def enabled(self) -> bool:
        return bool(self.cloud_name and self.api_key and self.api_secret)

    @classmethod
    def from_env(cls) -> "MediaConfig":
        return cls(
            cloud_name=os.getenv("CLOUDINARY_CLOUD_NAME"),
            api_key=os.getenv("CLOUDINARY_API_KEY"),
            api_secret=os.getenv("CLOUDINARY_API_SECRET"),
            folder=os.getenv("CLOUDINARY_FOLDER", "job-portal"),
        )
