"""
Generative AI configuration
"""
import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, validator

load_dotenv()


class AIConfig(BaseModel):
    """Settings for the generative model behind skill extraction, recommendations and post analysis"""
    api_key: Optional[str] = Field(default=None, description="Gemini API key; AI features use fallbacks when unset")
    model_name: str = Field(default="gemini-1.5-flash", description="Generative model name")
    base_url: str = Field(default="https://generativelanguage.googleapis.com", description="Generative Language API base URL")
    temperature: float = Field(default=0.2, ge=0.0, le=2.0, description="Generation temperature")
    timeout: int = Field(default=30, ge=1, le=300, description="Request timeout in seconds")

    @validator("api_key")
    def blank_key_means_disabled(cls, v):
        if v is not None and not v.strip():
            return None
        return v

    @validator("base_url")
    def strip_trailing_slash(cls, v):
        return v.rstrip("/")

    @property
    def enabled(self) -> bool:
        return self.api_key is not None

    @classmethod
    def from_env(cls) -> "AIConfig":
        return cls(
            api_key=os.getenv("GEMINI_API_KEY"),
            model_name=os.getenv("GEMINI_MODEL", "gemini-1.5-flash"),
            base_url=os.getenv("GEMINI_BASE_URL", "https://generativelanguage.googleapis.com"),
            timeout=int(os.getenv("AI_TIMEOUT", "30")),
        )
