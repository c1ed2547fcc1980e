import json
import requests

from app.models.ai_settings import AIConfig
from app.utils.exceptions import ExternalServiceError


def gemini_generate(prompt: str, config: AIConfig) -> str:
    url = f"{config.base_url}/v1beta/models/{config.model_name}:generateContent"
    try:
        resp = requests.post(
            url,
            headers={"x-goog-api-key": config.api_key},
            json={
                "contents": [{"parts": [{"text": prompt}]}],
                "generationConfig": {"temperature": config.temperature},
            },
            timeout=config.timeout,
        )
        resp.raise_for_status()
    except requests.RequestException as e:
        status = e.response.status_code if e.response is not None else None
        raise ExternalServiceError(
            f"Gemini request failed: {e}", service_name="gemini", status_code=status, cause=e
        ) from e

    data = resp.json()
    candidates = data.get("candidates") or []
    if not candidates:
        return ""
    parts = (candidates[0].get("content") or {}).get("parts") or []
    return "".join(p.get("text", "") for p in parts).strip()


def safe_json(s: str, fallback=None):
    """Parse the outermost JSON array or object in a model reply (which may be fenced in ```json)."""
    if not s:
        return fallback
    try:
        starts = [i for i in (s.find("["), s.find("{")) if i >= 0]
        if not starts:
            return fallback
        start = min(starts)
        end = s.rfind("]" if s[start] == "[" else "}")
        if end < start:
            return fallback
        return json.loads(s[start:end + 1])
    except ValueError:
        return fallback
