"""
Profile picture storage on Cloudinary.

Uploads are square-cropped to 400x400 on the Cloudinary side. Calls are
blocking SDK calls, so routes run them in the executor.
"""
from functools import lru_cache
from io import BytesIO
from typing import Any, Dict

import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError

from app.models.media_settings import MediaConfig
from app.utils.exceptions import ExternalServiceError
from app.utils.logging_config import get_logger

logger = get_logger(__name__)

PROFILE_PICTURE_FOLDER = "profile-pictures"
PROFILE_PICTURE_TRANSFORMATION = [{"width": 400, "height": 400, "crop": "fill", "quality": "auto"}]


class MediaStorage:
    """Upload and delete user images"""

    def __init__(self, config: MediaConfig):
        self.config = config
        if not config.enabled:
            logger.warning("Cloudinary credentials not found. Profile picture uploads are disabled.")

    def _credentials(self) -> Dict[str, Any]:
        if not self.config.enabled:
            raise ExternalServiceError("Image storage is not configured", service_name="cloudinary")
        return {
            "cloud_name": self.config.cloud_name,
            "api_key": self.config.api_key,
            "api_secret": self.config.api_secret,
        }

    def upload_profile_picture(self, data: bytes, user_id: str) -> Dict[str, str]:
        """Store the image and return {url, public_id}"""
        credentials = self._credentials()
        try:
            result = cloudinary.uploader.upload(
                BytesIO(data),
                folder=f"{self.config.folder}/{PROFILE_PICTURE_FOLDER}",
                transformation=PROFILE_PICTURE_TRANSFORMATION,
                resource_type="image",
                **credentials
            )
        except CloudinaryError as e:
            raise ExternalServiceError(
                f"Profile picture upload failed: {e}", service_name="cloudinary", cause=e
            ) from e

        logger.info(f"Stored profile picture {result['public_id']} for user {user_id}")
        return {"url": result["secure_url"], "public_id": result["public_id"]}

    def delete(self, public_id: str) -> None:
        credentials = self._credentials()
        try:
            result = cloudinary.uploader.destroy(public_id, resource_type="image", **credentials)
        except CloudinaryError as e:
            raise ExternalServiceError(
                f"Deleting image {public_id} failed: {e}", service_name="cloudinary", cause=e
            ) from e
        # "not found" is fine: the image is gone either way
        if result.get("result") not in ("ok", "not found"):
            raise ExternalServiceError(f"Deleting image {public_id} failed: {result}", service_name="cloudinary")


@lru_cache()
def get_media_storage() -> MediaStorage:
    return MediaStorage(MediaConfig.from_env())
