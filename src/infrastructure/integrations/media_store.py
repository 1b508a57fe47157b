# src/infrastructure/integrations/media_store.py

import logging

import requests

from src.domain.exceptions import UploadError

logger = logging.getLogger(__name__)


class CloudinaryMediaStore:
    """Unsigned uploads to Cloudinary through its REST endpoint."""

    def __init__(
        self,
        cloud_name: str | None,
        upload_preset: str | None,
        timeout: float = 20.0,
        session: requests.Session | None = None,
    ):
        self.cloud_name = cloud_name
        self.upload_preset = upload_preset
        self.timeout = timeout
        self.session = session or requests.Session()

    @property
    def upload_url(self) -> str:
        return f"https://api.cloudinary.com/v1_1/{self.cloud_name}/image/upload"

    def upload(self, data: bytes, folder: str, filename: str = "upload") -> str:
        if not self.cloud_name or not self.upload_preset:
            raise UploadError(
                "Media store not configured. Set CLOUDINARY_CLOUD_NAME and CLOUDINARY_UPLOAD_PRESET."
            )
        if not data:
            raise UploadError("Refusing to upload an empty file")

        try:
            response = self.session.post(
                self.upload_url,
                data={"upload_preset": self.upload_preset, "folder": folder},
                files={"file": (filename, data)},
                timeout=self.timeout,
            )
            response.raise_for_status()
            url = response.json()["secure_url"]
        except requests.RequestException as exc:
            logger.warning("Upload to %s failed: %s", folder, exc)
            raise UploadError("Image upload failed") from exc
        except (ValueError, KeyError) as exc:
            raise UploadError("Media store returned an unexpected response") from exc

        logger.info("Uploaded %s to %s", filename, folder)
        return url
