"""
Event logo storage
"""

import io
import logging
import os
import shutil
from typing import Optional

from PIL import Image, UnidentifiedImageError

from app.core.config import settings
from app.core.errors import InvalidInput

logger = logging.getLogger(__name__)

LOGO_FILENAME = "logo.png"


class LogoService:
    """Stores one normalized PNG logo per event under STATIC_DIR/logos/<key>/"""

    @staticmethod
    def logo_folder(event_key: str) -> str:
        return os.path.join(settings.logo_dir, event_key)

    @staticmethod
    def logo_path(event_key: str) -> str:
        return os.path.join(LogoService.logo_folder(event_key), LOGO_FILENAME)

    @staticmethod
    def has_logo(event_key: str) -> bool:
        return os.path.isfile(LogoService.logo_path(event_key))

    @staticmethod
    def get_logo_url(event_key: str) -> Optional[str]:
        """Public URL of the logo, or None when the event has none"""
        if not LogoService.has_logo(event_key):
            return None
        return f"{settings.BASE_URL}/static/logos/{event_key}/{LOGO_FILENAME}"

    @staticmethod
    def prepare_logo(file_content: bytes) -> Image.Image:
        """Validate and downscale an uploaded image without touching the disk"""
        if not file_content:
            raise InvalidInput("Logo file is empty")
        if len(file_content) > settings.MAX_UPLOAD_SIZE:
            raise InvalidInput(
                f"Logo file is too large (max {settings.MAX_UPLOAD_SIZE // (1024 * 1024)}MB)"
            )

        try:
            img = Image.open(io.BytesIO(file_content))
            img.load()
        except (UnidentifiedImageError, OSError) as e:
            raise InvalidInput("Logo must be a valid image file", details=[str(e)]) from e

        if img.mode not in ("RGB", "RGBA"):
            img = img.convert("RGBA")
        max_dimension = settings.LOGO_MAX_DIMENSION
        img.thumbnail((max_dimension, max_dimension))
        return img

    @staticmethod
    def store_logo(event_key: str, img: Image.Image) -> str:
        """Write a prepared image as the event's logo"""
        folder = LogoService.logo_folder(event_key)
        os.makedirs(folder, exist_ok=True)
        file_path = LogoService.logo_path(event_key)
        img.save(file_path, format="PNG")

        logger.info(f"Stored logo for event {event_key} ({img.width}x{img.height})")
        return file_path

    @staticmethod
    def save_logo(event_key: str, file_content: bytes) -> str:
        """Validate, downscale and store an uploaded image as the event's logo"""
        return LogoService.store_logo(event_key, LogoService.prepare_logo(file_content))

    @staticmethod
    def remove_logo(event_key: str) -> None:
        """Drop the event's logo folder; a missing folder is not an error"""
        folder = LogoService.logo_folder(event_key)
        if os.path.isdir(folder):
            shutil.rmtree(folder)
            logger.info(f"Removed logo folder for event {event_key}")
