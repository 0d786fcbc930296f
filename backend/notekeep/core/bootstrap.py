# notekeep/core/bootstrap.py
"""
Bootstrap module for application initialization.
Handles setup tasks that must run once on startup.
"""
import logging

from notekeep.config import settings
from notekeep.core.storage import LocalFileStorage

logger = logging.getLogger("uvicorn.error")

def ensure_upload_dir() -> None:
    """
    Create the attachment upload root if it does not exist.
    Environment variables:
      UPLOAD_DIR (default: "./uploads")
    """
    storage = LocalFileStorage(settings.upload_dir)
    storage.ensure_root()
    if settings.jwt_secret == "dev-secret" and settings.env != "dev":
        logger.warning("[bootstrap] JWT_SECRET is the development default -> set a strong secret.")
    logger.info("[bootstrap] upload root ready at %s", storage.root)
