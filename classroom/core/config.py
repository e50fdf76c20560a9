import os
import string
from datetime import timedelta
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent.parent

# DEV defaults: override every value through the environment in production.
DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{BASE_DIR}/classroom.db")

SECRET_KEY = os.getenv("SECRET_KEY", "change-me-in-production")
ALGORITHM = os.getenv("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE = timedelta(
    minutes=int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))
)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Opaque blob store for submission attachments
ATTACHMENT_DIR = Path(os.getenv("ATTACHMENT_DIR", str(BASE_DIR / "attachments")))

# Class enrollment codes
ENROLLMENT_CODE_LENGTH = int(os.getenv("ENROLLMENT_CODE_LENGTH", "6"))
ENROLLMENT_CODE_ALPHABET = string.ascii_uppercase + string.digits
ENROLLMENT_CODE_MAX_ATTEMPTS = int(os.getenv("ENROLLMENT_CODE_MAX_ATTEMPTS", "10"))
