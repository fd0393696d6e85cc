from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")

# bcrypt rejects passwords longer than this many UTF-8 bytes.
MAX_PASSWORD_BYTES = 72


@dataclass(frozen=True)
class AuthConfig:
    session_secret: str = os.getenv("SESSION_SECRET", "wanderer-secret-change-in-production")
    admin_email: str = os.getenv("WANDERER_ADMIN_EMAIL", "admin@wanderer.ph")
    admin_password: str = os.getenv("WANDERER_ADMIN_PASSWORD", "admin123")
    demo_email: str = os.getenv("WANDERER_DEMO_EMAIL", "traveler@wanderer.ph")
    demo_password: str = os.getenv("WANDERER_DEMO_PASSWORD", "traveler123")


DEFAULT_AUTH_CONFIG = AuthConfig()
