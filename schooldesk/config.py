# schooldesk/config.py
import os
from dotenv import load_dotenv
from typing import List

load_dotenv()


def get_optional(key: str, default: str) -> str:
    value = os.getenv(key)
    return value if value else default


def get_list(key: str, default: str = "") -> List[str]:
    return [item.strip() for item in get_optional(key, default).split(",") if item.strip()]


class Settings:
    # ---------------------------------------------------------------------
    # REMOTE SCHOOL API
    # ---------------------------------------------------------------------
    SCHOOL_API_BASE_URL: str = get_optional("SCHOOL_API_BASE_URL", "http://localhost:8000/api/")
    SCHOOL_API_TIMEOUT: float = float(get_optional("SCHOOL_API_TIMEOUT", "30"))
    SCHOOL_API_MAX_RETRIES: int = int(get_optional("SCHOOL_API_MAX_RETRIES", "3"))

    # ---------------------------------------------------------------------
    # ATTENDANCE
    # ---------------------------------------------------------------------
    # Status given to students without a saved record. UNMARKED blocks saving
    # until every row has been set explicitly.
    ROSTER_DEFAULT_STATUS: str = get_optional("ROSTER_DEFAULT_STATUS", "PRESENT").upper()

    # ---------------------------------------------------------------------
    # LOGGING
    # ---------------------------------------------------------------------
    LOG_LEVEL: str = get_optional("LOG_LEVEL", "INFO").upper()

    # ---------------------------------------------------------------------
    # CORS
    # ---------------------------------------------------------------------
    CORS_ALLOW_ORIGINS: List[str] = get_list("CORS_ALLOW_ORIGINS", "*")
    CORS_ALLOW_METHODS: List[str] = get_list("CORS_ALLOW_METHODS", "*")
    CORS_ALLOW_HEADERS: List[str] = get_list("CORS_ALLOW_HEADERS", "*")
    CORS_ALLOW_CREDENTIALS: bool = (
        get_optional("CORS_ALLOW_CREDENTIALS", "false").lower() == "true"
    )


# Singleton instance
settings = Settings()
