from __future__ import annotations

import os
from functools import lru_cache
from dotenv import load_dotenv, find_dotenv

_env_path = find_dotenv(".env") or ".env"
load_dotenv(_env_path, override=False)


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() == "true"


class Settings:
    """Central configuration (env driven)."""

    def __init__(self) -> None:
        # Supabase
        raw_url = os.getenv("SUPABASE_URL", "")
        self.supabase_url: str = raw_url.rstrip("/")
        self.supabase_anon_key: str = os.getenv("SUPABASE_ANON_KEY") or os.getenv("SUPABASE_KEY", "")
        self.supabase_key: str = self.supabase_anon_key  # alias
        self.supabase_service_role_key: str = (
            os.getenv("SUPABASE_SERVICE_ROLE_KEY")
            or os.getenv("SUPABASE_SERVICE_KEY")
            or ""
        )
        # Database (alembic only; runtime goes through Supabase)
        self.database_url: str = os.getenv("DATABASE_URL", "")
        # Certificates
        self.certificate_bucket: str = os.getenv("CERTIFICATE_BUCKET", "certifree-certificates")
        self.auto_issue_certificates: bool = _env_flag("AUTO_ISSUE_CERTIFICATES")
        # Auth
        self.auth_whoami_timeout: float = float(os.getenv("AUTH_WHOAMI_TIMEOUT", "5"))
        # App meta
        self.app_name: str = "CertiFree Course Backend"
        self.app_version: str = os.getenv("APP_VERSION", "dev")
        self.debug: bool = _env_flag("DEBUG")
        self.log_level: str = os.getenv("LOG_LEVEL", "DEBUG" if self.debug else "INFO").upper()
        self.allow_origins: list[str] = [
            o.strip().rstrip("/")
            for o in os.getenv("ALLOW_ORIGINS", "http://localhost:5173,http://localhost:3000").split(",")
            if o.strip()
        ]

    @property
    def storage_key(self) -> str:
        # Certificate uploads need to bypass storage RLS when a service key is configured.
        return self.supabase_service_role_key or self.supabase_key

    def get_database_url(self) -> str:
        return self.database_url


@lru_cache()
def get_settings() -> Settings:
    return Settings()
