"""Application settings and configuration"""

import os
from typing import Any, Dict, List


class Settings:
    """Manages application settings and configuration"""

    def __init__(self):
        # Database configuration
        self.database_url = os.getenv("DATABASE_URL", "sqlite:///./talent_profiles.db")
        self.db_pool_size = int(os.getenv("DB_POOL_SIZE", "5"))
        self.db_max_overflow = int(os.getenv("DB_MAX_OVERFLOW", "10"))
        self.db_pool_timeout = int(os.getenv("DB_POOL_TIMEOUT", "30"))

        # Profile reconciliation
        self.profile_default_namespace = os.getenv(
            "PROFILE_DEFAULT_NAMESPACE", "acting"
        )
        self.profile_fallback_namespace = os.getenv(
            "PROFILE_FALLBACK_NAMESPACE", "additional"
        )
        self.profile_default_role = os.getenv("PROFILE_DEFAULT_ROLE", "talent")
        self.profile_default_talent_type = os.getenv(
            "PROFILE_DEFAULT_TALENT_TYPE", "actor"
        )

        # CORS settings
        default_origins = [
            "http://localhost:3000",  # Local dev
            "http://localhost:5173",  # Vite dev server
        ]
        self.cors_origins: List[str] = os.getenv(
            "CORS_ORIGINS", ",".join(default_origins)
        ).split(",")
        self.cors_methods = os.getenv("CORS_METHODS", "GET,POST,PUT,OPTIONS").split(",")
        self.cors_headers = os.getenv("CORS_HEADERS", "*").split(",")

        # Authentication settings
        self.dev_token_prefix = os.getenv("DEV_TOKEN_PREFIX", "dev_test_token_")

        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()

    def get_settings_summary(self) -> Dict[str, Any]:
        """Get summary of current settings"""
        url = self.database_url
        if "@" in url and ":" in url.split("@", 1)[0]:
            creds, rest = url.split("@", 1)
            user = creds.split("//", 1)[-1].split(":", 1)[0]
            url = f"{creds.split('//', 1)[0]}//{user}:***@{rest}"

        return {
            "database_url": url,
            "profile_default_namespace": self.profile_default_namespace,
            "profile_fallback_namespace": self.profile_fallback_namespace,
            "profile_default_role": self.profile_default_role,
            "profile_default_talent_type": self.profile_default_talent_type,
            "log_level": self.log_level,
        }


# Global instance
settings = Settings()
