# activation/config.py
import os
from dataclasses import dataclass, field
from typing import Optional, List

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    host: str = "0.0.0.0"
    port: int = 10000
    admin_key: str = "CHANGE_ME_ADMIN_KEY"
    admin_username: str = "admin"
    admin_password: str = "CHANGE_ME_ADMIN_PASSWORD"
    data_file: str = "activations.json"
    database_url: Optional[str] = None  # e.g. sqlite:///activations.db, overrides data_file
    session_idle_minutes: int = 30
    seed_example: bool = True
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"

    @property
    def session_idle_seconds(self) -> int:
        return self.session_idle_minutes * 60

    @classmethod
    def from_env(cls) -> "Settings":
        origins = os.environ.get("CORS_ORIGINS", "*")
        return cls(
            host=os.environ.get("HOST", "0.0.0.0"),
            port=int(os.environ.get("PORT", 10000)),
            admin_key=os.environ.get("ADMIN_KEY", "CHANGE_ME_ADMIN_KEY"),
            admin_username=os.environ.get("ADMIN_USERNAME", "admin"),
            admin_password=os.environ.get("ADMIN_PASSWORD", "CHANGE_ME_ADMIN_PASSWORD"),
            data_file=os.environ.get("DATA_FILE", "activations.json"),
            database_url=os.environ.get("DATABASE_URL") or None,
            session_idle_minutes=int(os.environ.get("SESSION_IDLE_MINUTES", 30)),
            seed_example=_env_bool("SEED_EXAMPLE", True),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        )
