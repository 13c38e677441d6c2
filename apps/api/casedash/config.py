import os
from dataclasses import dataclass
from typing import List, Optional

from dotenv import load_dotenv
from psycopg.conninfo import make_conninfo


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return float(raw)


@dataclass(frozen=True)
class Settings:
    """Runtime configuration, assembled once at startup.

    Provide credentials and the signing secret through the environment or a
    local .env file. Nothing here should be read ad hoc by request handlers;
    they receive the instance stored on ``app.state.settings``.
    """

    # -----------------
    # Store
    # -----------------
    database_url: Optional[str] = None
    db_host: str = "localhost"
    db_port: int = 5432
    db_user: Optional[str] = None
    db_password: Optional[str] = None
    db_name: Optional[str] = None
    db_pool_min_size: int = 1
    db_pool_max_size: int = 10
    db_pool_timeout: float = 10.0

    # -----------------
    # Auth
    # -----------------
    jwt_secret: str = ""
    jwt_algorithm: str = "HS256"
    jwt_expire_hours: int = 12
    bcrypt_rounds: int = 12
    # Staff
    default_role_id: int = 4

    # Login throttling. Without a Redis URL the counters live in-process.
    rate_limit_redis_url: Optional[str] = None
    login_rate_limit: int = 10
    login_rate_window_seconds: int = 60

    # -----------------
    # HTTP
    # -----------------
    host: str = "0.0.0.0"
    port: int = 3000
    cors_allow_origins: str = "*"
    static_dir: str = "public"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            database_url=os.environ.get("DATABASE_URL") or None,
            db_host=os.environ.get("DB_HOST", "localhost"),
            db_port=_env_int("DB_PORT", 5432),
            db_user=os.environ.get("DB_USER"),
            db_password=os.environ.get("DB_PASS"),
            db_name=os.environ.get("DB_NAME"),
            db_pool_min_size=_env_int("DB_POOL_MIN_SIZE", 1),
            db_pool_max_size=_env_int("DB_POOL_MAX_SIZE", 10),
            db_pool_timeout=_env_float("DB_POOL_TIMEOUT", 10.0),
            jwt_secret=os.environ.get("JWT_SECRET", ""),
            jwt_algorithm=os.environ.get("JWT_ALGORITHM", "HS256"),
            jwt_expire_hours=_env_int("JWT_EXPIRE_HOURS", 12),
            bcrypt_rounds=_env_int("BCRYPT_ROUNDS", 12),
            default_role_id=_env_int("DEFAULT_ROLE_ID", 4),
            rate_limit_redis_url=os.environ.get("RATE_LIMIT_REDIS_URL") or None,
            login_rate_limit=_env_int("LOGIN_RATE_LIMIT", 10),
            login_rate_window_seconds=_env_int("LOGIN_RATE_WINDOW_SECONDS", 60),
            host=os.environ.get("HOST", "0.0.0.0"),
            port=_env_int("PORT", 3000),
            cors_allow_origins=os.environ.get("CORS_ALLOW_ORIGINS", "*"),
            static_dir=os.environ.get("STATIC_DIR", "public"),
            log_level=os.environ.get("LOG_LEVEL", "INFO"),
        )

    @property
    def conninfo(self) -> str:
        if self.database_url:
            return self.database_url
        parts = {
            "host": self.db_host,
            "port": self.db_port,
            "user": self.db_user,
            "password": self.db_password,
            "dbname": self.db_name,
        }
        return make_conninfo(**{k: v for k, v in parts.items() if v is not None})

    @property
    def cors_origins(self) -> List[str]:
        return [o.strip() for o in self.cors_allow_origins.split(",") if o.strip()]

    def validate(self) -> "Settings":
        if not self.jwt_secret:
            raise RuntimeError("JWT_SECRET env var is required.")
        if self.jwt_algorithm.startswith("HS") and len(self.jwt_secret) < 32:
            raise RuntimeError("JWT_SECRET must be at least 32 characters for HS256.")
        if self.db_pool_max_size < 1:
            raise RuntimeError("DB_POOL_MAX_SIZE must be at least 1.")
        return self


def load_settings() -> Settings:
    load_dotenv()
    return Settings.from_env().validate()
