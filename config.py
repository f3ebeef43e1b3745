import os
from dataclasses import dataclass

from dotenv import load_dotenv

# .env is optional
load_dotenv()

DEFAULT_MONGO_URI = "mongodb://127.0.0.1:27017/courseStore"
DEFAULT_DATABASE_NAME = "courseStore"


@dataclass(frozen=True)
class Settings:
    port: int = 3000
    host: str = "0.0.0.0"
    mongo_uri: str = DEFAULT_MONGO_URI
    ci: bool = False
    connect_retries: int = 10
    connect_delay_ms: int = 2000
    static_dir: str = "public"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            port=int(os.getenv("PORT") or 3000),
            host=os.getenv("HOST") or "0.0.0.0",
            mongo_uri=os.getenv("MONGO_URI") or DEFAULT_MONGO_URI,
            # any non-empty value skips seeding, "false" and "0" included
            ci=bool(os.getenv("CI")),
            connect_retries=int(os.getenv("MONGO_CONNECT_RETRIES") or 10),
            connect_delay_ms=int(os.getenv("MONGO_CONNECT_DELAY_MS") or 2000),
            static_dir=os.getenv("STATIC_DIR") or "public",
            log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
        )
