import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def _get_env(name: str, default: Optional[str] = None) -> str:
    val = os.getenv(name, default)
    if val is None or val.strip() == "":
        raise RuntimeError(f"Missing required environment variable: {name}")
    return val.strip()


def _parse_origins(raw: str) -> list[str]:
    raw = (raw or "").strip()
    if not raw:
        return ["*"]
    if raw == "*":
        return ["*"]
    return [o.strip() for o in raw.split(",") if o.strip()]


@dataclass
class Settings:
    database_url: str = "sqlite:///./directory.db"
    bucket_name: str = ""
    region: str = "us-east-1"
    port: int = 4000
    cors_origins: list[str] = field(default_factory=lambda: ["*"])
    upload_max_workers: int = 4
    max_certificates: int = 3


def load_settings() -> Settings:
    """
    Read settings from the environment (and a .env file, if present).
    AWS_BUCKET_NAME is only checked when the S3 client is built.
    """
    return Settings(
        database_url=_get_env("DATABASE_URL", "sqlite:///./directory.db"),
        bucket_name=os.getenv("AWS_BUCKET_NAME", "").strip(),
        region=_get_env("AWS_REGION", "us-east-1"),
        port=int(_get_env("PORT", "4000")),
        cors_origins=_parse_origins(os.getenv("CORS_ORIGINS", "*")),
        upload_max_workers=int(_get_env("UPLOAD_MAX_WORKERS", "4")),
        max_certificates=int(_get_env("MAX_CERTIFICATES", "3")),
    )
