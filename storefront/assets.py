from pathlib import Path
from typing import Optional

from .config import Settings

# Static assets ship inside the package (see package-data in pyproject.toml).
STATIC_DIR = Path(__file__).resolve().parent / "static"

HERO_IMAGE = "shop.svg"


def asset_url(settings: Settings, key: str) -> str:
    """URL for a static asset: the S3 bucket when configured, else the local /static mount."""
    if settings.s3_bucket and settings.s3_region:
        return f"https://{settings.s3_bucket}.s3.{settings.s3_region}.amazonaws.com/{key}"
    return f"/static/{key}"


def static_dir() -> Optional[Path]:
    return STATIC_DIR if STATIC_DIR.is_dir() else None
