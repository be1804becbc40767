"""Environment configuration."""
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .job_driver import MAX_POLL_ATTEMPTS, POLL_INTERVAL

DEFAULT_PORT = 8787
DEFAULT_REQUEST_TIMEOUT_MS = 120000


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return -1


@dataclass
class Settings:
    fal_key: Optional[str] = None
    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    data_dir: Path = Path("data")
    db_file: Path = Path("data") / "db.json"
    lsky_url: Optional[str] = None
    lsky_token: Optional[str] = None
    lsky_strategy_id: str = "1"
    request_timeout_ms: int = DEFAULT_REQUEST_TIMEOUT_MS
    poll_interval: float = POLL_INTERVAL
    max_poll_attempts: int = MAX_POLL_ATTEMPTS

    @property
    def lsky_enabled(self) -> bool:
        return bool(self.lsky_url and self.lsky_token)

    @property
    def request_timeout(self) -> float:
        """Per-request HTTP timeout in seconds."""
        return max(self.request_timeout_ms, 1000) / 1000

    @staticmethod
    def from_env() -> "Settings":
        data_dir = Path(os.getenv("DATA_DIR", "data"))
        return Settings(
            fal_key=os.getenv("FAL_KEY") or None,
            host=os.getenv("HOST", "0.0.0.0"),
            port=_int_env("PORT", DEFAULT_PORT),
            data_dir=data_dir,
            db_file=Path(os.getenv("DB_FILE", str(data_dir / "db.json"))),
            lsky_url=os.getenv("LSKY_URL") or None,
            lsky_token=os.getenv("LSKY_TOKEN") or None,
            lsky_strategy_id=os.getenv("LSKY_STRATEGY_ID", "1"),
            request_timeout_ms=_int_env("REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT_MS),
            poll_interval=float(os.getenv("POLL_INTERVAL", str(POLL_INTERVAL))),
            max_poll_attempts=_int_env("MAX_POLL_ATTEMPTS", MAX_POLL_ATTEMPTS),
        )


def validate_settings(settings: Settings) -> tuple[list[str], list[str]]:
    """Return (errors, warnings) for ``settings``.

    Errors mean the server should not start.
    """
    errors: list[str] = []
    warnings: list[str] = []

    if not settings.fal_key:
        errors.append("FAL_KEY is required (get it from https://fal.ai/dashboard/keys)")

    if not 1 <= settings.port <= 65535:
        errors.append(f"Invalid PORT: {settings.port} (must be 1-65535)")

    if settings.lsky_url and not settings.lsky_token:
        warnings.append("LSKY_URL set but LSKY_TOKEN missing - image hosting will not work")

    if settings.request_timeout_ms < 1000:
        warnings.append(
            f"REQUEST_TIMEOUT is too low: {settings.request_timeout_ms}ms (recommended: >= 1000ms)"
        )

    if settings.max_poll_attempts < 1:
        errors.append(f"Invalid MAX_POLL_ATTEMPTS: {settings.max_poll_attempts}")

    return errors, warnings
