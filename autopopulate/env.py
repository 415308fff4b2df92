import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


@dataclass(frozen=True)
class Settings:
    log_level: str = "INFO"
    log_dir: Path = Path("logs")
    log_to_file: bool = True
    db_path: Path = Path("data/project.db")


def load_env() -> None:
    """Load .env from the working directory if present."""
    env_path = Path.cwd() / ".env"
    if not env_path.exists():
        return
    load_dotenv(dotenv_path=env_path)


def _flag(value: str) -> bool:
    return value.strip().lower() not in {"0", "false", "no", "off", ""}


def get_settings() -> Settings:
    """Read settings from AUTOPOPULATE_* environment variables."""
    return Settings(
        log_level=os.getenv("AUTOPOPULATE_LOG_LEVEL", "INFO").upper(),
        log_dir=Path(os.getenv("AUTOPOPULATE_LOG_DIR", "logs")),
        log_to_file=_flag(os.getenv("AUTOPOPULATE_LOG_FILE", "1")),
        db_path=Path(os.getenv("AUTOPOPULATE_DB", "data/project.db")),
    )
