import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# backend/fusion/core/config.py -> backend/fusion/core -> backend/fusion -> backend -> repo_root
_backend_dir = Path(__file__).resolve().parents[2]
_repo_root = _backend_dir.parent

# Process env wins over backend/.env.
load_dotenv(dotenv_path=_backend_dir / ".env", override=False)


@dataclass(frozen=True)
class Settings:
    output_dir: Path
    log_level: str


def get_settings() -> Settings:
    """Read settings from the environment on every call (no module-level cache)."""
    output_dir = (os.getenv("FUSION_OUTPUT_DIR") or "").strip()
    return Settings(
        output_dir=Path(output_dir) if output_dir else _repo_root / "assets" / "uploads",
        log_level=(os.getenv("LOG_LEVEL") or "INFO").strip().upper(),
    )
