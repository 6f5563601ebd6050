from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class SparkMindzPaths:
    home: Path
    config_dir: Path
    logs_dir: Path
    public_dir: Path

    @property
    def core_config_path(self) -> Path:
        return self.config_dir / "core.json"


def resolve_sparkmindz_home(environ: dict[str, str] | None = None) -> Path:
    env = os.environ if environ is None else environ

    raw = (env.get("SPARKMINDZ_HOME") or "").strip()
    if raw:
        candidate = Path(raw).expanduser()
        # Relative values are anchored to the user's home, never to the CWD.
        if not candidate.is_absolute():
            candidate = (Path.home() / candidate).resolve()
        else:
            candidate = candidate.resolve()
        return candidate

    def default_home() -> Path:
        if sys.platform.startswith("win"):
            base = os.environ.get("LOCALAPPDATA") or os.environ.get("APPDATA")
            if base:
                return Path(base) / "SparkMindz"
            return Path.home() / "AppData" / "Local" / "SparkMindz"

        if sys.platform == "darwin":
            return Path.home() / "Library" / "Application Support" / "SparkMindz"

        xdg = os.environ.get("XDG_DATA_HOME")
        if xdg:
            return Path(xdg) / "sparkmindz"
        return Path.home() / ".local" / "share" / "sparkmindz"

    return default_home().resolve()


def ensure_sparkmindz_layout(home: Path) -> SparkMindzPaths:
    home.mkdir(parents=True, exist_ok=True)

    config_dir = home / "config"
    logs_dir = home / "logs"
    public_dir = home / "public"

    for path in (config_dir, logs_dir, public_dir):
        path.mkdir(parents=True, exist_ok=True)

    return SparkMindzPaths(
        home=home,
        config_dir=config_dir,
        logs_dir=logs_dir,
        public_dir=public_dir,
    )
