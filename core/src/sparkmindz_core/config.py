from __future__ import annotations

import json
import os
import secrets
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field

from sparkmindz_core.home import SparkMindzPaths

Environment = Literal["development", "production"]


class NetworkConfig(BaseModel):
    bind_host: str = Field(default="127.0.0.1")
    port: int = Field(default=3000, ge=1, le=65535)
    trust_proxy: bool = Field(
        default=False,
        description="Honor X-Forwarded-* headers. Always on in production.",
    )


class AuthConfig(BaseModel):
    admin_password: str | None = Field(
        default=None,
        description="The single shared admin credential. Unset means no login can succeed.",
    )
    session_secret: str | None = Field(
        default=None,
        description="Key used to sign session cookies; generated and persisted when missing.",
    )


class SessionConfig(BaseModel):
    cookie_name: str = Field(default="sparkmindz.sid", min_length=1)
    max_age_seconds: int = Field(
        default=60 * 60,
        ge=1,
        description="Inactivity window. Every request carrying the session restarts it.",
    )
    cookie_domain: str | None = Field(
        default=None,
        description="Cookie Domain attribute; only applied in production.",
    )


class CorsConfig(BaseModel):
    allow_origins: list[str] = Field(
        default_factory=list,
        description="Origins allowed to make credentialed requests. Empty disables CORS.",
    )


class PathOverrides(BaseModel):
    logs_dir: str | None = None
    public_dir: str | None = None


class LoggingConfig(BaseModel):
    max_size_mb: int = Field(
        default=10, ge=1, description="Max size of a log file in MB before rolling."
    )
    backup_count: int = Field(default=5, ge=1, description="Number of log archives to keep.")


class CoreConfig(BaseModel):
    version: str = Field(default="1")
    environment: Environment = Field(default="development")
    network: NetworkConfig = Field(default_factory=NetworkConfig)
    paths: PathOverrides = Field(default_factory=PathOverrides)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)
    cors: CorsConfig = Field(default_factory=CorsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


def _read_json(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def load_core_config(paths: SparkMindzPaths) -> CoreConfig:
    """Load config from ${SPARKMINDZ_HOME}/config/core.json.

    - If missing: returns defaults.
    - Validation is performed by Pydantic.
    """

    config_path = paths.core_config_path
    if not config_path.exists():
        return CoreConfig()

    raw = _read_json(config_path)
    return CoreConfig.model_validate(raw)


def write_core_config(paths: SparkMindzPaths, config: CoreConfig) -> None:
    """Persist config to ${SPARKMINDZ_HOME}/config/core.json."""

    payload = config.model_dump(mode="json", exclude_none=True)
    paths.config_dir.mkdir(parents=True, exist_ok=True)
    paths.core_config_path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")


def apply_env_overrides(
    config: CoreConfig, environ: dict[str, str] | None = None
) -> CoreConfig:
    """Layer process environment on top of the file config.

    Recognized: SPARKMINDZ_ENV (falls back to NODE_ENV), SPARKMINDZ_BIND, PORT,
    ADMIN_PASSWORD, SESSION_SECRET. Overrides are never written back to core.json.
    """

    env = os.environ if environ is None else environ
    update: dict[str, Any] = {}

    raw_env = (env.get("SPARKMINDZ_ENV") or env.get("NODE_ENV") or "").strip().lower()
    if raw_env:
        update["environment"] = "production" if raw_env == "production" else "development"

    network_update: dict[str, Any] = {}
    bind = (env.get("SPARKMINDZ_BIND") or "").strip()
    if bind:
        network_update["bind_host"] = bind
    port = (env.get("PORT") or "").strip()
    if port:
        network_update["port"] = int(port)

    auth_update: dict[str, Any] = {}
    if env.get("ADMIN_PASSWORD"):
        auth_update["admin_password"] = env["ADMIN_PASSWORD"]
    if env.get("SESSION_SECRET"):
        auth_update["session_secret"] = env["SESSION_SECRET"]

    merged = config.model_dump()
    merged.update(update)
    merged["network"].update(network_update)
    merged["auth"].update(auth_update)

    updated = CoreConfig.model_validate(merged)
    if updated.is_production and not updated.network.trust_proxy:
        updated = updated.model_copy(
            update={"network": updated.network.model_copy(update={"trust_proxy": True})}
        )
    return updated


def ensure_session_secret(paths: SparkMindzPaths, config: CoreConfig) -> CoreConfig:
    """Ensure a cookie signing secret exists.

    If missing, generate a new one and persist it to core.json so sessions survive
    config reloads. A secret supplied via SESSION_SECRET is used as-is.
    """

    raw = (config.auth.session_secret or "").strip()
    if raw:
        return config

    secret = secrets.token_hex(32)

    stored = load_core_config(paths)
    stored_auth = stored.auth.model_copy(update={"session_secret": secret})
    write_core_config(paths, stored.model_copy(update={"auth": stored_auth}))

    updated_auth = config.auth.model_copy(update={"session_secret": secret})
    return config.model_copy(update={"auth": updated_auth})


def resolve_configured_paths(paths: SparkMindzPaths, config: CoreConfig) -> SparkMindzPaths:
    """Apply user-configurable path overrides from config.

    config/ itself is not configurable.
    """

    def _resolve_dir(raw: str | None, default: Path) -> Path:
        if raw is None or not str(raw).strip():
            return default
        candidate = Path(raw).expanduser()
        if not candidate.is_absolute():
            candidate = (paths.home / candidate).resolve()
        else:
            candidate = candidate.resolve()
        return candidate

    logs_dir = _resolve_dir(config.paths.logs_dir, paths.logs_dir)
    public_dir = _resolve_dir(config.paths.public_dir, paths.public_dir)

    for p in (logs_dir, public_dir):
        p.mkdir(parents=True, exist_ok=True)

    return SparkMindzPaths(
        home=paths.home,
        config_dir=paths.config_dir,
        logs_dir=logs_dir,
        public_dir=public_dir,
    )
