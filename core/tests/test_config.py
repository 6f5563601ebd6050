from __future__ import annotations

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from sparkmindz_core.config import (
    CoreConfig,
    apply_env_overrides,
    ensure_session_secret,
    load_core_config,
    resolve_configured_paths,
)
from sparkmindz_core.home import ensure_sparkmindz_layout


def test_load_core_config_defaults_when_missing(tmp_path: Path) -> None:
    paths = ensure_sparkmindz_layout(tmp_path)
    cfg = load_core_config(paths)
    assert isinstance(cfg, CoreConfig)
    assert cfg.environment == "development"
    assert cfg.network.port == 3000
    assert cfg.session.cookie_name == "sparkmindz.sid"
    assert cfg.session.max_age_seconds == 3600
    assert cfg.auth.admin_password is None


def test_load_core_config_validation_error(tmp_path: Path) -> None:
    paths = ensure_sparkmindz_layout(tmp_path)

    paths.core_config_path.write_text(
        json.dumps({"session": {"max_age_seconds": "not-an-int"}}),
        encoding="utf-8",
    )

    with pytest.raises(ValidationError):
        load_core_config(paths)


def test_apply_env_overrides() -> None:
    cfg = apply_env_overrides(
        CoreConfig(),
        {
            "NODE_ENV": "production",
            "PORT": "8080",
            "ADMIN_PASSWORD": "s3cret",
            "SESSION_SECRET": "signing-key",
        },
    )
    assert cfg.is_production
    assert cfg.network.port == 8080
    assert cfg.network.trust_proxy is True
    assert cfg.auth.admin_password == "s3cret"
    assert cfg.auth.session_secret == "signing-key"


def test_sparkmindz_env_wins_over_node_env() -> None:
    cfg = apply_env_overrides(
        CoreConfig(), {"SPARKMINDZ_ENV": "development", "NODE_ENV": "production"}
    )
    assert cfg.environment == "development"
    assert cfg.network.trust_proxy is False


def test_unknown_environment_falls_back_to_development() -> None:
    cfg = apply_env_overrides(CoreConfig(environment="production"), {"NODE_ENV": "staging"})
    assert cfg.environment == "development"


def test_ensure_session_secret_persists_without_env_values(tmp_path: Path) -> None:
    paths = ensure_sparkmindz_layout(tmp_path)
    cfg = apply_env_overrides(CoreConfig(), {"ADMIN_PASSWORD": "s3cret"})

    updated = ensure_session_secret(paths, cfg)
    assert updated.auth.session_secret
    assert updated.auth.admin_password == "s3cret"

    stored = json.loads(paths.core_config_path.read_text(encoding="utf-8"))
    assert stored["auth"]["session_secret"] == updated.auth.session_secret
    assert "admin_password" not in stored["auth"]

    # A second call keeps the existing secret.
    again = ensure_session_secret(paths, load_core_config(paths))
    assert again.auth.session_secret == updated.auth.session_secret


def test_resolve_configured_paths_creates_overrides(tmp_path: Path) -> None:
    paths = ensure_sparkmindz_layout(tmp_path)

    cfg = CoreConfig.model_validate(
        {
            "paths": {
                "logs_dir": "custom_logs",
                "public_dir": "site",
            }
        }
    )

    resolved = resolve_configured_paths(paths, cfg)
    assert resolved.logs_dir.is_dir()
    assert resolved.public_dir.is_dir()

    # Overrides are resolved relative to SPARKMINDZ_HOME by default.
    assert resolved.logs_dir == (tmp_path / "custom_logs").resolve()
    assert resolved.public_dir == (tmp_path / "site").resolve()

    # config/ is not configurable.
    assert resolved.config_dir == paths.config_dir
