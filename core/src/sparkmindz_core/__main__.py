from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler

import uvicorn
from dotenv import load_dotenv

from sparkmindz_core.app import create_app
from sparkmindz_core.config import apply_env_overrides, load_core_config, resolve_configured_paths
from sparkmindz_core.home import ensure_sparkmindz_layout, resolve_sparkmindz_home


def main() -> None:
    # .env in the working directory fills in ADMIN_PASSWORD, SESSION_SECRET, PORT, ...
    load_dotenv()

    home = resolve_sparkmindz_home()
    paths = ensure_sparkmindz_layout(home)

    config = apply_env_overrides(load_core_config(paths))
    paths = resolve_configured_paths(paths, config)

    # Configure logging
    log_file = paths.logs_dir / "core.log"
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            RotatingFileHandler(
                log_file,
                maxBytes=config.logging.max_size_mb * 1024 * 1024,
                backupCount=config.logging.backup_count,
                encoding="utf-8",
            ),
            logging.StreamHandler(),
        ],
    )

    logger = logging.getLogger("sparkmindz_core")
    logger.info("Environment: %s", config.environment)
    logger.info("Port: %s", config.network.port)

    uvicorn.run(
        create_app(),
        host=config.network.bind_host,
        port=config.network.port,
        proxy_headers=config.network.trust_proxy,
    )


if __name__ == "__main__":
    main()
