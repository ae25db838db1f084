from __future__ import annotations

import logging
import os

import uvicorn

from .envs.escrow_env import get_settings

logger = logging.getLogger(__name__)


def _setup_prometheus_multiproc_dir() -> None:
    """Prepare the Prometheus multiprocess directory before Uvicorn forks workers.

    This ensures each process writes to a clean directory so metrics can be
    correctly aggregated by the multiprocess collector.
    """
    prom_dir = os.environ.get("PROMETHEUS_MULTIPROC_DIR")
    if not prom_dir:
        return

    os.makedirs(prom_dir, exist_ok=True)
    for filename in os.listdir(prom_dir):
        file_path = os.path.join(prom_dir, filename)
        if os.path.isfile(file_path):
            os.remove(file_path)


def main() -> None:
    """Main entry point for the escrow daemon."""

    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    logger.info("Starting %s v%s", settings.app_name, settings.app_version)
    logger.info("Channel storage: %s", settings.database_url)
    logger.info(
        "API will be available at: http://%s:%s", settings.api_host, settings.api_port
    )

    # If debug/reload is enabled, force a single worker (Uvicorn doesn't support
    # multi-worker with reload).
    reload = settings.api_debug
    workers = 1 if reload else settings.api_workers

    _setup_prometheus_multiproc_dir()

    uvicorn.run(
        "nanoescrow.api.escrow_api.app:create_app",
        factory=True,
        host=settings.api_host,
        port=settings.api_port,
        reload=reload,
        workers=workers,
        log_level=settings.log_level,
        ssl_certfile=settings.ssl_cert or None,
        ssl_keyfile=settings.ssl_key or None,
    )


if __name__ == "__main__":
    main()
