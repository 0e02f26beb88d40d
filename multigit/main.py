"""
Main entry point for the multigit backend.
"""

import logging
from typing import Optional

import uvicorn

from .config import load_config, database_options
from .persistence import DatabaseFactory
from .api.rest_api import MultigitRestAPI


logger = logging.getLogger(__name__)


class MultigitPlatform:
    """Wires configuration, storage and the REST API together."""

    def __init__(self, config: Optional[dict] = None):
        self._config = config or load_config()
        self._database = None
        self._rest_api = None

        self._initialize_platform()

    @property
    def app(self):
        return self._rest_api.app

    def _initialize_platform(self):
        """Initialize storage and the API."""
        db_type = self._config['database_type']
        self._database = DatabaseFactory.create_database(db_type, **database_options(self._config))
        logger.info("Database initialized: %s", db_type)

        self._rest_api = MultigitRestAPI(self._database, cors_origin=self._config['cors_origin'])
        logger.info("REST API initialized (CORS origin %s)", self._config['cors_origin'])

    def start_rest_server(self):
        """Serve the REST API until interrupted."""
        host = self._config['host']
        port = self._config['port']
        logger.info("Server is running on port %s", port)
        uvicorn.run(
            self._rest_api.app,
            host=host,
            port=port,
            log_level=self._config['log_level'].lower()
        )

    def stop_platform(self):
        if self._database is not None:
            self._database.close()
            self._database = None
            logger.info("Database connection closed")


def main():
    """Main entry point."""
    import argparse

    parser = argparse.ArgumentParser(description="Multi-Git Dashboard backend")
    parser.add_argument("--port", type=int, help="REST server port")
    parser.add_argument("--config", type=str, help="Configuration file path")

    args = parser.parse_args()

    config = load_config(args.config)
    if args.port:
        config['port'] = args.port

    logging.basicConfig(
        level=config['log_level'].upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    platform = MultigitPlatform(config)
    try:
        platform.start_rest_server()
    finally:
        platform.stop_platform()


if __name__ == "__main__":
    main()
