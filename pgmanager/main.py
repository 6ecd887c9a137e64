"""Main application entry point."""

import logging

import uvicorn

from pgmanager.services import init_db
from pgmanager.services.config import load_config
from pgmanager.services.logging import setup_server_logging

logger = logging.getLogger(__name__)


def main():
    """Run the API server."""
    import argparse

    config = load_config()

    parser = argparse.ArgumentParser(description="PG Manager API server")
    parser.add_argument("--host", default=config.api_host, help="Host to bind to")
    parser.add_argument("--port", type=int, default=config.api_port, help="Port to bind to")
    args = parser.parse_args()

    setup_server_logging(config.log_file, config.log_level)

    # Tables are created on first start; existing tables are left alone
    init_db()

    logger.info("Starting Uvicorn server on %s:%d...", args.host, args.port)
    uvicorn.run(
        "pgmanager.api.app:app",
        host=args.host,
        port=args.port,
        log_level=config.log_level.lower(),
        # Keep the handlers installed by setup_server_logging
        log_config=None,
    )


if __name__ == "__main__":
    main()
