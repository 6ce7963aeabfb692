"""Lentos entrypoint.

Run with:
  python -m lentos
"""

import logging

import uvicorn

from lentos.config import Settings
from lentos.logging import configure_logging

logger = logging.getLogger(__name__)


def main() -> None:
    settings = Settings()
    configure_logging(settings.LOG_LEVEL)
    if settings.tls_enabled:
        logger.info("Serving HTTPS on %s:%s", settings.HOST, settings.HTTPS_PORT)
        uvicorn.run(
            "lentos.main:app",
            host=settings.HOST,
            port=settings.HTTPS_PORT,
            ssl_certfile=settings.TLS_CERT_FILE,
            ssl_keyfile=settings.TLS_KEY_FILE,
        )
    else:
        logger.warning("TLS_CERT_FILE/TLS_KEY_FILE not set, serving plain HTTP")
        uvicorn.run("lentos.main:app", host=settings.HOST, port=settings.HTTP_PORT)


if __name__ == "__main__":
    main()
