#!/usr/bin/env python3
import logging
import os

import uvicorn

from fxengine.core.config import settings
from fxengine.core.logging import setup_logging


setup_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)
logger = logging.getLogger("run_server")


def get_ssl_params() -> dict:
    key = settings.SSL_KEYFILE
    cert = settings.SSL_CERTFILE
    if not (key and cert and os.path.exists(key) and os.path.exists(cert)):
        logger.warning("Iniciando en HTTP (sin certificados SSL encontrados).")
        return {}
    logger.info("Usando certificados SSL para HTTPS.")
    return {"ssl_keyfile": key, "ssl_certfile": cert}


def main() -> None:
    params = get_ssl_params()
    protocolo = "https" if params else "http"

    logger.info(
        f"Iniciando servidor en {protocolo}://{settings.HTTP_HOST}:{settings.HTTP_PORT} "
        f"(provider={settings.EXCHANGE_PROVIDER})"
    )
    uvicorn.run(
        "fxengine.main:app",
        host=settings.HTTP_HOST,
        port=settings.HTTP_PORT,
        reload=settings.ENVIRONMENT == "development",
        log_level=settings.LOG_LEVEL.lower(),
        **params,
    )


if __name__ == "__main__":
    main()
