from contextlib import asynccontextmanager
from typing import Optional
import logging

import uvicorn
from fastapi import FastAPI

from .config import ProxyConfig, load_config
from .odata.router import router as odata_router
from .odata.schema import get_transaction_entity

logger = logging.getLogger(__name__)


def create_app(config: Optional[ProxyConfig] = None) -> FastAPI:
    """
    Build the OData proxy application.

    The configuration is fixed at construction time and exposed to handlers
    through app.state.config; nothing reads the environment per request.
    """
    config = config or load_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Application startup/shutdown.

        Validates the entity declaration and reports the effective
        configuration.
        """
        entity = get_transaction_entity()
        logger.info(
            "Serving %s (%d columns) from upstream %s (timeout=%ss, strict=%s)",
            entity.entity_set,
            len(entity.columns),
            config.upstream_url,
            config.upstream_timeout,
            config.strict,
        )
        if not config.upstream_url:
            logger.warning("SOURCE_API not set; data requests will fail until it is configured.")
        if not config.auth_enabled:
            logger.warning("ODATA_USER/ODATA_PASS not set; /odata endpoints are served without authentication.")

        yield
        # no explicit shutdown logic yet

    app = FastAPI(title="transactions-odata-proxy", lifespan=lifespan)
    app.state.config = config

    # OData routes
    app.include_router(odata_router)
    return app


app = create_app()


def run() -> None:
    """Console entry point: serve on $PORT until the process is stopped."""
    config = app.state.config
    logging.basicConfig(level=config.log_level)
    logger.info("OData service running on port %s", config.port)
    uvicorn.run(app, host="0.0.0.0", port=config.port, log_level=config.log_level.lower())


if __name__ == "__main__":
    run()
