"""FastAPI application for the webhook receiver.

Routes:
    GET  /health   liveness status (public)
    POST /webhook  signed webhooks (signature-verified)
    GET  /         service info (non-production only)
"""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from webhook_receiver import __version__
from webhook_receiver.config import Settings
from webhook_receiver.webhooks.handlers import register_webhook_routes
from webhook_receiver.webhooks.processor import EventSink, Processor
from webhook_receiver.webhooks.timestamps import format_rfc3339, utcnow
from webhook_receiver.webhooks.verification import SignatureVerifier

logger = logging.getLogger(__name__)

SERVICE_NAME = "webhook-receiver"

_CORS_HEADERS = [
    "Origin",
    "Content-Type",
    "Content-Length",
    "Accept-Encoding",
    "X-CSRF-Token",
    "Authorization",
    "X-Webhook-Signature",
    "X-Webhook-Timestamp",
    "X-Webhook-ID",
    "X-Idempotency-Key",
]


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(settings: Settings | None = None, sink: EventSink | None = None) -> FastAPI:
    """Build the app. The shared secret is read once here and injected."""
    settings = settings or Settings()

    app = FastAPI(title="Webhook Receiver", version=__version__)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=_CORS_HEADERS,
    )

    verifier = SignatureVerifier(
        settings.resolved_secret(),
        tolerance_seconds=settings.webhook_timestamp_tolerance,
    )
    register_webhook_routes(app, verifier, Processor(sink))

    @app.get("/health")
    async def health():
        return {"status": "healthy", "timestamp": format_rfc3339(utcnow()), "service": SERVICE_NAME}

    if not settings.is_production:

        @app.get("/")
        async def service_info():
            return {
                "service": "Webhook Receiver",
                "version": __version__,
                "endpoints": {
                    "health": "GET /health",
                    "webhook": "POST /webhook (requires signature verification)",
                },
            }

    return app


def main() -> None:
    import uvicorn

    settings = Settings()
    configure_logging(settings.log_level)
    logger.info("Webhook Receiver starting on %s:%d", settings.host, settings.port)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
