"""Webhook server for receiving GitHub App deliveries."""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import TYPE_CHECKING

from aiohttp import web
from pydantic import ValidationError

from templatizer.entities.events import PushEvent
from templatizer.exceptions import CredentialError, StoreError
from templatizer.sync.planner import DeliveryState, IgnoreReason, PlanOutcome

if TYPE_CHECKING:
    from templatizer.auth.credentials import CredentialManager
    from templatizer.sync.executor import PlanExecutor
    from templatizer.sync.planner import PropagationPlanner

logger = logging.getLogger(__name__)

# Configure logging to stderr
if not logger.handlers:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)

WEBHOOK_ROUTES = ("/webhook", "/GitHub/webhook")


class WebhookServer:
    """HTTP server for GitHub App webhook deliveries.

    Every delivery is signature-checked against the ``X-Hub-Signature``
    header before anything else. ``push`` events go to the planner and
    emitted plans to the executor; other event types are acknowledged and
    ignored.
    """

    def __init__(
        self,
        credentials: CredentialManager,
        planner: PropagationPlanner,
        executor: PlanExecutor,
        host: str = "0.0.0.0",
        port: int = 8080,
    ) -> None:
        """Initialize webhook server.

        Args:
            credentials: Verifies delivery signatures.
            planner: Plans propagation for push events.
            executor: Receives emitted plans.
            host: Interface to bind.
            port: Port to bind.
        """
        self._credentials = credentials
        self._planner = planner
        self._executor = executor
        self._host = host
        self._port = port
        self._app: web.Application | None = None
        self._runner: web.AppRunner | None = None
        self._site: web.TCPSite | None = None

    async def process_delivery(self, event_type: str, signature: str | None, payload: bytes) -> PlanOutcome:
        """Run one delivery through signature check, classification and planning.

        Raises:
            CredentialError: If the webhook secret cannot be read.
            ValidationError: If a push payload cannot be parsed.
            StoreError: If the config store fails during planning.
        """
        if not await self._credentials.validate_signature(signature, payload):
            return PlanOutcome(state=DeliveryState.REJECTED)

        if event_type != "push":
            logger.debug("Ignoring non-push event: %s", event_type)
            return PlanOutcome.ignored(IgnoreReason.NOT_PUSH, DeliveryState.SIGNATURE_CHECKED)

        event = PushEvent.model_validate_json(payload)
        logger.info(
            "Received push to %s (%s, %d commit(s))",
            event.repository.full_name,
            event.ref,
            len(event.commits),
        )
        outcome = await self._planner.handle_push(event)

        if outcome.plan is not None:
            try:
                await self._executor.execute(outcome.plan)
            except Exception:
                logger.exception("Plan execution failed for %s", event.repository.full_name)
        return outcome

    async def _handle_webhook(self, request: web.Request) -> web.Response:
        """Handle incoming webhook request."""
        try:
            payload = await request.read()
        except Exception:
            logger.exception("Failed to read webhook payload")
            return web.Response(text="Bad Request", status=400)

        event_type = request.headers.get("X-GitHub-Event", "")
        signature = request.headers.get("X-Hub-Signature")

        try:
            outcome = await self.process_delivery(event_type, signature, payload)
        except ValidationError:
            logger.warning("Failed to parse %s payload", event_type)
            return web.Response(text="Bad Request", status=400)
        except CredentialError as e:
            logger.error("Cannot verify webhook delivery: %s", e)
            return web.Response(text="Internal Server Error", status=500)
        except StoreError:
            logger.exception("Config store failure while planning %s delivery", event_type)
            return web.Response(text="Internal Server Error", status=500)

        if outcome.state == DeliveryState.REJECTED:
            logger.warning("Webhook signature verification failed")
            return web.Response(text="Forbidden", status=403)

        return web.Response(text="OK", status=200)

    async def _handle_health(self, _request: web.Request) -> web.Response:
        """Health check endpoint."""
        return web.Response(text="OK", status=200)

    def build_app(self) -> web.Application:
        """Create the aiohttp application with its routes."""
        app = web.Application()
        for route in WEBHOOK_ROUTES:
            app.router.add_post(route, self._handle_webhook)
        app.router.add_get("/health", self._handle_health)
        return app

    async def start(self) -> None:
        """Start the webhook server."""
        self._app = self.build_app()

        self._runner = web.AppRunner(self._app)
        await self._runner.setup()

        self._site = web.TCPSite(self._runner, self._host, self._port)
        await self._site.start()

        logger.info("Webhook server started on %s:%d", self._host, self._port)

    async def stop(self) -> None:
        """Stop the webhook server."""
        if self._site:
            await self._site.stop()
        if self._runner:
            await self._runner.cleanup()

        logger.info("Webhook server stopped")

    async def run_forever(self) -> None:
        """Start server and run until cancelled."""
        await self.start()
        try:
            while True:
                await asyncio.sleep(3600)
        except asyncio.CancelledError:
            await self.stop()
