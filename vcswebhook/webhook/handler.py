"""
Webhook request handler.
"""
import io
import logging
from typing import Awaitable, Callable

from fastapi import HTTPException, Request, status

from .errors import AuthenticationError, PayloadError, UnsupportedProviderError
from .models import WebhookInfo, WebhookOrigin, WebhookRequest
from .parser import parse_incoming_webhook

logger = logging.getLogger(__name__)


class WebhookHandler:
    """Handles incoming webhook requests."""

    def __init__(self):
        self._event_callbacks: list[Callable[[WebhookInfo], Awaitable[None]]] = []

    def on_webhook(self, callback: Callable[[WebhookInfo], Awaitable[None]]):
        """Register callback for parsed webhook events."""
        self._event_callbacks.append(callback)

    async def handle_webhook(self, request: Request, origin: WebhookOrigin) -> dict:
        """
        Handle incoming webhook request.

        Args:
            request: FastAPI request object
            origin: Provider, URL and secret the request is checked against

        Returns:
            Response dict

        Raises:
            HTTPException: If verification fails or parsing fails
        """
        # The whole body is needed before the signature can be checked
        body = await request.body()
        webhook_request = WebhookRequest(
            body=io.BytesIO(body),
            headers=request.headers,
            query_params=request.query_params,
        )

        try:
            info = parse_incoming_webhook(origin, webhook_request)
        except AuthenticationError as e:
            logger.warning(f"Rejected {origin.provider.display_name} webhook: {e}")
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e)) from e
        except PayloadError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
        except UnsupportedProviderError as e:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e

        if info is None:
            return {"status": "ignored", "reason": "unsupported event"}

        for callback in self._event_callbacks:
            try:
                await callback(info)
            except Exception as e:
                # Log error but don't fail the webhook
                logger.error(f"Error in webhook callback: {e}", exc_info=True)

        return {"status": "success", "event": info.to_wire()}
