"""
Parser selection and the webhook parsing entry point.
"""
import logging
from typing import Optional

from .errors import UnsupportedProviderError
from .models import VcsProvider, WebhookInfo, WebhookOrigin, WebhookRequest
from .parsers import (
    BitbucketCloudWebhookParser,
    BitbucketServerWebhookParser,
    GitHubWebhookParser,
    GitLabWebhookParser,
    WebhookParser,
)

logger = logging.getLogger(__name__)


class WebhookParserFactory:
    """Factory for creating webhook parsers."""

    _parsers: dict[VcsProvider, type[WebhookParser]] = {
        VcsProvider.GITHUB: GitHubWebhookParser,
        VcsProvider.GITLAB: GitLabWebhookParser,
        VcsProvider.BITBUCKET_SERVER: BitbucketServerWebhookParser,
        VcsProvider.BITBUCKET_CLOUD: BitbucketCloudWebhookParser,
    }

    @classmethod
    def create(cls, origin: WebhookOrigin) -> Optional[WebhookParser]:
        """Create the parser for the origin's provider, or None if it is not supported."""
        parser_class = cls._parsers.get(origin.provider)
        if not parser_class:
            return None
        logger.debug(f"Using {parser_class.__name__} for {origin.provider}")
        return parser_class(endpoint=origin.origin_url, secret=origin.secret)


def parse_incoming_webhook(origin: WebhookOrigin, request: WebhookRequest) -> Optional[WebhookInfo]:
    """
    Authenticate and parse one incoming webhook request.

    The request body is closed once parsing is over, whatever the outcome.

    Args:
        origin: Provider, URL and shared secret of the hook
        request: The received request

    Returns:
        The unified event, or None when the event or action is not supported

    Raises:
        UnsupportedProviderError: If no parser exists for the provider
        AuthenticationError: If the signature or token does not match
        PayloadError: If the payload cannot be read or decoded
    """
    try:
        parser = WebhookParserFactory.create(origin)
        if parser is None:
            raise UnsupportedProviderError(f"Unsupported provider: {origin.provider}")
        payload = parser.authenticate(request)
        return parser.extract(payload, request.headers)
    finally:
        _close_body(request)


def _close_body(request: WebhookRequest) -> None:
    if request.body is None:
        return
    try:
        request.body.close()
    except Exception as e:
        # Must not mask the parse result or the error being propagated
        logger.warning(f"Error when closing HTTP request body: {e}")
