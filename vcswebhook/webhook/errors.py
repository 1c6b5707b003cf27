"""
Errors raised while authenticating and parsing webhooks.
"""


class WebhookError(Exception):
    """Base class for webhook parsing errors."""


class AuthenticationError(WebhookError):
    """The request signature or token does not match the configured secret."""


class PayloadError(WebhookError):
    """The request body or headers cannot be decoded."""


class UnsupportedProviderError(WebhookError):
    """No parser exists for the requested VCS provider."""
