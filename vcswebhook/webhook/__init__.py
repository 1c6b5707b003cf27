"""
Webhook handling module.
"""
from .errors import AuthenticationError, PayloadError, UnsupportedProviderError, WebhookError
from .handler import WebhookHandler
from .models import (
    BranchStatus,
    Commit,
    PullRequestInfo,
    RepositoryDetails,
    TagInfo,
    User,
    VcsProvider,
    WebhookEvent,
    WebhookInfo,
    WebhookOrigin,
    WebhookRequest,
)
from .parser import WebhookParserFactory, parse_incoming_webhook
from .parsers import WebhookParser
from .utils import resolve_branch_status

__all__ = [
    "AuthenticationError",
    "BranchStatus",
    "Commit",
    "PayloadError",
    "PullRequestInfo",
    "RepositoryDetails",
    "TagInfo",
    "UnsupportedProviderError",
    "User",
    "VcsProvider",
    "WebhookError",
    "WebhookEvent",
    "WebhookHandler",
    "WebhookInfo",
    "WebhookOrigin",
    "WebhookParser",
    "WebhookParserFactory",
    "WebhookRequest",
    "parse_incoming_webhook",
    "resolve_branch_status",
]
