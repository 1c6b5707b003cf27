"""
Webhook parsers, one per VCS provider.
"""
from .base import WebhookParser
from .bitbucket_cloud import BitbucketCloudWebhookParser
from .bitbucket_server import BitbucketServerWebhookParser
from .github import GitHubWebhookParser
from .gitlab import GitLabWebhookParser

__all__ = [
    "WebhookParser",
    "GitHubWebhookParser",
    "GitLabWebhookParser",
    "BitbucketServerWebhookParser",
    "BitbucketCloudWebhookParser",
]
