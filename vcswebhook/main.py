"""
VCS webhook relay - main application entry point.
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from .config import settings
from .logger import logger
from .webhook import VcsProvider, WebhookHandler, WebhookInfo


webhook_handler = WebhookHandler()


async def log_webhook(info: WebhookInfo):
    """Log every parsed webhook event."""
    repository = info.target_repository_details
    logger.info(f"Received {info.event.value} event: {repository.owner}/{repository.name}")


webhook_handler.on_webhook(log_webhook)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Warn at startup about providers whose webhooks are accepted unsigned."""
    for provider in VcsProvider:
        origin = settings.origin_for(provider)
        if not origin.secret:
            logger.warning(f"No webhook secret configured for {provider.display_name}, signatures are not verified")
    logger.info(f"{settings.app_name} {settings.app_version} ready")

    yield

    logger.info("Shutting down")


app = FastAPI(
    title=settings.app_name,
    description="Normalizes VCS provider webhooks into one event model",
    version=settings.app_version,
    lifespan=lifespan,
    debug=settings.debug
)


# One route per provider; the origin is rebuilt from settings on every call
@app.post("/webhook/github")
async def github_webhook(request: Request):
    """GitHub webhook endpoint."""
    return await webhook_handler.handle_webhook(request, settings.origin_for(VcsProvider.GITHUB))


@app.post("/webhook/gitlab")
async def gitlab_webhook(request: Request):
    """GitLab webhook endpoint."""
    return await webhook_handler.handle_webhook(request, settings.origin_for(VcsProvider.GITLAB))


@app.post("/webhook/bitbucket-server")
async def bitbucket_server_webhook(request: Request):
    """Bitbucket Server webhook endpoint."""
    return await webhook_handler.handle_webhook(request, settings.origin_for(VcsProvider.BITBUCKET_SERVER))


@app.post("/webhook/bitbucket-cloud")
async def bitbucket_cloud_webhook(request: Request):
    """Bitbucket Cloud webhook endpoint."""
    return await webhook_handler.handle_webhook(request, settings.origin_for(VcsProvider.BITBUCKET_CLOUD))


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "app": settings.app_name,
        "version": settings.app_version,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "vcswebhook.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level="debug" if settings.debug else "info"
    )
