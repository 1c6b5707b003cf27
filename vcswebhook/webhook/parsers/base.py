"""
Base class of the provider webhook parsers.
"""
import logging
from abc import ABC, abstractmethod
from typing import Optional, TypeVar

from pydantic import BaseModel, ValidationError
from starlette.datastructures import Headers

from ..errors import PayloadError
from ..models import VcsProvider, WebhookInfo, WebhookRequest

logger = logging.getLogger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)


class WebhookParser(ABC):
    """
    Authenticates and normalizes the webhooks of one VCS provider.

    Parsing is a two step contract: ``authenticate`` buffers the body and
    verifies it against the shared secret, then ``extract`` turns the
    buffered payload into a WebhookInfo.
    """

    provider: VcsProvider
    # Header carrying the provider's event type
    event_header: str

    def __init__(self, endpoint: str = "", secret: str = ""):
        self.endpoint = endpoint.rstrip("/")
        self.secret = secret

    @abstractmethod
    def authenticate(self, request: WebhookRequest) -> bytes:
        """
        Read the request body and verify it.

        Returns:
            The payload to hand to ``extract``

        Raises:
            AuthenticationError: If the signature or token does not match
            PayloadError: If the body cannot be read
        """

    @abstractmethod
    def extract(self, payload: bytes, headers: Headers) -> Optional[WebhookInfo]:
        """
        Parse an authenticated payload.

        Returns:
            The unified event, or None for events and actions that are not supported

        Raises:
            PayloadError: If the payload cannot be decoded
        """

    def read_body(self, request: WebhookRequest) -> bytes:
        if request.body is None:
            return b""
        try:
            return request.body.read()
        except OSError as e:
            raise PayloadError(f"error reading request body: {e}") from e

    def event_type(self, headers: Headers) -> str:
        event_type = headers.get(self.event_header, "")
        if not event_type:
            raise PayloadError(f"{self.event_header} header is missing")
        return event_type

    def decode(self, schema: type[SchemaT], payload: bytes) -> SchemaT:
        try:
            return schema.model_validate_json(payload)
        except ValidationError as e:
            raise PayloadError(f"error decoding {self.provider.display_name} payload: {e}") from e

    def ignore(self, reason: str) -> None:
        logger.debug(f"Ignoring {self.provider.display_name} webhook: {reason}")
        return None
