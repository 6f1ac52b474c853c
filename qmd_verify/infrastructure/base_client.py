"""Base class for HTTP clients of the qmd-check server."""

import logging
from typing import Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from ..application.exceptions import (
    ConfigurationError,
    ProtocolError,
    ServerError,
    TransportError,
)

from .api_models import ErrorResponse

M = TypeVar("M", bound=BaseModel)


class BaseClient:
    """A base client that handles the HTTP client and server address."""

    def __init__(self, client: httpx.Client, base_url: str):
        """
        Initializes the base client.

        Args:
            client: An instance of httpx.Client.
            base_url: The server address, without a trailing slash.

        Raises:
            ConfigurationError: If the address is missing or is not an
                                http(s) URL.
        """

        if not base_url or not base_url.startswith(("http://", "https://")):
            raise ConfigurationError(
                f"Server address for {self.__class__.__name__} is missing "
                f"or invalid: {base_url!r}. Set QMDVERIFY_HOST."
            )

        self.client = client
        self.base_url = base_url
        self.logger = logging.getLogger(self.__class__.__name__)

    def _url(self, path: str) -> str:
        return self.base_url + path

    def _send(self, method: str, path: str, **kwargs) -> httpx.Response:
        """Sends a request, mapping connection failures to TransportError."""
        try:
            return self.client.request(method, self._url(path), **kwargs)
        except httpx.HTTPError as e:
            raise TransportError(f"failed to send request: {e}") from e

    def _raise_for_status(self, response: httpx.Response):
        """
        Raises for any status other than 200 OK.

        A decodable error body becomes a ServerError carrying its message;
        anything else becomes a TransportError naming the status code.
        """

        if response.status_code == httpx.codes.OK:
            return

        try:
            error = ErrorResponse.model_validate_json(response.content)
        except ValidationError:
            raise TransportError(
                f"server returned status {response.status_code}"
            ) from None

        raise ServerError(f"server error: {error.error}")

    def _get_model(self, path: str, model: Type[M]) -> M:
        """Performs a GET and validates the body against ``model``."""
        response = self._send("GET", path)
        self._raise_for_status(response)
        try:
            return model.model_validate_json(response.content)
        except ValidationError as e:
            raise ProtocolError(f"failed to decode response: {e}") from e
