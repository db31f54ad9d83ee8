"""Base class for async HTTP clients."""

import logging
import httpx

from ..application.exceptions import ConfigurationError


class BaseClient:
    """A base client that handles an async client and endpoint configuration."""

    def __init__(self, client: httpx.AsyncClient, base_url: str, user_agent: str):
        """
        Initializes the base client.

        Args:
            client: An instance of httpx.AsyncClient.
            base_url: Root URL of the service, without a trailing slash.
            user_agent: Value sent in the User-Agent header.

        Raises:
            ConfigurationError: If the URL is not http(s) or the user agent
                                is missing.
        """

        if not base_url or not base_url.startswith(("http://", "https://")):
            raise ConfigurationError(
                f"Base URL {base_url!r} for {self.__class__.__name__} is not "
                f"an http(s) URL. Please check your config files."
            )
        if not user_agent:
            raise ConfigurationError(
                f"User agent for {self.__class__.__name__} is missing. "
                f"Please check your config files."
            )

        self.client = client
        self.base_url = base_url.rstrip("/")
        self.headers = {
            "User-Agent": user_agent,
            "Accept-Encoding": "gzip",
        }
        self.logger = logging.getLogger(self.__class__.__name__)
