"""HTTP implementation of the RangeSource port."""

import asyncio
from typing import List, Optional

import httpx

from ..application.domain import HashRecord, RangeSource
from ..application.exceptions import FetchCancelled, RangeQueryError
from ..application.shutdown import ShutdownController

from .base_client import BaseClient
from .decorators import retry_on_range_error
from .parser import parse_range_response

_RANGE_ENDPOINT = "/range/"


class HttpRangeSource(BaseClient, RangeSource):
    """A range source that queries the Pwned Passwords API over HTTP."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str,
        user_agent: str,
        timeout: float,
        shutdown: ShutdownController,
        retry_wait_seconds: float = 0,
        retry_max_attempts: Optional[int] = None,
    ):
        """Initializes the range source adapter."""
        super().__init__(client, base_url, user_agent)
        self.endpoint = self.base_url + _RANGE_ENDPOINT
        self.timeout = timeout
        self.shutdown = shutdown
        self._fetch_with_retry = retry_on_range_error(
            wait_seconds=retry_wait_seconds,
            max_attempts=retry_max_attempts or None,
        )(self._fetch_once)

    async def _execute_fetch(self, prefix: str) -> httpx.Response:
        """Executes the raw HTTP GET request."""
        try:
            return await self.client.get(
                self.endpoint + prefix,
                headers=self.headers,
                timeout=self.timeout,
            )
        except httpx.RequestError as e:
            raise RangeQueryError(
                f"No response for {prefix}: {type(e).__name__} {e}"
            ) from e

    async def _fetch_once(self, prefix: str) -> str:
        """One attempt at a range query, refused once a stop is requested."""
        if self.shutdown.is_set():
            raise FetchCancelled(prefix)

        response = await self._execute_fetch(prefix)
        if response.status_code != 200:
            raise RangeQueryError(
                f"HTTP status code = {response.status_code} for {prefix}"
            )
        return response.text

    async def get_range(self, prefix: str) -> List[HashRecord]:
        """
        Fetches and parses every record sharing the given prefix.

        This method serves as the public contract fulfillment for the
        RangeSource port. Failed attempts are retried on the same prefix.

        Args:
            prefix: A 5-hex-character digest prefix.

        Returns:
            The records of the response, in response order.

        Raises:
            FetchCancelled: If a shutdown was requested before an attempt.
            RangeQueryError: If a retry limit is configured and exhausted.
        """

        body = await self._fetch_with_retry(prefix)
        records = await asyncio.to_thread(parse_range_response, prefix, body)

        if records:
            self.logger.debug(f"{records[0]} (+{len(records) - 1} more)")

        return records
