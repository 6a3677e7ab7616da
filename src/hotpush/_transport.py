"""HTTP transport for the remote version manifest."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from hotpush._constants import REQUEST_TIMEOUT, USER_AGENT
from hotpush._redact import redact_for_log
from hotpush.exceptions import HotPushTransportError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by the version resolver.

    Having a protocol here makes it easy to pass test doubles while
    keeping the production implementation (`HttpTransport`) concrete.
    """

    async def get_json(self, url: str, headers: Mapping[str, str] | None = None) -> Any:
        ...


class HttpTransport:
    """Fetch JSON documents over HTTP with an aiohttp session."""

    def __init__(
        self,
        http_session: aiohttp.ClientSession,
        *,
        timeout: float = REQUEST_TIMEOUT,
    ) -> None:
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def get_json(self, url: str, headers: Mapping[str, str] | None = None) -> Any:
        """GET *url* and decode the JSON body.

        Any status in the 2xx-3xx range is a success.

        Raises
        ------
        HotPushTransportError
            Network failure, a status outside 2xx-3xx, or a body that is
            not text or not JSON.
        """
        request_headers: dict[str, str] = {
            "accept": "application/json",
            "cache-control": "no-cache",
            "user-agent": USER_AGENT,
        }
        if headers:
            request_headers.update(headers)

        _logger.debug("GET %s headers=%s", url, redact_for_log(request_headers))

        try:
            async with self._http.get(url, headers=request_headers, timeout=self._timeout) as resp:
                text = await resp.text()
                if not 200 <= resp.status < 400:
                    raise HotPushTransportError(
                        f"HTTP {resp.status} from {url}: {text[:200]}",
                        status_code=resp.status,
                        url=url,
                    )
        except HotPushTransportError:
            raise
        except UnicodeDecodeError as exc:
            raise HotPushTransportError(
                f"Undecodable body from {url}: {exc.reason}",
                status_code=resp.status,
                url=url,
            ) from exc
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise HotPushTransportError(
                f"Request to {url} failed: {exc}",
                url=url,
            ) from exc

        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise HotPushTransportError(
                f"Invalid JSON from {url}: {text[:200]}",
                status_code=resp.status,
                url=url,
            ) from exc
