from typing import Protocol

import httpx

from carbone_sdk.services.http import CarboneHttpClient


class StatusGateway(Protocol):
    """
    Service health capability.

    Returns an open, unread response; the caller must close it.
    """

    def get_status(self) -> httpx.Response:
        ...


class CarboneStatusClient:
    """HTTP implementation of StatusGateway (GET /status)."""

    def __init__(self, http: CarboneHttpClient) -> None:
        self._http = http

    def get_status(self) -> httpx.Response:
        return self._http.stream("GET", "/status")
