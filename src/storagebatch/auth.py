from __future__ import annotations

from collections.abc import Callable, Generator
from email.utils import formatdate

import httpx

from .errors import AuthError


class BearerTokenAuth(httpx.Auth):
    """Attach an OAuth bearer token and ``x-ms-date`` to a storage request.

    Used for the outer batch request and for every embedded sub-request, each
    of which the service authorizes on its own.
    """

    def __init__(self, token_getter: Callable[[], str]) -> None:
        self._token_getter = token_getter

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        token = self._token_getter()
        if not token:
            raise AuthError("Token getter returned an empty access token")
        request.headers["Authorization"] = f"Bearer {token}"
        if "x-ms-date" not in request.headers:
            request.headers["x-ms-date"] = formatdate(usegmt=True)
        yield request


__all__ = ["BearerTokenAuth"]
