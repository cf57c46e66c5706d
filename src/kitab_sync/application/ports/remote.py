from __future__ import annotations

from typing import Any, Protocol


class RemoteClient(Protocol):
    """Authenticated JSON transport.

    Implementations return the decoded response body and raise
    ``NetworkFailure`` or ``ServerRejection`` on failure.
    """

    async def get(self, path: str, *, params: dict[str, Any] | None = None) -> Any: ...

    async def post(
        self,
        path: str,
        *,
        json: Any | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any: ...

    async def delete(self, path: str) -> Any: ...
