from __future__ import annotations

from typing import Protocol

from kitab_sync.application.dto.principal import Principal


class CredentialProvider(Protocol):
    def get_token(self) -> str | None: ...

    def has_token(self) -> bool: ...

    def principal(self) -> Principal | None: ...
