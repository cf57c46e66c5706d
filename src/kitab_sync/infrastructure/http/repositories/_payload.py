"""Validate decoded JSON bodies against the wire schemas."""
from __future__ import annotations

from typing import Any, TypeVar

import pydantic
from pydantic import BaseModel

from kitab_sync.application.exceptions import ServerRejection

M = TypeVar("M", bound=BaseModel)


def parse_payload(model: type[M], body: Any) -> M:
    try:
        return model.model_validate(body if body is not None else {})
    except pydantic.ValidationError as exc:
        raise ServerRejection(f"Unexpected {model.__name__} payload: {exc.error_count()} error(s)") from exc
