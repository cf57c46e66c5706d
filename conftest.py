"""Root conftest: pins test settings before kitab_sync.config is imported."""
from __future__ import annotations

import os
from pathlib import Path

_ENV_TEST = Path(__file__).resolve().parent / ".env.test"


def _load_env_file(path: Path) -> dict[str, str]:
    values: dict[str, str] = {}
    for raw in path.read_text().splitlines():
        line = raw.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        values[key.strip()] = value.strip()
    return values


if _ENV_TEST.exists():
    # Tests must not pick up a developer's real backend or token.
    os.environ.update(_load_env_file(_ENV_TEST))
