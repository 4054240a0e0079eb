from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import MutableMapping, Optional

LOGGER = logging.getLogger(__name__)

DEFAULT_POLICY_PATH = Path("references/policy.json")


def resolve_policy_path(env: MutableMapping[str, str]) -> Path:
    explicit = str(env.get("LOOKUP_POLICY_FILE", "")).strip()
    return Path(explicit).expanduser() if explicit else DEFAULT_POLICY_PATH


def apply_policy_defaults(path: Path, env: Optional[MutableMapping[str, str]] = None) -> int:
    """Fill unset environment variables from the ``env_defaults`` of a policy JSON.

    Variables that already hold a non-blank value are left alone.  Returns the
    number of variables set.  A missing file is not an error; an unreadable
    one is logged and ignored.
    """

    target_env = os.environ if env is None else env
    if not path.exists():
        return 0
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        LOGGER.warning("Warning: unable to read policy file %s: %s", path, exc)
        return 0
    env_defaults = payload.get("env_defaults") if isinstance(payload, dict) else None
    applied = 0
    for key, value in (env_defaults or {}).items():
        if str(target_env.get(key, "")).strip() == "":
            target_env[key] = str(value)
            applied += 1
    if applied:
        LOGGER.debug("Applied %d policy defaults from %s", applied, path)
    return applied
