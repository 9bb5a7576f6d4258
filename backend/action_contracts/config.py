"""
Settings for the Flask contract plug.

Values come from (highest priority first):
1. explicit overrides (e.g. Flask app.config)
2. environment variables (a local .env file is loaded on import)
3. defaults below

Env vars:
  - CONTRACT_MODE: "strict" (reject failing requests) or "warn" (log and continue)
  - CONTRACT_FAILURE_STATUS: HTTP status of the default failure response (default: 400)
  - CONTRACT_INCLUDE_JSON_BODY: merge JSON body into params (default: true)
  - CONTRACT_LOG_PASSTHROUGH: debug-log requests passing unvalidated (default: false)
"""

import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional

from dotenv import load_dotenv

load_dotenv()


logger = logging.getLogger('action_contracts.config')


class EnforcementMode(Enum):
    """Contract enforcement mode."""
    STRICT = "strict"  # Short-circuit failing requests
    WARN = "warn"      # Log failures, let the request reach the view


@dataclass(frozen=True)
class ContractSettings:
    mode: EnforcementMode = EnforcementMode.STRICT
    failure_status: int = 400
    include_json_body: bool = True
    log_passthrough: bool = False


def _to_bool(raw: Any, default: bool) -> bool:
    if raw is None or raw == '':
        return default
    if isinstance(raw, bool):
        return raw
    return str(raw).strip().lower() in ('true', '1', 'yes', 'on')


def _to_status(raw: Any, default: int) -> int:
    if raw is None or raw == '':
        return default
    try:
        status = int(raw)
    except (TypeError, ValueError):
        logger.warning(f"Invalid CONTRACT_FAILURE_STATUS={raw!r}, using {default}")
        return default
    if not 400 <= status <= 599:
        logger.warning(f"CONTRACT_FAILURE_STATUS={status} is not an error status, using {default}")
        return default
    return status


def _to_mode(raw: Any) -> EnforcementMode:
    if isinstance(raw, EnforcementMode):
        return raw
    if raw is None or raw == '':
        return EnforcementMode.STRICT
    try:
        return EnforcementMode(str(raw).strip().lower())
    except ValueError:
        logger.warning(f"Invalid CONTRACT_MODE={raw!r}, using strict")
        return EnforcementMode.STRICT


def load_settings(overrides: Optional[Mapping[str, Any]] = None) -> ContractSettings:
    """
    Build ContractSettings from env vars and optional overrides.

    Args:
        overrides: Mapping with CONTRACT_* keys (typically Flask app.config)
    """
    overrides = overrides or {}

    def get(key: str):
        if key in overrides:
            return overrides[key]
        return os.environ.get(key)

    return ContractSettings(
        mode=_to_mode(get('CONTRACT_MODE')),
        failure_status=_to_status(get('CONTRACT_FAILURE_STATUS'), 400),
        include_json_body=_to_bool(get('CONTRACT_INCLUDE_JSON_BODY'), True),
        log_passthrough=_to_bool(get('CONTRACT_LOG_PASSTHROUGH'), False),
    )
