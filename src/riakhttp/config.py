"""Configuration for the riakhttp client."""

from __future__ import annotations

import os
from dataclasses import dataclass

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class RiakConfig:
    """Configuration for the Riak HTTP client."""

    url: str = "http://127.0.0.1:8098"
    add_client_id_header: bool = False
    request_timeout_s: float = 10.0
    strict_conflicts: bool = False
    max_concurrent_fetches: int = 32

    @classmethod
    def from_env(cls) -> RiakConfig:
        """Build a config from RIAK_* environment variables, falling back to defaults."""
        defaults = cls()
        return cls(
            url=os.getenv("RIAK_URL") or defaults.url,
            add_client_id_header=_env_flag(
                "RIAK_ADD_CLIENT_ID_HEADER", defaults.add_client_id_header
            ),
            request_timeout_s=float(
                os.getenv("RIAK_REQUEST_TIMEOUT_S") or defaults.request_timeout_s
            ),
            strict_conflicts=_env_flag("RIAK_STRICT_CONFLICTS", defaults.strict_conflicts),
            max_concurrent_fetches=int(
                os.getenv("RIAK_MAX_CONCURRENT_FETCHES") or defaults.max_concurrent_fetches
            ),
        )


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in _TRUTHY
