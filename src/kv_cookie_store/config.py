# Copyright (c) 2024 OpenMined
# SPDX-License-Identifier: Apache-2.0
"""Configuration model for building a cookie store.

Settings can be given explicitly, loaded from a dict or JSON with the usual
Pydantic methods, or read from ``COOKIE_STORE_*`` environment variables.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Literal

from pydantic import BaseModel, Field, ValidationError

from kv_cookie_store.exceptions import CookieStoreConfigError

Backend = Literal["memory", "sqlite", "redis"]

_ENV_PREFIX = "COOKIE_STORE_"


class CookieStoreConfig(BaseModel):
    """Backend selection and adapter tuning.

    Attributes:
        backend: Key-value backend ("memory", "sqlite" or "redis")
        path: Path to SQLite database file (for sqlite backend)
        url: Redis connection URL (for redis backend)
        store_id: Namespace for this jar's keys
        scan_count: Keys requested per scan round trip
        scan_timeout: Wall-clock ceiling for one scan, in seconds
    """

    backend: Backend = "memory"
    path: str = ""
    url: str = ""
    store_id: str = "default"
    scan_count: int = Field(default=100, gt=0)
    scan_timeout: float = Field(default=10.0, gt=0)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> CookieStoreConfig:
        """Build a config from ``COOKIE_STORE_BACKEND``, ``COOKIE_STORE_PATH``, etc.

        Unset variables fall back to the defaults above.

        Raises:
            CookieStoreConfigError: If a variable holds an invalid value.
        """
        env = os.environ if environ is None else environ
        values = {
            name: env[_ENV_PREFIX + var]
            for name, var in (
                ("backend", "BACKEND"),
                ("path", "PATH"),
                ("url", "URL"),
                ("store_id", "ID"),
                ("scan_count", "SCAN_COUNT"),
                ("scan_timeout", "SCAN_TIMEOUT"),
            )
            if _ENV_PREFIX + var in env
        }
        try:
            return cls.model_validate(values)
        except ValidationError as e:
            raise CookieStoreConfigError(str(e)) from e
