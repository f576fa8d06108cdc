"""Client configuration."""

import os
from dataclasses import dataclass
from typing import Mapping

from .exceptions import InvalidRequestError

ENV_SERVER = "FMDATA_SERVER"
ENV_DATABASE = "FMDATA_DATABASE"
ENV_USERNAME = "FMDATA_USERNAME"
ENV_PASSWORD = "FMDATA_PASSWORD"
ENV_TIMEOUT = "FMDATA_TIMEOUT"

DEFAULT_TIMEOUT = 30.0


@dataclass
class ClientConfig:
    """Connection settings for a FileMaker Data API client.

    Attributes:
        server: Base URL of the FileMaker server, e.g. "https://fms.example.com".
        database: Hosted database (file) name.
        username: Account used to open the session.
        password: Password for ``username``.
        timeout: Request timeout in seconds.
    """

    server: str
    database: str
    username: str
    password: str
    timeout: float = DEFAULT_TIMEOUT

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ClientConfig":
        """Read settings from ``FMDATA_*`` environment variables.

        Raises:
            InvalidRequestError: If a required variable is missing or the
                timeout is not a number.
        """
        env = os.environ if environ is None else environ
        required = (ENV_SERVER, ENV_DATABASE, ENV_USERNAME, ENV_PASSWORD)
        missing = [name for name in required if not env.get(name)]
        if missing:
            raise InvalidRequestError(f"Missing configuration: {', '.join(missing)}")

        raw_timeout = env.get(ENV_TIMEOUT)
        try:
            timeout = float(raw_timeout) if raw_timeout else DEFAULT_TIMEOUT
        except ValueError as e:
            raise InvalidRequestError(
                f"{ENV_TIMEOUT} must be a number, got {raw_timeout!r}"
            ) from e

        return cls(
            server=env[ENV_SERVER],
            database=env[ENV_DATABASE],
            username=env[ENV_USERNAME],
            password=env[ENV_PASSWORD],
            timeout=timeout,
        )
