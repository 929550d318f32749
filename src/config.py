"""Configuration management for the backend utilities.

This module provides the configuration models used to build HTTP clients and
service loggers. Every value is read through `foundation.environment`, so
tests can pass a `MappingEnvironment` instead of touching ``os.environ``.

## Configuration Sources

Configuration is read from environment variables (and a ``.env`` file in
the working directory) at process startup. The `get_settings()` function
uses `@lru_cache` to ensure settings are loaded once per process.

## Environment Variables

**HTTP client**
- `HTTP_CLIENT_TIMEOUT`: Request timeout in seconds (default: `5`)
- `HTTP_CLIENT_MAX_RETRIES`: Retries after the first attempt on 5xx
  responses (default: `0`)
- `HTTP_CLIENT_BACKOFF`: Backoff strategy, one of `constant`, `linear`,
  `exponential` (default: `exponential`)
- `HTTP_CLIENT_BACKOFF_INITIAL`: First wait / constant wait / linear step
  in seconds (default: `0.002`)
- `HTTP_CLIENT_BACKOFF_MAX`: Cap of the exponential wait in seconds
  (default: `0.009`)
- `HTTP_CLIENT_BACKOFF_FACTOR`: Exponential growth factor (default: `2`)
- `HTTP_CLIENT_BACKOFF_JITTER`: Maximum random jitter in seconds
  (default: `0.002`)

**Logging**
- `SERVICE_NAME`: Service name attached to every log event (required)
- `LOG_LEVEL`: `debug`, `info`, `warn` or `error` (default: `info`)
- `LOG_HANDLER`: `json` or `text` (default: `json`)
- `LOG_SAMPLE_RATE`: Probability of writing debug/info events
  (default: `1.0`)

## Usage

```python
from config import get_settings
from clients import create_http_client

settings = get_settings()
client = create_http_client(settings.http_client)
log = settings.logger.create_logger()
```
"""

from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import SettingsConfigDict

from foundation.environment import Environment, default_environment
from foundation.logger import (
    DEFAULT_LOG_HANDLER,
    DEFAULT_LOG_LEVEL,
    LOG_HANDLER_ENV,
    LOG_LEVEL_ENV,
    ServiceLogger,
    resolve_log_handler,
    resolve_log_level,
)
from foundation.retry import (
    DEFAULT_BACKOFF_FACTOR,
    DEFAULT_INITIAL_BACKOFF,
    DEFAULT_MAX_BACKOFF,
    DEFAULT_MAX_JITTER,
    BackoffStrategy,
    ConstantBackoff,
    ExponentialBackoff,
    LinearBackoff,
)

DEFAULT_HTTP_CLIENT_TIMEOUT = 5.0
DEFAULT_HTTP_CLIENT_RETRIES = 0

BackoffKind = Literal["constant", "linear", "exponential"]


class HTTPClientConfig(BaseModel):
    """Configuration for the HTTP clients.

    Attributes:
        timeout: Per-attempt request timeout in seconds. Must be > 0.
        max_retries: Retries after the first attempt when the response is
            5xx. Must be >= 0.
        backoff: Backoff strategy between retries.
        backoff_initial: First wait (exponential), fixed wait (constant) or
            step (linear), in seconds.
        backoff_max: Upper bound of the exponential wait, in seconds.
        backoff_factor: Exponential growth factor.
        backoff_jitter: Maximum random jitter added to exponential waits.
    """

    timeout: float = Field(default=DEFAULT_HTTP_CLIENT_TIMEOUT, gt=0)
    max_retries: int = Field(default=DEFAULT_HTTP_CLIENT_RETRIES, ge=0)
    backoff: BackoffKind = "exponential"
    backoff_initial: float = Field(default=DEFAULT_INITIAL_BACKOFF, ge=0)
    backoff_max: float = Field(default=DEFAULT_MAX_BACKOFF, ge=0)
    backoff_factor: float = Field(default=DEFAULT_BACKOFF_FACTOR, ge=1)
    backoff_jitter: float = Field(default=DEFAULT_MAX_JITTER, ge=0)

    model_config = SettingsConfigDict(frozen=True)

    def create_backoff(self) -> BackoffStrategy:
        """Build the backoff strategy described by this configuration."""
        if self.backoff == "constant":
            return ConstantBackoff(self.backoff_initial)
        if self.backoff == "linear":
            return LinearBackoff(self.backoff_initial)
        return ExponentialBackoff(
            initial=self.backoff_initial,
            maximum=max(self.backoff_max, self.backoff_initial),
            factor=self.backoff_factor,
            max_jitter=self.backoff_jitter,
        )

    @classmethod
    def from_env(cls, environment: Environment | None = None) -> "HTTPClientConfig":
        """Create HTTPClientConfig from environment variables.

        Args:
            environment: Environment to read from (default: process env).

        Returns:
            Configured HTTPClientConfig instance.

        Raises:
            ValueError: If HTTP_CLIENT_BACKOFF is not a known strategy or a
                numeric value is out of range.
        """
        env = environment or default_environment()

        backoff = env.get_string("HTTP_CLIENT_BACKOFF", "exponential").lower()
        valid_backoffs = ("constant", "linear", "exponential")
        if backoff not in valid_backoffs:
            msg = f"Invalid HTTP_CLIENT_BACKOFF: {backoff}. Must be one of: {valid_backoffs}"
            raise ValueError(msg)

        return cls(
            timeout=env.get_float("HTTP_CLIENT_TIMEOUT", DEFAULT_HTTP_CLIENT_TIMEOUT),
            max_retries=env.get_int("HTTP_CLIENT_MAX_RETRIES", DEFAULT_HTTP_CLIENT_RETRIES),
            backoff=backoff,
            backoff_initial=env.get_float("HTTP_CLIENT_BACKOFF_INITIAL", DEFAULT_INITIAL_BACKOFF),
            backoff_max=env.get_float("HTTP_CLIENT_BACKOFF_MAX", DEFAULT_MAX_BACKOFF),
            backoff_factor=env.get_float("HTTP_CLIENT_BACKOFF_FACTOR", DEFAULT_BACKOFF_FACTOR),
            backoff_jitter=env.get_float("HTTP_CLIENT_BACKOFF_JITTER", DEFAULT_MAX_JITTER),
        )


class LoggerConfig(BaseModel):
    """Configuration for a `ServiceLogger`.

    Attributes:
        service: Service name attached to every event. Required.
        level: Log level name.
        handler: Output format, ``json`` or ``text``.
        sample_rate: Probability of writing debug and info events.
    """

    service: str = Field(min_length=1)
    level: str = DEFAULT_LOG_LEVEL
    handler: str = DEFAULT_LOG_HANDLER
    sample_rate: float = Field(default=1.0, ge=0, le=1)

    model_config = SettingsConfigDict(frozen=True)

    def create_logger(self) -> ServiceLogger:
        """Build the `ServiceLogger` described by this configuration."""
        return ServiceLogger(
            self.service,
            level=self.level,
            handler=self.handler,
            sample_rate=self.sample_rate,
        )

    @classmethod
    def from_env(cls, environment: Environment | None = None) -> "LoggerConfig":
        """Create LoggerConfig from environment variables.

        Invalid LOG_LEVEL / LOG_HANDLER values fall back to their defaults.

        Raises:
            MissingEnvironmentError: If SERVICE_NAME is not set.
        """
        env = environment or default_environment()
        return cls(
            service=env.must_get_string("SERVICE_NAME"),
            level=resolve_log_level(env.get_string(LOG_LEVEL_ENV, DEFAULT_LOG_LEVEL)),
            handler=resolve_log_handler(env.get_string(LOG_HANDLER_ENV, DEFAULT_LOG_HANDLER)),
            sample_rate=env.get_float("LOG_SAMPLE_RATE", 1.0),
        )


class Settings(BaseModel):
    """Immutable runtime configuration.

    Attributes:
        http_client: HTTP client configuration.
        logger: Service logger configuration.
    """

    http_client: HTTPClientConfig
    logger: LoggerConfig

    model_config = SettingsConfigDict(frozen=True)

    @classmethod
    def from_env(cls, environment: Environment | None = None) -> "Settings":
        """Create Settings from environment variables."""
        return cls(
            http_client=HTTPClientConfig.from_env(environment),
            logger=LoggerConfig.from_env(environment),
        )


@lru_cache(maxsize=1)
def get_settings() -> "Settings":
    """Load and return application settings (cached per process).

    Returns:
        A frozen `Settings` instance with all configuration values.

    Note:
        Settings are loaded once per process. Restart the process to pick up
        changed environment variables.
    """
    return Settings.from_env()
