"""Exception classes for foundation utilities.

This module provides the exception hierarchy shared by every package in the
repository. Errors are raised where they happen and chained with
``raise ... from e`` so the original cause stays visible.

## Exception Hierarchy

```
FoundationError
├── ConfigurationError          startup errors (bad key length, empty service name)
│   ├── MissingEnvironmentError
│   └── InvalidEnvironmentError
├── InvalidURLError
├── RequestEncodingError
├── UpstreamError
│   ├── TransportError
│   └── ResponseNotOKError
├── CryptoError
│   ├── InvalidKeyError
│   └── DecryptionError
└── ParseError
```
"""


class FoundationError(Exception):
    """Base exception class for foundation-related errors."""


class ConfigurationError(FoundationError):
    """Exception raised when required configuration is missing or invalid.

    These are startup errors: a process that hits one should fail fast
    instead of attempting to recover at runtime.
    """


class MissingEnvironmentError(ConfigurationError):
    """Exception raised when a required environment variable is not set."""

    def __init__(self, kind: str, name: str) -> None:
        self.kind = kind
        self.name = name
        super().__init__(f"environment error ({kind}): required env var {name} not found")


class InvalidEnvironmentError(ConfigurationError):
    """Exception raised when a required environment variable cannot be parsed."""

    def __init__(self, kind: str, name: str, value: str) -> None:
        self.kind = kind
        self.name = name
        self.value = value
        super().__init__(
            f"environment error ({kind}): unable to parse value {value} to required env var {name}"
        )


class InvalidURLError(FoundationError, ValueError):
    """Exception raised when a URL cannot be parsed or has no hostname."""

    def __init__(self, url: str = "") -> None:
        self.url = url
        super().__init__("invalid URL")


class RequestEncodingError(FoundationError):
    """Exception raised when a request body cannot be serialized."""


class UpstreamError(FoundationError):
    """Exception raised when an upstream dependency service fails.

    This exception indicates that a required external service is unavailable,
    returned an error, or failed to complete a request.
    """


class TransportError(UpstreamError):
    """Exception raised for network-level failures (no HTTP status available).

    Transport errors are never retried by the HTTP clients.
    """


class ResponseNotOKError(UpstreamError):
    """Exception raised when an upstream service answers with a non-2xx status.

    Attributes:
        status_code: HTTP status code of the response.
        body: Raw response body (decoded as text, may be empty).
    """

    def __init__(self, message: str, status_code: int, body: str = "") -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(message)


class CryptoError(FoundationError):
    """Base exception class for encryption and decryption failures."""


class InvalidKeyError(CryptoError, ConfigurationError):
    """Exception raised when a secret key has an unsupported length."""


class DecryptionError(CryptoError):
    """Exception raised when a ciphertext cannot be decrypted or decoded."""


class ParseError(FoundationError, ValueError):
    """Exception raised when a field cannot be extracted from a JSON payload."""
