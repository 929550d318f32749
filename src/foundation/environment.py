"""Typed environment variable getters behind a provider abstraction.

Every getter comes in two flavours:

- ``must_get_*``: the variable is required. A missing or unparsable value
  raises `MissingEnvironmentError` / `InvalidEnvironmentError`. Both are
  `ConfigurationError` subclasses and are meant to stop the process at
  startup.
- ``get_*``: the variable is optional. A missing or unparsable value
  returns the supplied default.

Values are looked up through an `EnvironmentProvider`, so tests can inject a
`MappingEnvironment` instead of mutating ``os.environ``.

## Usage

```python
from foundation.environment import Environment, MappingEnvironment

env = Environment(MappingEnvironment({"PORT": "8080"}))
env.must_get_int("PORT")          # 8080
env.get_bool("DEBUG", False)      # False
```

The module level functions (`must_get_int`, `get_string`, ...) read the real
process environment, with a ``.env`` file in the working directory loaded
first (existing variables are never overridden).
"""

import logging
import os
import re
from collections.abc import Mapping
from functools import lru_cache
from pathlib import Path
from typing import Protocol, runtime_checkable

from dotenv import load_dotenv

from foundation.exceptions import InvalidEnvironmentError, MissingEnvironmentError

logger = logging.getLogger(__name__)

_INT_PATTERN = re.compile(r"\A[+-]?[0-9]+\Z")

TRUE_VALUES: frozenset[str] = frozenset({"1", "t", "T", "TRUE", "true", "True"})
FALSE_VALUES: frozenset[str] = frozenset({"0", "f", "F", "FALSE", "false", "False"})


@runtime_checkable
class EnvironmentProvider(Protocol):
    """Source of raw environment values."""

    def lookup(self, name: str) -> str | None:
        """Return the raw value of ``name`` or None if it is not set."""
        ...


class OSEnvironment:
    """Provider backed by the process environment.

    Args:
        dotenv_path: Optional path of a ``.env`` file to load on construction.
            When None, python-dotenv searches for ``.env`` starting from the
            current working directory.
        autoload: Whether to load the ``.env`` file at all.
    """

    def __init__(self, dotenv_path: str | Path | None = None, autoload: bool = True) -> None:
        if autoload:
            loaded = load_dotenv(dotenv_path=dotenv_path, override=False)
            if loaded:
                logger.debug("Loaded .env file", extra={"dotenv_path": str(dotenv_path or ".env")})

    def lookup(self, name: str) -> str | None:
        return os.environ.get(name)


class MappingEnvironment:
    """Provider backed by an explicit mapping (useful in tests)."""

    def __init__(self, values: Mapping[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(values or {})

    def lookup(self, name: str) -> str | None:
        return self._values.get(name)


def _parse_int(value: str) -> int:
    if not _INT_PATTERN.match(value):
        msg = f"invalid literal for int: {value!r}"
        raise ValueError(msg)
    return int(value)


def _parse_bool(value: str) -> bool:
    if value in TRUE_VALUES:
        return True
    if value in FALSE_VALUES:
        return False
    msg = f"invalid literal for bool: {value!r}"
    raise ValueError(msg)


def _split_set(raw: str, separator: str) -> frozenset[str]:
    return frozenset(raw.split(separator))


class Environment:
    """Typed getters over an `EnvironmentProvider`.

    Attributes:
        provider: Source of raw values. Defaults to `OSEnvironment`.
    """

    def __init__(self, provider: EnvironmentProvider | None = None) -> None:
        self.provider: EnvironmentProvider = provider if provider is not None else OSEnvironment()

    # -- int ------------------------------------------------------------------

    def must_get_int(self, name: str) -> int:
        """Return the required variable as an int.

        Raises:
            MissingEnvironmentError: If the variable is not set.
            InvalidEnvironmentError: If the value is not a base 10 integer.
        """
        value = self.provider.lookup(name)
        if value is None:
            raise MissingEnvironmentError("int", name)
        try:
            return _parse_int(value)
        except ValueError as e:
            raise InvalidEnvironmentError("int", name, value) from e

    def get_int(self, name: str, default: int) -> int:
        value = self.provider.lookup(name)
        if value is None:
            return default
        try:
            return _parse_int(value)
        except ValueError:
            return default

    # -- float ----------------------------------------------------------------

    def must_get_float(self, name: str) -> float:
        """Return the required variable as a float.

        Raises:
            MissingEnvironmentError: If the variable is not set.
            InvalidEnvironmentError: If the value is not a float literal.
        """
        value = self.provider.lookup(name)
        if value is None:
            raise MissingEnvironmentError("float", name)
        try:
            return float(value)
        except ValueError as e:
            raise InvalidEnvironmentError("float", name, value) from e

    def get_float(self, name: str, default: float) -> float:
        value = self.provider.lookup(name)
        if value is None:
            return default
        try:
            return float(value)
        except ValueError:
            return default

    # -- string ---------------------------------------------------------------

    def must_get_string(self, name: str) -> str:
        """Return the required variable as a string.

        An empty value counts as not set.

        Raises:
            MissingEnvironmentError: If the variable is unset or empty.
        """
        value = self.provider.lookup(name)
        if not value:
            raise MissingEnvironmentError("string", name)
        return value

    def get_string(self, name: str, default: str) -> str:
        return self.provider.lookup(name) or default

    # -- bool -----------------------------------------------------------------

    def must_get_bool(self, name: str) -> bool:
        """Return the required variable as a bool.

        Accepted literals are ``1 t T TRUE true True`` and
        ``0 f F FALSE false False``.

        Raises:
            MissingEnvironmentError: If the variable is unset or empty.
            InvalidEnvironmentError: If the value is not a bool literal.
        """
        value = self.provider.lookup(name)
        if not value:
            raise MissingEnvironmentError("bool", name)
        try:
            return _parse_bool(value)
        except ValueError as e:
            raise InvalidEnvironmentError("bool", name, value) from e

    def get_bool(self, name: str, default: bool) -> bool:
        value = self.provider.lookup(name)
        if not value:
            return default
        try:
            return _parse_bool(value)
        except ValueError:
            return default

    # -- delimited set --------------------------------------------------------

    def must_get_string_set(self, name: str, separator: str) -> frozenset[str]:
        """Return the required variable split on ``separator`` as a set.

        Raises:
            MissingEnvironmentError: If the variable is unset or empty.
        """
        return _split_set(self.must_get_string(name), separator)

    def get_string_set(self, name: str, default: str, separator: str) -> frozenset[str]:
        """Return the variable (or the raw ``default``) split on ``separator``."""
        return _split_set(self.get_string(name, default), separator)


@lru_cache(maxsize=1)
def default_environment() -> Environment:
    """Return the process-wide `Environment` backed by `OSEnvironment`."""
    return Environment(OSEnvironment())


def must_get_int(name: str) -> int:
    return default_environment().must_get_int(name)


def get_int(name: str, default: int) -> int:
    return default_environment().get_int(name, default)


def must_get_float(name: str) -> float:
    return default_environment().must_get_float(name)


def get_float(name: str, default: float) -> float:
    return default_environment().get_float(name, default)


def must_get_string(name: str) -> str:
    return default_environment().must_get_string(name)


def get_string(name: str, default: str) -> str:
    return default_environment().get_string(name, default)


def must_get_bool(name: str) -> bool:
    return default_environment().must_get_bool(name)


def get_bool(name: str, default: bool) -> bool:
    return default_environment().get_bool(name, default)


def must_get_string_set(name: str, separator: str) -> frozenset[str]:
    return default_environment().must_get_string_set(name, separator)


def get_string_set(name: str, default: str, separator: str) -> frozenset[str]:
    return default_environment().get_string_set(name, default, separator)
