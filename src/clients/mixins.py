"""Mixins shared by the HTTP client classes."""

import logging
from typing import Any, ClassVar


class LoggerMixin:
    """Give every subclass a class-level logger named after its module.

    `HTTPClient` and `AsyncHTTPClient` are slotted attrs classes, so the logger
    lives on the class and is reached as ``self._logger``.
    """

    _logger: ClassVar[logging.Logger]

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls._logger = logging.getLogger(cls.__module__)
