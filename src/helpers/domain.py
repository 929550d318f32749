"""Registrable-domain extraction from URLs."""

import ipaddress
from urllib.parse import urlsplit

from foundation.exceptions import InvalidURLError


def _is_ip(value: str) -> bool:
    try:
        ipaddress.ip_address(value)
    except ValueError:
        return False
    return True


def extract_domain(url: str) -> str:
    """Return the last two labels of the URL's hostname.

    Hostnames with two labels or fewer are returned whole, as are IP
    addresses and hostnames whose second-to-last label is an IP address
    (``urlsplit`` strips the brackets of IPv6 hosts). The rule knows nothing
    about public suffixes: ``https://example.com.do`` yields ``com.do``.

    Example:
        >>> extract_domain("https://node123.node.com:443")
        'node.com'
        >>> extract_domain("http://localhost:8080")
        'localhost'

    Raises:
        InvalidURLError: If the URL cannot be parsed or has no hostname.
    """
    try:
        parts = urlsplit(url)
        hostname = parts.hostname
        _ = parts.port  # raises ValueError for a malformed port
    except ValueError as e:
        raise InvalidURLError(url) from e
    if not hostname:
        raise InvalidURLError(url)

    if _is_ip(hostname):
        return hostname

    labels = hostname.split(".")
    if len(labels) > 2 and not _is_ip(labels[-2]):
        return ".".join(labels[-2:])
    return hostname
