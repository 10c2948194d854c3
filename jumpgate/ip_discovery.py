import ipaddress
import logging

import requests

from .exceptions import ExternalCallError

logger = logging.getLogger(__name__)


def discover_public_ipv4(url, timeout=10):
    """Ask an external resolver for the caller's public IPv4 address."""
    logger.debug(f"Discovering public IP via {url}")
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        raise ExternalCallError(f"Failed to detect current public IP: {e}")

    answer = response.text.strip()
    try:
        address = ipaddress.ip_address(answer)
    except ValueError:
        raise ExternalCallError(
            f"IP discovery at {url} did not return an address: {answer!r}"
        )
    if address.version != 4:
        raise ExternalCallError(f"IP discovery returned a non-IPv4 address: {answer}")

    logger.debug(f"Public IP is {address}")
    return str(address)
