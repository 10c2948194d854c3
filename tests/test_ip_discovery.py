import pytest
import requests
from unittest.mock import MagicMock, patch

from jumpgate.exceptions import ExternalCallError
from jumpgate.ip_discovery import discover_public_ipv4

URL = "https://checkip.amazonaws.com"


def response(text):
    resp = MagicMock()
    resp.text = text
    return resp


class TestDiscoverPublicIPv4:
    @patch("jumpgate.ip_discovery.requests.get")
    def test_strips_answer(self, mock_get):
        mock_get.return_value = response("203.0.113.7\n")

        assert discover_public_ipv4(URL, timeout=5) == "203.0.113.7"
        mock_get.assert_called_once_with(URL, timeout=5)

    @patch("jumpgate.ip_discovery.requests.get")
    def test_empty_answer(self, mock_get):
        mock_get.return_value = response("")

        with pytest.raises(ExternalCallError, match="did not return an address"):
            discover_public_ipv4(URL)

    @patch("jumpgate.ip_discovery.requests.get")
    def test_ipv6_rejected(self, mock_get):
        mock_get.return_value = response("2001:db8::1")

        with pytest.raises(ExternalCallError, match="non-IPv4"):
            discover_public_ipv4(URL)

    @patch("jumpgate.ip_discovery.requests.get")
    def test_request_failure(self, mock_get):
        mock_get.side_effect = requests.ConnectionError("unreachable")

        with pytest.raises(ExternalCallError, match="unreachable"):
            discover_public_ipv4(URL)

    @patch("jumpgate.ip_discovery.requests.get")
    def test_http_error(self, mock_get):
        resp = response("")
        resp.raise_for_status.side_effect = requests.HTTPError("503 Server Error")
        mock_get.return_value = resp

        with pytest.raises(ExternalCallError, match="503"):
            discover_public_ipv4(URL)
