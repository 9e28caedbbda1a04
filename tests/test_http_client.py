"""Tests for http_client module."""

import re
import unittest
from unittest.mock import MagicMock, patch

import requests

from sbomqs.exceptions import FetchError
from sbomqs.http_client import USER_AGENT, fetch_sbom, get_default_headers, is_url, to_raw_url


def _response(status_code, content=b""):
    response = MagicMock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.content = content
    return response


class TestUserAgent(unittest.TestCase):
    """Tests for USER_AGENT constant."""

    def test_user_agent_format(self):
        name, version = USER_AGENT.split("/")
        self.assertEqual(name, "sbomqs")
        version_pattern = r"^\d+\.\d+(\.\d+)?(-[\w.]+)?$"
        self.assertTrue(re.match(version_pattern, version) or version == "unknown")


class TestGetDefaultHeaders(unittest.TestCase):
    def test_default_headers_minimal(self):
        self.assertEqual(get_default_headers(), {"User-Agent": USER_AGENT})

    def test_accept_header(self):
        headers = get_default_headers("application/json")
        self.assertEqual(headers["Accept"], "application/json")


class TestUrls(unittest.TestCase):
    def test_is_url(self):
        self.assertTrue(is_url("https://example.com/bom.json"))
        self.assertTrue(is_url("http://example.com/bom.json"))
        self.assertFalse(is_url("bom.json"))
        self.assertFalse(is_url("ftp://example.com/bom.json"))

    def test_github_blob_rewrite(self):
        self.assertEqual(
            to_raw_url("https://github.com/acme/app/blob/main/sboms/bom.json"),
            "https://raw.githubusercontent.com/acme/app/main/sboms/bom.json",
        )

    def test_other_urls_untouched(self):
        url = "https://example.com/acme/app/blob/main/bom.json"
        self.assertEqual(to_raw_url(url), url)


@patch("sbomqs.http_client.time.sleep")
@patch("sbomqs.http_client.requests.get")
class TestFetchSbom(unittest.TestCase):
    def test_success(self, mock_get, mock_sleep):
        mock_get.return_value = _response(200, b"{}")
        self.assertEqual(fetch_sbom("https://example.com/bom.json"), b"{}")
        _, kwargs = mock_get.call_args
        self.assertEqual(kwargs["headers"]["User-Agent"], USER_AGENT)
        mock_sleep.assert_not_called()

    def test_github_url_is_fetched_raw(self, mock_get, mock_sleep):
        mock_get.return_value = _response(200, b"{}")
        fetch_sbom("https://github.com/acme/app/blob/main/bom.json")
        self.assertEqual(mock_get.call_args[0][0], "https://raw.githubusercontent.com/acme/app/main/bom.json")

    def test_client_error_is_not_retried(self, mock_get, mock_sleep):
        mock_get.return_value = _response(404)
        with self.assertRaises(FetchError) as ctx:
            fetch_sbom("https://example.com/bom.json")
        self.assertIn("HTTP 404", str(ctx.exception))
        self.assertEqual(mock_get.call_count, 1)

    def test_server_error_is_retried(self, mock_get, mock_sleep):
        mock_get.side_effect = [_response(503), _response(502), _response(200, b"ok")]
        self.assertEqual(fetch_sbom("https://example.com/bom.json", retries=3, backoff=0.5), b"ok")
        self.assertEqual(mock_get.call_count, 3)
        self.assertEqual([c.args[0] for c in mock_sleep.call_args_list], [0.5, 1.0])

    def test_connection_errors_exhaust_retries(self, mock_get, mock_sleep):
        mock_get.side_effect = requests.exceptions.ConnectionError("refused")
        with self.assertRaises(FetchError) as ctx:
            fetch_sbom("https://example.com/bom.json", retries=2)
        self.assertIn("after 2 attempt(s)", str(ctx.exception))
        self.assertEqual(mock_get.call_count, 2)
        self.assertEqual(mock_sleep.call_count, 1)
