"""Unit tests for Fetcher."""

from datetime import UTC, datetime
from unittest.mock import Mock

import pytest
import requests
from requests.structures import CaseInsensitiveDict
from requests.utils import get_encoding_from_headers

from xpathfeed.errors import NetworkError
from xpathfeed.fetcher import Fetcher

URL = "http://ex.com/"


def make_response(status_code: int, body: bytes, content_type: str) -> requests.Response:
    response = requests.Response()
    response.status_code = status_code
    response._content = body
    response.headers = CaseInsensitiveDict({"Content-Type": content_type})
    response.encoding = get_encoding_from_headers(response.headers)
    response.url = URL
    return response


class TestFetcherUnit:
    """Unit tests for HTTP fetching."""

    def setup_method(self):
        self.session = Mock()
        self.session.headers = {}
        self.fetcher = Fetcher(timeout=5, user_agent="Test/1.0", session=self.session)

    def test_user_agent_is_set(self):
        assert self.session.headers["User-Agent"] == "Test/1.0"

    def test_plain_get(self):
        self.session.get.return_value = make_response(
            200, "<p>café</p>".encode("utf-8"), "text/html; charset=utf-8"
        )

        result = self.fetcher.get(URL)

        self.session.get.assert_called_once_with(URL, headers={}, timeout=5)
        assert result.success
        assert result.status_code == 200
        assert result.content == "<p>café</p>".encode("utf-8")
        assert result.text == "<p>café</p>"
        assert result.url == URL

    def test_conditional_get(self):
        self.session.get.return_value = make_response(304, b"", "text/html; charset=utf-8")

        result = self.fetcher.get(
            URL, if_modified_since=datetime(2024, 1, 1, 10, 0, tzinfo=UTC)
        )

        self.session.get.assert_called_once_with(
            URL,
            headers={"If-Modified-Since": "Mon, 01 Jan 2024 10:00:00 GMT"},
            timeout=5,
        )
        assert result.not_modified
        assert not result.success

    def test_error_status_is_returned(self):
        self.session.get.return_value = make_response(
            500, b"oops", "text/plain; charset=utf-8"
        )

        result = self.fetcher.get(URL)

        assert result.status_code == 500
        assert not result.success

    def test_transport_error_raises_network_error(self):
        self.session.get.side_effect = requests.ConnectionError("refused")

        with pytest.raises(NetworkError) as excinfo:
            self.fetcher.get(URL)

        assert excinfo.value.url == URL

    def test_timeout_raises_network_error(self):
        self.session.get.side_effect = requests.Timeout("slow")

        with pytest.raises(NetworkError):
            self.fetcher.get(URL)

    def test_context_manager_closes_session(self):
        with self.fetcher as fetcher:
            assert fetcher is self.fetcher
        self.session.close.assert_called_once()
