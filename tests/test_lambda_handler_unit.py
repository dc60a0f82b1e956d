"""Unit tests for the Lambda entry point."""

import json
import os
from datetime import timedelta
from unittest.mock import Mock, patch

from xpathfeed.cache import ContentCache
from xpathfeed.config import Config
from xpathfeed.errors import StorageError
from xpathfeed.fetcher import Fetcher
from xpathfeed.lambda_handler import (
    RSS_CONTENT_TYPE,
    build_content_cache,
    lambda_handler,
    send_cloudwatch_metrics,
)
from xpathfeed.models import FetchResult
from xpathfeed.store import MemoryCacheStore

BASE = "http://ex.com/"
PAGE = (
    "<html><head><title>Listing</title></head><body><ul>"
    '<li><a href="/a">One</a><img src="/1.jpg"></li>'
    '<li><a href="/b">Two</a></li>'
    "</ul></body></html>"
)


def make_event(**params) -> dict:
    return {"queryStringParameters": params}


def make_cache(store=None) -> ContentCache:
    fetcher = Mock(spec=Fetcher)
    fetcher.get.return_value = FetchResult(200, PAGE.encode("utf-8"), PAGE, BASE)
    return ContentCache(store or MemoryCacheStore(), fetcher)


class TestLambdaHandlerUnit:
    """Unit tests for lambda_handler."""

    def test_missing_url_is_bad_request(self):
        response = lambda_handler({"queryStringParameters": None}, None)

        assert response["statusCode"] == 400
        assert "url" in json.loads(response["body"])["error"]

    def test_returns_rss(self):
        cache = make_cache()
        with (
            patch("xpathfeed.lambda_handler.get_content_cache", return_value=cache),
            patch("xpathfeed.lambda_handler.send_cloudwatch_metrics") as mock_metrics,
        ):
            response = lambda_handler(make_event(url=BASE, xpath_list="li"), None)

        assert response["statusCode"] == 200
        assert response["headers"]["Content-Type"] == RSS_CONTENT_TYPE
        assert "<title>Listing</title>" in response["body"]
        assert response["body"].count("<item>") == 2

        metrics = mock_metrics.call_args.args[0]
        assert metrics["items_extracted"] == 2
        assert metrics["cache"] == {"miss": 1}

    def test_returns_json_items(self):
        cache = make_cache()
        with (
            patch("xpathfeed.lambda_handler.get_content_cache", return_value=cache),
            patch("xpathfeed.lambda_handler.send_cloudwatch_metrics"),
        ):
            response = lambda_handler(
                make_event(url=BASE, xpath_list="li", format="json"), None
            )

        body = json.loads(response["body"])
        assert response["statusCode"] == 200
        assert body["title"] == "Listing"
        assert body["items"] == [
            {"title": "One", "link": "http://ex.com/a", "image": "http://ex.com/1.jpg"},
            {"title": "Two", "link": "http://ex.com/b", "image": ""},
        ]

    def test_storage_error_is_server_error(self):
        store = Mock()
        store.get.side_effect = StorageError("table unavailable")
        with (
            patch(
                "xpathfeed.lambda_handler.get_content_cache",
                return_value=make_cache(store),
            ),
            patch("xpathfeed.lambda_handler.send_cloudwatch_metrics") as mock_metrics,
        ):
            response = lambda_handler(make_event(url=BASE, xpath_list="li"), None)

        assert response["statusCode"] == 500
        assert "Cache store unavailable" in json.loads(response["body"])["error"]
        assert mock_metrics.call_args.args[0]["errors"]


class TestCloudWatchMetricsUnit:
    """Unit tests for send_cloudwatch_metrics."""

    def test_puts_metric_data(self):
        metrics = {
            "items_extracted": 3,
            "cache": {"hit": 1, "fetch_failed": 1},
            "errors": [],
        }
        with patch("boto3.client") as mock_client:
            send_cloudwatch_metrics(metrics, "us-east-1", "exec_1")

        mock_client.assert_called_once_with("cloudwatch", region_name="us-east-1")
        call = mock_client.return_value.put_metric_data.call_args
        assert call.kwargs["Namespace"] == "XPathFeed"
        values = {m["MetricName"]: m["Value"] for m in call.kwargs["MetricData"]}
        assert values["ItemsExtracted"] == 3
        assert values["CacheHits"] == 1
        assert values["CacheMisses"] == 0
        assert values["FetchFailures"] == 1
        assert values["ExecutionSuccess"] == 1

    def test_failures_are_not_raised(self):
        metrics = {"items_extracted": 0, "cache": {}, "errors": ["boom"]}
        with patch("boto3.client") as mock_client:
            mock_client.return_value.put_metric_data.side_effect = RuntimeError("down")
            send_cloudwatch_metrics(metrics, "us-east-1", "exec_1")


class TestBuildContentCacheUnit:
    def test_uses_configuration(self):
        env = {"XPATHFEED_CACHE_TTL": "120", "XPATHFEED_HTTP_TIMEOUT": "7"}
        with patch.dict(os.environ, env, clear=True):
            cache = build_content_cache(Config())

        assert isinstance(cache.store, MemoryCacheStore)
        assert cache.ttl == timedelta(seconds=120)
        assert cache.fetcher.timeout == 7
