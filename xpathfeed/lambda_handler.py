"""Lambda handler serving XPathFeed over an HTTP API."""

import json
import os
from collections import Counter
from datetime import UTC, datetime
from typing import Any

import boto3

from .cache import ContentCache
from .config import Config
from .errors import StorageError
from .fetcher import Fetcher
from .logging_config import create_execution_logger, setup_structured_logging
from .pipeline import XPathFeed

# Setup structured logging
setup_structured_logging(os.getenv("LOG_LEVEL", "INFO"))

RSS_CONTENT_TYPE = "application/rss+xml; charset=utf-8"
JSON_CONTENT_TYPE = "application/json"

# Cache shared by warm invocations of this process.
_content_cache: ContentCache | None = None


def build_content_cache(config: Config, execution_id: str | None = None) -> ContentCache:
    """Create a ContentCache with the configured store and fetcher."""
    fetcher_config = config.get_fetcher_config()
    cache_config = config.get_cache_config()
    fetcher = Fetcher(
        timeout=fetcher_config.timeout,
        user_agent=fetcher_config.user_agent,
        execution_id=execution_id,
    )
    return ContentCache(
        config.build_cache_store(execution_id),
        fetcher,
        ttl=cache_config.ttl,
        execution_id=execution_id,
    )


def get_content_cache(execution_id: str | None = None) -> ContentCache:
    """Return the process-wide ContentCache, creating it on first use."""
    global _content_cache
    if _content_cache is None:
        _content_cache = build_content_cache(Config(), execution_id)
    return _content_cache


def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """
    Build a feed for the page described by the request's query parameters.

    Args:
        event: API Gateway proxy event
        context: Lambda context object

    Returns:
        API Gateway proxy response carrying the RSS document (or JSON items)
    """
    execution_id = f"lambda_{datetime.now(UTC).strftime('%Y%m%d_%H%M%S_%f')}"
    main_logger = create_execution_logger("main", execution_id)

    main_logger.log_execution_start(
        lambda_request_id=getattr(context, "aws_request_id", "unknown"),
        lambda_function_name=getattr(context, "function_name", "unknown"),
    )

    params = (event or {}).get("queryStringParameters") or {}
    if not (params.get("url") or "").strip():
        main_logger.log_execution_end(success=False, error="missing url")
        return _response(400, JSON_CONTENT_TYPE, json.dumps({"error": "url is required"}))

    metrics = {"items_extracted": 0, "cache": {}, "errors": []}

    try:
        cache = get_content_cache(execution_id)
        stats_before = Counter(cache.stats)

        with XPathFeed.from_query(params, cache, execution_id=execution_id) as pipeline:
            main_logger.info("Processing page", url=pipeline.uri)
            items = pipeline.list()
            metrics["items_extracted"] = len(items)

            if params.get("format") == "json":
                body = json.dumps(
                    {
                        "title": pipeline.title(),
                        "url": pipeline.source.url,
                        "items": [item.to_dict() for item in items],
                    },
                    ensure_ascii=False,
                )
                content_type = JSON_CONTENT_TYPE
            else:
                body = pipeline.feed()
                content_type = RSS_CONTENT_TYPE

        metrics["cache"] = dict(cache.stats - stats_before)
        main_logger.log_metrics(metrics)
        send_cloudwatch_metrics(metrics, cache_region(), execution_id)
        main_logger.log_execution_end(success=True, metrics=metrics)
        return _response(200, content_type, body)

    except StorageError as e:
        error_msg = f"Cache store unavailable: {e}"
        main_logger.error(error_msg, error=str(e))
        metrics["errors"].append(error_msg)
        send_cloudwatch_metrics(metrics, cache_region(), execution_id)
        main_logger.log_execution_end(success=False, metrics=metrics, error=error_msg)
        return _response(
            500,
            JSON_CONTENT_TYPE,
            json.dumps({"error": error_msg, "execution_id": execution_id}),
        )


def cache_region() -> str:
    return os.getenv("CURRENT_AWS_REGION", os.getenv("AWS_DEFAULT_REGION", "us-east-1"))


def _response(status_code: int, content_type: str, body: str) -> dict[str, Any]:
    return {
        "statusCode": status_code,
        "headers": {"Content-Type": content_type},
        "body": body,
    }


def send_cloudwatch_metrics(
    metrics: dict[str, Any], aws_region: str, execution_id: str
) -> None:
    """
    Send custom metrics to CloudWatch.

    Args:
        metrics: Dictionary containing execution metrics
        aws_region: AWS region for CloudWatch client
        execution_id: Execution ID for logging context
    """
    metrics_logger = create_execution_logger("cloudwatch_metrics", execution_id)

    try:
        metrics_logger.info("Sending metrics to CloudWatch", metrics=metrics)
        cloudwatch = boto3.client("cloudwatch", region_name=aws_region)

        cache_stats = metrics.get("cache", {})
        execution_success = not metrics["errors"]
        cache_hits = cache_stats.get("hit", 0) + cache_stats.get("not_modified", 0)
        cache_misses = cache_stats.get("miss", 0) + cache_stats.get("refreshed", 0)
        fetch_failures = cache_stats.get("fetch_failed", 0) + cache_stats.get("stale", 0)

        metric_data = [
            {
                "MetricName": "ItemsExtracted",
                "Value": metrics["items_extracted"],
                "Unit": "Count",
            },
            {"MetricName": "CacheHits", "Value": cache_hits, "Unit": "Count"},
            {"MetricName": "CacheMisses", "Value": cache_misses, "Unit": "Count"},
            {"MetricName": "FetchFailures", "Value": fetch_failures, "Unit": "Count"},
            {
                "MetricName": "ExecutionSuccess",
                "Value": 1 if execution_success else 0,
                "Unit": "Count",
                "Dimensions": [
                    {
                        "Name": "Status",
                        "Value": "Success" if execution_success else "Failure",
                    }
                ],
            },
        ]

        cloudwatch.put_metric_data(Namespace="XPathFeed", MetricData=metric_data)

        metrics_logger.info(
            "Successfully sent metrics to CloudWatch",
            metrics_sent=len(metric_data),
            namespace="XPathFeed",
            execution_success=execution_success,
        )

    except Exception as e:
        metrics_logger.error(f"Failed to send CloudWatch metrics: {e}", error=str(e))
        # Don't raise - metrics failure shouldn't break the main flow
