"""Cache store backends for XPathFeed."""

import contextlib
import hashlib
import json
import os
import tempfile
from pathlib import Path

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .errors import StorageError
from .logging_config import create_execution_logger
from .models import CacheEntry


class MemoryCacheStore:
    """Process-local dictionary store."""

    def __init__(self):
        self._entries: dict[str, CacheEntry] = {}

    def get(self, key: str) -> CacheEntry | None:
        return self._entries.get(key)

    def set(self, key: str, entry: CacheEntry) -> None:
        self._entries[key] = entry

    def __len__(self) -> int:
        return len(self._entries)


class FileCacheStore:
    """Stores one JSON file per key under ``cache_root/namespace``."""

    def __init__(
        self,
        cache_root: str = "/tmp/filecache",
        namespace: str = "xpathfeed",
        execution_id: str | None = None,
    ):
        """Initialize the file store.

        Args:
            cache_root: Base directory for all namespaces
            namespace: Sub-directory used by this store
            execution_id: Execution ID for logging context
        """
        self.directory = Path(cache_root) / namespace
        self.logger = create_execution_logger("cache_store", execution_id)

    def path_for(self, key: str) -> Path:
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return self.directory / f"{digest}.json"

    def get(self, key: str) -> CacheEntry | None:
        path = self.path_for(key)
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return None
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            self.logger.warning(
                f"Ignoring corrupt cache file {path}: {e}", url=key, error=str(e)
            )
            return None
        except OSError as e:
            self.logger.error(f"Error reading cache file {path}: {e}", url=key)
            raise StorageError(f"Cannot read cache entry for {key}: {e}") from e

        try:
            return CacheEntry.from_dict(data)
        except (TypeError, ValueError, AttributeError) as e:
            self.logger.warning(
                f"Ignoring malformed cache entry {path}: {e}", url=key, error=str(e)
            )
            return None

    def set(self, key: str, entry: CacheEntry) -> None:
        path = self.path_for(key)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            # Write then rename so readers never see a partial file.
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump({"url": key, **entry.to_dict()}, f, ensure_ascii=False)
                os.replace(tmp_name, path)
            except BaseException:
                with contextlib.suppress(FileNotFoundError):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            self.logger.error(f"Error writing cache file {path}: {e}", url=key)
            raise StorageError(f"Cannot write cache entry for {key}: {e}") from e


class DynamoDBCacheStore:
    """Stores cache entries in a DynamoDB table keyed by ``url``."""

    def __init__(
        self,
        table_name: str,
        aws_region: str = "us-east-1",
        execution_id: str | None = None,
    ):
        """Initialize the store with DynamoDB configuration.

        Args:
            table_name: Name of the DynamoDB table
            aws_region: AWS region for DynamoDB client
            execution_id: Execution ID for logging context
        """
        self.table_name = table_name
        self.aws_region = aws_region
        self.logger = create_execution_logger("cache_store", execution_id)
        self.dynamodb = boto3.resource("dynamodb", region_name=aws_region)
        self.table = self.dynamodb.Table(table_name)

        self.logger.info(
            "DynamoDB cache store initialized",
            table_name=table_name,
            aws_region=aws_region,
        )

    def get(self, key: str) -> CacheEntry | None:
        try:
            response = self.table.get_item(Key={"url": key})
        except (ClientError, BotoCoreError) as e:
            self.logger.error(
                f"Error reading cache entry {key}: {e}", url=key, error=str(e)
            )
            raise StorageError(f"Cannot read cache entry for {key}: {e}") from e

        item = response.get("Item")
        if not item:
            return None
        return CacheEntry.from_dict(item)

    def set(self, key: str, entry: CacheEntry) -> None:
        try:
            self.table.put_item(Item={"url": key, **entry.to_dict()})
            self.logger.debug("Stored cache entry in DynamoDB", url=key)
        except (ClientError, BotoCoreError) as e:
            self.logger.error(
                f"Error storing cache entry {key}: {e}", url=key, error=str(e)
            )
            raise StorageError(f"Cannot write cache entry for {key}: {e}") from e
