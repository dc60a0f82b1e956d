"""HTTP fetching for XPathFeed."""

from datetime import UTC, datetime
from email.utils import format_datetime

import requests

from .errors import NetworkError
from .logging_config import create_execution_logger
from .models import FetchResult

DEFAULT_USER_AGENT = "XPathFeed/1.0 (+HTML to RSS)"


class Fetcher:
    """Performs single, optionally conditional, HTTP GET requests."""

    def __init__(
        self,
        timeout: int = 30,
        user_agent: str = DEFAULT_USER_AGENT,
        session: requests.Session | None = None,
        execution_id: str | None = None,
    ):
        """Initialize Fetcher with configuration.

        Args:
            timeout: HTTP request timeout in seconds
            user_agent: User-Agent header sent with every request
            session: Optional pre-built requests session
            execution_id: Execution ID for logging context
        """
        self.timeout = timeout
        self.logger = create_execution_logger("fetcher", execution_id)
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": user_agent})

        self.logger.info("Fetcher initialized", timeout=timeout)

    def get(self, url: str, if_modified_since: datetime | None = None) -> FetchResult:
        """Fetch a page.

        Args:
            url: Absolute URL to fetch
            if_modified_since: When given, send a conditional request

        Returns:
            FetchResult for any HTTP status the server answered with

        Raises:
            NetworkError: If the request could not be completed
        """
        headers = {}
        if if_modified_since is not None:
            headers["If-Modified-Since"] = format_datetime(
                if_modified_since.astimezone(UTC), usegmt=True
            )

        try:
            response = self.session.get(url, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            self.logger.error(
                f"Failed to download {url}: {e}", url=url, error=str(e)
            )
            raise NetworkError(url, f"Request failed: {e}") from e

        self.logger.log_fetch(
            url, response.status_code, conditional=if_modified_since is not None
        )

        # requests falls back to ISO-8859-1 for text/* without a charset.
        if response.encoding is None or (
            "charset" not in response.headers.get("Content-Type", "").lower()
        ):
            response.encoding = response.apparent_encoding

        return FetchResult(
            status_code=response.status_code,
            content=response.content,
            text=response.text,
            url=response.url,
            headers=dict(response.headers),
        )

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "Fetcher":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
