"""
Async HTTP utilities shared by the content and security branches
"""
import asyncio
import aiohttp
import logging
import random
import time
from dataclasses import dataclass, field
from typing import Dict, Optional, Any

from config import AnalyzerConfig, config as default_config

logger = logging.getLogger(__name__)


class AnalysisError(Exception):
    """Base class for errors raised by the analysis engine"""


class FatalFetchError(AnalysisError):
    """The primary page could not be retrieved"""

    def __init__(self, url: str, reason: str):
        super().__init__(f"Could not fetch {url}: {reason}")
        self.url = url
        self.reason = reason


class HTTPStatusError(AnalysisError):
    """A response came back with a non-2xx status"""

    def __init__(self, url: str, status: int):
        super().__init__(f"HTTP {status} for {url}")
        self.url = url
        self.status = status


@dataclass
class HTTPResult:
    """Status, lower-cased headers and (optionally) body of one response"""
    status: int
    headers: Dict[str, str] = field(default_factory=dict)
    text: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def header(self, name: str) -> Optional[str]:
        return self.headers.get(name.lower())


class AsyncHTTPClient:
    """Async HTTP client with connection limits and optional rate limiting"""

    def __init__(self, settings: AnalyzerConfig = None):
        self.settings = settings or default_config
        self.max_concurrent = self.settings.max_concurrent
        self.rate_limit = self.settings.rate_limit
        self.session = None
        self.semaphore = asyncio.Semaphore(self.max_concurrent)
        self.last_request_time = 0

    async def __aenter__(self):
        connector = aiohttp.TCPConnector(
            limit=self.max_concurrent,
            limit_per_host=self.settings.limit_per_host,
            ttl_dns_cache=300,
            use_dns_cache=True
        )

        timeout = aiohttp.ClientTimeout(total=self.settings.timeout)

        self.session = aiohttp.ClientSession(
            connector=connector,
            timeout=timeout,
            headers={
                'User-Agent': random.choice(self.settings.user_agents),
                'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
                'Accept-Language': 'en-US,en;q=0.5',
                'Accept-Encoding': 'gzip, deflate',
            }
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self.session:
            await self.session.close()
            self.session = None

    async def _throttle(self):
        if self.rate_limit <= 0:
            return
        time_since_last = time.time() - self.last_request_time
        if time_since_last < self.rate_limit:
            await asyncio.sleep(self.rate_limit - time_since_last)
        self.last_request_time = time.time()

    async def request(self, method: str, url: str, allow_redirects: bool = True,
                      params: Dict[str, Any] = None, read_body: bool = True) -> HTTPResult:
        """
        Issue one request and return its status, headers and body

        Network errors and timeouts propagate to the caller.
        """
        if self.session is None:
            raise RuntimeError("AsyncHTTPClient must be used as an async context manager")

        async with self.semaphore:
            await self._throttle()
            async with self.session.request(method, url, allow_redirects=allow_redirects,
                                            params=params) as response:
                headers = {name.lower(): value for name, value in response.headers.items()}
                text = await response.text(errors="replace") if read_body else ""
                logger.debug(f"{method} {url} -> HTTP {response.status}")
                return HTTPResult(status=response.status, headers=headers, text=text)

    async def head(self, url: str, allow_redirects: bool = True) -> HTTPResult:
        """Lightweight request without a body"""
        return await self.request("HEAD", url, allow_redirects=allow_redirects, read_body=False)

    async def get(self, url: str, **kwargs) -> HTTPResult:
        return await self.request("GET", url, **kwargs)

    async def get_text(self, url: str, **kwargs) -> str:
        """GET a body, raising on any non-2xx status"""
        result = await self.get(url, **kwargs)
        if not result.ok:
            raise HTTPStatusError(url, result.status)
        return result.text

    async def get_json(self, url: str, params: Dict[str, Any] = None) -> Any:
        """GET a JSON document, raising on any non-2xx status"""
        if self.session is None:
            raise RuntimeError("AsyncHTTPClient must be used as an async context manager")

        async with self.semaphore:
            await self._throttle()
            async with self.session.get(url, params=params) as response:
                if not 200 <= response.status < 300:
                    raise HTTPStatusError(url, response.status)
                return await response.json(content_type=None)


class ContentFetcher:
    """Retrieves the raw HTML of the page under analysis"""

    def __init__(self, client: AsyncHTTPClient):
        self.client = client

    async def fetch(self, url: str) -> str:
        try:
            html = await self.client.get_text(url)
        except Exception as e:
            logger.error(f"Failed to fetch {url}: {e!r}")
            raise FatalFetchError(url, str(e) or e.__class__.__name__) from e

        logger.info(f"Fetched {len(html)} characters from {url}")
        return html
