"""
Pytest configuration and shared fixtures
"""
import pytest
import os
import asyncio

# Add project root to path
import sys
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from config import AnalyzerConfig
from http_client import HTTPResult, HTTPStatusError
from monitoring import MetricsCollector


class FakeHTTPClient:
    """In-memory stand-in for AsyncHTTPClient

    ``responses`` maps (method, url) to an HTTPResult or an exception to
    raise. Unknown URLs answer ``default_status``. ``json_responses`` is a
    queue consumed by get_json, one entry per call.
    """

    def __init__(self, responses=None, json_responses=None, default_status=404):
        self.responses = dict(responses or {})
        self.json_responses = list(json_responses or [])
        self.default_status = default_status
        self.calls = []
        self.json_calls = []
        self.entered = False
        self.exited = False

    async def __aenter__(self):
        self.entered = True
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.exited = True

    async def request(self, method, url, allow_redirects=True, params=None, read_body=True):
        self.calls.append((method, url, allow_redirects))
        result = self.responses.get((method, url), HTTPResult(status=self.default_status))
        if isinstance(result, Exception):
            raise result
        return result

    async def head(self, url, allow_redirects=True):
        return await self.request("HEAD", url, allow_redirects=allow_redirects, read_body=False)

    async def get(self, url, **kwargs):
        return await self.request("GET", url, **kwargs)

    async def get_text(self, url, **kwargs):
        result = await self.get(url, **kwargs)
        if not result.ok:
            raise HTTPStatusError(url, result.status)
        return result.text

    async def get_json(self, url, params=None):
        self.json_calls.append((url, dict(params or {})))
        if not self.json_responses:
            raise RuntimeError("no JSON response queued")
        payload = self.json_responses.pop(0)
        if isinstance(payload, Exception):
            raise payload
        return payload

    def urls_for(self, method):
        return [url for m, url, _ in self.calls if m == method]


class FakeSleep:
    """Records requested delays instead of waiting"""

    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)

    @property
    def total(self):
        return sum(self.delays)


@pytest.fixture
def event_loop():
    """Create an instance of the default event loop for the test session."""
    loop = asyncio.new_event_loop()
    yield loop
    loop.close()


@pytest.fixture
def run(event_loop):
    """Run a coroutine to completion on the test loop"""
    def _run(coro):
        return event_loop.run_until_complete(coro)
    return _run


@pytest.fixture
def test_config():
    """Test configuration with a small TLS poll budget"""
    return AnalyzerConfig(timeout=5, tls_max_attempts=3, tls_poll_interval=10.0)


@pytest.fixture
def fake_sleep():
    return FakeSleep()


@pytest.fixture
def metrics():
    return MetricsCollector()


@pytest.fixture
def make_client():
    """Factory for fake HTTP clients"""
    def _make(responses=None, json_responses=None, default_status=404):
        return FakeHTTPClient(responses, json_responses, default_status)
    return _make


@pytest.fixture
def sample_html():
    """A realistic page with every signal the extractor looks at"""
    return """
    <html>
        <head>
            <title>Phoenix Dental Care</title>
            <meta name="description" content="Family dentistry in downtown Phoenix.">
            <meta name="robots" content="NOINDEX, follow">
            <meta property="og:title" content="Phoenix Dental Care">
            <meta property="og:type" content="website">
            <link rel="canonical" href="https://www.example.com/">
            <script type="application/ld+json">{"@type": "Dentist"}</script>
        </head>
        <body>
            <h1>Dental care for families</h1>
            <h2>Cleanings</h2>
            <h2>Whitening</h2>
            <p>Dental cleanings and dental whitening for every family.</p>
            <ul><li>Gentle dental visits</li></ul>
            <img src="team.jpg" alt="Our team">
            <img src="office.jpg">
            <img src="chair.jpg" alt="">
            <a href="https://www.example.com/about">About</a>
            <a href="/contact">Contact</a>
            <a href="#top">Top</a>
            <a href="https://other.org/">Partner</a>
            <a>No href</a>
        </body>
    </html>
    """


@pytest.fixture
def minimal_html():
    return '<html><title>T</title><meta name="description" content="D"></html>'


@pytest.fixture
def ssl_labs_endpoint():
    """One endpoint as returned by the grading API with all=done"""
    return {
        "ipAddress": "93.184.216.34",
        "grade": "A+",
        "statusMessage": "Ready",
        "details": {
            "protocols": [
                {"id": 771, "name": "TLS", "version": "1.2"},
                {"id": 772, "name": "TLS", "version": "1.3"},
            ],
            "cert": {"subject": "CN=www.example.com"},
            "key": {"alg": "RSA", "size": 2048},
            "forwardSecrecy": 4,
        },
    }
