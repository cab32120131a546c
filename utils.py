"""
Utility functions for soft failures, URL handling and common operations
"""
import time
import logging
from typing import Awaitable, Callable, Optional, TypeVar
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def soft_probe(operation: Awaitable[T], default: T, label: str = "probe",
                     on_failure: Optional[Callable[[str, Exception], None]] = None) -> T:
    """
    Await an operation and fall back to a default value on any failure

    Args:
        operation: Awaitable producing the probe result
        default: Value returned when the operation raises
        label: Name of the probe, used in the log message
        on_failure: Optional callback receiving the label and the exception
    """
    try:
        return await operation
    except Exception as e:
        logger.warning(f"Probe '{label}' failed, using default: {e!r}")
        if on_failure is not None:
            on_failure(label, e)
        return default


def normalize_url(url: str) -> str:
    """Prefix bare hostnames with an https scheme"""
    url = url.strip()
    if url.startswith("http://") or url.startswith("https://"):
        return url
    return f"https://{url}"


def extract_hostname(url: str) -> str:
    """Extract the hostname from a URL, tolerating bare hostnames"""
    try:
        hostname = urlparse(normalize_url(url)).hostname
        return hostname or url
    except ValueError:
        return url


def get_origin(url: str) -> str:
    """Return scheme://netloc of a URL"""
    parsed = urlparse(normalize_url(url))
    return f"{parsed.scheme}://{parsed.netloc}"


def validate_url(url: str) -> bool:
    """Validate if a URL is properly formatted"""
    try:
        result = urlparse(normalize_url(url))
        return all([result.scheme, result.netloc])
    except Exception:
        return False


def safe_extract_text(element, default: str = "") -> str:
    """Safely extract text from BeautifulSoup element"""
    try:
        if element:
            return element.get_text().strip()
        return default
    except Exception:
        return default


def safe_extract_attribute(element, attribute: str, default: str = "") -> str:
    """Safely extract attribute from BeautifulSoup element"""
    try:
        if element:
            value = element.get(attribute, default)
            # Multi-valued attributes (class, rel) come back as lists
            if isinstance(value, list):
                return " ".join(value)
            return value if value is not None else default
        return default
    except Exception:
        return default


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positive values"""
    return int(value + 0.5)


class PerformanceMonitor:
    """Monitor and log performance metrics"""

    def __init__(self):
        self.metrics = {}

    def start_timer(self, operation: str):
        """Start timing an operation"""
        self.metrics[operation] = {'start': time.time()}

    def end_timer(self, operation: str) -> float:
        """End timing and log results"""
        if operation in self.metrics:
            duration = time.time() - self.metrics[operation]['start']
            self.metrics[operation]['duration'] = duration
            logger.info(f"Operation '{operation}' completed in {duration:.2f} seconds")
            return duration
        return 0

    def get_metrics(self) -> dict:
        """Get all recorded metrics"""
        return self.metrics.copy()
