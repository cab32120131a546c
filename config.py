"""
Configuration file for the Website Analysis Engine
"""
from dataclasses import dataclass
from typing import List, Tuple

# Fixed probe catalogues (9 admin paths, 11 sensitive files), not part of AnalyzerConfig
ADMIN_PATHS: Tuple[str, ...] = (
    "/admin",
    "/administrator",
    "/wp-admin",
    "/admin.php",
    "/login",
    "/dashboard",
    "/cpanel",
    "/control",
    "/manager",
)

SENSITIVE_FILES: Tuple[str, ...] = (
    "/.env",
    "/config.php",
    "/wp-config.php",
    "/.htaccess",
    "/robots.txt",
    "/sitemap.xml",
    "/backup.sql",
    "/database.sql",
    "/.git/config",
    "/composer.json",
    "/package.json",
)

DIRECTORY_INDEX_MARKERS: Tuple[str, ...] = (
    "Index of /",
    "Directory Listing",
    "<title>Index of",
)

SSL_LABS_API = "https://api.ssllabs.com/api/v3/analyze"


@dataclass
class AnalyzerConfig:
    """Configuration settings for the website analyzer"""

    # HTTP settings
    timeout: int = 15
    max_concurrent: int = 10
    limit_per_host: int = 5
    rate_limit: float = 0.0

    # User agents for rotation
    user_agents: List[str] = None

    # TLS grading
    ssl_labs_api: str = SSL_LABS_API
    tls_max_attempts: int = 30
    tls_poll_interval: float = 10.0

    # Content extraction limits
    keyword_limit: int = 10
    heading_examples: int = 5
    image_examples: int = 2

    # Logging
    log_level: str = "INFO"
    log_format: str = "%(asctime)s - %(levelname)s - %(message)s"

    def __post_init__(self):
        if self.user_agents is None:
            self.user_agents = [
                "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
                "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
                "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
            ]

# Default configuration instance
config = AnalyzerConfig()
