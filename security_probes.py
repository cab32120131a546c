"""
External security probes: response headers and exposed surface checks
"""
import asyncio
import logging
from typing import Callable, List, Optional, Tuple

from config import ADMIN_PATHS, DIRECTORY_INDEX_MARKERS, SENSITIVE_FILES
from models import AdminURLFinding, SecurityHeaders, SensitiveFileFinding, Vulnerabilities
from utils import soft_probe

logger = logging.getLogger(__name__)

FailureCallback = Optional[Callable[[str, Exception], None]]


class HeaderProbe:
    """Reads the security headers returned by the site root"""

    HEADER_FIELDS = {
        'strict_transport_security': 'strict-transport-security',
        'x_frame_options': 'x-frame-options',
        'x_xss_protection': 'x-xss-protection',
        'content_security_policy': 'content-security-policy',
        'x_content_type_options': 'x-content-type-options',
    }

    def __init__(self, client, on_failure: FailureCallback = None):
        self.client = client
        self.on_failure = on_failure

    async def check(self, hostname: str) -> SecurityHeaders:
        """HEAD https://{hostname}; all fields stay None when the host is unreachable"""
        return await soft_probe(
            self._read_headers(hostname),
            SecurityHeaders(),
            label="security headers",
            on_failure=self.on_failure,
        )

    async def _read_headers(self, hostname: str) -> SecurityHeaders:
        response = await self.client.head(f"https://{hostname}", allow_redirects=True)
        values = {
            field_name: response.header(header_name) or None
            for field_name, header_name in self.HEADER_FIELDS.items()
        }
        found = [name for name, value in values.items() if value]
        logger.info(f"Security headers present on {hostname}: {found or 'none'}")
        return SecurityHeaders(**values)


class SurfaceProbe:
    """
    Checks a fixed catalogue of admin paths and sensitive files, plus the
    site root for an auto-generated directory listing.

    Each request is soft: a failure for one path drops that path from the
    results and never aborts the scan. Results keep catalogue order.
    """

    def __init__(self, client, admin_paths: Tuple[str, ...] = None,
                 sensitive_files: Tuple[str, ...] = None,
                 index_markers: Tuple[str, ...] = None,
                 on_failure: FailureCallback = None):
        self.client = client
        self.admin_paths = tuple(admin_paths if admin_paths is not None else ADMIN_PATHS)
        self.sensitive_files = tuple(sensitive_files if sensitive_files is not None else SENSITIVE_FILES)
        self.index_markers = tuple(index_markers if index_markers is not None else DIRECTORY_INDEX_MARKERS)
        self.on_failure = on_failure

    async def scan(self, hostname: str) -> Vulnerabilities:
        base_url = f"https://{hostname}"
        admin_urls, directory_indexing, sensitive_files = await asyncio.gather(
            self.scan_admin_paths(base_url),
            self.check_directory_indexing(base_url),
            self.scan_sensitive_files(base_url),
        )
        logger.info(
            f"Surface scan of {hostname}: {len(admin_urls)} admin URLs, "
            f"directory indexing={directory_indexing}, {len(sensitive_files)} sensitive files"
        )
        return Vulnerabilities(
            admin_urls=admin_urls,
            directory_indexing=directory_indexing,
            sensitive_files=sensitive_files,
        )

    async def scan_admin_paths(self, base_url: str) -> List[AdminURLFinding]:
        statuses = await asyncio.gather(*[
            soft_probe(self._status(f"{base_url}{path}", allow_redirects=False), None,
                       label=f"admin {path}", on_failure=self.on_failure)
            for path in self.admin_paths
        ])
        return [
            AdminURLFinding(url=path, status=status)
            for path, status in zip(self.admin_paths, statuses)
            if status is not None and status not in (0, 404)
        ]

    async def check_directory_indexing(self, base_url: str) -> bool:
        return await soft_probe(self._has_index_listing(f"{base_url}/"), False,
                                label="directory indexing", on_failure=self.on_failure)

    async def scan_sensitive_files(self, base_url: str) -> List[SensitiveFileFinding]:
        statuses = await asyncio.gather(*[
            soft_probe(self._status(f"{base_url}{path}", allow_redirects=True), None,
                       label=f"file {path}", on_failure=self.on_failure)
            for path in self.sensitive_files
        ])
        return [
            SensitiveFileFinding(file=path, status=status)
            for path, status in zip(self.sensitive_files, statuses)
            if status == 200
        ]

    async def _status(self, url: str, allow_redirects: bool) -> int:
        response = await self.client.head(url, allow_redirects=allow_redirects)
        return response.status

    async def _has_index_listing(self, url: str) -> bool:
        response = await self.client.get(url)
        return any(marker in response.text for marker in self.index_markers)
