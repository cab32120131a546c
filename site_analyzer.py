"""
Website analyzer - orchestrates the content and security branches into one report
"""
import asyncio
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Optional

from config import AnalyzerConfig, config as default_config
from content_analyzer import ContentExtractor
from http_client import AsyncHTTPClient, ContentFetcher, FatalFetchError
from models import AnalysisReport, SecurityReport, SEOReport, Vulnerabilities
from monitoring import MetricsCollector, metrics_collector
from security_probes import HeaderProbe, SurfaceProbe
from tls_grader import TLSGradeClient
from utils import PerformanceMonitor, extract_hostname, normalize_url, soft_probe

logger = logging.getLogger(__name__)


class ReportAggregator:
    """
    Runs the content branch (fetch + extraction) and the security branch
    (headers, surface scan, TLS grade) concurrently and assembles one
    AnalysisReport.

    Only a failed fetch of the page itself fails the whole analysis; every
    other check degrades to its default value.
    """

    def __init__(self, settings: AnalyzerConfig = None,
                 client_factory: Callable[[], Any] = None,
                 sleep: Callable[[float], Awaitable[Any]] = None,
                 metrics: MetricsCollector = None):
        self.settings = settings or default_config
        self.client_factory = client_factory or (lambda: AsyncHTTPClient(self.settings))
        self.sleep = sleep
        self.metrics = metrics or metrics_collector

    async def analyze(self, url: str) -> AnalysisReport:
        """Analyze a single URL"""
        target = normalize_url(url)
        hostname = extract_hostname(url)
        logger.info(f"Starting analysis for {target} (host {hostname})")

        monitor = PerformanceMonitor()
        monitor.start_timer("website_analysis")

        async with self.client_factory() as client:
            content_task = asyncio.create_task(self.analyze_content(client, target))
            security_task = asyncio.create_task(self.analyze_security(client, hostname))

            try:
                seo = await content_task
            except FatalFetchError as e:
                await self._cancel(security_task)
                duration = monitor.end_timer("website_analysis")
                self.metrics.record_analysis(duration, success=False)
                logger.error(f"Analysis of {target} failed: {e}")
                return AnalysisReport.failed(target)
            except BaseException:
                await self._cancel(security_task)
                raise

            security = await security_task

        duration = monitor.end_timer("website_analysis")
        self.metrics.record_analysis(duration, success=True)

        return AnalysisReport(
            url=target,
            seo=seo,
            security=security,
            timestamp=datetime.now().isoformat(),
            duration=duration,
        )

    async def analyze_content(self, client, url: str) -> SEOReport:
        """Content branch: a failed fetch raises FatalFetchError"""
        html = await ContentFetcher(client).fetch(url)
        extractor = ContentExtractor(self.settings, on_probe_failure=self.metrics.record_soft_failure)
        return await extractor.analyze(client, html, url)

    async def analyze_security(self, client, hostname: str) -> SecurityReport:
        """Security branch: headers, surface scan and TLS grade, each independent"""
        on_failure = self.metrics.record_soft_failure
        header_probe = HeaderProbe(client, on_failure=on_failure)
        surface_probe = SurfaceProbe(client, on_failure=on_failure)
        tls_client = TLSGradeClient(
            client,
            api_url=self.settings.ssl_labs_api,
            max_attempts=self.settings.tls_max_attempts,
            poll_interval=self.settings.tls_poll_interval,
            sleep=self.sleep,
        )

        # HeaderProbe.check is already soft
        headers, vulnerabilities, tls = await asyncio.gather(
            header_probe.check(hostname),
            soft_probe(surface_probe.scan(hostname), Vulnerabilities(),
                       label="surface scan", on_failure=on_failure),
            soft_probe(tls_client.assess(hostname), None,
                       label="tls assessment", on_failure=on_failure),
        )
        return SecurityReport(headers=headers, vulnerabilities=vulnerabilities, tls=tls)

    @staticmethod
    async def _cancel(task: asyncio.Task):
        if not task.done():
            task.cancel()
        await asyncio.gather(task, return_exceptions=True)


async def analyze_website(url: str, settings: Optional[AnalyzerConfig] = None) -> AnalysisReport:
    """Convenience wrapper: one analysis with a fresh aggregator"""
    return await ReportAggregator(settings).analyze(url)
