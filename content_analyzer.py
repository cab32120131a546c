"""
Content analysis module: derives on-page SEO signals from a fetched page
"""
import re
import logging
from collections import Counter
from typing import Callable, Optional
from urllib.parse import urlparse

from bs4 import BeautifulSoup

from config import AnalyzerConfig, config as default_config
from models import (
    CanonicalTag, HeadingSummary, ImageSummary, KeywordSummary, LinkSummary,
    MetaDescriptionSummary, MetaTagSummary, OpenGraphSummary, RobotsTxtSummary,
    SchemaMarkupSummary, SearchPreview, SEOReport, TechnicalSEOSummary,
    TitleSummary, WWWCanonicalization,
)
from utils import get_origin, normalize_url, round_half_up, safe_extract_attribute, soft_probe

logger = logging.getLogger(__name__)

KEYWORD_SELECTOR = "h1, h2, h3, h4, h5, h6, span, p, li"
NON_ALPHA = re.compile(r"[^a-z]")
MIN_KEYWORD_LENGTH = 4


class ContentExtractor:
    """Handles on-page SEO extraction for a single document"""

    def __init__(self, settings: AnalyzerConfig = None,
                 on_probe_failure: Optional[Callable[[str, Exception], None]] = None):
        self.settings = settings or default_config
        self.on_probe_failure = on_probe_failure

    async def analyze(self, client, html: str, url: str) -> SEOReport:
        """Build the SEO sub-report for an already fetched page"""
        logger.info(f"Extracting SEO signals for {url}")
        soup = BeautifulSoup(html, 'html.parser')

        robots_txt = await self.check_robots_txt(client, url)

        report = self.extract(soup, url, robots_txt)
        logger.info(
            f"Found {report.links.total} links, {report.images.total} images, "
            f"{len(report.common_keywords.keywords)} keywords"
        )
        return report

    def extract(self, soup: BeautifulSoup, url: str,
                robots_txt: RobotsTxtSummary = None) -> SEOReport:
        """Synchronous part of the extraction, usable without network access"""
        return SEOReport(
            common_keywords=self.get_common_keywords(soup),
            meta_description=self.get_meta_description(soup),
            headings={
                'h1': self.get_headings(soup, 'h1'),
                'h2': self.get_headings(soup, 'h2'),
            },
            images=self.analyze_images(soup),
            links=self.analyze_links(soup, url),
            title=self.get_title(soup),
            meta_tags=MetaTagSummary(
                canonical=self.get_canonical_tag(soup),
                noindex=self.check_noindex(soup),
                open_graph=self.check_open_graph(soup),
            ),
            technical_seo=TechnicalSEOSummary(
                www_canonicalization=self.check_www_canonicalization(url),
                robots_txt=robots_txt or RobotsTxtSummary(exists=False),
                schema_markup=self.check_schema(soup),
            ),
            search_preview=self.generate_search_preview(soup, url),
        )

    def get_common_keywords(self, soup: BeautifulSoup) -> KeywordSummary:
        """Rank words longer than three characters by frequency"""
        # html.parser only creates <body> when the markup has one
        root = soup.body or soup
        text = " ".join(element.get_text() for element in root.select(KEYWORD_SELECTOR))
        words = [word for word in text.lower().split() if len(word) >= MIN_KEYWORD_LENGTH]

        word_count = Counter()
        for word in words:
            token = NON_ALPHA.sub("", word)
            # Tokens made only of digits or punctuation clean down to nothing
            if token:
                word_count[token] += 1

        # sorted() is stable, so ties keep first-seen order
        ranked = sorted(word_count.items(), key=lambda item: item[1], reverse=True)
        return KeywordSummary(keywords=[word for word, _ in ranked[:self.settings.keyword_limit]])

    def get_meta_description(self, soup: BeautifulSoup) -> MetaDescriptionSummary:
        description = self._meta_description_content(soup)
        return MetaDescriptionSummary(
            found=len(description) > 0,
            length=len(description),
            content=description or "No meta description found",
        )

    def get_headings(self, soup: BeautifulSoup, tag: str) -> HeadingSummary:
        headings = [heading.get_text().strip() for heading in soup.find_all(tag)]
        return HeadingSummary(
            count=len(headings),
            examples=headings[:self.settings.heading_examples],
        )

    def analyze_images(self, soup: BeautifulSoup) -> ImageSummary:
        """Count images and how many of them lack alt text"""
        images = [
            {
                'src': safe_extract_attribute(img, 'src'),
                'alt': safe_extract_attribute(img, 'alt'),
            }
            for img in soup.find_all('img')
        ]
        missing = [image for image in images if not image['alt']]

        percentage = round_half_up(len(missing) / len(images) * 100) if images else 0

        return ImageSummary(
            total=len(images),
            missing_alt=len(missing),
            missing_alt_percentage=percentage,
            examples=missing[:self.settings.image_examples],
        )

    def analyze_links(self, soup: BeautifulSoup, base_url: str) -> LinkSummary:
        """Split anchors into internal and external links"""
        links = [a.get('href') for a in soup.find_all('a') if a.get('href') is not None]
        domain = urlparse(normalize_url(base_url)).hostname or ""

        internal = len([href for href in links if self._is_internal(href, domain)])
        total = len(links)

        ratio = f"{internal / total * 100:.1f}% internal" if total else "0.0% internal"

        return LinkSummary(
            total=total,
            internal=internal,
            external=total - internal,
            ratio=ratio,
        )

    @staticmethod
    def _is_internal(href: str, domain: str) -> bool:
        if not href:
            return False
        return bool(domain and domain in href) or href.startswith('/') or href.startswith('#')

    def get_title(self, soup: BeautifulSoup) -> TitleSummary:
        title = self._title_text(soup)
        return TitleSummary(length=len(title), content=title or "No title found")

    def get_canonical_tag(self, soup: BeautifulSoup) -> CanonicalTag:
        canonical = safe_extract_attribute(soup.select_one('link[rel="canonical"]'), 'href')
        return CanonicalTag(found=len(canonical) > 0, url=canonical or "No canonical tag found")

    def check_noindex(self, soup: BeautifulSoup) -> bool:
        robots = safe_extract_attribute(soup.select_one('meta[name="robots"]'), 'content')
        return 'noindex' in robots.lower()

    def check_open_graph(self, soup: BeautifulSoup) -> OpenGraphSummary:
        og_tags = len(soup.select('meta[property^="og:"]'))
        return OpenGraphSummary(found=og_tags > 0, count=og_tags)

    def check_www_canonicalization(self, url: str) -> WWWCanonicalization:
        # Heuristic on the URL string only; redirects are not followed
        return WWWCanonicalization(has_www='www.' in url)

    def check_schema(self, soup: BeautifulSoup) -> SchemaMarkupSummary:
        schema = len(soup.select('script[type="application/ld+json"]'))
        return SchemaMarkupSummary(found=schema > 0, count=schema)

    def generate_search_preview(self, soup: BeautifulSoup, url: str) -> SearchPreview:
        return SearchPreview(
            title=self._title_text(soup) or "No title",
            url=url,
            description=self._meta_description_content(soup) or "No description",
        )

    async def check_robots_txt(self, client, url: str) -> RobotsTxtSummary:
        """Fetch robots.txt from the site origin and count Disallow directives"""
        return await soft_probe(
            self._fetch_robots_txt(client, url),
            RobotsTxtSummary(exists=False),
            label="robots.txt",
            on_failure=self.on_probe_failure,
        )

    async def _fetch_robots_txt(self, client, url: str) -> RobotsTxtSummary:
        robots_url = f"{get_origin(url)}/robots.txt"
        body = await client.get_text(robots_url)
        return RobotsTxtSummary(exists=True, disallow_count=body.count("Disallow:"))

    @staticmethod
    def _title_text(soup: BeautifulSoup) -> str:
        return "".join(title.get_text() for title in soup.find_all('title'))

    @staticmethod
    def _meta_description_content(soup: BeautifulSoup) -> str:
        return safe_extract_attribute(soup.select_one('meta[name="description"]'), 'content')
