"""
Data models for the Website Analysis Engine
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Dict, Any, Optional

ANALYSIS_FAILED_MESSAGE = "Failed to analyze the page"


# SEO models

@dataclass(frozen=True)
class KeywordSummary:
    """Most frequent words in the visible text of a page"""
    keywords: List[str]
    description: str = "Top 10 most frequent keywords found on the page"

    def to_dict(self) -> Dict[str, Any]:
        return {"description": self.description, "keywords": list(self.keywords)}


@dataclass(frozen=True)
class MetaDescriptionSummary:
    found: bool
    length: int
    content: str

    def to_dict(self) -> Dict[str, Any]:
        return {"found": self.found, "length": self.length, "content": self.content}


@dataclass(frozen=True)
class TitleSummary:
    length: int
    content: str

    def to_dict(self) -> Dict[str, Any]:
        return {"length": self.length, "content": self.content}


@dataclass(frozen=True)
class HeadingSummary:
    """Count of one heading level plus a few example texts"""
    count: int
    examples: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return {"count": self.count, "examples": list(self.examples)}


@dataclass(frozen=True)
class ImageSummary:
    """Alt-text coverage for the images of a page"""
    total: int
    missing_alt: int
    missing_alt_percentage: int
    examples: List[Dict[str, str]]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "missingAlt": self.missing_alt,
            "missingAltPercentage": self.missing_alt_percentage,
            "examples": [dict(example) for example in self.examples],
        }


@dataclass(frozen=True)
class LinkSummary:
    """Internal/external split of the anchors of a page"""
    total: int
    internal: int
    external: int
    ratio: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "internal": self.internal,
            "external": self.external,
            "ratio": self.ratio,
        }


@dataclass(frozen=True)
class CanonicalTag:
    found: bool
    url: str

    def to_dict(self) -> Dict[str, Any]:
        return {"found": self.found, "url": self.url}


@dataclass(frozen=True)
class OpenGraphSummary:
    found: bool
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {"found": self.found, "count": self.count}


@dataclass(frozen=True)
class MetaTagSummary:
    """Canonical, robots noindex and Open Graph signals"""
    canonical: CanonicalTag
    noindex: bool
    open_graph: OpenGraphSummary

    def to_dict(self) -> Dict[str, Any]:
        return {
            "canonical": self.canonical.to_dict(),
            "noindex": {"isNoIndex": self.noindex},
            "openGraph": self.open_graph.to_dict(),
        }


@dataclass(frozen=True)
class WWWCanonicalization:
    has_www: bool
    recommendation: str = "Ensure either www or non-www version redirects to the preferred version"

    def to_dict(self) -> Dict[str, Any]:
        return {"hasWWW": self.has_www, "recommendation": self.recommendation}


@dataclass(frozen=True)
class RobotsTxtSummary:
    exists: bool
    disallow_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"exists": self.exists, "disallowCount": self.disallow_count}


@dataclass(frozen=True)
class SchemaMarkupSummary:
    found: bool
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {"found": self.found, "count": self.count}


@dataclass(frozen=True)
class TechnicalSEOSummary:
    """Site-level technical SEO checks"""
    www_canonicalization: WWWCanonicalization
    robots_txt: RobotsTxtSummary
    schema_markup: SchemaMarkupSummary

    def to_dict(self) -> Dict[str, Any]:
        return {
            "wwwCanonicalization": self.www_canonicalization.to_dict(),
            "robotsTxt": self.robots_txt.to_dict(),
            "schemaMarkup": self.schema_markup.to_dict(),
        }


@dataclass(frozen=True)
class SearchPreview:
    """Approximation of how the page shows up in a search result"""
    title: str
    url: str
    description: str

    @property
    def preview_text(self) -> str:
        return f"{self.title} - {self.description[:100]}..."

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "url": self.url,
            "description": self.description,
            "previewText": self.preview_text,
        }


@dataclass(frozen=True)
class SEOReport:
    """Data structure for the on-page SEO sub-report"""
    common_keywords: KeywordSummary
    meta_description: MetaDescriptionSummary
    headings: Dict[str, HeadingSummary]
    images: ImageSummary
    links: LinkSummary
    title: TitleSummary
    meta_tags: MetaTagSummary
    technical_seo: TechnicalSEOSummary
    search_preview: SearchPreview

    def to_dict(self) -> Dict[str, Any]:
        return {
            "commonKeywords": self.common_keywords.to_dict(),
            "metaDescription": self.meta_description.to_dict(),
            "headings": {tag: summary.to_dict() for tag, summary in self.headings.items()},
            "images": self.images.to_dict(),
            "links": self.links.to_dict(),
            "title": self.title.to_dict(),
            "metaTags": self.meta_tags.to_dict(),
            "technicalSEO": self.technical_seo.to_dict(),
            "searchPreview": self.search_preview.to_dict(),
        }


# Security models

@dataclass(frozen=True)
class SecurityHeaders:
    """Security-relevant response headers; None when the header is absent"""
    strict_transport_security: Optional[str] = None
    x_frame_options: Optional[str] = None
    x_xss_protection: Optional[str] = None
    content_security_policy: Optional[str] = None
    x_content_type_options: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "strictTransportSecurity": self.strict_transport_security,
            "xFrameOptions": self.x_frame_options,
            "xXssProtection": self.x_xss_protection,
            "contentSecurityPolicy": self.content_security_policy,
            "xContentTypeOptions": self.x_content_type_options,
        }


@dataclass(frozen=True)
class AdminURLFinding:
    """An admin path that answered with something other than 404"""
    url: str
    status: int

    @property
    def accessible(self) -> bool:
        return self.status < 400

    def to_dict(self) -> Dict[str, Any]:
        return {"url": self.url, "status": self.status, "accessible": self.accessible}


@dataclass(frozen=True)
class SensitiveFileFinding:
    """A sensitive file that answered 200"""
    file: str
    status: int = 200
    accessible: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {"file": self.file, "accessible": self.accessible, "status": self.status}


@dataclass(frozen=True)
class Vulnerabilities:
    admin_urls: List[AdminURLFinding] = field(default_factory=list)
    directory_indexing: bool = False
    sensitive_files: List[SensitiveFileFinding] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "adminUrls": [finding.to_dict() for finding in self.admin_urls],
            "directoryIndexing": self.directory_indexing,
            "sensitiveFiles": [finding.to_dict() for finding in self.sensitive_files],
        }


@dataclass(frozen=True)
class SSLEndpointDetails:
    protocols: List[Dict[str, str]] = field(default_factory=list)
    cert_subject: Optional[str] = None
    key_alg: Optional[str] = None
    key_size: Optional[int] = None
    forward_secrecy: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SSLEndpointDetails":
        cert = data.get("cert") or {}
        key = data.get("key") or {}
        protocols = [
            {"name": str(p.get("name", "")), "version": str(p.get("version", ""))}
            for p in data.get("protocols") or []
            if isinstance(p, dict)
        ]
        return cls(
            protocols=protocols,
            cert_subject=cert.get("subject"),
            key_alg=key.get("alg"),
            key_size=key.get("size"),
            forward_secrecy=bool(data.get("forwardSecrecy")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "protocols": [dict(p) for p in self.protocols],
            "cert": {"subject": self.cert_subject},
            "key": {"alg": self.key_alg, "size": self.key_size},
            "forwardSecrecy": self.forward_secrecy,
        }


@dataclass(frozen=True)
class SSLEndpointReport:
    """One endpoint (IP address) graded by the TLS grading service"""
    ip_address: str
    grade: Optional[str] = None
    details: Optional[SSLEndpointDetails] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SSLEndpointReport":
        details = data.get("details")
        return cls(
            ip_address=str(data.get("ipAddress", "")),
            grade=data.get("grade"),
            details=SSLEndpointDetails.from_dict(details) if isinstance(details, dict) else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ipAddress": self.ip_address,
            "grade": self.grade,
            "details": self.details.to_dict() if self.details else None,
        }


class TLSState(Enum):
    STARTING = "STARTING"
    POLLING = "POLLING"
    READY = "READY"
    ERROR = "ERROR"
    TIMEOUT = "TIMEOUT"

    @property
    def is_terminal(self) -> bool:
        return self in (TLSState.READY, TLSState.ERROR, TLSState.TIMEOUT)


@dataclass(frozen=True)
class TLSAssessment:
    """Outcome of a TLS grading job; endpoints are only set when READY"""
    state: TLSState
    endpoints: List[SSLEndpointReport] = field(default_factory=list)
    attempts: int = 0
    error: Optional[str] = None

    def to_dict(self) -> Optional[Dict[str, Any]]:
        if self.state is not TLSState.READY:
            return None
        return {
            "status": self.state.value,
            "endpoints": [endpoint.to_dict() for endpoint in self.endpoints],
        }


@dataclass(frozen=True)
class SecurityReport:
    """Data structure for the external security posture sub-report"""
    headers: SecurityHeaders
    vulnerabilities: Vulnerabilities
    tls: Optional[TLSAssessment] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ssl": self.tls.to_dict() if self.tls else None,
            "securityHeaders": self.headers.to_dict(),
            "vulnerabilities": self.vulnerabilities.to_dict(),
        }


@dataclass(frozen=True)
class AnalysisReport:
    """Top-level result of one website analysis"""
    url: str
    seo: Optional[SEOReport] = None
    security: Optional[SecurityReport] = None
    error: Optional[str] = None
    timestamp: Optional[str] = None
    duration: float = 0.0

    @classmethod
    def failed(cls, url: str) -> "AnalysisReport":
        return cls(url=url, error=ANALYSIS_FAILED_MESSAGE)

    @property
    def success(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        if self.error:
            return {"error": self.error}
        return {
            "url": self.url,
            "seo": self.seo.to_dict() if self.seo else None,
            "security": self.security.to_dict() if self.security else None,
            "timestamp": self.timestamp,
            "duration": round(self.duration, 3),
        }
