"""Section-based extraction for LinkedIn profile and job pages."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Optional, Sequence

import tldextract

from .config import ExtractionThresholds
from .document import ExtractionOptions, PageDocument
from .generic import GenericStrategy
from .strategy import ExtractionStrategy
from .text import normalize

LOGGER = logging.getLogger(__name__)

# Bundled public suffix snapshot only; detection must not hit the network.
_EXTRACT = tldextract.TLDExtract(cache_dir=None, suffix_list_urls=())

PROFILE = "profile"
JOB = "job"
OTHER = "other"


@dataclass(frozen=True)
class Section:
    label: str
    selector: str
    inline: bool = False

    def render(self, text: str) -> str:
        if self.inline:
            return f"{self.label}: {text}"
        return f"{self.label}:\n\n{text}"


PROFILE_SECTIONS: Sequence[Section] = (
    Section("Name", ".text-heading-xlarge", inline=True),
    Section("Headline", ".text-body-medium", inline=True),
    Section("About", "[data-field='about_section']"),
    Section("Experience", "#experience ~ .pvs-list__outer-container .pvs-entity"),
    Section("Education", "#education ~ .pvs-list__outer-container .pvs-entity"),
    Section("Skills", "#skills ~ .pvs-list__outer-container .pvs-entity"),
)

JOB_SECTIONS: Sequence[Section] = (
    Section("Job Title", ".job-details-jobs-unified-top-card__job-title", inline=True),
    Section("Company", ".job-details-jobs-unified-top-card__company-name", inline=True),
    Section("Location", ".job-details-jobs-unified-top-card__bullet", inline=True),
    Section("Description", ".jobs-description__content"),
    Section("Requirements", ".jobs-box__group .jobs-box__list-item"),
)


@lru_cache(maxsize=256)
def _registrable_domain(host: str) -> str:
    if not host:
        return ""
    extracted = _EXTRACT(host)
    if not extracted.domain or not extracted.suffix:
        return host
    return f"{extracted.domain}.{extracted.suffix}"


def page_kind(path: str) -> str:
    """Classify a LinkedIn URL path as profile, job or other."""
    path = path.lower()
    if "/in/" in path or "/profile/view" in path:
        return PROFILE
    if "/jobs/view/" in path or "/jobs/detail/" in path:
        return JOB
    return OTHER


class LinkedInStrategy(ExtractionStrategy):
    """Best-effort structured extraction; defers to the generic strategy.

    Section output shorter than ``thresholds.body_fallback_min_chars`` is
    replaced by the generic extraction with the metadata header included.
    """

    name = "linkedin"
    domain = "linkedin.com"

    def __init__(
        self,
        fallback: Optional[GenericStrategy] = None,
        thresholds: Optional[ExtractionThresholds] = None,
    ) -> None:
        self.fallback = fallback or GenericStrategy()
        self.thresholds = thresholds or ExtractionThresholds()

    def detect(self, document: PageDocument) -> bool:
        return _registrable_domain(document.host) == self.domain

    def extract(
        self, document: PageDocument, options: Optional[ExtractionOptions] = None
    ) -> str:
        options = options or ExtractionOptions()
        try:
            kind = page_kind(document.path)
            if kind == OTHER:
                return self.fallback.extract(document, options)

            sections = PROFILE_SECTIONS if kind == PROFILE else JOB_SECTIONS
            content = _extract_sections(document, sections)
            if len(content) < self.thresholds.body_fallback_min_chars:
                LOGGER.info(
                    "Too little %s content on %s (%d chars), using generic extraction",
                    kind,
                    document.url,
                    len(content),
                )
                return self.fallback.extract(
                    document, ExtractionOptions(include_metadata=True)
                )
            return content
        except Exception as exc:
            LOGGER.warning("LinkedIn extraction failed for %s: %s", document.url, exc)
            return self.fallback.extract(document, options)


def _extract_sections(document: PageDocument, sections: Sequence[Section]) -> str:
    rendered: List[str] = []
    for section in sections:
        texts = [normalize(element.get_text()) for element in document.select(section.selector)]
        text = "\n\n".join(t for t in texts if t)
        if text:
            rendered.append(section.render(text))
    return "\n\n".join(rendered)
