"""Tiered content extraction that works on any page.

Tier 1 returns the first semantic container (article, main, ...) whose text
is long enough. Tier 2 strips navigation and other noise from a copy of the
tree and stitches together the title, the description metadata and every
heading or paragraph with substantial text. Tier 3 falls back to the whole
body text when tier 2 produced almost nothing.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from bs4 import BeautifulSoup

from .config import (
    MAIN_CONTENT_SELECTORS,
    NOISE_SELECTORS,
    TEXT_BLOCK_SELECTOR,
    ExtractionThresholds,
)
from .document import ExtractionOptions, PageDocument
from .strategy import ExtractionStrategy, describe_extraction_fault
from .text import normalize

LOGGER = logging.getLogger(__name__)


class GenericStrategy(ExtractionStrategy):
    """Fallback strategy; detects every page."""

    name = "generic"

    def __init__(
        self,
        thresholds: Optional[ExtractionThresholds] = None,
        *,
        main_selectors: Optional[Sequence[str]] = None,
        noise_selectors: Optional[Sequence[str]] = None,
    ) -> None:
        self.thresholds = thresholds or ExtractionThresholds()
        self.main_selectors = list(main_selectors or MAIN_CONTENT_SELECTORS)
        self.noise_selectors = list(noise_selectors or NOISE_SELECTORS)

    def detect(self, document: PageDocument) -> bool:
        return True

    def extract(
        self, document: PageDocument, options: Optional[ExtractionOptions] = None
    ) -> str:
        options = options or ExtractionOptions()
        try:
            content = self._extract_content(document)
            return self._decorate(document, content, options)
        except Exception as exc:
            LOGGER.warning("Generic extraction failed for %s: %s", document.url, exc)
            return describe_extraction_fault(document.url, exc)

    # ------------------------------------------------------------------
    # Tiers
    # ------------------------------------------------------------------

    def _extract_content(self, document: PageDocument) -> str:
        main_text = self._main_container_text(document)
        if main_text:
            return main_text

        content = self._cleaned_text(document)
        if len(content) < self.thresholds.body_fallback_min_chars:
            LOGGER.debug(
                "Cleaned content too short (%d chars), using body text for %s",
                len(content),
                document.url,
            )
            return normalize(document.body_text())
        return content

    def _main_container_text(self, document: PageDocument) -> str:
        for selector in self.main_selectors:
            element = document.select_one(selector)
            if element is None:
                continue
            text = element.get_text().strip()
            if len(text) > self.thresholds.container_min_chars:
                LOGGER.debug("Main content found via %r (%d chars)", selector, len(text))
                return normalize(text)
        return ""

    def _cleaned_text(self, document: PageDocument) -> str:
        tree = document.clone()
        _drop_subtrees(tree, self.noise_selectors)

        sections: List[str] = []
        if document.title:
            sections.append(f"# {document.title}")

        description = _description(document)
        if description:
            sections.append(description)

        for block in tree.select(TEXT_BLOCK_SELECTOR):
            text = block.get_text().strip()
            if len(text) > self.thresholds.paragraph_min_chars:
                sections.append(text)

        return "\n\n".join(sections)

    # ------------------------------------------------------------------
    # Optional decoration
    # ------------------------------------------------------------------

    def _decorate(
        self, document: PageDocument, content: str, options: ExtractionOptions
    ) -> str:
        if not options.include_metadata and not options.include_links:
            return content

        sections: List[str] = []
        if options.include_metadata:
            sections.append(f"Title: {document.title}")
            sections.append(f"URL: {document.url}")
            description = _description(document)
            if description:
                sections.append(f"Description: {description}")
            sections.append("Page Content:")
        sections.append(content)

        if options.include_links:
            links = _links(document)
            if links:
                sections.append("Links on Page:")
                sections.extend(f"- {text}: {href}" for text, href in links)

        return "\n\n".join(sections)


def _drop_subtrees(tree: BeautifulSoup, selectors: Sequence[str]) -> None:
    for selector in selectors:
        for element in tree.select(selector):
            if element.decomposed:
                continue
            element.decompose()


def _description(document: PageDocument) -> str:
    return document.meta_content(name="description") or document.meta_content(
        prop="og:description"
    )


def _links(document: PageDocument) -> List[tuple]:
    links = []
    for anchor in document.select("a[href]"):
        href = str(anchor.get("href") or "").strip()
        text = normalize(anchor.get_text())
        if href and text:
            links.append((text, href))
    return links
