"""Strategy selection for page extraction."""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from .document import ExtractionOptions, PageDocument
from .generic import GenericStrategy
from .linkedin import LinkedInStrategy
from .strategy import ExtractionStrategy, describe_extraction_fault
from .text import normalize

LOGGER = logging.getLogger(__name__)


class ExtractorDispatcher:
    """Route a page to the first specialized strategy that claims it.

    Specialized strategies are asked in registration order; when none
    detects the page the generic fallback handles it. Exactly one strategy
    extracts per call and the result is always a string.
    """

    def __init__(
        self,
        strategies: Optional[Sequence[ExtractionStrategy]] = None,
        fallback: Optional[ExtractionStrategy] = None,
    ) -> None:
        self.fallback = fallback or GenericStrategy()
        if strategies is None:
            strategies = [LinkedInStrategy()]
        self.strategies: List[ExtractionStrategy] = list(strategies)

    def register(self, strategy: ExtractionStrategy) -> None:
        self.strategies.append(strategy)

    def select_strategy(self, document: PageDocument) -> ExtractionStrategy:
        for strategy in self.strategies:
            try:
                if strategy.detect(document):
                    return strategy
            except Exception as exc:
                LOGGER.warning(
                    "Strategy %s failed to detect %s: %s", strategy.name, document.url, exc
                )
        return self.fallback

    def extract_current_page(
        self, document: PageDocument, options: Optional[ExtractionOptions] = None
    ) -> str:
        options = options or ExtractionOptions()
        try:
            strategy = self.select_strategy(document)
            LOGGER.debug("Extracting %s with %s strategy", document.url, strategy.name)
            return normalize(strategy.extract(document, options) or "")
        except Exception as exc:
            LOGGER.error("Extraction failed for %s: %s", document.url, exc)
            return describe_extraction_fault(document.url, exc)
