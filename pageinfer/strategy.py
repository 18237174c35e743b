"""Common interface of the content extraction strategies."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from .document import ExtractionOptions, PageDocument


class ExtractionStrategy(ABC):
    """A detect/extract pair for one family of pages."""

    name: str = "strategy"

    @abstractmethod
    def detect(self, document: PageDocument) -> bool:
        """Return True when this strategy should handle ``document``."""

    @abstractmethod
    def extract(
        self, document: PageDocument, options: Optional[ExtractionOptions] = None
    ) -> str:
        """Return the page text. Implementations must not raise."""


def describe_extraction_fault(url: str, exc: BaseException) -> str:
    """Diagnostic text returned in place of content when extraction fails."""
    return f"Error extracting content from {url}. {exc}"
