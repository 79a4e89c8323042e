from abc import ABC, abstractmethod


class BaseSummarizer(ABC):
    """Contract for book summarization adapters."""

    @abstractmethod
    async def summarize(self, epub_bytes: bytes) -> str:
        """Produce a short summary of an EPUB book.

        Raises:
            SummaryError: on any failure, including unreadable books.
        """
