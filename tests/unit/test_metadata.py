from collections.abc import Callable

import pytest

from bookworker.container.codec import EpubContainer
from bookworker.container.exceptions import PackageDocumentError
from bookworker.container.metadata import (
    find_package_document,
    read_metadata,
    write_metadata,
)


class TestReadMetadata:
    def test_reads_title_author_language(self, epub_builder: Callable[..., bytes]) -> None:
        container = EpubContainer.open(
            epub_builder(title="Dune", author="Frank Herbert", language="en-US")
        )

        metadata = read_metadata(container)

        assert metadata.title == "Dune"
        assert metadata.author == "Frank Herbert"
        assert metadata.language == "en-US"

    def test_missing_language_is_none(self, epub_builder: Callable[..., bytes]) -> None:
        container = EpubContainer.open(epub_builder(language=None))
        assert read_metadata(container).language is None

    def test_falls_back_to_first_opf_entry(self, epub_builder: Callable[..., bytes]) -> None:
        container = EpubContainer.open(epub_builder())
        container.remove_entry("META-INF/container.xml")
        assert find_package_document(container) == "OEBPS/content.opf"

    def test_no_package_document_raises(self, epub_builder: Callable[..., bytes]) -> None:
        container = EpubContainer.open(epub_builder())
        container.remove_entry("OEBPS/content.opf")
        with pytest.raises(PackageDocumentError):
            read_metadata(container)


class TestWriteMetadata:
    def test_rewrites_title_and_author(self, epub_builder: Callable[..., bytes]) -> None:
        container = EpubContainer.open(epub_builder(title="Old", author="Someone"))

        changed = write_metadata(container, title="New Title", author="New Author")

        assert changed is True
        metadata = read_metadata(container)
        assert metadata.title == "New Title"
        assert metadata.author == "New Author"
        assert "OEBPS/content.opf" in container.dirty_entries

    def test_none_keeps_existing_value(self, epub_builder: Callable[..., bytes]) -> None:
        container = EpubContainer.open(epub_builder(title="Keep", author="Someone"))

        write_metadata(container, title=None, author="Other")

        assert read_metadata(container).title == "Keep"

    def test_same_values_report_no_change(self, epub_builder: Callable[..., bytes]) -> None:
        container = EpubContainer.open(epub_builder(title="Same", author="Same Author"))

        changed = write_metadata(container, title="Same", author="Same Author")

        assert changed is False
        assert container.dirty_entries == set()
