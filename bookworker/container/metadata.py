"""Read and rewrite Dublin Core metadata in the OPF package document."""

from __future__ import annotations

from dataclasses import dataclass

from lxml import etree

from bookworker.container.codec import EpubContainer
from bookworker.container.exceptions import (
    ContainerError,
    PackageDocumentError,
)

CONTAINER_XML = "META-INF/container.xml"

_CONTAINER_NS = "urn:oasis:names:tc:opendocument:xmlns:container"
_OPF_NS = "http://www.idpf.org/2007/opf"
_DC_NS = "http://purl.org/dc/elements/1.1/"

_PARSER = etree.XMLParser(resolve_entities=False, no_network=True)


@dataclass(frozen=True)
class BookMetadata:
    title: str | None = None
    author: str | None = None
    language: str | None = None


def find_package_document(container: EpubContainer) -> str:
    """Return the entry name of the OPF package document.

    Raises:
        PackageDocumentError: if no package document can be located.
    """
    if container.has_entry(CONTAINER_XML):
        try:
            root = _parse(container.read_binary(CONTAINER_XML))
        except (ContainerError, etree.XMLSyntaxError):
            root = None
        if root is not None:
            rootfile = root.find(f".//{{{_CONTAINER_NS}}}rootfile")
            path = rootfile.get("full-path") if rootfile is not None else None
            if path and container.has_entry(path):
                return path
    for name in container.entry_names():
        if name.lower().endswith(".opf"):
            return name
    raise PackageDocumentError("No OPF package document found")


def read_metadata(container: EpubContainer) -> BookMetadata:
    """Read title, first author and language from the package document."""
    opf_name = find_package_document(container)
    root = _parse_package(container, opf_name)
    return BookMetadata(
        title=_first_text(root, "title"),
        author=_first_text(root, "creator"),
        language=_first_text(root, "language"),
    )


def write_metadata(
    container: EpubContainer,
    title: str | None,
    author: str | None,
) -> bool:
    """Rewrite dc:title / dc:creator. Returns True if the OPF was changed."""
    opf_name = find_package_document(container)
    root = _parse_package(container, opf_name)
    metadata = root.find(f"{{{_OPF_NS}}}metadata")
    if metadata is None:
        raise PackageDocumentError(f"{opf_name} has no <metadata> element")

    changed = False
    for field, value in (("title", title), ("creator", author)):
        if value is None:
            continue
        element = metadata.find(f"{{{_DC_NS}}}{field}")
        if element is None:
            element = etree.SubElement(metadata, f"{{{_DC_NS}}}{field}")
        if element.text != value:
            element.text = value
            changed = True

    if changed:
        container.write_entry(
            opf_name,
            etree.tostring(root.getroottree(), encoding="utf-8", xml_declaration=True),
        )
    return changed


def _parse(content: bytes) -> etree._Element:
    return etree.fromstring(content, _PARSER)


def _parse_package(container: EpubContainer, opf_name: str) -> etree._Element:
    try:
        return _parse(container.read_binary(opf_name))
    except etree.XMLSyntaxError as exc:
        raise PackageDocumentError(f"Malformed package document {opf_name}: {exc}") from exc


def _first_text(root: etree._Element, field: str) -> str | None:
    element = root.find(f".//{{{_DC_NS}}}{field}")
    if element is None or element.text is None:
        return None
    text = element.text.strip()
    return text or None
