"""Structural cleaners. Each returns True if it mutated the tree."""

from lxml import etree

from bookworker.transforms.document import (
    has_child_elements,
    iter_elements,
    local_name,
    remove_element,
    replace_with_text,
    text_content,
)

IMAGE_TAGS = frozenset({"img", "image"})
EPUB_TYPE_ATTR = "{http://www.idpf.org/2007/ops}type"
NOTEREF_TYPES = frozenset({"noteref"})
NOTE_TYPES = frozenset({"footnote", "endnote"})


def strip_images(root: etree._Element) -> bool:
    """Remove raster <img> and vector <image> elements."""
    images = [
        el
        for el in iter_elements(root)
        if local_name(el) in IMAGE_TAGS and el.getparent() is not None
    ]
    for image in images:
        remove_element(image)
    return bool(images)


def strip_styles(root: etree._Element) -> bool:
    """Remove the inline ``style`` attribute everywhere."""
    styled = [el for el in iter_elements(root) if "style" in el.attrib]
    for element in styled:
        del element.attrib["style"]
    return bool(styled)


def prune_empty_paragraphs(root: etree._Element) -> bool:
    """Remove <p> elements with blank text and no child elements."""
    empty = [
        p
        for p in iter_elements(root, "p")
        if not text_content(p).strip() and not has_child_elements(p)
    ]
    for paragraph in empty:
        remove_element(paragraph)
    return bool(empty)


def unwrap_hyperlinks(root: etree._Element) -> bool:
    """Replace every <a> with its text content, dropping the destination."""
    links = [a for a in iter_elements(root, "a") if a.getparent() is not None]
    for link in links:
        replace_with_text(link, text_content(link))
    return bool(links)


def strip_footnotes(root: etree._Element) -> bool:
    """Remove noteref markers and footnote/endnote bodies (``epub:type``)."""
    flagged = [el for el in iter_elements(root) if _is_footnote(el)]
    for element in flagged:
        remove_element(element)
    return bool(flagged)


def _is_footnote(element: etree._Element) -> bool:
    value = element.get(EPUB_TYPE_ATTR)
    if not value:
        return False
    tokens = set(value.split())
    return bool(tokens & (NOTEREF_TYPES | NOTE_TYPES))
