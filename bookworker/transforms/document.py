"""Parsing, serialization and tree-editing helpers for XHTML entries."""

from lxml import etree

from bookworker.transforms.exceptions import EntryParseError

_PARSER = etree.XMLParser(
    resolve_entities=False,
    no_network=True,
    recover=False,
    huge_tree=True,
)


def parse_markup(content: bytes) -> etree._Element:
    """Parse an XHTML/XML entry.

    Raises:
        EntryParseError: if the content is not well-formed XML.
    """
    try:
        return etree.fromstring(content, _PARSER)
    except etree.XMLSyntaxError as exc:
        raise EntryParseError(str(exc)) from exc


def serialize_markup(root: etree._Element) -> bytes:
    return etree.tostring(root.getroottree(), encoding="utf-8", xml_declaration=True)


def local_name(node: etree._Element) -> str | None:
    """Tag name without namespace; None for comments, PIs and entities."""
    if not isinstance(node.tag, str):
        return None
    return etree.QName(node).localname


def iter_elements(root: etree._Element, name: str | None = None):
    for element in root.iter(etree.Element):
        if name is None or local_name(element) == name:
            yield element


def has_child_elements(element: etree._Element) -> bool:
    return any(isinstance(child.tag, str) for child in element)


def text_content(element: etree._Element) -> str:
    """Concatenated text of the subtree, excluding comments (DOM textContent)."""
    parts: list[str] = []
    if isinstance(element.tag, str) and element.text:
        parts.append(element.text)
    for child in element:
        if isinstance(child.tag, str):
            parts.append(text_content(child))
        if child.tail:
            parts.append(child.tail)
    return "".join(parts)


def remove_element(element: etree._Element) -> bool:
    """Detach an element, keeping the text that followed it in place."""
    parent = element.getparent()
    if parent is None:
        return False
    _insert_text_before(element, element.tail)
    parent.remove(element)
    return True


def replace_with_text(element: etree._Element, text: str) -> bool:
    """Replace an element (and its subtree) with a plain text run."""
    parent = element.getparent()
    if parent is None:
        return False
    _insert_text_before(element, text + (element.tail or ""))
    parent.remove(element)
    return True


def _insert_text_before(element: etree._Element, text: str | None) -> None:
    if not text:
        return
    previous = element.getprevious()
    if previous is not None:
        previous.tail = (previous.tail or "") + text
    else:
        parent = element.getparent()
        parent.text = (parent.text or "") + text
