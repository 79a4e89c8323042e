from dataclasses import dataclass

from lxml import etree

from bookworker.transforms.document import iter_elements


@dataclass
class TextSlot:
    """A writable text node: an element's ``text`` or its ``tail``."""

    element: etree._Element
    attribute: str

    @property
    def value(self) -> str:
        return getattr(self.element, self.attribute) or ""

    @value.setter
    def value(self, text: str) -> None:
        setattr(self.element, self.attribute, text)


def collect_text_slots(root: etree._Element) -> list[TextSlot]:
    """Non-blank text nodes under <body>, in document order."""
    body = next(iter_elements(root, "body"), None)
    if body is None:
        return []
    slots: list[TextSlot] = []
    _collect(body, slots, is_scope_root=True)
    return slots


def _collect(element: etree._Element, slots: list[TextSlot], is_scope_root: bool) -> None:
    if isinstance(element.tag, str) and element.text and element.text.strip():
        slots.append(TextSlot(element, "text"))
    for child in element:
        _collect(child, slots, is_scope_root=False)
    if not is_scope_root and element.tail and element.tail.strip():
        slots.append(TextSlot(element, "tail"))
