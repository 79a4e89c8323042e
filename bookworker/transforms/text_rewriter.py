"""Text-node rewriting: watermarks, dialogue punctuation, spacing, rules."""

import re
from collections.abc import Sequence
from dataclasses import dataclass

from lxml import etree

from bookworker.profile.models import ReplacementRule

WATERMARKS: tuple[str, ...] = (
    "Machine Translated by Google",
    "OceanoPDF.com",
)

_PERIOD_QUOTE_RE = re.compile(r"\.[\"”]")
_QUOTES_RE = re.compile(r"[\"'“”‘’«»]")
_SPACES_RE = re.compile(r" +")
EM_DASH = "—"


@dataclass(frozen=True)
class TextRewriteOptions:
    watermarks: tuple[str, ...] = ()
    fix_punctuation: bool = False
    fix_spacing: bool = False
    rules: Sequence[ReplacementRule] = ()

    @property
    def is_noop(self) -> bool:
        return not (self.watermarks or self.fix_punctuation or self.fix_spacing or self.rules)


def rewrite_text(text: str, options: TextRewriteOptions) -> str:
    for watermark in options.watermarks:
        text = text.replace(watermark, "")
    if options.fix_punctuation:
        text = _PERIOD_QUOTE_RE.sub(f" {EM_DASH}", text)
        text = _QUOTES_RE.sub(EM_DASH, text)
    if options.fix_spacing and "  " in text:
        text = _SPACES_RE.sub(" ", text)
    for rule in options.rules:
        if rule.original:
            text = text.replace(rule.original, rule.replacement)
    return text


def rewrite_text_nodes(root: etree._Element | None, options: TextRewriteOptions) -> bool:
    """Rewrite every text run under ``root`` in document order.

    lxml stores text as ``.text`` (before the first child) and ``.tail``
    (after the element); the root's own tail lies outside the document.
    """
    if root is None or options.is_noop:
        return False
    changed = False
    for node in root.iter():
        if isinstance(node.tag, str) and node.text:
            rewritten = rewrite_text(node.text, options)
            if rewritten != node.text:
                node.text = rewritten
                changed = True
        if node is not root and node.tail:
            rewritten = rewrite_text(node.tail, options)
            if rewritten != node.tail:
                node.tail = rewritten
                changed = True
    return changed
