from dataclasses import dataclass

from lxml import etree

from bookworker.profile.models import JobSnapshot
from bookworker.transforms.cleaners import (
    prune_empty_paragraphs,
    strip_footnotes,
    strip_images,
    strip_styles,
    unwrap_hyperlinks,
)
from bookworker.transforms.document import iter_elements
from bookworker.transforms.text_rewriter import (
    WATERMARKS,
    TextRewriteOptions,
    rewrite_text_nodes,
)


@dataclass(frozen=True)
class TransformConfig:
    """Which transforms run on a markup entry."""

    strip_images: bool = False
    strip_styles: bool = False
    prune_empty_paragraphs: bool = False
    unwrap_hyperlinks: bool = False
    strip_footnotes: bool = False
    text: TextRewriteOptions = TextRewriteOptions()

    @classmethod
    def from_snapshot(cls, snapshot: JobSnapshot) -> "TransformConfig":
        options = snapshot.options
        return cls(
            strip_images=options.remove_images,
            strip_styles=options.remove_styles,
            prune_empty_paragraphs=options.remove_empty_paragraphs,
            unwrap_hyperlinks=options.remove_hyperlinks,
            strip_footnotes=options.remove_footnotes,
            text=TextRewriteOptions(
                watermarks=WATERMARKS if options.remove_watermarks else (),
                fix_punctuation=options.fix_punctuation,
                fix_spacing=options.fix_spacing,
                rules=snapshot.replacement_rules,
            ),
        )


def apply_transforms(root: etree._Element, config: TransformConfig) -> bool:
    """Run the enabled transforms in their fixed order.

    Images go before empty-paragraph pruning so a paragraph emptied by image
    removal is pruned in the same pass.
    """
    changed = False
    if config.strip_images:
        changed |= strip_images(root)
    if config.strip_styles:
        changed |= strip_styles(root)
    if config.prune_empty_paragraphs:
        changed |= prune_empty_paragraphs(root)
    if config.unwrap_hyperlinks:
        changed |= unwrap_hyperlinks(root)
    if config.strip_footnotes:
        changed |= strip_footnotes(root)
    changed |= rewrite_text_nodes(root, config.text)
    return changed


def inject_style_element(root: etree._Element, css: str) -> bool:
    """Append a <style> block to the document's <head>, if it has one."""
    head = next(iter_elements(root, "head"), None)
    if head is None:
        return False
    namespace = etree.QName(head).namespace
    tag = f"{{{namespace}}}style" if namespace else "style"
    style = etree.SubElement(head, tag)
    style.set("type", "text/css")
    style.text = css
    return True
