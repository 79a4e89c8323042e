import asyncio

from lxml import etree

from bookworker.container.codec import EpubContainer
from bookworker.container.entries import EntryKind, classify_entry, is_stylesheet
from bookworker.container.exceptions import ContainerError, EntryReadError
from bookworker.container.metadata import read_metadata, write_metadata
from bookworker.conversion.calibre_converter import CalibreConverter
from bookworker.imaging.base import BaseImageCodec
from bookworker.language.classifier import LanguageClassifier
from bookworker.logging.logger import Log
from bookworker.processor.pipeline import PipelineContext, PipelineStep
from bookworker.profile.models import CANONICAL_FORMAT, TranslationEngine
from bookworker.summary.base import BaseSummarizer
from bookworker.transforms.document import parse_markup, serialize_markup
from bookworker.transforms.exceptions import EntryParseError
from bookworker.transforms.transformer import (
    TransformConfig,
    apply_transforms,
    inject_style_element,
)
from bookworker.translation.service import TranslationService


class OpenContainerStep(PipelineStep):
    progress_message = "Opening book..."

    async def run(self, context: PipelineContext) -> PipelineContext:
        container = await asyncio.to_thread(EpubContainer.open, context.source)
        context.container = container
        for name, reason in container.unreadable_entries.items():
            Log.warning(f"Unreadable entry {name}: {reason}")
            context.warnings.append(f"{name}: {reason}")
        Log.info(f"Opened book with {len(container.entry_names())} entries")
        return context


class ClassifyLanguageStep(PipelineStep):
    progress_message = "Detecting language..."

    def __init__(self, classifier: LanguageClassifier, whole_book: bool) -> None:
        self._classifier = classifier
        self._whole_book = whole_book

    def should_run(self, context: PipelineContext) -> bool:
        return context.snapshot.options.translate

    async def run(self, context: PipelineContext) -> PipelineContext:
        decision = await asyncio.to_thread(self._classifier.decide, context.require_container())
        context.decision = decision
        if decision.should_translate:
            context.translate_book = self._whole_book
            context.translate_entries = not self._whole_book
        Log.info(
            f"Translation decision: {decision.should_translate} "
            f"(detected {decision.detected_code})"
        )
        return context


class RewriteMetadataStep(PipelineStep):
    progress_message = "Updating metadata..."

    def should_run(self, context: PipelineContext) -> bool:
        return context.snapshot.metadata_override is not None

    async def run(self, context: PipelineContext) -> PipelineContext:
        container = context.require_container()
        override = context.snapshot.metadata_override
        try:
            existing = read_metadata(container)
            changed = write_metadata(
                container,
                title=override.title or existing.title,
                author=override.author or existing.author,
            )
        except ContainerError as exc:
            Log.warning(f"Metadata not rewritten: {exc}")
            context.warnings.append(f"metadata: {exc}")
            return context
        if changed:
            context.entries_modified += 1
        return context


class TransformEntriesStep(PipelineStep):
    """Transforms every entry concurrently, bounded by a semaphore.

    Entries that fail to parse are reported as warnings; any other error
    aborts the step once every started entry task has settled.
    """

    progress_message = "Cleaning content..."

    def __init__(
        self,
        *,
        translation_service: TranslationService,
        image_codec: BaseImageCodec,
        max_concurrent_entries: int,
    ) -> None:
        self._translation_service = translation_service
        self._image_codec = image_codec
        self._max_concurrent_entries = max(1, max_concurrent_entries)

    async def run(self, context: PipelineContext) -> PipelineContext:
        container = context.require_container()
        config = TransformConfig.from_snapshot(context.snapshot)
        unreadable = container.unreadable_entries
        names = [name for name in container.entry_names() if name not in unreadable]
        css = context.snapshot.custom_css
        inject_css = bool(css) and not any(is_stylesheet(name) for name in names)

        semaphore = asyncio.Semaphore(self._max_concurrent_entries)

        async def bounded(name: str) -> None:
            async with semaphore:
                await self._process_entry(context, name, config, inject_css)

        results = await asyncio.gather(
            *(bounded(name) for name in names),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result

        Log.info(
            f"Transformed entries: {context.entries_modified} modified, "
            f"{len(context.images_to_remove)} images marked, "
            f"{len(context.warnings)} warnings"
        )
        return context

    async def _process_entry(
        self,
        context: PipelineContext,
        name: str,
        config: TransformConfig,
        inject_css: bool,
    ) -> None:
        options = context.snapshot.options
        kind = classify_entry(name)
        if kind is EntryKind.IMAGE:
            if options.remove_images:
                context.images_to_remove.append(name)
            elif options.optimize_images:
                await self._optimize_image(context, name)
        elif kind is EntryKind.MARKUP:
            try:
                await self._transform_markup(context, name, config, inject_css)
            except (EntryParseError, EntryReadError) as exc:
                Log.warning(f"Skipping entry {name}: {exc}")
                context.warnings.append(f"{name}: {exc}")
        elif context.snapshot.custom_css and is_stylesheet(name):
            container = context.require_container()
            stylesheet = container.read_binary(name)
            css = context.snapshot.custom_css.encode("utf-8")
            container.write_entry(name, stylesheet + b"\n" + css + b"\n")
            context.entries_modified += 1

    async def _optimize_image(self, context: PipelineContext, name: str) -> None:
        container = context.require_container()
        original = container.read_binary(name)
        recompressed = await asyncio.to_thread(self._image_codec.recompress, original)
        if len(recompressed) < len(original):
            container.write_entry(name, recompressed)
            context.entries_modified += 1

    async def _transform_markup(
        self,
        context: PipelineContext,
        name: str,
        config: TransformConfig,
        inject_css: bool,
    ) -> None:
        container = context.require_container()
        content = container.read_binary(name)
        css = context.snapshot.custom_css if inject_css else None
        root, changed = await asyncio.to_thread(self._apply, content, config, css)

        if context.translate_entries:
            translated = await self._translation_service.translate_document(
                root,
                context.snapshot.options.translation_engine,
            )
            if translated:
                context.translated = True
                changed = True

        if changed:
            container.write_entry(name, serialize_markup(root))
            context.entries_modified += 1

    @staticmethod
    def _apply(
        content: bytes,
        config: TransformConfig,
        css: str | None,
    ) -> tuple[etree._Element, bool]:
        root = parse_markup(content)
        changed = apply_transforms(root, config)
        if css:
            changed |= inject_style_element(root, css)
        return root, changed


class RemoveImagesStep(PipelineStep):
    progress_message = "Removing images..."

    def should_run(self, context: PipelineContext) -> bool:
        return bool(context.images_to_remove)

    async def run(self, context: PipelineContext) -> PipelineContext:
        container = context.require_container()
        for name in sorted(context.images_to_remove):
            container.remove_entry(name)
        context.images_removed = len(context.images_to_remove)
        Log.info(f"Removed {context.images_removed} images")
        return context


class RepackStep(PipelineStep):
    progress_message = "Packing book..."

    async def run(self, context: PipelineContext) -> PipelineContext:
        container = context.require_container()
        context.content = await asyncio.to_thread(container.serialize)
        Log.info(f"Repacked book: {len(context.content)} bytes")
        return context


class TranslateBookStep(PipelineStep):
    progress_message = "Translating book..."

    def __init__(
        self,
        converter: CalibreConverter,
        target_language: str,
        api_keys: dict[TranslationEngine, str] | None = None,
    ) -> None:
        self._converter = converter
        self._target_language = target_language
        self._api_keys = api_keys or {}

    def should_run(self, context: PipelineContext) -> bool:
        return context.translate_book

    async def run(self, context: PipelineContext) -> PipelineContext:
        engine = context.snapshot.options.translation_engine
        context.content = await self._converter.translate_book(
            context.content,
            engine=engine.value,
            target_language=self._target_language,
            api_key=self._api_keys.get(engine) or None,
        )
        context.translated = True
        return context


class SummarizeStep(PipelineStep):
    progress_message = "Writing summary..."

    def __init__(self, summarizer: BaseSummarizer) -> None:
        self._summarizer = summarizer

    def should_run(self, context: PipelineContext) -> bool:
        return context.snapshot.options.ai_summary

    async def run(self, context: PipelineContext) -> PipelineContext:
        context.summary = await self._summarizer.summarize(context.content)
        return context


class ConvertFormatStep(PipelineStep):
    progress_message = "Converting format..."

    def __init__(self, converter: CalibreConverter) -> None:
        self._converter = converter

    def should_run(self, context: PipelineContext) -> bool:
        return context.snapshot.options.output_format is not CANONICAL_FORMAT

    async def run(self, context: PipelineContext) -> PipelineContext:
        output_format = context.snapshot.options.output_format
        context.content = await self._converter.from_epub(
            context.content,
            output_format.value,
        )
        Log.info(f"Converted book to {output_format.value}")
        return context
