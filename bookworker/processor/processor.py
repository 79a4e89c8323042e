from bookworker.config.settings import Settings
from bookworker.conversion.calibre_converter import CalibreConverter
from bookworker.imaging.base import BaseImageCodec
from bookworker.imaging.pillow_codec import PillowImageCodec
from bookworker.language.classifier import LanguageClassifier
from bookworker.language.langdetect_adapter import LangdetectIdentifier
from bookworker.logging.logger import Log
from bookworker.processor.models import PipelineResult
from bookworker.processor.pipeline import (
    PipelineContext,
    PipelineStep,
    ProgressCallback,
    no_progress,
)
from bookworker.processor.steps import (
    ClassifyLanguageStep,
    ConvertFormatStep,
    OpenContainerStep,
    RemoveImagesStep,
    RepackStep,
    RewriteMetadataStep,
    SummarizeStep,
    TransformEntriesStep,
    TranslateBookStep,
)
from bookworker.profile.models import JobSnapshot, TranslationEngine
from bookworker.summary.base import BaseSummarizer
from bookworker.summary.factory import SummarizerFactory
from bookworker.translation.factory import TranslationServiceFactory
from bookworker.translation.service import TranslationService


class Processor:
    """Runs a book through the pipeline steps in order.

    Pipeline: open -> classify language -> metadata -> transform entries ->
    remove images -> repack -> whole-book translation -> summary -> convert.
    Steps whose ``should_run`` is false are skipped without a progress
    report. The first exception raised by a step aborts the run.
    """

    def __init__(self, steps: list[PipelineStep]) -> None:
        self._steps = steps

    async def process(
        self,
        source: bytes,
        snapshot: JobSnapshot,
        progress: ProgressCallback = no_progress,
    ) -> PipelineResult:
        context = PipelineContext(source=source, snapshot=snapshot, progress=progress)
        for step in self._steps:
            if not step.should_run(context):
                continue
            if step.progress_message:
                await context.progress(step.progress_message)
            Log.debug(f"Running step {type(step).__name__}")
            context = await step.run(context)

        return PipelineResult(
            content=context.content,
            translated=context.translated,
            summary=context.summary,
            warnings=list(context.warnings),
            images_removed=context.images_removed,
            entries_modified=context.entries_modified,
        )


def build_processor(
    settings: Settings,
    *,
    converter: CalibreConverter,
    translation_service: TranslationService | None = None,
    image_codec: BaseImageCodec | None = None,
    classifier: LanguageClassifier | None = None,
    summarizer: BaseSummarizer | None = None,
) -> Processor:
    """Build a Processor with all required adapters."""
    translation_service = translation_service or TranslationServiceFactory.create(settings)
    image_codec = image_codec or PillowImageCodec(jpeg_quality=settings.image_jpeg_quality)
    classifier = classifier or LanguageClassifier(
        LangdetectIdentifier(),
        target_language=settings.target_language,
    )
    summarizer = summarizer or SummarizerFactory.create(settings)
    return Processor(
        steps=[
            OpenContainerStep(),
            ClassifyLanguageStep(classifier, whole_book=settings.whole_book_translation),
            RewriteMetadataStep(),
            TransformEntriesStep(
                translation_service=translation_service,
                image_codec=image_codec,
                max_concurrent_entries=settings.max_concurrent_entries,
            ),
            RemoveImagesStep(),
            RepackStep(),
            TranslateBookStep(
                converter,
                target_language=settings.target_language,
                api_keys={
                    TranslationEngine.DEEPL: settings.deepl_api_key,
                    TranslationEngine.OPENAI: settings.openai_api_key,
                },
            ),
            SummarizeStep(summarizer),
            ConvertFormatStep(converter),
        ]
    )
