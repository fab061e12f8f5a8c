from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional

from ..config import settings
from ..exceptions import BatchInProgressError
from ..inference.gemini import GeminiClient
from ..logger import logger
from ..schemas import AnalysisOptions, AnalysisResult, ImageResult, ImageStatus, Platform
from .workspace import ImageWorkspace, ProcessedImage

Analyzer = Callable[[ProcessedImage, AnalysisOptions], Awaitable[AnalysisResult]]
Sleeper = Callable[[float], Awaitable[None]]


@dataclass
class BatchReport:
    completed: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    delays: int = 0


def gemini_analyzer(client: GeminiClient) -> Analyzer:
    async def _analyze(image: ProcessedImage, options: AnalysisOptions) -> AnalysisResult:
        return await client.analyze_image(image.data, image.content_type, image.filename, options)
    return _analyze


def build_image_result(result: AnalysisResult, options: AnalysisOptions) -> ImageResult:
    """Keep only the fields the selected platform exports."""
    platform = options.selected_platform
    image_result = ImageResult(
        title=result.title,
        description=result.description,
        keywords=list(result.keywords),
    )
    if platform == Platform.FREEPIK:
        image_result.prompt = result.prompt
        image_result.baseModel = result.base_model
    if platform in (Platform.SHUTTERSTOCK, Platform.ADOBE_STOCK):
        image_result.categories = list(result.categories) if result.categories is not None else None
    return image_result


async def _process_one(image: ProcessedImage, analyze: Analyzer, options: AnalysisOptions) -> None:
    image.status = ImageStatus.PROCESSING
    logger.info(f"Processing image {image.id}", extra={"image_id": image.id, "image_filename": image.filename})
    try:
        result = await analyze(image, options)
    except Exception as e:
        logger.error(f"Error processing image {image.filename}: {e}", extra={"image_id": image.id})
        image.status = ImageStatus.ERROR
        image.result = None
        image.error = str(e) or "Unknown error occurred"
        return

    if result.error:
        logger.warning(
            f"Analysis failed for image {image.id}: {result.error}",
            extra={"image_id": image.id, "image_filename": image.filename},
        )
        image.status = ImageStatus.ERROR
        image.result = None
        image.error = result.error
        return

    image.status = ImageStatus.COMPLETE
    image.result = build_image_result(result, options)
    image.error = None


async def process_pending(
    workspace: ImageWorkspace,
    analyze: Analyzer,
    options: AnalysisOptions,
    *,
    delay: Optional[float] = None,
    sleep: Sleeper = asyncio.sleep,
    claimed: bool = False,
) -> BatchReport:
    """
    Run every pending image through `analyze`, one at a time.

    The pending set is snapshotted up front. A fixed pause separates consecutive
    calls to stay under the model's rate limit. Images removed from the
    workspace before their turn are skipped; a failing image never stops the batch.
    `claimed` means the caller already set `is_processing` when scheduling the run.
    """
    if workspace.is_processing and not claimed:
        raise BatchInProgressError()
    if delay is None:
        delay = settings.PROCESSING_DELAY_SECONDS

    report = BatchReport()
    pending = workspace.pending()
    workspace.is_processing = True
    logger.info(f"Starting batch of {len(pending)} images")
    try:
        calls = 0
        # one pause per gap between model calls, even when the image after it is skipped
        slept = False
        for image in pending:
            if not workspace.contains(image.id):
                report.skipped.append(image.id)
                continue
            if calls > 0 and not slept:
                await sleep(delay)
                report.delays += 1
                slept = True
                if not workspace.contains(image.id):
                    report.skipped.append(image.id)
                    continue

            await _process_one(image, analyze, options)
            calls += 1
            slept = False
            if image.status == ImageStatus.COMPLETE:
                report.completed.append(image.id)
            else:
                report.failed.append(image.id)
    finally:
        workspace.is_processing = False

    logger.info(
        "Batch finished",
        extra={
            "completed": len(report.completed),
            "failed": len(report.failed),
            "skipped": len(report.skipped),
        },
    )
    return report
