"""
Image workspace routes - upload, batch processing and export
"""
from fastapi import APIRouter, BackgroundTasks, Depends, File, Header, Query, UploadFile
from fastapi.responses import PlainTextResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from urllib.parse import quote

from ..auth import get_current_profile
from ..config import settings
from ..db import AsyncSessionLocal, get_db
from ..exceptions import (
    BatchInProgressError,
    FileTooLargeError,
    MissingApiKeyError,
    NoCompletedImagesError,
    UnsupportedMediaTypeError,
)
from ..export.csv_export import (
    ALL_PROMPTS_FILENAME,
    csv_download_path,
    format_all_prompts,
    format_images_as_csv,
    prompt_filename,
)
from ..inference.gemini import GeminiClient
from ..logger import logger
from ..media import is_valid_file_size, is_valid_media_type
from ..models import UserProfile
from ..schemas import (
    AnalysisOptions,
    GenerationMode,
    ImageListResponse,
    ImageStatus,
    Platform,
    ProcessResponse,
    UploadNotice,
    UploadResponse,
)
from ..services.credits import consume_credit, record_generations
from ..services.orchestrator import gemini_analyzer, process_pending
from ..services.workspace import ImageWorkspace, ProcessedImage, workspaces

router = APIRouter(prefix="/images", tags=["Images"])


def get_workspace(profile: UserProfile = Depends(get_current_profile)) -> ImageWorkspace:
    return workspaces.get(profile.id)


def get_gemini_client(x_gemini_api_key: Optional[str] = Header(None)) -> GeminiClient:
    """Client for the key sent with the request, falling back to the configured one"""
    api_key = (x_gemini_api_key or settings.GEMINI_API_KEY).strip()
    if not api_key:
        raise MissingApiKeyError()
    return GeminiClient(api_key)


def _attachment(filename: str) -> dict:
    return {"Content-Disposition": f"attachment; filename*=UTF-8''{quote(filename, safe='')}"}


def _list_response(workspace: ImageWorkspace) -> ImageListResponse:
    return ImageListResponse(
        images=[image.to_out() for image in workspace.images],
        pendingCount=len(workspace.pending()),
        isProcessing=workspace.is_processing,
    )


async def _run_batch(
    workspace: ImageWorkspace,
    client: GeminiClient,
    options: AnalysisOptions,
    user_id: str,
) -> None:
    report = await process_pending(workspace, gemini_analyzer(client), options, claimed=True)

    if options.generationMode != GenerationMode.IMAGE_TO_PROMPT or not report.completed:
        return
    prompts = []
    for image in workspace.images:
        if image.id in report.completed and image.result is not None:
            prompts.append(image.result.description)
    try:
        async with AsyncSessionLocal() as db:
            await record_generations(db, user_id, prompts)
    except SQLAlchemyError as e:
        logger.error(f"Failed to record generated prompts for {user_id}: {e}")


@router.post("", response_model=UploadResponse, status_code=201)
async def upload_images(
    files: List[UploadFile] = File(...),
    workspace: ImageWorkspace = Depends(get_workspace),
):
    """Add image and video files to the workspace; invalid files are reported, not added"""
    added: List[ProcessedImage] = []
    rejected: List[UploadNotice] = []

    for upload in files:
        filename = upload.filename or "unnamed"
        if not is_valid_media_type(upload.content_type):
            notice = UnsupportedMediaTypeError(filename)
            rejected.append(UploadNotice(filename=filename, message=notice.message))
            continue

        if upload.size is not None and not is_valid_file_size(upload.size):
            notice = FileTooLargeError(filename, settings.MAX_UPLOAD_SIZE_GB)
            rejected.append(UploadNotice(filename=filename, message=notice.message))
            continue

        data = await upload.read()
        if not is_valid_file_size(len(data)):
            notice = FileTooLargeError(filename, settings.MAX_UPLOAD_SIZE_GB)
            rejected.append(UploadNotice(filename=filename, message=notice.message))
            continue

        added.append(ProcessedImage(filename=filename, content_type=upload.content_type, data=data))

    workspace.add(added)
    if rejected:
        logger.warning(
            f"Rejected {len(rejected)} uploaded files",
            extra={"rejected_files": [notice.filename for notice in rejected]},
        )
    logger.info(f"Added {len(added)} files to workspace")

    return UploadResponse(added=[image.to_out() for image in added], rejected=rejected)


@router.get("", response_model=ImageListResponse)
async def list_images(workspace: ImageWorkspace = Depends(get_workspace)):
    return _list_response(workspace)


@router.delete("/{image_id}", response_model=ImageListResponse)
async def remove_image(image_id: str, workspace: ImageWorkspace = Depends(get_workspace)):
    """Remove one image; a running batch skips it"""
    workspace.remove(image_id)
    return _list_response(workspace)


@router.delete("", response_model=ImageListResponse)
async def clear_images(workspace: ImageWorkspace = Depends(get_workspace)):
    workspace.clear()
    return _list_response(workspace)


@router.post("/process", response_model=ProcessResponse, status_code=202)
async def process_images(
    background_tasks: BackgroundTasks,
    options: Optional[AnalysisOptions] = None,
    profile: UserProfile = Depends(get_current_profile),
    client: GeminiClient = Depends(get_gemini_client),
    db: AsyncSession = Depends(get_db),
):
    """
    Queue every pending image for analysis.

    One credit is charged per run. The batch itself runs after the response
    is sent; poll GET /images for progress.
    """
    options = options or AnalysisOptions()
    workspace = workspaces.get(profile.id)

    pending = workspace.pending()
    if not pending:
        return ProcessResponse(queued=0, message="No images to process")
    if workspace.is_processing:
        raise BatchInProgressError()

    # Claimed before the first await so a concurrent request sees the workspace busy.
    workspace.is_processing = True
    try:
        await consume_credit(profile, db)
    except Exception:
        workspace.is_processing = False
        raise

    background_tasks.add_task(_run_batch, workspace, client, options, profile.id)

    logger.info(
        f"Batch queued for user {profile.id}",
        extra={
            "pending": len(pending),
            "platforms": [p.value for p in options.platforms],
            "generation_mode": options.generationMode.value,
        },
    )
    return ProcessResponse(queued=len(pending), message=f"Processing {len(pending)} images")


@router.get("/export.csv", response_class=PlainTextResponse)
async def export_csv(
    platform: Optional[Platform] = Query(None),
    workspace: ImageWorkspace = Depends(get_workspace),
):
    """Completed images as CSV in the layout of the chosen platform"""
    if not workspace.completed():
        raise NoCompletedImagesError()
    content = format_images_as_csv(workspace.images, platform)
    return PlainTextResponse(
        content,
        media_type="text/csv; charset=utf-8",
        headers=_attachment(csv_download_path(platform)),
    )


@router.get("/prompts.txt", response_class=PlainTextResponse)
async def export_all_prompts(workspace: ImageWorkspace = Depends(get_workspace)):
    if not workspace.completed():
        raise NoCompletedImagesError("No completed prompts to download")
    return PlainTextResponse(
        format_all_prompts(workspace.images),
        headers=_attachment(ALL_PROMPTS_FILENAME),
    )


@router.get("/{image_id}/prompt.txt", response_class=PlainTextResponse)
async def export_prompt(image_id: str, workspace: ImageWorkspace = Depends(get_workspace)):
    image = workspace.get(image_id)
    if image.status != ImageStatus.COMPLETE or image.result is None:
        raise NoCompletedImagesError(f"Image {image_id} has no prompt yet")
    return PlainTextResponse(
        image.result.description,
        headers=_attachment(prompt_filename(image.filename)),
    )
