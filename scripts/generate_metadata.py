from __future__ import annotations

import argparse
import asyncio
from pathlib import Path
from typing import List, Optional

from stockmeta.config import settings
from stockmeta.exceptions import FileTooLargeError, MissingApiKeyError, UnsupportedMediaTypeError
from stockmeta.export.csv_export import ALL_PROMPTS_FILENAME, DEFAULT_CSV_FILENAME, format_all_prompts, format_images_as_csv
from stockmeta.inference.gemini import GeminiClient
from stockmeta.logger import logger
from stockmeta.media import guess_content_type, is_valid_file_size, is_valid_media_type
from stockmeta.schemas import AnalysisOptions, GenerationMode, Platform
from stockmeta.services.orchestrator import gemini_analyzer, process_pending
from stockmeta.services.workspace import ImageWorkspace, ProcessedImage


def load_folder(folder: Path) -> ImageWorkspace:
    """Workspace with every accepted file in `folder`; other files are logged and skipped."""
    workspace = ImageWorkspace()
    images: List[ProcessedImage] = []
    for path in sorted(p for p in folder.iterdir() if p.is_file()):
        content_type = guess_content_type(path.name)
        if not is_valid_media_type(content_type):
            logger.warning(UnsupportedMediaTypeError(path.name).message)
            continue
        if not is_valid_file_size(path.stat().st_size):
            logger.warning(FileTooLargeError(path.name, settings.MAX_UPLOAD_SIZE_GB).message)
            continue
        images.append(ProcessedImage(filename=path.name, content_type=content_type, data=path.read_bytes()))
    workspace.add(images)
    return workspace


async def generate(
    folder: Path,
    *,
    platform: Optional[Platform],
    mode: GenerationMode,
    output: Optional[Path],
    api_key: Optional[str],
) -> Path:
    api_key = api_key or settings.GEMINI_API_KEY
    if not api_key:
        raise MissingApiKeyError()

    options = AnalysisOptions(
        platforms=[platform] if platform else [],
        generationMode=mode,
    )
    workspace = load_folder(folder)
    report = await process_pending(workspace, gemini_analyzer(GeminiClient(api_key)), options)

    if mode == GenerationMode.IMAGE_TO_PROMPT:
        content = format_all_prompts(workspace.images)
        target = output or folder / ALL_PROMPTS_FILENAME
    else:
        content = format_images_as_csv(workspace.images, options.selected_platform)
        target = output or folder / DEFAULT_CSV_FILENAME

    target.write_text(content, encoding="utf-8")
    logger.info(
        "Metadata written",
        extra={
            "output": str(target),
            "completed": len(report.completed),
            "failed": len(report.failed),
        },
    )
    return target


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate stock metadata for every image in a folder.",
    )
    parser.add_argument("folder", type=Path, help="Folder with images and videos.")
    parser.add_argument(
        "--platform",
        choices=[p.value for p in Platform],
        default=None,
        help="Target marketplace; selects prompt rules and CSV layout.",
    )
    parser.add_argument(
        "--mode",
        choices=[m.value for m in GenerationMode],
        default=GenerationMode.METADATA.value,
    )
    parser.add_argument("--output", type=Path, default=None, help="Output file (default: inside the folder).")
    parser.add_argument("--api-key", default=None, help="Gemini API key (default: GEMINI_API_KEY).")
    return parser


def main() -> None:
    parser = _build_parser()
    args = parser.parse_args()
    if not args.folder.is_dir():
        parser.error(f"{args.folder} is not a directory")
    try:
        asyncio.run(
            generate(
                args.folder,
                platform=Platform(args.platform) if args.platform else None,
                mode=GenerationMode(args.mode),
                output=args.output,
                api_key=args.api_key,
            )
        )
    except MissingApiKeyError as e:
        raise SystemExit(e.message)


if __name__ == "__main__":
    main()
