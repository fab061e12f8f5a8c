"""
Per-platform CSV layouts for completed images.

Every field is double-quoted; embedded quotes are doubled. Rows are joined
with a bare newline and the output has no trailing newline, so an empty
selection produces the header line only.
"""
from __future__ import annotations

import csv
import io
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Callable, Iterable, List, Optional, Sequence

from ..media import is_video
from ..metadata.categories import adobe_stock_category_index
from ..metadata.text import join_keywords, remove_symbols_from_title
from ..schemas import ImageResult, ImageStatus, Platform
from ..services.workspace import ProcessedImage


DEFAULT_CSV_FILENAME = "image-metadata.csv"
ALL_PROMPTS_FILENAME = "all-prompts.txt"
FREEPIK_BASE_MODEL = "leonardo"

RowBuilder = Callable[[ProcessedImage, ImageResult], List[str]]


@dataclass(frozen=True)
class CsvLayout:
    header: Sequence[str]
    delimiter: str
    row: RowBuilder


def _clean_title(result: ImageResult) -> str:
    return remove_symbols_from_title(result.title) if result.title else ""


def _freepik_row(image: ProcessedImage, result: ImageResult) -> List[str]:
    return [
        image.filename,
        _clean_title(result),
        join_keywords(result.keywords),
        result.prompt or "",
        FREEPIK_BASE_MODEL,
    ]


def _shutterstock_row(image: ProcessedImage, result: ImageResult) -> List[str]:
    return [
        image.filename,
        result.description or "",
        join_keywords(result.keywords, ","),
        join_keywords(result.categories, ","),
    ]


def _adobe_stock_row(image: ProcessedImage, result: ImageResult) -> List[str]:
    return [
        image.filename,
        _clean_title(result),
        join_keywords(result.keywords),
        join_keywords(result.categories, ","),
    ]


def _default_row(image: ProcessedImage, result: ImageResult) -> List[str]:
    return [
        image.filename,
        _clean_title(result),
        result.description or "",
        join_keywords(result.keywords),
    ]


def _video_row(image: ProcessedImage, result: ImageResult) -> List[str]:
    index = adobe_stock_category_index(result.categories[0]) if result.categories else None
    return [
        image.filename,
        _clean_title(result),
        join_keywords(result.keywords, ","),
        str(index) if index is not None else "",
    ]


LAYOUTS = {
    Platform.FREEPIK: CsvLayout(["File name", "Title", "Keywords", "Prompt", "Base-Model"], ";", _freepik_row),
    Platform.SHUTTERSTOCK: CsvLayout(["Filename", "Description", "Keywords", "Categories"], ",", _shutterstock_row),
    Platform.ADOBE_STOCK: CsvLayout(["Filename", "Title", "Keywords", "Category"], ",", _adobe_stock_row),
}
DEFAULT_LAYOUT = CsvLayout(["Filename", "Title", "Description", "Keywords"], ",", _default_row)
VIDEO_LAYOUT = CsvLayout(["Filename", "Title", "Keywords", "Category"], ",", _video_row)


def layout_for(platform: Optional[Platform]) -> CsvLayout:
    return LAYOUTS.get(platform, DEFAULT_LAYOUT)


def _csv_line(fields: Iterable[str], delimiter: str) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, delimiter=delimiter, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(fields)
    return buffer.getvalue()[:-1]


def format_images_as_csv(images: Iterable[ProcessedImage], platform: Optional[Platform] = None) -> str:
    layout = layout_for(platform)
    lines = [_csv_line(layout.header, layout.delimiter)]
    for image in images:
        if image.status != ImageStatus.COMPLETE or image.result is None:
            continue
        row_layout = VIDEO_LAYOUT if is_video(image.content_type) else layout
        lines.append(_csv_line(row_layout.row(image, image.result), row_layout.delimiter))
    return "\n".join(lines)


def csv_folder_name(platform: Optional[Platform]) -> str:
    if platform == Platform.ADOBE_STOCK:
        return "AdobeStock-MetaData By Pikshine ✨"
    if platform == Platform.FREEPIK:
        return "Freepik-MetaData By Pikshine"
    if platform is not None:
        return f"{platform.value}-MetaData"
    return "metadata"


def csv_download_path(platform: Optional[Platform], filename: str = DEFAULT_CSV_FILENAME) -> str:
    return f"{csv_folder_name(platform)}/{filename}"


def prompt_filename(source_filename: str) -> str:
    stem = PurePosixPath(source_filename).name.split(".")[0]
    return f"{stem}-prompt.txt"


def format_all_prompts(images: Iterable[ProcessedImage]) -> str:
    blocks = []
    for image in images:
        if image.status != ImageStatus.COMPLETE:
            continue
        description = image.result.description if image.result else ""
        blocks.append(f"--- {image.filename} ---\n\n{description}\n\n")
    return "\n".join(blocks)
