from __future__ import annotations

import base64
import io
import logging
import re
import xml.etree.ElementTree as ET
from typing import Optional, Tuple

import cairosvg
from PIL import Image

from ..config import settings
from ..exceptions import InvalidSvgError

logger = logging.getLogger(__name__)

_SVG_DATA_URL_PREFIX = "data:image/svg+xml;base64,"
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
MAX_CANVAS_SIDE = 8192


def extract_svg_content(content: str) -> str:
    """Accept raw markup or a base64 data URL and return SVG markup."""
    if "<svg" in content:
        return content
    if content.startswith(_SVG_DATA_URL_PREFIX):
        try:
            return base64.b64decode(content[len(_SVG_DATA_URL_PREFIX):]).decode("utf-8")
        except (ValueError, UnicodeDecodeError) as e:
            logger.warning(f"Failed to decode SVG data URL: {e}")
    return content


def clean_svg_content(content: str) -> str:
    without_comments = re.sub(r"<!--.*?-->", "", content, flags=re.S)
    return re.sub(r"\s+", " ", without_comments).strip()


def _parse_int(value: Optional[str]) -> Optional[int]:
    if not value:
        return None
    m = _LEADING_INT.match(value)
    if not m:
        return None
    number = int(m.group(1))
    if number < 1 or number > MAX_CANVAS_SIDE:
        return None
    return number


def svg_canvas_size(
    svg_content: str,
    default_width: Optional[int] = None,
    default_height: Optional[int] = None,
) -> Tuple[int, int]:
    """
    Canvas size for rasterizing: the root width/height attributes when both are
    set, else the viewBox size, else the configured default. Unparsable numbers
    and sides outside 1..MAX_CANVAS_SIDE fall back to the default for that axis.
    """
    width = default_width or settings.SVG_RASTER_WIDTH
    height = default_height or settings.SVG_RASTER_HEIGHT
    try:
        root = ET.fromstring(svg_content)
    except ET.ParseError:
        return width, height

    svg_width = root.get("width")
    svg_height = root.get("height")
    view_box = (root.get("viewBox") or "").split()

    if svg_width and svg_height:
        return _parse_int(svg_width) or width, _parse_int(svg_height) or height
    if len(view_box) == 4:
        return _parse_int(view_box[2]) or width, _parse_int(view_box[3]) or height
    return width, height


def convert_svg_to_png(
    svg_content: str,
    width: Optional[int] = None,
    height: Optional[int] = None,
) -> bytes:
    """Rasterize SVG markup onto a white canvas and return PNG bytes."""
    canvas_width, canvas_height = svg_canvas_size(svg_content, width, height)
    try:
        png_bytes = cairosvg.svg2png(
            bytestring=svg_content.encode("utf-8"),
            output_width=canvas_width,
            output_height=canvas_height,
        )
    except Exception as e:
        raise InvalidSvgError(f"Failed to load SVG image: {e}")

    buf = io.BytesIO()
    try:
        rendered = Image.open(io.BytesIO(png_bytes)).convert("RGBA")
        canvas = Image.new("RGB", (canvas_width, canvas_height), "white")
        canvas.paste(rendered, (0, 0), rendered)
        canvas.save(buf, format="PNG")
    except (ValueError, OSError) as e:
        raise InvalidSvgError(f"Failed to rasterize SVG image: {e}")
    logger.debug(f"Rasterized SVG to {canvas_width}x{canvas_height} PNG")
    return buf.getvalue()
