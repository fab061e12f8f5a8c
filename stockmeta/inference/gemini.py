from __future__ import annotations

import base64
import json
import logging
import re
from typing import Any, Dict, List, Optional

import httpx

from ..config import settings
from ..exceptions import GeminiRequestError, InvalidSvgError, SvgProcessingError
from ..media import is_svg
from ..metadata.categories import suggest_categories_for_adobe_stock, suggest_categories_for_shutterstock
from ..metadata.keywords import get_relevant_freepik_keywords
from ..metadata.text import remove_symbols_from_title
from ..schemas import AnalysisOptions, AnalysisResult, GenerationMode, Platform, SvgAnalysisResult
from . import json_guard
from .prompts import build_analysis_prompt, build_svg_analysis_prompt, build_svg_process_prompt
from .svg_raster import clean_svg_content, convert_svg_to_png, extract_svg_content

logger = logging.getLogger(__name__)

GENERATION_CONFIG = {
    "temperature": 0.4,
    "topK": 32,
    "topP": 0.95,
    "maxOutputTokens": 1024,
}

DEFAULT_BASE_MODEL = "leonardo"

_SVG_DIMENSIONS = {
    "width": re.compile(r'(?<![\w-])width="([^"]+)"'),
    "height": re.compile(r'(?<![\w-])height="([^"]+)"'),
    "viewBox": re.compile(r'viewBox="([^"]+)"'),
}
_METADATA_LINE = re.compile(r"[-•]?\s*([^:]+):\s*(.+)")


def _inline_image(data: bytes, mime_type: str) -> Dict[str, Any]:
    return {
        "inline_data": {
            "mime_type": mime_type,
            "data": base64.b64encode(data).decode("ascii"),
        }
    }


def _reply_text(payload: Dict[str, Any]) -> str:
    candidates = payload.get("candidates") or []
    if not candidates:
        return ""
    parts = (candidates[0].get("content") or {}).get("parts") or []
    if not parts:
        return ""
    return parts[0].get("text") or ""


def _as_keyword_list(value: Any) -> List[str]:
    if isinstance(value, str):
        return [kw.strip() for kw in value.split(",") if kw.strip()]
    if isinstance(value, list):
        return [str(kw).strip() for kw in value if str(kw).strip()]
    return []


def _numbered_section(sections: List[str], number: int) -> Optional[str]:
    marker = f"{number}."
    for section in sections:
        if section.strip().startswith(marker):
            return section.replace(marker, "", 1).strip()
    return None


def parse_metadata_reply(text: str, options: AnalysisOptions) -> AnalysisResult:
    """Map a metadata-mode reply onto an AnalysisResult, applying the platform rules."""
    json_str = json_guard.extract_json(text)
    try:
        data = json.loads(json_str)
    except json.JSONDecodeError:
        logger.error(
            "Failed to parse JSON from response",
            extra={"json_candidate": json_str[:500], "reply_text": text[:1000]},
        )
        raise GeminiRequestError("Failed to parse metadata from the API response")
    if not isinstance(data, dict):
        raise GeminiRequestError("Failed to parse metadata from the API response")

    platform = options.selected_platform
    title = remove_symbols_from_title(str(data.get("title") or ""))
    description = str(data.get("description") or "")
    keywords = _as_keyword_list(data.get("keywords"))
    prompt = data.get("prompt")
    base_model = data.get("baseModel")
    categories = None

    if platform == Platform.FREEPIK:
        if len(keywords) < options.minKeywords:
            keywords = get_relevant_freepik_keywords(prompt or "")
        base_model = DEFAULT_BASE_MODEL
    elif platform == Platform.SHUTTERSTOCK:
        categories = suggest_categories_for_shutterstock(title, description)
    elif platform == Platform.ADOBE_STOCK:
        categories = suggest_categories_for_adobe_stock(title, keywords)

    return AnalysisResult(
        title=title,
        description=description,
        keywords=keywords,
        prompt=prompt,
        base_model=base_model or DEFAULT_BASE_MODEL,
        categories=categories,
    )


def parse_svg_analysis(text: str, svg_content: str) -> SvgAnalysisResult:
    sections = text.split("\n\n")

    description = _numbered_section(sections, 1) or "No description available"

    elements_section = _numbered_section(sections, 2) or ""
    elements = [el.strip() for el in elements_section.split(",") if el.strip()]

    metadata: Dict[str, str] = {}
    for line in (_numbered_section(sections, 3) or "").split("\n"):
        m = _METADATA_LINE.search(line)
        if m:
            metadata[m.group(1).strip()] = m.group(2).strip()

    for key, pattern in _SVG_DIMENSIONS.items():
        m = pattern.search(svg_content)
        if m and m.group(1):
            metadata[key] = m.group(1)

    return SvgAnalysisResult(
        description=description,
        elements=elements or ["No elements detected"],
        metadata=metadata or {"note": "No metadata detected"},
    )


class GeminiClient:
    """
    Thin async client for the Gemini `generateContent` REST endpoint.

    One request per call, no retries. `transport` lets tests swap in an
    `httpx.MockTransport`.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        model: Optional[str] = None,
        text_model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.GEMINI_API_KEY
        self.model = model or settings.GEMINI_MODEL
        self.text_model = text_model or settings.GEMINI_TEXT_MODEL
        self.base_url = (base_url or settings.GEMINI_BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.GEMINI_TIMEOUT_SECONDS
        self._transport = transport

    async def generate_content(self, parts: List[Dict[str, Any]], model: Optional[str] = None) -> str:
        model_name = model or self.model
        url = f"{self.base_url}/models/{model_name}:generateContent"
        body = {
            "contents": [{"parts": parts}],
            "generationConfig": GENERATION_CONFIG,
        }

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                response = await client.post(url, params={"key": self.api_key}, json=body)
            except httpx.HTTPError as e:
                logger.error(f"Gemini request failed: {e}", extra={"model": model_name})
                raise GeminiRequestError(str(e) or "Failed to analyze image")

        if response.is_error:
            message = "Failed to analyze image"
            try:
                message = response.json().get("error", {}).get("message") or message
            except (ValueError, AttributeError):
                pass
            logger.error(
                f"Gemini API error: {message}",
                extra={"model": model_name, "status_code": response.status_code},
            )
            raise GeminiRequestError(message)

        try:
            payload = response.json()
        except ValueError:
            logger.error("Gemini returned a reply that is not JSON", extra={"status_code": response.status_code})
            raise GeminiRequestError("Invalid response from Gemini API")
        return _reply_text(payload)

    async def analyze_image(
        self,
        data: bytes,
        content_type: str,
        filename: str,
        options: Optional[AnalysisOptions] = None,
    ) -> AnalysisResult:
        """
        Generate metadata (or an image-to-prompt description) for one image.

        Never raises: any failure comes back as a result carrying only `error`.
        """
        options = options or AnalysisOptions()
        try:
            mime_type = content_type
            if is_svg(content_type, filename):
                try:
                    data = convert_svg_to_png(data.decode("utf-8"))
                    mime_type = "image/png"
                    logger.info(f"Converted SVG to PNG for analysis: {filename}")
                except (InvalidSvgError, UnicodeDecodeError) as e:
                    logger.warning(f"SVG conversion failed for {filename}, sending the file as uploaded: {e}")

            prompt = build_analysis_prompt(options)
            text = await self.generate_content([{"text": prompt}, _inline_image(data, mime_type)])

            if options.generationMode == GenerationMode.IMAGE_TO_PROMPT:
                return AnalysisResult(title="", description=text.strip(), keywords=[])

            return parse_metadata_reply(text, options)
        except GeminiRequestError as e:
            return AnalysisResult(error=e.message)
        except Exception as e:
            logger.error(f"Error analyzing image {filename}: {e}", exc_info=True)
            return AnalysisResult(error=str(e) or "Unknown error occurred")

    async def process_svg(self, svg_content: str, query: Optional[str] = None, mode: Optional[str] = None) -> str:
        prompt = build_svg_process_prompt(svg_content, query, mode)
        return await self.generate_content([{"text": prompt}], model=self.text_model)

    async def analyze_svg(self, svg_content: str) -> SvgAnalysisResult:
        """Structured description of an SVG; image analysis when it rasterizes, text otherwise."""
        clean = clean_svg_content(extract_svg_content(svg_content))

        image_part = None
        try:
            image_part = _inline_image(convert_svg_to_png(clean), "image/png")
        except InvalidSvgError as e:
            logger.warning(f"Failed to convert SVG to PNG, using text analysis instead: {e}")

        try:
            if image_part is not None:
                text = await self.generate_content([{"text": build_svg_analysis_prompt(None)}, image_part])
            else:
                text = await self.generate_content(
                    [{"text": build_svg_analysis_prompt(clean)}], model=self.text_model
                )
        except GeminiRequestError as e:
            raise SvgProcessingError(f"Failed to analyze SVG with Gemini: {e.message}")

        return parse_svg_analysis(text, clean)
