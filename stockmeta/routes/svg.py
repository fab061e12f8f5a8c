"""
SVG routes - free-form model query and structured analysis
"""
from fastapi import APIRouter, Depends, Header
from fastapi.responses import JSONResponse
from typing import Optional

from ..exceptions import GeminiRequestError, InvalidSvgError
from ..inference.gemini import GeminiClient
from ..logger import logger
from ..schemas import SvgAnalysisResult, SvgAnalyzeRequest, SvgProcessRequest

router = APIRouter(prefix="/api", tags=["SVG"])


def get_svg_client(x_gemini_api_key: Optional[str] = Header(None)) -> GeminiClient:
    """Uses the server key unless the caller sends its own"""
    return GeminiClient(x_gemini_api_key or None)


@router.post("/process-svg")
async def process_svg(
    payload: Optional[SvgProcessRequest] = None,
    client: GeminiClient = Depends(get_svg_client),
):
    """Ask the text model about an SVG document and return its raw answer"""
    if payload is None or not payload.svgContent:
        return JSONResponse(status_code=400, content={"error": "SVG content is required"})

    try:
        text = await client.process_svg(payload.svgContent, payload.query, payload.mode)
    except GeminiRequestError as e:
        logger.error(f"Error processing SVG: {e.message}")
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "Failed to process SVG", "details": e.message},
        )

    return {"success": True, "result": text}


@router.post("/analyze-svg", response_model=SvgAnalysisResult)
async def analyze_svg(
    payload: SvgAnalyzeRequest,
    client: GeminiClient = Depends(get_svg_client),
):
    """Description, element list and metadata for an SVG; raw markup or a base64 data URL"""
    if not payload.svgContent.strip():
        raise InvalidSvgError("SVG content is required")
    return await client.analyze_svg(payload.svgContent)
