from __future__ import annotations

from typing import Optional

from ..schemas import AnalysisOptions, GenerationMode, Platform


IMAGE_TO_PROMPT_INSTRUCTION = (
    "Generate a detailed prompt description to recreate this image with an AI image generator. "
    "Include details about content, style, colors, lighting, and composition. "
    "The prompt should be at least 50 words but not more than 150 words."
)


def _keywords_line(options: AnalysisOptions, number: int) -> str:
    return (
        f"{number}. A list of {options.minKeywords}-{options.maxKeywords} relevant, specific keywords "
        "(single words or short phrases) that someone might search for to find this image."
    )


def build_analysis_prompt(options: AnalysisOptions) -> str:
    """Instruction text for one image, shaped by generation mode and the selected platform."""
    if options.generationMode == GenerationMode.IMAGE_TO_PROMPT:
        return f"{IMAGE_TO_PROMPT_INSTRUCTION}\n\nReturn the prompt description only, nothing else."

    platform = options.selected_platform
    title_line = (
        f"1. A clear, descriptive title between {options.minTitleWords}-{options.maxTitleWords} words. "
        "Don't use any symbols."
    )

    if platform == Platform.FREEPIK:
        body = "\n".join([
            "Analyze this image and generate metadata for the Freepik platform:",
            f"1. A clear, descriptive title between {options.minTitleWords}-{options.maxTitleWords} words "
            "that accurately describes what's in the image. The title should be relevant for stock image "
            "platforms. Don't use any symbols.",
            "2. Create an image generation prompt that describes this image in 1-2 sentences (30-50 words).",
            f"3. Generate a detailed list of {options.minKeywords}-{options.maxKeywords} relevant, specific "
            "keywords (single words or short phrases) that someone might search for to find this image. "
            "Focus on content, style, emotions, and technical details of the image.",
        ])
        fmt = (
            'Format your response as a JSON object with the fields "title", "prompt", and "keywords" '
            f"(as an array of at least {options.minKeywords} terms)."
        )
    elif platform == Platform.SHUTTERSTOCK:
        body = "\n".join([
            "Analyze this image and generate metadata for the Shutterstock platform:",
            "1. A clear, descriptive detailed description that's between "
            f"{options.minDescriptionWords}-{options.maxDescriptionWords} words.",
            _keywords_line(options, 2),
        ])
        fmt = 'Format your response as a JSON object with the fields "description" and "keywords" (as an array).'
    elif platform == Platform.ADOBE_STOCK:
        body = "\n".join([
            "Analyze this image and generate metadata for Adobe Stock:",
            title_line,
            _keywords_line(options, 2),
        ])
        fmt = 'Format your response as a JSON object with the fields "title" and "keywords" (as an array).'
    else:
        body = "\n".join([
            "Analyze this image and generate:",
            title_line,
            "2. A detailed description that's between "
            f"{options.minDescriptionWords}-{options.maxDescriptionWords} words.",
            _keywords_line(options, 3),
        ])
        fmt = (
            'Format your response as a JSON object with the fields "title", "description", and "keywords" '
            "(as an array)."
        )

    return f"{body}\n\n{fmt}"


def build_svg_process_prompt(svg_content: str, query: Optional[str], mode: Optional[str]) -> str:
    if mode == "text":
        return (
            "Analyze this SVG content and provide a detailed breakdown:\n"
            f"{query or 'Describe the SVG structure and elements'}\n\n"
            f"SVG Content:\n{svg_content}"
        )
    return (
        "Analyze this SVG image and provide a detailed visual description:\n"
        f"{query or 'Describe what you see in this image'}\n\n"
        f"SVG Content:\n{svg_content}"
    )


def build_svg_analysis_prompt(svg_content: Optional[str]) -> str:
    """Structured breakdown request; `svg_content` is embedded only for text-only analysis."""
    subject = "SVG content" if svg_content else "SVG image"
    parts = [
        f"Analyze this {subject} and provide a detailed breakdown in the following format:",
        "",
        "1. A comprehensive description of what the SVG represents, including its visual elements, "
        "style, and purpose",
        "2. List all SVG elements used (e.g., path, rect, circle, etc.) and their purposes",
        "3. Important attributes and metadata including:",
        "   - Dimensions (width, height, viewBox)",
        "   - Color schemes",
        "   - Gradients or filters if present",
        "   - Animation elements if present",
        "   - Any custom attributes or namespaces",
    ]
    if svg_content:
        parts += ["", f"SVG Content to analyze:\n{svg_content}"]
    parts += [
        "",
        "Please format your response with numbered sections (1., 2., 3.) and use clear, technical language.",
    ]
    return "\n".join(parts)
