import json

import httpx
import pytest

from stockmeta.exceptions import GeminiRequestError
from stockmeta.inference.gemini import GeminiClient
from stockmeta.schemas import AnalysisOptions, GenerationMode, Platform


def _reply(text):
    return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": text}]}}]})


def _client(handler, requests=None):
    def _handler(request):
        if requests is not None:
            requests.append(request)
        return handler(request)
    return GeminiClient("test-key", transport=httpx.MockTransport(_handler))


@pytest.mark.asyncio
async def test_analyze_image_sends_prompt_and_inline_image():
    requests = []
    client = _client(lambda r: _reply('{"title": "A cat", "keywords": ["cat"]}'), requests)

    await client.analyze_image(b"\x89PNG", "image/png", "cat.png", AnalysisOptions())

    request = requests[0]
    assert request.url.path.endswith("/models/gemini-1.5-flash:generateContent")
    assert request.url.params["key"] == "test-key"
    body = json.loads(request.content)
    parts = body["contents"][0]["parts"]
    assert "Adobe Stock" in parts[0]["text"]
    assert parts[1]["inline_data"]["mime_type"] == "image/png"
    assert body["generationConfig"]["temperature"] == 0.4


@pytest.mark.asyncio
async def test_adobe_stock_reply_gets_clean_title_and_category():
    text = '```json\n{"title": "Red car on the road!", "keywords": ["car", "vehicle", "road"]}\n```'
    client = _client(lambda r: _reply(text))

    result = await client.analyze_image(b"img", "image/jpeg", "car.jpg", AnalysisOptions(platforms=[Platform.ADOBE_STOCK]))

    assert result.error is None
    assert result.title == "Red car on the road"
    assert result.keywords == ["car", "vehicle", "road"]
    assert result.categories == ["Transport"]


@pytest.mark.asyncio
async def test_freepik_reply_with_few_keywords_falls_back_to_prompt_keywords():
    text = json.dumps({"title": "Garden", "prompt": "A quiet garden with flowers and a wooden bench", "keywords": ["garden"]})
    client = _client(lambda r: _reply(text))

    result = await client.analyze_image(b"img", "image/jpeg", "g.jpg", AnalysisOptions(platforms=[Platform.FREEPIK]))

    assert result.base_model == "leonardo"
    assert result.prompt == "A quiet garden with flowers and a wooden bench"
    assert result.keywords[:3] == ["quiet", "garden", "with"]


@pytest.mark.asyncio
async def test_image_to_prompt_returns_trimmed_text():
    client = _client(lambda r: _reply("  A cinematic shot of a lighthouse.\n"))
    options = AnalysisOptions(generationMode=GenerationMode.IMAGE_TO_PROMPT)

    result = await client.analyze_image(b"img", "image/jpeg", "l.jpg", options)

    assert result.description == "A cinematic shot of a lighthouse."
    assert result.title == ""
    assert result.keywords == []


@pytest.mark.asyncio
async def test_api_error_message_is_returned_not_raised():
    client = _client(lambda r: httpx.Response(400, json={"error": {"message": "API key not valid"}}))

    result = await client.analyze_image(b"img", "image/jpeg", "a.jpg")

    assert result.error == "API key not valid"


@pytest.mark.asyncio
async def test_api_error_without_body_uses_default_message():
    client = _client(lambda r: httpx.Response(500, text="oops"))

    result = await client.analyze_image(b"img", "image/jpeg", "a.jpg")

    assert result.error == "Failed to analyze image"


@pytest.mark.asyncio
async def test_unparsable_reply_is_an_error():
    client = _client(lambda r: _reply("I cannot help with that."))

    result = await client.analyze_image(b"img", "image/jpeg", "a.jpg")

    assert result.error == "Failed to parse metadata from the API response"


@pytest.mark.asyncio
async def test_process_svg_uses_text_model():
    requests = []
    client = _client(lambda r: _reply("It is a circle."), requests)

    text = await client.process_svg("<svg><circle r='4'/></svg>", None, "text")

    assert text == "It is a circle."
    assert requests[0].url.path.endswith("/models/gemini-pro:generateContent")


@pytest.mark.asyncio
async def test_analyze_svg_falls_back_to_text_analysis_for_broken_markup():
    requests = []
    client = _client(lambda r: _reply("1. A logo\n\n2. path\n\n3. - Colors: blue"), requests)

    result = await client.analyze_svg("not really svg")

    assert result.description == "A logo"
    assert result.elements == ["path"]
    assert result.metadata == {"Colors": "blue"}
    assert requests[0].url.path.endswith("/models/gemini-pro:generateContent")


@pytest.mark.asyncio
async def test_reply_that_is_not_json_is_a_request_error():
    client = _client(lambda r: httpx.Response(200, text="<html>bad gateway</html>"))

    with pytest.raises(GeminiRequestError) as exc_info:
        await client.generate_content([{"text": "hi"}])
    assert exc_info.value.message == "Invalid response from Gemini API"

    result = await client.analyze_image(b"img", "image/jpeg", "a.jpg")
    assert result.error == "Invalid response from Gemini API"


@pytest.mark.asyncio
async def test_analyze_svg_with_out_of_range_size_still_analyzes():
    requests = []
    client = _client(lambda r: _reply("1. A logo\n\n2. path"), requests)

    result = await client.analyze_svg('<svg xmlns="http://www.w3.org/2000/svg" width="-5" height="100000"></svg>')

    assert result.description == "A logo"
    assert len(requests) == 1
