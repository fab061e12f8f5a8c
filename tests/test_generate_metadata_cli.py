import httpx
import pytest

from scripts import generate_metadata
from stockmeta.config import settings
from stockmeta.exceptions import MissingApiKeyError
from stockmeta.inference.gemini import GeminiClient
from stockmeta.schemas import GenerationMode, Platform


def _fake_client(text):
    def factory(api_key):
        def handler(request):
            return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": text}]}}]})
        return GeminiClient(api_key, transport=httpx.MockTransport(handler))
    return factory


def test_load_folder_skips_unsupported_files(tmp_path):
    (tmp_path / "a.png").write_bytes(b"png")
    (tmp_path / "notes.pdf").write_bytes(b"%PDF")
    (tmp_path / "b.jpg").write_bytes(b"jpg")

    workspace = generate_metadata.load_folder(tmp_path)

    assert [image.filename for image in workspace.images] == ["a.png", "b.jpg"]


@pytest.mark.asyncio
async def test_generate_writes_platform_csv(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "PROCESSING_DELAY_SECONDS", 0)
    monkeypatch.setattr(
        generate_metadata, "GeminiClient",
        _fake_client('{"description": "A dog in the park", "keywords": ["dog", "park"]}'),
    )
    (tmp_path / "dog.jpg").write_bytes(b"jpg")

    target = await generate_metadata.generate(
        tmp_path, platform=Platform.SHUTTERSTOCK, mode=GenerationMode.METADATA, output=None, api_key="k"
    )

    assert target == tmp_path / "image-metadata.csv"
    assert target.read_text(encoding="utf-8") == (
        '"Filename","Description","Keywords","Categories"\n'
        '"dog.jpg","A dog in the park","dog,park","Animals/Wildlife,Parks/Outdoor"'
    )


@pytest.mark.asyncio
async def test_generate_writes_prompts_file(tmp_path, monkeypatch):
    monkeypatch.setattr(generate_metadata, "GeminiClient", _fake_client("A lighthouse at night."))
    (tmp_path / "light.png").write_bytes(b"png")

    target = await generate_metadata.generate(
        tmp_path, platform=None, mode=GenerationMode.IMAGE_TO_PROMPT, output=None, api_key="k"
    )

    assert target.name == "all-prompts.txt"
    assert target.read_text(encoding="utf-8") == "--- light.png ---\n\nA lighthouse at night.\n\n"


@pytest.mark.asyncio
async def test_generate_requires_api_key(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "GEMINI_API_KEY", "")
    with pytest.raises(MissingApiKeyError):
        await generate_metadata.generate(
            tmp_path, platform=None, mode=GenerationMode.METADATA, output=None, api_key=None
        )
