from stockmeta.export.csv_export import (
    csv_download_path,
    format_all_prompts,
    format_images_as_csv,
    prompt_filename,
)
from stockmeta.schemas import ImageResult, ImageStatus, Platform
from stockmeta.services.workspace import ProcessedImage


def _image(filename="a.jpg", content_type="image/jpeg", status=ImageStatus.COMPLETE, **result):
    fields = {"title": "Sunset beach", "description": "Golden light", "keywords": ["sun", "beach"]}
    fields.update(result)
    return ProcessedImage(
        filename=filename,
        content_type=content_type,
        data=b"x",
        status=status,
        result=ImageResult(**fields) if status == ImageStatus.COMPLETE else None,
    )


def test_default_layout_row():
    assert format_images_as_csv([_image()]) == (
        '"Filename","Title","Description","Keywords"\n'
        '"a.jpg","Sunset beach","Golden light","sun, beach"'
    )


def test_empty_selection_is_header_only():
    assert format_images_as_csv([]) == '"Filename","Title","Description","Keywords"'


def test_only_completed_images_are_exported():
    images = [_image("a.jpg"), _image("b.jpg", status=ImageStatus.PENDING), _image("c.jpg", status=ImageStatus.ERROR)]
    lines = format_images_as_csv(images).split("\n")
    assert len(lines) == 2
    assert lines[1].startswith('"a.jpg"')


def test_freepik_layout_uses_semicolons_and_fixed_base_model():
    image = _image(title="Red car!", keywords=["car", "red"], prompt="A red car", baseModel="other")
    assert format_images_as_csv([image], Platform.FREEPIK) == (
        '"File name";"Title";"Keywords";"Prompt";"Base-Model"\n'
        '"a.jpg";"Red car";"car, red";"A red car";"leonardo"'
    )


def test_shutterstock_layout_joins_without_spaces():
    image = _image(keywords=["sun", "beach"], categories=["Nature", "Parks/Outdoor"])
    assert format_images_as_csv([image], Platform.SHUTTERSTOCK).split("\n")[1] == (
        '"a.jpg","Golden light","sun,beach","Nature,Parks/Outdoor"'
    )


def test_adobe_stock_layout_row():
    image = _image(categories=["Landscapes"])
    assert format_images_as_csv([image], Platform.ADOBE_STOCK).split("\n")[1] == (
        '"a.jpg","Sunset beach","sun, beach","Landscapes"'
    )


def test_video_row_uses_category_index():
    video = _image("clip.mp4", content_type="video/mp4", categories=["Travel"])
    assert format_images_as_csv([video], Platform.ADOBE_STOCK).split("\n")[1] == (
        '"clip.mp4","Sunset beach","sun,beach","21"'
    )


def test_embedded_quotes_are_doubled():
    image = _image(description='He said "hi"')
    assert format_images_as_csv([image]).split("\n")[1] == '"a.jpg","Sunset beach","He said ""hi""","sun, beach"'


def test_download_names():
    assert csv_download_path(Platform.ADOBE_STOCK) == "AdobeStock-MetaData By Pikshine ✨/image-metadata.csv"
    assert csv_download_path(Platform.FREEPIK) == "Freepik-MetaData By Pikshine/image-metadata.csv"
    assert csv_download_path(Platform.SHUTTERSTOCK) == "Shutterstock-MetaData/image-metadata.csv"
    assert csv_download_path(None) == "metadata/image-metadata.csv"
    assert prompt_filename("photo.final.jpg") == "photo-prompt.txt"


def test_all_prompts_blocks():
    images = [
        _image("a.jpg", description="first"),
        _image("b.jpg", status=ImageStatus.PENDING),
        _image("c.jpg", description="second"),
    ]
    assert format_all_prompts(images) == "--- a.jpg ---\n\nfirst\n\n\n--- c.jpg ---\n\nsecond\n\n"
