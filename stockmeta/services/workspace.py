from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from ..exceptions import ImageNotFoundError
from ..media import format_file_size, generate_id, to_data_url
from ..schemas import ImageResult, ImageStatus, ProcessedImageOut


@dataclass
class ProcessedImage:
    filename: str
    content_type: str
    data: bytes = field(repr=False)
    id: str = field(default_factory=generate_id)
    preview_url: str = field(default="", repr=False)
    status: ImageStatus = ImageStatus.PENDING
    result: Optional[ImageResult] = None
    error: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.preview_url:
            self.preview_url = to_data_url(self.data, self.content_type)

    @property
    def size(self) -> int:
        return len(self.data)

    def to_out(self) -> ProcessedImageOut:
        return ProcessedImageOut(
            id=self.id,
            filename=self.filename,
            contentType=self.content_type,
            size=self.size,
            sizeLabel=format_file_size(self.size),
            previewUrl=self.preview_url,
            status=self.status,
            result=self.result,
            error=self.error,
        )


class ImageWorkspace:
    """
    The in-memory image list of one user.

    Mutated only from the event loop. `is_processing` is set for the duration of
    a batch so that a second batch cannot start on the same images.
    """

    def __init__(self) -> None:
        self.images: List[ProcessedImage] = []
        self.is_processing = False

    def add(self, images: Iterable[ProcessedImage]) -> None:
        self.images.extend(images)

    def get(self, image_id: str) -> ProcessedImage:
        for image in self.images:
            if image.id == image_id:
                return image
        raise ImageNotFoundError(image_id)

    def contains(self, image_id: str) -> bool:
        return any(image.id == image_id for image in self.images)

    def remove(self, image_id: str) -> None:
        image = self.get(image_id)
        self.images.remove(image)

    def clear(self) -> None:
        self.images = []

    def pending(self) -> List[ProcessedImage]:
        return [image for image in self.images if image.status == ImageStatus.PENDING]

    def completed(self) -> List[ProcessedImage]:
        return [image for image in self.images if image.status == ImageStatus.COMPLETE]


class WorkspaceRegistry:
    def __init__(self) -> None:
        self._workspaces: Dict[str, ImageWorkspace] = {}

    def get(self, owner_id: str) -> ImageWorkspace:
        workspace = self._workspaces.get(owner_id)
        if workspace is None:
            workspace = ImageWorkspace()
            self._workspaces[owner_id] = workspace
        return workspace

    def discard(self, owner_id: str) -> None:
        self._workspaces.pop(owner_id, None)


workspaces = WorkspaceRegistry()
