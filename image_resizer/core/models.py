import enum
from dataclasses import dataclass
from typing import Optional

JPEG_CONTENT_TYPE = 'image/jpeg'
DEFAULT_THUMBNAIL_WIDTH = 128


class FitMode(enum.Enum):
    # Bound the width only, height follows proportionally.
    WIDTH = 'width'
    # Bound the longest side, like PIL's Image.thumbnail((w, w)).
    MAX = 'max'


@dataclass(frozen=True)
class Dimensions:
    width: int
    height: int

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height

    def __str__(self):
        return f'{self.width}x{self.height}'


@dataclass(frozen=True)
class ThumbnailSpec:
    """
    How a thumbnail is derived from a source image.
    """
    max_width: int = DEFAULT_THUMBNAIL_WIDTH
    fit_mode: FitMode = FitMode.WIDTH
    allow_upscale: bool = True
    output_format: str = 'JPEG'
    quality: Optional[int] = None


@dataclass(frozen=True)
class ThumbnailImage:
    data: bytes
    dimensions: Dimensions
    content_type: str = JPEG_CONTENT_TYPE


@dataclass(frozen=True)
class BlobLocator:
    container: str
    name: str
    url: Optional[str] = None

    def __str__(self):
        return f'{self.container}/{self.name}'
