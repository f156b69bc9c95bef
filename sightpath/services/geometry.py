import math
from dataclasses import dataclass

from sightpath.schemas.detection import NormalizedBox


@dataclass(frozen=True)
class PixelRect:
    x: int
    y: int
    width: int
    height: int

    @property
    def center(self) -> tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)


@dataclass(frozen=True)
class RegionOfInterest:
    """
    Fractional sub-rectangle of the frame treated as "ahead".

    Inverted or out-of-range fractions are accepted as-is and simply yield an
    empty (or unusual) region.
    """
    x_start: float
    x_end: float
    y_start: float
    y_end: float

    def pixel_bounds(self, width: int, height: int) -> tuple[float, float, float, float]:
        return (
            width * self.x_start,
            width * self.x_end,
            height * self.y_start,
            height * self.y_end,
        )

    def contains(self, center_x: float, center_y: float, width: int, height: int) -> bool:
        x_min, x_max, y_min, y_max = self.pixel_bounds(width, height)
        return x_min <= center_x <= x_max and y_min <= center_y <= y_max

    @classmethod
    def from_settings(cls, settings) -> "RegionOfInterest":
        return cls(
            x_start=settings.CENTER_X_RANGE_START,
            x_end=settings.CENTER_X_RANGE_END,
            y_start=settings.CENTER_Y_RANGE_START,
            y_end=settings.CENTER_Y_RANGE_END,
        )


def to_pixel_rect(box: NormalizedBox, width: int, height: int) -> PixelRect:
    """Floor each normalized coordinate against the image size."""
    return PixelRect(
        x=math.floor(box.left * width),
        y=math.floor(box.top * height),
        width=math.floor(box.width * width),
        height=math.floor(box.height * height),
    )
