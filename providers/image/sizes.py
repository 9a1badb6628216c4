"""Image size helpers: parsing, orientation policy and the generic dimension rule."""

import math
from dataclasses import dataclass

MIN_DIMENSION = 512
MAX_DIMENSION = 2048
DIMENSION_STEP = 16
MAX_PIXELS = 2**21
SQUARE_TOLERANCE = 0.1


@dataclass(frozen=True)
class ImageSize:
    width: int
    height: int

    def __str__(self) -> str:
        return f"{self.width}x{self.height}"

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height


DEFAULT_SIZE = ImageSize(1024, 1024)


def parse_image_size(size: str) -> ImageSize:
    """Parse a "WIDTHxHEIGHT" string. Raises ValueError on anything else."""
    width, _, height = size.strip().lower().partition("x")
    parsed = ImageSize(int(width), int(height))
    if parsed.width <= 0 or parsed.height <= 0:
        raise ValueError(f"Image size must be positive: {size}")
    return parsed


def is_near_square(aspect_ratio: float) -> bool:
    return abs(aspect_ratio - 1) < SQUARE_TOLERANCE


def pick_by_orientation(sizes: list[ImageSize], aspect_ratio: float) -> ImageSize:
    """Square for near-1 ratios, else first landscape/portrait entry, else the first entry."""
    if is_near_square(aspect_ratio):
        match = next((s for s in sizes if s.width == s.height), None)
    elif aspect_ratio > 1:
        match = next((s for s in sizes if s.width > s.height), None)
    else:
        match = next((s for s in sizes if s.height > s.width), None)
    return match or sizes[0]


def calculate_dimensions(aspect_ratio: float) -> ImageSize:
    """Keep roughly a 1024x1024 pixel budget for the given ratio, snapped to the generic grid."""
    total_pixels = 1024 * 1024
    if aspect_ratio >= 1:
        width = round(math.sqrt(total_pixels * aspect_ratio))
        height = round(width / aspect_ratio)
    else:
        height = round(math.sqrt(total_pixels / aspect_ratio))
        width = round(height * aspect_ratio)

    width = width // DIMENSION_STEP * DIMENSION_STEP
    height = height // DIMENSION_STEP * DIMENSION_STEP

    width = min(max(width, MIN_DIMENSION), MAX_DIMENSION)
    height = min(max(height, MIN_DIMENSION), MAX_DIMENSION)
    return ImageSize(width, height)


def is_valid_generic_size(width: int, height: int) -> bool:
    """Rule for providers that accept a range instead of a fixed menu."""
    if not (MIN_DIMENSION <= width <= MAX_DIMENSION and MIN_DIMENSION <= height <= MAX_DIMENSION):
        return False
    if width % DIMENSION_STEP or height % DIMENSION_STEP:
        return False
    return width * height <= MAX_PIXELS
