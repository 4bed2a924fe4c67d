"""Per-request image processing options."""

import re
from dataclasses import dataclass
from enum import Enum

from packages.shared.exceptions import InvalidOptionsError

_RESIZE_PATTERN = re.compile(r"^\s*(\d+)\s*[xX]\s*(\d+)\s*$")


class OutputFormat(str, Enum):
    """Formats the transform stage can encode to."""

    JPG = "jpg"
    PNG = "png"
    WEBP = "webp"
    AVIF = "avif"

    @property
    def mimetype(self) -> str:
        if self is OutputFormat.JPG:
            return "image/jpeg"
        return f"image/{self.value}"

    @property
    def pil_format(self) -> str:
        """Pillow format name used when encoding."""
        if self is OutputFormat.JPG:
            return "JPEG"
        return self.value.upper()


@dataclass(frozen=True)
class ProcessingOptions:
    """
    Immutable resize/quality/format request for one upload request.

    Built once from form fields and passed down to the orchestrator so
    nothing below the router reads the request.
    """

    resize: tuple[int, int] | None = None
    quality: int | None = None
    output_format: OutputFormat | None = None

    def __post_init__(self) -> None:
        if self.resize is not None:
            width, height = self.resize
            if width <= 0 or height <= 0:
                raise InvalidOptionsError("resize dimensions must be positive")
        if self.quality is not None and not (1 <= self.quality <= 100):
            raise InvalidOptionsError("quality must be between 1 and 100")

    @classmethod
    def from_form(
        cls,
        resize: str | None = None,
        quality: str | int | None = None,
        output_format: str | None = None,
    ) -> "ProcessingOptions":
        """
        Parse raw form values.

        Args:
            resize: "WIDTHxHEIGHT", e.g. "800x600"
            quality: 1..100
            output_format: one of jpg, jpeg, png, webp, avif

        Raises:
            InvalidOptionsError: If any value is malformed
        """
        parsed_resize = None
        if resize not in (None, ""):
            match = _RESIZE_PATTERN.match(resize)
            if not match:
                raise InvalidOptionsError("resize must look like WIDTHxHEIGHT, e.g. 800x600")
            parsed_resize = (int(match.group(1)), int(match.group(2)))

        parsed_quality = None
        if quality not in (None, ""):
            try:
                parsed_quality = int(quality)
            except (TypeError, ValueError):
                raise InvalidOptionsError("quality must be an integer between 1 and 100")

        parsed_format = None
        if output_format not in (None, ""):
            fmt = output_format.strip().lower()
            if fmt == "jpeg":
                fmt = "jpg"
            try:
                parsed_format = OutputFormat(fmt)
            except ValueError:
                allowed = ", ".join(f.value for f in OutputFormat)
                raise InvalidOptionsError(f"outputFormat must be one of: {allowed}")

        return cls(resize=parsed_resize, quality=parsed_quality, output_format=parsed_format)
