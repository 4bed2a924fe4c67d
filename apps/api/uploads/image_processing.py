"""
Image transform stage for uploads.

Resizes oversized images, converts formats and applies quality using Pillow.
The stage never fails an upload: on any error the original bytes are kept
and the result is flagged as unprocessed with a warning.
"""

import logging
from dataclasses import dataclass
from io import BytesIO

from PIL import Image

from apps.api.config import Settings
from apps.api.uploads.error_codes import UploadErrorCode, get_error_message
from apps.api.uploads.options import OutputFormat, ProcessingOptions

logger = logging.getLogger(__name__)

# Vector images cannot be rasterized by Pillow
_SKIPPED_MIME_TYPES = {"image/svg+xml"}


@dataclass
class TransformResult:
    """Bytes to persist plus what happened to them."""

    data: bytes
    content_type: str
    processed: bool
    output_format: OutputFormat | None = None
    width: int | None = None
    height: int | None = None
    warning: str | None = None


def clamp_dimensions(
    width: int,
    height: int,
    max_width: int,
    max_height: int,
) -> tuple[int, int]:
    """
    Clamp a size to a maximum box, preserving aspect ratio.

    Sizes already inside the box are returned unchanged (never enlarged).
    """
    if width <= max_width and height <= max_height:
        return width, height

    aspect_ratio = width / height
    new_width, new_height = width, height

    if width > max_width:
        new_width = max_width
        new_height = round(max_width / aspect_ratio)

    if new_height > max_height:
        new_height = max_height
        new_width = round(max_height * aspect_ratio)

    return max(1, new_width), max(1, new_height)


def fit_within(width: int, height: int, box_width: int, box_height: int) -> tuple[int, int]:
    """Scale (width, height) down to fit inside a box; never enlarges."""
    scale = min(box_width / width, box_height / height, 1.0)
    if scale >= 1.0:
        return width, height
    return max(1, round(width * scale)), max(1, round(height * scale))


class ImageTransformer:
    """
    Applies resize, format conversion and quality to image uploads.

    Order of decisions:
    1. Explicit resize: requested box clamped to the configured maximum
    2. Otherwise: intrinsic size clamped to the configured maximum
    3. Format: request override, then auto-convert target, then original
    4. Quality: request value, then configured default
    """

    def __init__(self, settings: Settings):
        self.settings = settings

    @property
    def enabled(self) -> bool:
        return self.settings.image_resize

    def should_process(self, content_type: str | None) -> bool:
        """Only image uploads are transformed, and only when enabled."""
        if not self.enabled or not content_type:
            return False
        content_type = content_type.lower()
        return content_type.startswith("image/") and content_type not in _SKIPPED_MIME_TYPES

    def target_size(
        self,
        size: tuple[int, int],
        options: ProcessingOptions,
    ) -> tuple[int, int]:
        """Compute the output dimensions for an image of the given size."""
        width, height = size
        max_width = self.settings.image_max_width
        max_height = self.settings.image_max_height

        if options.resize:
            box = clamp_dimensions(*options.resize, max_width, max_height)
            return fit_within(width, height, *box)

        if width > max_width or height > max_height:
            return fit_within(width, height, max_width, max_height)

        return width, height

    def output_format(self, options: ProcessingOptions) -> OutputFormat | None:
        if options.output_format:
            return options.output_format
        if self.settings.image_convert:
            return OutputFormat(self.settings.image_convert_format)
        return None

    def transform(
        self,
        data: bytes,
        content_type: str,
        options: ProcessingOptions,
    ) -> TransformResult:
        """
        Transform image bytes.

        Args:
            data: Original file contents
            content_type: Declared MIME type
            options: Per-request options

        Returns:
            TransformResult; on any failure the original bytes with
            processed=False and a warning
        """
        try:
            return self._transform(data, content_type, options)
        except Exception as e:
            logger.warning(f"Image processing failed, keeping original: {e}", exc_info=True)
            return TransformResult(
                data=data,
                content_type=content_type,
                processed=False,
                warning=get_error_message(UploadErrorCode.PROCESSING_FAILED),
            )

    def _transform(
        self,
        data: bytes,
        content_type: str,
        options: ProcessingOptions,
    ) -> TransformResult:
        with Image.open(BytesIO(data)) as img:
            img.load()
            source_format = img.format
            if not source_format:
                raise ValueError("Unrecognized image format")

            new_size = self.target_size(img.size, options)
            out_format = self.output_format(options)
            quality = options.quality or self.settings.image_quality

            changes_format = out_format is not None and out_format.pil_format != source_format
            if new_size == img.size and not changes_format and options.quality is None:
                return TransformResult(
                    data=data,
                    content_type=content_type,
                    processed=False,
                    width=img.width,
                    height=img.height,
                )

            result = img
            if new_size != img.size:
                logger.info(f"Resizing image {img.width}x{img.height} -> {new_size[0]}x{new_size[1]}")
                result = img.resize(new_size, Image.Resampling.LANCZOS)

            pil_format = out_format.pil_format if out_format else source_format
            buffer = BytesIO()
            self._encode(result, buffer, pil_format, quality)

        if out_format:
            mimetype = out_format.mimetype
            logger.info(f"Converted image to {out_format.value.upper()} with quality {quality}")
        else:
            mimetype = Image.MIME.get(pil_format, content_type)

        return TransformResult(
            data=buffer.getvalue(),
            content_type=mimetype,
            processed=True,
            output_format=out_format,
            width=new_size[0],
            height=new_size[1],
        )

    @staticmethod
    def _encode(img: Image.Image, buffer: BytesIO, pil_format: str, quality: int) -> None:
        if pil_format == "JPEG":
            if img.mode not in ("RGB", "L"):
                img = img.convert("RGB")
            img.save(buffer, format="JPEG", quality=quality, optimize=True)
        elif pil_format == "PNG":
            # Pillow PNG has no quality knob; map onto zlib level 0..9
            img.save(buffer, format="PNG", compress_level=round(quality / 100 * 9))
        elif pil_format in ("WEBP", "AVIF"):
            img.save(buffer, format=pil_format, quality=quality)
        else:
            img.save(buffer, format=pil_format)
