"""
Qt-free image I/O utilities.

Opens input images (PSD via psd-tools, everything else via Pillow), rejects
types the editor does not accept before the crop core ever sees them, and
writes rendered results to disk under a unique name.
"""

import io
import logging
from pathlib import Path

from PIL import Image, UnidentifiedImageError
from psd_tools import PSDImage

from image_crop_tool.config import INPUT_MIME_TYPES, PSD_EXTENSIONS
from image_crop_tool.models import ImageSource, RenderResult, UnsupportedImageError

logger = logging.getLogger(__name__)

# Allow very large images (Pillow's default limit is ~178MP)
Image.MAX_IMAGE_PIXELS = None


def _check_mime(img: Image.Image, name: str) -> str:
    mime = Image.MIME.get(img.format or "", "")
    if mime not in INPUT_MIME_TYPES:
        raise UnsupportedImageError(f"{name}: unsupported image type {mime or img.format!r}")
    return mime


def open_image(path: Path) -> Image.Image:
    """Open an image file, using psd-tools for PSD and Pillow for the rest."""
    if path.suffix.lower() in PSD_EXTENSIONS:
        psd = PSDImage.open(str(path))
        return psd.composite()
    return Image.open(path)


def load_image_source(path: Path) -> ImageSource:
    """Open and fully decode *path* for the editor.

    Raises ``UnsupportedImageError`` for unreadable files and for types
    outside JPEG, PNG, WebP, GIF and PSD.
    """
    path = Path(path)
    try:
        img = open_image(path)
        if path.suffix.lower() in PSD_EXTENSIONS:
            mime = "image/png"
        else:
            mime = _check_mime(img, path.name)
        img.load()
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        raise UnsupportedImageError(f"{path.name}: {exc}") from exc
    logger.info("Opened %s (%s, %dx%d)", path, mime, img.width, img.height)
    return ImageSource(img, mime, path.name)


def load_image_bytes(data: bytes, file_name: str) -> ImageSource:
    """Decode an in-memory image (e.g. from drag and drop)."""
    try:
        img = Image.open(io.BytesIO(data))
        mime = _check_mime(img, file_name)
        img.load()
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        raise UnsupportedImageError(f"{file_name}: {exc}") from exc
    return ImageSource(img, mime, file_name)


def unique_path(out_path: Path) -> Path:
    """Return a unique path by appending -01, -02, etc. if file already exists."""
    if not out_path.exists():
        return out_path
    stem = out_path.stem
    suffix = out_path.suffix
    parent = out_path.parent
    counter = 1
    while True:
        candidate = parent / f"{stem}-{counter:02d}{suffix}"
        if not candidate.exists():
            return candidate
        counter += 1


def save_result(result: RenderResult, directory: Path) -> Path:
    """Write *result* into *directory* under its derived file name."""
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    out_path = unique_path(directory / result.file_name)
    out_path.write_bytes(result.data)
    logger.info("Saved %s (%dx%d, %s)", out_path, result.width, result.height, result.mime_type)
    return out_path
