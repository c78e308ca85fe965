"""
Image I/O and Normalization
===========================

This module turns user-selected photo bytes into the square, upright RGB
images the style-transfer generators expect. Every function returns a new
image; inputs are never modified in place.

Functions
---------
load_image_bytes
    Read the raw bytes of a user-selected file
decode_image
    Decode raw bytes into a PIL image
center_square_box
    Compute the largest centered square crop box
normalize_image
    Orientation fix, center crop and resize of a decoded image
normalize
    Full pipeline from raw bytes to a normalized image
orientation_of
    EXIF orientation tag of an image (1 when absent)
upright
    Apply EXIF orientation to the pixel data

Notes
-----
Normalization pipeline:

1. Decode with Pillow (``DecodeError`` on unreadable bytes)
2. Apply the EXIF orientation with ``ImageOps.exif_transpose``
3. Convert to RGB
4. Crop the largest centered square (``GeometryError`` on zero dimensions)
5. Resize to ``target_size`` x ``target_size`` with LANCZOS resampling

See Also
--------
facepaint.core.session : Holds the normalized original image
facepaint.core.inference : Consumes normalized images
"""

from __future__ import annotations

import io
import logging
from pathlib import Path

from PIL import Image, ImageOps, UnidentifiedImageError

from facepaint.config import DEFAULT_IMAGE_SIZE
from facepaint.errors import DecodeError, GeometryError

logger = logging.getLogger(__name__)

ORIENTATION_TAG = 0x0112


def load_image_bytes(path: str | Path) -> bytes:
    """
    Read the raw bytes of an image file chosen by the user.

    Parameters
    ----------
    path : str or Path
        Path to the image file

    Returns
    -------
    bytes
        File contents, undecoded
    """
    return Path(path).read_bytes()


def decode_image(raw: bytes) -> Image.Image:
    """
    Decode raw bytes into a fully loaded PIL image.

    Parameters
    ----------
    raw : bytes
        Encoded image data in any format Pillow can read

    Returns
    -------
    PIL.Image
        Decoded image with pixel data loaded

    Raises
    ------
    DecodeError
        If the bytes are empty, not an image, truncated, or exceed
        Pillow's decompression bomb limit
    """
    if not raw:
        raise DecodeError("Could not load image: no data")
    try:
        img = Image.open(io.BytesIO(raw))
        img.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError) as e:
        raise DecodeError(f"Could not load image: {e}") from e
    return img


def orientation_of(image: Image.Image) -> int:
    """Return the EXIF orientation tag of ``image`` (1 when absent)."""
    return int(image.getexif().get(ORIENTATION_TAG, 1))


def upright(image: Image.Image) -> Image.Image:
    """
    Return a copy of ``image`` with its EXIF orientation applied to the pixels.

    The result carries no orientation tag, so ``orientation_of`` reports 1.
    """
    out = ImageOps.exif_transpose(image)
    return image.copy() if out is None else out


def center_square_box(width: int, height: int) -> tuple[int, int, int, int]:
    """
    Compute the largest centered square that fits in a ``width`` x ``height`` image.

    Parameters
    ----------
    width : int
        Image width in pixels
    height : int
        Image height in pixels

    Returns
    -------
    tuple of int
        Crop box ``(left, top, right, bottom)`` with side ``min(width, height)``

    Raises
    ------
    GeometryError
        If either dimension is zero or negative

    Examples
    --------
    >>> center_square_box(4000, 3000)
    (500, 0, 3500, 3000)
    """
    if width <= 0 or height <= 0:
        raise GeometryError(f"Image has degenerate size {width}x{height}")
    side = min(width, height)
    left = (width - side) // 2
    top = (height - side) // 2
    return (left, top, left + side, top + side)


def normalize_image(image: Image.Image, target_size: int = DEFAULT_IMAGE_SIZE) -> Image.Image:
    """
    Make a decoded image upright, square and ``target_size`` pixels wide.

    Parameters
    ----------
    image : PIL.Image
        Decoded input image, any mode, possibly carrying EXIF orientation
    target_size : int, default=1024
        Side length of the output square

    Returns
    -------
    PIL.Image
        New RGB image of size ``(target_size, target_size)`` with no
        orientation tag

    Raises
    ------
    GeometryError
        If the image has zero width or height
    """
    if image.width <= 0 or image.height <= 0:
        raise GeometryError(f"Image has degenerate size {image.width}x{image.height}")

    rgb = upright(image).convert("RGB")

    box = center_square_box(rgb.width, rgb.height)
    square = rgb.crop(box)
    out = square.resize((target_size, target_size), Image.Resampling.LANCZOS)
    logger.debug(
        "Normalized %dx%d image (orientation %d) to %dx%d",
        image.width,
        image.height,
        orientation_of(image),
        target_size,
        target_size,
    )
    return out


def normalize(raw: bytes, target_size: int = DEFAULT_IMAGE_SIZE) -> Image.Image:
    """
    Decode and normalize user-supplied image bytes.

    Parameters
    ----------
    raw : bytes
        Encoded image data
    target_size : int, default=1024
        Side length of the output square

    Returns
    -------
    PIL.Image
        RGB image of exactly ``target_size`` x ``target_size``

    Raises
    ------
    DecodeError
        If the bytes cannot be decoded
    GeometryError
        If the decoded image has zero width or height

    Examples
    --------
    >>> from facepaint.core.image_io import load_image_bytes, normalize
    >>> img = normalize(load_image_bytes("portrait.jpg"))
    >>> img.size
    (1024, 1024)
    """
    return normalize_image(decode_image(raw), target_size)
