# emoji_mosaic/image_io.py
from __future__ import annotations

import io
from pathlib import Path
from typing import Optional, Tuple

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from .core_types import InvalidImageError, U8Image, U8Mask

"""
Image I/O helpers (RGBA in sRGB) and resize utilities.
"""

try:
    from PIL import ImageCms  # ICC conversion if profile present
except Exception:  # pragma: no cover
    ImageCms = None  # type: ignore[assignment]


def _convert_to_srgb_rgba(im: Image.Image) -> Image.Image:
    im = ImageOps.exif_transpose(im)
    icc_bytes = im.info.get("icc_profile")

    if icc_bytes and ImageCms is not None:
        try:
            src_prof = ImageCms.ImageCmsProfile(io.BytesIO(icc_bytes))
            dst_prof = ImageCms.createProfile("sRGB")
            im2 = ImageCms.profileToProfile(
                im,
                src_prof,
                dst_prof,
                renderingIntent=ImageCms.Intent.PERCEPTUAL,
                outputMode="RGBA",
            )
            if im2 is None:
                return im.convert("RGBA")
            return im2
        except (ImageCms.PyCMSError, OSError, ValueError):
            return im.convert("RGBA")

    return im.convert("RGBA")


def load_image_rgba(path: Path) -> Tuple[U8Image, U8Mask]:
    """Decode any Pillow-readable file to (rgb uint8 [H,W,3], alpha uint8 [H,W])."""
    try:
        with Image.open(path) as im0:
            im = _convert_to_srgb_rgba(im0)
    except (UnidentifiedImageError, OSError) as exc:
        raise InvalidImageError(f"cannot read image {path}: {exc}") from exc
    arr = np.array(im, dtype=np.uint8)
    if arr.ndim != 3 or arr.shape[0] == 0 or arr.shape[1] == 0:
        raise InvalidImageError(f"image {path} has no pixels")
    return arr[..., :3], arr[..., 3]


def save_image_rgba(path: Path, rgba: np.ndarray) -> Path:
    """Write an RGBA uint8 array as PNG. A non-.png suffix is replaced."""
    if path.suffix.lower() != ".png":
        path = path.with_suffix(".png")
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.fromarray(np.ascontiguousarray(rgba, dtype=np.uint8)).save(path)
    return path


def resize_rgba_height(
    rgb: np.ndarray,
    alpha: np.ndarray,
    dst_h: Optional[int],
    resample: Image.Resampling = Image.Resampling.LANCZOS,
) -> Tuple[np.ndarray, np.ndarray]:
    """Downscale so height <= dst_h, keeping the aspect ratio. Never upscales."""
    H0, W0, _ = rgb.shape
    if dst_h is None or dst_h <= 0 or dst_h >= H0:
        return rgb, alpha

    dst_w = max(1, int(round(W0 * (dst_h / float(H0)))))
    rgba = np.zeros((H0, W0, 4), dtype=np.uint8)
    rgba[..., :3] = rgb
    rgba[..., 3] = alpha
    im = Image.fromarray(rgba)
    im2 = im.resize((dst_w, dst_h), resample=resample)
    arr = np.array(im2, dtype=np.uint8)
    return arr[..., :3], arr[..., 3]


__all__ = [
    "load_image_rgba",
    "save_image_rgba",
    "resize_rgba_height",
]
