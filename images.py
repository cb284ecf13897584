# images.py
from __future__ import annotations

import io
import os
from typing import Any, Tuple, Union
from urllib.parse import urlparse, unquote

import requests
from PIL import Image, ImageOps, UnidentifiedImageError

ImageSource = Union[Image.Image, bytes, bytearray, str, "os.PathLike[str]"]


class ImageLoadError(RuntimeError):
    """An image could not be read, fetched or decoded."""


# ------------------------------------------------------------
# Path + URL handling (quotes, file:// URIs, Windows quirks)
# ------------------------------------------------------------
def _sanitize_path(p: Any) -> str:
    """
    Accepts:
      - r'C:\\path\\file.png'
      - '"C:\\path\\file.png"' or "'C:\\path\\file.png'"
      - file:///C:/path/file.png
      - file:///C:/path/My%20File.png
    Returns a normal filesystem path string.
    """
    if p is None:
        return ""
    s = os.fspath(p) if isinstance(p, os.PathLike) else str(p)
    s = s.strip()

    # Strip wrapping quotes
    if len(s) >= 2 and s[0] == s[-1] and s[0] in ("'", '"'):
        s = s[1:-1].strip()

    # Drag/drop yields file:// URIs
    if s.lower().startswith("file:"):
        u = urlparse(s)
        s = unquote(u.path)

        # Windows: /C:/... -> C:/...
        if os.name == "nt" and len(s) >= 3 and s[0] == "/" and s[2] == ":":
            s = s[1:]
        s = s.replace("/", os.sep)

    return s


def _is_url(s: str) -> bool:
    try:
        u = urlparse(s)
        return u.scheme.lower() in ("http", "https")
    except ValueError:
        return False


def _download_bytes(url: str, timeout: float = 15.0) -> bytes:
    headers = {
        "User-Agent": "Mozilla/5.0 (compatible; pixelmorph/0.1)"
    }
    r = requests.get(url, headers=headers, timeout=timeout)
    r.raise_for_status()
    return r.content


# ------------------------------------------------------------
# Load
# ------------------------------------------------------------
def load_image(src: ImageSource) -> Image.Image:
    """
    Load an image from:
      - a PIL image (returned as a copy)
      - raw encoded bytes
      - local path (quoted ok) or file:// URI
      - http(s) URL
    EXIF orientation is applied. Raises ImageLoadError on any failure.
    """
    if src is None:
        raise ImageLoadError("image source is empty.")

    if isinstance(src, Image.Image):
        return src.copy()

    try:
        if isinstance(src, (bytes, bytearray)):
            if not src:
                raise ImageLoadError("image data is empty.")
            img = Image.open(io.BytesIO(bytes(src)))
        else:
            s = _sanitize_path(src)
            if not s:
                raise ImageLoadError("image source is empty.")
            if _is_url(s):
                img = Image.open(io.BytesIO(_download_bytes(s)))
            else:
                ap = os.path.abspath(os.path.expanduser(s))
                if not os.path.exists(ap):
                    raise ImageLoadError(f"Image file not found: {ap}")
                img = Image.open(ap)
        img.load()
        return ImageOps.exif_transpose(img)
    except ImageLoadError:
        raise
    except (OSError, UnidentifiedImageError, requests.RequestException, ValueError) as e:
        raise ImageLoadError(f"could not load image: {e}") from e


# ------------------------------------------------------------
# Normalize (aspect-fill + center crop)
# ------------------------------------------------------------
def cover_size(src_w: int, src_h: int, side: int) -> Tuple[int, int]:
    """New (w, h) for src to cover a side x side frame, aspect preserved."""
    if src_w <= 0 or src_h <= 0:
        raise ValueError(f"image has no pixels ({src_w}x{src_h})")
    s = max(side / float(src_w), side / float(src_h))
    nw = max(side, int(round(src_w * s)))
    nh = max(side, int(round(src_h * s)))
    return nw, nh


def _flatten_alpha(img: Image.Image) -> Image.Image:
    # Transparent regions read back as black, like an empty canvas
    if img.mode in ("RGBA", "LA") or (img.mode == "P" and "transparency" in img.info):
        rgba = img.convert("RGBA")
        base = Image.new("RGBA", rgba.size, (0, 0, 0, 255))
        return Image.alpha_composite(base, rgba).convert("RGB")
    if img.mode != "RGB":
        return img.convert("RGB")
    return img


def normalize_square(img: Image.Image, side: int) -> Image.Image:
    """Scale ``img`` to cover a side x side frame and crop the overflow evenly.

    No letterboxing: whichever axis is relatively longer gets clipped on both
    ends. The result is always an RGB image of exactly (side, side).
    """
    if side <= 0:
        raise ValueError(f"side must be positive; got {side}")
    im = _flatten_alpha(img)

    nw, nh = cover_size(im.size[0], im.size[1], side)
    if (nw, nh) != im.size:
        im = im.resize((nw, nh), Image.Resampling.LANCZOS)

    x0 = int(round((nw - side) / 2.0))
    y0 = int(round((nh - side) / 2.0))
    im = im.crop((x0, y0, x0 + side, y0 + side))
    # ensure exact
    if im.size != (side, side):
        im = im.resize((side, side), Image.Resampling.LANCZOS)
    return im


def load_normalized(src: ImageSource, side: int) -> Image.Image:
    return normalize_square(load_image(src), side)
