"""
Filename canonicalization and key-derived helpers.

The canonical name is the single identifier shared by the local folder,
the remote bucket and the metadata store.
"""

import os
import re

NAME_PATTERN = re.compile(r"[^a-z0-9]")

EXTENSION_ALIASES = {".jpeg": ".jpg"}

# Extension -> file_format stored in the metadata index
FORMATS = {
    ".jpg": "jpeg",
    ".jpeg": "jpeg",
    ".png": "png",
    ".gif": "gif",
    ".webp": "webp",
}

MIME_TYPES = {
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
}
DEFAULT_MIME_TYPE = "image/jpeg"

DEFAULT_CDN_BASE_URL = "https://wallpapers.imgix.net"


def split_extension(name: str) -> tuple[str, str]:
    """
    Split a base name at its last dot.

    Unlike os.path.splitext, a leading dot starts the extension, so
    ".png" splits into ("", ".png").
    """
    index = name.rfind(".")
    if index < 0:
        return name, ""
    return name[:index], name[index:]


def normalize_name(raw_name: str) -> str:
    """
    Format a filename to match the bucket's key requirements.

    Lower-cases everything, maps .jpeg to .jpg and drops every character
    outside [a-z0-9] from the stem.

    Example:
        >>> normalize_name("Photo (1).JPEG")
        'photo1.jpg'
    """
    stem, ext = split_extension(os.path.basename(raw_name))
    ext = ext.lower()
    ext = EXTENSION_ALIASES.get(ext, ext)
    stem = NAME_PATTERN.sub("", stem.lower())
    return stem + ext


def file_format_for(name: str) -> str:
    """File format for a filename, or its bare lower-cased extension."""
    _, ext = split_extension(os.path.basename(name))
    ext = ext.lower()
    return FORMATS.get(ext, ext.lstrip("."))


def mime_type_for(file_format: str) -> str:
    return MIME_TYPES.get(file_format, DEFAULT_MIME_TYPE)


def cdn_base_url() -> str:
    return os.getenv("CDN_BASE_URL", DEFAULT_CDN_BASE_URL).rstrip("/")


def full_resolution_url(key: str) -> str:
    """URL of a 4K cropped rendition of the object."""
    return (
        f"{cdn_base_url()}/{key}"
        f"?auto=compress&w=3840&h=2160&crop=entropy&fm=png"
    )


def thumbnail_url(key: str) -> str:
    """URL of a small cropped rendition of the object."""
    return (
        f"{cdn_base_url()}/{key}"
        f"?w=800&h=450&fit=crop&auto=compress&auto=format"
    )
