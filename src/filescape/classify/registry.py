"""Static family tables and tag color derivation.

A family is a coarse category (image, code, archive, ...); a tag is the
fine-grained key inside it, usually the normalized extension. Every tag
gets a color near its family's base hue, so related files look related
while each tag stays distinguishable.
"""

import colorsys
import hashlib
from collections.abc import Mapping

Color = tuple[float, float, float, float]

FAMILIES = (
    "image", "video", "audio", "archive", "document", "text",
    "code", "binary", "app", "folder", "other",
)

# Base hues for families (0..1)
FAMILY_HUES: dict[str, float] = {
    "image": 0.55,
    "video": 0.58,
    "audio": 0.48,
    "archive": 0.08,
    "document": 0.15,
    "text": 0.72,
    "code": 0.68,
    "binary": 0.02,
    "app": 0.0,
    "folder": 0.62,
    "other": 0.0,
}

# Common extension aliases
EXTENSION_ALIASES: dict[str, str] = {
    "jpg": "jpeg", "jpe": "jpeg", "jfif": "jpeg",
    "tif": "tiff",
    "yml": "yaml",
    "htm": "html",
    "mdown": "md", "markdown": "md",
    "aif": "aiff",
    "tgz": "gz",
}

EXTENSION_FAMILIES: dict[str, str] = {
    # images
    "png": "image", "jpeg": "image", "gif": "image", "tiff": "image", "bmp": "image",
    "heic": "image", "heif": "image", "webp": "image", "raw": "image", "svg": "image",
    "ico": "image", "psd": "image", "avif": "image",
    # video
    "mp4": "video", "mov": "video", "m4v": "video", "mkv": "video", "avi": "video",
    "webm": "video", "wmv": "video", "flv": "video", "hevc": "video", "mpg": "video",
    "mpeg": "video",
    # audio
    "mp3": "audio", "wav": "audio", "aac": "audio", "flac": "audio", "m4a": "audio",
    "ogg": "audio", "aiff": "audio", "opus": "audio",
    # archives
    "zip": "archive", "rar": "archive", "7z": "archive", "gz": "archive", "xz": "archive",
    "bz2": "archive", "tar": "archive", "zst": "archive",
    # documents
    "pdf": "document", "rtf": "document", "doc": "document", "docx": "document",
    "ppt": "document", "pptx": "document", "xls": "document", "xlsx": "document",
    "epub": "document", "odt": "document",
    # text
    "txt": "text", "md": "text", "log": "text", "json": "text", "xml": "text",
    "yaml": "text", "csv": "text", "toml": "text", "ini": "text", "rst": "text",
    # code
    "c": "code", "cpp": "code", "h": "code", "hpp": "code", "m": "code", "mm": "code",
    "swift": "code", "py": "code", "rb": "code", "js": "code", "ts": "code",
    "java": "code", "kt": "code", "go": "code", "rs": "code", "php": "code",
    "sh": "code", "sql": "code", "html": "code", "css": "code",
    # installers and disk images
    "app": "app", "dmg": "app", "exe": "app", "msi": "app",
}

# Type identifiers that cannot be told apart by MIME major type alone
TYPE_IDENTIFIER_FAMILIES: dict[str, str] = {
    "application/zip": "archive",
    "application/gzip": "archive",
    "application/x-tar": "archive",
    "application/x-bzip2": "archive",
    "application/x-xz": "archive",
    "application/x-7z-compressed": "archive",
    "application/vnd.rar": "archive",
    "application/x-rar-compressed": "archive",
    "application/pdf": "document",
    "application/msword": "document",
    "application/rtf": "document",
    "application/epub+zip": "document",
    "application/json": "text",
    "application/xml": "text",
    "application/javascript": "code",
    "application/x-sh": "code",
    "application/x-python-code": "code",
    "application/octet-stream": "binary",
    "application/x-executable": "binary",
    "application/x-mach-binary": "binary",
    "public.image": "image",
    "public.movie": "video",
    "public.audiovisual-content": "video",
    "public.audio": "audio",
    "public.archive": "archive",
    "public.text": "text",
    "public.plain-text": "text",
    "public.source-code": "code",
    "com.apple.application-bundle": "app",
}

# MIME major types
TYPE_PREFIX_FAMILIES: dict[str, str] = {
    "image/": "image",
    "video/": "video",
    "audio/": "audio",
    "text/x-": "code",
    "text/": "text",
    "application/vnd.openxmlformats-officedocument.": "document",
    "application/vnd.ms-": "document",
    "application/vnd.oasis.opendocument.": "document",
}


def tag_jitter(tag: str) -> float:
    """Map a tag to a stable fraction in [0, 1).

    Uses an unkeyed 64-bit BLAKE2 digest so the value does not depend on
    PYTHONHASHSEED or the process.
    """
    digest = hashlib.blake2b(tag.encode("utf-8"), digest_size=8).digest()
    return (int.from_bytes(digest, "big") % 100) / 100.0


class TagRegistry:
    """Lookup tables mapping extensions and type identifiers to families.

    Args:
        extension_families: Extra or overriding extension -> family entries
        type_families: Extra or overriding type identifier -> family entries
    """

    def __init__(
        self,
        extension_families: Mapping[str, str] | None = None,
        type_families: Mapping[str, str] | None = None,
    ) -> None:
        self._extensions = dict(EXTENSION_FAMILIES)
        self._extensions.update({k.lower(): v for k, v in (extension_families or {}).items()})
        self._types = dict(TYPE_IDENTIFIER_FAMILIES)
        self._types.update({k.lower(): v for k, v in (type_families or {}).items()})

    def normalized_extension(self, extension: str | None) -> str | None:
        """Lowercase an extension and apply aliases; None when empty."""
        if not extension:
            return None
        ext = extension.lower().lstrip(".")
        if not ext:
            return None
        return EXTENSION_ALIASES.get(ext, ext)

    def family_for_extension(self, extension: str | None) -> str | None:
        ext = self.normalized_extension(extension)
        if ext is None:
            return None
        return self._extensions.get(ext)

    def family_for_type(self, type_identifier: str | None) -> str | None:
        """Capability check on a type identifier: exact entry, then prefix."""
        if not type_identifier:
            return None
        identifier = type_identifier.lower()
        family = self._types.get(identifier)
        if family is not None:
            return family
        for prefix, family in TYPE_PREFIX_FAMILIES.items():
            if identifier.startswith(prefix):
                return family
        return None

    def color_for(self, tag: str, family: str) -> Color:
        """Derive the display color of a tag within its family."""
        base_hue = FAMILY_HUES.get(family, 0.0)
        jitter = tag_jitter(tag)
        hue = (base_hue + (jitter - 0.5) * 0.14 + 1.0) % 1.0  # +/- 0.07
        saturation = 0.65 + jitter * 0.2
        r, g, b = colorsys.hsv_to_rgb(hue, saturation, 0.8)
        return (r, g, b, 1.0)
