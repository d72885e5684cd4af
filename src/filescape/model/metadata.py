"""Host file system access used by the scanner.

The scanner never touches ``os`` directly; it asks a MetadataProvider,
which keeps the traversal logic testable with a fake provider.
"""

import mimetypes
import os
import stat
from dataclasses import dataclass
from pathlib import Path

# Directories macOS presents as single documents or applications
DEFAULT_PACKAGE_EXTENSIONS = frozenset({
    "app", "bundle", "framework", "plugin", "kext", "pkg", "mpkg",
    "photoslibrary", "musiclibrary", "xcarchive", "appex", "prefpane",
    "qlgenerator", "saver", "mdimporter", "rtfd", "pages", "numbers", "key",
})


@dataclass(frozen=True)
class FileMetadata:
    """Metadata snapshot for a single path.

    Attributes:
        is_directory: Entry is a directory (after following links if asked)
        is_package: Directory with a bundle suffix
        is_symlink: Entry itself is a symbolic link
        is_hidden: Dot-prefixed name or the UF_HIDDEN flag is set
        type_identifier: MIME type guessed from the name, if any
        logical_size: st_size in bytes
        allocated_size: Bytes allocated on disk, None when unavailable
        created: Birth time, None when the platform does not report it
        modified: Modification time
        accessed: Access time
    """

    is_directory: bool
    is_package: bool
    is_symlink: bool
    is_hidden: bool
    type_identifier: str | None
    logical_size: int
    allocated_size: int | None
    created: float | None
    modified: float | None
    accessed: float | None


class MetadataProvider:
    """Reads metadata and listings from the local file system."""

    def __init__(self, package_extensions: frozenset[str] = DEFAULT_PACKAGE_EXTENSIONS) -> None:
        self.package_extensions = frozenset(ext.lower() for ext in package_extensions)

    def stat(self, path: Path, follow_symlinks: bool = False) -> FileMetadata:
        """Collect metadata for a path.

        Args:
            path: Path to inspect
            follow_symlinks: Report on the link target instead of the link

        Raises:
            OSError: If the entry cannot be stat'ed
        """
        link_info = path.lstat()
        is_symlink = stat.S_ISLNK(link_info.st_mode)
        info = path.stat() if follow_symlinks and is_symlink else link_info

        is_directory = stat.S_ISDIR(info.st_mode)
        suffix = path.suffix.lower().lstrip(".")
        is_package = is_directory and suffix in self.package_extensions

        blocks = getattr(info, "st_blocks", None)
        allocated = blocks * 512 if blocks is not None else None

        type_identifier = None
        if not is_directory:
            type_identifier, _ = mimetypes.guess_type(path.name, strict=False)

        return FileMetadata(
            is_directory=is_directory,
            is_package=is_package,
            is_symlink=is_symlink,
            is_hidden=self.is_hidden(path, info),
            type_identifier=type_identifier,
            logical_size=info.st_size,
            allocated_size=allocated,
            created=getattr(info, "st_birthtime", None),
            modified=info.st_mtime,
            accessed=info.st_atime,
        )

    def is_hidden(self, path: Path, info: os.stat_result | None = None) -> bool:
        """Check for a dot name or the BSD hidden flag."""
        if path.name.startswith("."):
            return True
        flags = getattr(info, "st_flags", 0) if info is not None else 0
        return bool(flags & getattr(stat, "UF_HIDDEN", 0))

    def list_dir(self, path: Path, include_hidden: bool = False) -> list[Path]:
        """List immediate children sorted by name.

        Raises:
            OSError: If the directory cannot be read
        """
        entries = []
        with os.scandir(path) as it:
            for entry in it:
                child = Path(entry.path)
                if not include_hidden:
                    try:
                        info = entry.stat(follow_symlinks=False)
                    except OSError:
                        info = None
                    if self.is_hidden(child, info):
                        continue
                entries.append(child)
        return sorted(entries, key=lambda p: p.name)

    def canonicalize(self, path: Path) -> str:
        """Resolve symlinks so that aliases of one directory compare equal."""
        return os.path.realpath(path)
