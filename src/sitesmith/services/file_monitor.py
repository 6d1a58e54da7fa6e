"""External-change detection for page files open in the editor."""

from pathlib import Path
from typing import Dict, NamedTuple


class FileStamp(NamedTuple):
    """What a file looked like when it was last read or written by us."""

    mtime_ns: int
    size: int

    @classmethod
    def of(cls, path: Path) -> "FileStamp":
        stat = path.stat()
        return cls(stat.st_mtime_ns, stat.st_size)


class FileMonitor:
    """
    Remember page files' stamps to notice changes made behind the editor's back.

    A generated page can be regenerated or hand-edited while a session is
    open; saving over it would silently drop those changes. The persistence
    layer records a page when it loads it, and checks before and after each
    write.

    Example:
        >>> monitor = FileMonitor()
        >>> page = Path("gen_comp/bakery/index.html")
        >>> monitor.record(page)
        >>> # Later, before write:
        >>> if monitor.is_modified(page):
        ...     raise FileModifiedError(str(page))
    """

    def __init__(self) -> None:
        self._stamps: Dict[Path, FileStamp] = {}

    def record(self, path: Path) -> None:
        """
        Remember the current stamp of a file.

        Raises:
            FileNotFoundError: If file doesn't exist
        """
        self._stamps[path] = FileStamp.of(path)

    # Called after our own writes
    refresh = record

    def is_tracked(self, path: Path) -> bool:
        """Whether a stamp has been recorded for this path."""
        return path in self._stamps

    def is_modified(self, path: Path) -> bool:
        """
        Check whether a file changed since it was recorded.

        A tracked file that has since been deleted counts as modified. An
        untracked path counts as modified only if it exists.
        """
        recorded = self._stamps.get(path)
        if not path.exists():
            return recorded is not None
        if recorded is None:
            return True
        return FileStamp.of(path) != recorded
