"""File operations: atomic writes and the file-backed persistence collaborator.

Pages live under an output directory as `<folder>/index.html`. The opaque
handle passed around by the editor is the page path relative to that
directory (e.g. "bakery-20260101T120000/index.html").
"""

import asyncio
import os
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Protocol

import structlog

from sitesmith.models.page import SaveResult
from sitesmith.services.exceptions import FileModifiedError
from sitesmith.services.file_monitor import FileMonitor

logger = structlog.get_logger()

PAGE_FILENAME = "index.html"
BACKUP_FILENAME = "index_old.html"

_METADATA_RE = re.compile(r"\s*<!--\s*Edited with sitesmith.*?-->", re.DOTALL)
_HEAD_RE = re.compile(r"<head(\s[^>]*)?>", re.IGNORECASE)


class PersistenceService(Protocol):
    """Downstream collaborator that stores edited documents."""

    async def save(self, html_content: str, file_path: str) -> SaveResult: ...


def atomic_write(
    path: Path,
    content: str,
    file_monitor: Optional[FileMonitor] = None
) -> None:
    """
    Replace a file's content without ever leaving it half-written.

    The content goes to a hidden sibling temp file, is fsynced, and is then
    renamed over the target. With a monitor, the target is checked for
    outside changes both before writing ("early check") and just before the
    rename ("late check"); afterwards the monitor records our own write.

    Raises:
        FileModifiedError: If the file changed since the monitor recorded it
        OSError: On file I/O errors
    """
    if file_monitor and file_monitor.is_modified(path):
        raise FileModifiedError(str(path), "early check")

    # Same directory as the target so the rename stays on one filesystem
    temp_path = path.parent / f".{path.name}.tmp.{os.getpid()}"

    try:
        with open(temp_path, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())

        if file_monitor and file_monitor.is_modified(path):
            raise FileModifiedError(str(path), "late check")

        temp_path.replace(path)
    except OSError as e:
        logger.error("atomic_write_failed", path=str(path), error=str(e))
        raise
    finally:
        if temp_path.exists():
            temp_path.unlink()

    if file_monitor:
        file_monitor.refresh(path)
    logger.debug("atomic_write_success", path=str(path), size=len(content))


def strip_edit_metadata(html_content: str) -> str:
    """Remove the "last edited" comment added by `add_edit_metadata`."""
    return _METADATA_RE.sub("", html_content, count=1)


def add_edit_metadata(html_content: str, edited_at: datetime) -> str:
    """
    Insert (or replace) the "last edited" comment right after <head>.

    Documents without a <head> are returned unchanged.
    """
    cleaned = strip_edit_metadata(html_content)
    comment = (
        "\n<!--\n"
        "  Edited with sitesmith\n"
        f"  Last edited: {edited_at.isoformat()}\n"
        "-->"
    )
    return _HEAD_RE.sub(lambda m: m.group(0) + comment, cleaned, count=1)


def absolutize_uploads(html_content: str, base_url: str) -> str:
    """
    Prefix root-relative /uploads/ references with the public base URL.

    Covers src attributes, inline background-image URLs and meta content.
    """
    if not base_url:
        return html_content

    base = base_url.rstrip("/")
    html_content = html_content.replace('src="/uploads/', f'src="{base}/uploads/')
    html_content = re.sub(
        r"background-image:\s*url\((['\"]?)/uploads/",
        lambda m: f"background-image: url({m.group(1)}{base}/uploads/",
        html_content,
    )
    return html_content.replace('content="/uploads/', f'content="{base}/uploads/')


class FilePersistence:
    """
    Persistence collaborator that writes pages below an output directory.

    Saving rotates the previous `index.html` to `index_old.html`, stamps the
    document with an edit comment and writes it atomically. If the page was
    changed on disk since it was loaded, the save fails instead of
    overwriting.

    Example:
        >>> persistence = FilePersistence(Path("gen_comp"))
        >>> html = persistence.load("bakery/index.html")
        >>> result = await persistence.save(html, "bakery/index.html")
    """

    def __init__(
        self,
        output_dir: Path,
        base_url: str = "",
        file_monitor: Optional[FileMonitor] = None,
    ) -> None:
        self.output_dir = output_dir
        self.base_url = base_url
        self.file_monitor = file_monitor or FileMonitor()

    def resolve_target(self, file_path: str) -> Path:
        """
        Map an opaque handle to the page file it designates.

        Handles are relative to the output directory (a leading slash is
        ignored) and the file name is always index.html inside the handle's
        folder.

        Raises:
            ValueError: If the handle climbs out of the output directory
        """
        clean = file_path.strip().lstrip("/")
        if ".." in Path(clean).parts:
            raise ValueError(f"Page handle leaves the output directory: {file_path}")

        folder = Path(clean).parent if clean else Path(".")
        return self.output_dir / folder / PAGE_FILENAME

    def handle_for(self, target: Path) -> str:
        """Opaque handle (relative posix path) of a page file."""
        return target.relative_to(self.output_dir).as_posix()

    def load(self, file_path: str) -> str:
        """
        Read a page and start tracking it for external modifications.

        Raises:
            FileNotFoundError: If the page does not exist
        """
        target = self.resolve_target(file_path)
        content = target.read_text(encoding="utf-8")
        self.file_monitor.record(target)
        logger.info("page_loaded", path=str(target), size=len(content))
        return content

    def store_new(self, html_content: str, folder: str) -> str:
        """
        Write a freshly generated page into a new folder.

        Returns:
            Handle of the new page
        """
        target = self.output_dir / folder / PAGE_FILENAME
        target.parent.mkdir(parents=True, exist_ok=True)
        atomic_write(target, html_content)
        self.file_monitor.record(target)
        logger.info("page_stored", path=str(target), size=len(html_content))
        return self.handle_for(target)

    def _write_page(self, target: Path, html_content: str) -> str:
        """Rotate the backup and write the stamped document; returns what was written."""
        target.parent.mkdir(parents=True, exist_ok=True)

        monitor = self.file_monitor if self.file_monitor.is_tracked(target) else None
        if monitor and monitor.is_modified(target):
            raise FileModifiedError(str(target))

        if target.exists():
            atomic_write(target.parent / BACKUP_FILENAME, target.read_text(encoding="utf-8"))

        content = add_edit_metadata(html_content, datetime.now(timezone.utc))
        content = absolutize_uploads(content, self.base_url)
        atomic_write(target, content, monitor)
        if monitor is None:
            self.file_monitor.record(target)
        return content

    async def save(self, html_content: str, file_path: str) -> SaveResult:
        """
        Store an edited document at the page designated by `file_path`.

        The file work runs in a worker thread so the event loop stays free.

        Returns:
            SaveResult with the (possibly new) handle, or the failure reason
        """
        try:
            target = self.resolve_target(file_path)
        except ValueError as e:
            logger.error("page_save_rejected", file_path=file_path, error=str(e))
            return SaveResult.failed(f"Failed to save edited HTML: {e}")

        try:
            content = await asyncio.to_thread(self._write_page, target, html_content)
        except (OSError, FileModifiedError) as e:
            logger.error("page_save_failed", path=str(target), error=str(e))
            return SaveResult.failed(f"Failed to save edited HTML: {e}")

        handle = self.handle_for(target)
        logger.info("page_saved", path=str(target), handle=handle, size=len(content))
        return SaveResult.ok(file_path=handle)
