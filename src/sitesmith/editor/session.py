"""Edit session controller.

Owns the working and baseline documents of one editing session and moves them
through the view/select/edit/save/reset states. All other editor components
are pure functions of the working document; this is the only place that holds
state.
"""

import asyncio
from typing import Any, Callable, Mapping, Optional, Union

from sitesmith.editor.bridge import RenderBridge, RenderedSandbox
from sitesmith.editor.extractor import extract_catalog
from sitesmith.editor import mutator
from sitesmith.models.config import EditorConfig
from sitesmith.models.editable_element import Catalog, ElementType, ServiceItem
from sitesmith.models.page import SaveResult, SaveStatus
from sitesmith.services.exceptions import RecoveryQuotaExceededError
from sitesmith.services.file_operations import PersistenceService, strip_edit_metadata
from sitesmith.services.recovery_store import (
    RecoveryStore,
    cleanup_stale,
    prune_oldest,
    remove_snapshot,
    write_snapshot,
)
from sitesmith.utils.ids import recovery_key
from sitesmith.utils.logging import get_logger


logger = get_logger(__name__)

StatusListener = Callable[[SaveStatus], None]


class EditSession:
    """
    State machine around one document being edited.

    The session starts in Viewing. Selecting an element opens the edit panel
    (Selecting); submitting edits keeps it open until the user is done.
    Saving hands the marker-free working document to the persistence
    collaborator and, on success, makes it the new baseline. Every accepted
    edit is mirrored into the recovery store so unsaved work survives a crash.

    While a recovery snapshot is waiting for a decision, selection, edits,
    reset and save are refused.

    Example:
        >>> session = EditSession(html, "bakery/index.html", persistence, MemoryRecoveryStore())
        >>> session.mount()
        >>> heading = session.catalog.of_type(ElementType.TEXT)[0]
        >>> session.submit_edit(heading.id, "Fresh bread daily")
        True
        >>> await session.save()
        True
    """

    def __init__(
        self,
        document: str,
        file_path: str,
        persistence: PersistenceService,
        recovery_store: RecoveryStore,
        config: Optional[EditorConfig] = None,
        on_status_change: Optional[StatusListener] = None,
    ) -> None:
        self.config = config or EditorConfig()
        self.persistence = persistence
        self.recovery_store = recovery_store
        self.file_path = file_path
        self.on_status_change = on_status_change

        self.original_document = document
        self.working_document = document
        self.selected_element_id: Optional[str] = None
        self.edit_panel_open = False
        self.save_status = SaveStatus.IDLE
        self.error_message: Optional[str] = None
        self.recovery_pending: Optional[str] = None

        self.bridge = RenderBridge()
        self._recovery_key = self._key_for(document)
        self._catalog: Optional[Catalog] = None
        self._catalog_source: Optional[str] = None
        self._status_generation = 0
        self._mounted = False

    @property
    def recovery_key(self) -> str:
        return self._recovery_key

    def _key_for(self, document: str) -> str:
        # Same page, same key: ignore what the editor and the save path add
        page = strip_edit_metadata(mutator.strip_edit_markers(document))
        return recovery_key(page, self.config.recovery_key_chars)

    @property
    def is_dirty(self) -> bool:
        """Whether the working document differs from the last saved baseline."""
        return self.working_document != self.original_document

    @property
    def mode(self) -> str:
        """Either "selecting" (edit panel open) or "viewing"."""
        return "selecting" if self.edit_panel_open else "viewing"

    @property
    def catalog(self) -> Catalog:
        """Catalog of the working document, recomputed only when it changed."""
        if self._catalog is None or self._catalog_source != self.working_document:
            self._catalog = extract_catalog(self.working_document)
            self._catalog_source = self.working_document
        return self._catalog

    def mount(self) -> None:
        """
        Prepare the session for editing.

        Normalizes the document through the extractor so the baseline carries
        the edit markers, drops stale snapshots and checks for a pending
        recovery snapshot of this document.
        """
        if self._mounted:
            return

        normalized = extract_catalog(self.original_document).document
        self.original_document = normalized
        self.working_document = normalized
        self._recovery_key = self._key_for(normalized)
        self._mounted = True

        try:
            cleanup_stale(self.recovery_store, self.config.recovery_max_age_days * 86400)
            snapshot = self.recovery_store.get(self._recovery_key)
        except OSError as e:
            logger.warning("recovery_check_failed", key=self._recovery_key, error=str(e))
            snapshot = None

        if snapshot is None:
            pass
        elif snapshot in (self.working_document, self.original_document):
            self._discard_snapshot()
        else:
            self.recovery_pending = snapshot
            logger.info("recovery_pending", key=self._recovery_key, size=len(snapshot))

        logger.info(
            "session_mounted",
            file_path=self.file_path,
            elements=len(self.catalog),
            recovery_pending=self.recovery_pending is not None,
        )

    def resolve_recovery(self, accept: bool) -> None:
        """
        Accept or decline the pending recovery snapshot.

        Accepting makes the snapshot the working document (the baseline is
        unchanged, so the session is dirty). Declining deletes the snapshot.
        """
        if self.recovery_pending is None:
            return

        if accept:
            self.working_document = self.recovery_pending
            logger.info("recovery_accepted", key=self._recovery_key)
        else:
            self._discard_snapshot()
            logger.info("recovery_declined", key=self._recovery_key)
        self.recovery_pending = None

    def _refuse_while_pending(self, action: str) -> bool:
        if self.recovery_pending is not None:
            logger.warning("action_refused_recovery_pending", action=action)
            return True
        return False

    def select_element(self, element_id: str) -> bool:
        """Open the edit panel for a catalog element. Unknown ids are ignored."""
        if self._refuse_while_pending("select"):
            return False
        if element_id not in self.catalog:
            logger.debug("select_unknown_element", element_id=element_id)
            return False

        self.selected_element_id = element_id
        self.edit_panel_open = True
        logger.debug("element_selected", element_id=element_id)
        return True

    def close_panel(self) -> None:
        """Done/Cancel: back to Viewing."""
        self.selected_element_id = None
        self.edit_panel_open = False

    def render(self) -> RenderedSandbox:
        """Render the working document into the sandbox, marking the selection."""
        return self.bridge.render(self.working_document, self.catalog, self.selected_element_id)

    def handle_sandbox_event(self, payload: Union[str, Mapping[str, Any]]) -> bool:
        """Select the element named by a sandbox message from the last render."""
        element_id = self.bridge.translate_event(payload)
        if element_id is None:
            return False
        return self.select_element(element_id)

    def _adopt(self, document: str) -> bool:
        if document is self.working_document or document == self.working_document:
            return False
        self.working_document = document
        self._catalog = None
        self._write_recovery()
        return True

    def submit_edit(
        self,
        element_id: str,
        value: Union[str, ServiceItem],
        element_type: Optional[ElementType] = None,
        done: bool = False,
    ) -> bool:
        """
        Apply one edit to the working document.

        Args:
            element_id: Catalog id of the edited element
            value: New text/URL, or a ServiceItem for service containers
            element_type: Expected type of the element (defaults to its own)
            done: Close the edit panel afterwards

        Returns:
            True if the working document changed
        """
        if self._refuse_while_pending("edit"):
            return False

        updated = mutator.apply_edit(self.working_document, self.catalog, element_id, value, element_type)
        changed = self._adopt(updated)

        if done:
            self.close_panel()
        return changed

    def add_service(self, element_id: str, item: ServiceItem) -> bool:
        """Append a service card to a service container."""
        return self.submit_edit(element_id, item, ElementType.SERVICE_CONTAINER)

    def add_image(self, location: str, src: str, alt: str = "New image") -> bool:
        """Append a new image at one of the known insertion points."""
        if self._refuse_while_pending("add_image"):
            return False
        return self._adopt(mutator.add_image(self.working_document, location, src, alt))

    def reset(self, force: bool = False) -> bool:
        """
        Discard unsaved edits.

        Returns False without changing anything when the session is dirty and
        `force` is not set; the host is expected to confirm and call again.
        """
        if self._refuse_while_pending("reset"):
            return False
        if self.is_dirty and not force:
            return False

        self.working_document = self.original_document
        self._catalog = None
        self.close_panel()
        self._discard_snapshot()
        logger.info("session_reset", file_path=self.file_path)
        return True

    async def save(self) -> bool:
        """
        Persist the working document.

        Only one save runs at a time. On failure the working document is kept
        and `error_message` describes the problem.

        Returns:
            True if the document was saved
        """
        if self._refuse_while_pending("save"):
            return False
        if self.save_status == SaveStatus.SAVING:
            logger.warning("save_already_running", file_path=self.file_path)
            return False

        document = self.working_document
        self.error_message = None
        self._set_status(SaveStatus.SAVING)
        logger.info("save_started", file_path=self.file_path, size=len(document))

        try:
            result = await self.persistence.save(mutator.strip_edit_markers(document), self.file_path)
        except Exception as e:
            result = SaveResult.failed(str(e) or type(e).__name__)

        if not result.success:
            self.error_message = result.error or "Failed to save changes"
            logger.error("save_failed", file_path=self.file_path, error=self.error_message)
            self._set_status(SaveStatus.ERROR)
            self._schedule_status_reset()
            return False

        self.original_document = document
        if result.file_path:
            self.file_path = result.file_path
        # The baseline changed, so later edits belong under its key
        self._discard_snapshot()
        self._recovery_key = self._key_for(document)
        if self.is_dirty:
            self._write_recovery()

        logger.info("save_completed", file_path=self.file_path)
        self._set_status(SaveStatus.SUCCESS)
        self._schedule_status_reset()
        return True

    def export_document(self) -> str:
        """Working document without the editor's markers."""
        return mutator.strip_edit_markers(self.working_document)

    def _set_status(self, status: SaveStatus) -> None:
        self.save_status = status
        self._status_generation += 1
        if self.on_status_change is not None:
            self.on_status_change(status)

    def _schedule_status_reset(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        loop.call_later(
            self.config.status_reset_delay,
            self._revert_status,
            self._status_generation,
        )

    def _revert_status(self, generation: int) -> None:
        # A newer save owns the status now
        if generation != self._status_generation:
            return
        self._set_status(SaveStatus.IDLE)

    def _write_recovery(self) -> None:
        if not self.is_dirty:
            self._discard_snapshot()
            return

        try:
            write_snapshot(self.recovery_store, self._recovery_key, self.working_document)
            return
        except (RecoveryQuotaExceededError, OSError) as e:
            logger.info("recovery_write_retry", key=self._recovery_key, error=str(e))

        try:
            prune_oldest(self.recovery_store)
            write_snapshot(self.recovery_store, self._recovery_key, self.working_document)
        except (RecoveryQuotaExceededError, OSError) as e:
            logger.warning("recovery_write_failed", key=self._recovery_key, error=str(e))

    def _discard_snapshot(self) -> None:
        try:
            remove_snapshot(self.recovery_store, self._recovery_key)
        except OSError as e:
            logger.warning("recovery_remove_failed", key=self._recovery_key, error=str(e))
