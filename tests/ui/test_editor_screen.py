"""UI tests for the editor screen: selection, editing, saving and dialogs."""

import pytest
from textual.widgets import Input, Select

from sitesmith.models.editable_element import ElementType
from sitesmith.models.page import SaveResult, SaveStatus
from sitesmith.tui.app import SitesmithApp
from sitesmith.tui.screens import ConfirmScreen, EditorScreen, ImageFormScreen, RecoveryScreen, ServiceFormScreen
from sitesmith.tui.widgets import ContentEditor, ElementList, StatusPanel


async def open_first_element(pilot):
    """Highlight the first row (the h1) and open the edit panel."""
    element_list = pilot.app.screen.query_one(ElementList)
    element_list.focus()
    element_list.index = 0
    await pilot.press("enter")
    await pilot.pause()


@pytest.mark.asyncio
async def test_list_shows_catalog(make_session):
    """Test the element list has one row per catalog element."""
    session = make_session()
    app = SitesmithApp(session)

    async with app.run_test() as pilot:
        await pilot.pause()

        assert isinstance(app.screen, EditorScreen)
        element_list = app.screen.query_one(ElementList)
        assert len(element_list.children) == len(session.catalog)
        assert element_list.highlighted_id == session.catalog.elements[0].id
        assert session.mode == "viewing"


@pytest.mark.asyncio
async def test_enter_opens_edit_panel(make_session):
    """Test selecting a row loads its value into the editor."""
    session = make_session()
    app = SitesmithApp(session)

    async with app.run_test() as pilot:
        await pilot.pause()
        await open_first_element(pilot)

        editor = app.screen.query_one(ContentEditor)
        assert session.mode == "selecting"
        assert editor.text == "Welcome"
        assert not editor.read_only
        assert editor.has_focus


@pytest.mark.asyncio
async def test_escape_applies_edit(make_session):
    """Test leaving the panel applies the edited value."""
    session = make_session()
    app = SitesmithApp(session)

    async with app.run_test() as pilot:
        await pilot.pause()
        await open_first_element(pilot)

        app.screen.query_one(ContentEditor).text = "Welcome to Acme"
        await pilot.press("escape")
        await pilot.pause()

        assert "<h1>Welcome to Acme</h1>" in session.working_document
        assert session.mode == "viewing"
        assert session.is_dirty
        assert app.screen.query_one(ElementList).has_focus
        assert "Unsaved changes" in app.screen.query_one(StatusPanel).render_status()


@pytest.mark.asyncio
async def test_ctrl_s_saves(make_session, persistence):
    """Test ctrl+s applies the pending value and saves in a worker."""
    session = make_session()
    app = SitesmithApp(session)

    async with app.run_test() as pilot:
        await pilot.pause()
        await open_first_element(pilot)

        app.screen.query_one(ContentEditor).text = "Saved heading"
        await pilot.press("ctrl+s")
        await app.workers.wait_for_complete()
        await pilot.pause()

        persistence.save.assert_awaited_once()
        html, handle = persistence.save.call_args.args
        assert "<h1>Saved heading</h1>" in html
        assert handle == "bakery/index.html"
        assert session.save_status == SaveStatus.SUCCESS
        assert not session.is_dirty
        # The panel stays open after saving
        assert session.mode == "selecting"


@pytest.mark.asyncio
async def test_failed_save_keeps_edits(make_session, persistence):
    """Test a failed save reports the error and keeps the working document."""
    persistence.save.return_value = SaveResult.failed("Disk full")
    session = make_session()
    app = SitesmithApp(session)

    async with app.run_test() as pilot:
        await pilot.pause()
        await open_first_element(pilot)

        app.screen.query_one(ContentEditor).text = "Unsaved heading"
        await pilot.press("escape")
        await pilot.pause()
        await pilot.press("ctrl+s")
        await app.workers.wait_for_complete()
        await pilot.pause()

        assert session.save_status == SaveStatus.ERROR
        assert "Unsaved heading" in session.working_document
        assert app.screen.query_one(StatusPanel).render_status() == "⚠ Disk full | Unsaved changes"


@pytest.mark.asyncio
async def test_reset_asks_for_confirmation(make_session):
    """Test resetting a dirty session shows a dialog before discarding."""
    session = make_session()
    app = SitesmithApp(session)

    async with app.run_test() as pilot:
        await pilot.pause()
        await open_first_element(pilot)
        app.screen.query_one(ContentEditor).text = "Temporary"
        await pilot.press("escape")
        await pilot.pause()

        await pilot.press("r")
        await pilot.pause()
        assert isinstance(app.screen, ConfirmScreen)

        await pilot.press("n")
        await pilot.pause()
        assert session.is_dirty

        await pilot.press("r")
        await pilot.pause()
        await pilot.press("y")
        await pilot.pause()

        assert isinstance(app.screen, EditorScreen)
        assert not session.is_dirty
        assert "Temporary" not in session.working_document


@pytest.mark.asyncio
async def test_add_service(make_session):
    """Test adding a service card through the form."""
    session = make_session()
    app = SitesmithApp(session)

    async with app.run_test() as pilot:
        await pilot.pause()
        container = session.catalog.of_type(ElementType.SERVICE_CONTAINER)[0]
        element_list = app.screen.query_one(ElementList)
        element_list.index = session.catalog.elements.index(container)
        await pilot.press("enter")
        await pilot.pause()

        assert app.screen.query_one(ContentEditor).read_only

        await pilot.press("a")
        await pilot.pause()
        assert isinstance(app.screen, ServiceFormScreen)

        app.screen.query_one("#service-title", Input).value = "Cakes"
        app.screen.query_one("#service-description", Input).value = "Custom orders"
        await pilot.press("enter")
        await pilot.pause()

        assert isinstance(app.screen, EditorScreen)
        assert "<h4>Cakes</h4>" in session.working_document
        assert len(app.screen.query_one(ElementList).children) == len(session.catalog)


@pytest.mark.asyncio
async def test_add_service_needs_container(make_session):
    """Test 'a' does nothing unless a services container is selected."""
    session = make_session()
    app = SitesmithApp(session)

    async with app.run_test() as pilot:
        await pilot.pause()
        await pilot.press("a")
        await pilot.pause()

        assert isinstance(app.screen, EditorScreen)


@pytest.mark.asyncio
async def test_add_image(make_session):
    """Test adding an image through the form at a chosen location."""
    session = make_session()
    app = SitesmithApp(session)

    async with app.run_test() as pilot:
        await pilot.pause()
        images_before = len(session.catalog.of_type(ElementType.IMAGE))

        await pilot.press("i")
        await pilot.pause()
        assert isinstance(app.screen, ImageFormScreen)

        app.screen.query_one("#image-location", Select).value = "footer"
        app.screen.query_one("#image-src", Input).value = "/uploads/shop.png"
        app.screen.query_one("#image-alt", Input).value = "Storefront"
        await pilot.press("enter")
        await pilot.pause()

        assert isinstance(app.screen, EditorScreen)
        images = session.catalog.of_type(ElementType.IMAGE)
        assert len(images) == images_before + 1
        assert "/uploads/shop.png" in [image.content for image in images]
        assert 'alt="Storefront"' in session.working_document
        assert session.working_document.index("shop.png") > session.working_document.index("<footer>")
        assert len(app.screen.query_one(ElementList).children) == len(session.catalog)


@pytest.mark.asyncio
async def test_add_image_cancelled(make_session):
    """Test escape closes the image form without changing the page."""
    session = make_session()
    app = SitesmithApp(session)

    async with app.run_test() as pilot:
        await pilot.pause()
        await pilot.press("i")
        await pilot.pause()
        await pilot.press("escape")
        await pilot.pause()

        assert isinstance(app.screen, EditorScreen)
        assert not session.is_dirty


@pytest.mark.asyncio
async def test_recovery_prompt_restores(make_session, recovery_store):
    """Test a pending snapshot is offered on startup and can be restored."""
    first = make_session()
    first.mount()
    first.submit_edit(first.catalog.elements[0].id, "Recovered heading")

    session = make_session()
    app = SitesmithApp(session)

    async with app.run_test() as pilot:
        await pilot.pause()
        assert isinstance(app.screen, RecoveryScreen)

        await pilot.press("y")
        await pilot.pause()

        assert isinstance(app.screen, EditorScreen)
        assert session.recovery_pending is None
        assert "Recovered heading" in session.working_document


@pytest.mark.asyncio
async def test_recovery_prompt_declined(make_session, recovery_store):
    """Test declining the snapshot deletes it."""
    first = make_session()
    first.mount()
    first.submit_edit(first.catalog.elements[0].id, "Recovered heading")

    session = make_session()
    app = SitesmithApp(session)

    async with app.run_test() as pilot:
        await pilot.pause()
        await pilot.press("n")
        await pilot.pause()

        assert not session.is_dirty
        assert recovery_store.get(session.recovery_key) is None


@pytest.mark.asyncio
async def test_write_preview(make_session, tmp_path):
    """Test 'p' writes the instrumented sandbox document."""
    preview = tmp_path / "preview.html"
    session = make_session()
    app = SitesmithApp(session, preview_path=preview)

    async with app.run_test() as pilot:
        await pilot.pause()
        await pilot.press("p")
        await pilot.pause()

        html = preview.read_text()
        assert "editable-highlight" in html
        assert "postMessage" in html


@pytest.mark.asyncio
async def test_quit_with_unsaved_changes_asks(make_session):
    """Test quitting a dirty session needs confirmation."""
    session = make_session()
    app = SitesmithApp(session)

    async with app.run_test() as pilot:
        await pilot.pause()
        await open_first_element(pilot)
        app.screen.query_one(ContentEditor).text = "Changed"
        await pilot.press("escape")
        await pilot.pause()

        await pilot.press("q")
        await pilot.pause()
        assert isinstance(app.screen, ConfirmScreen)

        await pilot.press("n")
        await pilot.pause()
        assert isinstance(app.screen, EditorScreen)
