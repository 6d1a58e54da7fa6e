"""Content mutator: apply exactly one semantic edit to a document.

Every operation parses the *current* document afresh, re-finds its target via
the path codec and returns a new document string. When the target cannot be
found unambiguously, or the edit would change nothing, the input string object
is returned unchanged so callers can detect the no-op by identity.
"""

from typing import Optional, Union

from bs4 import BeautifulSoup, Tag
from soupsieve import SelectorSyntaxError

from sitesmith.editor.html import BACKGROUND_IMAGE_RE, parse_document, serialize_document
from sitesmith.editor.path_codec import EDIT_ID_ATTR, find_by_selector, resolve_element
from sitesmith.models.editable_element import Catalog, EditableElement, ElementType, ServiceItem
from sitesmith.utils.logging import get_logger


logger = get_logger(__name__)

SERVICE_COLUMN_CLASS = "col-md-4 text-center"
SERVICE_ICON_STYLE = "font-size: 2rem; color: #104159;"

IMAGE_LOCATIONS = {
    "header": "Header",
    ".container": "Main container",
    "main": "Main content",
    "section:first-of-type": "First section",
    "section:last-of-type": "Last section",
    "footer": "Footer",
}


def _set_text(element: Tag, value: str) -> bool:
    if element.get_text().strip() == value.strip():
        return False
    # Plain text only; markup in the value is escaped on serialization
    element.string = value
    return True


def _set_image_src(element: Tag, value: str) -> bool:
    if element.name != "img" or element.get("src") == value:
        return False
    element["src"] = value
    return True


def _set_background_url(element: Tag, value: str) -> bool:
    style = element.get("style") or ""
    match = BACKGROUND_IMAGE_RE.search(style)
    if not match or match.group(2) == value:
        return False
    start, end = match.span(2)
    element["style"] = style[:start] + value + style[end:]
    return True


def _append_service(soup: BeautifulSoup, container: Tag, item: ServiceItem) -> bool:
    column = soup.new_tag("div", attrs={"class": SERVICE_COLUMN_CLASS})

    icon = soup.new_tag("i", attrs={"class": f"bi {item.icon}", "style": SERVICE_ICON_STYLE})
    title = soup.new_tag("h4")
    title.string = item.title
    description = soup.new_tag("p")
    description.string = item.description

    column.append(icon)
    column.append(title)
    column.append(description)
    container.append(column)
    return True


def _locate(soup: BeautifulSoup, entry: EditableElement) -> Optional[Tag]:
    if entry.type == ElementType.BACKGROUND_IMAGE:
        return find_by_selector(soup, entry.selector or "")
    return resolve_element(soup, entry)


def apply_edit(
    document: str,
    catalog: Catalog,
    element_id: str,
    new_value: Union[str, ServiceItem],
    element_type: Optional[ElementType] = None,
) -> str:
    """
    Apply one edit to the document and return the resulting document.

    Args:
        document: Current working document
        catalog: Catalog the element id comes from (may be older than `document`)
        element_id: Id of the catalog entry to edit
        new_value: New text or URL, or a ServiceItem for service containers
        element_type: Expected entry type (defaults to the entry's own type)

    Returns:
        The new full document, or `document` itself when nothing changed

    Example:
        >>> catalog = extract_catalog(doc)
        >>> heading = catalog.of_type(ElementType.TEXT)[0]
        >>> new_doc = apply_edit(doc, catalog, heading.id, "Welcome to Acme")
    """
    entry = catalog.get(element_id)
    if entry is None:
        logger.warning("edit_unknown_element", element_id=element_id)
        return document

    try:
        element_type = ElementType(element_type) if element_type is not None else entry.type
    except ValueError:
        logger.warning("edit_unknown_type", element_id=element_id, requested=str(element_type))
        return document

    if element_type != entry.type:
        logger.warning(
            "edit_type_mismatch",
            element_id=element_id,
            expected=entry.type.value,
            requested=element_type.value,
        )
        return document

    if entry.type == ElementType.SERVICE_CONTAINER:
        if not isinstance(new_value, ServiceItem):
            logger.warning("edit_invalid_value", element_id=element_id, element_type=entry.type.value)
            return document
    elif not isinstance(new_value, str):
        logger.warning("edit_invalid_value", element_id=element_id, element_type=entry.type.value)
        return document

    soup = parse_document(document)
    element = _locate(soup, entry)
    if element is None:
        logger.warning("edit_target_unresolved", element_id=element_id, element_type=entry.type.value)
        return document

    if entry.type == ElementType.TEXT:
        changed = _set_text(element, new_value)
    elif entry.type == ElementType.IMAGE:
        changed = _set_image_src(element, new_value)
    elif entry.type == ElementType.BACKGROUND_IMAGE:
        changed = _set_background_url(element, new_value)
    else:
        changed = _append_service(soup, element, new_value)

    if not changed:
        logger.debug("edit_noop", element_id=element_id)
        return document

    logger.info("edit_applied", element_id=element_id, element_type=entry.type.value)
    return serialize_document(soup)


def add_image(document: str, location: str, src: str, alt: str = "New image") -> str:
    """
    Append a new image to the first element matching a location selector.

    Args:
        document: Current working document
        location: CSS selector of the insertion point (see IMAGE_LOCATIONS)
        src: Image URL or data URI
        alt: Alternative text for the new image

    Returns:
        The new document, or `document` itself when the location is not found
    """
    if not src or not location:
        return document

    soup = parse_document(document)
    try:
        target = soup.select_one(location)
    except SelectorSyntaxError as e:
        logger.warning("image_location_invalid", location=location, error=str(e))
        return document

    if target is None:
        logger.warning("image_location_not_found", location=location)
        return document

    image = soup.new_tag("img", attrs={"src": src, "alt": alt, "class": "img-fluid"})
    target.append(image)

    logger.info("image_added", location=location)
    return serialize_document(soup)


def strip_edit_markers(document: str) -> str:
    """Remove injected data-edit-id markers before a document leaves the editor."""
    soup = parse_document(document)
    marked = soup.find_all(attrs={EDIT_ID_ATTR: True})
    if not marked:
        return document

    for element in marked:
        del element[EDIT_ID_ATTR]
    return serialize_document(soup)
