"""Editable-element extractor.

Scans a full document and builds the catalog of editable targets: text
elements, images, inline background images and service containers.
Background-image carriers get a data-edit-id marker injected into the
returned document so the mutator can find them again exactly.
"""

from typing import List, Set

from bs4 import BeautifulSoup, Tag

from sitesmith.editor.html import BACKGROUND_IMAGE_RE, parse_document, serialize_document
from sitesmith.editor.path_codec import EDIT_ID_ATTR, edit_id_selector, encode_path
from sitesmith.models.editable_element import Catalog, EditableElement, ElementType
from sitesmith.utils.logging import get_logger


logger = get_logger(__name__)

TEXT_TAGS = ["p", "h1", "h2", "h3", "h4", "h5", "h6", "li", "span", "div", "a", "button", "label"]

SERVICE_CONTAINER_SELECTOR = "#services .row, .services-row, .service-container"

SERVICE_CONTAINER_CONTENT = "Service Section"

DISPLAY_PREVIEW_CHARS = 20


def _text_display_name(tag: str, content: str) -> str:
    preview = content[:DISPLAY_PREVIEW_CHARS]
    if len(content) > DISPLAY_PREVIEW_CHARS:
        preview += "..."
    return f"{tag}: {preview}"


def _background_display_name(element: Tag) -> str:
    classes = element.get("class") or []
    suffix = "." + ".".join(classes) if classes else ""
    return f"Background: {element.name}{suffix}"


def _text_elements(soup: BeautifulSoup) -> List[EditableElement]:
    elements = []
    for el in soup.find_all(TEXT_TAGS):
        content = el.get_text().strip()
        if not content:
            continue
        path = encode_path(el)
        elements.append(EditableElement(
            id=f"text-{path.token()}",
            type=ElementType.TEXT,
            content=content,
            path=path,
            tag=el.name,
            display_name=_text_display_name(el.name, content),
        ))
    return elements


def _image_elements(soup: BeautifulSoup) -> List[EditableElement]:
    elements = []
    for el in soup.find_all("img"):
        path = encode_path(el)
        token = path.token()
        alt = el.get("alt")
        elements.append(EditableElement(
            id=f"img-{token}",
            type=ElementType.IMAGE,
            content=el.get("src") or "",
            path=path,
            tag="img",
            alt=alt if alt is not None else "",
            display_name=alt or f"Image at {token}",
        ))
    return elements


def _background_elements(soup: BeautifulSoup) -> List[EditableElement]:
    elements = []
    for el in soup.find_all(style=True):
        match = BACKGROUND_IMAGE_RE.search(el.get("style") or "")
        if not match:
            continue

        path = encode_path(el)
        token = path.token()

        # Marker injection is part of catalog construction; reuse an existing one
        edit_id = el.get(EDIT_ID_ATTR)
        if not edit_id:
            edit_id = f"editable-{token}"
            el[EDIT_ID_ATTR] = edit_id

        elements.append(EditableElement(
            id=f"bg-{token}",
            type=ElementType.BACKGROUND_IMAGE,
            content=match.group(2),
            path=path,
            tag=el.name,
            selector=edit_id_selector(edit_id),
            display_name=_background_display_name(el),
        ))
    return elements


def _service_containers(soup: BeautifulSoup) -> List[EditableElement]:
    elements = []
    for el in soup.select(SERVICE_CONTAINER_SELECTOR):
        path = encode_path(el)
        elements.append(EditableElement(
            id=f"service-container-{path.token()}",
            type=ElementType.SERVICE_CONTAINER,
            content=SERVICE_CONTAINER_CONTENT,
            path=path,
            tag=el.name,
            display_name="Services Container",
        ))
    return elements


def extract_catalog(document: str) -> Catalog:
    """
    Build the catalog of editable elements for a document.

    Extraction is a pure function of the input string: the same document always
    yields the same entries, in the same order, with the same ids. Malformed
    HTML is handled by the parser's error recovery; this function never raises.

    Args:
        document: Full HTML document text

    Returns:
        Catalog holding the annotated document and its entries, ordered text,
        image, background image, service container (document order within
        each group)

    Example:
        >>> catalog = extract_catalog("<html><body><h1>Welcome</h1></body></html>")
        >>> [e.content for e in catalog.elements]
        ['Welcome']
    """
    try:
        soup = parse_document(document)
        candidates = (
            _text_elements(soup)
            + _image_elements(soup)
            + _background_elements(soup)
            + _service_containers(soup)
        )
        annotated = serialize_document(soup)
    except Exception as e:
        logger.error("catalog_extraction_failed", error=str(e))
        return Catalog(document=document, elements=[])

    seen: Set[str] = set()
    elements = []
    for candidate in candidates:
        if candidate.id in seen:
            logger.warning("catalog_duplicate_id", element_id=candidate.id)
            continue
        seen.add(candidate.id)
        elements.append(candidate)

    logger.debug(
        "catalog_extracted",
        total=len(elements),
        text=sum(1 for e in elements if e.type == ElementType.TEXT),
        images=sum(1 for e in elements if e.type == ElementType.IMAGE),
        backgrounds=sum(1 for e in elements if e.type == ElementType.BACKGROUND_IMAGE),
        service_containers=sum(1 for e in elements if e.type == ElementType.SERVICE_CONTAINER),
    )

    return Catalog(document=annotated, elements=elements)
