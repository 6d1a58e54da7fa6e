"""Element path codec: encode structural paths and re-find catalog entries.

Encoding walks from an element up to the document root and records, for every
level, either the element's id attribute or its position among same-tag
siblings. Resolution deliberately does not trust those positions for text and
image entries: the working document changes between catalog builds, so text
and images are re-found by exact content equality instead, and only when
exactly one element matches.

Resolution order:
1. data-edit-id selector (background images)
2. exact text content among elements of the recorded tag (text)
3. exact src among img elements (images)
4. structural path walk (service containers)
"""

import re
from typing import List, Optional

from bs4 import BeautifulSoup, Tag

from sitesmith.models.editable_element import EditableElement, ElementType
from sitesmith.models.element_path import ElementPath, PathSegment
from sitesmith.utils.logging import get_logger


logger = get_logger(__name__)

EDIT_ID_ATTR = "data-edit-id"

_EDIT_ID_SELECTOR_RE = re.compile(r'^\[data-edit-id="([^"]+)"\]$')


def encode_path(element: Tag) -> ElementPath:
    """
    Compute the structural path of an element.

    Args:
        element: Element inside a parsed document

    Returns:
        ElementPath from the outermost element down to `element`

    Example:
        >>> soup = BeautifulSoup("<html><body><p>a</p><p>b</p></body></html>", "html.parser")
        >>> encode_path(soup.find_all("p")[1]).as_selector()
        'html:nth-of-type(1)>body:nth-of-type(1)>p:nth-of-type(2)'
    """
    segments: List[PathSegment] = []
    current = element

    while isinstance(current, Tag) and not isinstance(current, BeautifulSoup):
        element_id = current.get("id")
        if isinstance(element_id, str) and element_id.strip():
            segments.append(PathSegment(tag=current.name, element_id=element_id))
        else:
            index = 1 + len(current.find_previous_siblings(current.name))
            segments.append(PathSegment(tag=current.name, index=index))
        current = current.parent

    segments.reverse()
    return ElementPath(segments=tuple(segments))


def edit_id_selector(edit_id: str) -> str:
    """Build the attribute selector stored on background-image entries."""
    return f'[{EDIT_ID_ATTR}="{edit_id}"]'


def find_by_path(soup: BeautifulSoup, path: ElementPath) -> Optional[Tag]:
    """
    Follow a path segment by segment from the document root.

    Args:
        soup: Parsed document
        path: Path produced by `encode_path`

    Returns:
        The element at the end of the path, or None when the structure changed
    """
    if not path.segments:
        return None

    current: Tag = soup
    for segment in path.segments:
        children = current.find_all(segment.tag, recursive=False)

        if segment.element_id is not None:
            matches = [child for child in children if child.get("id") == segment.element_id]
            if len(matches) != 1:
                return None
            current = matches[0]
        else:
            if segment.index > len(children):
                return None
            current = children[segment.index - 1]

    return current


def find_by_selector(soup: BeautifulSoup, selector: str) -> Optional[Tag]:
    """
    Look up an element by a data-edit-id attribute selector.

    Only the `[data-edit-id="..."]` form written by the extractor is
    understood; anything else resolves to None.
    """
    match = _EDIT_ID_SELECTOR_RE.match(selector.strip())
    if not match:
        logger.debug("selector_unsupported", selector=selector)
        return None

    found = soup.find_all(attrs={EDIT_ID_ATTR: match.group(1)})
    if len(found) != 1:
        return None
    return found[0]


def _unique(candidates: List[Tag], entry: EditableElement) -> Optional[Tag]:
    if len(candidates) == 1:
        return candidates[0]

    logger.debug(
        "element_unresolved",
        element_id=entry.id,
        element_type=entry.type.value,
        candidates=len(candidates),
    )
    return None


def resolve_element(soup: BeautifulSoup, entry: EditableElement) -> Optional[Tag]:
    """
    Re-find the live element for a catalog entry in a (possibly mutated) document.

    Ambiguous or missing targets resolve to None; callers treat that as a
    no-op, never as an error.

    Args:
        soup: Freshly parsed document to search
        entry: Catalog entry describing the target

    Returns:
        The unique matching element, or None
    """
    if entry.selector:
        found = find_by_selector(soup, entry.selector)
        if found is not None or entry.type == ElementType.BACKGROUND_IMAGE:
            if found is None:
                logger.debug("element_unresolved", element_id=entry.id, selector=entry.selector)
            return found

    if entry.type == ElementType.TEXT:
        wanted = entry.content.strip()
        return _unique(
            [el for el in soup.find_all(entry.tag) if el.get_text().strip() == wanted],
            entry,
        )

    if entry.type == ElementType.IMAGE:
        return _unique(
            [el for el in soup.find_all("img") if (el.get("src") or "") == entry.content],
            entry,
        )

    if entry.type == ElementType.SERVICE_CONTAINER:
        found = find_by_path(soup, entry.path)
        if found is None:
            logger.debug("element_unresolved", element_id=entry.id, path=entry.path.as_selector())
        return found

    return None
