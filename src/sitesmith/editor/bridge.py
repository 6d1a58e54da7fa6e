"""Render/selection bridge between the document and the sandboxed preview.

The sandbox is an instrumented copy of the working document meant for an
isolated frame (`<iframe sandbox srcdoc=...>`). It is rebuilt from the
document string on every render; nothing is patched incrementally.

Instrumentation per resolved catalog entry:
- `editable-highlight` plus a per-type affordance class (hover styling)
- `active-element` on the selected entry
- `data-sitesmith-id` carrying the catalog id

A capturing document-level click listener suppresses navigation and form
submission inside the sandbox and posts
`{"source": "sitesmith", "type": "select", "elementId": ...}` to the host
window. `translate_event` turns such messages back into element ids.
"""

import json
from html import escape
from typing import Any, Dict, List, Mapping, Optional, Union

from bs4 import BeautifulSoup, Tag
from pydantic import BaseModel, Field

from sitesmith.editor.html import parse_document, serialize_document
from sitesmith.editor.path_codec import resolve_element
from sitesmith.models.editable_element import Catalog, ElementType
from sitesmith.utils.logging import get_logger


logger = get_logger(__name__)

HIGHLIGHT_CLASS = "editable-highlight"
ACTIVE_CLASS = "active-element"
SURFACE_ATTR = "data-sitesmith-id"
EVENT_SOURCE = "sitesmith"

AFFORDANCE_CLASSES = {
    ElementType.TEXT: "text-element",
    ElementType.IMAGE: "image-element",
    ElementType.BACKGROUND_IMAGE: "bg-image-element",
    ElementType.SERVICE_CONTAINER: "service-container-element",
}

AFFORDANCE_CSS = """
.editable-highlight { cursor: pointer; position: relative; transition: all 0.2s; }
.text-element { outline: 1px dashed rgba(92,124,250,0.5); }
.text-element:hover { outline: 2px dashed #5c7cfa; background: rgba(92,124,250,0.1); }
.image-element { outline: 1px dashed rgba(92,124,250,0.5); }
.image-element:hover { outline: 2px dashed #5c7cfa; filter: brightness(1.05); }
.bg-image-element { outline: 1px dashed rgba(250,92,92,0.5); }
.bg-image-element:hover { outline: 2px dashed #fa5c5c; background: rgba(250,92,92,0.1); }
.service-container-element { outline: 1px dashed rgba(75,181,67,0.5); }
.service-container-element:hover { outline: 2px dashed #4bb543; background: rgba(75,181,67,0.1); }
.active-element { outline: 2px solid #0d6efd !important; box-shadow: 0 0 0 4px rgba(13,110,253,0.25); }
"""

INTERCEPT_SCRIPT = """
(function () {
  function closest(node, selector) {
    return node && node.closest ? node.closest(selector) : null;
  }
  document.addEventListener("click", function (event) {
    var surface = closest(event.target, "[data-sitesmith-id]");
    var navigates = closest(event.target, "a, button, input[type=submit]");
    if (surface || navigates) {
      event.preventDefault();
      event.stopPropagation();
    }
    if (surface) {
      window.parent.postMessage({
        source: "sitesmith",
        type: "select",
        elementId: surface.getAttribute("data-sitesmith-id")
      }, "*");
    }
  }, true);
  document.addEventListener("submit", function (event) {
    event.preventDefault();
  }, true);
})();
"""

# Standalone page that embeds a sandbox and shows the last selected element id
HOST_PAGE = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>{title}</title>
<style>
html, body {{ margin: 0; height: 100%; }}
#selection {{ font: 13px monospace; padding: 4px 8px; background: #f1f3f5; }}
#frame {{ height: calc(100% - 26px); }}
</style>
</head>
<body>
<div id="selection">Click an element to select it</div>
<div id="frame">{iframe}</div>
<script>
window.addEventListener("message", function (event) {{
  var data = event.data || {{}};
  if (data.source === "sitesmith" && data.type === "select") {{
    document.getElementById("selection").textContent = "Selected: " + data.elementId;
  }}
}});
</script>
</body>
</html>
"""


class InteractionSurface(BaseModel):
    """A catalog entry that is clickable in the current render."""

    element_id: str = Field(..., description="Catalog id the surface reports")
    type: ElementType = Field(..., description="Entry type")
    tag: str = Field(..., description="Tag name of the instrumented element")
    affordance_class: str = Field(..., description="Per-type CSS class applied")
    active: bool = Field(default=False, description="Whether this is the selected entry")

    model_config = {"frozen": True}


class RenderedSandbox(BaseModel):
    """One render pass: sandbox markup plus the id -> surface mapping."""

    html: str = Field(..., description="Instrumented sandbox document")
    surfaces: Dict[str, InteractionSurface] = Field(default_factory=dict)
    unresolved: List[str] = Field(
        default_factory=list,
        description="Catalog ids not interactive in this render (ambiguous or missing)"
    )

    model_config = {"frozen": True}

    def iframe_markup(self, title: str = "Website Preview") -> str:
        """Embed the sandbox in an isolated frame for a host page."""
        return (
            f'<iframe title="{escape(title)}" sandbox="allow-scripts" '
            f'style="width: 100%; height: 100%; border: none;" '
            f'srcdoc="{escape(self.html, quote=True)}"></iframe>'
        )

    def host_page(self, title: str = "Website Preview") -> str:
        """A complete page around `iframe_markup` that shows selection messages."""
        return HOST_PAGE.format(title=escape(title), iframe=self.iframe_markup(title))


def _head(soup: BeautifulSoup) -> Tag:
    head = soup.find("head")
    if head is not None:
        return head

    head = soup.new_tag("head")
    html_tag = soup.find("html")
    if html_tag is not None:
        html_tag.insert(0, head)
    else:
        soup.insert(0, head)
    return head


def _add_classes(element: Tag, *classes: str) -> None:
    current = element.get("class") or []
    if isinstance(current, str):
        current = current.split()
    element["class"] = current + [c for c in classes if c not in current]


class RenderBridge:
    """Owns the sandbox projection of the working document.

    The bridge never changes the document or the catalog; it only produces
    the instrumented sandbox and translates sandbox messages into element ids.
    """

    def __init__(self) -> None:
        self._last_render: Optional[RenderedSandbox] = None

    @property
    def last_render(self) -> Optional[RenderedSandbox]:
        """Result of the most recent render, if any."""
        return self._last_render

    def render(
        self,
        document: str,
        catalog: Catalog,
        selected_id: Optional[str] = None,
    ) -> RenderedSandbox:
        """
        Rebuild the sandbox from the document and instrument every catalog entry.

        Args:
            document: Current working document
            catalog: Catalog computed from that document
            selected_id: Catalog id of the selected entry, if any

        Returns:
            RenderedSandbox with markup, interactive surfaces and unresolved ids
        """
        soup = parse_document(document)
        surfaces: Dict[str, InteractionSurface] = {}
        unresolved: List[str] = []

        for entry in catalog.elements:
            element = resolve_element(soup, entry)
            if element is None:
                unresolved.append(entry.id)
                continue

            affordance = AFFORDANCE_CLASSES[entry.type]
            active = entry.id == selected_id
            classes = [HIGHLIGHT_CLASS, affordance] + ([ACTIVE_CLASS] if active else [])
            _add_classes(element, *classes)
            # Later entries on the same element win, matching click handler order
            element[SURFACE_ATTR] = entry.id

            surfaces[entry.id] = InteractionSurface(
                element_id=entry.id,
                type=entry.type,
                tag=element.name,
                affordance_class=affordance,
                active=active,
            )

        head = _head(soup)
        style = soup.new_tag("style", attrs={"data-sitesmith": "affordances"})
        style.string = AFFORDANCE_CSS
        script = soup.new_tag("script", attrs={"data-sitesmith": "intercept"})
        script.string = INTERCEPT_SCRIPT
        head.append(style)
        head.append(script)

        if unresolved:
            logger.debug("sandbox_unresolved_elements", count=len(unresolved), element_ids=unresolved)

        logger.debug("sandbox_rendered", surfaces=len(surfaces), selected_id=selected_id)

        self._last_render = RenderedSandbox(
            html=serialize_document(soup),
            surfaces=surfaces,
            unresolved=unresolved,
        )
        return self._last_render

    def translate_event(self, payload: Union[str, Mapping[str, Any]]) -> Optional[str]:
        """
        Translate a raw sandbox message into a selection event.

        Args:
            payload: Message data posted by the sandbox (dict or JSON text)

        Returns:
            The selected element id, or None when the message is not a
            selection of a surface from the last render
        """
        if isinstance(payload, str):
            try:
                payload = json.loads(payload)
            except json.JSONDecodeError:
                logger.debug("sandbox_event_malformed")
                return None

        if not isinstance(payload, Mapping):
            return None
        if payload.get("source") != EVENT_SOURCE or payload.get("type") != "select":
            return None

        element_id = payload.get("elementId")
        if (
            not isinstance(element_id, str)
            or self._last_render is None
            or element_id not in self._last_render.surfaces
        ):
            logger.debug("sandbox_event_unknown_element", element_id=element_id)
            return None

        return element_id
