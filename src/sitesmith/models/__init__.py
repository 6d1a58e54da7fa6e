"""Pydantic data models for Sitesmith."""

from sitesmith.models.element_path import ElementPath, PathSegment
from sitesmith.models.editable_element import (
    Catalog,
    EditableElement,
    ElementType,
    ServiceItem,
)
from sitesmith.models.page import BusinessInfo, GeneratedPage, SaveResult, SaveStatus

__all__ = [
    "BusinessInfo",
    "Catalog",
    "EditableElement",
    "ElementPath",
    "ElementType",
    "GeneratedPage",
    "PathSegment",
    "SaveResult",
    "SaveStatus",
    "ServiceItem",
]
