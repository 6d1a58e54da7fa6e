"""Catalog models: the editable targets found in a document."""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, PrivateAttr, field_validator

from sitesmith.models.element_path import ElementPath


class ElementType(str, Enum):
    """Kinds of editable targets. Behaviour of every component is keyed on this."""

    TEXT = "text"
    IMAGE = "image"
    BACKGROUND_IMAGE = "backgroundImage"
    SERVICE_CONTAINER = "serviceContainer"


class EditableElement(BaseModel):
    """One user-actionable location in a document."""

    id: str = Field(
        ...,
        description="Catalog key derived from type prefix and path token"
    )

    type: ElementType = Field(..., description="Kind of editable target")

    content: str = Field(
        ...,
        description="Text for text entries, URL for images, placeholder for service containers"
    )

    path: ElementPath = Field(..., description="Structural locator of the element")

    tag: str = Field(..., description="Lowercase tag name of the element")

    selector: Optional[str] = Field(
        default=None,
        description="data-edit-id attribute selector (background images only)"
    )

    alt: Optional[str] = Field(default=None, description="alt attribute (images only)")

    display_name: str = Field(..., description="Human label for selection lists")

    model_config = {"frozen": True}


class Catalog(BaseModel):
    """Freshly computed list of editable elements for one document string.

    `document` is the input document re-serialized with the data-edit-id
    markers that background-image entries rely on.
    """

    document: str = Field(..., description="Annotated document the catalog was built from")

    elements: List[EditableElement] = Field(default_factory=list)

    _by_id: Dict[str, EditableElement] = PrivateAttr(default_factory=dict)

    model_config = {"frozen": True}

    def model_post_init(self, context) -> None:
        self._by_id = {element.id: element for element in self.elements}

    def get(self, element_id: str) -> Optional[EditableElement]:
        """Look up an entry by id."""
        return self._by_id.get(element_id)

    def of_type(self, element_type: ElementType) -> List[EditableElement]:
        """Entries of a single type, in catalog order."""
        return [element for element in self.elements if element.type == element_type]

    def __contains__(self, element_id: object) -> bool:
        return element_id in self._by_id

    def __len__(self) -> int:
        return len(self.elements)


class ServiceItem(BaseModel):
    """A new service block appended to a service container."""

    icon: str = Field(default="bi-box-seam", description="Bootstrap icon class")
    title: str = Field(..., description="Service heading")
    description: str = Field(..., description="Service description paragraph")

    model_config = {"frozen": True}

    @field_validator("title", "description")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Title and description are required."""
        if not v.strip():
            raise ValueError("must not be empty")
        return v.strip()
