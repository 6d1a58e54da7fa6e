"""Structural element paths used to key and re-find editable elements."""

from typing import Optional, Tuple

from pydantic import BaseModel, Field, model_validator

from sitesmith.utils.ids import path_token


class PathSegment(BaseModel):
    """One level of an element path: a tag plus either its id or its position."""

    tag: str = Field(..., description="Lowercase tag name")

    element_id: Optional[str] = Field(
        default=None,
        description="Value of the element's id attribute, when it has one"
    )

    index: Optional[int] = Field(
        default=None,
        ge=1,
        description="1-based position among preceding siblings with the same tag"
    )

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _exactly_one_locator(self) -> "PathSegment":
        if (self.element_id is None) == (self.index is None):
            raise ValueError("PathSegment needs exactly one of element_id or index")
        return self

    def encode(self) -> str:
        """Render the segment as `tag#id` or `tag:nth-of-type(k)`."""
        if self.element_id is not None:
            return f"{self.tag}#{self.element_id}"
        return f"{self.tag}:nth-of-type({self.index})"


class ElementPath(BaseModel):
    """Root-to-leaf list of segments locating an element in a parsed document.

    The path is content independent: it only records tag names, id attributes
    and same-tag sibling positions. It stays valid as long as the ancestor
    structure above the element keeps its shape.

    Encoding version 1 joins segments with ">" (see `as_selector`) and hashes
    the result into a 12 character token used as a catalog key.
    """

    segments: Tuple[PathSegment, ...] = Field(default_factory=tuple)

    model_config = {"frozen": True}

    def as_selector(self) -> str:
        """Return the version 1 textual encoding of the path."""
        return ">".join(segment.encode() for segment in self.segments)

    def token(self) -> str:
        """Return the short catalog token for this path."""
        return path_token(self.as_selector())

    @property
    def leaf_tag(self) -> Optional[str]:
        """Tag name of the element the path points at."""
        return self.segments[-1].tag if self.segments else None

    def __str__(self) -> str:
        return self.as_selector()
