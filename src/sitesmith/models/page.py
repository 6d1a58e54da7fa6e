"""Records exchanged with the generation and persistence collaborators."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class SaveStatus(str, Enum):
    """Transient status of the session's save operation."""

    IDLE = "idle"
    SAVING = "saving"
    SUCCESS = "success"
    ERROR = "error"


class BusinessInfo(BaseModel):
    """Business details collected before a page is generated."""

    business_name: str = Field(..., description="Name shown on the generated site")
    business_type: str = Field(..., description="Vertical, e.g. 'restaurant' or 'plumber'")
    description: str = Field(default="", description="Free-form description of the business")
    services: List[str] = Field(default_factory=list, description="Services to feature")

    model_config = {"frozen": True}

    @field_validator("business_name", "business_type")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Name and type are required."""
        if not v.strip():
            raise ValueError("must not be empty")
        return v.strip()


class GeneratedPage(BaseModel):
    """A freshly generated document and its opaque storage handle."""

    html_content: str = Field(..., description="Full HTML document")
    file_path: str = Field(..., description="Opaque handle to pass back on save")

    model_config = {"frozen": True}


class SaveResult(BaseModel):
    """Outcome of a persistence call."""

    success: bool = Field(..., description="Whether the document was stored")

    file_path: Optional[str] = Field(
        default=None,
        description="Updated handle when the storage location changed"
    )

    error: Optional[str] = Field(
        default=None,
        description="Human-readable failure reason"
    )

    model_config = {"frozen": True}

    @classmethod
    def ok(cls, file_path: Optional[str] = None) -> "SaveResult":
        return cls(success=True, file_path=file_path)

    @classmethod
    def failed(cls, error: str) -> "SaveResult":
        return cls(success=False, error=error)
