"""Pydantic request/response models for the HTTP API.

WHY: The FastAPI endpoints need typed schemas for request validation,
response serialization, and automatic OpenAPI documentation.

HOW: One request model (listing + source) shared by the JSON and render
endpoints, one response model mirroring CorrelationEntry, plus the
format/health/error models.

RULES:
- All models use Field(description=...) for OpenAPI documentation
- Line numbers in responses are 1-based, like everywhere else
- Python 3.9+ compatible (no PEP 604 unions, use Optional from typing)
"""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class CorrelationRequest(BaseModel):
    """A listing and the source it was compiled from.

    RULES:
    - target_file_path must match the listing's file directive exactly
    - source_filename is only used for naming/rendering; defaults to
      "source.c"
    - dialect must be a registered grammar key
    """

    listing_text: str = Field(description="Full text of the compiler assembly listing.")
    target_file_path: str = Field(
        description="Path exactly as the listing names the analysed source file.",
    )
    source_text: str = Field(description="Source text the listing was compiled from.")
    source_filename: str = Field(
        default="source.c",
        description="Original source file name, used for rendering and output naming.",
    )
    dialect: str = Field(default="msvc", description="Listing dialect key.")

    model_config = {"json_schema_extra": {
        "examples": [
            {
                "listing_text": "; File c:\\work\\main.c\n_TEXT\tSEGMENT\n; 2    :     return 0;\n\txor\teax, eax\nmain\tENDP\n",
                "target_file_path": "c:\\work\\main.c",
                "source_text": "int main(void) {\n    return 0;\n}\n",
                "source_filename": "main.c",
                "dialect": "msvc",
            }
        ]
    }}


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class CorrelationEntryModel(BaseModel):
    """One source line with its generated assembly."""

    line: int = Field(description="1-based source line number.")
    code: str = Field(description="Source text of the line.")
    assembly: str = Field(description="Instructions generated for the line.")
    color: str = Field(description="Display color for the line's block.")


class CorrelationResponse(BaseModel):
    """Correlation result for one source file.

    RULES:
    - entries ascend by line
    - empty is True when the listing produced no assembly for the file
      (a valid outcome, not an error)
    """

    source_file: str = Field(description="Original source file name.")
    empty: bool = Field(description="True when no assembly was found for the file.")
    entries: List[CorrelationEntryModel] = Field(description="Correlated lines.")


class FormatInfo(BaseModel):
    """Description of an available output format."""

    key: str = Field(description="Format identifier used in API paths.")
    name: str = Field(description="Human-readable format name.")
    suffix: str = Field(description="File suffix produced (e.g. '-listing.json').")
    media_type: str = Field(description="MIME type of the rendered content.")


class ErrorResponse(BaseModel):
    """Standard error response body."""

    detail: str = Field(description="Human-readable error description.")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(description="Service health status.", json_schema_extra={"example": "ok"})
    version: str = Field(description="API version string.", json_schema_extra={"example": "0.1.0"})
