"""Payload shapes accepted and returned by the chat endpoint."""
from __future__ import annotations

from typing import Dict

from pydantic import BaseModel, ConfigDict, Field, StrictStr

PREVIEW_PLACEHOLDER = "Project preview would appear here"


class ChatRequest(BaseModel):
    """Body payload sent by the front-end."""

    model_config = ConfigDict(populate_by_name=True)

    message: StrictStr = Field(description="Free-text description of what to build")
    project_id: StrictStr = Field(
        default="",
        alias="projectId",
        description="Identifier of the project in the UI; not persisted",
    )


class ChatResponse(BaseModel):
    """Canned reply returned to the client."""

    response: str
    files: Dict[str, str] = Field(
        default_factory=dict, description="Generated filename mapped to file content"
    )
    preview: str = PREVIEW_PLACEHOLDER
