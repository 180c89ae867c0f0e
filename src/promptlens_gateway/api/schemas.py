"""
Request bodies for the auxiliary endpoints.
"""

from typing import Any, Dict, List
from pydantic import BaseModel, ConfigDict, Field


class ApiKeyRequest(BaseModel):
    """Provider secret to store for the default principal."""
    model_config = ConfigDict(populate_by_name=True)

    provider: str = Field(min_length=1)
    api_key: str = Field(min_length=1, alias="apiKey")


class ComparisonCreate(BaseModel):
    """One saved side-by-side comparison."""
    model_config = ConfigDict(populate_by_name=True)

    system_prompt: str = Field(default="", alias="systemPrompt")
    user_prompt: str = Field(alias="userPrompt")
    responses: List[Dict[str, Any]] = Field(default_factory=list)
