"""Domain DTOs shared by the gateway, the feed controller and the API."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

PLACEHOLDER_IMAGE = "/placeholder.png"
UNTITLED = "Untitled Article"
NO_DESCRIPTION = "No description available."
NO_CONTENT = "No content available."
UNKNOWN_SOURCE = "Unknown Source"


class Article(BaseModel):
    """Common article shape produced by every provider.

    `url` is the identity: it is the de-duplication key and the display key.
    """

    model_config = ConfigDict(from_attributes=True)

    url: str = Field(..., min_length=1)
    title: str = UNTITLED
    description: str = NO_DESCRIPTION
    content: str = NO_CONTENT
    image_url: str = PLACEHOLDER_IMAGE
    source_name: str = UNKNOWN_SOURCE
    published_at: datetime
    category: str = ""
    likes: int = 0
    dislikes: int = 0


class Account(BaseModel):
    """Public view of a registered user."""

    model_config = ConfigDict(from_attributes=True)

    email: str
    username: str
    preferences: List[str] = Field(default_factory=list)
    mobile_number: Optional[str] = None


class SurveyQuestion(BaseModel):
    id: str
    question: str
    rating: int = Field(..., ge=1, le=5)


class InterestPoint(BaseModel):
    """One category of the interest-trend chart."""

    category: str
    value: int = Field(0, ge=0)
    percentage: float = 0.0
    previous_percentage: float = Field(0.0, alias="previousPercentage")

    model_config = ConfigDict(populate_by_name=True)
