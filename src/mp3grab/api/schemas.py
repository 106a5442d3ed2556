"""Request and response schemas for the mp3grab API."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


# ------------------------------------------------------------------
# Conversion requests
# ------------------------------------------------------------------


class ConvertRequest(BaseModel):
    url: str | None = Field(None, description="Video page URL")


class StreamConvertRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    stream_url: str | None = Field(None, alias="streamUrl", description="Direct media URL")
    title: str | None = Field(None, description="Display title reported by the browser")
    video_id: str | None = Field(None, alias="videoId", description="Source video id")


class FetchPageRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    video_id: str | None = Field(None, alias="videoId", description="Video id to fetch")


# ------------------------------------------------------------------
# Responses
# ------------------------------------------------------------------


class ConversionResponse(BaseModel):
    success: bool = True
    filename: str
    title: str
    method: str


class FetchPageResponse(BaseModel):
    html: str


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    timestamp: datetime
    uptime: float


class ErrorResponse(BaseModel):
    error: str
