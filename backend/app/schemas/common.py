"""Shared schema types: error and message responses, invite links, list filters."""

from datetime import date, datetime

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    type: str
    title: str
    status: int
    detail: str | dict | list
    instance: str


class MessageResponse(BaseModel):
    message: str


class InviteLinkResponse(BaseModel):
    invite_link: str
    expires_at: datetime


class ResourceFilter(BaseModel):
    """Team/project list filters. Date bounds are inclusive calendar days (UTC)."""

    name: str | None = None
    created_after: date | None = None
    created_before: date | None = None
