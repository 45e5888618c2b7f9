"""Pydantic models for JSON bodies returned by the storage API.

Container and object listings are requested with ``format=json``; archive
extraction reports are JSON documents embedded in a successful upload
response.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class ContainerSummary(BaseModel):
    """One entry of an account's container listing."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: str
    object_count: int = Field(alias="count", ge=0)
    size_bytes: int = Field(alias="bytes", ge=0)
    bytes_received: int = Field(default=0, alias="rx_bytes", ge=0)
    bytes_transferred: int = Field(default=0, alias="tx_bytes", ge=0)


class ObjectSummary(BaseModel):
    """One entry of a container's object listing."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: str
    size_bytes: int = Field(alias="bytes", ge=0)
    content_type: str | None = None
    download_count: int = Field(default=0, alias="downloaded", ge=0)
    content_hash: str | None = Field(default=None, alias="hash")
    last_modified: str | None = None


class ExtractReport(BaseModel):
    """Report produced by the storage after unpacking an uploaded archive."""

    model_config = ConfigDict(populate_by_name=True)

    response_status: str = Field(default="", alias="Response Status")
    response_body: str = Field(default="", alias="Response Body")
    files_created: int = Field(default=0, alias="Number Files Created", ge=0)
    errors: list[Any] = Field(default_factory=list, alias="Errors")


CONTAINER_LISTING = TypeAdapter(list[ContainerSummary])
OBJECT_LISTING = TypeAdapter(list[ObjectSummary])
