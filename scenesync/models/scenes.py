"""
Scene schemas.

These document the shape the front end sends. The store itself passes
scenes through verbatim, so every model allows extra fields and the
server never re-serializes a scene through them.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class PlaylistRef(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str
    name: str
    uri: str
    image_url: Optional[str] = Field(default=None, alias="imageUrl")


class DeviceRef(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    name: str
    type: str


class Scene(BaseModel):
    """A saved playlist + device + volume preset."""

    model_config = ConfigDict(extra="allow")

    id: str
    name: str
    volume: int = Field(ge=0, le=100)
    playlist: PlaylistRef
    device: DeviceRef

