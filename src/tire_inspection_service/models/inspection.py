"""
Tire Inspection Data Models

Core domain models for per-tire inspection records and upload credentials.
"""

import re
from datetime import datetime
from enum import Enum
from typing import List
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys on the wire"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ImageSlot(str, Enum):
    """Fixed photo slots of a tire, in persisted order"""
    INTERIOR = "interior"
    CENTER = "center"
    EXTERIOR = "exterior"

    @property
    def label(self) -> str:
        return self.value.capitalize()


IMAGE_SLOTS = list(ImageSlot)

# Storage key basename: <epoch-ms>-<n>-tire-<tire>-<slot>-...
_SLOT_IN_KEY = re.compile(r"^\d+-\d+-tire-\d+-(\d+)-")


def slot_for_image(url: str, position: int) -> ImageSlot:
    """
    Photo slot of a stored image

    Read from the slot number the client encodes in the upload name; images
    without one fall back to their position in the list.
    """
    match = _SLOT_IN_KEY.match(url.rsplit("/", 1)[-1])
    if match and 1 <= int(match.group(1)) <= len(IMAGE_SLOTS):
        return IMAGE_SLOTS[int(match.group(1)) - 1]
    return IMAGE_SLOTS[min(position, len(IMAGE_SLOTS) - 1)]


class TireInspection(CamelModel):
    """One persisted inspection record (one per tire)"""

    id: str = Field(
        default_factory=lambda: str(uuid4()),
        description="Unique record identifier"
    )
    submission_id: str = Field(..., description="Identifier shared by all tires of one submission")
    plate: str = Field(..., min_length=1, description="Vehicle plate")
    position: str = Field(..., min_length=1, description="Tire placement on the vehicle")
    images: List[str] = Field(default_factory=list, max_length=3, description="Image URLs (interior, center, exterior)")
    depths: List[float] = Field(default_factory=list, description="Tread depths in millimetres")
    ip: str = Field(default="Unknown", description="Submitting client address")
    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Persistence timestamp"
    )
    tire_index: int = Field(..., ge=1, description="1-based ordinal within the submission")

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "id": "550e8400-e29b-41d4-a716-446655440000",
                "submissionId": "0b7f6d1e-3c0a-4d53-9d6a-2f1c2b9e0a11",
                "plate": "ABC123",
                "position": "front-left",
                "images": [
                    "https://tire-images.s3.us-east-1.amazonaws.com/tires/ABC123/1700000000000-1-interior.jpg"
                ],
                "depths": [4.0, 6.0],
                "ip": "203.0.113.7",
                "createdAt": "2025-11-16T10:30:00Z",
                "tireIndex": 1
            }
        }
    )


class FileDescriptor(CamelModel):
    """A file the client intends to upload"""

    name: str = Field(default="", description="Original filename")
    type: str = Field(default="", description="Declared MIME type")


class UploadDescriptor(FileDescriptor):
    """Client-side descriptor tying a file to its tire and photo slot"""

    plate: str
    tire_index: int = Field(..., ge=1)
    image_slot: ImageSlot

    @classmethod
    def for_image(
        cls,
        plate: str,
        tire_index: int,
        image_slot: ImageSlot,
        stamp: int,
        filename: str,
        content_type: str
    ) -> "UploadDescriptor":
        slot_number = IMAGE_SLOTS.index(image_slot) + 1
        return cls(
            name=f"tire-{tire_index}-{slot_number}-{stamp}-{filename}",
            type=content_type,
            plate=plate,
            tire_index=tire_index,
            image_slot=image_slot
        )


class UploadCredential(CamelModel):
    """Time-limited write credential for one storage key"""

    upload_url: str = Field(..., description="Pre-signed PUT URL")
    key: str = Field(..., description="Storage key the URL writes to")
    original_name: str = Field(..., description="Filename as submitted")
    index: int = Field(..., ge=0, description="Position of the file in the request")
