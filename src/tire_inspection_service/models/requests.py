"""
API Request and Response Models

Pydantic models for API input/output validation.

Request fields the pipeline validates itself (in a fixed order, with
specific messages) are optional here so that rule ordering is owned by
the core layer rather than by schema parsing.
"""

from datetime import datetime
from typing import List, Optional, Union

from pydantic import Field

from .inspection import CamelModel, FileDescriptor, TireInspection, UploadCredential


class UploadUrlRequest(CamelModel):
    """Request for pre-signed upload URLs"""

    plate: Optional[str] = Field(None, description="Vehicle plate")
    files: Optional[List[FileDescriptor]] = Field(None, description="Files to upload, in order")


class UploadUrlResponse(CamelModel):
    """Pre-signed upload URLs, one per requested file, in request order"""

    success: bool = True
    urls: List[UploadCredential] = Field(default_factory=list)
    message: str
    expires_in: int = Field(..., description="URL lifetime in seconds")


class TirePayload(CamelModel):
    """One tire of an inspection submission"""

    keys: Optional[List[Optional[str]]] = Field(None, description="Storage keys of the tire's images")
    depths: List[Optional[Union[str, float]]] = Field(
        default_factory=list,
        description="Raw depth readings in millimetres"
    )
    position: Optional[str] = Field(None, description="Tire position label")


class SubmitInspectionRequest(CamelModel):
    """Inspection submission for one vehicle"""

    plate: Optional[str] = Field(None, description="Vehicle plate")
    tires: Optional[List[TirePayload]] = Field(None, description="Inspected tires")


class SubmitInspectionResponse(CamelModel):
    """Response after a successful submission"""

    success: bool = True
    message: str
    tires_processed: int = Field(..., ge=1)


class InspectionResponse(TireInspection):
    """Persisted record as returned by the list endpoint"""

    @classmethod
    def from_inspection(cls, inspection: TireInspection) -> "InspectionResponse":
        """Create response from TireInspection model"""
        return cls(**inspection.model_dump())


class DeleteInspectionRequest(CamelModel):
    """Request to delete one inspection record"""

    id: Optional[str] = Field(None, description="Record identifier")


class SuccessResponse(CamelModel):
    success: bool = True


class ErrorResponse(CamelModel):
    success: bool = False
    error: str


class HealthResponse(CamelModel):
    """Health check response"""

    status: str = Field(default="healthy")
    service: str = Field(default="tire-inspection-service")
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    storage_available: bool = Field(default=True)
    database_available: bool = Field(default=True)
