"""Data models for Tire Inspection Service"""

from .inspection import (
    IMAGE_SLOTS,
    FileDescriptor,
    ImageSlot,
    TireInspection,
    UploadCredential,
    UploadDescriptor,
    slot_for_image,
)
from .requests import (
    UploadUrlRequest,
    UploadUrlResponse,
    TirePayload,
    SubmitInspectionRequest,
    SubmitInspectionResponse,
    InspectionResponse,
    DeleteInspectionRequest,
    SuccessResponse,
    ErrorResponse,
    HealthResponse
)

__all__ = [
    "IMAGE_SLOTS",
    "FileDescriptor",
    "ImageSlot",
    "TireInspection",
    "UploadCredential",
    "UploadDescriptor",
    "slot_for_image",
    "UploadUrlRequest",
    "UploadUrlResponse",
    "TirePayload",
    "SubmitInspectionRequest",
    "SubmitInspectionResponse",
    "InspectionResponse",
    "DeleteInspectionRequest",
    "SuccessResponse",
    "ErrorResponse",
    "HealthResponse",
]
