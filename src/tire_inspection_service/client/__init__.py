"""Client library for the tire inspection service"""

from .api_client import InspectionApiError, InspectionClient, TireCapture, build_upload_plan
from .uploader import BatchUploader, LocalFile, UploadProgress, UploadResult, raise_for_failures

__all__ = [
    "InspectionApiError",
    "InspectionClient",
    "TireCapture",
    "build_upload_plan",
    "BatchUploader",
    "LocalFile",
    "UploadProgress",
    "UploadResult",
    "raise_for_failures",
]
