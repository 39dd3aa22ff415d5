"""
Tire Inspection API Routes

Endpoints for upload credential issuance, inspection submission, and the
dashboard's list/delete operations.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from tire_inspection_service.config.settings import settings
from tire_inspection_service.core.errors import PersistenceError, StorageError, ValidationError
from tire_inspection_service.core.inspection_manager import InspectionManager, resolve_client_ip
from tire_inspection_service.core.upload_urls import UploadUrlIssuer
from tire_inspection_service.infrastructure.database.client import db_client, get_db
from tire_inspection_service.infrastructure.storage import get_storage_provider
from tire_inspection_service.models import (
    DeleteInspectionRequest,
    HealthResponse,
    InspectionResponse,
    SubmitInspectionRequest,
    SubmitInspectionResponse,
    SuccessResponse,
    UploadUrlRequest,
    UploadUrlResponse,
)

router = APIRouter(prefix="/api/v1", tags=["inspections"])
logger = logging.getLogger(__name__)


# Dependencies
def get_upload_url_issuer() -> UploadUrlIssuer:
    """Dependency for getting UploadUrlIssuer instance"""
    try:
        return UploadUrlIssuer()
    except ValueError as e:
        logger.error(f"Storage is not configured: {e}")
        raise HTTPException(status_code=500, detail=str(e))


def get_inspection_manager() -> InspectionManager:
    """Dependency for getting InspectionManager instance"""
    return InspectionManager()


@router.post(
    "/get-presigned-urls",
    response_model=UploadUrlResponse,
    summary="Issue Upload URLs",
    description="""
Issue one pre-signed S3 PUT URL per image the client is about to upload.

**Workflow**:
1. Client sends the plate and the list of files (name and MIME type)
2. Service validates the plate, the file count (max 60) and the MIME types
3. URLs are signed in groups of 10 and returned in request order
4. Client PUTs each file to its URL with the declared Content-Type

**Allowed Types**: image/jpeg, image/jpg, image/png, image/webp
**Expiry**: 10 minutes
    """,
    responses={
        200: {"description": "Upload URLs issued"},
        400: {"description": "Missing plate/files, too many files, or unsupported type"},
        500: {"description": "Storage provider failure"}
    }
)
async def issue_upload_urls(
    request: UploadUrlRequest,
    issuer: UploadUrlIssuer = Depends(get_upload_url_issuer)
) -> UploadUrlResponse:
    """Issue pre-signed upload URLs"""
    try:
        urls = await issuer.issue(request.plate, request.files)
    except ValidationError as e:
        logger.warning(f"Upload URL request rejected: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except StorageError as e:
        raise HTTPException(status_code=500, detail=str(e))

    return UploadUrlResponse(
        urls=urls,
        message=f"Generated {len(urls)} pre-signed URLs",
        expires_in=issuer.expiration
    )


@router.post(
    "/submit",
    response_model=SubmitInspectionResponse,
    summary="Submit Inspection",
    description="""
Persist one record per inspected tire after the images have been uploaded.

**Workflow**:
1. Validates plate, tire positions and image keys (in that order)
2. Maps storage keys to public image URLs and normalizes depths
3. Inserts all tire records in a single transaction
4. If any depth is at or below 5 mm, schedules an alert email

The alert email runs after the response is sent; its outcome never
changes the response.
    """,
    responses={
        200: {"description": "All tire records saved"},
        400: {"description": "Validation failed; nothing was written"},
        500: {"description": "Database error"}
    }
)
async def submit_inspection(
    payload: SubmitInspectionRequest,
    request: Request,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    manager: InspectionManager = Depends(get_inspection_manager)
) -> SubmitInspectionResponse:
    """Submit an inspection"""
    client_ip = resolve_client_ip(
        request.headers.get("x-forwarded-for"),
        request.client.host if request.client else None
    )
    logger.info(f"Received inspection: plate={payload.plate}, tires={len(payload.tires or [])}")

    try:
        records = await manager.submit(payload.plate, payload.tires, client_ip, db)
    except ValidationError as e:
        logger.warning(f"Inspection rejected: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except PersistenceError as e:
        raise HTTPException(status_code=500, detail=str(e))

    plate = records[0].plate
    if manager.needs_alert(records):
        background_tasks.add_task(manager.dispatch_low_depth_alert, plate, records)

    return SubmitInspectionResponse(
        message=f"Successfully saved {len(records)} tire inspections for plate {plate}",
        tires_processed=len(records)
    )


@router.get(
    "/inspections",
    response_model=List[InspectionResponse],
    summary="List Inspections",
    description="Return every persisted tire record, newest first.",
    responses={
        200: {"description": "Records returned"},
        500: {"description": "Database error"}
    }
)
async def list_inspections(
    db: AsyncSession = Depends(get_db),
    manager: InspectionManager = Depends(get_inspection_manager)
) -> List[InspectionResponse]:
    """List inspections"""
    try:
        inspections = await manager.list_inspections(db)
    except PersistenceError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return [InspectionResponse.from_inspection(i) for i in inspections]


@router.delete(
    "/inspections",
    response_model=SuccessResponse,
    summary="Delete Inspection",
    description="""
Delete one tire record by id.

Sibling records of the same submission are untouched, and the record's
images are not removed from the object store.
    """,
    responses={
        200: {"description": "Record deleted"},
        400: {"description": "Missing id"},
        404: {"description": "Record not found"},
        500: {"description": "Database error"}
    }
)
async def delete_inspection(
    request: Optional[DeleteInspectionRequest] = None,
    db: AsyncSession = Depends(get_db),
    manager: InspectionManager = Depends(get_inspection_manager)
) -> SuccessResponse:
    """Delete an inspection record"""
    if request is None or not request.id:
        raise HTTPException(status_code=400, detail="Missing ID")

    try:
        deleted = await manager.delete_inspection(request.id, db)
    except PersistenceError as e:
        raise HTTPException(status_code=500, detail=str(e))

    if not deleted:
        raise HTTPException(status_code=404, detail="Inspection not found")

    return SuccessResponse()


@router.get(
    "/health",
    response_model=HealthResponse,
    tags=["health"],
    summary="Detailed Health Check",
    description="Checks bucket access and database connectivity; status is healthy or degraded.",
    responses={
        200: {"description": "Health check completed (status may be healthy or degraded)"}
    }
)
async def health_check() -> HealthResponse:
    """Health check endpoint"""
    try:
        storage_ok = await get_storage_provider().health_check()
    except ValueError as e:
        logger.error(f"Storage health check failed: {e}")
        storage_ok = False

    db_ok = await db_client.health_check()

    status = "healthy" if (storage_ok and db_ok) else "degraded"

    return HealthResponse(
        status=status,
        service=settings.service_name,
        storage_available=storage_ok,
        database_available=db_ok
    )
