"""
Inspection API Client

Async client for the tire inspection HTTP contract. `submit_inspection`
runs the full field-technician flow: request upload URLs, upload images
straight to storage, then submit the inspection.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import httpx

from tire_inspection_service.client.uploader import (
    BatchUploader,
    LocalFile,
    ProgressCallback,
    raise_for_failures,
)
from tire_inspection_service.core.errors import InspectionError, ValidationError
from tire_inspection_service.models.inspection import (
    IMAGE_SLOTS,
    FileDescriptor,
    TireInspection,
    UploadCredential,
    UploadDescriptor,
)
from tire_inspection_service.models.requests import SubmitInspectionResponse, TirePayload

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


class InspectionApiError(InspectionError):
    """The service answered with a non-success status"""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"HTTP {status_code}: {message}")


def _filled(value: Any) -> bool:
    return value is not None and bool(str(value).strip())


@dataclass
class TireCapture:
    """What the technician captured for one tire"""

    position: str
    images: List[Optional[LocalFile]] = field(default_factory=lambda: [None] * len(IMAGE_SLOTS))
    depths: List[str] = field(default_factory=list)


def build_upload_plan(
    plate: str,
    tires: List[TireCapture]
) -> Tuple[List[UploadDescriptor], List[LocalFile]]:
    """
    Flatten captured photos into upload descriptors and their payloads

    Empty slots are skipped; descriptor i always describes file i.
    """
    descriptors: List[UploadDescriptor] = []
    files: List[LocalFile] = []
    stamp = int(time.time() * 1000)

    for tire_number, tire in enumerate(tires, start=1):
        for slot, image in zip(IMAGE_SLOTS, tire.images):
            if image is None:
                continue
            descriptors.append(UploadDescriptor.for_image(
                plate, tire_number, slot, stamp, image.name, image.content_type
            ))
            files.append(image)

    return descriptors, files


class InspectionClient:
    """Client for the tire inspection service"""

    def __init__(
        self,
        base_url: str,
        http: Optional[httpx.AsyncClient] = None,
        uploader: Optional[BatchUploader] = None,
        on_progress: Optional[ProgressCallback] = None,
        timeout: float = 30.0
    ):
        self._owns_http = http is None
        self.http = http or httpx.AsyncClient(base_url=base_url, timeout=timeout)
        self.uploader = uploader or BatchUploader(http=self.http, on_progress=on_progress)

    async def __aenter__(self) -> "InspectionClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self.http.aclose()

    async def _request(self, method: str, path: str, json: Optional[Dict[str, Any]] = None) -> Any:
        response = await self.http.request(method, f"{API_PREFIX}{path}", json=json)
        try:
            data = response.json()
        except ValueError:
            data = None

        if not response.is_success:
            message = data.get("error") if isinstance(data, dict) else None
            raise InspectionApiError(response.status_code, message or response.reason_phrase)
        return data

    async def request_upload_urls(
        self,
        plate: str,
        files: List[FileDescriptor]
    ) -> List[UploadCredential]:
        data = await self._request("POST", "/get-presigned-urls", json={
            "plate": plate,
            "files": [{"name": f.name, "type": f.type} for f in files],
        })
        credentials = [UploadCredential.model_validate(u) for u in data["urls"]]
        return sorted(credentials, key=lambda c: c.index)

    async def submit(self, plate: str, tires: List[TirePayload]) -> SubmitInspectionResponse:
        data = await self._request("POST", "/submit", json={
            "plate": plate,
            "tires": [t.model_dump(by_alias=True) for t in tires],
        })
        return SubmitInspectionResponse.model_validate(data)

    async def list_inspections(self) -> List[TireInspection]:
        data = await self._request("GET", "/inspections")
        return [TireInspection.model_validate(item) for item in data]

    async def delete_inspection(self, inspection_id: str) -> None:
        await self._request("DELETE", "/inspections", json={"id": inspection_id})

    async def submit_inspection(self, plate: str, tires: List[TireCapture]) -> SubmitInspectionResponse:
        """
        Run the full submission flow

        Each call requests fresh upload URLs, so a failed attempt can simply
        be retried by calling this again.

        Raises:
            ValidationError: If the capture is incomplete (nothing is sent)
            UploadError: If any image failed to upload (nothing is submitted)
            InspectionApiError: If the service rejects a request
        """
        plate = (plate or "").strip()
        if not plate or not tires:
            raise ValidationError("A plate and at least one tire are required")
        for number, tire in enumerate(tires, start=1):
            if not _filled(tire.position):
                raise ValidationError(f"Tire {number} is missing a position")
            if not any(_filled(d) for d in tire.depths or []):
                raise ValidationError(f"Tire {number} needs at least one depth measurement")
            if not any(image is not None for image in tire.images or []):
                raise ValidationError(f"Tire {number} has no photos")

        descriptors, files = build_upload_plan(plate, tires)

        credentials = await self.request_upload_urls(plate, descriptors)
        results = await self.uploader.upload_all(files, credentials)
        raise_for_failures(results)

        slotted_keys: Dict[int, List[Tuple[int, str]]] = {}
        for credential in credentials:
            descriptor = descriptors[credential.index]
            slotted_keys.setdefault(descriptor.tire_index, []).append(
                (IMAGE_SLOTS.index(descriptor.image_slot), credential.key)
            )
        keys_by_tire = {
            number: [key for _, key in sorted(entries)]
            for number, entries in slotted_keys.items()
        }

        payload = [
            TirePayload(
                keys=keys_by_tire.get(number, []),
                depths=[str(d).strip() for d in tire.depths if _filled(d)],
                position=tire.position.strip()
            )
            for number, tire in enumerate(tires, start=1)
        ]

        logger.info(f"Submitting {len(payload)} tires for plate {plate}")
        return await self.submit(plate, payload)
