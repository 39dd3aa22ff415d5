"""
Inspection Manager

Core business logic for validating, persisting, listing and deleting
tire inspection records.
"""

import logging
import math
from datetime import datetime
from typing import Any, List, Optional
from uuid import uuid4

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tire_inspection_service.core.errors import PersistenceError, ValidationError
from tire_inspection_service.core.notifier import LowDepthNotifier, has_low_depth
from tire_inspection_service.infrastructure.database.models import TireInspectionDB
from tire_inspection_service.infrastructure.storage import StorageProvider, get_storage_provider
from tire_inspection_service.models.inspection import IMAGE_SLOTS, TireInspection
from tire_inspection_service.models.requests import TirePayload

logger = logging.getLogger(__name__)

LOOPBACK_V6 = "::1"
LOOPBACK_V4 = "127.0.0.1"
UNKNOWN_IP = "Unknown"


def normalize_depth(value: Any) -> float:
    """
    Parse one raw depth reading

    Blank, missing, non-numeric and non-finite values become 0; negative
    values clamp to 0.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return 0.0
    try:
        depth = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(depth):
        return 0.0
    return max(0.0, depth)


def resolve_client_ip(forwarded_for: Optional[str], remote_addr: Optional[str]) -> str:
    """First X-Forwarded-For entry, else the connection address; IPv6 loopback shown as IPv4"""
    ip = None
    if forwarded_for:
        ip = forwarded_for.split(",")[0].strip()
    if not ip:
        ip = remote_addr or UNKNOWN_IP
    return LOOPBACK_V4 if ip == LOOPBACK_V6 else ip


def _to_inspection(row: TireInspectionDB) -> TireInspection:
    return TireInspection(
        id=row.id,
        submission_id=row.submission_id,
        plate=row.plate,
        position=row.position,
        images=row.images or [],
        depths=row.depths or [],
        ip=row.ip,
        created_at=row.created_at,
        tire_index=row.tire_index
    )


class InspectionManager:
    """Business logic for tire inspection submissions"""

    def __init__(
        self,
        storage: Optional[StorageProvider] = None,
        notifier: Optional[LowDepthNotifier] = None
    ):
        self._storage = storage
        self.notifier = notifier or LowDepthNotifier()

    @property
    def storage(self) -> StorageProvider:
        # Resolved lazily: list/delete never need S3 configuration
        if self._storage is None:
            self._storage = get_storage_provider()
        return self._storage

    def validate_submission(self, plate: Optional[str], tires: Optional[List[TirePayload]]) -> None:
        """
        Validate a submission; rules are checked in order

        Raises:
            ValidationError: On the first violated rule
        """
        if not plate or not plate.strip() or not isinstance(tires, list) or not tires:
            raise ValidationError("Missing required fields: plate and tires array")

        for number, tire in enumerate(tires, start=1):
            if not tire.position or not tire.position.strip():
                raise ValidationError(f"Tire {number} is missing a position")

        for number, tire in enumerate(tires, start=1):
            if not tire.keys:
                raise ValidationError(f"Tire {number} has no image keys")

        for number, tire in enumerate(tires, start=1):
            if len(tire.keys) > len(IMAGE_SLOTS):
                raise ValidationError(
                    f"Tire {number} has more than {len(IMAGE_SLOTS)} image keys"
                )

    def build_records(self, plate: str, tires: List[TirePayload], client_ip: str) -> List[TireInspection]:
        """Turn a validated payload into one record per tire"""
        submission_id = str(uuid4())
        created_at = datetime.utcnow()
        plate = plate.strip()

        return [
            TireInspection(
                submission_id=submission_id,
                plate=plate,
                position=tire.position.strip(),
                images=[self.storage.public_url(key.strip()) for key in tire.keys if key and key.strip()],
                depths=[normalize_depth(d) for d in tire.depths],
                ip=client_ip,
                created_at=created_at,
                tire_index=index
            )
            for index, tire in enumerate(tires, start=1)
        ]

    async def submit(
        self,
        plate: Optional[str],
        tires: Optional[List[TirePayload]],
        client_ip: str,
        db: AsyncSession
    ) -> List[TireInspection]:
        """
        Validate and persist one inspection submission

        Args:
            plate: Vehicle plate
            tires: Per-tire payloads (keys, depths, position)
            client_ip: Resolved submitter address
            db: Database session

        Returns:
            The persisted records, in tire order

        Raises:
            ValidationError: If validation fails (nothing is written)
            PersistenceError: If the batch insert fails
        """
        self.validate_submission(plate, tires)
        records = self.build_records(plate, tires, client_ip)

        logger.info(f"Attempting to insert {len(records)} records for plate {records[0].plate}")
        try:
            db.add_all([
                TireInspectionDB(
                    id=r.id,
                    submission_id=r.submission_id,
                    plate=r.plate,
                    position=r.position,
                    images=r.images,
                    depths=r.depths,
                    ip=r.ip,
                    created_at=r.created_at,
                    tire_index=r.tire_index
                )
                for r in records
            ])
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"Database error while saving plate {records[0].plate}: {e}")
            raise PersistenceError(f"Database error: {e}") from e

        logger.info(f"Successfully inserted {len(records)} records for plate {records[0].plate}")
        return records

    def needs_alert(self, records: List[TireInspection]) -> bool:
        return has_low_depth(records, self.notifier.threshold)

    async def dispatch_low_depth_alert(self, plate: str, records: List[TireInspection]) -> None:
        """Run the notifier; whatever happens, the submission is unaffected"""
        try:
            await self.notifier.notify(plate, records)
        except Exception as e:
            logger.error(f"Error sending low depth email for plate {plate}: {e}")

    async def list_inspections(self, db: AsyncSession) -> List[TireInspection]:
        """All records, newest first"""
        stmt = (
            select(TireInspectionDB)
            .order_by(TireInspectionDB.created_at.desc(), TireInspectionDB.tire_index)
        )
        try:
            result = await db.execute(stmt)
        except SQLAlchemyError as e:
            logger.error(f"Failed to list inspections: {e}")
            raise PersistenceError(f"Database error: {e}") from e
        return [_to_inspection(row) for row in result.scalars().all()]

    async def delete_inspection(self, inspection_id: str, db: AsyncSession) -> bool:
        """
        Delete one record

        Returns:
            True if deleted, False if not found

        Note:
            Only the database record is removed; its images stay in the
            object store.
        """
        stmt = select(TireInspectionDB).where(TireInspectionDB.id == inspection_id)
        try:
            result = await db.execute(stmt)
            row = result.scalar_one_or_none()
            if not row:
                return False

            await db.delete(row)
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"Failed to delete inspection {inspection_id}: {e}")
            raise PersistenceError(f"Database error: {e}") from e

        logger.info(f"Deleted inspection: {inspection_id}")
        return True
