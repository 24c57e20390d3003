"""
Training Record Backend: Record Service (Multi-Table Writes)
=============================================================

What:  Reads workout records with their sets, creates a record together with
       its set details, and deletes a record together with its set details.
Who:   Called by the fetchRecords, fetchOldRecords, insertRecord and
       deleteRecord handlers.

Write consistency:
    A Record and its SetDetail rows are written or removed as one unit.
    Every step of a write runs in the request's session transaction and is
    committed once at the end; any failure rolls the whole unit back.

    insertRecord
        1. resolve menuName → menu_id          (before the transaction writes)
        2. INSERT record, read generated id     stage: record_insert
        3. INSERT set_detail rows 1..n          stage: set_detail_insert
        4. COMMIT                               stage: commit

    deleteRecord
        1. DELETE set_detail WHERE record_id    stage: set_detail_delete
        2. DELETE record WHERE record_id        stage: record_delete
        3. COMMIT                               stage: commit

    Failure at any stage leaves the store exactly as before the request.
    Deleting an id that does not exist removes zero rows and succeeds.

Unknown menu policy (Settings.unknown_menu_policy):
    allow_null: no matching menu, or a failed lookup, stores menu_id = NULL
    reject:     no matching menu → ValidationError (400);
                failed lookup → DatabaseError (500)
"""

import logging
from typing import List, Optional, Type, Union

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.exceptions import DatabaseError, ValidationError
from app.models.archive import OldRecord
from app.models.training import Record, SetDetail
from app.schemas.training import MessageResponse, RecordCreate, RecordResponse
from app.services.reference_service import ReferenceService
from app.services.store_base import StoreService

logger = logging.getLogger(__name__)

MENU_POLICIES = ("allow_null", "reject")


class RecordService(StoreService):
    """
    Store access for records and set details.

    Attributes:
        references:          Used to resolve menu names
        unknown_menu_policy: "allow_null" or "reject"
    """

    def __init__(
        self,
        references: ReferenceService,
        unknown_menu_policy: str = "allow_null",
        timeout: float = 10.0,
    ):
        super().__init__(timeout=timeout)
        if unknown_menu_policy not in MENU_POLICIES:
            raise ValueError(
                f"Invalid unknown_menu_policy '{unknown_menu_policy}'. "
                f"Must be one of: {MENU_POLICIES}"
            )
        self.references = references
        self.unknown_menu_policy = unknown_menu_policy

    # ── Reads ─────────────────────────────────────────────────────────────

    async def list_records(self, db: AsyncSession) -> List[RecordResponse]:
        return await self._list_records(db, Record)

    async def list_old_records(self, db: AsyncSession) -> List[RecordResponse]:
        return await self._list_records(db, OldRecord)

    async def _list_records(
        self, db: AsyncSession, model: Type[Union[Record, OldRecord]]
    ) -> List[RecordResponse]:
        """
        All records of `model` ordered by record_id, with part, menu and sets
        loaded eagerly (lazy loading is unavailable under asyncio).
        """
        query = (
            select(model)
            .options(
                selectinload(model.part),
                selectinload(model.menu),
                selectinload(model.set_details),
            )
            .order_by(model.record_id.asc())
            .execution_options(populate_existing=True)
        )
        try:
            result = await self._run(db.execute(query), "record_select")
        except DatabaseError as e:
            logger.error("Fetching %s failed: %s", model.__tablename__, e.message)
            raise
        return [RecordResponse.model_validate(r) for r in result.scalars().all()]

    # ── Writes ────────────────────────────────────────────────────────────

    async def create_record(self, db: AsyncSession, payload: RecordCreate) -> MessageResponse:
        """
        Create one record and one set_detail row per (weight, reps) pair.

        Args:
            db:      Request session
            payload: Validated body; weight and reps already have equal length

        Raises:
            ValidationError: Unknown menu under the reject policy
            DatabaseError:   Any store stage failed (nothing was written)
        """
        menu_id = await self._resolve_menu_id(db, payload.menu_name)

        record = Record(
            part_id=payload.part_id,
            menu_id=menu_id,
            set_count=payload.set_count,
            note=payload.note,
            create_date=payload.create_date,
        )
        try:
            db.add(record)
            await self._run(db.flush(), "record_insert")

            db.add_all(
                SetDetail(
                    record_id=record.record_id,
                    set_index=index,
                    weight=weight,
                    reps=reps,
                )
                for index, (weight, reps) in enumerate(
                    zip(payload.weight, payload.reps), start=1
                )
            )
            await self._run(db.flush(), "set_detail_insert")
            await self._run(db.commit(), "commit")
        except DatabaseError as e:
            logger.error("insertRecord failed at %s: %s", e.stage, e.message)
            await self._rollback(db)
            raise

        logger.info(
            "Record %s created: menu_id=%s, %d set(s)",
            record.record_id, menu_id, len(payload.weight),
        )
        return MessageResponse(message="Data inserted successfully")

    async def delete_record(self, db: AsyncSession, record_id: int) -> MessageResponse:
        """
        Delete a record's set details, then the record, in one transaction.

        Raises:
            DatabaseError: A delete or the commit failed (nothing was removed)
        """
        try:
            await self._run(
                db.execute(
                    delete(SetDetail)
                    .where(SetDetail.record_id == record_id)
                    .execution_options(synchronize_session=False)
                ),
                "set_detail_delete",
            )
            result = await self._run(
                db.execute(
                    delete(Record)
                    .where(Record.record_id == record_id)
                    .execution_options(synchronize_session=False)
                ),
                "record_delete",
            )
            await self._run(db.commit(), "commit")
        except DatabaseError as e:
            logger.error("deleteRecord %s failed at %s: %s", record_id, e.stage, e.message)
            await self._rollback(db)
            raise

        if result.rowcount == 0:
            logger.info("deleteRecord %s: no such record", record_id)
        else:
            logger.info("Record %s deleted", record_id)
        return MessageResponse(message="Record deleted successfully")

    async def _resolve_menu_id(self, db: AsyncSession, menu_name: str) -> Optional[int]:
        """Apply the unknown menu policy to a menu name lookup."""
        try:
            menu_id = await self.references.find_menu_id(db, menu_name)
        except DatabaseError as e:
            if self.unknown_menu_policy == "reject":
                logger.error("Menu lookup for %r failed: %s", menu_name, e.message)
                raise
            logger.warning(
                "Menu lookup for %r failed, storing record without menu: %s",
                menu_name, e.message,
            )
            # A failed statement can poison the transaction (PostgreSQL)
            await self._rollback(db)
            return None

        if menu_id is None:
            if self.unknown_menu_policy == "reject":
                raise ValidationError(
                    message=f"Unknown menu name '{menu_name}'",
                    field="menuName",
                )
            logger.info("No menu named %r, storing record without menu", menu_name)
        return menu_id
