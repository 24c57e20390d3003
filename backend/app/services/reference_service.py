"""
Training Record Backend: Reference Data Service
================================================

What:  Reads body parts and exercise menus (live and archival) and creates menus.
Who:   Called by the fetchPart, fetchMenu, fetchOldPart, fetchOldMenu and
       insertMenu handlers; RecordService uses find_menu_id().

Query shape:
    Parts:  SELECT part_id, part_name, part_color ... ORDER BY part_id
    Menus:  SELECT menu_id, part_id, menu_name ... ORDER BY menu_id
    No filtering, no pagination; an empty table yields [].
"""

import logging
from typing import List, Optional, Type, Union

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import DatabaseError
from app.models.archive import OldMenu, OldPart
from app.models.training import Menu, Part
from app.schemas.training import (
    MenuCreate,
    MenuResponse,
    MessageResponse,
    PartResponse,
)
from app.services.store_base import StoreService

logger = logging.getLogger(__name__)


class ReferenceService(StoreService):
    """
    Store access for reference tables.

    Responsibilities:
        - list_parts() / list_old_parts(): all parts ordered by id
        - list_menus() / list_old_menus(): all menus ordered by id
        - find_menu_id(): first menu id for a name, or None
        - create_menu(): insert one menu (duplicates allowed)
    """

    async def list_parts(self, db: AsyncSession) -> List[PartResponse]:
        return await self._list_parts(db, Part)

    async def list_old_parts(self, db: AsyncSession) -> List[PartResponse]:
        return await self._list_parts(db, OldPart)

    async def list_menus(self, db: AsyncSession) -> List[MenuResponse]:
        return await self._list_menus(db, Menu)

    async def list_old_menus(self, db: AsyncSession) -> List[MenuResponse]:
        return await self._list_menus(db, OldMenu)

    async def _list_parts(
        self, db: AsyncSession, model: Type[Union[Part, OldPart]]
    ) -> List[PartResponse]:
        query = select(model).order_by(model.part_id.asc())
        try:
            result = await self._run(db.execute(query), "part_select")
        except DatabaseError as e:
            logger.error("Fetching %s failed: %s", model.__tablename__, e.message)
            raise
        return [PartResponse.model_validate(part) for part in result.scalars().all()]

    async def _list_menus(
        self, db: AsyncSession, model: Type[Union[Menu, OldMenu]]
    ) -> List[MenuResponse]:
        query = select(model).order_by(model.menu_id.asc())
        try:
            result = await self._run(db.execute(query), "menu_select")
        except DatabaseError as e:
            logger.error("Fetching %s failed: %s", model.__tablename__, e.message)
            raise
        return [MenuResponse.model_validate(menu) for menu in result.scalars().all()]

    async def find_menu_id(self, db: AsyncSession, menu_name: str) -> Optional[int]:
        """
        Resolve a menu name to its id.

        Names are not unique; when several menus share the name the lowest
        menu_id wins so repeated lookups are stable.

        Returns:
            The menu id, or None when no menu has this name

        Raises:
            DatabaseError: The lookup itself failed (stage "menu_lookup")
        """
        query = (
            select(Menu.menu_id)
            .where(Menu.menu_name == menu_name)
            .order_by(Menu.menu_id.asc())
            .limit(1)
        )
        result = await self._run(db.execute(query), "menu_lookup")
        return result.scalars().first()

    async def create_menu(self, db: AsyncSession, payload: MenuCreate) -> MessageResponse:
        """
        Insert one menu row.

        No uniqueness check is made here; any constraint lives in the store
        schema and surfaces as a DatabaseError.
        """
        menu = Menu(part_id=payload.part_id, menu_name=payload.menu_name)
        try:
            db.add(menu)
            await self._run(db.flush(), "menu_insert")
            await self._run(db.commit(), "commit")
        except DatabaseError as e:
            logger.error("insertMenu failed at %s: %s", e.stage, e.message)
            await self._rollback(db)
            raise

        logger.info(
            "Menu %s created: part_id=%s name=%r",
            menu.menu_id, payload.part_id, payload.menu_name,
        )
        return MessageResponse(message="Data inserted successfully")
