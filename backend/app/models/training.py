"""
Training Record Backend: Reference and Transactional Models
============================================================

What:  ORM models for the live tables: part_master, menu_master, record, set_detail.
How:   Declarative SQLAlchemy 2.0 mappings on the shared Base. Physical table
       and column names follow the deployed schema; API names (partId,
       setIndex, ...) are applied by the Pydantic schemas.
Who:   Queried and written by ReferenceService and RecordService.

Relationships:
    Part 1 ── * Menu
    Part 1 ── * Record * ── 0..1 Menu
    Record 1 ── * SetDetail   (ordered by set index)

Lifecycle:
    Part:      pre-seeded outside this service, read-only here
    Menu:      created by insertMenu, never updated or deleted
    Record:    created with its SetDetail rows by insertRecord, deleted with
               them by deleteRecord; never updated
"""

from datetime import date
from typing import List, Optional

from sqlalchemy import Date, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class Part(Base):
    """A body region used to classify exercise menus."""

    __tablename__ = "part_master"

    part_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    part_name: Mapped[str] = mapped_column(String(100), nullable=False)
    # Display color chosen by the client (e.g. "#ff0000")
    part_color: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    def __repr__(self) -> str:
        return f"<Part(part_id={self.part_id}, part_name='{self.part_name}')>"


class Menu(Base):
    """
    A named exercise belonging to one body part.

    menu_name is not unique: duplicate (part_id, menu_name) pairs are accepted
    unless the store schema itself forbids them.
    """

    __tablename__ = "menu_master"

    menu_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    part_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("part_master.part_id"), nullable=False
    )
    menu_name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<Menu(menu_id={self.menu_id}, menu_name='{self.menu_name}')>"


class Record(Base):
    """
    One logged workout-session entry for one exercise.

    set_count is what the client reported; the number of SetDetail rows is
    the length of the submitted weight/reps sequences and may differ.
    """

    __tablename__ = "record"

    record_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    part_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("part_master.part_id"), nullable=False
    )
    # NULL when the menu name could not be resolved (allow_null policy)
    menu_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("menu_master.menu_id"), nullable=True
    )
    set_count: Mapped[int] = mapped_column(Integer, nullable=False)
    note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    create_date: Mapped[date] = mapped_column(Date, nullable=False)

    part: Mapped[Optional[Part]] = relationship(Part)
    menu: Mapped[Optional[Menu]] = relationship(Menu)
    set_details: Mapped[List["SetDetail"]] = relationship(
        "SetDetail",
        order_by="SetDetail.set_index",
        back_populates="record",
    )

    def __repr__(self) -> str:
        return f"<Record(record_id={self.record_id}, create_date='{self.create_date}')>"


class SetDetail(Base):
    """One physical set (weight x reps) of a Record."""

    __tablename__ = "set_detail"

    record_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("record.record_id"), primary_key=True
    )
    # 1-based, contiguous per record; assigned by RecordService
    set_index: Mapped[int] = mapped_column("current_set", Integer, primary_key=True)
    weight: Mapped[float] = mapped_column(Float, nullable=False)
    reps: Mapped[int] = mapped_column(Integer, nullable=False)

    record: Mapped[Record] = relationship(Record, back_populates="set_details")

    def __repr__(self) -> str:
        return (
            f"<SetDetail(record_id={self.record_id}, set_index={self.set_index}, "
            f"weight={self.weight}, reps={self.reps})>"
        )
