"""
Training Record Backend: Archival Mirror Models
================================================

What:  ORM models for the read-only historical tables (old_*).
How:   Same columns as app.models.training, with foreign keys pointing inside
       the archive. No service writes to these tables.
"""

from datetime import date
from typing import List, Optional

from sqlalchemy import Date, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class OldPart(Base):
    __tablename__ = "old_part_master"

    part_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    part_name: Mapped[str] = mapped_column(String(100), nullable=False)
    part_color: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)


class OldMenu(Base):
    __tablename__ = "old_menu_master"

    menu_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    part_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("old_part_master.part_id"), nullable=False
    )
    menu_name: Mapped[str] = mapped_column(String(200), nullable=False)


class OldRecord(Base):
    __tablename__ = "old_record"

    record_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    part_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("old_part_master.part_id"), nullable=False
    )
    menu_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("old_menu_master.menu_id"), nullable=True
    )
    set_count: Mapped[int] = mapped_column(Integer, nullable=False)
    note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    create_date: Mapped[date] = mapped_column(Date, nullable=False)

    part: Mapped[Optional[OldPart]] = relationship(OldPart)
    menu: Mapped[Optional[OldMenu]] = relationship(OldMenu)
    set_details: Mapped[List["OldSetDetail"]] = relationship(
        "OldSetDetail",
        order_by="OldSetDetail.set_index",
    )


class OldSetDetail(Base):
    __tablename__ = "old_set_detail"

    record_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("old_record.record_id"), primary_key=True
    )
    set_index: Mapped[int] = mapped_column("current_set", Integer, primary_key=True)
    weight: Mapped[float] = mapped_column(Float, nullable=False)
    reps: Mapped[int] = mapped_column(Integer, nullable=False)
