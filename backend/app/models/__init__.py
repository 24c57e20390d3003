# Models package init: importing it registers every table on Base.metadata
from app.models.archive import OldMenu, OldPart, OldRecord, OldSetDetail
from app.models.training import Menu, Part, Record, SetDetail

__all__ = [
    "Part",
    "Menu",
    "Record",
    "SetDetail",
    "OldPart",
    "OldMenu",
    "OldRecord",
    "OldSetDetail",
]
