"""SCM domain exports."""

from .models import (
    SYNCH_STATE_CLEAN,
    ExportItem,
    ImportItem,
    IntegrationKind,
    ScmActionInputs,
    ScmActionRequest,
    ScmActionResult,
    ScmConfig,
    ScmInputField,
    ScmItem,
    ScmJobRef,
    ScmPlugin,
    ScmProjectStatus,
    ScmTarget,
)
from .selection import ItemSelection, SelectionFlags, select_items

__all__ = [
    "SYNCH_STATE_CLEAN",
    "ExportItem",
    "ImportItem",
    "IntegrationKind",
    "ItemSelection",
    "ScmActionInputs",
    "ScmActionRequest",
    "ScmActionResult",
    "ScmConfig",
    "ScmInputField",
    "ScmItem",
    "ScmJobRef",
    "ScmPlugin",
    "ScmProjectStatus",
    "ScmTarget",
    "SelectionFlags",
    "select_items",
]
