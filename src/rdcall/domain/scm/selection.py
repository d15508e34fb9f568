"""Select perform items from the live inputs of an SCM action."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable, Tuple

from rdcall.domain.scm.models import (
    IntegrationKind,
    ScmActionRequest,
    ScmItem,
    unique_ids,
)


@dataclass(frozen=True)
class SelectionFlags:
    all_items: bool = False
    all_modified: bool = False
    all_deleted: bool = False
    all_tracked: bool = False
    all_untracked: bool = False

    def requires_inputs(self, integration: IntegrationKind) -> bool:
        """True when item lists must be recomputed from the Inputs call."""

        if self.all_items:
            return True
        if integration is IntegrationKind.EXPORT:
            return self.all_modified or self.all_deleted
        return self.all_tracked or self.all_untracked


@dataclass(frozen=True)
class ItemSelection:
    """Recomputed request fields; ``None`` leaves the explicit value in place."""

    items: Tuple[str, ...] | None = None
    deleted_items: Tuple[str, ...] | None = None
    deleted_jobs: Tuple[str, ...] | None = None

    @property
    def empty(self) -> bool:
        return self.items is None and self.deleted_items is None and self.deleted_jobs is None

    def apply(self, request: ScmActionRequest) -> ScmActionRequest:
        changes = {}
        if self.items is not None:
            changes["items"] = self.items
        if self.deleted_items is not None:
            changes["deleted_items"] = self.deleted_items
        if self.deleted_jobs is not None:
            changes["deleted_jobs"] = self.deleted_jobs
        return replace(request, **changes) if changes else request


def _matches(item: ScmItem, flags: SelectionFlags, *, deleted: bool) -> bool:
    if item.deleted != deleted:
        return False
    if flags.all_items:
        return True
    if item.kind is IntegrationKind.EXPORT:
        return flags.all_deleted if deleted else flags.all_modified
    return (flags.all_tracked and item.tracked) or (flags.all_untracked and not item.tracked)


def select_items(
    integration: IntegrationKind,
    items: Iterable[ScmItem],
    flags: SelectionFlags,
) -> ItemSelection:
    if not flags.requires_inputs(integration):
        return ItemSelection()
    candidates = [item for item in items if item.kind is integration]
    live = unique_ids(item.item_id for item in candidates if _matches(item, flags, deleted=False))
    removed = [item for item in candidates if _matches(item, flags, deleted=True)]

    if integration is IntegrationKind.EXPORT:
        return ItemSelection(
            items=live if flags.all_items or flags.all_modified else None,
            deleted_items=(
                unique_ids(item.item_id for item in removed)
                if flags.all_items or flags.all_deleted
                else None
            ),
        )
    return ItemSelection(
        items=live,
        deleted_jobs=unique_ids(item.job.job_id for item in removed if item.job is not None),
    )
