from __future__ import annotations

import pytest

from rdcall.domain.project import InputError
from rdcall.domain.scm import (
    ExportItem,
    ImportItem,
    IntegrationKind,
    ItemSelection,
    ScmActionInputs,
    ScmActionRequest,
    ScmJobRef,
    ScmTarget,
    SelectionFlags,
    select_items,
)


def _export_items() -> list[ExportItem]:
    return [
        ExportItem(item_id="A", deleted=False, status="MODIFIED"),
        ExportItem(item_id="B", deleted=True, status="DELETED"),
    ]


def _import_items() -> list[ImportItem]:
    return [
        ImportItem(item_id="A", tracked=True),
        ImportItem(item_id="B", tracked=False),
        ImportItem(item_id="C", tracked=True, deleted=True, job=ScmJobRef(job_id="J1")),
    ]


def test_export_all_items_splits_live_and_deleted() -> None:
    selection = select_items(IntegrationKind.EXPORT, _export_items(), SelectionFlags(all_items=True))
    assert selection.items == ("A",)
    assert selection.deleted_items == ("B",)
    assert selection.deleted_jobs is None


def test_export_all_modified_leaves_deleted_list_untouched() -> None:
    selection = select_items(IntegrationKind.EXPORT, _export_items(), SelectionFlags(all_modified=True))
    assert selection.items == ("A",)
    assert selection.deleted_items is None

    request = ScmActionRequest.from_options(items=["X"], delete=["Y"])
    applied = selection.apply(request)
    assert applied.items == ("A",)
    assert applied.deleted_items == ("Y",)


def test_export_all_deleted_keeps_explicit_items() -> None:
    selection = select_items(IntegrationKind.EXPORT, _export_items(), SelectionFlags(all_deleted=True))
    request = ScmActionRequest.from_options(items=["X"])
    applied = selection.apply(request)
    assert applied.items == ("X",)
    assert applied.deleted_items == ("B",)


def test_import_all_tracked_collects_deleted_jobs() -> None:
    selection = select_items(IntegrationKind.IMPORT, _import_items(), SelectionFlags(all_tracked=True))
    assert selection.items == ("A",)
    assert selection.deleted_jobs == ("J1",)
    assert selection.deleted_items is None


def test_import_all_untracked_selects_new_items() -> None:
    selection = select_items(IntegrationKind.IMPORT, _import_items(), SelectionFlags(all_untracked=True))
    assert selection.items == ("B",)
    assert selection.deleted_jobs == ()


def test_import_all_items_takes_every_live_item() -> None:
    selection = select_items(IntegrationKind.IMPORT, _import_items(), SelectionFlags(all_items=True))
    assert selection.items == ("A", "B")
    assert selection.deleted_jobs == ("J1",)


def test_import_flags_ignored_for_export() -> None:
    flags = SelectionFlags(all_tracked=True, all_untracked=True)
    assert not flags.requires_inputs(IntegrationKind.EXPORT)
    assert select_items(IntegrationKind.EXPORT, _export_items(), flags).empty


def test_selection_deduplicates_ids() -> None:
    items = [ExportItem(item_id="A"), ExportItem(item_id="A"), ExportItem(item_id="C")]
    selection = select_items(IntegrationKind.EXPORT, items, SelectionFlags(all_items=True))
    assert selection.items == ("A", "C")


def test_empty_selection_returns_request_unchanged() -> None:
    request = ScmActionRequest.from_options(fields=["message=hi"], items=["A"])
    assert ItemSelection().apply(request) is request


def test_request_wire_body() -> None:
    request = ScmActionRequest.from_options(
        fields=["message=commit: all", "push=true"],
        items=["a.xml", "a.xml", "b.xml"],
        jobs=["job-1"],
        delete=["c.xml"],
    )
    assert request.to_dict() == {
        "input": {"message": "commit: all", "push": "true"},
        "items": ["a.xml", "b.xml"],
        "jobs": ["job-1"],
        "deleted": ["c.xml"],
        "deletedJobs": [],
    }


def test_request_rejects_malformed_field() -> None:
    with pytest.raises(InputError):
        ScmActionRequest.from_options(fields=["message"])


def test_action_inputs_pick_items_by_integration() -> None:
    payload = {
        "actionId": "project-commit",
        "title": "Commit Changes",
        "integration": "export",
        "fields": [{"name": "message", "required": True, "type": "String"}],
        "exportItems": [{"itemId": "job-a.xml", "deleted": False, "job": {"jobId": "a"}}],
        "importItems": [{"itemId": "ignored.xml", "tracked": True}],
    }
    inputs = ScmActionInputs.from_dict(payload, IntegrationKind.EXPORT)
    assert [item.item_id for item in inputs.items] == ["job-a.xml"]
    assert inputs.items[0].job is not None and inputs.items[0].job.job_id == "a"
    assert inputs.fields[0].required is True
    assert "exportItems" in inputs.to_dict()


def test_target_rejects_unknown_integration() -> None:
    with pytest.raises(InputError) as excinfo:
        ScmTarget.resolve("both", "demo")
    assert "import, export" in str(excinfo.value)


def test_target_builds_paths() -> None:
    target = ScmTarget.resolve("export", None, default_project="ops")
    assert target.path() == "project/ops/scm/export"
    assert target.path("plugin", "git-export", "setup") == "project/ops/scm/export/plugin/git-export/setup"
