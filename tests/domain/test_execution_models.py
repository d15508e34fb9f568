from __future__ import annotations

from rdcall.domain.executions import AbortResult, ExecOutput, Execution, ExecutionHandle, ExecutionList


def test_exec_output_parses_batch() -> None:
    batch = ExecOutput.from_dict(
        {
            "id": "12",
            "offset": "1024",
            "lastModified": 1700000000000,
            "completed": False,
            "execCompleted": False,
            "execState": "running",
            "percentLoaded": 50.0,
            "entries": [{"log": "hello", "level": "NORMAL", "node": "web-1"}, "junk"],
        }
    )
    assert batch.offset == 1024
    assert batch.last_modified == 1700000000000
    assert [entry.log for entry in batch.entries] == ["hello"]
    assert batch.entries[0].node == "web-1"
    assert batch.percent_loaded == 50.0


def test_handle_tracks_server_cursor() -> None:
    handle = ExecutionHandle("12")
    handle.advance(ExecOutput(entries=(), offset=10, last_modified=5, completed=False, exec_state="running"))
    assert (handle.offset, handle.last_modified, handle.completed) == (10, 5, False)
    handle.advance(ExecOutput(entries=(), offset=20, last_modified=9, completed=True, exec_state="succeeded"))
    assert handle.completed
    assert (handle.offset, handle.exec_state) == (20, "succeeded")


def test_execution_list_reads_paging() -> None:
    listing = ExecutionList.from_dict(
        {
            "paging": {"count": 1, "total": 3, "offset": 0, "max": 1},
            "executions": [
                {
                    "id": 7,
                    "status": "running",
                    "description": "deploy",
                    "permalink": "https://rd/project/ops/execution/show/7",
                    "job": {"id": "job-1", "name": "deploy"},
                }
            ],
        }
    )
    assert listing.count == 1 and listing.total == 3 and listing.limit == 1
    execution = listing.executions[0]
    assert execution.to_basic_string() == "[7] deploy <https://rd/project/ops/execution/show/7>"
    assert execution.to_status_string() == "[7] running"
    assert listing.to_dict()["executions"][0]["job"] == {"id": "job-1", "name": "deploy"}


def test_abort_result_failed_flag() -> None:
    result = AbortResult.from_dict(
        {"abort": {"status": "failed", "reason": "Job is not running"}, "execution": {"id": "7", "status": "succeeded"}}
    )
    assert result.failed
    assert result.reason == "Job is not running"
    assert result.execution is not None and result.execution.status == "succeeded"


def test_execution_keeps_server_and_node_details() -> None:
    execution = Execution.from_dict(
        {
            "id": 8,
            "status": "failed",
            "serverUUID": "3425B691-7319-4EEE-8425-F053C628B4BA",
            "date-started": {"unixtime": 1431536339809, "date": "2015-05-13T16:58:59Z"},
            "date-ended": {"unixtime": "1431536346423", "date": "2015-05-13T16:59:06Z"},
            "successfulNodes": ["web-1"],
            "failedNodes": ["web-2", "web-3"],
        }
    )
    assert execution.server_uuid == "3425B691-7319-4EEE-8425-F053C628B4BA"
    assert execution.date_started is not None and execution.date_started.unixtime == 1431536339809
    assert execution.date_ended is not None and execution.date_ended.unixtime == 1431536346423
    assert execution.failed_nodes == ("web-2", "web-3")

    data = execution.to_dict()
    assert data["date-started"] == {"unixtime": 1431536339809, "date": "2015-05-13T16:58:59Z"}
    assert data["successfulNodes"] == ["web-1"]
    assert data["serverUUID"] == "3425B691-7319-4EEE-8425-F053C628B4BA"


def test_running_execution_has_no_end_date() -> None:
    execution = Execution.from_dict({"id": "9", "date-started": {"unixtime": 1}})
    assert execution.date_ended is None
    assert execution.to_dict()["date-ended"] is None
    assert execution.to_dict()["failedNodes"] == []
