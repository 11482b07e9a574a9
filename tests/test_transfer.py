import asyncio
import os
import shlex

import pytest

from archive_dl.models.config import DownloadConfig
from archive_dl.models.manifest import PlanEntry
from archive_dl.transfer.invoker import (
    INVOCATION_FILENAME,
    TransferInvoker,
    build_invocation,
    dedupe_plan,
)

from .conftest import FakeResponse, range_route

BASE = "https://archive.org/download/foo"
BODY = b"hello archive world"


@pytest.fixture
def dest(tmp_path):
    return str(tmp_path)


def make_config(dest, **kwargs):
    return DownloadConfig(identifier="foo", destination=dest, quiet=True, **kwargs)


def entry(dest, name, remote=None):
    return PlanEntry(url=f"{BASE}/{remote or name}", output_path=f"{dest}/{name}")


def run(config, plan):
    invoker = TransferInvoker(config)
    status = asyncio.run(invoker.execute(plan))
    return invoker, status


class TestInvocationRecord:
    def test_resume_and_progress_flags(self, dest):
        config = DownloadConfig(identifier="foo", destination=dest)
        plan = [entry(dest, "a b.txt", "a%20b.txt"), entry(dest, "c.txt")]

        script = build_invocation(plan, config)
        lines = script.splitlines()

        assert lines[0] == "#!/bin/sh"
        assert lines[1].startswith("curl -L --create-dirs --parallel --parallel-max 4")
        assert "--parallel-immediate" in lines[1]
        assert "--progress-bar" in lines[1]
        assert lines[1].endswith("-C - \\")
        assert lines[2].strip() == (
            f"{BASE}/a%20b.txt -o {shlex.quote(dest + '/a b.txt')} \\"
        )
        assert lines[3].strip() == f"{BASE}/c.txt -o {shlex.quote(dest + '/c.txt')}"

    def test_quiet_and_force_flags(self, dest):
        config = DownloadConfig(
            identifier="foo", destination=dest, quiet=True, force=True, jobs=8
        )
        first_line = build_invocation([entry(dest, "a.txt")], config).splitlines()[1]
        assert "--parallel-max 8" in first_line
        assert " -s" in first_line
        assert "-C -" not in first_line
        assert "--progress-bar" not in first_line

    def test_record_is_written_and_overwritten(self, dest, patch_download_pool):
        patch_download_pool.routes[f"{BASE}/a.txt"] = range_route(BODY)
        patch_download_pool.routes[f"{BASE}/b.txt"] = range_route(BODY)
        config = make_config(dest)

        run(config, [entry(dest, "a.txt"), entry(dest, "b.txt")])
        run(config, [entry(dest, "b.txt")])

        script = os.path.join(dest, INVOCATION_FILENAME)
        with open(script, encoding="utf-8") as f:
            content = f.read()
        assert "b.txt" in content
        assert "a.txt" not in content


class TestDedupe:
    def test_last_entry_wins(self):
        plan = [
            PlanEntry(url="u1", output_path="/d/x"),
            PlanEntry(url="u2", output_path="/d/y"),
            PlanEntry(url="u3", output_path="/d/x"),
        ]
        assert dedupe_plan(plan) == [plan[1], plan[2]]

    def test_no_collisions_is_identity(self):
        plan = [PlanEntry(url="u1", output_path="/d/x")]
        assert dedupe_plan(plan) == plan


class TestExecute:
    def test_fresh_download(self, dest, patch_download_pool):
        patch_download_pool.routes[f"{BASE}/a%20b.txt"] = range_route(BODY)

        invoker, status = run(make_config(dest), [entry(dest, "a b.txt", "a%20b.txt")])

        assert status == 0
        with open(f"{dest}/a b.txt", "rb") as f:
            assert f.read() == BODY
        assert invoker.stats.files_completed == 1
        assert invoker.stats.bytes_downloaded == len(BODY)
        assert "Range" not in patch_download_pool.requests[0][1]

    def test_resume_continues_partial_file(self, dest, patch_download_pool):
        patch_download_pool.routes[f"{BASE}/a.txt"] = range_route(BODY)
        with open(f"{dest}/a.txt", "wb") as f:
            f.write(BODY[:5])

        invoker, status = run(make_config(dest), [entry(dest, "a.txt")])

        assert status == 0
        assert patch_download_pool.requests[0][1]["Range"] == "bytes=5-"
        with open(f"{dest}/a.txt", "rb") as f:
            assert f.read() == BODY
        assert invoker.stats.files_resumed == 1
        assert invoker.stats.bytes_downloaded == len(BODY) - 5

    def test_force_overwrites_partial_file(self, dest, patch_download_pool):
        patch_download_pool.routes[f"{BASE}/a.txt"] = range_route(BODY)
        with open(f"{dest}/a.txt", "wb") as f:
            f.write(b"garbage")

        invoker, status = run(make_config(dest, force=True), [entry(dest, "a.txt")])

        assert status == 0
        assert "Range" not in patch_download_pool.requests[0][1]
        with open(f"{dest}/a.txt", "rb") as f:
            assert f.read() == BODY
        assert invoker.stats.files_resumed == 0

    def test_complete_file_is_left_alone(self, dest, patch_download_pool):
        patch_download_pool.routes[f"{BASE}/a.txt"] = range_route(BODY)
        with open(f"{dest}/a.txt", "wb") as f:
            f.write(BODY)

        invoker, status = run(make_config(dest), [entry(dest, "a.txt")])

        assert status == 0
        assert invoker.stats.files_already_complete == 1
        assert invoker.stats.bytes_downloaded == 0
        with open(f"{dest}/a.txt", "rb") as f:
            assert f.read() == BODY

    def test_server_without_range_support_restarts(self, dest, patch_download_pool):
        patch_download_pool.routes[f"{BASE}/a.txt"] = range_route(
            BODY, honor_range=False
        )
        with open(f"{dest}/a.txt", "wb") as f:
            f.write(BODY[:5])

        invoker, status = run(make_config(dest), [entry(dest, "a.txt")])

        assert status == 0
        with open(f"{dest}/a.txt", "rb") as f:
            assert f.read() == BODY
        assert invoker.stats.files_resumed == 0

    def test_failure_sets_status_and_keeps_going(self, dest, patch_download_pool):
        patch_download_pool.routes[f"{BASE}/ok.txt"] = range_route(BODY)
        patch_download_pool.routes[f"{BASE}/gone.txt"] = FakeResponse(status=404)

        invoker, status = run(
            make_config(dest), [entry(dest, "gone.txt"), entry(dest, "ok.txt")]
        )

        assert status == 1
        assert invoker.stats.files_failed == 1
        assert invoker.stats.files_completed == 1
        assert invoker.stats.failures[0][0] == f"{dest}/gone.txt"
        assert not os.path.exists(f"{dest}/gone.txt")

    def test_creates_subdirectories(self, dest, patch_download_pool):
        patch_download_pool.routes[f"{BASE}/d%2Fe.txt"] = range_route(BODY)

        _, status = run(make_config(dest), [entry(dest, "d/e.txt", "d%2Fe.txt")])

        assert status == 0
        with open(f"{dest}/d/e.txt", "rb") as f:
            assert f.read() == BODY

    def test_refuses_paths_outside_destination(self, dest, patch_download_pool):
        patch_download_pool.routes[f"{BASE}/evil"] = range_route(BODY)
        plan = [PlanEntry(url=f"{BASE}/evil", output_path=f"{dest}/../evil")]

        invoker, status = run(make_config(dest), plan)

        assert status == 1
        assert invoker.stats.files_failed == 1
        assert patch_download_pool.requests == []

    def test_collisions_download_last_entry_only(self, dest, patch_download_pool):
        patch_download_pool.routes[f"{BASE}/v1/x.txt"] = range_route(b"first")
        patch_download_pool.routes[f"{BASE}/v2/x.txt"] = range_route(b"second")
        plan = [
            PlanEntry(url=f"{BASE}/v1/x.txt", output_path=f"{dest}/x.txt"),
            PlanEntry(url=f"{BASE}/v2/x.txt", output_path=f"{dest}/x.txt"),
        ]

        invoker, status = run(make_config(dest), plan)

        assert status == 0
        assert invoker.stats.files_total == 1
        with open(f"{dest}/x.txt", "rb") as f:
            assert f.read() == b"second"

    def test_concurrency_is_bounded_by_jobs(self, dest, patch_download_pool):
        TrackingResponse.active = 0
        TrackingResponse.peak = 0
        plan = []
        for i in range(6):
            patch_download_pool.routes[f"{BASE}/f{i}.bin"] = (
                lambda headers: TrackingResponse(body=BODY, delay=0.01)
            )
            plan.append(entry(dest, f"f{i}.bin"))

        invoker, status = run(make_config(dest, jobs=2), plan)

        assert status == 0
        assert invoker.stats.files_completed == 6
        assert 1 <= TrackingResponse.peak <= 2


class TrackingResponse(FakeResponse):
    """Counts how many responses are open at the same time."""

    active = 0
    peak = 0

    async def __aenter__(self):
        TrackingResponse.active += 1
        TrackingResponse.peak = max(TrackingResponse.peak, TrackingResponse.active)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        TrackingResponse.active -= 1
        return False
