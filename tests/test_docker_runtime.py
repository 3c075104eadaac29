# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Tests for the docker CLI adapter."""

from __future__ import annotations

import json
from pathlib import Path
from subprocess import CompletedProcess

import pytest

from plex_inject.errors import ContainerCommandError
from plex_inject.process_utils import SubprocessExecutionError
from plex_inject.runtime import ContainerHandle, ContainerRuntime, DockerRuntime

HANDLE = ContainerHandle(id="a" * 64, name="plex-user1")


class _Calls(list):
    responses: dict[str, CompletedProcess[str]]
    timeouts: list[float | None]


@pytest.fixture
def recorded(monkeypatch: pytest.MonkeyPatch) -> _Calls:
    calls = _Calls()
    calls.timeouts = []
    responses: dict[str, CompletedProcess[str]] = {}

    def fake_run(args, *, check=True, capture_output=False, timeout=None):
        calls.append(list(args))
        calls.timeouts.append(timeout)
        completed = responses.get(args[1], CompletedProcess(list(args), 0, stdout="", stderr=""))
        if check and completed.returncode != 0:
            raise SubprocessExecutionError(args, completed.returncode, completed.stdout, completed.stderr)
        return completed

    monkeypatch.setattr("plex_inject.runtime.docker.require_executable", lambda name: f"/usr/bin/{name}")
    monkeypatch.setattr("plex_inject.runtime.docker.run_command", fake_run)
    calls.responses = responses
    return calls


def test_runtime_satisfies_protocol(recorded) -> None:
    assert isinstance(DockerRuntime(), ContainerRuntime)


def test_list_ids_filters_by_name(recorded) -> None:
    recorded.responses["ps"] = CompletedProcess([], 0, stdout="abc\n\ndef\n", stderr="")

    assert DockerRuntime().list_ids("^plex$") == ["abc", "def"]
    assert recorded[0] == ["/usr/bin/docker", "ps", "-aq", "--no-trunc", "--filter", "name=^plex$"]


def test_inspect_returns_document(recorded) -> None:
    document = {"Id": HANDLE.id, "Name": "/plex-user1", "State": {"Running": True}}
    recorded.responses["inspect"] = CompletedProcess([], 0, stdout=json.dumps([document]), stderr="")
    runtime = DockerRuntime()

    assert runtime.inspect("plex-user1") == document
    assert runtime.is_running(HANDLE)


def test_inspect_miss_returns_none(recorded) -> None:
    recorded.responses["inspect"] = CompletedProcess([], 1, stdout="", stderr="No such container")
    runtime = DockerRuntime()

    assert runtime.inspect("ghost") is None
    assert not runtime.is_running(HANDLE)


def test_container_commands(recorded, tmp_path: Path) -> None:
    runtime = DockerRuntime()

    runtime.stop(HANDLE)
    runtime.start(HANDLE)
    runtime.exec(HANDLE, ["find", "/config"], check=False)
    runtime.copy_from(HANDLE, "/config/x.db", tmp_path)

    assert [call[1:] for call in recorded] == [
        ["stop", HANDLE.id],
        ["start", HANDLE.id],
        ["exec", HANDLE.id, "find", "/config"],
        ["cp", f"{HANDLE.id}:/config/x.db", str(tmp_path)],
    ]


def test_failures_become_container_errors(recorded) -> None:
    recorded.responses["stop"] = CompletedProcess([], 1, stdout="", stderr="permission denied\n")

    with pytest.raises(ContainerCommandError, match="docker stop failed: permission denied"):
        DockerRuntime().stop(HANDLE)


def test_calls_carry_the_configured_timeout(recorded) -> None:
    runtime = DockerRuntime(timeout=12.5)

    runtime.start(HANDLE)
    runtime.list_ids("plex")

    assert recorded.timeouts == [12.5, 12.5]


def test_timed_out_call_is_a_container_error(recorded) -> None:
    recorded.responses["stop"] = CompletedProcess([], 124, stdout="", stderr="Command timed out after 5.0s")

    with pytest.raises(ContainerCommandError, match="timed out"):
        DockerRuntime(timeout=5.0).stop(HANDLE)


def test_malformed_inspect_output_is_a_container_error(recorded) -> None:
    recorded.responses["inspect"] = CompletedProcess([], 0, stdout="[{not json", stderr="")

    with pytest.raises(ContainerCommandError, match="malformed"):
        DockerRuntime().inspect("plex-user1")
