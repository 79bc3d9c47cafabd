from __future__ import annotations

import io
import subprocess
import zipfile
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

import httpx
import pytest

from kotaemon_installer import proc
from kotaemon_installer.config import build_config
from kotaemon_installer.types import InstallConfig

Result = int | tuple[int, str]
Responder = Callable[[list[str]], Result]


@dataclass
class Call:
    argv: list[str]
    env: dict | None
    cwd: Path | None
    input: str | None

    @property
    def line(self) -> str:
        return " ".join(self.argv)


class FakeProc:
    """Stand-in for ``proc.run``: records calls, answers by substring rules.

    Rules added later win. A rule answers with a fixed result, a callable, or
    a list of results consumed in order (the last one repeats).
    """

    def __init__(self) -> None:
        self.calls: list[Call] = []
        self._rules: list[tuple[str, Responder]] = []

    def on(self, pattern: str, result: Result | Responder | list[Result]) -> None:
        if isinstance(result, list):
            queue = list(result)

            def responder(argv: list[str]) -> Result:
                return queue.pop(0) if len(queue) > 1 else queue[0]

        elif callable(result):
            responder = result
        else:
            fixed = result

            def responder(argv: list[str]) -> Result:
                return fixed

        self._rules.append((pattern, responder))

    def __call__(self, cmd, *, env=None, cwd=None, input=None, capture=False):
        argv = [str(c) for c in cmd]
        self.calls.append(Call(argv, dict(env) if env is not None else None, cwd, input))
        line = " ".join(argv)
        for pattern, responder in reversed(self._rules):
            if pattern in line:
                res = responder(argv)
                code, out = (res, "") if isinstance(res, int) else res
                return subprocess.CompletedProcess(argv, code, out, "")
        return subprocess.CompletedProcess(argv, 0, "", "")

    def matching(self, pattern: str) -> list[Call]:
        return [c for c in self.calls if pattern in c.line]


@pytest.fixture
def fake_proc(monkeypatch) -> FakeProc:
    fake = FakeProc()
    monkeypatch.setattr(proc, "run", fake)
    return fake


@pytest.fixture
def config(tmp_path: Path) -> InstallConfig:
    root = tmp_path / "project"
    root.mkdir()
    return build_config(root)


def make_zip(files: dict[str, bytes]) -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as z:
        for name, data in files.items():
            z.writestr(name, data)
    return buf.getvalue()


@pytest.fixture
def zip_bytes() -> Callable[[dict[str, bytes]], bytes]:
    return make_zip


Body = bytes | tuple[int, bytes]


class Recorder:
    """httpx MockTransport handler serving canned bodies per URL.

    A route is a body, a ``(status, body)`` pair, or a list of those consumed
    in order (the last one repeats). Unknown URLs get 404.
    """

    def __init__(self, routes: dict[str, Body | list[Body]]) -> None:
        self.routes = {k: list(v) if isinstance(v, list) else v for k, v in routes.items()}
        self.requests: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)
        route = self.routes.get(url)
        if route is None:
            return httpx.Response(404)
        if isinstance(route, list):
            route = route.pop(0) if len(route) > 1 else route[0]
        status, body = (200, route) if isinstance(route, bytes) else route
        return httpx.Response(status, content=body)

    def count(self, url: str) -> int:
        return sum(1 for u in self.requests if u == url)

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self), follow_redirects=True)


@pytest.fixture
def http() -> Callable[..., Recorder]:
    return Recorder
