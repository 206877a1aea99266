"""
Watch supervisor.

After the initial build, serves dist/ and re-runs the stage bound to each
changed source file. Bindings are a plain table of (glob -> stage)
evaluated by one dispatch function, so what a change triggers can be
tested without a running watcher.

Policy
------
- Changes arriving within ``debounce_ms`` are handled as one batch.
- Each stage matched by a batch runs once for that batch; bindings that
  re-run per file receive only the changed files.
- Stages run one at a time in a worker thread; the event loop keeps
  serving HTTP and websocket traffic meanwhile.
- A failing stage is reported and watching continues.
- Deleted files trigger nothing.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable, Optional

from watchfiles import Change

from config import (
    BuildPaths,
    SERVER_HOST,
    SERVER_PORT,
    WATCH_DEBOUNCE_MS,
    WATCH_GLOBS,
)
from stages._models import StageResult
from utils.errors import StageError
from utils.globs import matches
from utils.notify import get_notifier

from .app import create_app
from .models import MessageType, ReloadMessage, StageRecord, StageStatus, StatusResponse
from .reload import ReloadHub


class SupervisorState(str, Enum):
    STOPPED = "stopped"
    SERVING = "serving"


@dataclass(frozen=True)
class WatchBinding:
    """A source glob and the stage it re-runs."""
    pattern: str
    stage: str
    refresh: bool = False
    per_file: bool = False


def build_bindings(table: Iterable[tuple] = WATCH_GLOBS) -> list[WatchBinding]:
    """Build bindings from (glob, stage, refresh, per_file) rows."""
    return [WatchBinding(*row) for row in table]


def match_bindings(
    bindings: list[WatchBinding],
    changes: Iterable[tuple[Change, str]],
    src_dir: Path,
) -> list[tuple[WatchBinding, list[Path]]]:
    """
    Resolve a batch of changes to the stages it triggers.

    Parameters
    ----------
    bindings : list[WatchBinding]
        Binding table, in priority order
    changes : iterable of (Change, str)
        Batch as yielded by watchfiles
    src_dir : Path
        Source root the binding globs are relative to

    Returns
    -------
    list[tuple[WatchBinding, list[Path]]]
        One entry per triggered stage, ordered by the stage's first
        binding in the table, with the changed files that matched
    """
    src_dir = src_dir.resolve()
    grouped: dict[str, tuple[WatchBinding, list[Path]]] = {}

    for change, raw_path in sorted(changes, key=lambda c: c[1]):
        if change == Change.deleted:
            continue
        path = Path(raw_path).resolve()
        try:
            rel = path.relative_to(src_dir).as_posix()
        except ValueError:
            continue
        for binding in bindings:
            if matches(rel, [binding.pattern]):
                _, changed = grouped.setdefault(binding.stage, (binding, []))
                if path not in changed:
                    changed.append(path)

    first_index: dict[str, int] = {}
    for i, binding in enumerate(bindings):
        first_index.setdefault(binding.stage, i)
    return sorted(grouped.values(), key=lambda entry: first_index[entry[0].stage])


class WatchSupervisor:
    """Serves dist/ and dispatches source changes to stages."""

    def __init__(
        self,
        paths: BuildPaths,
        runner: Callable[..., StageResult],
        host: str = SERVER_HOST,
        port: int = SERVER_PORT,
        debounce_ms: int = WATCH_DEBOUNCE_MS,
        bindings: Optional[list[WatchBinding]] = None,
        hub: Optional[ReloadHub] = None,
        verbose: bool = True,
    ):
        self.paths = paths
        self.runner = runner
        self.host = host
        self.port = port
        self.debounce_ms = debounce_ms
        self.bindings = bindings if bindings is not None else build_bindings()
        self.hub = hub or ReloadHub()
        self.verbose = verbose
        self.state = SupervisorState.STOPPED
        self.records: dict[str, StageRecord] = {}

    def status(self) -> StatusResponse:
        return StatusResponse(
            state=self.state.value,
            clients=self.hub.client_count,
            stages=list(self.records.values()),
        )

    def start(self) -> None:
        """Serve and watch until the process is interrupted."""
        if self.state is SupervisorState.SERVING:
            raise RuntimeError("Watch supervisor is already serving")
        asyncio.run(self.serve())

    async def serve(self) -> None:
        import uvicorn
        from watchfiles import awatch

        app = create_app(self.paths.dist, self.hub, self.status)
        server = uvicorn.Server(uvicorn.Config(app, host=self.host, port=self.port, log_level='warning'))
        stop = asyncio.Event()

        self.state = SupervisorState.SERVING
        server_task = asyncio.create_task(server.serve())
        server_task.add_done_callback(lambda _: stop.set())

        print("=" * 60)
        print(f"Serving {self.paths.dist} at http://{self.host}:{self.port}")
        print(f"Watching {self.paths.src} ({len(self.bindings)} bindings)")
        print("=" * 60)

        try:
            async for changes in awatch(self.paths.src, debounce=self.debounce_ms, stop_event=stop):
                await self.dispatch(changes)
        finally:
            server.should_exit = True
            await server_task

    async def dispatch(self, changes: Iterable[tuple[Change, str]]) -> list[StageRecord]:
        """Run every stage triggered by a batch of changes, in table order."""
        records = []
        for binding, changed in match_bindings(self.bindings, changes, self.paths.src):
            if self.verbose:
                names = ', '.join(p.name for p in changed)
                print(f"Changed: {names} -> {binding.stage}")
            records.append(await self.run_binding(binding, changed))
        return records

    async def run_binding(self, binding: WatchBinding, changed: list[Path]) -> StageRecord:
        """Run one binding's stage and push a client refresh if it has one."""
        options = {'only': changed} if binding.per_file else {}
        try:
            result = await asyncio.to_thread(
                self.runner, binding.stage, paths=self.paths, verbose=self.verbose, **options
            )
        except StageError as e:
            get_notifier().error(e)
            record = StageRecord(stage=binding.stage, status=StageStatus.FAILED, message=str(e))
            self.records[binding.stage] = record
            return record

        outputs = [
            p.relative_to(self.paths.dist).as_posix()
            for p in result.outputs
            if self.paths.dist in p.parents
        ]
        record = StageRecord(
            stage=binding.stage,
            status=StageStatus.WARNING if result.warnings else StageStatus.SUCCESS,
            duration=result.duration,
            outputs=outputs,
        )
        self.records[binding.stage] = record

        if binding.refresh:
            kind = MessageType.CSS if binding.stage == 'styles' else MessageType.RELOAD
            await self.hub.broadcast(ReloadMessage(type=kind, stage=binding.stage, paths=outputs))
        return record
