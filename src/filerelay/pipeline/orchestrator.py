"""Orchestrator — locate → fetch-all → aggregate → archive → upload.

The orchestrator owns no I/O of its own. It sequences four injected
collaborators and turns their failures into exactly one classified
``PipelineError`` per run.

Fetches run concurrently (bounded by a semaphore) and are joined by a single
coordinating loop: the first failure cancels every in-flight sibling and
fails the run, so no partial archive is ever produced.

Usage:
    orchestrator = Orchestrator(
        locator=client, fetcher=client,
        archiver=ZipArchiver(), uploader=MinioUploader.from_settings(),
    )
    object_id = await orchestrator.run("report_.*\\.csv")
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable
from contextlib import asynccontextmanager
from typing import Any

from filerelay.archive import ZipArchiver
from filerelay.clients import FileServerClient, MinioUploader
from filerelay.config import settings
from filerelay.contracts import (
    Archiver,
    FileFetcher,
    FileLocator,
    FilePayload,
    ObjectStoreUploader,
)
from filerelay.errors import (
    ArchiveFailed,
    Cancelled,
    DiscoveryFailed,
    FetchFailed,
    NoFilesFound,
    PipelineError,
    UploadFailed,
)
from filerelay.pipeline.run import PipelineRun, PipelineState

logger = logging.getLogger(__name__)


class Orchestrator:
    """Runs the relay pipeline against injected collaborators.

    Args:
        locator: Finds the remote files for a pattern
        fetcher: Downloads one remote file
        archiver: Combines all payloads into one blob
        uploader: Stores the blob in the object store
        destination: Object name for the archive (default: from settings)
        max_concurrency: Max fetches in flight (default: from settings)
    """

    def __init__(
        self,
        locator: FileLocator,
        fetcher: FileFetcher,
        archiver: Archiver,
        uploader: ObjectStoreUploader,
        destination: str | None = None,
        max_concurrency: int | None = None,
    ) -> None:
        self.locator = locator
        self.fetcher = fetcher
        self.archiver = archiver
        self.uploader = uploader
        self.destination = destination if destination is not None else settings.destination_name
        self.max_concurrency = (
            max_concurrency if max_concurrency is not None else settings.fetch_concurrency
        )
        if not self.destination:
            raise ValueError("destination must not be empty")
        if self.max_concurrency < 1:
            raise ValueError(f"max_concurrency must be >= 1, got {self.max_concurrency}")

    def create_run(
        self,
        pattern: str,
        cancel_event: asyncio.Event | None = None,
    ) -> PipelineRun:
        """Create an idle run. Call ``run.cancel()`` to abort it later."""
        run = PipelineRun(pattern=pattern, destination=self.destination)
        if cancel_event is not None:
            run.cancel_event = cancel_event
        return run

    async def run(
        self,
        pattern: str,
        cancel_event: asyncio.Event | None = None,
    ) -> str:
        """Run the full pipeline once.

        Args:
            pattern: Regex matched against remote file paths
            cancel_event: Optional event; setting it cancels the run

        Returns:
            Identifier of the uploaded archive

        Raises:
            PipelineError: One of DiscoveryFailed, NoFilesFound, FetchFailed,
                ArchiveFailed, UploadFailed or Cancelled
        """
        return await self.execute(self.create_run(pattern, cancel_event))

    async def execute(self, run: PipelineRun) -> str:
        """Execute a run created by ``create_run``. Runs are single-shot."""
        if run.state is not PipelineState.IDLE:
            raise RuntimeError(f"Run for {run.pattern!r} was already executed")

        try:
            return await self._execute(run)
        except PipelineError as e:
            run.error = e
            run.advance(PipelineState.FAILED)
            if isinstance(e, Cancelled):
                logger.warning("Run for %r cancelled: %s", run.pattern, e)
            else:
                logger.error(
                    "Run for %r failed (%s): %s", run.pattern, type(e).__name__, e
                )
            raise
        except asyncio.CancelledError:
            # Task-level cancellation propagates unchanged
            if not run.state.is_terminal:
                run.advance(PipelineState.FAILED)
            logger.warning("Run for %r interrupted by task cancellation", run.pattern)
            raise

    async def _execute(self, run: PipelineRun) -> str:
        # --- Discovery ---
        self._enter(run, PipelineState.DISCOVERING)
        logger.info("Discovering files matching %r", run.pattern)
        try:
            found = await self._guard(run, self.locator.locate(run.pattern))
            handles = list(dict.fromkeys(found))
        except Cancelled:
            raise
        except Exception as e:
            raise DiscoveryFailed(f"File discovery failed: {e}") from e

        if not handles:
            raise NoFilesFound(run.pattern)
        run.handles = handles
        logger.info("Found %d files: %s", len(handles), handles)

        # --- Fetch (fan-out + join) ---
        self._enter(run, PipelineState.FETCHING)
        payloads = await self._fetch_all(run)

        # --- Aggregate ---
        self._enter(run, PipelineState.AGGREGATING)
        run.payloads = payloads
        logger.info(
            "Collected %d payloads (%d bytes)",
            len(payloads), sum(p.size for p in payloads),
        )

        # --- Archive ---
        self._enter(run, PipelineState.ARCHIVING)
        try:
            archive = await self._guard(run, self.archiver.archive(list(payloads)))
        except Cancelled:
            raise
        except Exception as e:
            raise ArchiveFailed(f"Archiving {len(payloads)} files failed: {e}") from e
        if not isinstance(archive, (bytes, bytearray)):
            raise ArchiveFailed(f"Archiver returned {type(archive).__name__}, expected bytes")
        run.archive = bytes(archive)
        logger.info("Archive ready (%d bytes)", len(run.archive))

        # --- Upload ---
        # Last cancellation point. A started upload is never abandoned, so the
        # caller always learns whether the object was stored.
        self._enter(run, PipelineState.UPLOADING)
        try:
            object_id = await self.uploader.upload(run.destination, run.archive)
        except asyncio.CancelledError:
            if asyncio.current_task().cancelling():
                raise
            raise UploadFailed(f"Upload of {run.destination!r} was cancelled by the uploader")
        except Exception as e:
            raise UploadFailed(f"Upload of {run.destination!r} failed: {e}") from e
        if not isinstance(object_id, str) or not object_id:
            raise UploadFailed(f"Uploader returned no identifier for {run.destination!r}")

        run.result = object_id
        run.advance(PipelineState.DONE)
        logger.info("Uploaded %s as %s", run.destination, object_id)
        return object_id

    def _enter(self, run: PipelineRun, state: PipelineState) -> None:
        """Advance to ``state`` unless cancellation was requested."""
        run.advance(state)
        if run.cancelled:
            raise Cancelled(f"Run cancelled before {state.value}", stage=state.value)

    async def _guard(self, run: PipelineRun, aw: Awaitable[Any]) -> Any:
        """Await ``aw`` unless the run's cancel event fires first.

        Collaborator exceptions propagate as-is. If cancellation wins, the
        awaited operation is cancelled and ``Cancelled`` is raised. A
        collaborator that cancels itself without a cancellation request is
        reported as a RuntimeError so the caller classifies it by stage.
        """
        task = asyncio.ensure_future(aw)
        waiter = asyncio.ensure_future(run.cancel_event.wait())
        try:
            await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            await _cancel_and_settle([waiter] if task.done() else [task, waiter])

        if task.done() and not task.cancelled():
            return task.result()
        if not run.cancelled:
            raise RuntimeError(f"{run.state.value} operation was cancelled by its collaborator")
        raise Cancelled(f"Run cancelled while {run.state.value}", stage=run.state.value)

    async def _fetch_all(self, run: PipelineRun) -> list[FilePayload]:
        """Fetch every handle concurrently and join on all of them.

        The loop below is the only place the payload list is mutated. The
        first failure or a cancellation request cancels all pending fetches.
        """
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def _fetch_one(handle: str) -> FilePayload:
            async with semaphore:
                logger.debug("Fetching %s", handle)
                return await self.fetcher.fetch(handle)

        order = {handle: i for i, handle in enumerate(run.handles)}
        tasks = {
            asyncio.create_task(_fetch_one(handle), name=f"fetch:{handle}"): handle
            for handle in run.handles
        }
        waiter = asyncio.ensure_future(run.cancel_event.wait())
        pending = set(tasks)
        payloads: list[FilePayload] = []

        try:
            while pending:
                done, _ = await asyncio.wait(
                    pending | {waiter}, return_when=asyncio.FIRST_COMPLETED
                )
                if waiter in done:
                    raise Cancelled(
                        f"Run cancelled with {len(pending)} fetches outstanding",
                        stage=PipelineState.FETCHING.value,
                    )
                # Same-tick completions are taken in discovery order
                for task in sorted(done, key=lambda t: order[tasks[t]]):
                    pending.discard(task)
                    handle = tasks[task]
                    payloads.append(self._collect(task, handle, len(pending)))
        finally:
            await _cancel_and_settle([*pending, waiter])

        return payloads

    def _collect(self, task: asyncio.Task, handle: str, outstanding: int) -> FilePayload:
        """Return the payload of a finished fetch task or raise FetchFailed."""
        if task.cancelled():
            raise FetchFailed(f"Fetch of {handle} was cancelled", handle=handle)

        error = task.exception()
        if error is not None:
            logger.warning(
                "Fetch failed for %s: %s (cancelling %d in-flight fetches)",
                handle, error, outstanding,
            )
            raise FetchFailed(f"Fetch of {handle} failed: {error}", handle=handle) from error

        payload = task.result()
        if isinstance(payload, (bytes, bytearray)):
            payload = FilePayload(handle=handle, content=bytes(payload))
        elif not isinstance(payload, FilePayload):
            raise FetchFailed(
                f"Fetcher returned {type(payload).__name__} for {handle}", handle=handle
            )
        logger.debug("Fetched %s (%d bytes)", handle, payload.size)
        return payload


async def _cancel_and_settle(tasks: list[asyncio.Future]) -> None:
    """Cancel unfinished tasks and wait until they have all settled."""
    for task in tasks:
        task.cancel()
    if tasks:
        await asyncio.gather(*tasks, return_exceptions=True)


@asynccontextmanager
async def default_orchestrator(
    destination: str | None = None,
    max_concurrency: int | None = None,
) -> AsyncIterator[Orchestrator]:
    """Yield an orchestrator wired to the file server, ZIP and MinIO.

    The file server connection stays open for the lifetime of the context.
    """
    async with FileServerClient.from_settings() as client:
        yield Orchestrator(
            locator=client,
            fetcher=client,
            archiver=ZipArchiver(max_bytes=settings.max_archive_bytes),
            uploader=MinioUploader.from_settings(),
            destination=destination,
            max_concurrency=max_concurrency,
        )


async def run_pipeline(
    pattern: str,
    destination: str | None = None,
    cancel_event: asyncio.Event | None = None,
) -> str:
    """Run the pipeline once with settings-backed collaborators.

    Returns:
        Identifier of the uploaded archive

    Raises:
        PipelineError: If any stage fails or the run is cancelled
    """
    async with default_orchestrator(destination=destination) as orchestrator:
        return await orchestrator.run(pattern, cancel_event=cancel_event)
