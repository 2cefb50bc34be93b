"""Example 1: In-Memory Relay

Runs the full pipeline against in-memory collaborators, then shows what a
failed fetch and a cancelled run look like.

No file server or MinIO instance is needed.
"""

import asyncio
import logging

from filerelay.archive import ZipArchiver
from filerelay.clients import InMemoryFileSource, InMemoryObjectStore
from filerelay.errors import Cancelled, FetchFailed
from filerelay.pipeline import Orchestrator


async def main() -> None:
    """Run the example."""
    print("=" * 60)
    print("FileRelay — Example 1: In-Memory Relay")
    print("=" * 60)
    print()

    store = InMemoryObjectStore()

    # Step 1: Successful run
    print("Step 1: Relaying the demo files...")
    source = InMemoryFileSource.demo()
    orchestrator = Orchestrator(source, source, ZipArchiver(), store)
    object_id = await orchestrator.run(r"file\d\.txt$")
    print(f"  ✓ Stored as {object_id} ({len(store.objects['result.zip'])} bytes)")
    print()

    # Step 2: One download fails, the whole run fails
    print("Step 2: Relaying with a broken download...")
    broken = InMemoryFileSource.demo()
    broken.failing.add("/remote/path/file2.txt")
    orchestrator = Orchestrator(broken, broken, ZipArchiver(), store)
    try:
        await orchestrator.run("file")
    except FetchFailed as e:
        print(f"  ✗ {type(e).__name__}: {e}")
        print(f"    caused by: {e.__cause__!r}")
    print()

    # Step 3: Cancel before the run gets going
    print("Step 3: Cancelling a run...")
    orchestrator = Orchestrator(source, source, ZipArchiver(), store)
    run = orchestrator.create_run("file")
    run.cancel()
    try:
        await orchestrator.execute(run)
    except Cancelled as e:
        print(f"  ✗ {type(e).__name__}: {e}")
        print(f"    states: {[state.value for state in run.history]}")


if __name__ == "__main__":
    logging.basicConfig(level=logging.WARNING)
    asyncio.run(main())
