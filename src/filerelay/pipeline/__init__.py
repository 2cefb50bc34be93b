"""Pipeline orchestration — Locate → Fetch → Aggregate → Archive → Upload.

The pipeline coordinates one relay run:
1. Locate remote files matching a pattern
2. Fetch all of them concurrently (fail fast on the first error)
3. Collect the payloads once every fetch has finished
4. Archive them into a single blob
5. Upload the blob and return its identifier

Components:
- Orchestrator: Main coordinator
- PipelineRun: State of one invocation
"""

from filerelay.pipeline.orchestrator import Orchestrator, default_orchestrator, run_pipeline
from filerelay.pipeline.run import PipelineRun, PipelineState

__all__ = [
    "Orchestrator",
    "PipelineRun",
    "PipelineState",
    "default_orchestrator",
    "run_pipeline",
]
