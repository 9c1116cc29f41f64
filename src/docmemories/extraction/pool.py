"""Bounded, pull-based worker pool for inference calls.

Workers share one claim cursor and one preallocated results buffer. Claiming
an index is atomic, and each buffer slot is written only by the worker that
claimed it, so the buffer itself needs no lock and keeps input order no
matter which call finishes first.
"""

from __future__ import annotations

import itertools
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Sequence, TypeVar

from docmemories.errors import InferenceUnavailable
from docmemories.extraction.inference import InferenceService
from docmemories.ingestion.candidates import CandidateStrategy
from docmemories.models import Candidate, RawExtractionResult

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

# Called as (index, result, completed, total) after each item finishes.
CompletionCallback = Callable[[int, R, int, int], None]
# Called as (candidate, records or None, completed, total).
ProgressCallback = Callable[[Candidate, Optional[List[RawExtractionResult]], int, int], None]


def run_pool(
    items: Sequence[T],
    func: Callable[[T], R],
    *,
    workers: int = 1,
    on_complete: Optional[CompletionCallback] = None,
) -> List[Optional[R]]:
    """Apply ``func`` to every item on at most ``workers`` threads.

    Returns results in input order. ``on_complete`` fires in completion order.
    """
    total = len(items)
    results: List[Optional[R]] = [None] * total
    if total == 0:
        return results

    cursor = itertools.count()
    claim_lock = threading.Lock()
    progress_lock = threading.Lock()
    completed = 0

    def claim() -> int:
        with claim_lock:
            return next(cursor)

    def worker() -> None:
        nonlocal completed
        while True:
            index = claim()
            if index >= total:
                return
            result = func(items[index])
            results[index] = result
            with progress_lock:
                completed += 1
                if on_complete is not None:
                    on_complete(index, result, completed, total)

    thread_count = max(1, min(workers, total))
    with ThreadPoolExecutor(max_workers=thread_count, thread_name_prefix="extract") as executor:
        futures = [executor.submit(worker) for _ in range(thread_count)]
        for future in futures:
            future.result()

    return results


class ExtractionPool:
    """Dispatches candidates to the inference service.

    Each slot of the returned list is ``None`` when the call failed, an empty
    list when the response held nothing actionable, or the parsed records.
    """

    def __init__(
        self,
        service: InferenceService,
        strategy: CandidateStrategy,
        *,
        model: str,
        timeout: float = 180.0,
        workers: int = 1,
        progress: Optional[ProgressCallback] = None,
    ) -> None:
        self.service = service
        self.strategy = strategy
        self.model = model
        self.timeout = timeout
        self.workers = workers
        self.progress = progress

    def _generate(self, candidate: Candidate, prompt: str) -> str:
        try:
            result = self.service.generate(self.model, prompt, self.timeout)
        except Exception as exc:
            raise InferenceUnavailable(f"transport error: {exc}") from exc

        LOGGER.debug(
            "%s - %s: exit=%s timeout=%s duration=%.1fs",
            candidate.source,
            candidate.label,
            result.exit_code,
            result.timed_out,
            result.duration,
        )
        if result.timed_out:
            raise InferenceUnavailable(f"timed out after {self.timeout:g}s")
        if result.exit_code != 0:
            raise InferenceUnavailable(
                f"exit code {result.exit_code}: {result.stderr.strip()[:200]}"
            )
        return result.text

    def extract_one(self, candidate: Candidate) -> Optional[List[RawExtractionResult]]:
        prompt = self.strategy.build_prompt(candidate)
        try:
            raw = self._generate(candidate, prompt)
        except InferenceUnavailable as exc:
            LOGGER.warning("Extraction failed for %s - %s: %s", candidate.source, candidate.label, exc)
            return None
        return self.strategy.parse_response(raw, candidate)

    def run(self, candidates: Sequence[Candidate]) -> List[Optional[List[RawExtractionResult]]]:
        on_complete = None
        if self.progress is not None:
            progress = self.progress

            def on_complete(index, result, completed, total):
                progress(candidates[index], result, completed, total)

        return run_pool(candidates, self.extract_one, workers=self.workers, on_complete=on_complete)
