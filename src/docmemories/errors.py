"""Exception hierarchy for the extraction pipeline.

Run-level failures carry the process exit status the CLI reports for them.
Candidate-level failures (:class:`InferenceUnavailable`,
:class:`NoActionableContent`) are absorbed by the worker that raised them.
"""

from __future__ import annotations


class DocMemoriesError(Exception):
    """Base class for all docmemories errors."""

    exit_code: int = 1


class InputNotFound(DocMemoriesError):
    """The documentation source directory does not exist."""

    exit_code = 3


class InferenceUnavailable(DocMemoriesError):
    """A single inference call timed out, failed to launch or exited non-zero."""


class NoActionableContent(DocMemoriesError):
    """The inference response held no usable record (SKIP or malformed JSON)."""


class EmptyExtractionResult(DocMemoriesError):
    """The whole run produced zero memories."""

    exit_code = 4


class PersistenceFailure(DocMemoriesError):
    """Embedding or writing the finalized memories failed."""

    exit_code = 5
