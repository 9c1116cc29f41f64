"""Deduplicate raw extraction results into identified memories."""

from __future__ import annotations

import json
import uuid
from typing import Callable, Dict, Iterable, List

from docmemories.models import Memory, RawExtractionResult

KEY_SEPARATOR = "\n---\n"


def _new_id() -> str:
    return str(uuid.uuid4())


def advice_body(result: RawExtractionResult) -> str:
    body = result.advice_text.strip()
    if result.example:
        example = result.example
        if not isinstance(example, str):
            example = json.dumps(example, ensure_ascii=False)
        body += f"\n\nExample:\n{example}"
    return body


def dedup_key(result: RawExtractionResult) -> str:
    return f"{result.trigger_text.strip()}{KEY_SEPARATOR}{advice_body(result).strip()}"


def finalize_memories(
    results: Iterable[RawExtractionResult],
    *,
    include_provenance: bool = True,
    id_factory: Callable[[], str] = _new_id,
) -> List[Memory]:
    """Collapse exact duplicates, keeping the first occurrence and its provenance."""
    seen: Dict[str, Memory] = {}
    for result in results:
        key = dedup_key(result)
        if key in seen:
            continue
        context = advice_body(result)
        if include_provenance and result.source_section:
            context += f"\n\n[Source: {result.source_doc} - {result.source_section}]"
        seen[key] = Memory(
            id=id_factory(),
            text=result.trigger_text.strip(),
            context=context,
            source=result.source_doc,
        )
    return list(seen.values())
