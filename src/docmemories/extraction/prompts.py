"""Prompt templates sent to the inference service."""

from __future__ import annotations

from docmemories.models import Candidate
from docmemories.utils.text import truncate

MAX_SECTION_CHARS = 4000

SECTION_PROMPT = """You are extracting an actionable coding pattern from documentation.

Document: {source}
Section: {title}

Content:
---
{content}
---

If this section contains actionable advice that would help a developer writing code, output JSON:
{{
  "trigger": "keywords for semantic search: API names, import paths, function names, error messages, symptoms that indicate this advice applies",
  "rule": "the actionable advice in 1-3 sentences - what to do or avoid",
  "example": "short code snippet if helpful (optional, omit key if not needed)"
}}

Guidelines:
- trigger: optimize for matching against code + imports, e.g. "next/link Link href navigation <a> anchor"
- rule: be specific and actionable, not conceptual
- Skip if purely informational with no concrete advice

Output only valid JSON or the word SKIP if not actionable."""

CHUNK_INSTRUCTIONS = """Extract actionable coding patterns from this documentation.

For each pattern, output a JSON object on its own line:
{"text": "search keywords matching code that needs this", "context": "actionable advice"}

Guidelines for "text" field:
- Include API names, function signatures, common variable names
- Include error messages or symptoms that indicate this pattern
- Optimize for semantic search matching against code snippets

Guidelines for "context" field:
- Be specific and actionable, not conceptual
- Include code snippets where helpful (keep short)
- Mention common mistakes to avoid

Skip:
- Setup/installation instructions
- Conceptual explanations without concrete patterns
- Marketing content

Output one JSON object per line (JSONL format). No other text."""


def build_section_prompt(candidate: Candidate) -> str:
    return SECTION_PROMPT.format(
        source=candidate.source,
        title=candidate.title or "",
        content=truncate(candidate.content, MAX_SECTION_CHARS),
    )


def build_chunk_prompt(candidate: Candidate) -> str:
    position = ""
    if candidate.chunk_index is not None:
        position = f" (chunk {candidate.chunk_index + 1}/{candidate.total_chunks})"
    return (
        f"{CHUNK_INSTRUCTIONS}\n\n"
        f"Source: {candidate.source}{position}\n\n"
        f"Documentation:\n---\n{candidate.content}\n---"
    )
