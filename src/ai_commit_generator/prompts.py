from __future__ import annotations

SYSTEM_INSTRUCTION = "You generate high-quality Git commit messages."

_COMMIT_PROMPT = """
You are an expert software engineer.

Generate a clear, detailed Git commit message based on the staged changes below.

Rules:
- Use imperative mood (e.g. "Add", "Fix", "Refactor")
- Explain WHAT changed and WHY
- Do not include file diffs in the output
- Do not use markdown

Staged changes:
"""


def build_commit_prompt(diff: str) -> str:
    return (_COMMIT_PROMPT + diff).strip()
