"""Prompt rendering for the scoring and suggestion requests.

Prompts are bounded by a character budget applied to the embedded file text.
Oversized text is cut into line-aligned chunks, and each chunk becomes its own
prompt with a ``Part i/N`` header so the model (and the logs) can tell which
slice of the file it is looking at. Rendering is pure: the same FileChange and
budget always produce the same prompts.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from commitlens_core.models import FileChange

if TYPE_CHECKING:
    from commitlens_core.parsing import ParseResult

DEFAULT_CHUNK_BUDGET = 8000

# Only "\n" ends a line; str.splitlines would also break on form feeds and the like.
_LINE_RE = re.compile(r"[^\n]*\n|[^\n]+\Z")

_SCORING_INSTRUCTIONS = """Score the code on each criterion below from 1 (very poor) to 10 (excellent):

1. Variable Naming: names are descriptive, consistent and reveal intent.
2. Function Sizes: functions are small and do one thing.
3. No Needs Comments: the code explains itself without needing comments.
4. Method Cohesion: each method's statements work towards a single purpose.
5. Dead Code: no unused variables, unreachable branches or commented-out code (10 = none).

Respond with **only** a JSON object in this exact shape:

{
  "variableScore": <integer 1-10>,
  "functionScore": <integer 1-10>,
  "commentScore": <integer 1-10>,
  "cohesionScore": <integer 1-10>,
  "deadCodeScore": <integer 1-10>,
  "justifications": {
    "variableScore": "<one or two sentences>",
    "functionScore": "<one or two sentences>",
    "commentScore": "<one or two sentences>",
    "cohesionScore": "<one or two sentences>",
    "deadCodeScore": "<one or two sentences>"
  },
  "comment": "<short overall assessment>"
}

Do not return any text outside the JSON object."""


@dataclass(frozen=True)
class Chunk:
    index: int  # 1-based
    total: int
    text: str
    first_line: int
    last_line: int

    def header(self, file_path: str) -> str:
        return f"### Part {self.index}/{self.total} of `{file_path}` (lines {self.first_line}-{self.last_line})"


def split_content(content: str, budget: int = DEFAULT_CHUNK_BUDGET) -> list[Chunk]:
    """Cut content into chunks of at most ``budget`` characters on line boundaries.

    A single line longer than the budget is kept whole as its own chunk. The
    chunk texts concatenated in order reproduce ``content`` exactly.
    """
    if budget <= 0:
        raise ValueError("budget must be positive")

    pieces: list[tuple[str, int, int]] = []
    current: list[str] = []
    size = 0
    start = 1
    line_no = 0

    for line_no, line in enumerate(_LINE_RE.findall(content), start=1):
        if current and size + len(line) > budget:
            pieces.append(("".join(current), start, line_no - 1))
            current, size, start = [], 0, line_no
        current.append(line)
        size += len(line)

    if current or not pieces:
        pieces.append(("".join(current), start, max(line_no, start)))

    total = len(pieces)
    return [
        Chunk(index=i, total=total, text=text, first_line=first, last_line=last)
        for i, (text, first, last) in enumerate(pieces, start=1)
    ]


def _change_summary(change: FileChange) -> str:
    summary = f"{change.change_kind.value}, +{change.added_lines}/-{change.removed_lines} lines"
    if change.old_path and change.old_path != change.path:
        summary += f", renamed from `{change.old_path}`"
    return summary


def render_prompt(change: FileChange, text: str, chunk: Chunk | None = None, is_diff: bool = False) -> str:
    """Render one scoring request for ``text`` taken from ``change``."""
    language = change.language
    section = "Diff" if is_diff else "Code"
    fence = "diff" if is_diff else language.lower()

    header = ""
    if chunk is not None:
        header = (
            f"{chunk.header(change.path)}\n"
            f"This is part {chunk.index} of {chunk.total} of the file. "
            "Score only the code shown here; the other parts are scored separately.\n\n"
        )

    return f"""{header}You are a senior {language} engineer assessing clean-code quality.

File: `{change.path}` ({language}; {_change_summary(change)})

{_SCORING_INSTRUCTIONS}

## {section}
```{fence}
{text}
```"""


def build_prompts(change: FileChange, budget: int = DEFAULT_CHUNK_BUDGET, use_diff: bool = False) -> list[str]:
    """Return the ordered scoring prompts for a file (at least one)."""
    is_diff = use_diff and bool(change.diff_text)
    text = change.diff_text if is_diff else change.modified_content

    if len(text) <= budget:
        return [render_prompt(change, text, is_diff=is_diff)]

    chunks = split_content(text, budget)
    return [render_prompt(change, chunk.text, chunk=chunk, is_diff=is_diff) for chunk in chunks]


def build_suggestions_prompt(change: FileChange, result: ParseResult, budget: int = DEFAULT_CHUNK_BUDGET) -> str:
    """Ask for concrete improvement suggestions based on the scores already given."""
    scores = "\n".join(
        f"- {name}: {criterion.score}/10 {criterion.justification}".rstrip()
        for name, criterion in result.criteria.items()
    )
    code = change.modified_content[:budget]
    return f"""You reviewed `{change.path}` ({change.language}) and scored it as follows:

{scores}

Propose at most 5 concrete improvements, highest impact first.
Respond with **only** a JSON list:

[
  {{
    "title": "<short title>",
    "description": "<what to change and why>",
    "priority": "<low|medium|high|critical>",
    "type": "<naming|structure|cohesion|dead-code|readability|other>",
    "difficulty": "<easy|medium|hard>",
    "studyResources": ["<book chapter, article or doc>"]
  }}
]

If nothing needs improving, return: []

## Code
```{change.language.lower()}
{code}
```"""
