"""Tolerant parsing of free-form model output.

Local models wrap their JSON in prose, markdown fences, trailing commas and
inconsistent key casing. Nothing in here raises on bad output: a reply that
cannot be read becomes the fixed default result, flagged ``degraded`` and
recognisable downstream by its "analysis unavailable" justifications.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass

from commitlens_core.models import CRITERIA, DEFAULT_JUSTIFICATION, CriterionScore, Suggestion

logger = logging.getLogger(__name__)

DEFAULT_SCORE = 5
MIN_SCORE = 1
MAX_SCORE = 10
MAX_SUGGESTIONS = 5

# criterion -> JSON score field requested in the prompt
SCORE_FIELDS = {
    "variable_naming": "variableScore",
    "function_size": "functionScore",
    "self_explanatory": "commentScore",
    "method_cohesion": "cohesionScore",
    "dead_code": "deadCodeScore",
}

# Keys accepted inside "justifications" for each criterion.
_JUSTIFICATION_KEYS = {
    "variable_naming": ("variableScore", "variableNaming", "naming"),
    "function_size": ("functionScore", "functionSizes", "functionSize"),
    "self_explanatory": ("commentScore", "noNeedsComments", "selfExplanatory", "comments"),
    "method_cohesion": ("cohesionScore", "methodCohesion", "cohesion"),
    "dead_code": ("deadCodeScore", "deadCode"),
}

_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")


@dataclass(frozen=True)
class ParseResult:
    criteria: dict[str, CriterionScore]
    comment: str = ""
    degraded: bool = False


def default_result() -> ParseResult:
    return ParseResult(
        criteria={name: CriterionScore(DEFAULT_SCORE, DEFAULT_JUSTIFICATION) for name in CRITERIA},
        degraded=True,
    )


def _normalise_key(key: str) -> str:
    return key.replace("_", "").replace("-", "").replace(" ", "").lower()


def _lookup(mapping: dict, *names: str):
    """Case-insensitive key lookup; returns None when no name matches."""
    normalised = {_normalise_key(str(k)): v for k, v in mapping.items()}
    for name in names:
        value = normalised.get(_normalise_key(name))
        if value is not None:
            return value
    return None


def extract_json(text: str, opening: str = "{", closing: str = "}") -> str | None:
    """Return the substring from the first ``opening`` to the last ``closing``."""
    start = text.find(opening)
    end = text.rfind(closing)
    if start == -1 or end <= start:
        return None
    return text[start : end + 1]


def _loads_lenient(fragment: str):
    try:
        return json.loads(_TRAILING_COMMA_RE.sub(r"\1", fragment))
    except json.JSONDecodeError:
        return None


def _coerce_score(value) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None
    if not isinstance(value, (int, float)):
        return None
    return max(MIN_SCORE, min(MAX_SCORE, int(round(value))))


def parse_scores(raw: str | None) -> ParseResult:
    """Extract the five criterion scores from a model reply."""
    fragment = extract_json(raw or "")
    if fragment is None:
        logger.warning("No JSON object in model response: %s", (raw or "")[:200])
        return default_result()

    data = _loads_lenient(fragment)
    if not isinstance(data, dict):
        logger.warning("Could not decode model response as JSON: %s", fragment[:200])
        return default_result()

    scores: dict[str, int] = {}
    for name, field_name in SCORE_FIELDS.items():
        score = _coerce_score(_lookup(data, field_name))
        if score is None:
            logger.warning("Model response is missing a usable %r score", field_name)
            return default_result()
        scores[name] = score

    justifications = _lookup(data, "justifications", "justification")
    if not isinstance(justifications, dict):
        justifications = {}

    criteria = {}
    for name, score in scores.items():
        text = _lookup(justifications, *_JUSTIFICATION_KEYS[name], name)
        criteria[name] = CriterionScore(score=score, justification=str(text).strip() if text else "")

    comment = _lookup(data, "comment", "summary")
    return ParseResult(criteria=criteria, comment=str(comment).strip() if comment else "")


def combine_results(results: list[ParseResult]) -> ParseResult:
    """Merge the per-chunk results for one file.

    Degraded chunks are ignored; each criterion becomes the rounded mean of the
    remaining chunks. If every chunk degraded, the default is returned.
    """
    usable = [r for r in results if not r.degraded]
    if not usable:
        return default_result()
    if len(usable) == 1:
        return usable[0]

    criteria = {}
    for name in CRITERIA:
        scored = [r.criteria[name] for r in usable if name in r.criteria]
        mean = sum(c.score for c in scored) / len(scored)
        justification = next((c.justification for c in scored if c.justification), "")
        criteria[name] = CriterionScore(score=int(round(mean)), justification=justification)

    comment = "\n".join(r.comment for r in usable if r.comment)
    return ParseResult(criteria=criteria, comment=comment)


def _as_string_list(value) -> list[str]:
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, list):
        return [str(v).strip() for v in value if str(v).strip()]
    return []


def parse_suggestions(raw: str | None, limit: int = MAX_SUGGESTIONS) -> list[Suggestion]:
    """Extract improvement suggestions; returns [] when nothing usable is found."""
    text = raw or ""
    items = None

    fragment = extract_json(text, "[", "]")
    if fragment is not None:
        items = _loads_lenient(fragment)

    if not isinstance(items, list):
        fragment = extract_json(text)
        single = _loads_lenient(fragment) if fragment is not None else None
        items = [single] if isinstance(single, dict) else []

    suggestions = []
    for item in items:
        if not isinstance(item, dict):
            continue
        title = _lookup(item, "title")
        description = _lookup(item, "description")
        if not title or not description:
            continue
        suggestions.append(
            Suggestion(
                title=str(title).strip(),
                description=str(description).strip(),
                priority=str(_lookup(item, "priority") or "medium").lower(),
                category=str(_lookup(item, "type", "category") or ""),
                difficulty=str(_lookup(item, "difficulty") or ""),
                study_references=_as_string_list(_lookup(item, "studyResources", "studyReferences")),
            )
        )
        if len(suggestions) >= limit:
            break

    if not suggestions and text.strip():
        logger.debug("No usable suggestions in model response: %s", text[:200])
    return suggestions
