"""Tests for prompt rendering and chunking."""

import re

import pytest

from commitlens_core.models import ChangeKind, CriterionScore, FileChange
from commitlens_core.parsing import ParseResult
from commitlens_core.prompts import (
    build_prompts,
    build_suggestions_prompt,
    render_prompt,
    split_content,
)

_PART_RE = re.compile(r"Part (\d+)/(\d+) of `([^`]+)`")


def _make_change(content, path="src/Orders/OrderService.cs", diff_text=""):
    return FileChange(
        path=path,
        change_kind=ChangeKind.MODIFIED,
        modified_content=content,
        added_lines=3,
        removed_lines=1,
        diff_text=diff_text,
    )


def _big_content(lines=400):
    return "".join(f"    var value{i} = Compute({i}); // line {i}\n" for i in range(lines))


# ---------------------------------------------------------------------------
# split_content
# ---------------------------------------------------------------------------


class TestSplitContent:
    def test_small_content_is_one_chunk(self):
        chunks = split_content("a\nb\n", budget=100)
        assert len(chunks) == 1
        assert chunks[0].text == "a\nb\n"
        assert (chunks[0].index, chunks[0].total) == (1, 1)
        assert (chunks[0].first_line, chunks[0].last_line) == (1, 2)

    def test_large_content_reconstructs_exactly(self):
        content = _big_content()
        chunks = split_content(content, budget=1000)
        assert len(chunks) > 1
        assert "".join(c.text for c in chunks) == content

    def test_chunks_respect_budget(self):
        chunks = split_content(_big_content(), budget=1000)
        assert all(len(c.text) <= 1000 for c in chunks)

    def test_chunks_end_on_line_breaks(self):
        chunks = split_content(_big_content(), budget=1000)
        assert all(c.text.endswith("\n") for c in chunks)

    def test_indices_and_line_ranges_are_consecutive(self):
        chunks = split_content(_big_content(), budget=1000)
        total = len(chunks)
        assert [c.index for c in chunks] == list(range(1, total + 1))
        assert all(c.total == total for c in chunks)
        for previous, current in zip(chunks, chunks[1:]):
            assert current.first_line == previous.last_line + 1

    def test_overlong_line_is_never_split(self):
        long_line = "x" * 50 + "\n"
        chunks = split_content("a\n" + long_line + "b\n", budget=10)
        assert long_line in [c.text for c in chunks]

    def test_only_newline_ends_a_line(self):
        line = "A" * 10 + "\x0c" + "B" * 10 + "\n"
        content = line * 3
        chunks = split_content(content, budget=12)
        assert [c.text for c in chunks] == [line, line, line]
        assert [(c.first_line, c.last_line) for c in chunks] == [(1, 1), (2, 2), (3, 3)]
        assert "".join(c.text for c in chunks) == content

    def test_other_line_separators_stay_inside_a_line(self):
        content = "a\x0bb\x1cc\x85d e\n"
        chunks = split_content(content, budget=100)
        assert len(chunks) == 1
        assert (chunks[0].first_line, chunks[0].last_line) == (1, 1)

    def test_last_line_without_newline_is_kept(self):
        chunks = split_content("a\nb", budget=2)
        assert [c.text for c in chunks] == ["a\n", "b"]
        assert chunks[-1].last_line == 2

    def test_empty_content_yields_one_empty_chunk(self):
        chunks = split_content("", budget=10)
        assert len(chunks) == 1
        assert chunks[0].text == ""

    def test_rejects_non_positive_budget(self):
        with pytest.raises(ValueError):
            split_content("a", budget=0)


# ---------------------------------------------------------------------------
# build_prompts
# ---------------------------------------------------------------------------


class TestBuildPrompts:
    def test_under_budget_returns_rendered_prompt(self):
        change = _make_change("public class A {}\n")
        assert build_prompts(change, budget=1000) == [render_prompt(change, change.modified_content)]

    def test_prompt_names_file_and_criteria(self):
        prompt = build_prompts(_make_change("public class A {}\n"))[0]
        assert "src/Orders/OrderService.cs" in prompt
        assert "C#" in prompt
        for field_name in ("variableScore", "functionScore", "commentScore", "cohesionScore", "deadCodeScore"):
            assert field_name in prompt
        assert "public class A {}" in prompt
        assert "Part " not in prompt

    def test_over_budget_headers_are_consistent(self):
        change = _make_change(_big_content())
        prompts = build_prompts(change, budget=1000)
        assert len(prompts) > 1

        headers = [_PART_RE.search(p).groups() for p in prompts]
        total = len(prompts)
        assert [int(i) for i, _, _ in headers] == list(range(1, total + 1))
        assert all(int(n) == total for _, n, _ in headers)
        assert all(path == change.path for _, _, path in headers)

    def test_chunks_embed_every_line_once(self):
        content = _big_content()
        prompts = build_prompts(_make_change(content), budget=1000)
        for line in content.splitlines():
            assert sum(line in p for p in prompts) == 1

    def test_is_deterministic(self):
        change = _make_change(_big_content())
        assert build_prompts(change, budget=1000) == build_prompts(change, budget=1000)

    def test_diff_source_embeds_patch(self):
        change = _make_change("class A {}\n", diff_text="@@ -1 +1 @@\n-class B {}\n+class A {}\n")
        prompt = build_prompts(change, use_diff=True)[0]
        assert "## Diff" in prompt
        assert "-class B {}" in prompt

    def test_diff_source_falls_back_to_content_without_patch(self):
        prompt = build_prompts(_make_change("class A {}\n"), use_diff=True)[0]
        assert "## Code" in prompt


class TestSuggestionsPrompt:
    def test_includes_scores_and_code(self):
        result = ParseResult(criteria={"variable_naming": CriterionScore(3, "names like x1")})
        prompt = build_suggestions_prompt(_make_change("int x1 = 0;\n"), result)
        assert "variable_naming: 3/10 names like x1" in prompt
        assert "int x1 = 0;" in prompt
        assert "studyResources" in prompt
