"""Tests for packing app reports into size-bounded comment bodies."""

import re

from utils.comment_packer import (
    GITHUB_COMMENT_LIMIT,
    build_comment_bodies,
    number_comment_bodies,
    pack_comment_bodies,
)
from utils.diff_models import DiffError, RenderedAppBlock
from utils.events import RecordingSink

from conftest import HEADER, LEGEND, URI, make_diff, make_resource


def build(diffs, **kwargs):
    return build_comment_bodies(diffs, HEADER, LEGEND, URI, **kwargs)


def strip_marker(body):
    return re.sub(r"^_\d+/\d+_\n", "", body[len(HEADER):])


def app_order(bodies):
    return [name for body in bodies for name in re.findall(r"App: \[`([^`]+)`\]", body)]


def test_empty_diffs_yield_no_comments():
    assert build([]) == []
    assert pack_comment_bodies([], HEADER, LEGEND, GITHUB_COMMENT_LIMIT) == []


def test_small_diff_yields_single_comment():
    result = build([make_diff("my-app", make_resource("my-config"))])
    assert len(result) == 1
    body = result[0]
    assert "my-app" in body
    assert "my-config" in body
    assert body.startswith(HEADER)
    assert body.endswith(LEGEND)
    assert "Diff truncated" not in body
    assert "_1/1_" not in body


def test_every_comment_starts_with_header_and_ends_with_legend():
    diffs = [make_diff(f"app-{i}", make_resource(f"config-{i}")) for i in range(3)]
    for body in build(diffs):
        assert body.startswith(HEADER)
        assert body.endswith(LEGEND)


def test_many_large_diffs_spread_over_comments_within_limit():
    big = make_resource("big", 200)
    diffs = [make_diff(f"app-{i}", big) for i in range(50)]
    result = build(diffs)

    assert len(result) > 1
    for idx, body in enumerate(result, start=1):
        assert len(body) <= GITHUB_COMMENT_LIMIT
        assert body.startswith(HEADER + f"_{idx}/{len(result)}_\n")
        assert body.endswith(LEGEND)
    for i in range(50):
        appears_in = [body for body in result if f"[`app-{i}`]" in body]
        assert len(appears_in) == 1
    assert app_order(result) == [f"app-{i}" for i in range(50)]


def test_two_large_apps_go_to_separate_comments_in_order():
    large = "x" * int(GITHUB_COMMENT_LIMIT * 0.6)
    result = build([make_diff("app-a", large), make_diff("app-b", large)])
    assert len(result) == 2
    assert "app-a" in result[0] and "app-b" not in result[0]
    assert "app-b" in result[1]
    assert result[0].startswith(HEADER + "_1/2_\n")
    assert result[1].startswith(HEADER + "_2/2_\n")


def test_apps_are_not_duplicated_across_comments():
    diffs = [make_diff(f"app-{i}", make_resource(f"config-{i}")) for i in range(4)]
    result = build(diffs)
    for i in range(4):
        assert len([body for body in result if f"app-{i}" in body]) == 1


def test_single_huge_app_is_truncated_into_one_comment():
    huge = "".join(make_resource(f"res-{i}", 50) for i in range(100))
    assert len(huge) > GITHUB_COMMENT_LIMIT
    result = build([make_diff("big-app", huge)])

    assert len(result) == 1
    assert len(result[0]) <= GITHUB_COMMENT_LIMIT
    assert "⚠️ Diff truncated" in result[0]
    assert "argocd app diff big-app --local-repo-root=. --local=" in result[0]
    match = re.search(r"showing (\d+)/100 resources", result[0])
    assert match and int(match.group(1)) < 100


def test_diff_absent_renders_without_code_block():
    result = build([make_diff("no-diff-app", None)])
    assert len(result) == 1
    assert "no-diff-app" in result[0]
    assert "<details>" not in result[0]
    assert "```" not in result[0]


def test_error_diff_renders_stderr():
    error = DiffError(stderr="something went wrong", underlying={"code": 1})
    result = build([make_diff("err-app", "", error)])
    assert len(result) == 1
    assert "something went wrong" in result[0]
    assert "Error 🛑" in result[0]


def test_first_resource_too_big_still_fits_one_comment():
    huge = make_resource("giant", 0) + "x" * GITHUB_COMMENT_LIMIT
    result = build([make_diff("giant-app", huge)])
    assert len(result) == 1
    assert len(result[0]) <= GITHUB_COMMENT_LIMIT
    assert "⚠️ Diff truncated" in result[0]
    assert "showing 0/1 resources" in result[0]


def test_truncated_app_among_others_keeps_numbered_bodies_within_limit():
    huge = "".join(make_resource(f"res-{i}", 50) for i in range(100))
    diffs = [make_diff("small-a", make_resource("a")), make_diff("big-app", huge), make_diff("small-b", make_resource("b"))]
    result = build(diffs)
    assert len(result) >= 2
    for body in result:
        assert len(body) <= GITHUB_COMMENT_LIMIT
    assert app_order(result) == ["small-a", "big-app", "small-b"]


def test_custom_limit_is_respected():
    diffs = [make_diff(f"app-{i}", make_resource(f"c{i}", 20)) for i in range(10)]
    result = build(diffs, limit=2000)
    assert len(result) > 1
    assert all(len(body) <= 2000 for body in result)


def test_pack_is_greedy_first_fit():
    blocks = [RenderedAppBlock(text=t) for t in ("aaa", "bbb", "ccc")]
    assert pack_comment_bodies(blocks, "H", "L", 10) == ["HaaabbbL", "HcccL"]


def test_pack_never_defers_a_later_block_into_an_earlier_comment():
    blocks = [RenderedAppBlock(text=t) for t in ("aaaaa", "bbbbbbb", "c")]
    # "c" would fit next to "aaaaa" but must follow "bbbbbbb"
    assert pack_comment_bodies(blocks, "H", "L", 10) == ["HaaaaaL", "HbbbbbbbcL"]


def test_pack_places_oversized_block_alone_and_warns():
    sink = RecordingSink()
    blocks = [RenderedAppBlock(text="a"), RenderedAppBlock(text="z" * 20, oversized=True), RenderedAppBlock(text="b")]
    bodies = pack_comment_bodies(blocks, "H", "L", 10, emit=sink)
    assert bodies == ["HaL", "H" + "z" * 20 + "L", "HbL"]
    assert len(sink.messages("warning")) == 1


def test_oversized_first_block_is_still_emitted():
    bodies = pack_comment_bodies([RenderedAppBlock(text="z" * 20)], "H", "L", 10)
    assert bodies == ["H" + "z" * 20 + "L"]


def test_numbering_only_applies_to_multiple_bodies():
    assert number_comment_bodies(["HaL"], "H") == ["HaL"]
    assert number_comment_bodies(["HaL", "HbL"], "H") == ["H_1/2_\naL", "H_2/2_\nbL"]
    assert number_comment_bodies([], "H") == []


def test_bodies_concatenate_back_to_blocks_in_order():
    diffs = [make_diff(f"app-{i}", make_resource(f"c{i}", 30)) for i in range(12)]
    result = build(diffs, limit=3000)
    blocks = "".join(strip_marker(body)[: -len(LEGEND)] for body in result)
    assert app_order([blocks]) == [f"app-{i}" for i in range(12)]
