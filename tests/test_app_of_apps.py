"""Tests for app-of-apps targetRevision change detection."""

from utils.app_models import AppTargetRevision
from utils.app_of_apps import find_target_revision, get_app_of_app_target_revisions
from utils.events import RecordingSink

from conftest import make_diff, make_resource


def application_resource(name: str, old: str = "main", new=None) -> str:
    text = (
        f"===== argoproj.io/Application argocd/{name} ======\n"
        "12c12\n"
        f"<     targetRevision: {old}\n"
    )
    if new is not None:
        text += "---\n" f">     targetRevision: {new}\n"
    return text


def test_find_target_revision_reads_new_value():
    found = find_target_revision(application_resource("child", new="v1.2.3"))
    assert found == AppTargetRevision(app_name="child", target_revision="v1.2.3")


def test_find_target_revision_ignores_other_kinds_and_removed_only_lines():
    assert find_target_revision(make_resource("cm")) is None
    assert find_target_revision(application_resource("child")) is None


def test_collects_changes_in_discovery_order():
    parent_a = make_diff("parent-a", application_resource("child-1", new="rev-1") + make_resource("cm") + application_resource("child-2", new="rev-2"))
    plain = make_diff("plain", make_resource("cm"))
    parent_b = make_diff("parent-b", application_resource("child-3", new="rev-3"))

    found = get_app_of_app_target_revisions([parent_a, plain, parent_b])

    assert [(t.app_name, t.target_revision) for t in found] == [
        ("child-1", "rev-1"),
        ("child-2", "rev-2"),
        ("child-3", "rev-3"),
    ]


def test_revision_is_scoped_to_its_own_resource():
    # a later resource's targetRevision must not be attributed to an earlier Application
    diff = application_resource("child-1") + application_resource("child-2", new="rev-2")
    found = get_app_of_app_target_revisions([make_diff("parent", diff)])
    assert found == [AppTargetRevision(app_name="child-2", target_revision="rev-2")]


def test_diffs_without_applications_or_text_yield_nothing():
    sink = RecordingSink()
    diffs = [make_diff("none", None), make_diff("cm-only", make_resource("cm"))]
    assert get_app_of_app_target_revisions(diffs, emit=sink) == []
    assert len(sink.messages("debug")) == 2


def test_found_changes_are_reported():
    sink = RecordingSink()
    get_app_of_app_target_revisions([make_diff("parent", application_resource("child", new="v2"))], emit=sink)
    assert sink.messages("info") == ["Found targetRevision change on Application 'child' of Application 'parent'."]
