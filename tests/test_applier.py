"""Tests for applying notebook tags to notes."""

import json

import httpx

from joplin_tagger.applier import TagApplier
from joplin_tagger.models import Note, Notebook
from joplin_tagger.reconcile import FolderTagMap, TagIndex


def make_folder_map():
    return FolderTagMap.from_notebooks(
        [Notebook(id="f1", title="Work"), Notebook(id="f2", title="Home")], "notebook."
    )


def test_tags_each_note_with_its_notebook_tag(make_transport):
    seen = []

    def handler(request):
        seen.append((request.url.path, json.loads(request.content)))
        return httpx.Response(200, json={})

    applier = TagApplier(make_transport(handler))
    index = TagIndex({"notebook.work": "t-work", "notebook.home": "t-home"})
    notes = [
        Note(id="n1", title="A", parent_id="f1"),
        Note(id="n2", title="B", parent_id="f2"),
    ]

    result = applier.apply(notes, make_folder_map(), index)

    assert result.tags_applied == 2
    assert seen == [
        ("/tags/t-work/notes", {"id": "n1"}),
        ("/tags/t-home/notes", {"id": "n2"}),
    ]


def test_note_with_unknown_parent_is_skipped(make_transport):
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={})

    applier = TagApplier(make_transport(handler))
    notes = [Note(id="n1", title="Root note", parent_id=""), Note(id="n2", title="Orphan", parent_id="gone")]

    result = applier.apply(notes, make_folder_map(), TagIndex({"notebook.work": "t-work"}))

    assert result.tags_applied == 0
    assert result.skipped_unmapped == ["n1", "n2"]
    assert seen == []


def test_unresolved_tag_is_skipped(make_transport):
    applier = TagApplier(make_transport(lambda request: httpx.Response(200, json={})))
    notes = [Note(id="n1", title="A", parent_id="f2")]

    result = applier.apply(notes, make_folder_map(), TagIndex({"notebook.work": "t-work"}))

    assert result.tags_applied == 0
    assert result.skipped_unresolved == ["n1"]
    assert result.skipped == 1


def test_failed_tagging_does_not_stop_other_notes(make_transport):
    def handler(request):
        if json.loads(request.content)["id"] == "n1":
            return httpx.Response(500, text="Internal Server Error")
        return httpx.Response(200, json={})

    applier = TagApplier(make_transport(handler))
    notes = [Note(id="n1", title="A", parent_id="f1"), Note(id="n2", title="B", parent_id="f1")]

    result = applier.apply(notes, make_folder_map(), TagIndex({"notebook.work": "t-work"}))

    assert result.applied == ["n2"]
    assert list(result.failures) == ["n1"]


def test_network_failure_is_isolated(make_transport, sleeps):
    def handler(request):
        raise httpx.ConnectError("Connection refused", request=request)

    applier = TagApplier(make_transport(handler))
    notes = [Note(id="n1", title="A", parent_id="f1")]

    result = applier.apply(notes, make_folder_map(), TagIndex({"notebook.work": "t-work"}))

    assert result.tags_applied == 0
    assert "n1" in result.failures
    assert sleeps == [1.0, 2.0, 4.0]
