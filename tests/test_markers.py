import sys
import os

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import random

import pytest

from mdkb.core.errors import InvalidReference
from mdkb.core.markers import MarkerGraph
from mdkb.core.models import Link, Marker, MetadataStore


def _graph_ab() -> MarkerGraph:
    store = MetadataStore(
        markers=[
            Marker(id="m1", name="A", note_path="cat/x.md", position=10),
            Marker(id="m2", name="B", note_path="cat/y.md", position=0),
        ],
        links=[Link(id="l1", source_marker_id="m1", target_marker_id="m2")],
    )
    return MarkerGraph(store)


def test_add_marker_appends_with_fresh_id():
    g = MarkerGraph()
    a = g.add_marker("Intro", "cat/x.md", 5)
    b = g.add_marker("Intro", "cat/x.md", 5)

    assert a.id != b.id
    assert [m.id for m in g.markers] == [a.id, b.id]
    assert a.note_path == "cat/x.md"
    assert a.position == 5


def test_add_marker_normalizes_path_and_position():
    g = MarkerGraph()
    m = g.add_marker("x", "cat\\note.md", -3)
    assert m.note_path == "cat/note.md"
    assert m.position == 0


def test_remove_marker_cascades_links():
    g = _graph_ab()
    assert g.remove_marker("m1") is True

    assert [m.id for m in g.markers] == ["m2"]
    assert g.links == []


def test_remove_marker_as_target_cascades_too():
    g = _graph_ab()
    g.remove_marker("m2")
    assert g.links == []
    assert g.resolve_marker("m1") is not None


def test_remove_marker_is_idempotent():
    once = _graph_ab()
    once.remove_marker("m1")

    twice = _graph_ab()
    twice.remove_marker("m1")
    assert twice.remove_marker("m1") is False

    assert once.store == twice.store


def test_remove_unknown_marker_is_noop():
    g = _graph_ab()
    g.remove_marker("nope")
    assert len(g.markers) == 2
    assert len(g.links) == 1


def test_add_link_rejects_unknown_target():
    g = _graph_ab()
    with pytest.raises(InvalidReference) as exc:
        g.add_link("m1", "missing")

    assert exc.value.marker_id == "missing"
    assert [link.id for link in g.links] == ["l1"]


def test_add_link_rejects_unknown_source():
    g = _graph_ab()
    with pytest.raises(InvalidReference):
        g.add_link("missing", "m2")
    assert len(g.links) == 1


def test_self_link_allowed():
    g = _graph_ab()
    link = g.add_link("m1", "m1")
    assert link.source_marker_id == link.target_marker_id == "m1"
    assert g.resolve_link(link.id) == link


def test_remove_link_has_no_cascade():
    g = _graph_ab()
    assert g.remove_link("l1") is True
    assert g.links == []
    assert len(g.markers) == 2
    assert g.remove_link("l1") is False


def test_remove_markers_for_note():
    g = _graph_ab()
    g.add_marker("A2", "cat/x.md", 20)
    removed = g.remove_markers_for_note("cat/x.md")

    assert sorted(m.name for m in removed) == ["A", "A2"]
    assert [m.id for m in g.markers] == ["m2"]
    assert g.links == []


def test_rename_note_references_keeps_ids():
    g = _graph_ab()
    assert g.rename_note_references("cat/x.md", "cat/z.md") == 1

    m1 = g.resolve_marker("m1")
    assert m1.note_path == "cat/z.md"
    assert m1.id == "m1"
    assert m1.position == 10
    assert g.resolve_marker("m2").note_path == "cat/y.md"
    assert g.links[0].source_marker_id == "m1"


def test_rename_category_references():
    g = _graph_ab()
    g.add_marker("other", "catalog/x.md", 1)
    assert g.rename_category_references("cat", "work") == 2

    paths = sorted(m.note_path for m in g.markers)
    assert paths == ["catalog/x.md", "work/x.md", "work/y.md"]


def test_markers_for_note_sorted_by_position():
    g = MarkerGraph()
    g.add_marker("late", "a/n.md", 30)
    g.add_marker("early", "a/n.md", 3)
    g.add_marker("elsewhere", "a/m.md", 1)

    assert [m.name for m in g.markers_for_note("a/n.md")] == ["early", "late"]


def test_links_from_and_to():
    g = _graph_ab()
    assert [link.id for link in g.links_from("m1")] == ["l1"]
    assert [link.id for link in g.links_to("m2")] == ["l1"]
    assert g.links_to("m1") == []


def test_labels_unknown_for_dangling_link():
    store = MetadataStore(
        markers=[Marker(id="m1", name="A", note_path="cat/x.md", position=0)],
        links=[Link(id="l1", source_marker_id="m1", target_marker_id="gone")],
    )
    g = MarkerGraph(store)

    assert g.resolve_marker("gone") is None
    assert g.link_label(g.links[0]) == "A (x) -> unknown"
    # inert links are not purged by unrelated operations
    g.add_marker("B", "cat/y.md", 0)
    assert len(g.links) == 1


def test_no_dangling_links_after_random_add_remove():
    rnd = random.Random(1234)
    g = MarkerGraph()
    for _ in range(300):
        op = rnd.random()
        ids = [m.id for m in g.markers]
        if op < 0.4 or not ids:
            g.add_marker("m", f"c/{rnd.randint(0, 5)}.md", rnd.randint(0, 100))
        elif op < 0.7:
            g.add_link(rnd.choice(ids), rnd.choice(ids))
        elif op < 0.9:
            g.remove_marker(rnd.choice(ids + ["missing"]))
        else:
            g.remove_markers_for_note(f"c/{rnd.randint(0, 5)}.md")

        present = {m.id for m in g.markers}
        for link in g.links:
            assert link.source_marker_id in present
            assert link.target_marker_id in present
