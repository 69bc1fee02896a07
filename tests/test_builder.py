import logging
from collections import Counter

import pytest

from para_graph.builder import BUILD_ORDER, build_snapshot
from para_graph.config import Settings
from para_graph.errors import InvalidKindFilterError
from para_graph.models import EdgeKind, GraphSnapshot, NodeKind


def test_goal_scenario_counts(goal_scenario):
    snapshot = build_snapshot(goal_scenario)

    assert len(snapshot.nodes) == 5
    assert len(snapshot.edges) == 4
    assert snapshot.nodes["G"].reference_ids == ("P1", "P2")
    assert snapshot.nodes["P1"].reference_ids == ("T1", "N1")
    assert snapshot.nodes["P2"].reference_ids == ()


def test_goal_project_edges_weigh_two(goal_scenario):
    snapshot = build_snapshot(goal_scenario)

    goal_edges = [edge for edge in snapshot.edges if edge.source == "G"]
    assert [edge.relation for edge in goal_edges] == [EdgeKind.GOAL_PROJECT, EdgeKind.GOAL_PROJECT]
    assert all(edge.weight == 2 for edge in goal_edges)
    assert all(edge.weight == 1 for edge in snapshot.edges if edge.source != "G")


def test_build_is_deterministic(workspace):
    first = build_snapshot(workspace)
    second = build_snapshot(workspace)

    assert list(first.nodes) == list(second.nodes)
    assert list(first.nodes.values()) == list(second.nodes.values())
    assert first.edges == second.edges


def test_every_reference_has_one_edge(workspace):
    snapshot = build_snapshot(workspace)

    for node in snapshot.nodes.values():
        targets = [edge.target for edge in snapshot.edges if edge.source == node.id]
        assert targets == list(node.reference_ids)
        assert Counter(targets) == Counter(node.reference_ids)


def test_collections_follow_fixed_build_order(workspace):
    reversed_input = dict(reversed(list(workspace.items())))
    snapshot = build_snapshot(reversed_input)

    kinds = [node.kind for node in snapshot.nodes.values()]
    order = [kind for kind in BUILD_ORDER if kind in kinds]
    assert kinds == sorted(kinds, key=order.index)
    assert next(iter(snapshot.nodes)) == "proj-site"


def test_field_mapping_per_kind(workspace):
    snapshot = build_snapshot(workspace)

    person = snapshot.nodes["person-ana"]
    assert person.kind is NodeKind.PERSON
    assert person.title == "Ana Lopez"
    assert person.status == "colleague"

    assert snapshot.nodes["note-brief"].status == "reference"
    assert snapshot.nodes["task-deploy"].status == "done"
    assert snapshot.nodes["habit-write"].status == "active"
    assert snapshot.nodes["habit-run"].status == "inactive"


def test_payload_is_carried_through_untouched(workspace):
    snapshot = build_snapshot(workspace)

    assert snapshot.nodes["proj-site"].payload is workspace["projects"][0]


def test_payload_reflects_later_record_edits(goal_scenario):
    snapshot = build_snapshot(goal_scenario)

    goal_scenario["tasks"][0]["status"] = "done"

    assert snapshot.nodes["T1"].payload["status"] == "done"
    assert snapshot.nodes["T1"].status == "todo"


def test_snapshot_nodes_are_read_only(goal_scenario):
    snapshot = build_snapshot(goal_scenario)

    with pytest.raises(TypeError):
        snapshot.nodes["X"] = snapshot.nodes["G"]
    with pytest.raises(TypeError):
        del snapshot.nodes["G"]
    assert "G" in snapshot.nodes


def test_relation_tags_per_field(workspace):
    snapshot = build_snapshot(workspace)
    relations = {(edge.source, edge.target): edge.relation for edge in snapshot.edges}

    assert relations[("task-copy", "note-brief")] is EdgeKind.NOTE_TASK
    assert relations[("task-copy", "proj-site")] is EdgeKind.PROJECT_TASK
    assert relations[("note-brief", "person-ana")] is EdgeKind.NOTE_PERSON
    assert relations[("person-ana", "proj-site")] is EdgeKind.PERSON_PROJECT
    assert relations[("person-ana", "note-brief")] is EdgeKind.NOTE_PERSON
    assert relations[("goal-grow", "habit-write")] is EdgeKind.GOAL_HABIT
    assert relations[("habit-write", "goal-grow")] is EdgeKind.GOAL_HABIT


def test_singular_reference_is_a_one_element_list(workspace):
    snapshot = build_snapshot(workspace)

    assert snapshot.nodes["task-deploy"].reference_ids == ("proj-site",)
    assert snapshot.nodes["habit-run"].reference_ids == ()


def test_dangling_targets_are_kept_at_build_time(workspace):
    snapshot = build_snapshot(workspace)

    assert "ghost" not in snapshot.nodes
    assert any(edge.target == "ghost" for edge in snapshot.edges)


def test_duplicate_references_are_not_deduplicated():
    snapshot = build_snapshot({"projects": [{"id": "p", "title": "P", "tasks": ["t", "t"]}]})

    assert snapshot.nodes["p"].reference_ids == ("t", "t")
    assert len(snapshot.edges) == 2


def test_missing_collections_and_fields_are_empty():
    snapshot = build_snapshot({"goals": [{"id": "g", "title": "Goal"}], "tasks": None})

    assert list(snapshot.nodes) == ["g"]
    assert snapshot.edges == ()
    assert snapshot.report.warnings == 0


def test_records_without_id_are_skipped_and_counted(caplog):
    caplog.set_level(logging.WARNING, logger="para_graph.builder")
    snapshot = build_snapshot(
        {
            "tasks": [
                {"title": "No id", "project": "p"},
                "not-a-record",
                {"id": "t1", "title": "Kept"},
            ]
        }
    )

    assert list(snapshot.nodes) == ["t1"]
    assert snapshot.edges == ()
    assert snapshot.report.skipped_records == 2
    assert "no identifier" in caplog.text


def test_empty_reference_entries_are_counted():
    snapshot = build_snapshot({"notes": [{"id": "n", "title": "N", "tasks": [None, "", "t"]}]})

    assert snapshot.nodes["n"].reference_ids == ("t",)
    assert snapshot.report.skipped_references == 2


def test_populated_references_contribute_their_id():
    snapshot = build_snapshot(
        {"tasks": [{"_id": "t", "title": "T", "project": {"_id": "p", "title": "Populated"}}]}
    )

    assert snapshot.nodes["t"].reference_ids == ("p",)


def test_numeric_ids_are_stringified():
    snapshot = build_snapshot({"habits": [{"id": 7, "title": "Stretch", "goal": 3}]})

    assert snapshot.nodes["7"].reference_ids == ("3",)


def test_id_collision_keeps_first_record(caplog):
    caplog.set_level(logging.WARNING, logger="para_graph.builder")
    snapshot = build_snapshot(
        {
            "projects": [{"id": "x", "title": "Project x"}],
            "tasks": [{"id": "x", "title": "Task x", "project": "x"}],
        }
    )

    assert snapshot.nodes["x"].kind is NodeKind.PROJECT
    assert snapshot.report.duplicate_ids == 1
    assert snapshot.edges == ()
    assert "already used" in caplog.text


def test_namespaced_ids_avoid_collisions():
    snapshot = build_snapshot(
        {
            "projects": [{"id": "x", "title": "Project x", "tasks": ["x"]}],
            "tasks": [{"id": "x", "title": "Task x", "project": "x"}],
        },
        settings=Settings(namespace_ids=True),
    )

    assert list(snapshot.nodes) == ["project:x", "task:x"]
    assert snapshot.nodes["project:x"].reference_ids == ("task:x",)
    assert snapshot.nodes["task:x"].reference_ids == ("project:x",)
    assert snapshot.report.duplicate_ids == 0


def test_unknown_collection_name_raises():
    with pytest.raises(InvalidKindFilterError):
        build_snapshot({"books": []})


def test_kind_keys_accept_enum_and_singular_names():
    snapshot = build_snapshot({NodeKind.GOAL: [{"id": "g", "title": "G"}], "habit": [{"id": "h", "title": "H"}]})

    assert list(snapshot.nodes) == ["g", "h"]


def test_sequence_is_recorded():
    assert build_snapshot({}, sequence=4).sequence == 4


def test_empty_snapshot():
    empty = GraphSnapshot.empty()

    assert empty.nodes == {}
    assert empty.edges == ()
    assert empty.sequence == 0


def test_export_is_json_ready(goal_scenario):
    document = build_snapshot(goal_scenario).export()

    assert [node["id"] for node in document["nodes"]] == ["P1", "P2", "T1", "N1", "G"]
    assert document["edges"][0] == {"source": "P1", "target": "T1", "relation": "project_task", "weight": 1}
    assert document["nodes"][0]["kind"] == "project"
    assert document["report"] == {"skipped_records": 0, "duplicate_ids": 0, "skipped_references": 0}
    assert isinstance(document["built_at"], str)
