"""Tests for breadth-first stack layout."""

from stackview.graph.layout import compute_layout, compute_levels
from stackview.graph.parallel import detect_parallel_groups
from stackview.graph.stacks import build_stack_graph


def levels_by_commit(sg, layout):
    """Render levels as lists of each stack's first commit."""
    return [[sg.stacks[item.stack_id].commits[0] for item in level] for level in layout.levels]


class TestComputeLayout:
    """Levels are breadth-first, first-seen-wins."""

    def test_linear_chain_is_single_level(self, graph_factory):
        sg = build_stack_graph(graph_factory({"A": ["B"], "B": ["C"], "C": []}))
        layout = compute_layout(sg)

        assert layout.depth == 1
        assert layout.stack_ids(0) == [sg.commit_to_stack["A"]]

    def test_branch_children_share_a_level(self, graph_factory):
        sg = build_stack_graph(graph_factory({"A": ["B", "C"], "B": [], "C": []}))
        layout = compute_layout(sg)

        assert levels_by_commit(sg, layout) == [["A"], ["B", "C"]]
        assert layout.level_of[sg.commit_to_stack["C"]] == 1

    def test_multiple_roots_start_at_level_zero(self, graph_factory):
        sg = build_stack_graph(graph_factory({"A": ["M"], "B": ["M"], "M": []}))
        layout = compute_layout(sg)

        assert levels_by_commit(sg, layout) == [["A", "B"], ["M"]]

    def test_uneven_diamond_keeps_first_seen_level(self, graph_factory):
        """The merge stack sits one below the short side, not the long one."""
        graph = graph_factory(
            {"A": ["B", "C"], "B": ["B2", "X"], "B2": ["D"], "X": [], "C": ["D"], "D": []}
        )
        sg = build_stack_graph(graph)
        layout = compute_layout(sg)

        d = sg.commit_to_stack["D"]
        b2 = sg.commit_to_stack["B2"]
        assert layout.level_of[sg.commit_to_stack["C"]] == 1
        assert layout.level_of[b2] == 2
        # Reached from C (level 1) before B2 (level 2)
        assert layout.level_of[d] == 2

    def test_deterministic(self, graph_factory):
        """Two runs give identical levels in identical order."""
        graph = graph_factory(
            {"R": ["A", "B", "C"], "A": ["X"], "B": ["X", "Y"], "C": ["Y"], "X": [], "Y": []}
        )
        sg = build_stack_graph(graph)
        assert compute_layout(sg) == compute_layout(sg)
        assert compute_levels(sg) == compute_levels(sg)

    def test_every_stack_is_placed_once(self, graph_factory):
        graph = graph_factory({"A": ["B", "C"], "B": ["D"], "C": ["D"], "D": ["E", "F"], "E": [], "F": []})
        sg = build_stack_graph(graph)
        placed = [item.stack_id for level in compute_layout(sg).levels for item in level]

        assert sorted(placed) == sorted(sg.stacks)

    def test_parallel_members_are_tagged(self, graph_factory):
        sg = build_stack_graph(graph_factory({"A": ["B", "C"], "B": [], "C": []}))
        groups = detect_parallel_groups(sg)
        layout = compute_layout(sg, groups)

        tagged = {item.stack_id: item.parallel_group_id for level in layout.levels for item in level}
        assert tagged[sg.commit_to_stack["A"]] is None
        assert tagged[sg.commit_to_stack["B"]] == groups[0].id
        assert tagged[sg.commit_to_stack["C"]] == groups[0].id

    def test_is_parallel_flag(self, graph_factory):
        sg = build_stack_graph(graph_factory({"A": ["B", "C"], "B": [], "C": []}))
        layout = compute_layout(sg, detect_parallel_groups(sg))

        assert [item.is_parallel for item in layout.levels[0]] == [False]
        assert all(item.is_parallel for item in layout.levels[1])
