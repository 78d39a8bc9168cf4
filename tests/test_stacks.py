"""Tests for grouping commit graphs into stacks and classifying connections."""

from stackview.graph.stacks import ConnectionType, Stack, StackId, build_stack_graph, classify_connection
from stackview.vcs.types import CommitId, build_commit_graph, find_divergent_change_ids


def stack_commits(stack_graph, commit_id):
    return stack_graph.stack_of(CommitId(commit_id)).commits


def assert_partition(graph, stack_graph):
    seen = [c for stack in stack_graph.stacks.values() for c in stack.commits]
    assert sorted(seen) == sorted(graph)
    assert len(seen) == len(set(seen))


def assert_chain_shape(graph, stack_graph):
    parents = {c: [p for p, n in graph.items() if c in n.children] for c in graph}
    for stack in stack_graph.stacks.values():
        for index, commit_id in enumerate(stack.commits):
            children = [c for c in graph[commit_id].children if c in graph]
            if index < len(stack.commits) - 1:
                assert children == [stack.commits[index + 1]]
            if index > 0:
                assert len(parents[commit_id]) == 1


class TestScenarios:
    """Small graphs with a known stack structure."""

    def test_single_commit(self, graph_factory):
        """One commit without children is one root and leaf stack."""
        graph = graph_factory({"A": []})
        sg = build_stack_graph(graph)

        assert len(sg.stacks) == 1
        stack_id = sg.commit_to_stack["A"]
        assert sg.stacks[stack_id].commits == ["A"]
        assert sg.root_stacks == [stack_id]
        assert sg.leaf_stacks == [stack_id]
        assert sg.connections == []

    def test_linear_chain(self, graph_factory):
        """A linear chain is one stack, oldest first."""
        graph = graph_factory({"A": ["B"], "B": ["C"], "C": []})
        sg = build_stack_graph(graph)

        assert len(sg.stacks) == 1
        assert stack_commits(sg, "A") == ["A", "B", "C"]
        assert sg.connections == []

    def test_branch_point(self, graph_factory):
        """A commit with two children ends its stack; both edges are branches."""
        graph = graph_factory({"A": ["B", "C"], "B": [], "C": []})
        sg = build_stack_graph(graph)

        assert len(sg.stacks) == 3
        a, b, c = (sg.commit_to_stack[x] for x in "ABC")
        assert len({a, b, c}) == 3
        assert [(x.from_stack, x.to_stack, x.type) for x in sg.connections] == [
            (a, b, ConnectionType.BRANCH),
            (a, c, ConnectionType.BRANCH),
        ]
        assert sg.root_stacks == [a]
        assert sg.leaf_stacks == [b, c]

    def test_branch_children_continue_their_chains(self, graph_factory):
        """Each branch side keeps growing as its own stack."""
        graph = graph_factory({"A": ["B", "D"], "B": ["C"], "C": [], "D": ["E"], "E": []})
        sg = build_stack_graph(graph)

        assert stack_commits(sg, "A") == ["A"]
        assert stack_commits(sg, "B") == ["B", "C"]
        assert stack_commits(sg, "D") == ["D", "E"]

    def test_merge_starts_new_stack(self, graph_factory):
        """A merge commit starts a stack and the edges into it are merges."""
        graph = graph_factory({"A": ["M"], "B": ["M"], "M": ["N"], "N": []})
        sg = build_stack_graph(graph)

        assert stack_commits(sg, "M") == ["M", "N"]
        m = sg.commit_to_stack["M"]
        assert sorted(sg.stacks[m].parent_stacks) == sorted([sg.commit_to_stack["A"], sg.commit_to_stack["B"]])
        assert all(c.type == ConnectionType.MERGE for c in sg.connections)
        assert len(sg.root_stacks) == 2

    def test_diamond_is_branch_then_merge(self, graph_factory):
        """In a diamond the fan-out edges are branches and the fan-in edges merges."""
        graph = graph_factory({"A": ["B", "C"], "B": ["D"], "C": ["D"], "D": []})
        sg = build_stack_graph(graph)

        a, b, c, d = (sg.commit_to_stack[x] for x in "ABCD")
        types = {(x.from_stack, x.to_stack): x.type for x in sg.connections}
        assert types == {
            (a, b): ConnectionType.BRANCH,
            (a, c): ConnectionType.BRANCH,
            (b, d): ConnectionType.MERGE,
            (c, d): ConnectionType.MERGE,
        }

    def test_branch_directly_into_merge_is_branch(self, graph_factory):
        """An edge from a branch point into a merge point is tagged by its source."""
        graph = graph_factory({"A": ["B", "M"], "B": ["M"], "M": []})
        sg = build_stack_graph(graph)

        a, m = sg.commit_to_stack["A"], sg.commit_to_stack["M"]
        edge = next(x for x in sg.connections if x.from_stack == a and x.to_stack == m)
        assert edge.type == ConnectionType.BRANCH


class TestInvariants:
    """Partition and chain shape hold for less regular graphs."""

    GRAPHS = [
        {"A": []},
        {"A": ["B"], "B": ["C"], "C": []},
        {"A": ["B", "C"], "B": [], "C": []},
        {"A": ["B", "C"], "B": ["D"], "C": ["D"], "D": ["E"], "E": []},
        {"R": ["A", "B", "C"], "A": ["X"], "B": ["X", "Y"], "C": ["Y"], "X": [], "Y": ["Z"], "Z": []},
        {"A": ["B"], "B": ["C", "D"], "C": ["E"], "D": ["E"], "E": ["F", "G"], "F": [], "G": []},
    ]

    def test_every_commit_in_exactly_one_stack(self, graph_factory):
        """Stacks partition the commit set."""
        for children in self.GRAPHS:
            graph = graph_factory(children)
            assert_partition(graph, build_stack_graph(graph))

    def test_stacks_are_unbranching_chains(self, graph_factory):
        """Only the last commit may branch, only the first may merge."""
        for children in self.GRAPHS:
            graph = graph_factory(children)
            assert_chain_shape(graph, build_stack_graph(graph))

    def test_deterministic(self, graph_factory):
        """Identical input yields identical stacks and connection order."""
        graph = graph_factory(self.GRAPHS[4])
        first = build_stack_graph(graph)
        second = build_stack_graph(graph)
        assert first.stacks == second.stacks
        assert first.connections == second.connections

    def test_dangling_child_is_skipped(self, graph_factory):
        """Children absent from the graph are ignored, not traversed."""
        graph = graph_factory({"A": ["B", "ghost"], "B": []})
        sg = build_stack_graph(graph)

        assert len(sg.stacks) == 1
        assert stack_commits(sg, "A") == ["A", "B"]
        assert "ghost" not in sg.commit_to_stack

    def test_duplicate_children_collapse(self, graph_factory):
        """A child listed twice is one edge."""
        graph = graph_factory({"A": ["B", "B"], "B": []})
        sg = build_stack_graph(graph)
        assert stack_commits(sg, "A") == ["A", "B"]

    def test_empty_graph(self):
        """No commits, no stacks."""
        sg = build_stack_graph({})
        assert sg.stacks == {}
        assert sg.root_stacks == []
        assert sg.connections == []

    def test_stack_ids_follow_timestamps(self, graph_factory):
        """Stacks are numbered by their oldest commit."""
        graph = graph_factory({"A": ["B", "C"], "B": [], "C": []})
        sg = build_stack_graph(graph)
        assert [sg.commit_to_stack[x] for x in "ABC"] == ["stack-0", "stack-1", "stack-2"]


class TestClassifyConnection:
    """Classification rule in isolation."""

    def _stack(self, name, parents=(), children=()):
        return Stack(StackId(name), [CommitId(name)], list(parents), list(children))

    def test_linear(self):
        assert classify_connection(self._stack("a", children=["b"]), self._stack("b", parents=["a"])) == (
            ConnectionType.LINEAR
        )

    def test_branch_wins_over_merge(self):
        source = self._stack("a", children=["b", "c"])
        target = self._stack("b", parents=["a", "x"])
        assert classify_connection(source, target) == ConnectionType.BRANCH

    def test_merge(self):
        source = self._stack("a", children=["b"])
        target = self._stack("b", parents=["a", "x"])
        assert classify_connection(source, target) == ConnectionType.MERGE


class TestCommitGraph:
    """Commit graph helpers."""

    def test_build_from_parents(self, commit_factory):
        """Children are derived from parents; unknown parents are ignored."""
        commits = [
            commit_factory("A", parents=(CommitId("outside"),)),
            commit_factory("B", parents=(CommitId("A"),)),
            commit_factory("C", parents=(CommitId("A"),)),
        ]
        graph = build_commit_graph(commits)
        assert graph["A"].children == ["B", "C"]
        assert graph["B"].children == []

    def test_divergent_change_ids(self, commit_factory):
        """Change ids carried by two commits are divergent."""
        commits = [
            commit_factory("A", change_id="same"),
            commit_factory("B", change_id="same"),
            commit_factory("C", change_id="other"),
        ]
        assert find_divergent_change_ids(build_commit_graph(commits)) == {"same"}
