"""Tests for the link graph pass."""
import pytest

from wikigrapher.errors import DanglingLinkError, DumpIOError, TitleEncodingError
from wikigrapher.graph import GraphStats, LinkGraph, LinkGraphBuilder, _CountingSink, build_link_graph
from wikigrapher.pages import PageRecord
from wikigrapher.titlemap import TitleMapping, build_title_mapping
from wikigrapher.wikilinks import UNTITLED_LINK_WARNING


@pytest.fixture
def fruit_mapping():
    return TitleMapping(
        title_to_id={"Apple": 1, "Banana": 3, "Cherry": 4},
        id_to_title={1: "Apple", 3: "Banana", 4: "Cherry"},
        redirect_to_target={"Apple Inc": "Apple"},
    )


class TestLinkGraphBuilder:
    def test_redirect_and_alias_collapse_to_one_edge(self, fruit_mapping, sink):
        builder = LinkGraphBuilder(fruit_mapping, sink=sink)
        builder.add_page(PageRecord(page_id=3, title=b"Banana", text=b"[[Apple Inc]] and [[Apple|fruit]]"))
        graph = builder.finish()
        assert graph.edges == {3: frozenset({1})}
        assert builder.stats.good_edges == 2
        assert builder.stats.bad_edges == 0

    def test_dangling_link_dropped(self, fruit_mapping, sink):
        builder = LinkGraphBuilder(fruit_mapping, sink=sink)
        builder.add_page(PageRecord(page_id=4, title=b"Cherry", text=b"[[Nonexistent Page]]"))
        graph = builder.finish()
        assert 4 not in graph.edges
        assert builder.stats.bad_edges == 1

    def test_link_targets_are_normalized(self, fruit_mapping, sink):
        builder = LinkGraphBuilder(fruit_mapping, sink=sink)
        builder.add_page(PageRecord(page_id=1, text=b"[[banana]] [[apple_Inc#Products]] [[ cherry ]]"))
        assert builder.finish().edges == {1: frozenset({3, 1, 4})}

    def test_only_one_redirect_hop(self, sink):
        mapping = TitleMapping(
            title_to_id={"C": 3},
            id_to_title={3: "C"},
            redirect_to_target={"A": "B", "B": "C"},
        )
        builder = LinkGraphBuilder(mapping, sink=sink)
        builder.add_page(PageRecord(page_id=9, text=b"[[A]] [[B]]"))
        assert builder.finish().edges == {9: frozenset({3})}
        assert builder.stats.bad_edges == 1

    def test_self_loop_kept(self, fruit_mapping, sink):
        builder = LinkGraphBuilder(fruit_mapping, sink=sink)
        builder.add_page(PageRecord(page_id=1, text=b"[[Apple]]"))
        assert builder.finish().edges == {1: frozenset({1})}

    def test_edges_come_from_the_page_id(self, fruit_mapping, sink):
        """Sources are taken from the page record, not looked up by title."""
        builder = LinkGraphBuilder(fruit_mapping, sink=sink)
        builder.add_page(PageRecord(page_id=77, title=b"Apple", text=b"[[Banana]]"))
        assert builder.finish().edges == {77: frozenset({3})}

    def test_text_without_page_id(self, fruit_mapping, sink):
        builder = LinkGraphBuilder(fruit_mapping, sink=sink)
        builder.add_page(PageRecord(title=b"Orphan", text=b"[[Apple]]"))
        assert builder.finish().edges == {}
        assert sink.warnings == ["text with no page id"]

    def test_page_without_text_ignored(self, fruit_mapping, sink):
        builder = LinkGraphBuilder(fruit_mapping, sink=sink)
        builder.add_page(PageRecord(page_id=1, title=b"Apple"))
        assert builder.finish().edges == {}
        assert builder.stats.pages_processed == 1
        assert sink.warnings == []

    def test_untitled_links_counted(self, fruit_mapping, sink):
        builder = LinkGraphBuilder(fruit_mapping, sink=sink)
        builder.add_page(PageRecord(page_id=1, text=b"[[#History]] [[Banana]] [[|x]]"))
        assert builder.stats.untitled_links == 2
        assert sink.warnings == ["found wikilink with no title"] * 2
        assert builder.finish().edges == {1: frozenset({3})}

    def test_only_untitled_link_warnings_counted(self, sink):
        stats = GraphStats()
        link_sink = _CountingSink(sink, stats)
        link_sink.warning(UNTITLED_LINK_WARNING)
        link_sink.warning("some other extractor warning")
        assert stats.untitled_links == 1
        assert sink.warnings == [UNTITLED_LINK_WARNING, "some other extractor warning"]

    def test_alias_hides_later_link_on_same_line(self, fruit_mapping, sink):
        builder = LinkGraphBuilder(fruit_mapping, sink=sink)
        builder.add_page(PageRecord(page_id=4, text=b"[[Apple|fruit]] and [[Banana]]\n[[Cherry]]"))
        assert builder.finish().edges == {4: frozenset({1, 4})}

    def test_invalid_utf8_target_reported(self, fruit_mapping, sink):
        builder = LinkGraphBuilder(fruit_mapping, sink=sink)
        builder.add_page(PageRecord(page_id=1, text=b"[[Caf\xe9]] [[Banana]]"))
        assert builder.finish().edges == {1: frozenset({3})}
        assert len(sink.errors_of(TitleEncodingError)) == 1

    def test_dangling_links_are_sampled(self, fruit_mapping, sink):
        builder = LinkGraphBuilder(fruit_mapping, sink=sink, edge_log_interval=2)
        builder.add_page(PageRecord(page_id=1, text=b"[[X1]] [[X2]] [[X3]] [[X4]] [[X5]]"))
        reported = sink.errors_of(DanglingLinkError)
        assert [e.bad_edges for e in reported] == [2, 4]
        assert reported[0].source_id == 1
        assert reported[0].target == "X2"

    def test_good_edge_progress(self, fruit_mapping, sink):
        builder = LinkGraphBuilder(fruit_mapping, sink=sink, edge_log_interval=2)
        builder.add_page(PageRecord(page_id=1, text=b"[[Banana]] [[Cherry]] [[Banana]]"))
        assert sink.progress_events == [("good edges", 2)]
        assert builder.stats.good_edges == 3

    def test_pages_linked(self, fruit_mapping, sink):
        builder = LinkGraphBuilder(fruit_mapping, sink=sink)
        builder.add_page(PageRecord(page_id=1, text=b"[[Banana]]"))
        builder.add_page(PageRecord(page_id=2, text=b"[[Durian]]"))
        assert builder.stats.pages_linked == 1

    def test_mapping_not_modified(self, fruit_mapping, sink):
        before = (dict(fruit_mapping.title_to_id), dict(fruit_mapping.redirect_to_target))
        builder = LinkGraphBuilder(fruit_mapping, sink=sink)
        builder.add_page(PageRecord(page_id=1, text=b"[[Banana]] [[Durian]]"))
        assert (fruit_mapping.title_to_id, fruit_mapping.redirect_to_target) == before


class TestLinkGraph:
    @pytest.fixture
    def graph(self):
        return LinkGraph(edges={1: frozenset({3}), 3: frozenset({1, 5})})

    def test_successors(self, graph):
        assert graph.successors(3) == frozenset({1, 5})
        assert graph.successors(99) == frozenset()

    def test_counts(self, graph):
        assert len(graph) == 2
        assert graph.edge_count() == 3
        assert graph.node_count() == 3


class TestBuildLinkGraph:
    def test_end_to_end(self, fruit_dump, sink):
        mapping = build_title_mapping(fruit_dump, sink=sink)
        graph = build_link_graph(mapping, fruit_dump, sink=sink)
        assert graph.edges == {
            1: frozenset({3}),
            2: frozenset({1}),
            3: frozenset({1}),
        }
        assert sink.errors == []

    def test_every_edge_is_backed_by_a_link(self, fruit_dump, sink):
        mapping = build_title_mapping(fruit_dump, sink=sink)
        graph = build_link_graph(mapping, fruit_dump, sink=sink)
        for targets in graph.edges.values():
            assert targets <= set(mapping.id_to_title)

    def test_missing_dump(self, fruit_mapping, temp_dir, sink):
        with pytest.raises(DumpIOError):
            build_link_graph(fruit_mapping, temp_dir / "missing.xml", sink=sink)
