from typing import List, Tuple

import pytest

from cayley_graph import CayleyGraph
from coset_table import CapacityExceededError, CosetTable
from relation_parser import (
    RelationSyntaxError,
    parse_presentation,
    parse_relation,
    tokenize,
)
from word import Action, Word, exponentiate

F, T = False, True


def test_exponentiate():
    g, h = ("g", F), ("h", F)
    g_inv = ("g", T)

    assert exponentiate([g], 2) == [g, g]
    assert exponentiate([g_inv], 2) == [g_inv, g_inv]
    assert exponentiate([g], -1) == [g_inv]
    assert exponentiate([g_inv], -2) == [g, g]
    assert exponentiate([g_inv, h], -1) == [("h", T), ("g", F)]
    assert exponentiate([g], 0) == []
    assert exponentiate([g_inv, h], 0) == []
    assert exponentiate([], 5) == []


def test_exponentiation_laws():
    words = [
        Word([("a", F)]),
        Word([("a", F), ("b", T)]),
        Word([("a", T), ("b", F), ("c", F), ("a", F)]),
    ]
    for w in words:
        for m in range(0, 4):
            for n in range(0, 4):
                assert w ** (m + n) == w**m * w**n
                assert w ** -(m + n) == w**-m * w**-n
        for n in range(5):
            inverse = Word((gen, not inv) for gen, inv in (w**n).word[::-1])
            assert w**-n == inverse
            assert ~(w**n) == w**-n

    # Words are not reduced.
    a = Word([("a", F)])
    assert len(a * ~a) == 2
    assert not (a * ~a).is_identity()


def test_word():
    w = parse_relation("a^3b'b'a")
    assert repr(w) == "a^3b^-2a"
    assert repr(Word()) == "identity"
    assert w.length() == 6
    assert w.generators() == ["a", "b"]
    assert w.last_action() == Action("a")
    assert w[0] == ("a", False)
    assert w[3:5] == [("b", T), ("b", T)]
    assert ~Action("b") == Action("b", True)
    assert repr(Action("b", True)) == "b'"


def test_parse_basic_relations():
    assert parse_relation("ggg") == [("g", F), ("g", F), ("g", F)]
    assert parse_relation("ghk") == [("g", F), ("h", F), ("k", F)]
    assert parse_relation("") == []


def test_parse_primes():
    assert parse_relation("g'g'g") == [("g", T), ("g", T), ("g", F)]
    assert parse_relation("(gh)'") == [("h", T), ("g", T)]


def test_parse_positive_exponents():
    assert parse_relation("g^3") == [("g", F), ("g", F), ("g", F)]
    assert parse_relation("gh^2k") == [("g", F), ("h", F), ("h", F), ("k", F)]
    assert parse_relation("(gh)^2k") == [
        ("g", F),
        ("h", F),
        ("g", F),
        ("h", F),
        ("k", F),
    ]
    assert parse_relation("(gh)^2k") == parse_relation("ghghk")
    assert parse_relation("g^+2") == parse_relation("gg")
    assert parse_relation("g^0h") == parse_relation("h")


def test_parse_negative_exponents():
    assert parse_relation("g^-3") == [("g", T), ("g", T), ("g", T)]
    assert parse_relation("gh^-2k") == [("g", F), ("h", T), ("h", T), ("k", F)]
    assert parse_relation("(gh)^-2k") == [
        ("h", T),
        ("g", T),
        ("h", T),
        ("g", T),
        ("k", F),
    ]


def test_parse_nested_exponents():
    assert parse_relation("g^-3^-1") == [("g", F), ("g", F), ("g", F)]
    assert parse_relation("g^-3^-1") == parse_relation("g^3")
    assert parse_relation("g^2'") == parse_relation("g^-2")
    assert parse_relation("(gh)^2^-1") == parse_relation("h'g'h'g'")


def test_parse_nested_parentheses():
    assert parse_relation("((ab)^2c)^2") == parse_relation("ababcababc")
    assert parse_relation("a(b(cd)')^-1") == parse_relation("acdb'")
    assert parse_relation(" (a b) ^2 ") == parse_relation("abab")


def test_parse_canonical_word_unchanged():
    for text in ["a", "abc", "abba", "zyxw"]:
        word = parse_relation(text)
        assert word == [(let, F) for let in text]


def test_parse_errors():
    bad = [
        "^2g",  # leading exponent
        "'g",  # leading prime
        "(^2g)",  # exponent after open parenthesis
        "a('b)",
        "g)",  # unmatched close parenthesis
        "(ab))",
        "(ab",  # never closed
        "g*h",  # unrecognized characters
        "g^",
        "g1",
    ]
    for text in bad:
        with pytest.raises(RelationSyntaxError):
            parse_relation(text)

    with pytest.raises(RelationSyntaxError) as info:
        parse_relation("ab$")
    assert info.value.position == 2
    assert isinstance(info.value, ValueError)


def test_tokenize():
    assert tokenize("g^-3^-1") == ["g^-3^-1"]
    assert tokenize("(gh)'k") == ["(", "g", "h", ")^-1", "k"]


def test_parse_presentation():
    assert parse_presentation("<a, b | a^2, b^3, (ab)^5>") == (
        ["a", "b"],
        ["a^2", "b^3", "(ab)^5"],
    )
    assert parse_presentation("<a, b | a^2 = 1, ab = ba>") == (
        ["a", "b"],
        ["a^2", "ab(ba)^-1"],
    )
    assert parse_presentation("<x>") == (["x"], [])
    assert parse_presentation("<x | >") == (["x"], [])

    for text in ["a, b | a^2", "<ab | a>", "<a | a | a>", "<a | a = = a>", "< | a>"]:
        with pytest.raises(RelationSyntaxError):
            parse_presentation(text)


def test_coset_table_follow():
    table = CosetTable()
    a, a_inv = Action("a"), Action("a", True)

    n1 = table.follow(0, a)
    assert n1.id == 1
    assert n1.label == [("a", F)]
    assert (table.edges[-1].source, table.edges[-1].target) == (0, 1)

    n2 = table.follow(0, a_inv)
    assert n2.id == 2
    assert n2.label == [("a", T)]
    # An inverse action is stored as a forward edge into the node it came from.
    assert (table.edges[-1].source, table.edges[-1].target) == (2, 0)
    assert table.edges[-1].label == "a"

    assert table.follow(0, a) is n1
    assert table.follow(2, a).id == 0
    assert [n.id for n in table.successors(1, a_inv)] == [0]
    assert table.successors(1, a) == []
    assert len(table) == 3


def test_coset_table_merge():
    table = CosetTable()
    a, a_inv = Action("a"), Action("a", True)
    table.follow(0, a)
    table.follow(0, a_inv)

    assert table.merge(2, 1) == 1
    assert len(table) == 2
    assert 2 not in table
    assert table.find(2) == 1
    assert table.follow(0, a_inv).id == 1
    assert [n.id for n in table.successors(1, a)] == [0]
    assert table.merge(0, 2) == 0
    assert [node.id for node in table] == [0]


def test_coset_table_coincidences():
    table = CosetTable()
    a, b = Action("a"), Action("b")
    table.follow(0, a)  # 1
    table.follow(0, b)  # 2
    table.follow(2, a)  # 3
    table.merge(0, 2)

    assert sorted(n.id for n in table.successors(0, a)) == [1, 3]
    assert table.resolve_coincidences(["a", "b"]) == 1
    assert table.resolve_coincidences(["a", "b"]) == 0
    assert [node.id for node in table] == [0, 1]
    assert [n.id for n in table.successors(0, a)] == [1]


def test_coset_table_capacity():
    table = CosetTable(max_size=2)
    table.follow(0, Action("a"))
    with pytest.raises(CapacityExceededError) as info:
        table.follow(1, Action("a"))
    assert info.value.max_size == 2

    with pytest.raises(ValueError):
        CosetTable(max_size=0)


KNOWN_GROUPS: List[Tuple[List[str], List[str], int, int]] = [
    (["r", "b"], ["r^4", "b^4", "rbr'b", "r^2b^2"], 8, 16),  # Q8
    (["r", "b"], ["b^6", "r^2b^3", "r^-1brb"], 12, 24),  # Dic12
    (["a", "b"], ["a^5", "b^4", "aba^-2b'"], 20, 40),  # Frob20
    (["a", "b", "c"], ["a^2", "b^2", "c^2", "(ab)^2", "(bc)^3", "(ac)^3"], 24, 72),
    (["a"], ["a^7"], 7, 7),
    (["a"], ["a"], 1, 1),
    (["r", "s"], ["r^5", "s^2", "(rs)^2"], 10, 20),  # D5
    (["a", "b"], ["a^2", "b^2", "(ab)^2"], 4, 8),  # Klein four
]


def check_graph(nodes, edges, n_generators: int):
    assert [node.id for node in nodes] == list(range(len(nodes)))
    pairs = [(edge.source, edge.target) for edge in edges]
    assert len(pairs) == len(set(pairs))
    assert all(0 <= s < len(nodes) and 0 <= t < len(nodes) for s, t in pairs)
    assert all(node.complete for node in nodes)
    assert len(edges) == len(nodes) * n_generators


def test_known_groups():
    for generators, relations, n_nodes, n_edges in KNOWN_GROUPS:
        graph = CayleyGraph(generators, relations)
        nodes, edges = graph.run()
        assert len(nodes) == n_nodes, relations
        assert len(edges) == n_edges, relations
        check_graph(nodes, edges, len(generators))
        assert graph.order() == n_nodes
        assert graph.permutation_group().order() == n_nodes


def test_single_valued_actions():
    graph = CayleyGraph(
        ["a", "b", "c"], ["a^2", "b^2", "c^2", "(ab)^2", "(bc)^3", "(ac)^3"]
    )
    nodes, edges = graph.run()
    for gen in graph.generators:
        outgoing = sorted(e.source for e in edges if e.label == gen)
        incoming = sorted(e.target for e in edges if e.label == gen)
        assert outgoing == list(range(len(nodes)))
        assert incoming == list(range(len(nodes)))


def test_run_is_cached():
    graph = CayleyGraph(["a"], ["a^3"])
    first = graph.run()
    assert graph.run() is first
    assert graph.nodes is first[0]


def test_node_for():
    q8 = CayleyGraph(["r", "b"], ["r^4", "b^4", "rbr'b", "r^2b^2"])
    q8.run()
    assert q8.node_for("").id == 0
    assert q8.node_for("r^4").id == 0
    assert q8.node_for("r^2") is q8.node_for("b^2")
    assert q8.node_for("rb") is not q8.node_for("br")
    assert q8.node_for("rb") is q8.node_for("b r'")
    assert q8.node_for(Word([("r", T)])) is q8.node_for("r^3")
    elements = ["", "r", "r^2", "r^3", "b", "rb", "r^2b", "r^3b"]
    assert len({q8.node_for(w).id for w in elements}) == 8

    with pytest.raises(ValueError):
        q8.node_for("z")


def test_accessors_need_run():
    graph = CayleyGraph(["a"], ["a^3"])
    with pytest.raises(RuntimeError):
        graph.order()
    with pytest.raises(RuntimeError):
        graph.generator_permutations()


def test_permutations():
    s3 = CayleyGraph(["a", "b"], ["a^2", "b^3", "(ab)^2"])
    s3.run()
    group = s3.permutation_group()
    assert group.order() == 6
    assert not group.is_abelian
    assert s3.generator_permutations()["a"].order() == 2
    assert s3.generator_permutations()["b"].order() == 3

    q8 = CayleyGraph(["r", "b"], ["r^4", "b^4", "rbr'b", "r^2b^2"])
    q8.run()
    assert not q8.permutation_group().is_abelian

    c6 = CayleyGraph(["a", "b"], ["a^2", "b^3", "aba'b'"])
    c6.run()
    assert c6.order() == 6
    assert c6.permutation_group().is_abelian


def test_equal_generators():
    # a and b act identically, so their edges collapse into one.
    graph = CayleyGraph(["a", "b"], ["a^3", "ab'"])
    nodes, edges = graph.run()
    assert len(nodes) == 3
    assert len(edges) == 3
    perms = graph.generator_permutations()
    assert perms["a"] == perms["b"]
    assert perms["a"].order() == 3


def test_from_presentation():
    q8 = CayleyGraph.from_presentation("<r, b | r^4 = 1, r^2 = b^2, b r b' = r'>")
    nodes, edges = q8.run()
    assert len(nodes) == 8
    assert len(edges) == 16

    s4 = CayleyGraph.from_presentation(
        "<a, b, c | a^2, b^2, c^2, (ab)^2, (bc)^3, (ac)^3>"
    )
    assert s4.run()[0][-1].id == 23


def test_static_helpers():
    assert CayleyGraph.parse_relation("(gh)^2k") == parse_relation("ghghk")
    assert CayleyGraph.exponentiate([("g", F)], -2) == [("g", T), ("g", T)]
    graph = CayleyGraph(["a"], ["a^2"])
    with pytest.raises(TypeError):
        graph.parse_relation("a")
    with pytest.raises(TypeError):
        graph.from_presentation("<a | a>")


def test_invalid_input():
    with pytest.raises(RelationSyntaxError):
        CayleyGraph(["a", "b"], ["a^2", "(ab"])
    with pytest.raises(ValueError):
        CayleyGraph(["a"], ["ab"])
    with pytest.raises(ValueError):
        CayleyGraph([], [])
    with pytest.raises(ValueError):
        CayleyGraph(["a", "a"], ["a^2"])
    with pytest.raises(ValueError):
        CayleyGraph(["ab"], ["ab"])


def test_capacity_exceeded():
    # S4 has 24 elements.
    s4 = CayleyGraph(
        ["a", "b", "c"],
        ["a^2", "b^2", "c^2", "(ab)^2", "(bc)^3", "(ac)^3"],
        max_size=20,
    )
    with pytest.raises(CapacityExceededError):
        s4.run()
    assert s4.nodes == [] and s4.edges == []
    # The failed run is not cached; running again fails the same way.
    with pytest.raises(CapacityExceededError):
        s4.run()

    # Infinite groups: Z^2 and the free group of rank 2.
    for relations in (["aba'b'"], []):
        graph = CayleyGraph(["a", "b"], relations, max_size=100)
        with pytest.raises(CapacityExceededError):
            graph.run()


def test_capacity_is_enough():
    graph = CayleyGraph(["a"], ["a^50"], max_size=60)
    nodes, edges = graph.run()
    assert len(nodes) == 50
    assert len(edges) == 50
