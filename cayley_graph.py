import logging
from typing import Dict, List, Sequence, Tuple

from sympy.combinatorics import Permutation, PermutationGroup

from coset_table import (
    DEFAULT_MAX_SIZE,
    CapacityExceededError,
    CosetTable,
    Edge,
    Node,
    signed_actions,
)
from relation_parser import parse_presentation, parse_relation
from utils import Cached, cached_value, classonlymethod, purestaticmethod
from word import Word, exponentiate

logger = logging.getLogger(__name__)


class CayleyGraph(Cached):
    """
    The Cayley graph of the group presented by `generators` and `relations`.

    `run` performs a Todd-Coxeter coset enumeration over the trivial
    subgroup: starting from the identity node it defines new nodes for
    every missing generator action, traces every relation from the node
    being completed (each relation must lead back to where it started),
    and merges nodes that are forced to be equal. It stops once every node
    is complete, or fails with CapacityExceededError when more than
    `max_size` nodes are alive at once.

        >>> q8 = CayleyGraph(["r", "b"], ["r^4", "b^4", "rbr'b", "r^2b^2"])
        >>> nodes, edges = q8.run()
        >>> len(nodes), len(edges)
        (8, 16)
    """

    def __init__(
        self,
        generators: Sequence[str],
        relations: Sequence[str],
        max_size: int = DEFAULT_MAX_SIZE,
    ):
        if not generators:
            raise ValueError("At least one generator is required")
        for gen in generators:
            if not (isinstance(gen, str) and len(gen) == 1 and gen.isalpha()):
                raise ValueError(f"Generator {gen!r} is not a single letter")
        if len(set(generators)) != len(generators):
            raise ValueError(f"Duplicate generators in {list(generators)}")

        self.generators: Tuple[str, ...] = tuple(generators)
        self.relations: List[Word] = [parse_relation(rel) for rel in relations]
        for text, rel in zip(relations, self.relations):
            for gen in rel.generators():
                if gen not in self.generators:
                    raise ValueError(
                        f"Relation {text!r} uses {gen}, which is not a generator"
                    )

        self.max_size = max_size
        self.table = CosetTable(max_size)
        self.nodes: List[Node] = []
        self.edges: List[Edge] = []

        super().__init__()

    @classonlymethod
    def from_presentation(
        cls, presentation: str, max_size: int = DEFAULT_MAX_SIZE
    ) -> "CayleyGraph":
        generators, relations = parse_presentation(presentation)
        return cls(generators, relations, max_size=max_size)

    @purestaticmethod
    def parse_relation(rel: str) -> Word:
        return parse_relation(rel)

    @purestaticmethod
    def exponentiate(base: Sequence[Tuple[str, bool]], exponent: int) -> Word:
        return exponentiate(base, exponent)

    def __repr__(self) -> str:
        rels = ", ".join(repr(rel) for rel in self.relations)
        return f"Cayley graph of <{', '.join(self.generators)} | {rels}>"

    def _close_relations(self, node_id: int):
        # Every relation is trivial, so tracing it from any node must end
        # at that same node.
        table = self.table
        for rel in self.relations:
            start = table.find(node_id)
            end = table.walk(start, rel)
            table.merge(start, end.id)

    def _enumerate(self):
        table = self.table
        while (node := table.first_incomplete()) is not None:
            for action in signed_actions(self.generators):
                table.follow(node.id, action)

            self._close_relations(node.id)
            while table.resolve_coincidences(self.generators) > 0:
                pass

            # The node may have been identified with a smaller one, which is
            # then complete already.
            if node.id in table:
                node.complete = True

            logger.debug(
                "Completed node %d (%r), %d nodes, %d edges",
                node.id,
                node.label,
                len(table),
                len(table.edges),
            )

    @cached_value
    def run(self) -> Tuple[List[Node], List[Edge]]:
        try:
            self._enumerate()
        except CapacityExceededError:
            self.table = CosetTable(self.max_size)
            raise

        self.nodes, self.edges = self.table.finalize(self.generators)
        logger.info(
            "Enumerated %r: %d elements, %d edges",
            self,
            len(self.nodes),
            len(self.edges),
        )
        return self.nodes, self.edges

    def _check_done(self):
        if not self.is_cached("run"):
            raise RuntimeError("The Cayley graph has not been computed; call run()")

    def order(self) -> int:
        self._check_done()
        return len(self.nodes)

    def node_for(self, word: Word | str) -> Node:
        # The element reached from the identity by the given word.
        self._check_done()
        if isinstance(word, str):
            word = parse_relation(word)
        node_id = 0
        for action in word:
            node_id = self.table.image(node_id, action)
        return self.nodes[node_id]

    def generator_permutations(self) -> Dict[str, Permutation]:
        # Right multiplication by each generator, as a permutation of the
        # node ids.
        self._check_done()
        return {
            gen: Permutation(images) for gen, images in self.table.actions.items()
        }

    def permutation_group(self) -> PermutationGroup:
        return PermutationGroup(list(self.generator_permutations().values()))
