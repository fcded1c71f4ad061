import logging
from typing import Dict, Iterator, List, Optional, Sequence, Set, Tuple

from utils import unwrap
from word import Action, Word

logger = logging.getLogger(__name__)

DEFAULT_MAX_SIZE = 1024


class CapacityExceededError(RuntimeError):
    def __init__(self, max_size: int):
        self.max_size = max_size
        super().__init__(f"Group too large: more than {max_size} elements.")


class Node:
    def __init__(self, id: int, label: Word):
        self.id = id
        self.label = label
        self.complete = False
        # Edges by generator. While coincidences are pending a generator may
        # have several edges here, afterwards exactly one.
        self.forward_edges: Dict[str, List["Edge"]] = {}
        self.backward_edges: Dict[str, List["Edge"]] = {}

    def edges_for(self, action: Action) -> List["Edge"]:
        edges = self.backward_edges if action.inverted else self.forward_edges
        return edges.get(action.gen, [])

    def __repr__(self) -> str:
        return f"Node({self.id}, {self.label!r})"


class Edge:
    def __init__(self, source: int, target: int, label: str):
        # Endpoints may refer to merged nodes until the table is finalized.
        self.source = source
        self.target = target
        self.label = label

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Edge):
            return False
        return (self.source, self.target, self.label) == (
            other.source,
            other.target,
            other.label,
        )

    def __hash__(self) -> int:
        return hash((self.source, self.target, self.label))

    def __repr__(self) -> str:
        return f"{self.source} -- {self.label} --> {self.target}"


def signed_actions(generators: Sequence[str]) -> Iterator[Action]:
    for gen in generators:
        for inverted in (False, True):
            yield Action(gen, inverted)


class CosetTable:
    """
    The nodes and edges known so far in one enumeration run.

    Nodes live in an arena indexed by id. Merging two nodes does not rewrite
    any edge: the dropped id gets a parent pointer to the kept one, and
    endpoints are resolved through `find` whenever they are read. `finalize`
    compacts everything once the enumeration is done.
    """

    def __init__(self, max_size: int = DEFAULT_MAX_SIZE):
        if max_size < 1:
            raise ValueError("max_size must be positive")
        self.max_size = max_size
        self._parent: List[int] = []
        self._nodes: Dict[int, Node] = {}
        self.edges: List[Edge] = []
        self.actions: Dict[str, List[int]] = {}
        self.finalized = False
        self._new_node(Word())

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[Node]:
        # Ids are handed out increasingly, so this is id order.
        return iter(self._nodes.values())

    def __contains__(self, node_id: int) -> bool:
        return node_id in self._nodes

    def node(self, node_id: int) -> Node:
        return self._nodes[self.find(node_id)]

    def find(self, node_id: int) -> int:
        root = node_id
        while self._parent[root] != root:
            root = self._parent[root]
        while self._parent[node_id] != root:
            self._parent[node_id], node_id = root, self._parent[node_id]
        return root

    def _new_node(self, label: Word) -> Node:
        # Ids are never reused, even when the node with the largest id has
        # been merged away: stale endpoints still point at it.
        node = Node(len(self._parent), label)
        self._parent.append(node.id)
        self._nodes[node.id] = node
        if len(self._nodes) > self.max_size:
            raise CapacityExceededError(self.max_size)
        return node

    def _add_edge(self, source: Node, target: Node, gen: str) -> Edge:
        edge = Edge(source.id, target.id, gen)
        self.edges.append(edge)
        source.forward_edges.setdefault(gen, []).append(edge)
        target.backward_edges.setdefault(gen, []).append(edge)
        return edge

    def _far_end(self, edge: Edge, action: Action) -> int:
        return self.find(edge.source if action.inverted else edge.target)

    def successors(self, node_id: int, action: Action) -> List[Node]:
        node = self.node(node_id)
        found: List[Node] = []
        for edge in node.edges_for(action):
            succ = self._nodes[self._far_end(edge, action)]
            if succ not in found:
                found.append(succ)
        return found

    def follow(self, node_id: int, action: Action) -> Node:
        node = self.node(node_id)
        edges = node.edges_for(action)
        if edges:
            return self._nodes[self._far_end(edges[0], action)]

        successor = self._new_node(node.label * [action])
        if action.inverted:
            self._add_edge(successor, node, action.gen)
        else:
            self._add_edge(node, successor, action.gen)
        return successor

    def walk(self, node_id: int, word: Word) -> Node:
        node = self.node(node_id)
        for action in word:
            node = self.follow(node.id, action)
        return node

    def merge(self, a: int, b: int) -> int:
        keep, drop = sorted((self.find(a), self.find(b)))
        if keep == drop:
            return keep

        logger.debug("Identifying node %d with %d", keep, drop)
        kept, dropped = self._nodes[keep], self._nodes.pop(drop)
        self._parent[drop] = keep
        for gen, edges in dropped.forward_edges.items():
            kept.forward_edges.setdefault(gen, []).extend(edges)
        for gen, edges in dropped.backward_edges.items():
            kept.backward_edges.setdefault(gen, []).extend(edges)
        return keep

    def resolve_coincidences(self, generators: Sequence[str]) -> int:
        # A single pass over all nodes. Returns the number of nodes dropped.
        merged = 0
        for node in list(self._nodes.values()):
            for action in signed_actions(generators):
                # The node itself may have been absorbed earlier in the pass.
                if node.id not in self._nodes:
                    break
                succs = self.successors(node.id, action)
                if len(succs) <= 1:
                    continue
                keep = min(succ.id for succ in succs)
                for succ in succs:
                    if succ.id != keep:
                        self.merge(keep, succ.id)
                        merged += 1
        return merged

    def first_incomplete(self) -> Optional[Node]:
        return next(
            (node for node in self._nodes.values() if not node.complete), None
        )

    def finalize(self, generators: Sequence[str]) -> Tuple[List[Node], List[Edge]]:
        """
        Collapses edges with the same endpoints (the first one wins) and
        renumbers the nodes 0..n-1 in id order. Every node must be complete.

        Also fills in `actions`: for each generator, the image of every node
        under it. Unlike the edge list, this is not affected by two
        generators acting the same way between a pair of nodes.
        """
        if self.finalized:
            raise RuntimeError("Coset table has already been finalized.")

        renumbering = {node.id: idx for idx, node in enumerate(self._nodes.values())}
        for gen in generators:
            images: List[int] = []
            for node in self._nodes.values():
                (succ,) = self.successors(node.id, Action(gen))
                images.append(renumbering[succ.id])
            self.actions[gen] = images

        unique_edges: List[Edge] = []
        seen: Set[Tuple[int, int]] = set()
        for edge in self.edges:
            endpoints = (self.find(edge.source), self.find(edge.target))
            if endpoints in seen:
                continue
            seen.add(endpoints)
            unique_edges.append(Edge(*endpoints, edge.label))

        nodes = list(self._nodes.values())
        for node in nodes:
            node.id = renumbering[node.id]
            node.forward_edges.clear()
            node.backward_edges.clear()
        for edge in unique_edges:
            edge.source = renumbering[edge.source]
            edge.target = renumbering[edge.target]

        self._nodes = {node.id: node for node in nodes}
        self._parent = list(range(len(nodes)))
        self.edges = unique_edges
        self.finalized = True
        return nodes, unique_edges

    def image(self, node_id: int, action: Action) -> int:
        # Only for finalized tables, where the action of each generator is a
        # permutation of the node ids.
        if not self.finalized:
            raise RuntimeError("Coset table has not been finalized.")
        images = self.actions.get(action.gen)
        if images is None:
            raise ValueError(f"Unknown generator {action.gen}")
        if not action.inverted:
            return images[node_id]
        return unwrap(
            next((src for src, dst in enumerate(images) if dst == node_id), None)
        )
