from __future__ import annotations

from typing import Dict, List, Optional

from tokenflow.core.address import short_address
from tokenflow.core.models import Edge, EdgeKey, Node, NodeKind


class GraphAccumulator:
    """
    Nodes and edges discovered during one trace, deduplicated by address and
    by EdgeKey. Owned by a single trace request.
    """

    def __init__(self) -> None:
        self._nodes: Dict[str, Node] = {}
        # dicts keep insertion order, which breaks timestamp ties in edges()
        self._edges: Dict[EdgeKey, Edge] = {}

    def upsert_node(self, address: str, kind: Optional[NodeKind] = None) -> bool:
        """
        Create the node if missing. Returns True when it was created.

        A requested kind is applied only while the node is still UNKNOWN.
        """
        node = self._nodes.get(address)
        created = node is None
        if created:
            node = Node(address=address, label=short_address(address))
            self._nodes[address] = node

        if kind is not None and kind is not NodeKind.UNKNOWN and node.kind is NodeKind.UNKNOWN:
            node.kind = kind

        return created

    def upsert_edge(self, key: EdgeKey, edge: Edge) -> bool:
        if key in self._edges:
            return False
        self._edges[key] = edge
        return True

    def set_label(self, address: str, label: str) -> None:
        self._nodes[address].label = label

    def get_node(self, address: str) -> Optional[Node]:
        return self._nodes.get(address)

    def has_node(self, address: str) -> bool:
        return address in self._nodes

    def nodes(self) -> List[Node]:
        return list(self._nodes.values())

    def edges(self) -> List[Edge]:
        # sorted() is stable
        return sorted(self._edges.values(), key=lambda e: e.timestamp, reverse=True)

    @property
    def node_count(self) -> int:
        return len(self._nodes)

    @property
    def edge_count(self) -> int:
        return len(self._edges)
