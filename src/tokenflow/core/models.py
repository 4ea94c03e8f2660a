from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, NamedTuple

from tokenflow.config import settings


class Direction(str, Enum):
    UPSTREAM = "upstream"
    DOWNSTREAM = "downstream"
    BOTH = "both"


class NodeKind(str, Enum):
    WALLET = "wallet"
    CONTRACT = "contract"
    UNKNOWN = "unknown"



# Configuration model

@dataclass(frozen=True)
class TraceConfig:
    """
    Validated trace request. Build it with TracerService.make_config so
    addresses are normalized and numeric knobs are clamped.
    """

    wallet: str
    token: str
    direction: Direction = Direction.DOWNSTREAM
    max_hops: int = settings.TRACE_DEFAULT_HOPS
    per_address_limit: int = settings.TRACE_DEFAULT_PER_ADDRESS



# Graph models

@dataclass
class Node:

    address: str
    label: str
    kind: NodeKind = NodeKind.UNKNOWN


class EdgeKey(NamedTuple):
    tx_hash: str
    tx_index: str
    from_address: str
    to_address: str
    value_raw: str


@dataclass(frozen=True)
class Edge:

    from_address: str
    to_address: str

    label: str              # "<amount> <symbol>"
    tx_hash: str
    timestamp: int


@dataclass(frozen=True)
class StartTransfer:
    """
    A transfer touching the start wallet, kept for the report only.
    """

    fields: Dict[str, str]
    direction: str          # "in" | "out"
    amount_formatted: str
    timestamp: int



# Result models

@dataclass(frozen=True)
class TraceSummary:
    node_count: int
    edge_count: int
    start_transfer_count: int


@dataclass
class TraceResult:

    config: TraceConfig
    nodes: List[Node] = field(default_factory=list)
    edges: List[Edge] = field(default_factory=list)
    start_transfers: List[StartTransfer] = field(default_factory=list)

    @property
    def summary(self) -> TraceSummary:
        return TraceSummary(
            node_count=len(self.nodes),
            edge_count=len(self.edges),
            start_transfer_count=len(self.start_transfers),
        )
