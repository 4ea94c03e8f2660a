from __future__ import annotations

from typing import Any, Dict, Union

from tokenflow.core.errors import InvalidInputError, TraceFailedError
from tokenflow.core.models import Edge, Node, StartTransfer, TraceResult


def node_to_dict(n: Node) -> Dict[str, Any]:
    return {
        "id": n.address,
        "label": n.label,
        "kind": n.kind.value,
    }


def edge_to_dict(e: Edge) -> Dict[str, Any]:
    return {
        "source": e.from_address,
        "target": e.to_address,
        "label": e.label,
        "hash": e.tx_hash,
        "timeStamp": e.timestamp,
    }


def start_transfer_to_dict(t: StartTransfer) -> Dict[str, Any]:
    # provider fields pass through untouched
    d: Dict[str, Any] = dict(t.fields)
    d["direction"] = t.direction
    d["amountFormatted"] = t.amount_formatted
    return d


def result_to_dict(r: TraceResult) -> Dict[str, Any]:
    summary = r.summary
    return {
        "ok": True,
        "wallet": r.config.wallet,
        "token": r.config.token,
        "direction": r.config.direction.value,
        "maxHops": r.config.max_hops,
        "perAddressLimit": r.config.per_address_limit,
        "graph": {
            "nodes": [node_to_dict(n) for n in r.nodes],
            "edges": [edge_to_dict(e) for e in r.edges],
        },
        "summary": {
            "nodeCount": summary.node_count,
            "edgeCount": summary.edge_count,
            "startTransferCount": summary.start_transfer_count,
        },
        "startTransfers": [start_transfer_to_dict(t) for t in r.start_transfers],
    }


def error_to_dict(exc: Union[InvalidInputError, TraceFailedError]) -> Dict[str, Any]:
    out: Dict[str, Any] = {"ok": False, "error": str(exc)}
    if isinstance(exc, InvalidInputError):
        out["field"] = exc.field
    else:
        out["stage"] = exc.stage
    return out
