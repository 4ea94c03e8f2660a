from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, List

from tokenflow.core.models import TraceResult
from tokenflow.io.schemas import result_to_dict


def write_trace_json(result: TraceResult, out_dir: str, filename: str = "trace.json") -> str:
    p = Path(out_dir)
    p.mkdir(parents=True, exist_ok=True)

    out_path = p / filename
    with out_path.open("w", encoding="utf-8") as f:
        json.dump(result_to_dict(result), f, indent=2)

    return str(out_path)


def write_summary_md(result: TraceResult, out_dir: str, filename: str = "summary.md") -> str:
    """
    Minimal, investigator-friendly summary.
    """
    p = Path(out_dir)
    p.mkdir(parents=True, exist_ok=True)

    out_path = p / filename

    cfg = result.config
    summary = result.summary
    kinds = {n.address: n.kind.value for n in result.nodes}

    def count_by(direction: str, field: str) -> List:
        totals: Dict[str, int] = {}
        for t in result.start_transfers:
            if t.direction != direction:
                continue
            addr = str(t.fields.get(field) or "").lower()
            totals[addr] = totals.get(addr, 0) + 1
        return sorted(totals.items(), key=lambda x: (-x[1], x[0]))[:10]

    top_in = count_by("in", "from")
    top_out = count_by("out", "to")

    def short(addr: str) -> str:
        return addr if len(addr) <= 14 else f"{addr[:10]}..."

    lines = []
    lines.append("# Trace Summary\n")
    lines.append(f"- Wallet: **{cfg.wallet}**\n")
    lines.append(f"- Token: **{cfg.token}**\n")
    lines.append(f"- Direction: **{cfg.direction.value}** • Hops: **{cfg.max_hops}** • Per address: **{cfg.per_address_limit}**\n")
    lines.append(f"- Nodes: **{summary.node_count}**\n")
    lines.append(f"- Edges: **{summary.edge_count}**\n")
    lines.append(f"- Start wallet transfers: **{summary.start_transfer_count}**\n")
    lines.append("\n")

    lines.append("## Top Senders to the Wallet (by transfer count)\n\n")
    if not top_in:
        lines.append("_No inbound transfers found._\n\n")
    else:
        for addr, n in top_in:
            lines.append(f"- **{n}** | {addr} ({kinds.get(addr, 'unknown')})\n")
        lines.append("\n")

    lines.append("## Top Recipients from the Wallet (by transfer count)\n\n")
    if not top_out:
        lines.append("_No outbound transfers found._\n\n")
    else:
        for addr, n in top_out:
            lines.append(f"- **{n}** | {addr} ({kinds.get(addr, 'unknown')})\n")
        lines.append("\n")

    lines.append("## Limitations\n\n")
    lines.append("- Only ERC-20 Transfer events of the selected token are included.\n")
    lines.append("- Each address contributes at most its most recent transfers (per-address limit).\n")
    lines.append("- Wallet/contract tags cover a bounded number of addresses; the rest stay unknown.\n\n")

    lines.append("## Most Recent Edges\n\n")
    if not result.edges:
        lines.append("_No transfers found._\n")
    else:
        for e in result.edges[:15]:
            lines.append(
                f"- **{e.label.strip()}** "
                f"| {short(e.from_address)} -> {short(e.to_address)} "
                f"| tx: {e.tx_hash}\n"
            )

    with out_path.open("w", encoding="utf-8") as f:
        f.writelines(lines)

    return str(out_path)
