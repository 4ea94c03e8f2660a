from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Set, Tuple, TypeVar

from tokenflow.config import settings
from tokenflow.core.address import format_amount, is_address, normalize, short_address
from tokenflow.core.dto import ClassifyOutcome, RawTokenTransfer, TransferPage
from tokenflow.core.errors import ConfigurationError, DataSourceError, InvalidInputError, TraceFailedError
from tokenflow.core.graph import GraphAccumulator
from tokenflow.core.models import (
    Direction,
    Edge,
    EdgeKey,
    NodeKind,
    StartTransfer,
    TraceConfig,
    TraceResult,
)
from tokenflow.io.schemas import error_to_dict, result_to_dict
from tokenflow.ports.chain_data_port import ChainDataPort


logger = logging.getLogger(__name__)

ProgressFn = Callable[[str, Dict[str, Any]], None]

_T = TypeVar("_T")
_R = TypeVar("_R")


def _noop_progress(event: str, data: Dict[str, Any]) -> None:
    return None


@dataclass
class _TraceState:
    """Everything one trace request accumulates. Never shared between requests."""

    start: str
    graph: GraphAccumulator = field(default_factory=GraphAccumulator)
    visited: Set[str] = field(default_factory=set)
    classify_queue: List[str] = field(default_factory=list)
    start_transfers: List[StartTransfer] = field(default_factory=list)

    def add_node(self, address: str) -> None:
        if self.graph.upsert_node(address) and len(self.classify_queue) < settings.TRACE_CLASSIFY_LIMIT:
            self.classify_queue.append(address)


class TracerService:
    """
    Builds a token-flow graph for one ERC-20 token from a start wallet.

    - Traversal: breadth-first, one hop per round, hop n+1 starts after
      every hop-n query has been merged
    - Direction: downstream follows outgoing transfers, upstream incoming,
      both follows either
    - Per-address query failures are skipped; they never abort the trace
    - After traversal, up to TRACE_CLASSIFY_LIMIT discovered addresses are
      tagged wallet/contract (best effort)
    """

    def __init__(self, chain: ChainDataPort, workers: int = settings.TRACE_FETCH_WORKERS) -> None:
        self.chain = chain
        self.workers = max(1, int(workers))

    # -------------------------
    # Input validation
    # -------------------------

    @staticmethod
    def make_config(
        wallet: Any,
        token: Any,
        direction: Any = None,
        max_hops: Any = None,
        per_address_limit: Any = None,
    ) -> TraceConfig:
        if not is_address(wallet):
            raise InvalidInputError("wallet", "Invalid wallet address")
        if not is_address(token):
            raise InvalidInputError("token", "Invalid token contract address")

        return TraceConfig(
            wallet=normalize(wallet),
            token=normalize(token),
            direction=_parse_direction(direction),
            max_hops=_clamp_int(
                max_hops,
                settings.TRACE_MIN_HOPS,
                settings.TRACE_MAX_HOPS,
                settings.TRACE_DEFAULT_HOPS,
            ),
            per_address_limit=_clamp_int(
                per_address_limit,
                settings.TRACE_MIN_PER_ADDRESS,
                settings.TRACE_MAX_PER_ADDRESS,
                settings.TRACE_DEFAULT_PER_ADDRESS,
            ),
        )

    # -------------------------
    # Trace
    # -------------------------

    def trace(self, cfg: TraceConfig, on_progress: Optional[ProgressFn] = None) -> TraceResult:
        progress = on_progress or _noop_progress

        # configs built by hand still go through validation + clamping
        cfg = self.make_config(cfg.wallet, cfg.token, cfg.direction, cfg.max_hops, cfg.per_address_limit)

        state = _TraceState(start=cfg.wallet)
        state.visited.add(cfg.wallet)
        state.add_node(cfg.wallet)

        progress("start", {
            "wallet": cfg.wallet,
            "token": cfg.token,
            "direction": cfg.direction.value,
            "max_hops": cfg.max_hops,
        })

        try:
            self._traverse(cfg, state, progress)
        except Exception as exc:
            raise self._failure("traverse", exc, progress) from exc

        try:
            self._classify(state, progress)
        except Exception as exc:
            raise self._failure("classify", exc, progress) from exc

        self._mark_start(state)

        start_transfers = sorted(state.start_transfers, key=lambda t: t.timestamp, reverse=True)
        result = TraceResult(
            config=cfg,
            nodes=state.graph.nodes(),
            edges=state.graph.edges(),
            start_transfers=start_transfers[: settings.TRACE_START_TRANSFERS_LIMIT],
        )

        summary = result.summary
        progress("done", {
            "nodes": summary.node_count,
            "edges": summary.edge_count,
            "start_transfers": summary.start_transfer_count,
        })
        return result

    def _traverse(self, cfg: TraceConfig, state: _TraceState, progress: ProgressFn) -> None:
        frontier: List[str] = [cfg.wallet]

        for hop in range(cfg.max_hops):
            if not frontier:
                logger.debug("frontier empty before hop %d, stopping", hop)
                break

            progress("hop", {
                "hop": hop,
                "frontier": len(frontier),
                "nodes": state.graph.node_count,
                "edges": state.graph.edge_count,
            })

            results = self._run_parallel(lambda a: self._fetch_one(a, cfg), frontier, self.workers)

            # fan-in: merge sequentially in frontier order
            next_frontier: List[str] = []
            for address, (page, error) in zip(frontier, results):
                if error is not None:
                    progress("fetch_error", {"address": address, "hop": hop, "message": error})
                    continue
                if page is None or page.is_empty:
                    continue
                for t in page.transfers:
                    self._merge_transfer(cfg, state, address, t, next_frontier)

            logger.info(
                "hop %d: queried %d address(es), %d node(s), %d edge(s), next frontier %d",
                hop, len(frontier), state.graph.node_count, state.graph.edge_count, len(next_frontier),
            )
            frontier = next_frontier

    def _fetch_one(self, address: str, cfg: TraceConfig) -> Tuple[Optional[TransferPage], Optional[str]]:
        try:
            return self.chain.fetch_transfers(address, cfg.token, cfg.per_address_limit), None
        except DataSourceError as exc:
            logger.warning("transfer query failed for %s: %s", address, exc)
            return None, str(exc)

    def _merge_transfer(
        self,
        cfg: TraceConfig,
        state: _TraceState,
        queried: str,
        t: RawTokenTransfer,
        next_frontier: List[str],
    ) -> None:
        from_addr = normalize(t.from_address)
        to_addr = normalize(t.to_address)
        is_out = from_addr == queried
        is_in = to_addr == queried

        # the start-wallet report ignores the direction filter
        if queried == state.start:
            state.start_transfers.append(self._start_transfer(t, state.start))

        if not _include(cfg.direction, is_out, is_in):
            return

        state.add_node(from_addr)
        state.add_node(to_addr)
        state.graph.upsert_edge(
            EdgeKey(t.tx_hash, t.tx_index, from_addr, to_addr, t.value_raw),
            Edge(
                from_address=from_addr,
                to_address=to_addr,
                label=_amount_label(t),
                tx_hash=t.tx_hash,
                timestamp=t.timestamp,
            ),
        )

        follow_out = cfg.direction in (Direction.DOWNSTREAM, Direction.BOTH)
        follow_in = cfg.direction in (Direction.UPSTREAM, Direction.BOTH)

        if follow_out and is_out and to_addr not in state.visited:
            state.visited.add(to_addr)
            next_frontier.append(to_addr)
        if follow_in and is_in and from_addr not in state.visited:
            state.visited.add(from_addr)
            next_frontier.append(from_addr)

    @staticmethod
    def _start_transfer(t: RawTokenTransfer, start: str) -> StartTransfer:
        return StartTransfer(
            fields=dict(t.fields),
            direction="out" if normalize(t.from_address) == start else "in",
            amount_formatted=_amount_label(t),
            timestamp=t.timestamp,
        )

    # -------------------------
    # Classification
    # -------------------------

    def _classify(self, state: _TraceState, progress: ProgressFn) -> None:
        queue = list(dict.fromkeys(state.classify_queue))[: settings.TRACE_CLASSIFY_LIMIT]
        if not queue:
            return

        progress("classify", {"count": len(queue)})
        outcomes = self._run_parallel(self._classify_one, queue, len(queue))

        failed = 0
        for o in outcomes:
            if not o.ok:
                failed += 1
                continue
            state.graph.upsert_node(o.address, NodeKind.CONTRACT if o.is_contract else NodeKind.WALLET)

        if failed:
            logger.info("classification: %d of %d address(es) left unknown", failed, len(queue))

    def _classify_one(self, address: str) -> ClassifyOutcome:
        try:
            return ClassifyOutcome(address=address, is_contract=bool(self.chain.is_contract(address)))
        except ConfigurationError:
            raise
        except Exception as exc:
            # any per-address failure leaves the node unclassified
            logger.warning("contract check failed for %s: %s: %s", address, exc.__class__.__name__, exc)
            return ClassifyOutcome(address=address, error=f"{exc.__class__.__name__}: {exc}")

    @staticmethod
    def _failure(stage: str, exc: Exception, progress: ProgressFn) -> TraceFailedError:
        if isinstance(exc, ConfigurationError):
            progress("error", {"message": str(exc)})
            return TraceFailedError("config", exc)
        progress("error", {"message": f"{exc.__class__.__name__}: {exc}"})
        return TraceFailedError(stage, exc)

    @staticmethod
    def _mark_start(state: _TraceState) -> None:
        state.graph.upsert_node(state.start, NodeKind.WALLET)
        state.graph.set_label(state.start, f"{settings.START_NODE_LABEL} {short_address(state.start)}")

    # -------------------------
    # Helpers
    # -------------------------

    @staticmethod
    def _run_parallel(fn: Callable[[_T], _R], items: Sequence[_T], max_workers: int) -> List[_R]:
        """Apply fn to every item; results come back in item order."""
        if max_workers <= 1 or len(items) <= 1:
            return [fn(i) for i in items]
        with ThreadPoolExecutor(max_workers=min(max_workers, len(items))) as pool:
            return list(pool.map(fn, items))


def run_trace(
    service: TracerService,
    wallet: Any,
    token: Any,
    direction: Any = None,
    max_hops: Any = None,
    per_address_limit: Any = None,
    on_progress: Optional[ProgressFn] = None,
) -> Dict[str, Any]:
    """
    Validate, trace and serialize. Failures come back as {"ok": False, ...}
    instead of raising.
    """
    try:
        cfg = TracerService.make_config(wallet, token, direction, max_hops, per_address_limit)
        result = service.trace(cfg, on_progress=on_progress)
    except (InvalidInputError, TraceFailedError) as exc:
        return error_to_dict(exc)
    return result_to_dict(result)


def _include(direction: Direction, is_out: bool, is_in: bool) -> bool:
    if direction is Direction.BOTH:
        return True
    if direction is Direction.DOWNSTREAM:
        return is_out
    return is_in


def _amount_label(t: RawTokenTransfer) -> str:
    return f"{format_amount(t.value_raw, t.token_decimals)} {t.token_symbol}"


def _parse_direction(value: Any) -> Direction:
    if value is None or value == "":
        return Direction(settings.TRACE_DEFAULT_DIRECTION)
    if isinstance(value, Direction):
        return value
    try:
        return Direction(str(value).strip().lower())
    except ValueError:
        raise InvalidInputError(
            "direction",
            f"Invalid direction {value!r} (expected upstream, downstream or both)",
        ) from None


def _clamp_int(value: Any, lo: int, hi: int, default: int) -> int:
    if value is None or isinstance(value, bool):
        return default
    try:
        n = int(value)
    except (TypeError, ValueError):
        return default
    return max(lo, min(hi, n))
