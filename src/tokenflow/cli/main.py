from __future__ import annotations

import argparse
import datetime as dt
import logging
import os
import sys
import time

from tokenflow.config import settings
from tokenflow.core.errors import ConfigurationError, InvalidInputError, TraceFailedError
from tokenflow.core.models import TraceConfig
from tokenflow.services.tracer_service import TracerService
from tokenflow.io.output_writer import write_summary_md, write_trace_json

from tokenflow.adapters.chain.etherscan_chain_adapter import EtherscanChainAdapter


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="tokenflow", description="Multi-hop ERC-20 token flow tracer")
    p.add_argument("--wallet", required=True, help="Start wallet address")
    p.add_argument("--token", required=True, help="ERC-20 token contract address")
    p.add_argument(
        "--direction",
        default=settings.TRACE_DEFAULT_DIRECTION,
        help="upstream, downstream or both",
    )
    p.add_argument(
        "--max-hops",
        type=int,
        default=settings.TRACE_DEFAULT_HOPS,
        help=f"Number of hops ({settings.TRACE_MIN_HOPS}-{settings.TRACE_MAX_HOPS})",
    )
    p.add_argument(
        "--per-address-limit",
        type=int,
        default=settings.TRACE_DEFAULT_PER_ADDRESS,
        help=f"Most recent transfers fetched per address ({settings.TRACE_MIN_PER_ADDRESS}-{settings.TRACE_MAX_PER_ADDRESS})",
    )
    p.add_argument("--workers", type=int, default=settings.TRACE_FETCH_WORKERS, help="Concurrent queries per hop")
    p.add_argument("--out", default="out", help="Output folder")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return p


def _make_progress_reporter(cfg: TraceConfig):
    start_time = time.time()
    is_tty = sys.stdout.isatty()

    def _ts() -> str:
        return dt.datetime.now().strftime("%H:%M:%S")

    def _print_line(message: str) -> None:
        if is_tty:
            sys.stdout.write("\r" + message.ljust(88))
            sys.stdout.flush()
        else:
            print(message)

    def _clear_line() -> None:
        if is_tty:
            sys.stdout.write("\r" + (" " * 88) + "\r")
            sys.stdout.flush()

    def progress(event: str, data: dict) -> None:
        if event == "start":
            print(
                f"[{_ts()}] Tracing {data['wallet']} • token {data['token']} • "
                f"{data['direction']} • {data['max_hops']} hop(s)"
            )
            return
        if event == "hop":
            _print_line(
                f"Hop {data['hop'] + 1}/{cfg.max_hops} • "
                f"frontier {data['frontier']} • "
                f"nodes {data['nodes']} • "
                f"edges {data['edges']}"
            )
            return
        if event == "fetch_error":
            _clear_line()
            print(f"[{_ts()}] Skipped {data['address']}: {data['message']}", file=sys.stderr)
            return
        if event == "classify":
            _print_line(f"Tagging wallets/contracts... {data['count']} address(es)")
            return
        if event == "done":
            _clear_line()
            elapsed = time.time() - start_time
            print(
                f"[{_ts()}] Done in {elapsed:.1f}s • "
                f"{data['nodes']} nodes • {data['edges']} edges • "
                f"{data['start_transfers']} wallet transfer(s)"
            )
            return
        if event == "error":
            _clear_line()
            print(f"[{_ts()}] Error: {data.get('message', 'Unknown error')}", file=sys.stderr)

    return progress


def main(argv=None) -> int:
    args = build_arg_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        cfg = TracerService.make_config(
            args.wallet,
            args.token,
            args.direction,
            args.max_hops,
            args.per_address_limit,
        )
    except InvalidInputError as exc:
        print(f"Invalid --{exc.field.replace('_', '-')}: {exc}", file=sys.stderr)
        return 2

    progress = _make_progress_reporter(cfg)

    # Etherscan key should come from env or .env file
    if not os.getenv("ETHERSCAN_API_KEY"):
        progress("error", {"message": "Missing ETHERSCAN_API_KEY environment variable"})
        return 2

    try:
        chain = EtherscanChainAdapter()
    except ConfigurationError as exc:
        progress("error", {"message": str(exc)})
        return 2

    svc = TracerService(chain=chain, workers=args.workers)
    try:
        result = svc.trace(cfg, on_progress=progress)
    except TraceFailedError:
        # already reported through the "error" progress event
        return 1

    # Outputs
    print("Writing outputs...")
    trace_path = write_trace_json(result, args.out)
    summary_path = write_summary_md(result, args.out)

    print(f"Wrote: {trace_path}")
    print(f"Wrote: {summary_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
