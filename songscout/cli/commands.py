"""argparse subcommands for the songscout CLI.

Usage::

    python -m songscout.cli worker
    python -m songscout.cli fetch --mode editorial
    python -m songscout.cli fetch --mode specific --playlist-id 37i9dQZF1DX4JAvHpjipBk
    python -m songscout.cli audit-duplicates --threshold 90
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any

from songscout.models.playlist import BatchFetchResult, FetchMode
from songscout.services.duplicate_audit import DuplicateGroup
from songscout.utils.errors import SongScoutError


async def _startup() -> dict[str, Any]:
    from songscout.main import _build_all, config, initialize_components, settings

    components = _build_all(settings, config)
    recovered = await initialize_components(components)
    if recovered:
        print(f"Recovered {len(recovered)} interrupted job(s)")
    return components


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


async def _handle_worker(args: argparse.Namespace) -> int:
    from songscout.main import shutdown_components

    components = await _startup()
    print("Enrichment worker running (Ctrl-C to stop)")
    try:
        await components["worker"].run_forever()
    finally:
        await shutdown_components(components)
    return 0


async def _handle_fetch(args: argparse.Namespace) -> int:
    from songscout.main import shutdown_components

    components = await _startup()
    try:
        result = await components["fetch_orchestrator"].fetch_playlists(
            FetchMode(args.mode), args.playlist_id
        )
        # Resolve the debounce now; nothing will be around to receive it later.
        await components["metrics_updates"].flush()
    except SongScoutError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    finally:
        await shutdown_components(components)

    if args.json_output:
        print(result.model_dump_json(indent=2))
    else:
        _print_fetch_summary(result)
    return 0 if result.playlists_failed == 0 else 2


async def _handle_audit(args: argparse.Namespace) -> int:
    from songscout.main import shutdown_components

    components = await _startup()
    try:
        groups = await components["duplicate_audit"].find_duplicates(args.threshold)
    finally:
        await shutdown_components(components)

    if args.json_output:
        print(json.dumps([_group_dict(g) for g in groups], indent=2))
    else:
        _print_audit_report(groups)
    return 0


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


def _print_fetch_summary(result: BatchFetchResult) -> None:
    print(f"Fetch batch for {result.week}")
    print("=" * 40)
    print(f"  Tracks inserted:  {result.tracks_inserted}")
    print(f"  Playlists ok:     {result.playlists_succeeded}")
    print(f"  Playlists failed: {result.playlists_failed}")
    print(f"  Enrichment job:   {result.job_id or '-'}")
    if result.completeness:
        print("\n  Playlist                        new  skip  total  method")
        for record in result.completeness:
            flag = "" if record.is_complete else "  (incomplete)"
            total = record.total_tracks if record.total_tracks is not None else "-"
            print(
                f"    {record.name[:28]:<28} {record.fetch_count:>4} {record.skipped:>5}"
                f" {total!s:>6}  {record.fetch_method or '-'}{flag}"
            )


def _group_dict(group: DuplicateGroup) -> dict[str, Any]:
    return {
        "reason": group.reason,
        "profile_ids": group.profile_ids,
        "names": group.names,
        "detail": group.detail,
    }


def _print_audit_report(groups: list[DuplicateGroup]) -> None:
    if not groups:
        print("No suspected duplicate profiles.")
        return
    print(f"{len(groups)} suspected duplicate group(s) for manual review")
    print("=" * 40)
    for group in groups:
        print(f"\n  [{group.reason}] {group.detail}")
        for profile_id, name in zip(group.profile_ids, group.names):
            print(f"    {profile_id}  {name}")


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="songscout",
        description="Playlist fetch, enrichment worker and profile audit tools.",
    )
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("worker", help="Run the enrichment worker until interrupted")

    fetch_parser = subparsers.add_parser("fetch", help="Run one playlist fetch batch")
    fetch_parser.add_argument(
        "--mode",
        choices=[m.value for m in FetchMode],
        default=FetchMode.ALL.value,
        help="Which tracked playlists to fetch (default: all)",
    )
    fetch_parser.add_argument(
        "--playlist-id",
        dest="playlist_id",
        default=None,
        help="Playlist ID; required with --mode specific",
    )
    fetch_parser.add_argument("--json", action="store_true", dest="json_output", help="Print JSON")

    audit_parser = subparsers.add_parser(
        "audit-duplicates", help="Report songwriter profiles that look like duplicates"
    )
    audit_parser.add_argument(
        "--threshold",
        type=int,
        default=None,
        help="token_sort_ratio cut-off, 0-100 (default: from config)",
    )
    audit_parser.add_argument("--json", action="store_true", dest="json_output", help="Print JSON")

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    if args.command == "fetch" and args.mode == FetchMode.SPECIFIC.value and not args.playlist_id:
        parser.error("--playlist-id is required with --mode specific")

    handlers = {
        "worker": _handle_worker,
        "fetch": _handle_fetch,
        "audit-duplicates": _handle_audit,
    }
    try:
        exit_code = asyncio.run(handlers[args.command](args))
    except KeyboardInterrupt:
        exit_code = 130
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
