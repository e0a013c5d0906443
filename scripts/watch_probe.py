#!/usr/bin/env python3
"""Passive watch probe for a task-list document.

This script loads a document through pytodostore, keeps watching it and
prints every external-change notification. Use it to check how quickly
(and how often) the local filesystem reports edits made by other
programs, and whether the configured grace period hides the store's own
saves.
"""

from __future__ import annotations

import argparse
import logging
import signal
import sys
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

# Allow running from repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pytodostore import StoreConfig, TodoStore, WatchdogNotifier  # noqa: E402

_LOG = logging.getLogger("watch_probe")


@dataclass
class ProbeStats:
    started_at: float
    total_changes: int = 0
    reloads_with_new_marker: int = 0
    first_change_at: float | None = None
    last_change_at: float | None = None

    def on_change(self, now: float) -> float | None:
        previous = self.last_change_at
        self.total_changes += 1
        if self.first_change_at is None:
            self.first_change_at = now
        self.last_change_at = now
        return None if previous is None else now - previous


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Watch a task-list document and report external edits.",
    )
    parser.add_argument(
        "path",
        nargs="?",
        default=None,
        help="Document to watch (defaults to the configured todo file).",
    )
    parser.add_argument(
        "--duration",
        type=int,
        default=0,
        help="Maximum runtime in seconds (0 = run until Ctrl+C).",
    )
    parser.add_argument(
        "--grace-period",
        type=float,
        default=None,
        help="Seconds to ignore events after the probe's own saves.",
    )
    parser.add_argument(
        "--self-save-every",
        type=int,
        default=0,
        help="Re-save the document every N seconds to exercise suppression (0 = never).",
    )
    parser.add_argument(
        "--polling",
        action="store_true",
        help="Use the stat-polling observer instead of native notifications.",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logs.",
    )
    return parser.parse_args()


def _print_summary(stats: ProbeStats) -> None:
    runtime = time.time() - stats.started_at
    print("[probe] Summary")
    print(f"[probe]   runtime_s      : {runtime:.1f}")
    print(f"[probe]   total_changes  : {stats.total_changes}")
    print(f"[probe]   marker_changed : {stats.reloads_with_new_marker}")
    if stats.first_change_at is not None:
        first_change = time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(stats.first_change_at))
        print(f"[probe]   first_change   : {first_change}")
    if stats.last_change_at is not None:
        last_change = time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(stats.last_change_at))
        print(f"[probe]   last_change    : {last_change}")


def _main() -> int:
    args = _parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    overrides: dict[str, Any] = {}
    if args.grace_period is not None:
        overrides["grace_period"] = args.grace_period
    config = StoreConfig.from_env(**overrides)

    stats = ProbeStats(started_at=time.time())
    pending = threading.Event()
    should_stop = False

    def stop_handler(_signum: int, _frame: Any) -> None:
        nonlocal should_stop
        should_stop = True

    def on_external_change(path: Path) -> None:
        now = time.time()
        delta = stats.on_change(now)
        ts_text = time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(now))
        gap_text = "first" if delta is None else f"{delta:.1f}s"
        print(f"[probe] change#{stats.total_changes} at {ts_text} gap={gap_text} path={path}")
        pending.set()

    def on_auth_failed() -> None:
        print("[probe] Storage access not granted", file=sys.stderr)

    signal.signal(signal.SIGINT, stop_handler)
    signal.signal(signal.SIGTERM, stop_handler)

    with TodoStore(
        config,
        notifier=WatchdogNotifier(polling=args.polling),
        on_external_change=on_external_change,
        on_auth_failed=on_auth_failed,
    ) as store:
        target = Path(args.path) if args.path else store.default_file()
        lines = store.load(target)
        print(f"[probe] Loaded {len(lines)} lines from {target} ({config.backend} backend)")
        if not store.is_watching:
            print("[probe] Not watching (scoped backend or watch disabled); polling markers only")

        last_save = time.time()
        while not should_stop:
            now = time.time()

            if args.duration > 0 and (now - stats.started_at) >= args.duration:
                print(f"[probe] Reached --duration={args.duration}s, stopping.")
                break

            if pending.is_set() or not store.is_watching:
                pending.clear()
                if store.need_sync(target):
                    stats.reloads_with_new_marker += 1
                    lines = store.load(target)
                    print(f"[probe] Reloaded {len(lines)} lines")

            if args.self_save_every > 0 and (now - last_save) >= args.self_save_every:
                store.save(target, lines)
                last_save = now
                print("[probe] Saved document (this change should not be reported)")

            time.sleep(0.5)

    _print_summary(stats)
    return 0


if __name__ == "__main__":
    raise SystemExit(_main())
