"""Console progress output for dump and load sessions."""

from __future__ import annotations

import sys
from typing import IO, Any

from replicant.emitter import Emitter, Listener
from replicant.model import Attributes, RemoteId

DESCRIPTIVE_ATTRIBUTES = ("name", "login", "email", "number", "title")


class Status(Listener):
    """Writes progress to a console stream.

    By default a single line is rewritten in place with the running object
    count, and per-type counts are printed when the session completes.
    `verbose` prints one line per tuple instead; `quiet` prints nothing.

    Args:
        emitter: The Dumper or Loader being observed; its stats() are printed
            on completion.
        prefix: "dump" or "load", used to build the progress messages.
        out: Stream to write to. Defaults to stderr.
    """

    def __init__(
        self,
        emitter: Emitter,
        prefix: str,
        out: IO[str] | None = None,
        verbose: bool = False,
        quiet: bool = False,
    ):
        self.emitter = emitter
        self.prefix = prefix
        self.out = out if out is not None else sys.stderr
        self.verbose = verbose
        self.quiet = quiet
        self.count = 0

    def on_tuple(self, type: str, id: RemoteId, attributes: Attributes, source_object: Any) -> None:
        self.count += 1
        if self.verbose:
            self.verbose_log(type, id, attributes)
        elif not self.quiet:
            self.out.write(f"==> {self.prefix}ing: {self.count} objects      \r")

    def verbose_log(self, type: str, id: RemoteId, attributes: Attributes) -> None:
        description = next(
            (attributes[key] for key in DESCRIPTIVE_ATTRIBUTES if key in attributes),
            id,
        )
        self.out.write(f"{self.prefix}: {type:<30} {description}\n")

    def on_complete(self) -> None:
        if not self.quiet:
            self.dump_stats(self.emitter.stats())

    def dump_stats(self, stats: dict[str, int]) -> None:
        self.out.write(f"==> {self.prefix}ed {self.count} total objects:    \n")
        if not stats:
            return
        width = max(len(name) for name in stats)
        for name in sorted(stats):
            self.out.write(f"{name:<{width + 1}} {stats[name]:>5}\n")
