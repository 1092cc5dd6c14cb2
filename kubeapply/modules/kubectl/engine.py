"""
kubectl command engine adapter.

Wraps the kubectl binary the way kubectl's own command library is driven:
a command is built with its flag set, flags are set by name, and ``run()``
blocks until kubectl finishes. When kubectl exits non-zero the failure is
routed to the command's own fatal handler or, without one, to a single
process-wide handler that by default prints the message and exits the
process. Callers that need the error as a value either bind a handler to
the command or install one process-wide with ``fatal_behavior()``.

The process-wide slot is global mutable state with no per-call scoping;
callers must serialize any code that installs a handler there.
"""

import io
import logging
import subprocess
import sys
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, List, Optional, TextIO, Tuple

from .errors import UnknownFlagError

logger = logging.getLogger(__name__)

FatalHandler = Callable[[str, int], None]

DEFAULT_ERROR_EXIT_CODE = 1


def _default_fatal(msg: str, code: int) -> None:
    if msg:
        if not msg.endswith("\n"):
            msg += "\n"
        sys.stderr.write(msg)
    raise SystemExit(code)


_fatal_err_handler: FatalHandler = _default_fatal


def behavior_on_fatal(fn: FatalHandler) -> None:
    """Replace the process-wide fatal-error handler."""
    global _fatal_err_handler
    _fatal_err_handler = fn


def default_behavior_on_fatal() -> None:
    """Restore the handler that prints the error and exits."""
    global _fatal_err_handler
    _fatal_err_handler = _default_fatal


def get_fatal_err_handler() -> FatalHandler:
    return _fatal_err_handler


def is_default_fatal_handler() -> bool:
    return _fatal_err_handler is _default_fatal


@contextmanager
def fatal_behavior(fn: FatalHandler) -> Iterator[None]:
    """Install ``fn`` as the fatal handler for the duration of the block."""
    behavior_on_fatal(fn)
    try:
        yield
    finally:
        default_behavior_on_fatal()


def fatal(msg: str, code: int) -> None:
    _fatal_err_handler(msg, code)


def check_err(stderr: str, returncode: int, handler: Optional[FatalHandler] = None) -> None:
    """
    Route a failed kubectl exit through the fatal handler.

    The message is the error text kubectl printed, unchanged. ``Warning:``
    lines are not part of it. ``handler`` takes precedence over the
    process-wide hook.
    """
    if returncode == 0:
        return
    lines = [line for line in stderr.splitlines() if not line.startswith("Warning:")]
    msg = "\n".join(lines).strip()
    if not msg:
        msg = f"error: kubectl exited with code {returncode}"
    code = returncode if returncode > 0 else DEFAULT_ERROR_EXIT_CODE
    if handler is not None:
        handler(msg, code)
    else:
        fatal(msg, code)


@dataclass
class IOStreams:
    """Standard streams for a command."""

    in_: TextIO
    out: TextIO
    err_out: TextIO


def new_test_io_streams() -> Tuple[IOStreams, io.StringIO, io.StringIO, io.StringIO]:
    """
    Create streams backed by in-memory buffers.

    Returns the streams plus the in, out and err buffers so callers can read
    back what the command wrote.
    """
    in_buf = io.StringIO()
    out_buf = io.StringIO()
    err_buf = io.StringIO()
    return IOStreams(in_=in_buf, out=out_buf, err_out=err_buf), in_buf, out_buf, err_buf


@dataclass
class ConfigFlags:
    """Flags shared by every kubectl invocation."""

    kubeconfig: Optional[str] = None
    kubectl_path: str = "kubectl"

    def args(self) -> List[str]:
        args = []
        if self.kubeconfig:
            args.append(f"--kubeconfig={self.kubeconfig}")
        return args


@dataclass
class FlagSet:
    """
    The flags a command accepts.

    Only defined flags can be set. Rendering keeps definition order so the
    resulting command line is stable.
    """

    command: str
    defined: Tuple[str, ...]
    _values: Dict[str, str] = field(default_factory=dict)

    def set(self, name: str, value: str) -> None:
        if name not in self.defined:
            raise UnknownFlagError(self.command, name)
        self._values[name] = str(value)

    def lookup(self, name: str) -> Optional[str]:
        return self._values.get(name)

    def changed(self, name: str) -> bool:
        return name in self._values

    def args(self) -> List[str]:
        return [f"--{name}={self._values[name]}" for name in self.defined if name in self._values]


APPLY_FLAGS = (
    "filename",
    "kustomize",
    "recursive",
    "dry-run",
    "server-side",
    "force-conflicts",
    "field-manager",
    "prune",
    "selector",
    "validate",
    "wait",
    "timeout",
    "request-timeout",
)

DELETE_FLAGS = (
    "filename",
    "kustomize",
    "recursive",
    "ignore-not-found",
    "wait",
    "timeout",
    "grace-period",
    "cascade",
    "request-timeout",
)


class Command:
    """
    A kubectl verb with its flags and streams.

    ``fatal_handler``, when set, receives this command's fatal exits instead
    of the process-wide hook.
    """

    def __init__(
        self,
        verb: str,
        config_flags: ConfigFlags,
        io_streams: IOStreams,
        defined_flags: Tuple[str, ...],
        fatal_handler: Optional[FatalHandler] = None,
    ):
        self.verb = verb
        self.config_flags = config_flags
        self.io_streams = io_streams
        self.fatal_handler = fatal_handler
        self._flags = FlagSet(command=verb, defined=defined_flags)

    def flags(self) -> FlagSet:
        return self._flags

    def argv(self) -> List[str]:
        return [
            self.config_flags.kubectl_path,
            self.verb,
            *self.config_flags.args(),
            *self._flags.args(),
        ]

    def run(self) -> None:
        """
        Run kubectl and block until it exits.

        A non-zero exit goes through the bound fatal handler, or the
        process-wide one when none is bound. ``OSError`` from
        launching the binary propagates to the caller.
        """
        cmd = self.argv()
        logger.debug(f"Running: {' '.join(cmd)}")

        process = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
        )

        if process.stdout:
            self.io_streams.out.write(process.stdout)
        if process.stderr:
            self.io_streams.err_out.write(process.stderr)

        check_err(process.stderr or "", process.returncode, handler=self.fatal_handler)


def new_cmd_apply(config_flags: ConfigFlags, io_streams: IOStreams) -> Command:
    return Command("apply", config_flags, io_streams, APPLY_FLAGS)


def new_cmd_delete(config_flags: ConfigFlags, io_streams: IOStreams) -> Command:
    return Command("delete", config_flags, io_streams, DELETE_FLAGS)
