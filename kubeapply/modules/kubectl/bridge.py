"""
Deadline-bounded execution of a blocking kubectl command.

Each call binds its own fatal handler to the kubectl command, runs the
command on a background thread, and waits on a single-slot result queue.
Three writers race for that slot:

- the command thread, with ``None`` when kubectl returns normally
- the fatal handler, with an EngineFatalError built from the captured streams
- a timer, with DeadlineExceededError once the time left has elapsed

The first value written is the call's outcome. Writers that lose are
dropped. The losing thread is not joined or cancelled: a kubectl process
that is still running when the deadline fires keeps running in the
background until it exits on its own.
"""

import logging
import queue
import threading
import time
from typing import Callable, Optional, Sequence

from ...config.provider import get_config_provider
from . import engine
from .engine import Command, ConfigFlags, IOStreams
from .errors import (
    DeadlineExceededError,
    EmptyKubeconfigError,
    EngineFatalError,
    MissingOptionsError,
    NoFilesError,
    TransportError,
)

logger = logging.getLogger(__name__)

# Builds the command to run from the shared flags, the streams and the
# seconds left before the deadline.
CommandBuilder = Callable[[ConfigFlags, IOStreams, float], Command]


def validate_request(kubeconfig_path: str, options, file_paths: Sequence[str], verb: str) -> None:
    """Check the local preconditions shared by apply and delete."""
    if not kubeconfig_path:
        raise EmptyKubeconfigError()

    if options is None:
        raise MissingOptionsError()

    if not file_paths:
        raise NoFilesError(verb)


def effective_deadline(timeout: Optional[float]) -> float:
    """
    Monotonic deadline for a call.

    ``timeout`` is measured from now. Without one the configured default
    applies.
    """
    if timeout is None:
        timeout = get_config_provider().get_engine_config().default_timeout
    return time.monotonic() + timeout


class ResultSlot:
    """A single-slot, first-write-wins result channel."""

    def __init__(self):
        self._queue: "queue.Queue[Optional[BaseException]]" = queue.Queue(maxsize=1)

    def offer(self, result: Optional[BaseException]) -> bool:
        """Store ``result`` unless a result is already waiting. Returns True if stored."""
        try:
            self._queue.put_nowait(result)
        except queue.Full:
            logger.debug(f"Discarding late result: {result!r}")
            return False
        return True

    def take(self) -> Optional[BaseException]:
        return self._queue.get()


def _run_in_background(command: Command, slot: ResultSlot) -> None:
    try:
        command.run()
    except OSError as e:
        slot.offer(TransportError(f"could not run {command.config_flags.kubectl_path}: {e}"))
        return
    except SystemExit:
        # No handler was bound and the default one exited.
        return
    except Exception as e:
        slot.offer(e)
        return

    # Fatal exits return here as well after the handler has filled the slot;
    # the offer below then loses.
    slot.offer(None)


def execute(
    lock: threading.Lock,
    kubeconfig_path: str,
    build_command: CommandBuilder,
    timeout: Optional[float] = None,
) -> None:
    """
    Run one kubectl command under ``lock`` and raise its outcome.

    The lock is held until a result has been taken from the slot, even when
    the command thread is still running.
    """
    with lock:
        io_streams, _, stream_out, stream_err = engine.new_test_io_streams()

        engine_config = get_config_provider().get_engine_config()
        config_flags = ConfigFlags(
            kubeconfig=kubeconfig_path,
            kubectl_path=engine_config.kubectl_path,
        )

        slot = ResultSlot()

        deadline = effective_deadline(timeout)
        time_left = deadline - time.monotonic()

        timer = threading.Timer(
            max(time_left, 0),
            lambda: slot.offer(DeadlineExceededError(time_left)),
        )
        timer.daemon = True
        timer.start()

        def on_fatal(msg: str, code: int) -> None:
            slot.offer(
                EngineFatalError(
                    msg,
                    code,
                    out=stream_out.getvalue(),
                    err=stream_err.getvalue(),
                )
            )

        # Bound to this command so a concurrent call of the other family,
        # or a detached command from an earlier call, cannot receive it.
        command = build_command(config_flags, io_streams, time_left)
        command.fatal_handler = on_fatal

        worker = threading.Thread(
            target=_run_in_background,
            args=(command, slot),
            name=f"kubectl-{command.verb}",
            daemon=True,
        )
        worker.start()

        result = slot.take()

    if result is not None:
        raise result
