"""
Error types raised by the kubectl module.

Every failure of an apply or delete call surfaces as exactly one of these,
raised directly to the caller.
"""


class KubeApplyError(Exception):
    """Base exception for all kubeapply errors."""


class RequestValidationError(KubeApplyError, ValueError):
    """A precondition of the request was not met."""


class EmptyKubeconfigError(RequestValidationError):
    def __init__(self):
        super().__init__("kubeconfig path cannot be empty")


class MissingOptionsError(RequestValidationError):
    def __init__(self):
        super().__init__("options cannot be None")


class NoFilesError(RequestValidationError):
    def __init__(self, verb: str = "apply"):
        super().__init__(f"no files to {verb}")


class EngineFatalError(KubeApplyError):
    """
    kubectl exited through its fatal path.

    Carries the message and exit code passed to the fatal handler together
    with everything the command wrote to its output and error streams.
    """

    def __init__(self, msg: str, code: int, out: str = "", err: str = ""):
        self.msg = msg
        self.code = code
        self.out = out
        self.err = err
        super().__init__(
            f"Fatal error: {msg}\n"
            f"Error code: {code}\n"
            f"Out stream: {out}\n"
            f"Error stream: {err}\n"
        )


class DeadlineExceededError(KubeApplyError, TimeoutError):
    def __init__(self, time_left: float):
        self.time_left = time_left
        super().__init__(f"deadline exceeded after {max(time_left, 0):.1f}s")


class TransportError(KubeApplyError):
    """The command engine could not be started."""


class UnknownFlagError(KubeApplyError, ValueError):
    def __init__(self, command: str, flag: str):
        self.command = command
        self.flag = flag
        super().__init__(f"unknown flag: --{flag} for command {command!r}")
