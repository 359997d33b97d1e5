class SnapdeckError(Exception):
    """Base class for errors surfaced to the HTTP boundary or the CLI."""


class InvalidRequest(SnapdeckError, ValueError):
    """Request parameters failed validation. Nothing was invoked."""


class SnapperError(SnapdeckError):
    """The snapper command could not be run or exited non-zero.

    Carries the CommandResult so callers can inspect stdout/stderr.
    """

    def __init__(self, result, args=None):
        self.result = result
        self.command_args = list(args or [])
        super().__init__(self._message())

    @property
    def subcommand(self):
        args = self.command_args
        # Skip the "-c <config>" prefix
        if len(args) >= 3 and args[0] == "-c":
            return args[2]
        return args[0] if args else ""

    @property
    def detail(self):
        return (self.result.stderr or self.result.stdout or "").strip()

    def _message(self):
        name = f"snapper {self.subcommand}" if self.subcommand else "snapper"
        msg = f"{name} failed (exit {self.result.exit_code})"
        if self.detail:
            msg += f": {self.detail}"
        return msg
