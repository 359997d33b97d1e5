"""Run external commands with an argument vector.

Arguments are handed to subprocess.run as a list, never joined into a shell
string, so config names, descriptions and paths containing spaces, globs or
shell metacharacters reach the program verbatim.
"""

import subprocess
from collections import namedtuple

# Exit codes used when the process never produced a real one
EXIT_TIMEOUT = 124
EXIT_SPAWN_FAILED = 127


class CommandResult(namedtuple("CommandResult", ["exit_code", "stdout", "stderr"])):
    __slots__ = ()

    @property
    def ok(self):
        return self.exit_code == 0


def _decode(data):
    # snapper draws tables with UTF-8 box glyphs whatever the locale says
    return (data or b"").decode("utf-8", errors="replace")


def run_command(program, args, timeout=None):
    """Run program with args and wait for it. Returns a CommandResult.

    Never raises for a failed command: spawn errors come back as exit 127 and
    a timeout as exit 124. Output of a timed-out run is dropped so a parser
    never sees a half-written table.
    """
    argv = [program, *[str(a) for a in args]]
    try:
        proc = subprocess.run(
            argv,
            capture_output=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        return CommandResult(EXIT_TIMEOUT, "", f"Command timed out after {timeout}s")
    except OSError as e:
        return CommandResult(EXIT_SPAWN_FAILED, "", f"Could not run {program}: {e}")

    return CommandResult(proc.returncode, _decode(proc.stdout), _decode(proc.stderr))


def snapper_args(config, *args):
    """Prefix args with the config-selecting flag."""
    return ["-c", config, *args]
