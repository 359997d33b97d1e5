"""Operations on snapper configurations.

Every operation validates its parameters, builds an argument vector and hands
it to run_command. Validation happens before anything is spawned: a rejected
request never reaches snapper.
"""

import re
from pathlib import Path

from dotenv import dotenv_values

from snapdeck.errors import InvalidRequest, SnapperError
from snapdeck.runner import run_command, snapper_args
from snapdeck.snapshots import LIST_COLUMNS, MIN_COLUMNS, parse_snapshots
from snapdeck.status import parse_changes
from snapdeck.strategy import Strategy, run_strategies, tolerant
from snapdeck.table import parse_settings, parse_table

SNAPPER = "snapper"
CONFIGS_DIR = Path("/etc/snapper/configs")

_CONFIG_NAME = re.compile(r"[A-Za-z0-9][A-Za-z0-9_.@:+-]*")
_SNAPSHOT_ID = re.compile(r"[1-9][0-9]*")
_RANGE = re.compile(r"(\d+|live)\.\.(\d+|live)")

# snapper uses snapshot 0 for the running system
LIVE = "0"


def validate_config(name):
    if not isinstance(name, str) or not _CONFIG_NAME.fullmatch(name):
        raise InvalidRequest(f"Invalid config name: {name!r}")
    return name


def validate_snapshot_id(value):
    if isinstance(value, bool):
        raise InvalidRequest(f"Invalid snapshot id: {value!r}")
    if isinstance(value, int):
        value = str(value)
    if not isinstance(value, str) or not _SNAPSHOT_ID.fullmatch(value.strip()):
        raise InvalidRequest(f"Invalid snapshot id: {value!r}")
    return value.strip()


def validate_range(value):
    """Normalize "A..B" (either end may be "live") to snapper's numeric form."""
    match = _RANGE.fullmatch(value.strip()) if isinstance(value, str) else None
    if not match:
        raise InvalidRequest(f"Invalid range: {value!r}. Expected e.g. '3..7' or '3..live'")
    start, end = (LIVE if p == "live" else str(int(p)) for p in match.groups())
    return f"{start}..{end}"


def validate_paths(paths):
    if isinstance(paths, str) or not paths:
        raise InvalidRequest("paths must be a non-empty list of absolute paths")
    for p in paths:
        if not isinstance(p, str) or not p.startswith("/") or "\x00" in p:
            raise InvalidRequest(f"Invalid path: {p!r}. Paths must be absolute")
    return list(paths)


def _text(value, field, required=False):
    if value is None:
        value = ""
    if not isinstance(value, str) or "\x00" in value:
        raise InvalidRequest(f"Invalid {field}: {value!r}")
    if required and not value.strip():
        raise InvalidRequest(f"{field} is required")
    return value


class Snapper:
    """snapper command-line surface, one instance shared by all requests.

    Holds only immutable settings, so it is safe to call from many threads.
    """

    def __init__(self, program=SNAPPER, configs_dir=CONFIGS_DIR, timeout=None):
        self.program = program
        self.configs_dir = Path(configs_dir)
        self.timeout = timeout

    def _invoke(self, args):
        return run_command(self.program, args, timeout=self.timeout)

    def _run(self, args):
        """Run and require success."""
        result = self._invoke(args)
        if not result.ok:
            raise SnapperError(result, args)
        return result

    def _listing(self, args, parse):
        return tolerant(self._invoke(args), parse, args)

    # ------------------------------------------------------------------
    # Listings
    # ------------------------------------------------------------------

    def list_configs(self):
        """Names of snapper configurations."""

        def from_command():
            rows = self._listing(["list-configs"], lambda raw: parse_table(raw, 2))
            return [row[0] for row in rows if row[0]]

        def from_directory():
            if not self.configs_dir.is_dir():
                return None
            return sorted(
                p.name for p in self.configs_dir.iterdir()
                if p.is_file() and _CONFIG_NAME.fullmatch(p.name)
            )

        _, configs = run_strategies([
            Strategy("list-configs", from_command),
            Strategy("configs-dir", from_directory),
        ])
        return configs or []

    def get_settings(self, config):
        """Settings of one configuration as {KEY: value}."""
        config = validate_config(config)

        def from_command():
            return self._listing(snapper_args(config, "get-config"), parse_settings)

        def from_file():
            # /etc/snapper/configs/<name> is a shell-style KEY="value" file
            path = self.configs_dir / config
            if not path.is_file():
                return None
            return {k: v or "" for k, v in dotenv_values(path).items()}

        _, settings = run_strategies([
            Strategy("get-config", from_command),
            Strategy("config-file", from_file),
        ])
        return settings or {}

    def list_snapshots(self, config):
        """Snapshots of a configuration, in snapper's order."""
        config = validate_config(config)

        def with_columns(columns):
            args = snapper_args(config, "list", "--columns", ",".join(columns))
            return self._listing(args, parse_snapshots)

        try:
            return with_columns(LIST_COLUMNS)
        except SnapperError:
            # snapper builds that reject the userdata column
            return with_columns(LIST_COLUMNS[:MIN_COLUMNS])

    def status(self, config, range_):
        """Changed files between the two ends of range_."""
        config = validate_config(config)
        range_ = validate_range(range_)
        result = self._run(snapper_args(config, "status", range_))
        return parse_changes(result.stdout)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def undo_change(self, config, range_, paths):
        """Revert the given files to their state at the start of range_."""
        config = validate_config(config)
        range_ = validate_range(range_)
        paths = validate_paths(paths)
        # "--" stops option parsing so a path can never be read as a flag
        result = self._run(snapper_args(config, "undochange", range_, "--", *paths))
        return result.stdout.strip()

    def rollback(self, config, snapshot_id, description=None):
        config = validate_config(config)
        snapshot_id = validate_snapshot_id(snapshot_id)
        description = _text(description, "description")
        if not description.strip():
            description = f"Rollback to snapshot {snapshot_id} via snapdeck"
        result = self._run(snapper_args(config, "rollback", "-d", description, snapshot_id))
        return result.stdout.strip()

    def create(self, config, description, userdata=None, cleanup=None):
        """Create a single snapshot. Returns the new snapshot number if snapper printed it."""
        config = validate_config(config)
        description = _text(description, "description", required=True)
        userdata = _text(userdata, "userdata")
        cleanup = _text(cleanup, "cleanup")

        args = snapper_args(config, "create", "--print-number", "--description", description)
        if userdata:
            args += ["--userdata", userdata]
        if cleanup:
            args += ["--cleanup-algorithm", cleanup]

        result = self._run(args)
        words = result.stdout.split()
        if words and words[-1].isdigit():
            return int(words[-1])
        return None

    def delete(self, config, snapshot_id):
        config = validate_config(config)
        snapshot_id = validate_snapshot_id(snapshot_id)
        self._run(snapper_args(config, "delete", snapshot_id))
