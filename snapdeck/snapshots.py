"""Map `snapper list` tables onto Snapshot records."""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass

from snapdeck.table import cell, parse_table

# number,type,pre-number,date,user,cleanup,description[,userdata]
LIST_COLUMNS = ["number", "type", "pre-number", "date", "user", "cleanup", "description", "userdata"]
MIN_COLUMNS = 7

# snapper suffixes the number with "*" (default), "-" (mounted) or "+" (both)
_ID_PATTERN = re.compile(r"(\d+)([*+-]?)")


@dataclass(slots=True)
class Snapshot:
    id: int
    type: str
    pre_id: str
    date: str
    user: str
    cleanup: str
    description: str
    userdata: str = ""
    default: bool = False
    active: bool = False

    def to_dict(self):
        return asdict(self)


def parse_snapshot_id(text):
    """Return (id, marker) for a number cell, or None if it is not one."""
    match = _ID_PATTERN.fullmatch(text)
    if not match:
        return None
    return int(match.group(1)), match.group(2)


def parse_snapshots(raw):
    """Parse `snapper list` output. Rows without a positive numeric id are skipped."""
    snapshots = []
    for row in parse_table(raw, MIN_COLUMNS):
        parsed = parse_snapshot_id(row[0])
        if parsed is None:
            continue
        snapshot_id, marker = parsed
        if snapshot_id <= 0:
            continue  # 0 is the "current" pseudo-snapshot
        snapshots.append(Snapshot(
            id=snapshot_id,
            type=row[1],
            pre_id=row[2],
            date=row[3],
            user=row[4],
            cleanup=row[5],
            description=row[6],
            userdata=cell(row, 7),
            default=marker in ("*", "+"),
            active=marker in ("-", "+"),
        ))
    return snapshots
