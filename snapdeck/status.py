"""Map `snapper status` reports onto Change records.

Each line is a run of status characters, whitespace, then an absolute path:

    +..... /etc/new.conf
    c..... /etc/fstab
    -..... /var/old.log
"""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import asdict, dataclass

MIN_LINE_LENGTH = 3

_STATUS_LINE = re.compile(r"(\S+)\s+(.*)")

MODIFIED = "modified"

# Codes that collapse into one canonical action; the rest pass through
ACTION_ALIASES = {"c": MODIFIED}


@dataclass(slots=True)
class Change:
    action: str
    path: str

    def to_dict(self):
        return asdict(self)


def parse_change_line(line):
    """Parse one status line into a Change, or None if it carries no change."""
    line = line.rstrip("\r\n")
    if len(line) < MIN_LINE_LENGTH or line[0].isspace():
        return None
    # The status block is not a fixed width across snapper versions, so split
    # on the first whitespace run instead of a column offset
    match = _STATUS_LINE.match(line)
    if not match:
        return None
    code, rest = match.groups()
    path = rest.rstrip()
    if not path.startswith("/"):
        return None
    code = code[0]
    return Change(action=ACTION_ALIASES.get(code, code), path=path)


def parse_changes(raw):
    changes = []
    for line in raw.split("\n"):
        change = parse_change_line(line)
        if change is not None:
            changes.append(change)
    return changes


def summarize_changes(changes):
    """Count changes per action, e.g. {"+": 2, "modified": 5}."""
    return dict(Counter(c.action for c in changes))
