"""Audit log of snapshot mutations.

Appends structured JSON entries to ~/.snapdeck/audit.jsonl.
Each entry records one create, delete, rollback or undochange attempt with
timestamp, config, parameters and result ("ok" or "failed" plus the error).
"""

import json
import threading
from datetime import datetime
from pathlib import Path

LOGS_FILE = Path.home() / ".snapdeck" / "audit.jsonl"

_lock = threading.Lock()


def set_log_file(path):
    global LOGS_FILE
    LOGS_FILE = Path(path)


def write_log(entry):
    """Append an audit entry."""
    entry = {**entry, "timestamp": datetime.now().isoformat()}
    with _lock:
        LOGS_FILE.parent.mkdir(parents=True, exist_ok=True)
        with open(LOGS_FILE, "a") as f:
            f.write(json.dumps(entry) + "\n")


def read_logs(limit=None):
    """Return audit entries oldest-first, skipping lines that aren't valid JSON."""
    if not LOGS_FILE.exists():
        return []
    entries = []
    for line in LOGS_FILE.read_text().splitlines():
        line = line.strip()
        if not line:
            continue
        try:
            entries.append(json.loads(line))
        except json.JSONDecodeError:
            continue
    if limit:
        entries = entries[-limit:]
    return entries
