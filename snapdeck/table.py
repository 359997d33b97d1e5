"""Parsers for snapper's separator-delimited tables.

snapper draws column separators with "│" on a UTF-8 terminal and "|" otherwise
(or with --utf8 off), so both are folded into one before splitting.
"""

SEPARATOR = "|"
SEPARATOR_GLYPHS = ("│",)

HEADER_LINES = 2

SETTINGS_HEADER = "Key"

# Characters that make up horizontal borders: "────┼────", "----+----", "═══╪═══"
_BORDER_CHARS = set("─-┼+═╪━┿=")


def normalize_separators(line):
    for glyph in SEPARATOR_GLYPHS:
        line = line.replace(glyph, SEPARATOR)
    return line


def split_row(line):
    return [c.strip() for c in normalize_separators(line).split(SEPARATOR)]


def parse_table(raw, min_columns):
    """Parse a snapper table into rows of trimmed cells.

    The first two lines (header and border) are skipped, as is every blank
    line. Rows with fewer than min_columns cells are dropped; rows with more
    are kept whole so optional trailing columns survive.
    """
    rows = []
    for i, line in enumerate(raw.split("\n")):
        line = line.rstrip("\r")
        if i < HEADER_LINES or not line.strip():
            continue
        cells = split_row(line)
        if len(cells) < min_columns:
            continue
        rows.append(cells)
    return rows


def cell(row, index):
    """Cell at index, or "" when the row is short."""
    return row[index] if index < len(row) else ""


def _is_border(text):
    return bool(text) and set(text) <= _BORDER_CHARS


def parse_settings(raw):
    """Parse a two-column "Key | Value" report (snapper get-config) into a dict."""
    settings = {}
    for line in raw.split("\n"):
        cells = split_row(line.rstrip("\r"))
        if len(cells) != 2:
            continue
        key, value = cells
        if not key or key == SETTINGS_HEADER or _is_border(key):
            continue
        settings[key] = value
    return settings


def format_settings(settings):
    """Render settings as a "Key | Value" report that parse_settings reads back."""
    width = max([len(SETTINGS_HEADER)] + [len(k) for k in settings])
    lines = [
        f"{SETTINGS_HEADER.ljust(width)} {SEPARATOR} Value",
        f"{'-' * width}-+-{'-' * 5}",
    ]
    for key, value in settings.items():
        lines.append(f"{key.ljust(width)} {SEPARATOR} {value}")
    return "\n".join(lines) + "\n"
