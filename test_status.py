"""Tests for mapping `snapper status` reports onto Change records."""

from snapdeck.status import Change, parse_change_line, parse_changes, summarize_changes

STATUS_OUTPUT = """\
+..... /etc/new.conf
c..... /etc/fstab
-..... /var/log/old.log
t..... /usr/bin/tool
.....x /etc/sudoers
"""


def test_modified_example():
    assert parse_changes("c..... /etc/fstab") == [Change(action="modified", path="/etc/fstab")]


def test_other_codes_pass_through():
    actions = [c.action for c in parse_changes(STATUS_OUTPUT)]
    assert actions == ["+", "modified", "-", "t", "."]


def test_paths_start_with_separator():
    for change in parse_changes(STATUS_OUTPUT):
        assert change.path.startswith("/")


def test_order_preserved():
    paths = [c.path for c in parse_changes(STATUS_OUTPUT)]
    assert paths == ["/etc/new.conf", "/etc/fstab", "/var/log/old.log", "/usr/bin/tool", "/etc/sudoers"]


def test_path_with_spaces_kept_whole():
    (change,) = parse_changes("+..... /home/me/My Documents/notes 2.txt  \n")
    assert change.path == "/home/me/My Documents/notes 2.txt"


def test_status_block_width_can_vary():
    raw = "c.. /a\nc........ /b\nc\t/c\n"
    assert [c.path for c in parse_changes(raw)] == ["/a", "/b", "/c"]


def test_short_and_blank_lines_discarded():
    assert parse_changes("\n+\nc.\n\n") == []


def test_line_without_path_discarded():
    assert parse_change_line("c..... relative/path") is None


def test_stray_message_discarded():
    raw = "Warning: cannot read /etc/x\nc..... /etc/fstab\n"
    assert parse_changes(raw) == [Change("modified", "/etc/fstab")]


def test_slash_inside_status_block_ignored():
    assert parse_change_line("c/.... /etc/fstab") == Change("modified", "/etc/fstab")
    assert parse_change_line("c.../x") is None


def test_line_without_status_code_discarded():
    assert parse_change_line("   /etc/fstab") is None
    assert parse_change_line("/etc/fstab") is None


def test_crlf():
    assert parse_changes("c..... /etc/hosts\r\n") == [Change("modified", "/etc/hosts")]


def test_to_dict():
    assert Change("+", "/x").to_dict() == {"action": "+", "path": "/x"}


def test_summarize_changes():
    counts = summarize_changes(parse_changes(STATUS_OUTPUT + "c..... /etc/passwd\n"))
    assert counts == {"+": 1, "modified": 2, "-": 1, "t": 1, ".": 1}
