"""Ordered fallbacks for listings.

Different snapper versions (and broken installs) answer the same question in
different ways. A listing is described as a list of named strategies tried in
order until one returns something non-empty.
"""

from collections import namedtuple

from rich.console import Console

from snapdeck.errors import SnapperError

Strategy = namedtuple("Strategy", ["name", "run"])

_console = Console(stderr=True)


def run_strategies(strategies):
    """Run strategies in order. Returns (name, value) of the first non-empty value.

    A strategy returns None when its source does not exist; that does not count
    as a clean run. If nothing was non-empty but some strategy ran cleanly,
    returns (None, None): the listing is genuinely empty. Otherwise the last
    SnapperError propagates.
    """
    failure = None
    succeeded = False
    for strategy in strategies:
        try:
            value = strategy.run()
        except SnapperError as e:
            failure = e
            continue
        if value is None:
            continue
        succeeded = True
        if value:
            return strategy.name, value
    if failure is not None and not succeeded:
        raise failure
    return None, None


def tolerant(result, parse, args=None):
    """Parse a listing's stdout, accepting a failed run if it still printed rows.

    A non-zero exit with usable output is a degraded success (warned about);
    with nothing usable it raises SnapperError.
    """
    value = parse(result.stdout)
    if result.ok:
        return value
    if value:
        _console.print(
            f"[yellow]Warning: snapper exited {result.exit_code}; "
            f"using partial listing ({len(value)} entries)[/yellow]"
        )
        return value
    raise SnapperError(result, args)
