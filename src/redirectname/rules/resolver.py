"""Resolution of a request path against all rules published for a host."""

from __future__ import annotations

from collections.abc import Iterable

from redirectname.errors import NoMatchError
from redirectname.rules.parser import Rule, parse
from redirectname.rules.translate import Redirect, translate


def resolve(records: Iterable[str], path: str) -> Redirect:
    """Pick the redirect for ``path`` from a hostname's TXT records.

    Scoped rules (``from <path>``) are tried in record order and the first
    match wins. Catch-all rules are only considered once no scoped rule
    matched, in the order they were encountered, wherever they appear among
    the records.

    Raises:
        NoMatchError: If no rule translates the path.
    """
    catch_alls: list[Rule] = []
    for record in records:
        rule = parse(record)
        if rule is None:
            continue
        if rule.is_catch_all:
            catch_alls.append(rule)
            continue
        redirect = translate(path, rule)
        if redirect is not None:
            return redirect

    for rule in catch_alls:
        redirect = translate(path, rule)
        if redirect is not None:
            return redirect

    raise NoMatchError()
