"""Matching a request path against a rule and building the destination."""

from __future__ import annotations

from dataclasses import dataclass

from redirectname.rules.parser import MOVED_PERMANENTLY, WILDCARD, Rule


@dataclass(frozen=True)
class Redirect:
    """Resolved redirect: where to send the client and with which status."""

    location: str
    status: int

    @property
    def is_permanent(self) -> bool:
        return self.status == MOVED_PERMANENTLY


def translate(path: str, rule: Rule) -> Redirect | None:
    """Apply ``rule`` to ``path``.

    Prefix matching is a plain string prefix test, not path-segment aware:
    ``/docs/*`` matches ``/docs/x`` and ``/docsx`` alike.

    Examples:
        >>> rule = Rule("/test/*", "https://github.com/holic/*")
        >>> translate("/test/success", rule)
        Redirect(location='https://github.com/holic/success', status=302)
        >>> translate("/should/fail", rule) is None
        True

    Returns:
        The Redirect, or None if the rule does not match the path.
    """
    if rule.from_pattern is None:
        return Redirect(location=rule.to_pattern, status=rule.status)

    if not rule.has_wildcard:
        if path != rule.from_pattern:
            return None
        return Redirect(location=rule.to_pattern, status=rule.status)

    prefix = rule.from_pattern[: -len(WILDCARD)]
    if not path.startswith(prefix):
        return None
    base = rule.to_pattern[: -len(WILDCARD)]
    return Redirect(location=base + path[len(prefix) :], status=rule.status)
