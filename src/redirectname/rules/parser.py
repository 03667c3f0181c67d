"""Parser for the redirect rule language carried in TXT records.

Accepted forms (keywords are case-sensitive)::

    Redirects to <target>
    Redirects permanently to <target>
    Redirects from <path> to <target>
    Redirects permanently from <path> to <target>

Any form may end with ``with <code>`` to pick the HTTP status explicitly.

A pattern may contain a single ``*`` wildcard as its last character. When the
source path ends with ``*``, the target must end with ``*`` as well so the
captured suffix can be appended to it.

Records that don't follow the grammar (SPF, DKIM, verification tokens, ...)
are common at ``_redirect`` names and are not errors: ``parse`` returns None.

Example:
    >>> parse("Redirects from /test/* to https://github.com/holic/*")
    Rule(from_pattern='/test/*', to_pattern='https://github.com/holic/*', status=302)
    >>> parse("v=spf1 include:example.com ~all") is None
    True
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

WILDCARD = "*"

FOUND = 302
MOVED_PERMANENTLY = 301

# Statuses accepted in a trailing "with <code>" clause.
REDIRECT_STATUSES = frozenset({301, 302, 303, 307, 308})

_RULE_RE = re.compile(
    r"Redirects"
    r"(?P<permanently>\s+permanently)?"
    r"(?:\s+from\s+(?P<source>\S+))?"
    r"\s+to\s+(?P<target>\S+)"
    r"(?:\s+with\s+(?P<status>\d+))?"
)


@dataclass(frozen=True)
class Rule:
    """A single parsed redirect rule.

    ``from_pattern`` is None for a catch-all rule, which matches every path.
    """

    from_pattern: str | None
    to_pattern: str
    status: int = FOUND

    @property
    def is_catch_all(self) -> bool:
        return self.from_pattern is None

    @property
    def has_wildcard(self) -> bool:
        return self.from_pattern is not None and self.from_pattern.endswith(WILDCARD)


def _wildcard_ok(pattern: str) -> bool:
    count = pattern.count(WILDCARD)
    return count == 0 or (count == 1 and pattern.endswith(WILDCARD))


def _is_well_formed(source: str | None, target: str) -> bool:
    if not _wildcard_ok(target):
        return False
    if source is None:
        return not target.endswith(WILDCARD)
    if not _wildcard_ok(source):
        return False
    return source.endswith(WILDCARD) == target.endswith(WILDCARD)


def parse(record: str) -> Rule | None:
    """Parse one TXT record into a Rule, or None if it isn't a valid rule."""
    match = _RULE_RE.fullmatch(record.strip())
    if match is None:
        return None

    source = match.group("source")
    target = match.group("target")
    if not _is_well_formed(source, target):
        return None

    status = MOVED_PERMANENTLY if match.group("permanently") else FOUND
    if match.group("status") is not None:
        status = int(match.group("status"))
        if status not in REDIRECT_STATUSES:
            return None

    return Rule(from_pattern=source, to_pattern=target, status=status)


def parse_all(records: Iterable[str]) -> list[Rule]:
    """Parse a hostname's records, dropping the ones that aren't rules.

    DNS response order is kept; it decides precedence.
    """
    rules = []
    for record in records:
        rule = parse(record)
        if rule is not None:
            rules.append(rule)
    return rules
