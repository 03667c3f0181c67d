"""Redirect rules: parsing TXT records, matching paths, resolving precedence.

Usage:
    from redirectname.rules import parse, resolve, translate

    rule = parse("Redirects from /docs/* to https://docs.example.com/*")
    translate("/docs/intro", rule)
    resolve(records, "/docs/intro")
"""

from redirectname.rules.parser import (
    FOUND,
    MOVED_PERMANENTLY,
    REDIRECT_STATUSES,
    WILDCARD,
    Rule,
    parse,
    parse_all,
)
from redirectname.rules.resolver import resolve
from redirectname.rules.translate import Redirect, translate

__all__ = [
    "Rule",
    "Redirect",
    "parse",
    "parse_all",
    "translate",
    "resolve",
    "WILDCARD",
    "FOUND",
    "MOVED_PERMANENTLY",
    "REDIRECT_STATUSES",
]
