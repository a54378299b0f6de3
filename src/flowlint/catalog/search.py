"""Keyword search over the capability catalog.

Lets a workflow author (or an agent generating definitions) find exact
capability paths and parameter lists without dumping the whole catalog.
"""

import re

from flowlint.catalog.registry import Catalog
from flowlint.types import CapabilityMatch, SignatureParam

_PARAM_LIST = re.compile(r"\(([^)]*)\)")
_OBJECT_PARAMS = re.compile(r"\{\s*([^}]+)\s*\}")


def parse_signature(signature: str) -> list[SignatureParam]:
    """Extract parameter names and optionality from a signature string.

    Handles positional lists (``fn(a, b?)``, ``fn(a: string, b?: number)``)
    and a single destructured object (``fn({ a, b? })``). A trailing or
    embedded ``?`` marks a parameter optional.

    Args:
        signature: Catalog signature string

    Returns:
        Parameters in declaration order (empty if none can be parsed)

    Examples:
        >>> [p.name for p in parse_signature("sendEmail({ to, subject, cc? })")]
        ['to', 'subject', 'cc']
    """
    match = _PARAM_LIST.search(signature)
    if not match or not match.group(1).strip():
        return []

    param_str = match.group(1).strip()
    params = []

    if param_str.startswith("{"):
        object_match = _OBJECT_PARAMS.search(param_str)
        if object_match:
            for raw in object_match.group(1).split(","):
                raw = raw.strip()
                name = raw.replace("?", "").strip()
                if name:
                    params.append(SignatureParam(name=name, required=not raw.endswith("?")))
        return params

    for raw in param_str.split(","):
        raw = raw.strip()
        name = re.split(r"[?:]", raw)[0].strip()
        if name:
            params.append(SignatureParam(name=name, required="?" not in raw))
    return params


def search_catalog(
    catalog: Catalog,
    query: str | None = None,
    category: str | None = None,
    function: str | None = None,
    limit: int = 10,
) -> list[CapabilityMatch]:
    """Search capabilities by keyword, category and/or exact function name.

    All filters are case-insensitive and combined with AND. The query is a
    substring match over ``category module function description``.

    Args:
        catalog: Catalog to search
        query: Free-text substring to match
        category: Restrict to one category
        function: Restrict to an exact function name
        limit: Maximum number of matches returned

    Returns:
        Matches in catalog order, at most ``limit``
    """
    needle = query.lower() if query else None
    results: list[CapabilityMatch] = []

    for cat in catalog.categories:
        if category and cat.name.lower() != category.lower():
            continue
        for mod in cat.modules:
            for fn in mod.functions:
                if function and fn.name.lower() != function.lower():
                    continue
                haystack = f"{cat.name} {mod.name} {fn.name} {fn.description}".lower()
                if needle and needle not in haystack:
                    continue
                results.append(
                    CapabilityMatch(
                        path=f"{cat.name}.{mod.name}.{fn.name}",
                        description=fn.description,
                        signature=fn.signature,
                        params=parse_signature(fn.signature),
                    )
                )
                if len(results) >= limit:
                    return results

    return results
