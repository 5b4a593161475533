"""Domain and path permutations used to find every bucket a request can see.

A cookie set on ``b.com`` is visible to ``a.b.com``, and one set on ``/a`` is
visible to ``/a/b``.  To find all cookies for a request the store therefore
looks under each ancestor domain and each ancestor path.
"""

from __future__ import annotations

import ipaddress

from publicsuffixlist import PublicSuffixList

SPECIAL_USE_DOMAINS = frozenset({"local", "example", "invalid", "localhost", "test"})
# TLDs that are themselves a usable cookie domain when special-use domains are allowed.
_BARE_SPECIAL_DOMAINS = frozenset({"localhost", "invalid"})

_psl = PublicSuffixList()


def _is_ip(domain: str) -> bool:
    try:
        ipaddress.ip_address(domain.strip("[]"))
    except ValueError:
        return False
    return True


def registrable_domain(domain: str, allow_special_use_domain: bool = False) -> str | None:
    """Return the public suffix plus one label (``www.b.co.uk`` -> ``b.co.uk``).

    Returns ``None`` when *domain* is itself a public suffix, or when it sits
    under a special-use TLD and *allow_special_use_domain* is false.
    """
    labels = domain.split(".")
    tld = labels[-1]
    if tld in SPECIAL_USE_DOMAINS:
        if not allow_special_use_domain:
            return None
        if len(labels) > 1:
            return f"{labels[-2]}.{tld}"
        if tld in _BARE_SPECIAL_DOMAINS:
            return tld
        return None
    return _psl.privatesuffix(domain)


def permute_domain(domain: str, allow_special_use_domain: bool = False) -> list[str] | None:
    """Return *domain* and its ancestors, registrable domain first.

    >>> permute_domain("a.b.example.com")
    ['example.com', 'b.example.com', 'a.b.example.com']

    Permutations are lowercase.  IP literals have no ancestors and come back
    as ``[domain]``.  ``None`` means no registrable domain could be found.
    """
    domain = domain.lower()
    if domain.endswith("."):
        domain = domain[:-1]
    if _is_ip(domain):
        return [domain]

    base = registrable_domain(domain, allow_special_use_domain)
    if base is None:
        return None
    if base == domain:
        return [domain]

    prefix = domain[: -(len(base) + 1)]
    current = base
    permutations = [current]
    for label in reversed(prefix.split(".")):
        current = f"{label}.{current}"
        permutations.append(current)
    return permutations


def permute_path(path: str) -> list[str]:
    """Return *path* and each ancestor path, longest first, ending with ``"/"``.

    >>> permute_path("/a/b")
    ['/a/b', '/a', '/']
    """
    if path == "/":
        return ["/"]
    permutations = [path]
    while len(path) > 1:
        index = path.rfind("/")
        if index <= 0:
            break
        path = path[:index]
        permutations.append(path)
    permutations.append("/")
    return permutations
