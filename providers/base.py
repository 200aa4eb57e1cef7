# providers/base.py
from __future__ import annotations

from typing import Iterable, List, Optional

from errors import ProviderError


class Provider:
    """A source of CIDR blocks.

    fetch() returns a sanitized, non-empty list or raises ProviderError.
    Implementations must bound every network call by ``timeout`` (seconds)
    when given, otherwise by the client's own default.
    """

    def fetch(self, timeout: Optional[float] = None) -> List[str]:
        raise NotImplementedError


def sanitize(cidrs: Iterable[str]) -> List[str]:
    results = [c.strip() for c in cidrs if c and c.strip()]
    if not results:
        raise ProviderError("provider returned no CIDRs")
    return results
