"""
Seller directory (read-only view over seller profiles).

Profiles are owned by the accounts side of the marketplace; discovery only joins against
them. `lookup()` returns `None` for unknown ids so every caller has to decide what a
missing seller means for its own view.
"""

from __future__ import annotations

import logging
from typing import Iterable

from harvestmap.domain.models import Seller

logger = logging.getLogger(__name__)


class SellerDirectory:
    def __init__(self, sellers: Iterable[Seller] = ()):
        by_id: dict[str, Seller] = {}
        for s in sellers:
            if s.id in by_id:
                logger.warning("Duplicate seller id %s in directory; keeping the first record", s.id)
                continue
            by_id[s.id] = s
        self._by_id = by_id

    def lookup(self, seller_id: str) -> Seller | None:
        return self._by_id.get(seller_id)

    def __contains__(self, seller_id: object) -> bool:
        return seller_id in self._by_id

    def __len__(self) -> int:
        return len(self._by_id)

    def all(self) -> list[Seller]:
        return list(self._by_id.values())
