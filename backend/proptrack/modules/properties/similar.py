from typing import Any, List, Optional, Tuple

from sqlalchemy.orm import Session

from proptrack.core.config import settings
from proptrack.db.models import Property as DBProperty
from proptrack.models.property import PropertyStatus
import logging

logger = logging.getLogger(__name__)


class SimilarPropertiesResolver:
    """Finds listings similar to a reference property.

    Criteria are relaxed tier by tier until ``limit`` results are collected:

    1. same type, same city, price within the band
    2. same type, same state
    3. same type, price within the band
    4. same type

    Every tier only considers active listings, skips the reference and
    anything already collected, and returns newest first. Results keep tier
    order.
    """

    def __init__(self, db: Session, price_band: Optional[float] = None):
        self.db = db
        self.price_band = settings.SIMILAR_PRICE_BAND if price_band is None else price_band

    def price_range(self, price: float) -> Tuple[float, float]:
        return price * (1 - self.price_band), price * (1 + self.price_band)

    def _tiers(self, reference: DBProperty) -> List[Tuple[str, List[Any]]]:
        low, high = self.price_range(reference.price)
        in_band = [DBProperty.price >= low, DBProperty.price <= high]
        return [
            ("city_price", [DBProperty.city == reference.city, *in_band]),
            ("state", [DBProperty.state == reference.state]),
            ("price", in_band),
            ("type", []),
        ]

    async def resolve(self, reference: DBProperty, limit: int = 4) -> List[DBProperty]:
        results: List[DBProperty] = []
        seen = {reference.id}

        for tier, criteria in self._tiers(reference):
            remaining = limit - len(results)
            if remaining <= 0:
                break

            rows = (
                self.db.query(DBProperty)
                .filter(
                    DBProperty.property_type == reference.property_type,
                    DBProperty.status == PropertyStatus.ACTIVE.value,
                    DBProperty.id.notin_(seen),
                    *criteria,
                )
                .order_by(DBProperty.created_at.desc())
                .limit(remaining)
                .all()
            )
            logger.debug(f"Similar tier {tier} for {reference.id}: {len(rows)} match(es)")

            for row in rows:
                results.append(row)
                seen.add(row.id)

        return results
