import pytest
from proptrack.modules.properties.similar import SimilarPropertiesResolver


class TestSimilarPropertiesResolver:
    """Tiered relaxation of the similar-listing criteria"""

    def test_price_band(self, test_db_session):
        resolver = SimilarPropertiesResolver(test_db_session, price_band=0.5)
        assert resolver.price_range(1_000_000) == (500_000, 1_500_000)

    @pytest.mark.asyncio
    async def test_results_keep_tier_order(self, test_db_session, make_property):
        reference = make_property(city="Dubai", state="Dubai", price=1_000_000)
        type_only = make_property(city="Al Ain", state="Abu Dhabi", price=9_000_000)
        price_only = make_property(city="Sharjah", state="Sharjah", price=1_200_000)
        same_state = make_property(city="Jebel Ali", state="Dubai", price=5_000_000)
        same_city = make_property(city="Dubai", state="Dubai", price=900_000)

        resolver = SimilarPropertiesResolver(test_db_session)
        results = await resolver.resolve(reference, limit=4)

        assert [r.id for r in results] == [same_city.id, same_state.id, price_only.id, type_only.id]

    @pytest.mark.asyncio
    async def test_never_includes_reference_or_duplicates(self, test_db_session, make_property):
        reference = make_property()
        for _ in range(3):
            make_property()

        results = await SimilarPropertiesResolver(test_db_session).resolve(reference, limit=10)

        ids = [r.id for r in results]
        assert reference.id not in ids
        assert len(ids) == len(set(ids)) == 3

    @pytest.mark.asyncio
    async def test_limit_is_respected_and_newest_first(self, test_db_session, make_property):
        reference = make_property()
        older = make_property()
        newer = make_property()
        newest = make_property()

        results = await SimilarPropertiesResolver(test_db_session).resolve(reference, limit=2)

        assert [r.id for r in results] == [newest.id, newer.id]
        assert older.id not in [r.id for r in results]

    @pytest.mark.asyncio
    async def test_only_active_listings_of_same_type(self, test_db_session, make_property):
        reference = make_property(property_type="apartment")
        make_property(property_type="villa")
        make_property(property_type="apartment", status="sold")
        make_property(property_type="apartment", status="archived")
        match = make_property(property_type="apartment")

        results = await SimilarPropertiesResolver(test_db_session).resolve(reference)

        assert [r.id for r in results] == [match.id]

    @pytest.mark.asyncio
    async def test_empty_catalog_yields_empty_list(self, test_db_session, make_property):
        reference = make_property()
        assert await SimilarPropertiesResolver(test_db_session).resolve(reference) == []
