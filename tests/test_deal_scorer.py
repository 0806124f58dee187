"""Tests for deal scoring against regional thresholds and price history."""
import pytest

from mileagehawk.models import CabinClass, PriceHistory, Region
from mileagehawk.services.deal_scorer import score_against_average, score_deal, score_deal_with_history
from mileagehawk.utils.dates import utc_now


class TestScoreDeal:
    def test_typical_price_is_fair(self):
        # EUROPE business typical range 55K-80K, midpoint 67.5K
        result = score_deal(75000, CabinClass.BUSINESS, Region.EUROPE)

        assert result.tier == "fair"
        assert result.score == 0
        assert result.thirty_day_avg == 67500
        assert result.savings is None
        assert result.savings_percent is None

    def test_exceptional_price_is_amazing(self):
        result = score_deal(30000, CabinClass.BUSINESS, Region.EUROPE)

        assert result.tier in {"amazing", "unicorn"}
        assert result.tier == "amazing"
        assert result.score >= 35
        assert result.savings == 37500
        assert result.savings_percent == 55.6

    def test_at_exceptional_line_is_amazing(self):
        assert score_deal(35000, CabinClass.BUSINESS, Region.EUROPE).tier == "amazing"

    def test_at_good_deal_line_is_great(self):
        result = score_deal(50000, CabinClass.BUSINESS, Region.EUROPE)
        assert result.tier == "great"

    def test_score_ten_or_more_is_good(self):
        # 60K is 11.1% under the midpoint
        result = score_deal(60000, CabinClass.BUSINESS, Region.EUROPE)
        assert result.tier == "good"
        assert result.savings == 7500

    def test_small_discount_is_fair(self):
        result = score_deal(64000, CabinClass.BUSINESS, Region.EUROPE)
        assert result.tier == "fair"
        assert result.savings == 3500

    def test_cabins_use_their_own_thresholds(self):
        # Thresholds differ per cabin and region
        assert score_deal(22500, CabinClass.FIRST, Region.LATIN_AMERICA_MEXICO).tier == "amazing"
        assert score_deal(60000, CabinClass.ECONOMY_PLUS, Region.EUROPE).tier == "fair"

    def test_unknown_region_is_unscored(self):
        result = score_deal(30000, CabinClass.BUSINESS, "ANTARCTICA")

        assert result.score == 0
        assert result.tier == "fair"
        assert result.thirty_day_avg is None
        assert result.savings is None
        assert result.savings_percent is None

    def test_unknown_cabin_rejected(self):
        with pytest.raises(ValueError):
            score_deal(30000, "ECONOMY", Region.EUROPE)


class TestScoreAgainstAverage:
    @pytest.mark.parametrize("points,tier", [
        (50000, "unicorn"),
        (60000, "amazing"),
        (75000, "great"),
        (85000, "good"),
        (95000, "fair"),
    ])
    def test_tiers(self, points, tier):
        assert score_against_average(points, 100000).tier == tier

    def test_above_average_has_no_savings(self):
        result = score_against_average(110000, 100000)
        assert result.score == 0
        assert result.savings is None
        assert result.savings_percent is None
        assert result.thirty_day_avg == 100000


class TestScoreDealWithHistory:
    @pytest.mark.asyncio
    async def test_uses_history_when_present(self, seeded_db):
        today = utc_now().date()
        seeded_db.add(PriceHistory(
            route_id=1, airline_id=1, cabin_class=CabinClass.BUSINESS, date=today,
            min_price=90000, avg_price=100000, max_price=110000, sample_size=3,
        ))
        seeded_db.commit()

        result = await score_deal_with_history(seeded_db, 1, 1, CabinClass.BUSINESS, 50000, Region.EUROPE)

        assert result.thirty_day_avg == 100000
        assert result.tier == "unicorn"

    @pytest.mark.asyncio
    async def test_falls_back_to_thresholds(self, seeded_db):
        result = await score_deal_with_history(seeded_db, 1, 1, CabinClass.BUSINESS, 75000, Region.EUROPE)

        assert result.thirty_day_avg == 67500
        assert result.tier == "fair"
