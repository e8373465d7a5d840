"""Tests for rebuilding cards from a stored snapshot."""

from marketcards.config import CardType
from marketcards.models.base import RarityLevel
from marketcards.models.price import PriceCard
from marketcards.rehydrate import common_props, rehydrate_all, rehydrate_card


def _price_record(card_id="price-AAPL-1", symbol="AAPL", **face):
    face_data = {"timestamp": 1705329000000, "price": 150.0, "yearHigh": 199.62, "yearLow": 124.17}
    face_data.update(face)
    return {
        "type": "price",
        "id": card_id,
        "symbol": symbol,
        "createdAt": 1700000000000,
        "companyName": "Apple Inc.",
        "logoUrl": None,
        "isFlipped": True,
        "currentRarity": "Common",
        "faceData": face_data,
        "backData": {"description": "Saved text", "marketCap": 2.9e12, "sma50d": 185.1},
    }


class TestCommonProps:
    def test_valid(self):
        props = common_props(_price_record())
        assert props.id == "price-AAPL-1"
        assert props.created_at == 1700000000000
        assert props.is_flipped

    def test_missing_id(self):
        record = _price_record()
        del record["id"]
        assert common_props(record) is None

    def test_defaults(self):
        props = common_props({"id": "x", "symbol": "AAPL", "createdAt": "garbage", "isFlipped": "maybe"})
        assert props.created_at > 0
        assert props.is_flipped is False
        assert props.company_name is None

    def test_symbol_normalized(self):
        props = common_props(_price_record(symbol=" aapl "))
        assert props.symbol == "AAPL"

    def test_blank_symbol(self):
        assert common_props(_price_record(symbol="   ")) is None


class TestRehydrateCard:
    def test_price_roundtrip(self, registry):
        card = rehydrate_card(_price_record(), registry)
        assert isinstance(card, PriceCard)
        assert card.face_data.price == 150.0
        assert card.back_data.market_cap == 2.9e12
        assert card.back_data.sma_50d == 185.1
        assert card.back_data.description == "Saved text"
        assert card.is_flipped

    def test_record_from_to_record(self, registry):
        card = rehydrate_card(_price_record(), registry)
        again = rehydrate_card(card.to_record(), registry)
        assert again == card

    def test_stored_rarity_recomputed(self, registry):
        record = _price_record(price=199.62)
        record["currentRarity"] = "Common"
        card = rehydrate_card(record, registry)
        assert card.rarity is RarityLevel.LEGENDARY
        assert card.rarity_reason == "At 52-Week High!"

    def test_old_schema_names(self, registry):
        record = _price_record()
        record["faceData"] = {"day_change": 1.5, "price": "150.5", "timestamp": 1705329000}
        record["created_at"] = record.pop("createdAt")
        card = rehydrate_card(record, registry)
        assert card.face_data.day_change == 1.5
        assert card.face_data.price == 150.5
        assert card.face_data.timestamp == 1705329000000
        assert card.created_at == 1700000000000

    def test_missing_sections_default(self, registry):
        card = rehydrate_card({"type": "price", "id": "p", "symbol": "AAPL"}, registry)
        assert card.face_data.price is None
        assert card.back_data.description

    def test_unknown_type_dropped(self, registry, caplog):
        assert rehydrate_card({"type": "crypto", "id": "c", "symbol": "BTC"}, registry) is None
        assert "Unknown card type" in caplog.text

    def test_not_a_mapping(self, registry):
        assert rehydrate_card(["price"], registry) is None

    def test_each_type_from_minimal_record(self, registry):
        for card_type in CardType:
            card = rehydrate_card({"type": card_type.value, "id": f"{card_type.value}-1", "symbol": "AAPL"}, registry)
            assert card is not None
            assert card.card_type is card_type


class TestRehydrateAll:
    def test_one_unregistered_among_valid(self, registry):
        records = [
            _price_record("a", "AAPL"),
            {"type": "crypto", "id": "x", "symbol": "BTC"},
            _price_record("b", "MSFT"),
            {"type": "profile", "id": "c", "symbol": "AAPL"},
        ]
        cards = rehydrate_all(records, registry)
        assert [c.id for c in cards] == ["a", "b", "c"]

    def test_duplicate_slot_keeps_first(self, registry):
        cards = rehydrate_all([_price_record("a"), _price_record("b")], registry)
        assert [c.id for c in cards] == ["a"]

    def test_not_a_list(self, registry):
        assert rehydrate_all(None, registry) == []
        assert rehydrate_all({"cards": []}, registry) == []
        assert rehydrate_all("[]", registry) == []

    def test_malformed_sections_default(self, registry):
        record = _price_record()
        record["faceData"] = "not a mapping"
        record["backData"] = 42
        cards = rehydrate_all([record], registry)
        assert len(cards) == 1
        assert cards[0].face_data.price is None
