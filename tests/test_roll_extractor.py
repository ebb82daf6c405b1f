"""Tests for die roll extraction and prediction payload parsing."""

from snake_sniper.game.roll import Prediction, extract_roll


class TestExtractRoll:
    def test_roll_found(self):
        assert extract_roll("You rolled a 7 and moved") == 7

    def test_multi_digit(self):
        assert extract_roll("rolled a 12") == 12

    def test_first_match_wins(self):
        assert extract_roll("rolled a 3, then rolled a 6") == 3

    def test_no_roll_is_none(self):
        assert extract_roll("no roll here") is None

    def test_case_sensitive(self):
        assert extract_roll("ROLLED A 4") is None

    def test_non_string_is_none(self):
        assert extract_roll(None) is None
        assert extract_roll(42) is None

    def test_repeated_extraction_is_identical(self):
        message = "Blue rolled a 5!"
        assert extract_roll(message) == extract_roll(message) == 5


class TestPredictionFromPayload:
    def test_full_payload(self):
        prediction = Prediction.from_payload({
            "transaction": "3Bxs4",
            "message": "You rolled a 5",
            "links": {"next": {"type": "post", "href": "/api/actions/next"}},
        })
        assert prediction.rolled_number == 5
        assert prediction.transaction == "3Bxs4"
        assert prediction.next_href == "/api/actions/next"

    def test_missing_links(self):
        prediction = Prediction.from_payload({"transaction": "x", "message": "rolled a 2"})
        assert prediction.next_href is None

    def test_malformed_links_ignored(self):
        for links in ({"next": "/next"}, "/next", ["x"], {"next": {"href": 7}}):
            prediction = Prediction.from_payload({"transaction": "x", "message": "rolled a 5", "links": links})
            assert prediction.next_href is None
            assert prediction.rolled_number == 5

    def test_null_next(self):
        prediction = Prediction.from_payload({"message": "", "links": {"next": None}})
        assert prediction.next_href is None
        assert prediction.rolled_number is None
        assert prediction.transaction == ""
