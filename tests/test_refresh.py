"""
Unit tests for refresh sequencing.

Tests cover:
- Stale responses never overwrite newer ones
- Failures keep the last good value and record one message
- Late responses after teardown are ignored
"""

from datetime import datetime, timezone

import pytest

from crypto_compass.errors import FetchFailure, InsufficientData
from crypto_compass.refresh import RequestSequencer, ResourceState, Stamped

FIXED_NOW = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


def _state(name="listing", sequencer=None):
    return ResourceState(name, sequencer, clock=lambda: FIXED_NOW)


class TestRequestSequencer:

    def test_numbers_increase_across_resources(self):
        seq = RequestSequencer()
        a = seq.issue("listing")
        b = seq.issue("prices")
        c = seq.issue("listing")
        assert a < b < c
        assert seq.is_latest("listing", c)
        assert not seq.is_latest("listing", a)
        assert seq.is_latest("prices", b)

    def test_unknown_resource(self):
        seq = RequestSequencer()
        assert seq.latest("history") is None
        assert not seq.is_latest("history", 1)


class TestResourceState:

    def test_successful_refresh(self):
        state = _state()
        outcome = state.refresh(lambda: ["snapshot"])

        assert outcome.applied
        assert state.value == ["snapshot"]
        assert state.error is None
        assert state.last_updated == FIXED_NOW

    def test_out_of_order_response_is_discarded(self):
        """
        GIVEN two overlapping requests for the same resource
        WHEN the older one resolves after the newer one
        THEN only the newer value is kept
        """
        state = _state()
        older = state.begin()
        newer = state.begin()

        assert state.apply(newer, "new")
        assert not state.apply(older, "old")
        assert state.value == "new"

    def test_stale_failure_does_not_clobber_error_state(self):
        state = _state()
        older = state.begin()
        newer = state.begin()
        state.apply(newer, "fresh")

        assert not state.fail(older, "boom")
        assert state.error is None

    def test_failure_keeps_last_good_value(self):
        state = _state()
        state.refresh(lambda: "good")

        def broken():
            raise FetchFailure()

        outcome = state.refresh(broken)

        assert outcome.applied
        assert outcome.error == "Failed to fetch cryptocurrency data"
        assert state.value == "good"
        assert state.error == "Failed to fetch cryptocurrency data"

    def test_next_success_clears_error(self):
        state = _state()

        def short():
            raise InsufficientData(1)

        state.refresh(short)
        assert state.error.startswith("Insufficient price data")
        assert not state.has_value

        state.refresh(lambda: 42)
        assert state.error is None
        assert state.value == 42

    def test_unexpected_errors_propagate(self):
        state = _state()

        def bug():
            raise KeyError("oops")

        with pytest.raises(KeyError):
            state.refresh(bug)

    def test_stamped_value_keeps_its_fetch_time(self):
        """
        GIVEN a loader that serves a value fetched earlier (a cache hit)
        WHEN the state refreshes from it
        THEN last_updated reports the original fetch time, not now
        """
        fetched = datetime(2026, 1, 2, 3, 0, 0, tzinfo=timezone.utc)
        state = _state()
        state.refresh(lambda: Stamped(["cached"], fetched))

        assert state.value == ["cached"]
        assert state.last_updated == fetched

        state.refresh(lambda: Stamped(["cached"], fetched))
        assert state.last_updated == fetched

    def test_response_after_close_is_ignored(self):
        state = _state()
        seq = state.begin()
        state.close()

        assert not state.apply(seq, "late")
        assert not state.has_value

    def test_resources_sharing_a_sequencer_are_independent(self):
        shared = RequestSequencer()
        listing = _state("listing", shared)
        prices = _state("prices", shared)

        a = listing.begin()
        prices.refresh(lambda: {"BTC": 1.0})

        assert listing.apply(a, ["row"])
        assert prices.value == {"BTC": 1.0}


class TestListingRefreshFlow:

    def test_api_failure_keeps_last_snapshot(self, settings, market_rows):
        """
        GIVEN a listing that loaded once
        WHEN the next refresh gets a non-success response
        THEN the old snapshot stays and exactly one message is surfaced
        """
        from unittest.mock import patch

        from crypto_compass.engine import fetch_markets
        from tests.conftest import fake_response

        state = _state()
        with patch("crypto_compass.engine.requests.get", return_value=fake_response(200, market_rows)):
            state.refresh(lambda: fetch_markets(10, settings))
        first = state.value

        with patch("crypto_compass.engine.requests.get", return_value=fake_response(502)):
            outcome = state.refresh(lambda: fetch_markets(10, settings))

        assert state.value is first
        assert [s.symbol for s in state.value] == ["BTC", "ETH", "SOL", "USDT"]
        assert outcome.error == state.error == "CoinGecko API error: 502"

    def test_junk_rows_do_not_break_refresh(self, settings, market_rows):
        from unittest.mock import patch

        from crypto_compass.engine import fetch_markets
        from tests.conftest import fake_response

        state = _state()
        rows = market_rows + ["garbage", None]
        with patch("crypto_compass.engine.requests.get", return_value=fake_response(200, rows)):
            outcome = state.refresh(lambda: fetch_markets(10, settings))

        assert outcome.applied
        assert len(state.value) == len(market_rows)
        assert state.error is None
