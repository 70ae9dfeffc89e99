"""Unit tests for RequestCorrelator."""

import asyncio

import pytest

from erp_client.domain.exceptions import DuplicateRequestError, RequestTimeoutError
from erp_client.infrastructure.messaging import RequestCorrelator


@pytest.mark.unit
class TestRequestCorrelator:
    """Tests for RequestCorrelator."""

    @pytest.mark.asyncio
    async def test_response_resolves_pending_request(self):
        correlator = RequestCorrelator()
        future = correlator.register("req_1", 1000)

        consumed = correlator.resolve_or_route({"requestId": "req_1", "success": True})

        assert consumed is True
        assert await future == {"requestId": "req_1", "success": True}
        assert "req_1" not in correlator

    @pytest.mark.asyncio
    async def test_unknown_or_missing_id_is_not_consumed(self):
        correlator = RequestCorrelator()

        assert correlator.resolve_or_route({"requestId": "req_x"}) is False
        assert correlator.resolve_or_route({"type": "notice"}) is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("request_id", [["a"], {"id": "req_1"}, 1])
    async def test_non_string_id_is_not_consumed(self, request_id):
        correlator = RequestCorrelator()
        future = correlator.register("req_1", 1000)

        assert correlator.resolve_or_route({"requestId": request_id}) is False
        assert correlator.pending_ids() == ["req_1"]
        assert not future.done()
        future.cancel()

    @pytest.mark.asyncio
    async def test_timeout_rejects_and_removes(self):
        correlator = RequestCorrelator()
        future = correlator.register("req_1", 20)

        with pytest.raises(RequestTimeoutError) as exc_info:
            await future

        assert exc_info.value.request_id == "req_1"
        assert exc_info.value.timeout_ms == 20
        assert len(correlator) == 0

    @pytest.mark.asyncio
    async def test_late_response_after_timeout_is_routed_elsewhere(self):
        correlator = RequestCorrelator()
        future = correlator.register("req_1", 10)
        with pytest.raises(RequestTimeoutError):
            await future

        assert correlator.resolve_or_route({"requestId": "req_1"}) is False

    @pytest.mark.asyncio
    async def test_second_response_is_not_consumed(self):
        correlator = RequestCorrelator()
        correlator.register("req_1", 1000)

        assert correlator.resolve_or_route({"requestId": "req_1", "n": 1}) is True
        assert correlator.resolve_or_route({"requestId": "req_1", "n": 2}) is False

    @pytest.mark.asyncio
    async def test_duplicate_live_id_is_rejected(self):
        correlator = RequestCorrelator()
        correlator.register("req_1", 1000)

        with pytest.raises(DuplicateRequestError):
            correlator.register("req_1", 1000)

    @pytest.mark.asyncio
    async def test_cancelled_future_is_removed(self):
        correlator = RequestCorrelator()
        future = correlator.register("req_1", 1000)

        future.cancel()
        await asyncio.sleep(0)

        assert correlator.pending_ids() == []

    @pytest.mark.asyncio
    async def test_reject_fails_pending_request(self):
        correlator = RequestCorrelator()
        future = correlator.register("req_1", 1000)

        assert correlator.reject("req_1", ValueError("unsendable")) is True
        with pytest.raises(ValueError):
            await future
        assert correlator.reject("req_1", ValueError("again")) is False
