"""Tests for ExpiringTokenService: TTL, lazy expiry and the startup sweep."""
import json

import pytest

from tokenkeeper.domain.errors import ConflictError, InvalidPayloadError, NotFoundError
from tokenkeeper.service import ExpiringTokenService


def _create(service: ExpiringTokenService, sr: str = "SR1") -> dict:
    return service.create(service_request_id=sr, request_type="REPAIR", requested_by="alice")


def _stored(store) -> dict:
    return json.loads(store.path.read_text())


class TestCreate:
    def test_new_token_has_ttl_fields(self, expiring_store, clock):
        record = _create(ExpiringTokenService(expiring_store, clock=clock))
        assert record["tokenNumber"] == "ETKN-000001"
        assert record["status"] == "OPEN"
        assert record["createdAt"] == "2026-10-18T09:00:00.000Z"
        assert record["expiresAt"] == "2026-10-19T09:00:00.000Z"
        assert record["timeoutHours"] == 24

    def test_timeout_hours_is_not_persisted(self, expiring_store, clock):
        _create(ExpiringTokenService(expiring_store, clock=clock))
        assert "timeoutHours" not in _stored(expiring_store)["SR1"]

    def test_live_duplicate_conflicts(self, expiring_store, clock):
        service = ExpiringTokenService(expiring_store, clock=clock)
        first = _create(service)
        clock.advance(hours=23, minutes=59)
        with pytest.raises(ConflictError) as exc_info:
            _create(service)
        assert exc_info.value.details == {
            "existingTokenNumber": first["tokenNumber"],
            "expiresAt": first["expiresAt"],
        }

    def test_expired_duplicate_is_overwritten(self, expiring_store, clock):
        """Test that an expired record no longer blocks the same request id."""
        service = ExpiringTokenService(expiring_store, clock=clock)
        _create(service)
        clock.advance(hours=24)
        second = _create(service)
        assert second["tokenNumber"] == "ETKN-000002"
        assert second["createdAt"] == "2026-10-19T09:00:00.000Z"
        assert _stored(expiring_store)["SR1"]["tokenNumber"] == "ETKN-000002"
        assert len(service) == 1

    def test_missing_field_is_invalid(self, expiring_store, clock):
        service = ExpiringTokenService(expiring_store, clock=clock)
        with pytest.raises(InvalidPayloadError):
            service.create(service_request_id="SR1", request_type="", requested_by="alice")


class TestClose:
    def test_close_deletes_live_token(self, expiring_store, clock):
        service = ExpiringTokenService(expiring_store, clock=clock)
        token_number = _create(service)["tokenNumber"]
        clock.advance(hours=1)
        result = service.close(token_number)
        assert result == {
            "tokenNumber": token_number,
            "status": "CLOSED",
            "closedAt": "2026-10-18T10:00:00.000Z",
        }
        assert _stored(expiring_store) == {}

    def test_second_close_is_not_found(self, expiring_store, clock):
        service = ExpiringTokenService(expiring_store, clock=clock)
        token_number = _create(service)["tokenNumber"]
        service.close(token_number)
        with pytest.raises(NotFoundError):
            service.close(token_number)

    def test_close_after_expiry_deletes_and_reports_not_found(self, expiring_store, clock):
        """Test that expiry wins over an explicit close."""
        service = ExpiringTokenService(expiring_store, clock=clock)
        token_number = _create(service)["tokenNumber"]
        clock.advance(hours=24)
        with pytest.raises(NotFoundError) as exc_info:
            service.close(token_number)
        assert exc_info.value.details == {"tokenNumber": token_number}
        assert _stored(expiring_store) == {}

    def test_unknown_token_is_not_found(self, expiring_store, clock):
        service = ExpiringTokenService(expiring_store, clock=clock)
        with pytest.raises(NotFoundError):
            service.close("ETKN-000123")

    def test_create_after_close_opens_a_new_token(self, expiring_store, clock):
        service = ExpiringTokenService(expiring_store, clock=clock)
        service.close(_create(service)["tokenNumber"])
        assert _create(service)["tokenNumber"] == "ETKN-000002"


class TestStartupSweep:
    def test_load_prunes_expired_records(self, expiring_store, clock):
        """Test that restarting removes expired tokens before any request."""
        service = ExpiringTokenService(expiring_store, clock=clock)
        _create(service, "OLD")
        clock.advance(hours=12)
        _create(service, "NEW")
        clock.advance(hours=13)

        restarted = ExpiringTokenService(expiring_store, clock=clock)
        assert len(restarted) == 1
        assert set(_stored(expiring_store)) == {"NEW"}
        assert restarted.get("OLD") is None

    def test_prune_expired_reports_removed_count(self, expiring_store, clock):
        service = ExpiringTokenService(expiring_store, clock=clock)
        _create(service, "A")
        _create(service, "B")
        assert service.prune_expired() == 0
        clock.advance(days=2)
        assert service.prune_expired() == 2
        assert _stored(expiring_store) == {}

    def test_malformed_records_are_pruned(self, expiring_store, clock):
        expiring_store.save({"A": "garbage", "B": {"tokenNumber": "ETKN-000001"}})
        service = ExpiringTokenService(expiring_store, clock=clock)
        assert len(service) == 0

    def test_sequence_continues_past_pruned_numbers(self, expiring_store, clock):
        service = ExpiringTokenService(expiring_store, clock=clock)
        _create(service, "A")
        _create(service, "B")
        clock.advance(hours=1)
        service.close("ETKN-000001")
        restarted = ExpiringTokenService(expiring_store, clock=clock)
        assert _create(restarted, "C")["tokenNumber"] == "ETKN-000003"

    def test_get_hides_expired_records(self, expiring_store, clock):
        service = ExpiringTokenService(expiring_store, clock=clock)
        _create(service)
        assert service.get("SR1")["tokenNumber"] == "ETKN-000001"
        clock.advance(hours=24)
        assert service.get("SR1") is None


class TestGet:
    def test_reading_an_expired_record_deletes_it(self, expiring_store, clock):
        """Test that an expired record observed through get is removed from memory and disk."""
        service = ExpiringTokenService(expiring_store, clock=clock)
        _create(service)
        clock.advance(hours=24)
        assert service.get("SR1") is None
        assert len(service) == 0
        assert _stored(expiring_store) == {}

    def test_returned_record_is_a_copy(self, expiring_store, clock):
        service = ExpiringTokenService(expiring_store, clock=clock)
        _create(service)
        service.get("SR1")["expiresAt"] = "2099-01-01T00:00:00.000Z"
        assert service.get("SR1")["expiresAt"] == "2026-10-19T09:00:00.000Z"

    def test_unknown_key_leaves_document_alone(self, expiring_store, clock):
        service = ExpiringTokenService(expiring_store, clock=clock)
        _create(service)
        assert service.get("NOPE") is None
        assert set(_stored(expiring_store)) == {"SR1"}

    def test_record_without_token_number_is_pruned(self, expiring_store, clock):
        expiring_store.save({"A": {"expiresAt": "2099-01-01T00:00:00.000Z"}})
        service = ExpiringTokenService(expiring_store, clock=clock)
        assert len(service) == 0
        assert _create(service, "A")["tokenNumber"] == "ETKN-000001"
