"""Tests for core plumbing: settings validation, Sentry scrubbing, error envelope."""

import pytest
from pydantic import ValidationError

from app.core.config import Settings
from app.core.sentry import _scrub_sensitive_data


class TestSettings:
    def test_defaults(self):
        s = Settings(_env_file=None)
        assert s.STORE_BACKEND == "memory"
        assert s.RECOMMENDATION_THRESHOLD == 80
        assert s.MATCH_CUTOFF == 60
        assert s.PREQUALIFIED_THRESHOLD == 80

    def test_unknown_store_backend_rejected(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, STORE_BACKEND="redis")

    def test_threshold_out_of_range_rejected(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, RECOMMENDATION_THRESHOLD=120)

    def test_production_requires_sql_store(self):
        with pytest.raises(SystemExit):
            Settings(_env_file=None, APP_ENV="production", STORE_BACKEND="memory")


class TestSentryScrubbing:
    def test_identity_headers_redacted(self):
        event = {
            "request": {
                "headers": {
                    "X-User-ID": "00000000-0000-0000-0000-000000000002",
                    "Authorization": "Bearer abc",
                    "Accept": "application/json",
                }
            }
        }
        scrubbed = _scrub_sensitive_data(event, {})
        headers = scrubbed["request"]["headers"]
        assert headers["X-User-ID"] == "[REDACTED]"
        assert headers["Authorization"] == "[REDACTED]"
        assert headers["Accept"] == "application/json"

    def test_event_without_request(self):
        assert _scrub_sensitive_data({"message": "boom"}, {}) == {"message": "boom"}


@pytest.mark.anyio
class TestErrorEnvelope:
    async def test_unknown_route_uses_envelope(self, client):
        resp = await client.get("/v1/does-not-exist", headers={"X-Request-ID": "req-42"})
        assert resp.status_code == 404
        body = resp.json()
        assert body["error"] == "http_404"
        assert body["request_id"] == "req-42"
