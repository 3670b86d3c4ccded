"""Tests for the SecurityService facade and module shortcuts."""

import pytest

from foodlink.app.core import security as security_module
from foodlink.app.core.config import Settings
from foodlink.app.core.rate_limit import RateLimiter
from foodlink.app.core.security import SecurityService, create_security_service
from foodlink.app.exceptions import (
    CSRFValidationError,
    InvalidFormatError,
    RateLimitExceededError,
)


class TestSanitizationMethods:

    def test_delegates(self, security):
        assert security.sanitize_html("<b>hi</b>") == "hi"
        assert security.sanitize_text_input("javascript:go") == "go"
        assert security.sanitize_email("USER@Example.COM") == "user@example.com"
        assert security.sanitize_phone_number("555-123-4567") == "555-123-4567"
        assert security.sanitize_zip_code("90210-1234") == "90210-1234"
        assert security.sanitize_query_param("x; DROP") == "x"

    def test_zip_code_errors_propagate(self, security):
        with pytest.raises(InvalidFormatError):
            security.sanitize_zip_code("1234")

    def test_validate_csp(self, security):
        report = security.validate_csp("<div onclick='x()'>")
        assert report.is_valid is False
        assert report.violations == ["Inline event handler detected"]


class TestCSRF:

    def test_round_trip(self, security):
        assert security.validate_csrf_token(security.generate_csrf_token()) is True

    def test_expiry_follows_service_clock(self, security, clock):
        token = security.generate_csrf_token()
        clock.advance(3600)
        assert security.validate_csrf_token(token) is True
        clock.advance(0.01)
        assert security.validate_csrf_token(token) is False

    def test_custom_max_age(self, security, clock):
        token = security.generate_csrf_token()
        clock.advance(2)
        assert security.validate_csrf_token(token, max_age_ms=1000) is False

    def test_settings_max_age(self, clock):
        service = SecurityService(
            settings=Settings(_env_file=None, csrf_token_max_age_ms=500), clock=clock
        )
        token = service.generate_csrf_token()
        clock.advance(1)
        assert service.validate_csrf_token(token) is False

    def test_require_csrf_token(self, security):
        security.require_csrf_token(security.generate_csrf_token())
        with pytest.raises(CSRFValidationError) as exc_info:
            security.require_csrf_token("garbage")
        assert exc_info.value.status_code == 403


class TestRateLimiting:

    def test_spec_sequence(self, security, clock):
        assert [security.check_rate_limit("x", 3) for _ in range(4)] == [True, True, True, False]

    def test_remaining_and_reset(self, security, clock):
        security.check_rate_limit("x", 3)
        security.check_rate_limit("x", 3)
        assert security.get_remaining_requests("x", 3) == 1

        clock.advance(61)
        assert security.check_rate_limit("x", 3) is True
        assert security.get_remaining_requests("x", 3) == 2

    def test_reset_rate_limit(self, security):
        for _ in range(10):
            security.check_rate_limit("ip")
        assert security.check_rate_limit("ip") is False
        security.reset_rate_limit("ip")
        assert security.check_rate_limit("ip") is True

    def test_enforce_rate_limit(self, security, clock):
        security.enforce_rate_limit("x", 1)
        clock.advance(20)
        with pytest.raises(RateLimitExceededError) as exc_info:
            security.enforce_rate_limit("x", 1)
        assert exc_info.value.status_code == 429
        assert exc_info.value.limit == 1
        assert exc_info.value.retry_after == 40

    def test_instances_are_isolated(self, test_settings, clock):
        first = SecurityService(settings=test_settings, clock=clock)
        second = SecurityService(settings=test_settings, clock=clock)
        for _ in range(3):
            first.check_rate_limit("shared", 3)
        assert first.check_rate_limit("shared", 3) is False
        assert second.check_rate_limit("shared", 3) is True

    def test_settings_control_default_limit(self, clock):
        service = SecurityService(
            settings=Settings(_env_file=None, rate_limit_max_requests=2), clock=clock
        )
        assert [service.check_rate_limit("k") for _ in range(3)] == [True, True, False]

    def test_uses_given_rate_limiter(self, test_settings, clock):
        limiter = RateLimiter(max_requests=3, window_seconds=5, clock=clock)
        service = SecurityService(settings=test_settings, rate_limiter=limiter, clock=clock)

        assert service.rate_limiter is limiter
        assert [service.check_rate_limit("k") for _ in range(4)] == [True, True, True, False]
        clock.advance(6)
        assert service.check_rate_limit("k") is True

    def test_services_can_share_a_limiter(self, test_settings, clock):
        limiter = RateLimiter(max_requests=2, window_seconds=60, clock=clock)
        first = SecurityService(settings=test_settings, rate_limiter=limiter, clock=clock)
        second = SecurityService(settings=test_settings, rate_limiter=limiter, clock=clock)

        assert first.check_rate_limit("shared") is True
        assert second.check_rate_limit("shared") is True
        assert first.check_rate_limit("shared") is False
        assert second.get_remaining_requests("shared") == 0


class TestOtherOperations:

    def test_validate_origin_uses_settings(self, security):
        assert security.validate_origin("https://foodlink.example/") is True
        assert security.validate_origin("https://evil.example") is False

    def test_validate_origin_explicit_list(self, security):
        assert security.validate_origin("https://a.com/", ["https://a.com"]) is True

    def test_random_string_default_length(self, security):
        assert len(security.generate_secure_random_string()) == 32
        assert len(security.generate_secure_random_string(8)) == 8

    @pytest.mark.asyncio
    async def test_hash_data(self, security):
        digest = await security.hash_data("duplicate review body")
        assert len(digest) == 64
        assert digest == await security.hash_data("duplicate review body")

    def test_secure_storage(self, security, store):
        security.secure_storage.set_item("lastSearch", "90210")
        security.secure_storage.set_item("secretToken", "abc")
        assert store.get_item("lastSearch") == "90210"
        assert store.get_item("secretToken") is None


class TestFactoryAndShortcuts:

    def test_create_security_service(self, test_settings):
        service = create_security_service(settings=test_settings)
        assert isinstance(service, SecurityService)
        assert service.rate_limiter.max_requests == test_settings.rate_limit_max_requests
        assert service.rate_limiter.window_seconds == 60

    def test_shortcuts(self):
        assert security_module.sanitize_input("<script>x</script>ok") == "ok"
        assert security_module.sanitize_html("<i>ok</i>") == "ok"
        assert security_module.validate_email("A@B.CO") == "a@b.co"
        assert security_module.validate_phone_number("") == ""
        assert security_module.validate_zip_code("12345") == "12345"
        assert security_module.validate_csrf_token(security_module.generate_csrf_token()) is True

    def test_shortcut_validators_raise(self):
        with pytest.raises(InvalidFormatError):
            security_module.validate_email("not-an-email")
