"""
Tests for the server event factory.
"""

import time

import pytest

from config_manager import PixelConfig
from conversions.event_factory import ServerEventFactory, INTEGRATION_TRACKING_KEY
from conversions.request_context import RequestContext


def make_factory(use_pii: bool = True, **context) -> ServerEventFactory:
    """Create a factory for the given request fields."""
    return ServerEventFactory(
        RequestContext(**context),
        PixelConfig(pixel_id="1234", use_pii=use_pii)
    )


def get_event_data():
    return {
        "email": "pika.chu@s2s.com",
        "first_name": "Pika",
        "last_name": "Chu"
    }


class TestNewEvent:
    """Test base event construction."""

    def test_new_event_has_event_id(self):
        event = make_factory().new_event("Lead")

        assert event.event_id is not None
        assert len(event.event_id) == 36

    def test_new_event_ids_are_unique(self):
        factory = make_factory()
        assert factory.new_event("Lead").event_id != factory.new_event("Lead").event_id

    def test_new_event_has_event_time(self):
        event = make_factory().new_event("Lead")

        assert event.event_time is not None
        assert 0 <= int(time.time()) - event.event_time <= 1

    def test_new_event_has_event_name(self):
        event = make_factory().new_event("Lead")
        assert event.event_name == "Lead"

    def test_new_event_rejects_empty_name(self):
        with pytest.raises(ValueError):
            make_factory().new_event("")


class TestClientIpAddress:
    """Test client IP derivation."""

    def test_works_with_ipv4(self):
        event = make_factory(forwarded_for="24.17.77.101").new_event("Lead")
        assert event.user_data.client_ip_address == "24.17.77.101"

    def test_works_with_ipv6(self):
        event = make_factory(forwarded_for="2120:10a:c191:401::5:7170").new_event("Lead")
        assert event.user_data.client_ip_address == "2120:10a:c191:401::5:7170"

    def test_takes_first_with_ip_address_list(self):
        event = make_factory(
            forwarded_for="2120:10a:c191:401::5:7170, 24.17.77.101"
        ).new_event("Lead")
        assert event.user_data.client_ip_address == "2120:10a:c191:401::5:7170"

    def test_takes_first_even_when_rest_is_invalid(self):
        event = make_factory(forwarded_for="24.17.77.101, INVALID").new_event("Lead")
        assert event.user_data.client_ip_address == "24.17.77.101"

    def test_honors_precedence_for_ip_address(self):
        event = make_factory(
            forwarded_for="24.17.77.101",
            remote_addr="24.17.77.100"
        ).new_event("Lead")
        assert event.user_data.client_ip_address == "24.17.77.101"

    def test_falls_back_to_remote_addr(self):
        event = make_factory(remote_addr="24.17.77.100").new_event("Lead")
        assert event.user_data.client_ip_address == "24.17.77.100"

    def test_empty_forwarded_for_falls_back_to_remote_addr(self):
        event = make_factory(forwarded_for="", remote_addr="24.17.77.100").new_event("Lead")
        assert event.user_data.client_ip_address == "24.17.77.100"

    def test_invalid_ip_address(self):
        event = make_factory(forwarded_for="INVALID").new_event("Lead")
        assert event.user_data.client_ip_address is None

    def test_invalid_forwarded_for_does_not_fall_through(self):
        event = make_factory(
            forwarded_for="INVALID",
            remote_addr="24.17.77.100"
        ).new_event("Lead")
        assert event.user_data.client_ip_address is None

    def test_no_ip_sources(self):
        event = make_factory().new_event("Lead")
        assert event.user_data.client_ip_address is None


class TestEventSourceUrl:
    """Test event source URL derivation."""

    PAGE = {"host": "www.pikachu.com", "request_uri": "/index.php"}

    def test_https(self):
        event = make_factory(https="anyvalue", **self.PAGE).new_event("Lead")
        assert event.event_source_url == "https://www.pikachu.com/index.php"

    def test_http_when_indicator_empty(self):
        event = make_factory(https="", **self.PAGE).new_event("Lead")
        assert event.event_source_url == "http://www.pikachu.com/index.php"

    def test_http_when_indicator_off(self):
        event = make_factory(https="off", **self.PAGE).new_event("Lead")
        assert event.event_source_url == "http://www.pikachu.com/index.php"

    def test_http_when_indicator_absent(self):
        event = make_factory(**self.PAGE).new_event("Lead")
        assert event.event_source_url == "http://www.pikachu.com/index.php"

    def test_keeps_query_string(self):
        event = make_factory(
            host="www.pikachu.com", request_uri="/shop/?p=42"
        ).new_event("Lead")
        assert event.event_source_url == "http://www.pikachu.com/shop/?p=42"

    def test_prefers_referer(self):
        event = make_factory(
            https="off", referer="http://referrer/", **self.PAGE
        ).new_event("Lead", True)
        assert event.event_source_url == "http://referrer/"

    def test_without_referer(self):
        event = make_factory(https="off", **self.PAGE).new_event("Lead", True)
        assert event.event_source_url == "http://www.pikachu.com/index.php"

    def test_referer_ignored_by_default(self):
        event = make_factory(referer="http://referrer/", **self.PAGE).new_event("Lead")
        assert event.event_source_url == "http://www.pikachu.com/index.php"

    def test_missing_host(self):
        event = make_factory(request_uri="/index.php").new_event("Lead")
        assert event.event_source_url is None

    def test_missing_request_uri(self):
        event = make_factory(host="www.pikachu.com").new_event("Lead")
        assert event.event_source_url is None


class TestUserSignals:
    """Test cookie and user agent extraction."""

    def test_has_user_agent(self):
        event = make_factory(user_agent="HTTP_USER_AGENT_VALUE").new_event("Lead")
        assert event.user_data.client_user_agent == "HTTP_USER_AGENT_VALUE"

    def test_user_agent_omitted_without_pii(self):
        event = make_factory(
            use_pii=False, user_agent="HTTP_USER_AGENT_VALUE"
        ).new_event("Lead")
        assert event.user_data.client_user_agent is None

    def test_has_fbc(self):
        event = make_factory(cookies={"_fbc": "_fbc_value"}).new_event("Lead")
        assert event.user_data.fbc == "_fbc_value"

    def test_has_fbp(self):
        event = make_factory(cookies={"_fbp": "_fbp_value"}).new_event("Lead")
        assert event.user_data.fbp == "_fbp_value"

    def test_cookies_kept_without_pii(self):
        event = make_factory(
            use_pii=False,
            cookies={"_fbc": "_fbc_value", "_fbp": "_fbp_value"}
        ).new_event("Lead")
        assert event.user_data.fbc == "_fbc_value"
        assert event.user_data.fbp == "_fbp_value"

    def test_pii_toggle_read_on_each_call(self):
        options = PixelConfig(pixel_id="1234", use_pii=False)
        factory = ServerEventFactory(RequestContext(user_agent="UA"), options)
        assert factory.new_event("Lead").user_data.client_user_agent is None

        options.use_pii = True
        assert factory.new_event("Lead").user_data.client_user_agent == "UA"


class TestSafeCreateEvent:
    """Test event creation from integration data."""

    def test_with_pii(self):
        event = make_factory(use_pii=True).safe_create_event(
            "Lead", get_event_data, (), "test_integration"
        )

        assert event.user_data.email == "pika.chu@s2s.com"
        assert event.user_data.first_name == "Pika"
        assert event.user_data.last_name == "Chu"

    def test_with_pii_disabled(self):
        event = make_factory(use_pii=False).safe_create_event(
            "Lead", get_event_data, (), "test_integration"
        )

        assert event.user_data.email is None
        assert event.user_data.first_name is None
        assert event.user_data.last_name is None

    def test_provider_called_when_pii_disabled(self):
        calls = []

        def provider():
            calls.append(True)
            return {"email": "pika.chu@s2s.com", "value": "10.5"}

        event = make_factory(use_pii=False).safe_create_event("Purchase", provider)

        assert calls == [True]
        assert event.user_data.email is None
        assert event.custom_data.value == 10.5

    def test_passes_provider_args(self):
        def provider(order_id, total):
            return {"content_ids": [order_id], "value": total, "currency": "USD"}

        event = make_factory().safe_create_event(
            "Purchase", provider, ("order-1", 42), "woocommerce"
        )

        assert event.custom_data.content_ids == ("order-1",)
        assert event.custom_data.value == 42.0
        assert event.custom_data.currency == "usd"
        assert event.custom_data.custom_properties == {
            INTEGRATION_TRACKING_KEY: "woocommerce"
        }

    def test_normalizes_identity_fields(self):
        def provider():
            return {
                "email": "  Pika.Chu@S2S.com ",
                "phone": "+1 (650) 555-1234",
                "country": " US ",
                "gender": "Female"
            }

        event = make_factory().safe_create_event("Lead", provider)

        assert event.user_data.email == "pika.chu@s2s.com"
        assert event.user_data.phone == "16505551234"
        assert event.user_data.country_code == "us"
        assert event.user_data.gender == "f"

    def test_skips_empty_values(self):
        event = make_factory().safe_create_event(
            "Lead", lambda: {"email": "", "first_name": None, "last_name": "Chu"}
        )

        assert event.user_data.email is None
        assert event.user_data.first_name is None
        assert event.user_data.last_name == "Chu"

    def test_keeps_base_event_fields(self):
        event = make_factory(
            forwarded_for="24.17.77.101",
            cookies={"_fbp": "_fbp_value"}
        ).safe_create_event("Lead", get_event_data)

        assert event.user_data.client_ip_address == "24.17.77.101"
        assert event.user_data.fbp == "_fbp_value"

    def test_provider_error_returns_base_event(self):
        def provider():
            raise RuntimeError("broken integration")

        event = make_factory(
            forwarded_for="24.17.77.101"
        ).safe_create_event("Lead", provider, (), "test_integration")

        assert event.event_name == "Lead"
        assert len(event.event_id) == 36
        assert event.user_data.client_ip_address == "24.17.77.101"
        assert event.user_data.email is None
        assert event.user_data.first_name is None
        assert event.user_data.last_name is None
        assert event.custom_data is None

    def test_normalization_error_returns_base_event(self):
        event = make_factory().safe_create_event(
            "Purchase", lambda: {"email": "pika.chu@s2s.com", "value": "lots"}
        )

        assert event.user_data.email is None
        assert event.custom_data is None

    def test_custom_normalizer(self):
        factory = ServerEventFactory(
            RequestContext(),
            PixelConfig(pixel_id="1234", use_pii=True),
            normalizer=lambda name, value: value.upper() if name == "email" else value
        )

        event = factory.safe_create_event("Lead", get_event_data)
        assert event.user_data.email == "PIKA.CHU@S2S.COM"


class TestBuildEvent:
    """Test the explicit result of building an event."""

    def test_success(self):
        result = make_factory().build_event("Lead", get_event_data, integration="test")

        assert result.succeeded
        assert result.error is None
        assert result.event.user_data.email == "pika.chu@s2s.com"

    def test_failure_logs_integration(self, caplog):
        error = ValueError("bad form")

        def provider():
            raise error

        result = make_factory().build_event("Lead", provider, integration="contact-form-7")

        assert not result.succeeded
        assert result.error is error
        assert result.event.user_data.email is None
        assert "contact-form-7" in caplog.text

    def test_provider_returning_none(self):
        result = make_factory().build_event("Lead", lambda: None, integration="test")

        assert result.succeeded
        assert result.event.custom_data.custom_properties == {INTEGRATION_TRACKING_KEY: "test"}


class FlippingOptions:
    """Options whose use_pii answers True on the first read, then False."""

    def __init__(self):
        self.reads = 0

    @property
    def use_pii(self):
        self.reads += 1
        return self.reads == 1


class TestPiiToggleConsistency:
    """Test that one event is gated on a single read of the PII toggle."""

    def test_build_event_reads_toggle_once(self):
        options = FlippingOptions()
        factory = ServerEventFactory(RequestContext(user_agent="UA"), options)

        event = factory.build_event("Lead", get_event_data).event

        assert options.reads == 1
        assert event.user_data.client_user_agent == "UA"
        assert event.user_data.email == "pika.chu@s2s.com"
        assert event.user_data.first_name == "Pika"

    def test_next_event_sees_new_value(self):
        options = FlippingOptions()
        factory = ServerEventFactory(RequestContext(user_agent="UA"), options)

        factory.build_event("Lead", get_event_data)
        event = factory.build_event("Lead", get_event_data).event

        assert event.user_data.client_user_agent is None
        assert event.user_data.email is None


class TestEventImmutability:
    """Test that a built event cannot be altered through its collections."""

    def test_custom_data_collections_are_frozen(self):
        ids = ["sku-1"]
        event = make_factory().safe_create_event(
            "Purchase", lambda: {"content_ids": ids, "contents": [{"id": "sku-1"}]}, (), "test"
        )
        ids.append("sku-2")

        assert event.custom_data.content_ids == ("sku-1",)
        assert isinstance(event.custom_data.contents, tuple)
        with pytest.raises(TypeError):
            event.custom_data.custom_properties[INTEGRATION_TRACKING_KEY] = "other"

    def test_to_dict_returns_plain_types(self):
        event = make_factory().safe_create_event(
            "Purchase", lambda: {"content_ids": ["sku-1"]}, (), "test"
        )

        custom = event.to_dict()["custom_data"]
        assert custom["content_ids"] == ["sku-1"]
        assert type(custom["custom_properties"]) is dict
