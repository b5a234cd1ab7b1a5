# tests/domain/test_request_spec.py
import pytest

from domain.exceptions import ConfigurationError
from domain.request_spec import ProxySettings, RequestSpec


class TestProxySettings:
    def test_none_when_not_configured(self):
        assert ProxySettings.from_raw(None, None) is None
        assert ProxySettings.from_raw("", "  ") is None

    def test_parse_host_and_port(self):
        proxy = ProxySettings.from_raw("proxy.local", "8080")
        assert proxy == ProxySettings(host="proxy.local", port=8080)
        assert proxy.url == "http://proxy.local:8080"

    def test_non_numeric_port_is_configuration_error(self):
        with pytest.raises(ConfigurationError, match="'abc'"):
            ProxySettings.from_raw("proxy.local", "abc")

    def test_port_out_of_range(self):
        with pytest.raises(ConfigurationError, match="out of range"):
            ProxySettings.from_raw("proxy.local", "70000")

    @pytest.mark.parametrize("host,port", [("proxy.local", None), (None, "8080")])
    def test_half_configured_proxy_is_rejected(self, host, port):
        with pytest.raises(ConfigurationError, match="both host and port"):
            ProxySettings.from_raw(host, port)


class TestRequestSpec:
    def test_with_body_returns_new_spec(self):
        spec = RequestSpec(base_uri="https://api.example.com")

        updated = spec.with_body('{"a": 1}')

        assert updated.body == '{"a": 1}'
        assert spec.body is None

    def test_with_header_does_not_mutate_original(self):
        spec = RequestSpec(base_uri="https://api.example.com", headers={"x-a": "1"})

        updated = spec.with_header("x-b", "2")

        assert updated.headers == {"x-a": "1", "x-b": "2"}
        assert spec.headers == {"x-a": "1"}

    def test_with_query_param(self):
        spec = RequestSpec(base_uri="https://api.example.com").with_query_param("page", "2")
        assert spec.query_params == {"page": "2"}

    @pytest.mark.parametrize(
        "base,path,expected",
        [
            ("https://api.example.com/api", "/users", "https://api.example.com/api/users"),
            ("https://api.example.com/api/", "users/2", "https://api.example.com/api/users/2"),
            ("https://api.example.com/api", "https://other.example.com/x", "https://other.example.com/x"),
        ],
    )
    def test_url_for(self, base, path, expected):
        assert RequestSpec(base_uri=base).url_for(path) == expected

    def test_all_headers_include_content_type(self):
        spec = RequestSpec(base_uri="https://api.example.com", headers={"x-api-key": "k"})
        assert spec.all_headers() == {"Content-Type": "application/json", "x-api-key": "k"}
