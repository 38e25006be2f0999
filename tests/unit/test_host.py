"""
Unit tests for the host header rule.
"""

import pytest

from httpclient.http.host import default_port, host_header, is_implicit_port


class TestHostHeader:
    """Tests for host_header()."""

    @pytest.mark.parametrize(
        "port, scheme",
        [
            (80, "http"),
            (443, "https"),
            (None, "http"),
            (None, "https"),
            (80, "http:"),
            (443, "HTTPS"),
        ],
    )
    def test_standard_port_stripped(self, port, scheme):
        assert host_header("httpbin.org", port, scheme) == "httpbin.org"

    @pytest.mark.parametrize(
        "port, scheme",
        [(8080, "http"), (80, "https"), (443, "http"), (3000, "https")],
    )
    def test_other_port_kept(self, port, scheme):
        assert host_header("localhost", port, scheme) == f"localhost:{port}"

    def test_ipv6_bracketed(self):
        assert host_header("::1", 8080, "http") == "[::1]:8080"
        assert host_header("::1", 80, "http") == "[::1]"

    def test_default_ports(self):
        assert default_port("http") == 80
        assert default_port("https:") == 443
        assert default_port("ftp") is None

    def test_is_implicit_port(self):
        assert is_implicit_port(None, "http")
        assert not is_implicit_port(8443, "https")
