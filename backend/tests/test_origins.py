import pytest

from featherlog.services.origins import (
    extract_request_origin,
    is_origin_allowed,
    normalize_origin,
    origin_matches,
)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("https://Demo.App", "https://demo.app"),
        ("https://demo.app/", "https://demo.app"),
        ("https://demo.app/page?x=1#top", "https://demo.app"),
        ("http://localhost:5173", "http://localhost:5173"),
        ("http://[::1]:8080/x", "http://[::1]:8080"),
        ("  https://demo.app  ", "https://demo.app"),
        ("null", "null"),
    ],
)
def test_normalize_origin(value, expected):
    assert normalize_origin(value) == expected


def test_origin_header_wins_over_referer():
    assert extract_request_origin("https://a.app", "https://b.app/page") == "https://a.app"


def test_referer_is_reduced_to_its_origin():
    assert extract_request_origin(None, "https://b.app/some/page?q=1") == "https://b.app"


def test_no_headers_means_no_origin():
    assert extract_request_origin(None, None) is None
    assert extract_request_origin("  ", "") is None


def test_absent_origin_is_allowed():
    assert is_origin_allowed(None, ["https://demo.app"])
    assert is_origin_allowed("", ["https://demo.app"])


def test_exact_match():
    assert is_origin_allowed("https://demo.app", ["https://demo.app"])
    assert is_origin_allowed("https://DEMO.app", ["https://demo.app/"])
    assert not is_origin_allowed("https://evil.com", ["https://demo.app"])


def test_scheme_and_port_are_part_of_the_origin():
    assert not is_origin_allowed("http://demo.app", ["https://demo.app"])
    assert not is_origin_allowed("https://demo.app:8443", ["https://demo.app"])


def test_star_next_to_other_origins_matches_anything():
    assert is_origin_allowed("https://anything.example", ["https://demo.app", "*"])


def test_host_wildcard_matches_subdomains_only():
    pattern = "https://*.example.com"
    assert origin_matches("https://app.example.com", pattern)
    assert origin_matches("https://a.b.example.com", pattern)
    assert not origin_matches("https://example.com", pattern)
    assert not origin_matches("https://evilexample.com", pattern)
    assert not origin_matches("http://app.example.com", pattern)


def test_trailing_star_is_a_prefix_match():
    assert origin_matches("https://staging-42.demo.app", "https://staging-*")
    assert not origin_matches("https://prod.demo.app", "https://staging-*")


def test_empty_pattern_list_rejects_declared_origin():
    assert not is_origin_allowed("https://demo.app", [])


def test_prefix_pattern_ignores_case():
    assert origin_matches("https://staging-42.demo.app", "https://Staging-*")
    assert is_origin_allowed("https://STAGING-1.demo.app", ["HTTPS://staging-*"])
