"""Tests for domain cleanup and extraction."""

import pytest

from domainpulse.errors import InputError
from domainpulse.utils.normalizer import (
    extract_domains, normalize, parse_domain_lines, read_domain_file, unique_domains,
)


class TestNormalize:
    """normalize() turns raw input into comparable tokens."""

    def test_strips_scheme_www_and_path(self):
        assert normalize("https://www.Example.com/path?q=1") == "example.com"

    def test_plain_http_and_whitespace(self):
        assert normalize("  http://Foo.IO  ") == "foo.io"

    def test_bare_domain_unchanged(self):
        assert normalize("bar.dev") == "bar.dev"

    def test_empty_string(self):
        assert normalize("") == ""
        assert normalize("   ") == ""

    @pytest.mark.parametrize("raw", [
        "https://www.Example.com/path?q=1",
        "www.www.example.com",
        "http://http://x.com",
        " WWW.A-B.co.uk/ ",
        "https://",
        "/leading/slash",
        "",
    ])
    def test_idempotent(self, raw):
        once = normalize(raw)
        assert normalize(once) == once


class TestDeduplication:

    def test_variants_collapse_to_one(self):
        assert unique_domains(["a.com", "A.com ", " a.com"]) == ["a.com"]

    def test_first_seen_order_kept(self):
        assert unique_domains(["b.com", "a.com", "B.com"]) == ["b.com", "a.com"]

    def test_empty_entries_dropped(self):
        assert unique_domains(["", "  ", "www.", "a.com"]) == ["a.com"]

    def test_parse_lines(self):
        text = "foo.com\n\n  https://bar.io/x\nfoo.com\n"
        assert parse_domain_lines(text) == ["foo.com", "bar.io"]


class TestExtractDomains:
    """Pattern matching over free-form uploads."""

    def test_csv_columns(self):
        text = "name,domain,price\nAcme,acme-tools.com,10\nZed,https://www.zed.io/about,12\n"
        assert extract_domains(text) == ["acme-tools.com", "zed.io"]

    def test_multi_label(self):
        assert extract_domains("see shop.example.co.uk today") == ["shop.example.co.uk"]

    def test_non_matching_text_ignored(self):
        assert extract_domains("no domains here, just words and 1.5 numbers") == []

    def test_read_file(self, tmp_path):
        path = tmp_path / "upload.csv"
        path.write_text("domain\nAlpha.com\nbeta.net\nalpha.com\n")
        assert read_domain_file(path) == ["alpha.com", "beta.net"]

    def test_read_file_without_domains(self, tmp_path):
        path = tmp_path / "upload.csv"
        path.write_text("nothing,to,see\n")
        with pytest.raises(InputError, match="No domains"):
            read_domain_file(path)

    def test_read_empty_file(self, tmp_path):
        path = tmp_path / "empty.txt"
        path.write_text("")
        with pytest.raises(InputError, match="empty"):
            read_domain_file(path)
