"""Tests for webstrate_sync.validators."""

import pytest

from webstrate_sync.validators import (
    format_validation_error,
    normalize_host,
    validate_document_id,
)


class TestValidateDocumentId:
    @pytest.mark.parametrize(
        "doc_id", ["contenteditable", "notes-2024", "a.b_c", "X1"]
    )
    def test_valid(self, doc_id):
        assert validate_document_id(doc_id) == (True, "")

    @pytest.mark.parametrize(
        "doc_id,reason",
        [
            ("", "cannot be empty"),
            ("   ", "cannot be empty"),
            ("..", "path separators"),
            ("a/b", "path separators"),
            ("a\\b", "path separators"),
            (".hidden", "may only contain"),
            ("semi;colon", "may only contain"),
        ],
    )
    def test_invalid(self, doc_id, reason):
        ok, message = validate_document_id(doc_id)
        assert not ok
        assert reason in message


class TestNormalizeHost:
    def test_ws_kept(self):
        assert normalize_host("ws://localhost:7007") == "ws://localhost:7007"

    def test_wss_kept(self):
        assert normalize_host("wss://example.com") == "wss://example.com"

    def test_bare_host_gets_wss(self):
        assert normalize_host(" example.com:443 ") == "wss://example.com:443"


def test_format_validation_error():
    assert format_validation_error("Document id", "is bad") == "Document id is bad"
