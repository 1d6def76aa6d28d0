"""Tests for output HTML sanitization."""
from esbook.core import clean_for_html, escape_for_html, escape_unescaped_dollar


def test_escape_for_html():
    assert escape_for_html("<b>x</b>") == "&lt;b&gt;x&lt;/b&gt;"


def test_clean_for_html_drops_scripts():
    cleaned = clean_for_html("ok<script>alert(1)</script>")
    assert "alert" not in cleaned
    assert "ok" in cleaned


def test_clean_for_html_leaves_no_live_markup():
    cleaned = clean_for_html('<form><input value="x"></form><b>bold</b>')
    assert "<" not in cleaned
    assert ">" not in cleaned
    assert "bold" in cleaned


def test_clean_for_html_keeps_plain_text():
    assert clean_for_html("1 + 1 = 2") == "1 + 1 = 2"


def test_escape_unescaped_dollar():
    assert escape_unescaped_dollar("a$b") == "a\\$b"
    assert escape_unescaped_dollar("a\\$b") == "a\\$b"
    assert escape_unescaped_dollar("$$") == "\\$\\$"
    assert escape_unescaped_dollar("no dollars") == "no dollars"
