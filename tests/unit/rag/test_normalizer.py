"""Tests for the query normalizer."""

from __future__ import annotations

import pytest

from repolens.rag.normalizer import FILLER_PREFIXES, normalize


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("How do I install this?", "install this"),
        ("how to run the tests", "run the tests"),
        ("What is this repository about?", "this repository about"),
        ("What are the exported functions?", "the exported functions"),
        ("Can you explain routing?", "explain routing"),
        ("Please list the hooks", "list the hooks"),
        ("Explain the build step", "the build step"),
        ("Show me the main file", "the main file"),
        ("Tell me about the cache layer", "the cache layer"),
    ],
)
def test_strips_leading_prefix(raw, expected):
    assert normalize(raw) == expected


def test_removes_every_question_mark():
    assert normalize("where is emit()?? and on()?") == "where is emit() and on()"


def test_prefix_only_matched_at_start():
    assert normalize("where to find what is exported") == "where to find what is exported"


def test_only_one_prefix_is_stripped():
    assert normalize("Please explain the router") == "explain the router"


def test_prefix_must_be_followed_by_whitespace():
    assert normalize("Pleased users") == "pleased users"


def test_lowercases_and_trims():
    assert normalize("   EventEmitter Usage   ") == "eventemitter usage"


@pytest.mark.parametrize("raw", ["?", "How do I ?", "  ??  "])
def test_empty_result_falls_back_to_raw(raw):
    assert normalize(raw) == raw


def test_prefix_only_query_never_empty():
    for prefix in FILLER_PREFIXES:
        assert normalize(prefix.title()) != ""
        assert normalize(prefix + "?") != ""


def test_empty_input_is_returned_unchanged():
    assert normalize("") == ""
