"""Tests for record-info normalization across envelope shapes."""

import pytest

from tracksync.services.normalizer import extract_assets, extract_status, normalize


TRACKS = [{"id": "a", "audioUrl": "https://cdn.test/a.mp3"}]


@pytest.mark.parametrize(
    "raw, expected",
    [
        ({"code": 200, "data": {"status": "SUCCESS"}}, "SUCCESS"),
        ({"status": "first_success"}, "FIRST_SUCCESS"),
        ({"data": {"response": {"status": " pending "}}}, "PENDING"),
        ({"response": {"status": "text_success"}}, "TEXT_SUCCESS"),
    ],
)
def test_status_shapes(raw, expected):
    assert extract_status(raw) == expected


def test_top_level_status_wins_over_nested():
    raw = {"data": {"status": "SUCCESS", "response": {"status": "PENDING"}}}
    assert extract_status(raw) == "SUCCESS"


def test_blank_status_falls_through_to_nested():
    raw = {"data": {"status": "  ", "response": {"status": "FIRST_SUCCESS"}}}
    assert extract_status(raw) == "FIRST_SUCCESS"


@pytest.mark.parametrize("raw", [None, "oops", 42, [], {}, {"data": None}, {"data": {"status": 7}}])
def test_unrecognised_payload_is_unknown(raw):
    result = normalize(raw)
    assert result.status == "UNKNOWN"
    assert result.assets == []


@pytest.mark.parametrize(
    "raw",
    [
        {"data": {"response": {"sunoData": TRACKS}}},
        {"data": {"sunoData": TRACKS}},
        {"response": TRACKS},
        {"data": {"data": {"response": {"sunoData": TRACKS}}}},
        {"data": {"data": {"sunoData": TRACKS}}},
    ],
)
def test_asset_shapes(raw):
    assert extract_assets(raw) == TRACKS


def test_first_matching_asset_strategy_wins():
    other = [{"id": "b"}]
    raw = {"data": {"response": {"sunoData": TRACKS}, "sunoData": other}}
    assert extract_assets(raw) == TRACKS


def test_non_list_candidates_are_skipped():
    raw = {"data": {"response": {"sunoData": None, "status": "PENDING"}, "sunoData": TRACKS}}
    assert extract_assets(raw) == TRACKS


def test_sensitive_word_error_keeps_empty_assets():
    result = normalize({"code": 200, "data": {"status": "SENSITIVE_WORD_ERROR", "response": None}})
    assert result.status == "SENSITIVE_WORD_ERROR"
    assert result.assets == []
