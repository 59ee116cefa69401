from __future__ import annotations

import pytest

from endpoints.pagination import PageRequest, parse_int_param, total_pages


@pytest.mark.parametrize(
    "raw, expected",
    [
        (None, 7),
        ("", 7),
        ("abc", 7),
        ("3", 3),
        (" 4 ", 4),
        ("2.9", 2),
        ("-2", -2),
        ("+6", 6),
        ("12abc", 12),
        ("1e3", 1),
    ],
)
def test_parse_int_param(raw, expected):
    assert parse_int_param(raw, 7) == expected


@pytest.mark.parametrize(
    "total, limit, expected",
    [(0, 5, 1), (1, 5, 1), (5, 5, 1), (6, 5, 2), (11, 5, 3), (3, 1, 3)],
)
def test_total_pages_has_floor_of_one(total, limit, expected):
    assert total_pages(total, limit) == expected


def test_page_request_offset_and_info():
    req = PageRequest.from_query("3", "4", default_limit=5)
    assert req.offset == 8
    assert req.info(9) == {"page": 3, "limit": 4, "total": 9, "totalPages": 3}


def test_page_request_clamps_and_caps():
    assert PageRequest.from_query("-4", "0", default_limit=5) == PageRequest(page=1, limit=1)
    assert PageRequest.from_query(None, "1000", default_limit=5, max_limit=50).limit == 50
    assert PageRequest.from_query(None, "1000", default_limit=5, max_limit=0).limit == 1000
