# tests/test_query.py
from datetime import date

import pytest

from railfood.domain.query import PageTracker, build_query

from conftest import page_payload


def test_page_number_becomes_zero_based():
    query = build_query("/admin/orders/active", {}, page_number=1, page_size=10)
    assert query.path == "/admin/orders/active"
    assert query.params == {"page": 0, "size": 10}


def test_blank_filters_are_omitted_and_strings_trimmed():
    query = build_query(
        "/x",
        {"vendorId": "  6 ", "status": "", "search": "   ", "stationId": None},
        page_number=3,
        page_size=5,
    )
    assert query.params == {"page": 2, "size": 5, "vendorId": "6"}


def test_date_filters_cover_whole_days():
    query = build_query(
        "/x",
        {"startDate": "2024-03-01", "endDate": date(2024, 3, 2)},
        page_number=1,
        page_size=10,
    )
    assert query.params["startDate"] == "2024-03-01T00:00:00"
    assert query.params["endDate"] == "2024-03-02T23:59:59"


@pytest.mark.parametrize("page_number, page_size", [(0, 10), (1, 0)])
def test_invalid_paging_is_rejected(page_number, page_size):
    with pytest.raises(ValueError):
        build_query("/x", {}, page_number, page_size)


def test_meta_is_derived_from_envelope():
    tracker = PageTracker()
    view = tracker.parse_response(page_payload([{"a": 1}] * 10, page=1, size=10, total=25), 2)

    meta = view.meta
    assert meta.current_page == 2
    assert meta.per_page == 10
    assert meta.total == 25
    assert meta.last_page == 3
    assert meta.from_ == 11
    assert meta.to == 20
    assert meta.remaining_pages == 1
    assert len(view.items) == 10


def test_empty_page_reports_from_zero():
    view = PageTracker().parse_response(page_payload([]), 1)
    assert view.meta.from_ == 0
    assert view.meta.to == 0
    assert view.items == []


def test_unchanged_meta_keeps_identity():
    tracker = PageTracker()
    first = tracker.parse_response(page_payload([{"id": 1}], total=1), 1)
    second = tracker.parse_response(page_payload([{"id": 2}], total=1), 1)

    assert second.meta is first.meta
    assert second.items == [{"id": 2}]


def test_changed_meta_is_replaced():
    tracker = PageTracker()
    first = tracker.parse_response(page_payload([{"id": 1}], total=1), 1)
    second = tracker.parse_response(page_payload([{"id": 1}, {"id": 2}], total=2), 1)

    assert second.meta is not first.meta
    assert second.meta.total == 2
    assert tracker.meta is second.meta


def test_items_are_parsed_when_parser_given():
    tracker = PageTracker(parse_item=lambda raw: raw["id"])
    view = tracker.parse_response(page_payload([{"id": 4}, {"id": 5}]), 1)
    assert view.items == [4, 5]
