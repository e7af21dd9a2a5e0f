"""Tests for listing: search, allow-listed filters, pagination, soft-delete exclusion."""

from __future__ import annotations

import pytest

from venue_scheduler import queries, scheduler
from venue_scheduler.errors import InputError, NotFoundError


@pytest.fixture()
def seeded(db, event_in):
    events = [
        scheduler.create_event(db, event_in(name="Morning Yoga", location="Hall 1", description="Stretching")),
        scheduler.create_event(
            db, event_in(name="Board meeting", location="Hall 2", description="Quarterly numbers")
        ),
        scheduler.create_event(
            db,
            event_in(name="Lunch talk", location="Atrium", start_time="12:00", end_time="13:00",
                     description="Guest speaker on yoga"),
        ),
        scheduler.create_event(db, event_in(name="Retro", location="Hall 1", date="2024-06-02")),
    ]
    return events


def _page(**params):
    return queries.parse_pagination(params)


def test_default_listing_is_newest_first(db, seeded):
    rows, total = queries.list_events(db, {}, _page())
    assert total == 4
    assert [r.id for r in rows] == [e.id for e in reversed(seeded)]


def test_search_term_is_case_insensitive_across_fields(db, seeded):
    rows, total = queries.list_events(db, {"searchTerm": "YOGA"}, _page(sortBy="name", sortOrder="asc"))
    assert total == 2
    assert [r.name for r in rows] == ["Lunch talk", "Morning Yoga"]


def test_search_term_matches_location(db, seeded):
    rows, _ = queries.list_events(db, {"searchTerm": "atri"}, _page())
    assert [r.name for r in rows] == ["Lunch talk"]


def test_search_term_treats_wildcards_literally(db, seeded):
    rows, total = queries.list_events(db, {"searchTerm": "%"}, _page())
    assert rows == [] and total == 0


def test_equality_filters_combine(db, seeded):
    rows, total = queries.list_events(db, {"location": "Hall 1", "date": "2024-06-01"}, _page())
    assert total == 1
    assert rows[0].name == "Morning Yoga"


def test_time_filter_is_normalized(db, seeded):
    rows, _ = queries.list_events(db, {"startTime": "12:00"}, _page())
    assert [r.name for r in rows] == ["Lunch talk"]


def test_unknown_filter_is_rejected(db, seeded):
    with pytest.raises(InputError):
        queries.list_events(db, {"isDeleted": "true"}, _page())


def test_pagination_reports_total_ignoring_page(db, seeded):
    rows, total = queries.list_events(db, {}, _page(page="2", limit="3", sortBy="name", sortOrder="asc"))
    assert total == 4
    assert [r.name for r in rows] == ["Retro"]


@pytest.mark.parametrize(
    "params",
    [{"page": "0"}, {"limit": "abc"}, {"limit": "100000"}, {"sortBy": "isDeleted"}, {"sortOrder": "sideways"}],
)
def test_bad_pagination_is_input_error(params):
    with pytest.raises(InputError):
        queries.parse_pagination(params)


def test_deleted_events_are_hidden_everywhere(db, seeded):
    gone = seeded[0]
    scheduler.delete_event(db, gone.id)

    rows, total = queries.list_events(db, {"searchTerm": "yoga"}, _page())
    assert total == 1
    assert gone.id not in [r.id for r in rows]
    with pytest.raises(NotFoundError):
        queries.get_event(db, gone.id)


def test_get_event_lists_only_live_participants(db, event_in):
    ev = scheduler.create_event(db, event_in(participants=["a@example.com", "b@example.com"]))
    a = next(p for p in ev.participants if p.email == "a@example.com")
    scheduler.remove_participant(db, ev.id, a.id)

    fetched = queries.get_event(db, ev.id)
    assert [p.email for p in fetched.participants] == ["b@example.com"]


def test_split_query_params_separates_pagination():
    filters, page = queries.split_query_params({"searchTerm": "x", "page": "2", "limit": "5"})
    assert filters == {"searchTerm": "x"}
    assert (page.page, page.limit, page.sort_by, page.sort_order) == (2, 5, "createdAt", "desc")
