import copy

import pytest

from odata_proxy.odata.normalize import normalize_records
from odata_proxy.odata.query import (
    QueryOptions,
    is_valid_paging_value,
    paging_value,
    parse_orderby,
    run_query,
)

from conftest import make_item


@pytest.fixture
def records():
    return normalize_records([make_item(i) for i in range(1, 6)])


def ids(result):
    return [r["id"] for r in result.value]


def query(records, **params):
    return run_query(records, QueryOptions.from_params(**params))


def test_no_options_returns_everything(records):
    result = query(records)
    assert ids(result) == [1, 2, 3, 4, 5]
    assert result.count is None


def test_order_then_skip_then_top(records):
    result = query(records, orderby="id desc", skip="1", top="2")
    assert ids(result) == [4, 3]


def test_filter_applies_before_paging(records):
    # Airport = odd ids
    result = query(records, filter_expr="outlet eq 'Airport'", orderby="id desc", skip="1", top="1")
    assert ids(result) == [3]


def test_count_reflects_final_page(records):
    result = query(records, top="2", count="true")
    assert len(result.value) == 2
    assert result.count == 2


def test_count_requires_exact_true(records):
    assert query(records, count="True").count is None
    assert query(records, count="1").count is None
    assert query(records, count="false").count is None


def test_count_with_empty_result(records):
    result = query(records, filter_expr="outlet eq 'Nowhere'", count="true")
    assert result.value == []
    assert result.count == 0


def test_number_filter(records):
    assert ids(query(records, filter_expr="guest_count eq 6")) == [3]


def test_date_prefix_filter_on_timestamps():
    recs = normalize_records(
        [
            make_item(1, date="2025-08-01T09:00:00"),
            make_item(2, date="2025-08-02T09:00:00"),
            make_item(3, date="2025-08-01"),
        ]
    )
    assert ids(query(recs, filter_expr="date eq 2025-08-01")) == [1, 3]


def test_filter_on_undeclared_field_matches_nothing(records):
    assert query(records, filter_expr="store eq 'Airport'").value == []


def test_unparseable_filter_is_ignored(records):
    assert ids(query(records, filter_expr="outlet ne 'Airport'")) == [1, 2, 3, 4, 5]


def test_direction_is_case_sensitive(records):
    assert ids(query(records, orderby="id DESC")) == [1, 2, 3, 4, 5]
    assert ids(query(records, orderby="id desc")) == [5, 4, 3, 2, 1]
    assert ids(query(records, orderby="id whatever")) == [1, 2, 3, 4, 5]


def test_orderby_strings(records):
    result = query(records, orderby="outlet")
    assert [r["outlet"] for r in result.value] == ["Airport"] * 3 + ["Mall"] * 2


def test_orderby_unknown_column_keeps_input_order(records):
    assert ids(query(records, orderby="nope desc")) == [1, 2, 3, 4, 5]


def test_orderby_nulls_and_nan_sort_last():
    recs = normalize_records(
        [
            make_item(1, quantity="3"),
            make_item(2, quantity="abc"),
            make_item(3, quantity="1"),
            make_item(4, quantity=""),
            make_item(5, quantity="2"),
        ]
    )
    assert ids(query(recs, orderby="quantity")) == [3, 5, 1, 2, 4]
    assert ids(query(recs, orderby="quantity desc")) == [1, 5, 3, 2, 4]


def test_orderby_mixed_types_does_not_fail():
    recs = normalize_records(
        [make_item(1, outlet="b"), make_item(2, outlet=5), make_item(3, outlet="a")]
    )
    assert ids(query(recs, orderby="outlet")) == [2, 3, 1]


def test_orderby_mixed_types_keeps_nulls_last():
    recs = normalize_records(
        [
            make_item(1, outlet="zebra"),
            make_item(2, outlet=None),
            make_item(3, outlet=5),
            make_item(4, outlet="a"),
        ]
    )
    asc = query(recs, orderby="outlet")
    assert ids(asc) == [3, 4, 1, 2]
    assert asc.value[-1]["outlet"] is None

    desc = query(recs, orderby="outlet desc")
    assert ids(desc) == [1, 4, 3, 2]
    assert desc.value[-1]["outlet"] is None


@pytest.mark.parametrize(
    "skip, expected",
    [
        ("0", [1, 2, 3, 4, 5]),
        ("2", [3, 4, 5]),
        ("5", []),
        ("99", []),
        ("abc", [1, 2, 3, 4, 5]),
        ("-2", [1, 2, 3, 4, 5]),
        ("1.9", [2, 3, 4, 5]),
        ("", [1, 2, 3, 4, 5]),
    ],
)
def test_skip(records, skip, expected):
    assert ids(query(records, skip=skip)) == expected


@pytest.mark.parametrize(
    "top, expected",
    [
        ("2", [1, 2]),
        ("0", []),
        ("99", [1, 2, 3, 4, 5]),
        ("abc", []),
        ("-1", []),
        ("2.7", [1, 2]),
        ("inf", [1, 2, 3, 4, 5]),
        ("", [1, 2, 3, 4, 5]),
    ],
)
def test_top(records, top, expected):
    assert ids(query(records, top=top)) == expected


def test_input_records_are_not_modified(records):
    before = copy.deepcopy(records)
    query(records, filter_expr="outlet eq 'Mall'", orderby="id desc", skip="1", top="1")
    assert records == before


def test_result_records_keep_declared_shape(records):
    result = query(records, top="1")
    assert list(result.value[0].keys()) == list(records[0].keys())
    assert result.value[0] == records[0]


def test_empty_collection():
    result = run_query([], QueryOptions.from_params(orderby="id desc", skip="1", top="2", count="true"))
    assert result.value == []
    assert result.count == 0


def test_parse_orderby():
    assert parse_orderby(None) is None
    assert parse_orderby("   ") is None
    assert parse_orderby("id") == ("id", True)
    assert parse_orderby("id desc") == ("id", False)
    assert parse_orderby("id asc") == ("id", True)


def test_paging_value():
    assert paging_value(None) is None
    assert paging_value("") is None
    assert paging_value("3") == 3
    assert paging_value("nan") == 0
    assert paging_value("x") == 0


def test_strict_paging_validation():
    assert is_valid_paging_value(None)
    assert is_valid_paging_value("10")
    assert not is_valid_paging_value("-1")
    assert not is_valid_paging_value("1.5")
    assert not is_valid_paging_value("abc")
