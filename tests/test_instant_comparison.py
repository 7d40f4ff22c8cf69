import pytest

from utc_instant.domain.time import Instant


def test_compare():
    date = Instant.from_iso_string("2016-02-29T00:00:00Z")
    new_date = date.add_hours(1).add_hours(-1)
    assert new_date is not date
    assert new_date.is_equal_to(date)

    new_date = date.add_hours(1)
    assert not new_date.is_equal_to(date)
    assert not new_date.is_less_than(date)
    assert new_date.is_greater_than(date)
    assert date.is_less_than(new_date)


def test_operators_follow_the_predicates():
    earlier = Instant.from_iso_date_string("2016-01-10")
    later = earlier.add_seconds(1)
    same = Instant.from_epoch_millis(earlier.to_epoch_millis())

    assert earlier == same
    assert earlier != later
    assert earlier < later
    assert earlier <= later
    assert earlier <= same
    assert later > earlier
    assert later >= earlier
    assert same >= earlier
    assert not earlier > same


def test_sorting_and_min_max():
    base = Instant.from_iso_date_string("2016-01-10")
    shuffled = [base.add_days(3), base, base.add_days(-2), base.add_hours(5)]
    assert [i.to_iso_string() for i in sorted(shuffled)] == [
        "2016-01-08T00:00:00Z",
        "2016-01-10T00:00:00Z",
        "2016-01-10T05:00:00Z",
        "2016-01-13T00:00:00Z",
    ]
    assert min(shuffled) == base.add_days(-2)
    assert max(shuffled) == base.add_days(3)


def test_equal_instants_hash_alike():
    date = Instant.from_iso_string("2016-02-29T00:00:00Z")
    round_trip = date.add_hours(1).add_hours(-1)
    assert hash(date) == hash(round_trip)
    assert len({date, round_trip, date.add_seconds(1)}) == 2
    assert {date: "leap day"}[round_trip] == "leap day"


def test_no_implicit_numeric_comparison():
    date = Instant.from_iso_string("2016-01-10T12:03:49Z")
    assert date != 1452427429000
    assert date != "2016-01-10T12:03:49Z"
    with pytest.raises(TypeError):
        date < 1452427429001
