import pytest
from crm_admin.models.criteria import Criteria, SortKey
from crm_admin.models.record_models import BookingRecord, ConsultationRecord
from crm_admin.services.query_engine import query, collation_key
from crm_admin.services.record_kinds import BOOKINGS, CONSULTATIONS


def consultation(**fields):
    return ConsultationRecord.model_validate(fields)


def booking(**fields):
    return BookingRecord.model_validate(fields)


def names(records):
    return [r.name for r in records]


@pytest.fixture
def asha_ben():
    return (
        consultation(_id="a1", name="Asha", duration="1-3 years", createdAt="2024-01-01"),
        consultation(_id="b2", name="Ben", duration="0-6 months", createdAt="2024-06-01"),
    )


def test_default_criteria_sorts_newest_first(asha_ben):
    criteria = Criteria(filters={"duration": "all"}, sort=SortKey.NEWEST)
    assert names(query(asha_ben, criteria, CONSULTATIONS)) == ["Ben", "Asha"]
    assert names(query(asha_ben, CONSULTATIONS.default_criteria(), CONSULTATIONS)) == ["Ben", "Asha"]


def test_search_is_case_insensitive_on_name(asha_ben):
    criteria = CONSULTATIONS.default_criteria().with_changes(search_term="asha")
    assert names(query(asha_ben, criteria, CONSULTATIONS)) == ["Asha"]


def test_duration_filter_is_exact(asha_ben):
    criteria = CONSULTATIONS.default_criteria().with_changes(filters={"duration": "0-6 months"})
    assert names(query(asha_ben, criteria, CONSULTATIONS)) == ["Ben"]

    # Exact match only, substrings of the option do not count
    criteria = CONSULTATIONS.default_criteria().with_changes(filters={"duration": "0-6"})
    assert query(asha_ben, criteria, CONSULTATIONS) == ()


def test_contact_search_is_case_sensitive_substring():
    records = (
        consultation(_id="1", name="Ravi", contact="98AB-7766"),
        consultation(_id="2", name="Meera", contact="98ab-1122"),
    )
    criteria = CONSULTATIONS.default_criteria().with_changes(search_term="AB")
    assert names(query(records, criteria, CONSULTATIONS)) == ["Ravi"]


def test_search_covers_place_and_duration():
    records = (
        consultation(_id="1", name="Ravi", place="Kochi", duration="3-5 years"),
        consultation(_id="2", name="Meera", place="Pune", duration="Above 5 years"),
    )
    by_place = CONSULTATIONS.default_criteria().with_changes(search_term="KOCHI")
    by_duration = CONSULTATIONS.default_criteria().with_changes(search_term="above")
    assert names(query(records, by_place, CONSULTATIONS)) == ["Ravi"]
    assert names(query(records, by_duration, CONSULTATIONS)) == ["Meera"]


def test_booking_search_includes_email_and_package():
    records = (
        booking(_id="1", name="Ravi", email="RAVI@example.com", packageBooked="Premium"),
        booking(_id="2", name="Meera", email="meera@example.com", packageBooked="Basic"),
    )
    by_email = BOOKINGS.default_criteria().with_changes(search_term="ravi@")
    by_package = BOOKINGS.default_criteria().with_changes(search_term="basic")
    assert names(query(records, by_email, BOOKINGS)) == ["Ravi"]
    assert names(query(records, by_package, BOOKINGS)) == ["Meera"]


def test_email_is_not_searched_for_consultations():
    # Consultation payloads may carry extra fields; only the configured ones are searched
    records = (consultation(_id="1", name="Ravi", email="hidden@example.com"),)
    criteria = CONSULTATIONS.default_criteria().with_changes(search_term="hidden")
    assert query(records, criteria, CONSULTATIONS) == ()


def test_absent_fields_never_match_and_never_raise():
    records = (consultation(_id="1"), consultation(_id="2", name="Asha"))
    criteria = CONSULTATIONS.default_criteria().with_changes(search_term="a")
    assert names(query(records, criteria, CONSULTATIONS)) == ["Asha"]

    # Empty search keeps even a record with no attributes at all
    assert len(query(records, CONSULTATIONS.default_criteria(), CONSULTATIONS)) == 2


def test_filters_compose_with_and():
    records = (
        booking(_id="1", name="A", duration="1-3 years", packageBooked="Premium"),
        booking(_id="2", name="B", duration="1-3 years", packageBooked="Basic"),
        booking(_id="3", name="C", duration="3-5 years", packageBooked="Premium"),
    )
    criteria = BOOKINGS.default_criteria().with_changes(
        filters={"duration": "1-3 years", "package": "Premium"}
    )
    assert names(query(records, criteria, BOOKINGS)) == ["A"]


def test_missing_created_at_sorts_last_both_ways():
    records = (
        consultation(_id="1", name="NoDate"),
        consultation(_id="2", name="Old", createdAt="2023-01-01T10:00:00Z"),
        consultation(_id="3", name="Bad", createdAt="not a date"),
        consultation(_id="4", name="New", createdAt="2024-03-01T10:00:00.000Z"),
    )
    newest = CONSULTATIONS.default_criteria()
    oldest = newest.with_changes(sort=SortKey.OLDEST)
    assert names(query(records, newest, CONSULTATIONS)) == ["New", "Old", "NoDate", "Bad"]
    assert names(query(records, oldest, CONSULTATIONS)) == ["Old", "New", "NoDate", "Bad"]


def test_equal_timestamps_keep_store_order():
    records = tuple(
        consultation(_id=str(i), name=f"R{i}", createdAt="2024-01-01T00:00:00Z") for i in range(5)
    )
    assert names(query(records, CONSULTATIONS.default_criteria(), CONSULTATIONS)) == [f"R{i}" for i in range(5)]


def test_timezone_offsets_are_compared_as_instants():
    records = (
        consultation(_id="1", name="Later", createdAt="2024-01-01T10:00:00+00:00"),
        consultation(_id="2", name="Earlier", createdAt="2024-01-01T12:00:00+05:30"),
    )
    criteria = CONSULTATIONS.default_criteria().with_changes(sort=SortKey.OLDEST)
    assert names(query(records, criteria, CONSULTATIONS)) == ["Earlier", "Later"]


def test_name_sort_is_case_and_accent_insensitive_with_missing_last():
    records = (
        consultation(_id="1", name="zara"),
        consultation(_id="2"),
        consultation(_id="3", name="Émile"),
        consultation(_id="4", name="adam"),
        consultation(_id="5", name="Bela"),
    )
    criteria = CONSULTATIONS.default_criteria().with_changes(sort=SortKey.NAME)
    assert names(query(records, criteria, CONSULTATIONS)) == ["adam", "Bela", "Émile", "zara", None]


def test_package_sort_for_bookings():
    records = (
        booking(_id="1", name="A", packageBooked="Standard"),
        booking(_id="2", name="B"),
        booking(_id="3", name="C", packageBooked="Basic"),
        booking(_id="4", name="D", packageBooked="Premium"),
    )
    criteria = BOOKINGS.default_criteria().with_changes(sort=SortKey.PACKAGE)
    assert names(query(records, criteria, BOOKINGS)) == ["C", "D", "A", "B"]


def test_package_sort_rejected_for_consultations(asha_ben):
    criteria = CONSULTATIONS.default_criteria().with_changes(sort=SortKey.PACKAGE)
    with pytest.raises(ValueError):
        query(asha_ben, criteria, CONSULTATIONS)


def test_query_is_pure(asha_ben):
    collection = list(asha_ben)
    criteria = CONSULTATIONS.default_criteria().with_changes(sort=SortKey.NAME)
    first = query(collection, criteria, CONSULTATIONS)
    second = query(collection, criteria, CONSULTATIONS)
    assert first == second
    assert collection == list(asha_ben)


def test_empty_collection():
    assert query((), CONSULTATIONS.default_criteria(), CONSULTATIONS) == ()


def test_collation_key_orders_accented_next_to_plain():
    assert sorted(["eve", "Zoe", "Édith"], key=collation_key) == ["Édith", "eve", "Zoe"]
