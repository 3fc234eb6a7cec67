from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import DBAPIError

from exceptions.custom_exceptions import MissingColumnError, RepositoryQueryError
from services.maps.hotel_repository import (
    PUBLISHED_CLAUSE,
    HotelFilter,
    HotelRepository,
    _build_where,
    escape_like,
    translate_error,
)


class DriverError(Exception):
    def __init__(self, message, sqlstate=None):
        super().__init__(message)
        if sqlstate is not None:
            self.sqlstate = sqlstate


def _dbapi_error(message, sqlstate=None):
    return DBAPIError("SELECT 1", {}, DriverError(message, sqlstate))


def test_undefined_column_sqlstate_becomes_missing_column():
    err = translate_error(_dbapi_error("boom", sqlstate="42703"), "select_hotels")

    assert isinstance(err, MissingColumnError)
    assert err.table == "select_hotels"


def test_other_sqlstate_stays_a_plain_query_error():
    err = translate_error(
        _dbapi_error('column "city_code" does not exist', sqlstate="08006"),
        "select_hotels",
    )

    assert isinstance(err, RepositoryQueryError)
    assert not isinstance(err, MissingColumnError)


def test_message_is_used_when_driver_reports_no_sqlstate():
    err = translate_error(
        _dbapi_error('column "x" does not exist'), "select_regions"
    )

    assert isinstance(err, MissingColumnError)
    assert err.table == "select_regions"


def test_sqlstate_on_wrapped_cause_is_recognized():
    inner = DriverError("undefined column", sqlstate="42703")
    outer = DriverError("wrapped")
    outer.__cause__ = inner

    err = translate_error(DBAPIError("SELECT 1", {}, outer), "select_hotels")

    assert isinstance(err, MissingColumnError)


def test_unrelated_message_without_sqlstate_is_a_query_error():
    err = translate_error(_dbapi_error("connection reset"), "select_hotels")

    assert type(err) is RepositoryQueryError


def test_where_always_requires_published_rows():
    where, params, expanding = _build_where([])

    assert where == PUBLISHED_CLAUSE
    assert params == {}
    assert expanding == []


def test_in_filter_binds_an_expanding_list():
    where, params, expanding = _build_where(
        [HotelFilter("city_en", "in", ("da nang", "Da nang"))]
    )

    assert "city_en IN :p0" in where
    assert params["p0"] == ["da nang", "Da nang"]
    assert expanding == ["p0"]


def test_contains_filter_escapes_like_wildcards():
    where, params, expanding = _build_where(
        [HotelFilter("city_ko", "eq", "다낭"), HotelFilter("property_name_en", "contains", "50%_off")]
    )

    assert where.startswith(PUBLISHED_CLAUSE)
    assert "city_ko = :p0" in where
    assert "property_name_en ILIKE :p1 ESCAPE" in where
    assert params == {"p0": "다낭", "p1": "%50\\%\\_off%"}
    assert expanding == []


def test_escape_like_escapes_backslash_first():
    assert escape_like("a\\b%") == "a\\\\b\\%"


def test_filter_rejects_unknown_column_and_op():
    with pytest.raises(ValueError):
        HotelFilter("password", "eq", "x")
    with pytest.raises(ValueError):
        HotelFilter("city_ko", "like", "x")


@pytest.mark.asyncio
async def test_select_hotels_translates_driver_errors():
    conn = AsyncMock()
    conn.execute.side_effect = _dbapi_error("undefined column", sqlstate="42703")
    engine = MagicMock()
    engine.connect.return_value.__aenter__.return_value = conn
    engine.connect.return_value.__aexit__.return_value = False

    with pytest.raises(MissingColumnError) as exc_info:
        await HotelRepository(engine).select_hotels(
            [HotelFilter("city_code", "eq", "DAD")], limit=10
        )

    assert exc_info.value.table == "select_hotels"
