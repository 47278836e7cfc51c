"""Tests for the user schema and output format parsing."""

import pydantic
import pytest

from user_aggregator.ingestion.schemas import (
    NULL_SENTINEL,
    USER_FIELDS,
    OutputFormat,
    SourceResult,
    User,
)


class TestOutputFormat:
    @pytest.mark.parametrize("value", ["json", "JSON", " Json ", "jSoN"])
    def test_parse_json(self, value):
        assert OutputFormat.parse(value) is OutputFormat.JSON

    @pytest.mark.parametrize("value", ["csv", "CSV", "Csv\n"])
    def test_parse_csv(self, value):
        assert OutputFormat.parse(value) is OutputFormat.CSV

    @pytest.mark.parametrize("value", ["", "xml", "jsonl", "c sv"])
    def test_parse_invalid(self, value):
        with pytest.raises(ValueError, match="expected one of: json, csv"):
            OutputFormat.parse(value)

    def test_extension(self):
        assert OutputFormat.CSV.extension == "csv"


class TestUser:
    def test_immutable(self):
        user = User(first_name="Ada", last_name="Lovelace", source_id="7")

        with pytest.raises(pydantic.ValidationError):
            user.first_name = "Grace"

    def test_email_defaults_to_sentinel(self):
        user = User(first_name="Ada", last_name="Lovelace", source_id="7")

        assert user.email == NULL_SENTINEL

    def test_to_row_field_order(self):
        user = User(first_name="Ada", last_name="Lovelace", email="a@x.com", source_id="7")

        row = user.to_row()

        assert tuple(row) == USER_FIELDS
        assert row == {
            "first_name": "Ada",
            "last_name": "Lovelace",
            "email": "a@x.com",
            "source_id": "7",
        }


class TestSourceResult:
    def test_ok(self):
        assert SourceResult(url="https://a", payload=[]).ok

    def test_error(self):
        assert not SourceResult(url="https://a", error="boom").ok
