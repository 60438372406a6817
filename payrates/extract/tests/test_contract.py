import pytest
from pydantic import ValidationError

from payrates.extract.schema import Dataset, RatesEntry, export_json_schema


def _dataset(records):
    return {"AS-01": {"annual-rates-of-pay": records}}


def test_basic_dataset_validates():
    data = _dataset(
        [
            {
                "effective-date": "2023-06-22",
                "step-1": 53045,
                "step-2": 55735.5,
                "_raw-step-2": "55,735.50",
                "_source": "https://example.test/as",
            },
            {"effective-date": None, "step-1": "see note"},
        ]
    )
    ds = Dataset.model_validate(data)
    entry = ds.root["AS-01"].annual_rates_of_pay[0]
    assert entry.effective_date == "2023-06-22"
    assert entry.source == "https://example.test/as"
    assert entry.model_extra["step-2"] == 55735.5


def test_round_trip_keeps_hyphenated_keys():
    data = _dataset([{"effective-date": "June 21 2020", "step-1": 1.0}])
    dumped = Dataset.model_validate(data).model_dump(by_alias=True, exclude_none=True)
    assert dumped == data


@pytest.mark.parametrize(
    "record",
    [
        {"effective-date": "x", "step-1": 1, "step-3": 3},  # gap
        {"effective-date": "x", "step-2": 1},  # does not start at 1
        {"effective-date": "x", "step-1": [1, 2]},  # wrong type
        {"effective-date": "x", "step-1": True},
        {"effective-date": "x", "step-1": 1, "_raw-step-2": "1 - 2"},  # orphan raw
    ],
)
def test_invalid_records_rejected(record):
    with pytest.raises(ValidationError):
        RatesEntry.model_validate(record)


def test_unknown_entry_key_rejected():
    with pytest.raises(ValidationError):
        Dataset.model_validate({"AS-01": {"rates": []}})


def test_blank_code_rejected():
    with pytest.raises(ValidationError):
        Dataset.model_validate({" ": {"annual-rates-of-pay": []}})


def test_schema_export_is_object_map():
    schema = export_json_schema()
    assert schema["type"] == "object"
    assert "additionalProperties" in schema
