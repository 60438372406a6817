import pytest

from payrates.extract.rate_blocks import (
    StepColumn,
    build_rate_blocks,
    build_rate_blocks_for_rows,
    detect_row_classifications,
    row_effective_date,
    step_columns,
    unclassified_rows,
)
from payrates.ingest.dom import Grid

SRC = "https://example.test/agreement"


def test_end_to_end_row_mode():
    grid = Grid(
        headers=["Effective Date", "Step 1", "Step 2", "Step 3"],
        rows=[
            ["2023-06-22", "$53,045", "$55,735", "$58,425"],
            ["2024-06-22", "$54,137", "$56,899", "$59,654"],
        ],
    )
    blocks = build_rate_blocks(grid, caption="AS-01 - Annual rates of pay (in dollars)", source=SRC)
    assert blocks == [
        {"effective-date": "2023-06-22", "_source": SRC, "step-1": 53045, "step-2": 55735, "step-3": 58425},
        {"effective-date": "2024-06-22", "_source": SRC, "step-1": 54137, "step-2": 56899, "step-3": 59654},
    ]


def test_legend_mode_one_record_per_symbol():
    legend = {"$": "June 21, 2020", "A": "June 21, 2021"}
    grid = Grid(
        headers=["Classification", "$", "A"],
        rows=[["Step 1", "50,000", "51,000"], ["Step 2", "52,000", "53,000"]],
    )
    blocks = build_rate_blocks(grid, legend=legend)
    assert blocks == [
        {"effective-date": "June 21, 2020", "step-1": 50000, "step-2": 52000},
        {"effective-date": "June 21, 2021", "step-1": 51000, "step-2": 53000},
    ]


def test_legend_mode_range_cells_split():
    grid = Grid(headers=["Level", "A"], rows=[["1", "60,000 to 70,000"]])
    (rec,) = build_rate_blocks(grid, legend={"A": "May 1 2022"})
    assert rec["step-1"] == 60000 and rec["step-2"] == 70000
    assert rec["_raw-step-1"] == rec["_raw-step-2"] == "60,000 to 70,000"


def test_legend_without_matching_headers_falls_back_to_rows():
    grid = Grid(headers=["Effective", "Step 1"], rows=[["June 21, 2020", "1,000"]])
    blocks = build_rate_blocks(grid, legend={"Z": "June 21, 2020"})
    assert blocks == [{"effective-date": "June 21, 2020", "step-1": 1000}]


def test_range_column_split_with_raw_text():
    grid = Grid(headers=["Effective date", "Pay range"], rows=[["June 21, 2020", "50,000 - 60,000"]])
    (rec,) = build_rate_blocks(grid)
    assert rec == {
        "effective-date": "June 21, 2020",
        "step-1": 50000,
        "_raw-step-1": "50,000 - 60,000",
        "step-2": 60000,
        "_raw-step-2": "50,000 - 60,000",
    }


def test_unparsable_range_cell_is_kept_as_text():
    grid = Grid(headers=["Effective date", "Range"], rows=[["June 21, 2020", "to be negotiated"]])
    (rec,) = build_rate_blocks(grid)
    assert rec["step-1"] == "to be negotiated"


def test_unparsable_money_cell_is_skipped_and_empty_rows_dropped():
    grid = Grid(
        headers=["Effective date", "Step 1", "Step 2"],
        rows=[["June 21, 2020", "n/a", "2,000"], ["June 21, 2021", "n/a", ""]],
    )
    assert build_rate_blocks(grid) == [{"effective-date": "June 21, 2020", "step-1": 2000}]


def test_missing_date_keeps_record_with_none():
    grid = Grid(headers=["Label", "Step 1"], rows=[["Annual", "1,000"]])
    assert build_rate_blocks(grid) == [{"effective-date": None, "step-1": 1000}]


def test_empty_grid_yields_nothing():
    assert build_rate_blocks(Grid()) == []
    assert build_rate_blocks(Grid(headers=["Step 1"], rows=[])) == []


@pytest.mark.parametrize(
    "first,caption,preceding,expected",
    [
        ("A) Effective June 21, 2020", "", "", "A) Effective June 21, 2020"),
        ("Step", "Rates effective May 1 2019", "", "Rates effective May 1 2019"),
        ("Step", "", "Effective June 22, 2023", "Effective June 22, 2023"),
        ("Step", "no date here", "nor here", None),
    ],
)
def test_row_effective_date_priority(first, caption, preceding, expected):
    assert row_effective_date(first, caption, preceding) == expected


def test_step_columns_header_rules():
    cols = step_columns(["Effective Date", "Step 1", "2", "Rate 3", "Salary range", "Notes"])
    assert cols == [
        StepColumn(1, False),
        StepColumn(2, False),
        StepColumn(3, False),
        StepColumn(4, True),
    ]


def test_step_columns_fallback_skips_first():
    assert step_columns(["Level", "Min", "Max"]) == [StepColumn(1, False), StepColumn(2, False)]


def test_detect_row_classifications_in_first_cells():
    rows = [
        ["AS-01", "June 21, 2020", "1,000"],
        ["Note", "CS-02", "2,000"],
        ["no code", "x", "y", "PM-05"],  # fourth cell is not scanned
        ["AS-01", "June 21, 2021", "1,100"],
    ]
    grouped = detect_row_classifications(rows, ambient=None)
    assert list(grouped) == ["AS-01", "CS-02"]
    assert len(grouped["AS-01"]) == 2
    assert unclassified_rows(rows, ambient=None) == [["no code", "x", "y", "PM-05"]]


def test_bare_digits_only_in_as_tables():
    rows = [["1", "June 21, 2020", "1,000"], ["2", "June 21, 2020", "2,000"]]
    assert list(detect_row_classifications(rows, ambient="AS")) == ["AS-01", "AS-02"]
    assert detect_row_classifications(rows, ambient="CS") == {}
    assert unclassified_rows(rows, ambient="AS") == []
    assert unclassified_rows(rows, ambient="CS") == rows
    assert detect_row_classifications(rows, ambient=None) == {}


def test_blocks_for_row_subset_ignore_preceding_text():
    headers = ["Level", "Effective date", "Step 1"]
    rows = [["AS-01", "", "1,000"]]
    blocks = build_rate_blocks_for_rows(headers, rows, caption="Rates effective June 1, 2020", source=SRC)
    assert blocks == [{"effective-date": "Rates effective June 1, 2020", "_source": SRC, "step-1": 1000}]
