from payrates.ingest.dom import parse_html
from payrates.parse.unrepresented import parse_unrepresented_page

SRC = "https://example.test/rates-pay-unrepresented-senior-excluded-employees/as.html"


def _parse(html):
    return parse_unrepresented_page(parse_html(html), SRC)


def test_caption_code_with_step_columns():
    result = _parse(
        """
        <table>
          <caption>Code: 30100<br>AS-07 &ndash; Annual rates of pay (in dollars)</caption>
          <tr><th>Effective Date</th><th>Step 1</th><th>Step 2</th></tr>
          <tr><td>June 22, 2023</td><td>$100,220</td><td>$104,000</td></tr>
          <tr><td></td><td>$1</td><td>$2</td></tr>
        </table>
        """
    )
    assert result == {
        "AS-07": {
            "annual-rates-of-pay": [
                {"effective-date": "June 22, 2023", "_source": SRC, "step-1": 100220, "step-2": 104000}
            ]
        }
    }


def test_to_range_splits_into_first_two_steps():
    result = _parse(
        """
        <table><caption>EX-01 - Annual rates of pay</caption>
          <tr><th>Effective Date</th><th>Salary range</th></tr>
          <tr><td>April 1, 2023</td><td>$128,900 to $151,600</td></tr>
        </table>
        """
    )
    (rec,) = result["EX-01"]["annual-rates-of-pay"]
    assert rec["step-1"] == 128900 and rec["step-2"] == 151600


def test_rcmp_rank_caption_and_min_max_columns():
    result = _parse(
        """
        <table><caption>Chief Superintendent - Annual rates of pay</caption>
          <tr><th>Effective Date</th><th>Minimum</th><th>Maximum</th></tr>
          <tr><td>April 1, 2023</td><td>$150,000</td><td>$170,000</td></tr>
        </table>
        """
    )
    (rec,) = result["CO-RCMP-03"]["annual-rates-of-pay"]
    assert (rec["step-1"], rec["step-2"]) == (150000, 170000)


def test_positional_step_columns_after_date():
    result = _parse(
        """
        <table><caption>PM-06</caption>
          <tr><th>Notes</th><th>Effective Date</th><th>Low</th><th>High</th></tr>
          <tr><td>x</td><td>April 1, 2023</td><td>10,000</td><td>12,000</td></tr>
        </table>
        """
    )
    (rec,) = result["PM-06"]["annual-rates-of-pay"]
    assert rec["step-1"] == 10000 and rec["step-2"] == 12000


def test_unparsable_cells_are_dropped():
    result = _parse(
        """
        <table><caption>DS-07</caption>
          <tr><th>Effective Date</th><th>Step 1</th><th>Step 2</th></tr>
          <tr><td>April 1, 2023</td><td>see note</td><td>$5,000</td></tr>
          <tr><td>April 1, 2024</td><td>n/a</td><td>0</td></tr>
        </table>
        """
    )
    assert result["DS-07"]["annual-rates-of-pay"] == [
        {"effective-date": "April 1, 2023", "_source": SRC, "step-2": 5000}
    ]


def test_heading_fallback_and_tables_without_code_or_date_column():
    result = _parse(
        """
        <table><caption>Notes</caption><tr><th>Effective Date</th><th>1</th></tr>
          <tr><td>April 1, 2023</td><td>1</td></tr></table>
        <h2>HR-05 Human resources</h2>
        <table>
          <tr><th>Effective Date</th><th>1</th></tr>
          <tr><td>April 1, 2023</td><td>9,000</td></tr>
        </table>
        <table><caption>IS-04</caption><tr><th>Year</th><th>1</th></tr>
          <tr><td>2023</td><td>1</td></tr></table>
        """
    )
    assert list(result) == ["HR-05"]
    assert result["HR-05"]["annual-rates-of-pay"][0]["step-1"] == 9000
