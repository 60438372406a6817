import pytest

from payrates.parse.page import parse_page
from payrates.scrape.sources import is_unrepresented_url

HTML = """
<h2>Rates of pay</h2>
<table><caption>AS-07 - Annual rates of pay (in dollars)</caption>
  <tr><th>Effective Date</th><th>Step 1</th></tr>
  <tr><td>$) Effective June 21, 2020</td><td>100,000</td></tr>
</table>
"""


@pytest.mark.parametrize(
    "url,expected",
    [
        ("https://x.test/rates-pay/rates-pay-unrepresented-senior-excluded-employees/as.html", True),
        ("https://x.test/collective-agreements/as.html", False),
        ("", False),
    ],
)
def test_is_unrepresented_url(url, expected):
    assert is_unrepresented_url(url) is expected


def test_dispatch_by_url():
    ca = parse_page(HTML, "https://x.test/collective-agreements/as.html")
    un = parse_page(HTML, "https://x.test/rates-pay-unrepresented-senior-excluded-employees/as.html")

    # appendix parser keeps the whole first cell as the date label
    assert ca["AS-07"]["annual-rates-of-pay"][0]["effective-date"] == "$) Effective June 21, 2020"
    assert un["AS-07"]["annual-rates-of-pay"][0]["step-1"] == 100000
