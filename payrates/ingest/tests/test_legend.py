from payrates.ingest.dom import parse_html
from payrates.ingest.legend import parse_legend


def _nodes(html):
    return [n for n in parse_html(html).find("div").find_all(recursive=False)]


def test_legend_entries_parsed_and_comma_dropped():
    nodes = _nodes(
        """
        <div>
          <p>Some intro</p>
          <p><strong>Table legend</strong></p>
          <ul>
            <li>$) Effective June 21, 2020</li>
            <li>A) Effective June 21, 2021</li>
          </ul>
          <p>B) Effective June 21 2022 (wage adjustment)</p>
        </div>
        """
    )
    assert parse_legend(nodes) == {
        "$": "June 21 2020",
        "A": "June 21 2021",
        "B": "June 21 2022",
    }


def test_no_legend_marker_means_empty_map():
    nodes = _nodes("<div><p>$) Effective June 21, 2020</p></div>")
    assert parse_legend(nodes) == {}


def test_window_is_limited_to_ten_siblings():
    filler = "".join("<p>filler</p>" for _ in range(10))
    nodes = _nodes(f"<div><p>Legend</p>{filler}<p>A) Effective June 21, 2021</p></div>")
    assert parse_legend(nodes) == {}


def test_first_legend_block_wins():
    filler = "".join("<p>filler</p>" for _ in range(12))
    nodes = _nodes(
        "<div><p>Legend</p><p>A) Effective May 1, 2019</p>"
        f"{filler}<p>Legend</p><p>A) Effective May 1, 2023</p></div>"
    )
    assert parse_legend(nodes) == {"A": "May 1 2019"}
