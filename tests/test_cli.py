import pytest

import cli
import report
from analysis import analyse_quote


@pytest.fixture
def display(base_quote):
    return cli.compute_display_data(analyse_quote(base_quote))


@pytest.mark.parametrize(
    "value, decimals, expected",
    [
        (0, 0, "$0"),
        (1234.5, 0, "$1,234"),
        (1234.5, 2, "$1,234.50"),
        (-980.4, 0, "-$980"),
    ],
)
def test_fmt(value, decimals, expected):
    assert cli.fmt(value, decimals) == expected


def test_display_data(display):
    b = display["breakdown"]
    assert display["vehicle"] == "2024 Toyota RAV4"
    assert display["years"] == 3
    assert display["marginal"] == pytest.approx(0.32)
    assert display["net_per_year"] == pytest.approx(b.net_cost_before_residual / 3)
    assert display["net_per_fortnight"] == pytest.approx(display["net_per_year"] / 26)
    assert display["winner"] in ("lease", "buy")
    assert display["warnings"] == []


def test_verdict_mentions_winner(display):
    text = cli.generate_verdict_text(display)
    if display["winner"] == "lease":
        assert text.startswith("The novated lease comes out")
    else:
        assert text.startswith("Paying cash comes out")


def test_run_cli_with_quote(base_quote, tmp_path, capsys):
    pdf = tmp_path / "out.pdf"
    d = cli.run_cli(base_quote, str(pdf))
    out = capsys.readouterr().out
    assert "COST BREAKDOWN" in out
    assert "AT LEASE END" in out
    assert "QUOTE CHECK" not in out
    assert d["years"] == 3
    assert pdf.read_bytes().startswith(b"%PDF")


def test_web_charts(display):
    images = report.get_web_charts(display)
    assert len(images) == 4
    assert all(isinstance(i, str) and i for i in images)


def test_zero_price_renders(zero_quote, tmp_path):
    d = cli.compute_display_data(analyse_quote(zero_quote))
    assert d["saving_pct"] == 0
    path = report.generate_pdf(d, cli.generate_verdict_text(d), str(tmp_path / "zero.pdf"))
    assert path.endswith("zero.pdf")
