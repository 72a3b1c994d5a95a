import pytest

from statement_ocr.extract.lines import extract_summary, extract_transaction_lines
from statement_ocr.utils import parse_currency


def test_basic_rows_with_and_without_balance():
    rows = extract_transaction_lines(
        "12/20 POS PURCHASE WAL-MART #1234 54.21 1,000.00\n"
        "01/09 NETFLIX.COM SUBSCRIPTION 15.99\n"
    )
    assert [(r.date, r.description, r.amount) for r in rows] == [
        ("12/20", "POS PURCHASE WAL-MART #1234", "54.21"),
        ("01/09", "NETFLIX.COM SUBSCRIPTION", "15.99"),
    ]


def test_amount_token_variants():
    rows = extract_transaction_lines(
        "01/07 SHELL OIL 12345 (45.00) 3,455.00\n"
        "01/08 REFUND -$12.00\n"
        "01/09 CORRECTION 12.00-\n"
        "01/10 OCR NOISE 1O0.00\n"
        "01/11/2025 FULL DATE 1.234,56\n"
    )
    assert [r.amount for r in rows] == ["(45.00)", "-$12.00", "12.00-", "1O0.00", "1.234,56"]
    assert rows[-1].date == "01/11/2025"


def test_non_rows_are_skipped():
    text = "\n".join([
        "ACME BANK",
        "Page 1 of 3",
        "Date Description Amount",
        "01/0X GARBAGE ROW ###",
        "01/05 NO AMOUNT HERE",
        "",
        "01/06 COFFEE 4.50",
    ])
    rows = extract_transaction_lines(text)
    assert len(rows) == 1
    assert rows[0].description == "COFFEE"
    assert rows[0].line_no == 7


def test_month_headers_set_context_year():
    rows = extract_transaction_lines([
        "12/30 BEFORE ANY HEADER 1.00",
        "December 2024",
        "12/31 NEW YEARS EVE 20.00",
        "Jan, 2025",
        "01/02 AFTER HEADER 5.00",
        "janvier 2026",
        "01/03 FRENCH HEADER 6.00",
    ])
    assert [r.context_year for r in rows] == [None, 2024, 2025, 2026]


def test_header_inside_sentence_is_not_a_header():
    rows = extract_transaction_lines(["Your Jan 2025 statement is ready", "01/02 COFFEE 4.50"])
    assert rows[0].context_year is None


def test_summary_block():
    s = extract_summary(
        "Account Ending 12-34\nNew Balance $1,234.56\nMinimum Payment 35.00\nPayment Due Date 02/10/2025\n"
    )
    assert s.balance == "1,234.56"
    assert s.due_date == "02/10/2025"
    assert s.account_suffix == "1234"


def test_summary_absent():
    s = extract_summary("01/06 COFFEE 4.50")
    assert s.balance is None and s.due_date is None and s.account_suffix is None


@pytest.mark.parametrize("line, balance", [
    ("New Balance: $1,234.56.", "1,234.56"),
    ("Your New Balance is due. New Balance 250.00,", "250.00"),
    ("New Balance 1.234,56", "1.234,56"),
    ("New Balance $7", "7"),
])
def test_summary_balance_drops_trailing_punctuation(line, balance):
    s = extract_summary(line + "\n")
    assert s.balance == balance
    assert parse_currency(s.balance) > 0
