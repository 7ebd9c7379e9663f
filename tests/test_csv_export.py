"""
Unit tests for the CSV export.
"""

from datetime import date, datetime, timezone

from models.order import Order, OrderStatus
from services.csv_export import CSV_HEADER, export_filename, export_orders_csv


def make_order(order_id="SM-101", **changes):
    fields = dict(
        id=order_id,
        issue_date=datetime(2024, 9, 15, 10, tzinfo=timezone.utc),
        product_description="22K Gold Wedding Ring",
        pieces=1,
        file_number="FN-2024-001",
        karigar_name="Ritu Sharma",
        status=OrderStatus.WITH_VENDOR,
        bill_number="B-54321",
        image_url="https://picsum.photos/seed/ring/400/400",
    )
    fields.update(changes)
    return Order(**fields)


class TestExportOrdersCsv:
    """Test export_orders_csv()."""

    def test_no_orders_is_header_only(self):
        assert export_orders_csv([]) == CSV_HEADER

    def test_header(self):
        assert CSV_HEADER == (
            "Order ID,Date of Issue,Product,Pieces,File Number,"
            "Karigar Name,Status,Bill Number,Image URL"
        )

    def test_row_format(self):
        text = export_orders_csv([make_order()])

        assert text.split("\n") == [
            CSV_HEADER,
            '"SM-101","2024-09-15T10:00:00.000Z","22K Gold Wedding Ring","1",'
            '"FN-2024-001","Ritu Sharma","With Vendor","B-54321",'
            '"https://picsum.photos/seed/ring/400/400"',
        ]

    def test_no_trailing_newline(self):
        text = export_orders_csv([make_order("SM-1"), make_order("SM-2")])

        assert not text.endswith("\n")
        assert len(text.split("\n")) == 3

    def test_keeps_given_order(self):
        text = export_orders_csv([make_order("SM-2"), make_order("SM-1")])

        lines = text.split("\n")
        assert lines[1].startswith('"SM-2"')
        assert lines[2].startswith('"SM-1"')

    def test_quotes_are_doubled(self):
        text = export_orders_csv([make_order(product_description='Ring "Royal", 22K')])

        assert '"Ring ""Royal"", 22K"' in text

    def test_sentinels(self):
        text = export_orders_csv([make_order(issue_date=None, pieces=float("nan"))])

        assert '"SM-101","","22K Gold Wedding Ring","NaN",' in text

    def test_unknown_status_exported_verbatim(self):
        text = export_orders_csv([make_order(status="Shipped")])
        assert '"Shipped"' in text


class TestExportFilename:
    """Test export_filename()."""

    def test_filename(self):
        assert export_filename(date(2024, 9, 30)) == "jewel_market_orders_2024-09-30.csv"

    def test_defaults_to_today(self):
        assert export_filename() == f"jewel_market_orders_{date.today().isoformat()}.csv"
