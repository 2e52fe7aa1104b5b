"""Tests for CSV import."""

from decimal import Decimal

import pytest

from ledgerline.domain.csv_service import CSVService, decode_records
from ledgerline.domain.entities import LookupTable
from ledgerline.domain.errors import (
    NotFoundError,
    ReferenceViolationError,
    StructuralDecodeError,
)


def assert_partitioned(result):
    assert result["successful_inserts"] + result["failed_inserts"] == result["total_rows"]
    assert len(result["inserted_ids"]) == result["successful_inserts"]
    assert len(result["errors"]) == result["failed_inserts"]


class TestDecodeRecords:
    def test_records_keyed_by_header_with_line_numbers(self, make_csv):
        records = decode_records(make_csv("05-Jan-2024,10,Food,Lunch,Work,Bob,Card"))

        assert records == [
            (
                2,
                {
                    "Date": "05-Jan-2024",
                    "Amount": "10",
                    "Expense Category": "Food",
                    "Expense Description": "Lunch",
                    "Expense Group": "Work",
                    "Payer": "Bob",
                    "Payment mode": "Card",
                },
            )
        ]

    def test_empty_text_has_no_records(self):
        assert decode_records("") == []

    def test_header_only_has_no_records(self, make_csv):
        assert decode_records(make_csv()) == []

    def test_byte_order_mark_is_stripped(self, make_csv):
        records = decode_records("\ufeff" + make_csv("05-Jan-2024,10,Food,,Work,Bob,Card"))

        assert records[0][1]["Date"] == "05-Jan-2024"

    def test_leading_blank_lines_before_header(self, make_csv):
        records = decode_records("\n\r\n" + make_csv("05-Jan-2024,10,Food,,Work,Bob,Card"))

        assert len(records) == 1
        row_num, record = records[0]
        assert row_num == 4
        assert record["Payment mode"] == "Card"

    def test_blank_lines_between_rows_are_skipped(self):
        records = decode_records("Date,Amount\n\n05-Jan-2024,10\n\n\n06-Jan-2024,11\n")

        assert [row_num for row_num, _ in records] == [3, 6]

    def test_header_names_are_trimmed(self):
        records = decode_records("Date , Amount\n05-Jan-2024,10\n")

        assert records[0][1] == {"Date": "05-Jan-2024", "Amount": "10"}

    def test_short_row_omits_missing_fields(self, make_csv):
        records = decode_records(make_csv("05-Jan-2024,10,Food"))

        assert records[0][1] == {"Date": "05-Jan-2024", "Amount": "10", "Expense Category": "Food"}

    def test_extra_values_are_dropped(self):
        records = decode_records("Date,Amount\n05-Jan-2024,10,surplus\n")

        assert records[0][1] == {"Date": "05-Jan-2024", "Amount": "10"}

    def test_quoted_field_with_newline_reports_last_line(self):
        records = decode_records('Date,Note\n05-Jan-2024,"two\nlines"\n06-Jan-2024,x\n')

        assert [row_num for row_num, _ in records] == [3, 4]
        assert records[0][1]["Note"] == "two\nlines"

    def test_malformed_quoting_raises(self, make_csv):
        text = make_csv("05-Jan-2024,10,Food,,Work,Bob,Card", '06-Jan-2024,"5"x,Food,,Work,Bob,Card')

        with pytest.raises(StructuralDecodeError) as exc_info:
            decode_records(text)

        assert exc_info.value.total_rows == 2


class TestImportWithFakeStorage:
    @pytest.mark.asyncio
    async def test_shared_category_created_once(self, fake_storage, make_csv):
        """Three rows naming the same category produce a single insert for it."""
        service = CSVService(fake_storage)
        text = make_csv(
            "05-Jan-2024,10,Food,Breakfast,Household,Alice,Card",
            "05-Jan-2024,12,Food,Lunch,Household,Alice,Card",
            "05-Jan-2024,30,Food,Dinner,Household,Alice,Card",
        )

        result = await service.import_csv(text)

        assert result["successful_inserts"] == 3
        assert result["failed_inserts"] == 0
        assert fake_storage.inserts.count(("expense_categories", "Food")) == 1
        food_id = fake_storage.lookups["expense_categories"]["Food"]
        assert [e["category_id"] for e in fake_storage.expenses] == [food_id] * 3

    @pytest.mark.asyncio
    async def test_lookup_failure_fails_only_that_row(self, fake_storage, make_csv):
        fake_storage.fail_next_queries = 1
        service = CSVService(fake_storage, max_concurrency=1)
        text = make_csv(
            "05-Jan-2024,10,Food,,Household,Alice,Card",
            "06-Jan-2024,12,Rent,,Flat,Bob,Cash",
        )

        result = await service.import_csv(text)

        assert_partitioned(result)
        assert result["successful_inserts"] == 1
        assert result["errors"][0]["row_num"] == 2
        assert "Could not resolve lookup entities" in result["errors"][0]["message"]

    @pytest.mark.asyncio
    async def test_reference_violation_reported_as_row_failure(self, fake_storage, make_csv):
        def reject(values):
            raise ReferenceViolationError("FOREIGN KEY constraint failed")

        fake_storage.on_expense_insert = reject
        service = CSVService(fake_storage)

        result = await service.import_csv(make_csv("05-Jan-2024,10,Food,,Household,Alice,Card"))

        assert result["successful_inserts"] == 0
        assert result["failed_inserts"] == 1
        assert result["errors"][0]["message"] == "Row 2: Insert failed: FOREIGN KEY constraint failed"

    @pytest.mark.asyncio
    async def test_each_import_uses_a_fresh_resolver(self, fake_storage, make_csv):
        service = CSVService(fake_storage)
        text = make_csv("05-Jan-2024,10,Food,,Household,Alice,Card")

        await service.import_csv(text)
        await service.import_csv(text)

        # The second job looks the names up again but finds them
        assert fake_storage.selects.count(("expense_categories", "Food")) == 2
        assert fake_storage.inserts.count(("expense_categories", "Food")) == 1
        assert len(fake_storage.expenses) == 2

    @pytest.mark.asyncio
    async def test_single_worker_still_imports_everything(self, fake_storage, make_csv):
        service = CSVService(fake_storage, max_concurrency=1)
        lines = [f"{day:02d}-Jan-2024,{day},Food,,Household,Alice,Card" for day in range(1, 21)]

        result = await service.import_csv(make_csv(*lines))

        assert result["successful_inserts"] == 20
        assert sorted(result["inserted_ids"]) == list(range(1, 21))


class TestImportCSV:
    @pytest.mark.asyncio
    async def test_import_sample_file(self, csv_service, lookup_service, fixtures_dir):
        result = await csv_service.import_csv_file(str(fixtures_dir / "sample_expenses.csv"))

        assert result["total_rows"] == 5
        assert result["successful_inserts"] == 5
        assert result["failed_inserts"] == 0
        assert result["errors"] == []

        categories = await lookup_service.list_entities(LookupTable.CATEGORY)
        assert [c.name for c in categories] == ["Food", "Refund", "Rent", "Transport"]
        modes = await lookup_service.list_entities(LookupTable.PAYMENT_MODE)
        assert [m.name for m in modes] == ["Bank Transfer", "Card", "Cash"]

    @pytest.mark.asyncio
    async def test_shared_category_references_one_row(
        self, csv_service, lookup_service, expense_service, make_csv
    ):
        text = make_csv(
            "05-Jan-2024,10,Food,Breakfast,Household,Alice,Card",
            "05-Jan-2024,12,Food,Lunch,Household,Alice,Card",
            "05-Jan-2024,30,Food,Dinner,Household,Alice,Card",
        )

        result = await csv_service.import_csv(text)

        assert result["successful_inserts"] == 3
        categories = await lookup_service.list_entities(LookupTable.CATEGORY)
        assert len(categories) == 1
        expenses = await expense_service.list_expenses()
        assert {e.category_id for e in expenses} == {categories[0].id}
        assert sorted(e.id for e in expenses) == sorted(result["inserted_ids"])

    @pytest.mark.asyncio
    async def test_bad_amount_is_reported(self, csv_service, make_csv):
        text = make_csv("05-Jan-2024,abc,Food,Lunch,Household,Alice,Card")

        result = await csv_service.import_csv(text)

        assert result["total_rows"] == 1
        assert result["successful_inserts"] == 0
        assert result["failed_inserts"] == 1
        error = result["errors"][0]
        assert error["row_num"] == 2
        assert error["message"].startswith("Row 2: ")
        assert "abc" in error["message"]
        assert error["data"]["Amount"] == "abc"
        assert error["data"]["Expense Description"] == "Lunch"

    @pytest.mark.asyncio
    async def test_file_starting_with_blank_line(self, csv_service, make_csv):
        result = await csv_service.import_csv(
            "\n" + make_csv("05-Jan-2024,10,Food,,Home,Alice,Cash")
        )

        assert result["total_rows"] == 1
        assert result["successful_inserts"] == 1
        assert result["failed_inserts"] == 0
        assert result["errors"] == []

    @pytest.mark.asyncio
    async def test_missing_payer_column_rejects_rows(self, csv_service):
        text = (
            "Date,Amount,Expense Category,Expense Description,Expense Group,Payment mode\n"
            "05-Jan-2024,10,Food,Lunch,Household,Card\n"
        )

        result = await csv_service.import_csv(text)

        assert result["total_rows"] == 1
        assert result["failed_inserts"] == 1
        assert result["errors"][0]["message"] == "Row 2: Missing column 'Payer'"

    @pytest.mark.asyncio
    async def test_short_row_rejected_others_imported(self, csv_service, make_csv):
        text = make_csv(
            "05-Jan-2024,10,Food",
            "06-Jan-2024,11,Food,,Household,Alice,Card",
        )

        result = await csv_service.import_csv(text)

        assert_partitioned(result)
        assert result["successful_inserts"] == 1
        assert result["errors"][0]["message"] == "Row 2: Missing column 'Expense Group'"

    @pytest.mark.asyncio
    async def test_mixed_file_partitions_rows(self, csv_service, fixtures_dir):
        result = await csv_service.import_csv_file(str(fixtures_dir / "mixed_expenses.csv"))

        assert_partitioned(result)
        assert result["total_rows"] == 4
        assert result["successful_inserts"] == 1
        assert [e["row_num"] for e in sorted(result["errors"], key=lambda e: e["row_num"])] == [
            2,
            3,
            4,
        ]
        messages = {e["row_num"]: e["message"] for e in result["errors"]}
        assert messages[4] == "Row 4: Missing expense category"

    @pytest.mark.asyncio
    async def test_whitespace_is_trimmed_from_names(self, csv_service, lookup_service, make_csv):
        result = await csv_service.import_csv(
            make_csv("05-Jan-2024, 10 ,  Food ,,Household, Alice ,Card")
        )

        assert result["successful_inserts"] == 1
        payers = await lookup_service.list_entities(LookupTable.PAYER)
        assert [p.name for p in payers] == ["Alice"]

    @pytest.mark.asyncio
    async def test_amount_and_description_stored(self, csv_service, expense_service, make_csv):
        result = await csv_service.import_csv(
            make_csv(
                '02-Feb-2024,-30.00,Refund,"Returned shoes, size 9",Household,Alice,Card',
                "03-Feb-2024,5,Food,,Household,Alice,Card",
            )
        )

        expenses = {e.date.day: e for e in await expense_service.list_expenses()}
        assert result["successful_inserts"] == 2
        assert expenses[2].amount == Decimal("-30.00")
        assert expenses[2].description == "Returned shoes, size 9"
        assert expenses[3].description is None

    @pytest.mark.asyncio
    async def test_structural_error_fails_whole_file(self, csv_service, expense_service, make_csv):
        text = make_csv(
            "05-Jan-2024,10,Food,,Household,Alice,Card",
            '06-Jan-2024,"11"x,Food,,Household,Alice,Card',
        )

        result = await csv_service.import_csv(text)

        assert result["successful_inserts"] == 0
        assert result["failed_inserts"] == 2
        assert result["total_rows"] == 2
        assert result["inserted_ids"] == []
        assert result["errors"][0]["row_num"] is None
        assert "CSV parsing failed" in result["errors"][0]["message"]
        assert await expense_service.list_expenses() == []

    @pytest.mark.asyncio
    async def test_empty_and_header_only_text(self, csv_service, make_csv):
        for text in ("", make_csv()):
            result = await csv_service.import_csv(text)

            assert result == {
                "successful_inserts": 0,
                "failed_inserts": 0,
                "total_rows": 0,
                "inserted_ids": [],
                "errors": [],
            }

    @pytest.mark.asyncio
    async def test_import_missing_file(self, csv_service, tmp_path):
        with pytest.raises(NotFoundError, match="CSV file not found"):
            await csv_service.import_csv_file(str(tmp_path / "nope.csv"))

    @pytest.mark.asyncio
    async def test_file_with_byte_order_mark(self, csv_service, tmp_path, make_csv):
        csv_file = tmp_path / "bom.csv"
        csv_file.write_text(make_csv("05-Jan-2024,10,Food,,Household,Alice,Card"), encoding="utf-8-sig")

        result = await csv_service.import_csv_file(str(csv_file))

        assert result["successful_inserts"] == 1


def test_max_concurrency_must_be_positive(fake_storage):
    with pytest.raises(ValueError, match="max_concurrency"):
        CSVService(fake_storage, max_concurrency=0)
