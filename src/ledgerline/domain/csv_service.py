"""CSV import and export domain service."""

import asyncio
import csv
import io
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any, Mapping, Optional, Union

import structlog

from ledgerline.database import queries
from ledgerline.database.base import Database
from ledgerline.database.mappers import expense_detail_to_domain
from ledgerline.domain.entities import ExpenseFilters, ExpenseRow, LookupTable, ParsedRow
from ledgerline.domain.errors import (
    NotFoundError,
    RowValidationError,
    StructuralDecodeError,
    ValidationError,
)
from ledgerline.domain.resolver import EntityResolver
from ledgerline.domain.row_parser import CSV_COLUMNS, CSVRowParser, log_rejection
from ledgerline.utils.date_parser import format_source_date, parse_iso_date
from ledgerline.utils.id_list import parse_id_list

logger = structlog.get_logger(__name__)

DEFAULT_MAX_CONCURRENCY = 8


@dataclass(frozen=True)
class _RowOutcome:
    row_num: int
    inserted_id: Optional[int] = None
    error: Optional[dict[str, Any]] = None


def decode_records(text: str) -> list[tuple[int, dict[str, str]]]:
    """Decode CSV text into (line number, record) pairs.

    The first non-empty row holds the headers. Blank lines are skipped
    everywhere. Fields missing from a short row are left out of its record,
    and values beyond the last header are dropped.

    Raises:
        StructuralDecodeError: If the text cannot be tokenized
    """
    if text.startswith("\ufeff"):
        text = text[1:]

    reader = csv.reader(io.StringIO(text, newline=""), strict=True)
    headers: Optional[list[str]] = None
    records: list[tuple[int, dict[str, str]]] = []
    try:
        for row in reader:
            if not row:
                continue
            if headers is None:
                headers = [h.strip() for h in row]
                continue
            records.append((reader.line_num, dict(zip(headers, row))))
    except csv.Error as e:
        if headers is None:
            raise StructuralDecodeError(f"CSV parsing failed in header row: {e}") from e
        raise StructuralDecodeError(
            f"CSV parsing failed at line {reader.line_num}: {e}",
            total_rows=len(records) + 1,
        ) from e
    return records


def filters_from_params(params: Union[ExpenseFilters, Mapping[str, Any], None]) -> ExpenseFilters:
    """Build ExpenseFilters from request-style parameters.

    Accepts ``start_date``/``startDate``, ``end_date``/``endDate`` (date
    objects or ISO strings) and ``group_ids``/``expenseGroupIds`` (a
    comma-separated string or a list of ints). Blank values mean no filter.

    Raises:
        ValidationError: If a date is not a valid ISO date
    """
    if params is None:
        return ExpenseFilters()
    if isinstance(params, ExpenseFilters):
        return params

    def pick(*keys: str) -> Any:
        for key in keys:
            value = params.get(key)
            if value not in (None, ""):
                return value
        return None

    def as_date(value: Any) -> Optional[date]:
        if value is None or isinstance(value, date):
            return value
        try:
            return parse_iso_date(str(value))
        except ValueError as e:
            raise ValidationError(str(e)) from e

    return ExpenseFilters(
        start_date=as_date(pick("start_date", "startDate")),
        end_date=as_date(pick("end_date", "endDate")),
        group_ids=parse_id_list(pick("group_ids", "expenseGroupIds")),
    )


def export_filename(filters: Optional[ExpenseFilters] = None) -> str:
    """Suggest a download filename for an export."""
    filters = filters or ExpenseFilters()
    start = filters.start_date.isoformat() if filters.start_date else "all"
    end = filters.end_date.isoformat() if filters.end_date else "all"
    return f"expenses_{start}_{end}.csv"


class CSVService:
    """Service for importing and exporting expenses as CSV."""

    def __init__(
        self,
        db: Database,
        row_parser: Optional[CSVRowParser] = None,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    ):
        """Initialize CSV service.

        Args:
            db: Database instance
            row_parser: Parser for single records (a default one if None)
            max_concurrency: Maximum number of rows processed at once

        Raises:
            ValueError: If max_concurrency is less than 1
        """
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.db = db
        self.row_parser = row_parser or CSVRowParser()
        self.max_concurrency = max_concurrency

    async def import_csv_file(self, csv_file_path: str) -> dict[str, Any]:
        """Import expenses from a UTF-8 CSV file.

        Raises:
            NotFoundError: If the CSV file doesn't exist
        """
        csv_path = Path(csv_file_path)
        if not csv_path.exists():
            raise NotFoundError(f"CSV file not found: {csv_file_path}")
        return await self.import_csv(csv_path.read_text(encoding="utf-8-sig"))

    async def import_csv(self, text: str) -> dict[str, Any]:
        """Import expenses from CSV text.

        Every decoded record ends up either inserted or failed; a bad record
        never stops the rest of the file. Lookup names are resolved through a
        resolver created for this call only.

        Args:
            text: CSV text with a header row

        Returns:
            Dict with import statistics:
            - successful_inserts: number of expenses inserted
            - failed_inserts: number of records that were not inserted
            - total_rows: number of decoded records (header excluded)
            - inserted_ids: IDs of the new expenses
            - errors: list of {"row_num", "message", "data"} dicts
        """
        try:
            records = decode_records(text)
        except StructuralDecodeError as e:
            logger.error("csv_decode_failed", error=str(e), total_rows=e.total_rows)
            return {
                "successful_inserts": 0,
                "failed_inserts": e.total_rows,
                "total_rows": e.total_rows,
                "inserted_ids": [],
                "errors": [{"row_num": None, "message": str(e), "data": None}],
            }

        resolver = EntityResolver(self.db)
        semaphore = asyncio.Semaphore(self.max_concurrency)
        outcomes = await asyncio.gather(
            *(
                self._process_record(row_num, record, resolver, semaphore)
                for row_num, record in records
            )
        )

        inserted_ids = [o.inserted_id for o in outcomes if o.error is None]
        errors = [o.error for o in outcomes if o.error is not None]

        logger.info(
            "csv_import_finished",
            total_rows=len(records),
            successful_inserts=len(inserted_ids),
            failed_inserts=len(errors),
        )
        return {
            "successful_inserts": len(inserted_ids),
            "failed_inserts": len(errors),
            "total_rows": len(records),
            "inserted_ids": inserted_ids,
            "errors": errors,
        }

    async def _process_record(
        self,
        row_num: int,
        record: dict[str, str],
        resolver: EntityResolver,
        semaphore: asyncio.Semaphore,
    ) -> _RowOutcome:
        async with semaphore:
            try:
                parsed = self.row_parser.validate(record)
            except RowValidationError as e:
                log_rejection(e, record, row_num=row_num)
                return self._failure(row_num, record, str(e))

            try:
                row = await self._resolve_row(parsed, resolver)
            except Exception as e:
                logger.error(
                    "csv_row_resolution_failed", row_num=row_num, error=str(e), record=record
                )
                return self._failure(row_num, record, f"Could not resolve lookup entities: {e}")
            if row is None:
                return self._failure(row_num, record, "Lookup entity name is empty")

            try:
                result = await self.db.execute(
                    queries.insert_expense(
                        date=row.date,
                        amount=row.amount,
                        group_id=row.group_id,
                        category_id=row.category_id,
                        payer_id=row.payer_id,
                        payment_mode_id=row.payment_mode_id,
                        description=row.description or None,
                    )
                )
            except Exception as e:
                logger.error("expense_insert_failed", row_num=row_num, error=str(e), record=record)
                return self._failure(row_num, record, f"Insert failed: {e}")

            if result.id is None:
                logger.error("expense_insert_failed", row_num=row_num, error="no id", record=record)
                return self._failure(row_num, record, "Insert did not return an ID")
            return _RowOutcome(row_num=row_num, inserted_id=result.id)

    @staticmethod
    async def _resolve_row(parsed: ParsedRow, resolver: EntityResolver) -> Optional[ExpenseRow]:
        """Resolve the four lookup names of a row concurrently."""
        results = await asyncio.gather(
            resolver.resolve_or_create(LookupTable.CATEGORY, parsed.category),
            resolver.resolve_or_create(LookupTable.GROUP, parsed.group),
            resolver.resolve_or_create(LookupTable.PAYER, parsed.payer),
            resolver.resolve_or_create(LookupTable.PAYMENT_MODE, parsed.payment_mode),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result

        category_id, group_id, payer_id, payment_mode_id = results
        if None in results:
            return None
        return ExpenseRow(
            date=parsed.date,
            amount=parsed.amount,
            category_id=category_id,
            group_id=group_id,
            payer_id=payer_id,
            payment_mode_id=payment_mode_id,
            description=parsed.description,
            original_record=parsed.original_record,
        )

    @staticmethod
    def _failure(row_num: int, record: dict[str, str], message: str) -> _RowOutcome:
        return _RowOutcome(
            row_num=row_num,
            error={"row_num": row_num, "message": f"Row {row_num}: {message}", "data": record},
        )

    async def export_csv(
        self, filters: Union[ExpenseFilters, Mapping[str, Any], None] = None
    ) -> str:
        """Export expenses as CSV text.

        The header row is always written, even when nothing matches.

        Args:
            filters: ExpenseFilters or request-style parameters (see
                filters_from_params)

        Returns:
            CSV text with columns Date, Amount, Expense Category, Expense
            Description, Expense Group, Payer, Payment mode
        """
        export_filters = filters_from_params(filters)
        rows = await self.db.query(queries.select_expense_details(export_filters))

        output = io.StringIO()
        writer = csv.writer(output, lineterminator="\n")
        writer.writerow(CSV_COLUMNS)
        for row in rows:
            expense = expense_detail_to_domain(row)
            writer.writerow(
                [
                    format_source_date(expense.date),
                    str(expense.amount),
                    expense.category_name or "",
                    expense.description or "",
                    expense.group_name or "",
                    expense.payer_name or "",
                    expense.payment_mode_name or "",
                ]
            )

        logger.info("csv_export_finished", rows=len(rows), filename=export_filename(export_filters))
        return output.getvalue()
