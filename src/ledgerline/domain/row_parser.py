"""Validation of single CSV records into typed expense rows."""

from typing import Optional

import structlog

from ledgerline.domain.entities import ParsedRow
from ledgerline.domain.errors import MissingHeaderError, RowValidationError
from ledgerline.utils.amount_parser import parse_amount
from ledgerline.utils.date_parser import parse_source_date

logger = structlog.get_logger(__name__)

DATE = "Date"
AMOUNT = "Amount"
CATEGORY = "Expense Category"
DESCRIPTION = "Expense Description"
GROUP = "Expense Group"
PAYER = "Payer"
PAYMENT_MODE = "Payment mode"

REQUIRED_HEADERS = (DATE, AMOUNT, CATEGORY, GROUP, PAYER, PAYMENT_MODE)
CSV_COLUMNS = (DATE, AMOUNT, CATEGORY, DESCRIPTION, GROUP, PAYER, PAYMENT_MODE)


def log_rejection(error: RowValidationError, record: dict[str, str], **context) -> None:
    """Log a rejected record.

    A missing header means the file itself is malformed and is logged under
    its own event name, apart from ordinary data-quality rejections.
    """
    if isinstance(error, MissingHeaderError):
        logger.warning("csv_row_missing_header", header=error.field, record=record, **context)
    else:
        logger.warning(
            "csv_row_rejected",
            reason=str(error),
            field=error.field,
            value=error.value,
            record=record,
            **context,
        )


class CSVRowParser:
    """Turns one raw CSV record into a ParsedRow.

    ``parse`` never raises: rejected records are logged with the offending
    value and the full record, and ``None`` is returned. ``validate`` performs
    the same checks but raises ``RowValidationError`` so callers can report
    the reason.
    """

    def parse(self, record: dict[str, str]) -> Optional[ParsedRow]:
        """Parse a record, returning None if it is rejected."""
        try:
            return self.validate(record)
        except RowValidationError as e:
            log_rejection(e, record)
        return None

    def validate(self, record: dict[str, str]) -> ParsedRow:
        """Parse a record.

        Args:
            record: Mapping of CSV header to raw string value

        Returns:
            ParsedRow with canonical date, Decimal amount and trimmed names

        Raises:
            MissingHeaderError: If a required header key is absent
            RowValidationError: If a value is empty or malformed
        """
        for header in REQUIRED_HEADERS:
            if header not in record:
                raise MissingHeaderError(
                    f"Missing column '{header}'", field=header, record=record
                )

        txn_date = self._parse_field(record, DATE, parse_source_date)
        amount = self._parse_field(record, AMOUNT, parse_amount)
        names = {
            header: self._required_text(record, header)
            for header in (CATEGORY, GROUP, PAYER, PAYMENT_MODE)
        }
        description = (record.get(DESCRIPTION) or "").strip()

        return ParsedRow(
            date=txn_date,
            amount=amount,
            category=names[CATEGORY],
            group=names[GROUP],
            payer=names[PAYER],
            payment_mode=names[PAYMENT_MODE],
            description=description,
            original_record=record,
        )

    @staticmethod
    def _parse_field(record: dict[str, str], header: str, parser):
        value = record[header]
        if value is None or not str(value).strip():
            raise RowValidationError(
                f"Missing {header.lower()}", field=header, value=value, record=record
            )
        try:
            return parser(str(value))
        except ValueError as e:
            raise RowValidationError(str(e), field=header, value=value, record=record) from e

    @staticmethod
    def _required_text(record: dict[str, str], header: str) -> str:
        value = record[header]
        if value is None or not str(value).strip():
            raise RowValidationError(
                f"Missing {header.lower()}", field=header, value=value, record=record
            )
        return str(value).strip()
