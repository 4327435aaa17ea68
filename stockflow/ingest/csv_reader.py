"""
CSV tokenizing for normalized upload text, using pandas.
"""

import io
from dataclasses import dataclass, field
from typing import Optional

import pandas as pd

from stockflow.observability.logger import get_logger

from .delimiter import candidate_delimiters

logger = get_logger(__name__)


@dataclass
class ParsedTable:
    """Header and rows produced by one successful tokenization."""

    delimiter: Optional[str]
    columns: list[str] = field(default_factory=list)
    rows: list[dict[str, str]] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.rows)


class CSVReader:
    """
    Reads delimited text with a header row into string-valued row mappings.

    Parsing is relaxed: short rows are padded with empty strings, long rows
    are truncated to the header width, blank lines are skipped, and names and
    values are trimmed. Nothing is coerced to NaN or numbers.
    """

    def __init__(self, quotechar: str = '"'):
        self.quotechar = quotechar

    def _read_frame(self, text: str, delimiter: str, **options) -> pd.DataFrame:
        return pd.read_csv(
            io.StringIO(text),
            sep=delimiter,
            engine="python",
            dtype=str,
            header=0,
            index_col=False,
            keep_default_na=False,
            na_filter=False,
            skip_blank_lines=True,
            skipinitialspace=True,
            quotechar=self.quotechar,
            **options,
        )

    def read(self, text: str, delimiter: str) -> ParsedTable:
        """
        Tokenize text with one delimiter.

        Args:
            text: Normalized text (LF newlines, no BOM)
            delimiter: Single-character field separator

        Returns:
            ParsedTable, possibly with zero rows

        Raises:
            pandas.errors.ParserError: If the text cannot be tokenized
            pandas.errors.EmptyDataError: If there is no header line
        """
        header = self._read_frame(text, delimiter, nrows=0)
        width = len(header.columns)

        df = self._read_frame(text, delimiter, on_bad_lines=lambda fields: fields[:width])
        df = df.fillna("")

        columns = [str(c).strip() for c in df.columns]
        df.columns = columns

        rows = [
            {column: str(value).strip() for column, value in record.items()}
            for record in df.to_dict(orient="records")
        ]
        return ParsedTable(delimiter=delimiter, columns=columns, rows=rows)

    def read_with_fallback(self, text: str, guessed: str) -> ParsedTable:
        """
        Try the guessed delimiter, then each fallback, until a parse yields rows.

        Args:
            text: Normalized text
            guessed: Sniffed delimiter to try first

        Returns:
            The first ParsedTable with at least one row, or an empty table
            (delimiter None) if no candidate produced any
        """
        for delimiter in candidate_delimiters(guessed):
            try:
                table = self.read(text, delimiter)
            except (pd.errors.ParserError, pd.errors.EmptyDataError, ValueError) as e:
                logger.debug(
                    f"Delimiter {delimiter!r} failed to tokenize: {e}",
                    extra={"delimiter": delimiter},
                )
                continue

            if table.rows:
                return table

        return ParsedTable(delimiter=None)
