"""
Upload staging and catalog promotion.
"""

from .csv_reader import CSVReader, ParsedTable
from .delimiter import CANDIDATE_DELIMITERS, candidate_delimiters, sniff_delimiter
from .encoding import normalize_encoding
from .pipeline import IngestionPipeline
from .promotion import PromotionEngine

__all__ = [
    "CSVReader",
    "ParsedTable",
    "CANDIDATE_DELIMITERS",
    "candidate_delimiters",
    "sniff_delimiter",
    "normalize_encoding",
    "IngestionPipeline",
    "PromotionEngine",
]
