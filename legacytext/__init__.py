"""Text extraction from legacy Office binaries stored in Compound Binary Files."""
from legacytext.core.cfb import CfbContainer
from legacytext.core.errors import ExtractionError, ParseError
from legacytext.utils.file_reader import extract_from_bytes, extract_from_path

__all__ = [
    "CfbContainer",
    "ExtractionError",
    "ParseError",
    "extract_from_bytes",
    "extract_from_path",
]
