"""
csv_reader.py — delimited-text reader for the linear-regression exercise

Reads a text file line by line and splits every line on a (possibly
multi-character) delimiter, returning rows of string fields.

Tokenizing rules
----------------
• "a,b,c"  → ["a", "b", "c"]
• "a,b,"   → ["a", "b", ""]     trailing delimiter keeps an empty field
• ",a"     → ["", "a"]
• ""       → []                 empty line gives an empty row
• "a::b" with delimiter "::" → ["a", "b"]

No quoting or escaping is understood; that is what the standard csv module
is for. This reader exists for the simple numeric tables of the exercise.
"""

from __future__ import annotations
from pathlib import Path
from typing import List
import numpy as np


class CSVReader:
    """Read data from a delimited text file."""

    def __init__(self, filename: str | Path, delimiter: str = ","):
        if not delimiter:
            raise ValueError("delimiter must be a non-empty string")
        self.filename = Path(filename)
        self.delimiter = delimiter

    def get_data(self) -> List[List[str]]:
        """Parse the file and return one list of fields per line."""
        if not self.filename.is_file():
            raise FileNotFoundError(f"Input file {self.filename} does not exist.")

        rows: List[List[str]] = []
        with open(self.filename, "r", encoding="utf-8") as fh:
            for line in fh:
                rows.append(self.tokenize(line.rstrip("\r\n"), self.delimiter))
        return rows

    def get_numeric_data(self, skip_header: bool = False) -> np.ndarray:
        """
        Parse the file as a rectangular table of floats.

        Empty rows are ignored. Raises ValueError on a non-numeric cell or a
        row whose length differs from the first one.
        """
        numbered = [(n, r) for n, r in enumerate(self.get_data(), start=1) if r]
        if skip_header and numbered:
            numbered = numbered[1:]
        if not numbered:
            return np.empty((0, 0), dtype=np.float64)

        rows = [r for _, r in numbered]
        width = len(rows[0])
        for lineno, row in numbered:
            if len(row) != width:
                raise ValueError(
                    f"{self.filename}: row {lineno} has {len(row)} fields, expected {width}"
                )
        try:
            return np.array([[float(v) for v in row] for row in rows], dtype=np.float64)
        except ValueError as exc:
            raise ValueError(f"{self.filename}: non-numeric value ({exc})") from exc

    @staticmethod
    def tokenize(text: str, delimiter: str) -> List[str]:
        """Split `text` on `delimiter` following the rules in the module docstring."""
        if not text:
            return []
        return text.split(delimiter)
