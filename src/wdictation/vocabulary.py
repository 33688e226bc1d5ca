import io
import logging
import os
import uuid
import zipfile
from datetime import datetime, timedelta
from typing import IO, Callable, List, Optional, Sequence, Union

import pandas as pd

from .errors import InvalidInputError
from .models import VocabularyEntry, VocabularyStats

logger = logging.getLogger(__name__)

HEADER_HINTS = ("word", "pos", "meaning", "sentence", "example")

SAMPLE_VOCABULARY = [
    {
        "word": "Neighborhood",
        "pos": "n.",
        "meaning": "鄰近地區 / 街坊",
        "example": "The children in our neighborhood often play together in the park.",
    },
    {
        "word": "Sidewalk",
        "pos": "n.",
        "meaning": "人行道",
        "example": "Please walk on the sidewalk for your safety.",
    },
    {
        "word": "Accomplish",
        "pos": "v.",
        "meaning": "完成 / 達成",
        "example": "She worked hard to accomplish her goals.",
    },
    {
        "word": "Magnificent",
        "pos": "adj.",
        "meaning": "壯麗的 / 宏偉的",
        "example": "The view from the mountain top was absolutely magnificent.",
    },
    {
        "word": "Democracy",
        "pos": "n.",
        "meaning": "民主制度",
        "example": "Democracy allows citizens to participate in government decisions.",
    },
]

Source = Union[str, bytes, IO]

# Widest row read from delimited text; longer rows are skipped by the parser.
MAX_COLUMNS = 64


def has_header(rows: Sequence[Sequence[str]]) -> bool:
    """True when the first row looks like column titles."""
    if not rows:
        return False
    return any(
        hint in str(cell).lower() for cell in rows[0] if cell for hint in HEADER_HINTS
    )


class VocabularyManager:
    """Holds the learner's vocabulary list and imports new lists from files."""

    def __init__(
        self,
        entries: Optional[List[VocabularyEntry]] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.clock = clock
        self.entries: List[VocabularyEntry] = list(entries or [])

    def _new_entry(self, word: str, pos: str, meaning: str, example: str) -> VocabularyEntry:
        return VocabularyEntry(
            id=uuid.uuid4().hex,
            word=word,
            pos=pos,
            meaning=meaning,
            example=example,
            date_added=self.clock(),
        )

    def process_rows(self, rows: Sequence[Sequence[str]]) -> List[VocabularyEntry]:
        start = 1 if has_header(rows) else 0
        entries = []
        for row in rows[start:]:
            cells = [str(cell).strip() for cell in row]
            if len(cells) < 4 or not cells[0]:
                continue
            entries.append(self._new_entry(cells[0], cells[1], cells[2], cells[3]))
        return entries

    def _replace(self, entries: List[VocabularyEntry], origin: str) -> List[VocabularyEntry]:
        if not entries:
            logger.error(f"Import from {origin} produced no vocabulary")
            raise InvalidInputError(
                "No valid vocabulary data found. "
                "Expected columns: Word | POS | Meaning | Sentence Example"
            )
        self.entries = entries
        logger.info(f"Loaded {len(entries)} words from {origin}")
        return entries

    @staticmethod
    def _frame_rows(df: pd.DataFrame) -> List[List[str]]:
        """Rows cut after their last present cell; gaps inside a row become empty strings."""
        rows = []
        for values, present in zip(df.values.tolist(), df.notna().values.tolist()):
            width = max((i + 1 for i, p in enumerate(present) if p), default=0)
            rows.append([str(v) if p else "" for v, p in zip(values[:width], present)])
        return rows

    def _read_delimited(self, source: Source, delimiter: str) -> List[List[str]]:
        try:
            df = pd.read_csv(
                source,
                sep=delimiter,
                header=None,
                names=list(range(MAX_COLUMNS)),
                index_col=False,
                dtype=str,
                keep_default_na=False,
                skip_blank_lines=True,
                encoding="utf-8",
                engine="python",
                on_bad_lines="skip",
            )
        except pd.errors.EmptyDataError:
            return []
        except (pd.errors.ParserError, UnicodeDecodeError) as e:
            raise InvalidInputError(f"Failed to parse file: {e}") from e
        return self._frame_rows(df)

    def import_text(self, text: str, delimiter: str = ",") -> List[VocabularyEntry]:
        """Import delimited text, e.g. CSV or tab-separated rows copied from a sheet."""
        if not text.strip():
            raise InvalidInputError("The provided data is empty")
        rows = self._read_delimited(io.StringIO(text), delimiter)
        return self._replace(self.process_rows(rows), "text")

    def import_file(self, source: Source, filename: Optional[str] = None) -> List[VocabularyEntry]:
        """
        Import a vocabulary list from a CSV, TSV or XLSX file.

        ``source`` is a path or an open binary file; ``filename`` decides the
        format when ``source`` is not a path.
        """
        if isinstance(source, bytes):
            source = io.BytesIO(source)
        name = filename or (source if isinstance(source, str) else "")
        extension = os.path.splitext(name)[1].lower()

        if extension == ".csv":
            rows = self._read_delimited(source, ",")
        elif extension in (".tsv", ".txt"):
            rows = self._read_delimited(source, "\t")
        elif extension == ".xlsx":
            try:
                df = pd.read_excel(source, header=None, dtype=str)
            except (ValueError, zipfile.BadZipFile) as e:
                raise InvalidInputError(f"Failed to parse file: {e}") from e
            rows = self._frame_rows(df)
        else:
            raise InvalidInputError(f"Unsupported file type: {extension or name}")

        return self._replace(self.process_rows(rows), os.path.basename(name))

    def load_sample_data(self) -> List[VocabularyEntry]:
        self.entries = [self._new_entry(**item) for item in SAMPLE_VOCABULARY]
        logger.info(f"Loaded {len(self.entries)} sample words")
        return self.entries

    def get(self, word_id: str) -> Optional[VocabularyEntry]:
        return next((e for e in self.entries if e.id == word_id), None)

    def stats(self) -> VocabularyStats:
        day_ago = self.clock() - timedelta(days=1)
        total = len(self.entries)
        return VocabularyStats(
            total_words=total,
            studied_words=sum(1 for e in self.entries if e.times_studied > 0),
            average_accuracy=(
                sum(e.average_accuracy for e in self.entries) / total if total else 0
            ),
            recently_studied=sum(
                1 for e in self.entries if e.last_studied and e.last_studied > day_ago
            ),
        )

    def clear(self):
        self.entries = []
        logger.info("Vocabulary cleared")
