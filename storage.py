"""Flat-file persistence for the catalog and the issue/return history log.

Catalog file: one record per line, ``id,title,author,issuedFlag`` with the
flag written as ``1`` or ``0``. No header and no escaping, so the text
fields must never contain the delimiter (see ``is_storable_text``).

History log: one ``id,action`` event per line, only ever appended to.
"""

import logging
from typing import Iterable, List, Tuple

from book import Book

logger = logging.getLogger(__name__)

DELIMITER = ","
ISSUED_FLAG = "1"
AVAILABLE_FLAG = "0"
HISTORY_ACTIONS = ("Issued", "Returned")


class StorageError(Exception):
    """Raised when a storage file cannot be opened, read or written."""

    def __init__(self, path: str, operation: str, cause: Exception) -> None:
        self.path = path
        self.operation = operation
        self.cause = cause
        super().__init__(f"Could not {operation} {path}: {cause}")


class CatalogFormatError(ValueError):
    """A single catalog line could not be parsed into a Book."""

    def __init__(self, line_number: int, line: str, reason: str) -> None:
        self.line_number = line_number
        self.line = line
        self.reason = reason
        super().__init__(f"Line {line_number}: {reason} ({line!r})")


def is_storable_text(text: str) -> bool:
    """True if ``text`` can be written to a catalog field without breaking the row layout."""
    return DELIMITER not in text and "\n" not in text and "\r" not in text


def encode_record(book: Book) -> str:
    flag = ISSUED_FLAG if book.issued else AVAILABLE_FLAG
    return DELIMITER.join([str(book.id), book.title, book.author, flag])


def decode_record(line: str, line_number: int = 0) -> Book:
    fields = line.split(DELIMITER)
    if len(fields) != 4:
        raise CatalogFormatError(line_number, line, f"expected 4 fields, found {len(fields)}")

    id_text, title, author, flag = fields
    try:
        book_id = int(id_text.strip())
    except ValueError:
        raise CatalogFormatError(line_number, line, f"invalid id {id_text!r}") from None
    if book_id <= 0:
        raise CatalogFormatError(line_number, line, f"id must be positive, got {book_id}")
    if not title.strip() or not author.strip():
        raise CatalogFormatError(line_number, line, "title and author must not be empty")

    flag = flag.strip()
    if flag not in (ISSUED_FLAG, AVAILABLE_FLAG):
        raise CatalogFormatError(line_number, line, f"issued flag must be 1 or 0, got {flag!r}")

    return Book.from_dict({"id": book_id, "title": title, "author": author, "issued": flag})


def read_catalog(path: str) -> Tuple[List[Book], List[CatalogFormatError]]:
    """Parse every record in the catalog file.

    Returns the parsed books in file order together with one
    ``CatalogFormatError`` per malformed line; those lines are skipped.
    Blank lines are ignored. Raises ``StorageError`` if the file cannot
    be opened or read.
    """
    books: List[Book] = []
    errors: List[CatalogFormatError] = []
    try:
        with open(path, "rb") as f:
            for line_number, raw in enumerate(f, 1):
                try:
                    line = raw.rstrip(b"\r\n").decode("utf-8")
                except UnicodeDecodeError as e:
                    text = raw.rstrip(b"\r\n").decode("utf-8", errors="replace")
                    errors.append(CatalogFormatError(line_number, text, f"not valid UTF-8 ({e.reason})"))
                    continue
                if not line.strip():
                    continue
                try:
                    books.append(decode_record(line, line_number))
                except CatalogFormatError as e:
                    errors.append(e)
    except OSError as e:
        raise StorageError(path, "read", e) from e

    logger.info(f"Read {len(books)} records from {path} ({len(errors)} malformed)")
    return books, errors


def write_catalog(path: str, books: Iterable[Book]) -> int:
    """Overwrite the catalog file with ``books``. Returns the number of records written."""
    count = 0
    try:
        with open(path, "w", encoding="utf-8", newline="\n") as f:
            for book in books:
                f.write(encode_record(book) + "\n")
                count += 1
    except OSError as e:
        raise StorageError(path, "write", e) from e

    logger.info(f"Wrote {count} records to {path}")
    return count


def append_history(path: str, book_id: int, action: str) -> None:
    if action not in HISTORY_ACTIONS:
        raise ValueError(f"Unknown history action: {action}")
    try:
        with open(path, "a", encoding="utf-8", newline="\n") as f:
            f.write(f"{book_id}{DELIMITER}{action}\n")
    except OSError as e:
        raise StorageError(path, "append to", e) from e

    logger.info(f"History: {book_id},{action}")
