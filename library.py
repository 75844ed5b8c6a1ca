import logging
from collections import Counter
from typing import Callable, Dict, List, Optional, Tuple, Any

import storage
from book import Book
from config import settings
from storage import StorageError

logger = logging.getLogger(__name__)

HISTORY_ISSUED = "Issued"
HISTORY_RETURNED = "Returned"


class Library:
    """Manages the collection of books and data persistence.

    The in-memory list is the source of truth for the session. Every
    successful mutation rewrites the whole catalog file; issue and return
    events are also appended to the history log. Storage failures never
    raise out of the store, they are logged and collected in
    ``storage_warnings`` for the caller to report.
    """

    def __init__(self, catalog_file: Optional[str] = None, history_file: Optional[str] = None) -> None:
        self.catalog_file: str = catalog_file or settings.catalog_file
        self.history_file: str = history_file or settings.history_file
        self.books: List[Book] = []
        self.storage_warnings: List[str] = []
        self.load()

    # ------------------------- Persistence ------------------------- #
    def load(self) -> List[Book]:
        """Replace the in-memory catalog with the contents of the catalog file.

        Malformed lines and lines repeating an earlier id are skipped with a
        warning; the rest of the file still loads.
        """
        self.books = []
        try:
            books, errors = storage.read_catalog(self.catalog_file)
        except StorageError as e:
            self._warn(str(e))
            return []

        for error in errors:
            self._warn(f"Skipped malformed record in {self.catalog_file}: {error}")

        seen = set()
        for book in books:
            if book.id in seen:
                self._warn(f"Skipped duplicate record in {self.catalog_file}: ID {book.id}")
                continue
            seen.add(book.id)
            self.books.append(book)

        logger.info(f"Loaded {len(self.books)} books from {self.catalog_file}")
        return self.list_books()

    def save(self) -> bool:
        """Rewrite the catalog file from memory. Returns False if the write failed."""
        try:
            storage.write_catalog(self.catalog_file, self.books)
        except StorageError as e:
            self._warn(f"{e}. Changes are kept in memory only.")
            return False
        return True

    def pop_warnings(self) -> List[str]:
        warnings, self.storage_warnings = self.storage_warnings, []
        return warnings

    # ------------------------- Core operations ------------------------- #
    def exists(self, book_id: int) -> bool:
        return self._index_of(book_id) is not None

    def add_book(self, book: Book) -> Book:
        """Add a pre-constructed Book. Prevent duplicates by ID."""
        self._validate(book)
        if self.exists(book.id):
            raise ValueError(f"Book with ID {book.id} already exists.")

        stored = book.copy()
        self.books.append(stored)
        self.save()
        logger.info(f"Added book {stored.id}: {stored.title}")
        return stored.copy()

    def add_copies(self, title: str, author: str, start_id: int, quantity: int) -> Tuple[List[int], List[int]]:
        """Add ``quantity`` copies of a title under consecutive ids.

        Ids that are already taken are skipped. Returns ``(added_ids, failed_ids)``.
        """
        if quantity < 1:
            raise ValueError("Quantity must be at least 1.")
        # Validate once up front so a bad title does not produce N failures
        self._validate(Book(start_id, title, author))

        added: List[int] = []
        failed: List[int] = []
        for book_id in range(start_id, start_id + quantity):
            if self.exists(book_id):
                failed.append(book_id)
                continue
            self.add_book(Book(book_id, title, author))
            added.append(book_id)
        return added, failed

    def update_book(self, book_id: int, *, title: Optional[str] = None, author: Optional[str] = None) -> Optional[Book]:
        """Update title and/or author of a book by ID. Returns updated book or None if not found.

        Blank values leave the field unchanged, so a field can be replaced
        but never cleared.
        """
        if not self.exists(book_id):
            return None

        new_title = title.strip() if title is not None and title.strip() else None
        new_author = author.strip() if author is not None and author.strip() else None

        def mutate(book: Book) -> None:
            if new_title:
                book.title = new_title
            if new_author:
                book.author = new_author

        return self.apply_mutation(book_id, mutate)

    def apply_mutation(self, book_id: int, fn: Callable[[Book], Any]) -> Optional[Book]:
        """Apply ``fn`` to a working copy of the record and persist the result.

        The record is only replaced if the copy still satisfies every
        invariant and keeps its id. Returns a snapshot of the updated book,
        or None if the id is not in the catalog.
        """
        index = self._index_of(book_id)
        if index is None:
            return None

        working = self.books[index].copy()
        fn(working)
        if working.id != book_id:
            raise ValueError("Book ID cannot be changed.")
        self._validate(working)

        self.books[index] = working
        self.save()
        return working.copy()

    def remove_book(self, book_id: int) -> bool:
        index = self._index_of(book_id)
        if index is None:
            return False
        del self.books[index]
        self.save()
        logger.info(f"Removed book {book_id}")
        return True

    def get_book(self, book_id: int) -> Optional[Book]:
        """Return a detached snapshot of the book, or None."""
        index = self._index_of(book_id)
        if index is None:
            return None
        return self.books[index].copy()

    def issue_book(self, book_id: int) -> Book:
        book = self._require(book_id)
        if book.issued:
            raise AlreadyIssuedError(book_id)
        updated = self.apply_mutation(book_id, lambda b: setattr(b, "issued", True))
        self._log_history(book_id, HISTORY_ISSUED)
        return updated

    def return_book(self, book_id: int) -> Book:
        book = self._require(book_id)
        if not book.issued:
            raise NotIssuedError(book_id)
        updated = self.apply_mutation(book_id, lambda b: setattr(b, "issued", False))
        self._log_history(book_id, HISTORY_RETURNED)
        return updated

    # ------------------------- Queries ------------------------- #
    def list_books(self) -> List[Book]:
        return [b.copy() for b in self.books]

    def list_issued(self) -> List[Book]:
        return [b.copy() for b in self.books if b.issued]

    def list_available(self) -> List[Book]:
        return [b.copy() for b in self.books if not b.issued]

    def search_books(self, term: str) -> List[Book]:
        """Search by title or author (case-insensitive substring) or by exact ID."""
        term = term or ""
        needle = term.lower()
        return [
            b.copy()
            for b in self.books
            if needle in b.title.lower() or needle in b.author.lower() or str(b.id) == term
        ]

    def stats_by_author(self) -> Dict[str, int]:
        return self._count_by(lambda b: b.author)

    def stats_by_title(self) -> Dict[str, int]:
        return self._count_by(lambda b: b.title)

    def get_statistics(self) -> Dict[str, Any]:
        """Get library statistics."""
        issued = sum(1 for b in self.books if b.issued)
        return {
            "total_books": len(self.books),
            "issued_books": issued,
            "available_books": len(self.books) - issued,
            "unique_authors": len({b.author for b in self.books}),
        }

    # ------------------------- Utilities ------------------------- #
    def _index_of(self, book_id: int) -> Optional[int]:
        for index, book in enumerate(self.books):
            if book.id == book_id:
                return index
        return None

    def _require(self, book_id: int) -> Book:
        index = self._index_of(book_id)
        if index is None:
            raise BookNotFoundError(book_id)
        return self.books[index]

    def _count_by(self, key: Callable[[Book], str]) -> Dict[str, int]:
        counts = Counter(key(b) for b in self.books)
        return {name: counts[name] for name in sorted(counts)}

    def _log_history(self, book_id: int, action: str) -> None:
        try:
            storage.append_history(self.history_file, book_id, action)
        except StorageError as e:
            self._warn(str(e))

    def _warn(self, message: str) -> None:
        logger.warning(message)
        self.storage_warnings.append(message)

    @staticmethod
    def _validate(book: Book) -> None:
        if book.id <= 0:
            raise ValueError("Book ID must be a positive integer.")
        if not book.title:
            raise ValueError("Title cannot be empty.")
        if not book.author:
            raise ValueError("Author cannot be empty.")
        for label, text in (("Title", book.title), ("Author", book.author)):
            if not storage.is_storable_text(text):
                raise ValueError(f"{label} cannot contain '{storage.DELIMITER}' or line breaks.")


class BookNotFoundError(LookupError):
    def __init__(self, book_id: int) -> None:
        self.book_id = book_id
        super().__init__(f"Book with ID {book_id} not found.")


class BookStateError(ValueError):
    """The requested issue/return transition is not valid for the book's current state."""


class AlreadyIssuedError(BookStateError):
    def __init__(self, book_id: int) -> None:
        self.book_id = book_id
        super().__init__(f"Book with ID {book_id} is already issued.")


class NotIssuedError(BookStateError):
    def __init__(self, book_id: int) -> None:
        self.book_id = book_id
        super().__init__(f"Book with ID {book_id} is not issued.")
