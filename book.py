from __future__ import annotations


class Book:
    """Represents a single book record in the catalog."""

    def __init__(self, id: int, title: str, author: str, issued: bool = False) -> None:
        self.id = int(id)
        self.title = (title or "").strip()
        self.author = (author or "").strip()
        self.issued = bool(issued)

    @property
    def status(self) -> str:
        return "Issued" if self.issued else "Available"

    def copy(self) -> "Book":
        return Book(self.id, self.title, self.author, self.issued)

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        return f"{self.title} by {self.author} (ID: {self.id}, {self.status})"

    def __repr__(self) -> str:
        return f"Book(id={self.id!r}, title={self.title!r}, author={self.author!r}, issued={self.issued!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Book):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __hash__(self) -> int:
        return hash((self.id, self.title, self.author, self.issued))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "author": self.author,
            "issued": self.issued,
        }

    @staticmethod
    def from_dict(data: dict) -> "Book":
        # The catalog file stores the flag as "1"/"0"; JSON callers pass booleans
        issued = data.get("issued", False)
        if isinstance(issued, str):
            issued = issued.strip() == "1"
        return Book(
            id=data["id"],
            title=data["title"],
            author=data["author"],
            issued=issued,
        )
