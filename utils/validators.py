from typing import Optional

from storage import is_storable_text


class TextValidator:
    """Validations for raw title/author text typed into the shell."""

    @staticmethod
    def _is_storable_non_empty(text: Optional[str]) -> bool:
        if text is None:
            return False
        t = text.strip()
        if not t:
            return False
        return is_storable_text(t)

    @staticmethod
    def validate_title(title: Optional[str]) -> bool:
        return TextValidator._is_storable_non_empty(title)

    @staticmethod
    def validate_author(author: Optional[str]) -> bool:
        return TextValidator._is_storable_non_empty(author)

    @staticmethod
    def validate_optional(text: Optional[str]) -> bool:
        # blank means "leave unchanged" for updates
        if text is None or not text.strip():
            return True
        return is_storable_text(text.strip())


class IDValidator:
    @staticmethod
    def parse_positive_int(raw: Optional[str]) -> Optional[int]:
        """Parse ``raw`` as an integer > 0. Returns None for anything else."""
        if raw is None:
            return None
        s = raw.strip()
        if not s:
            return None
        try:
            value = int(s)
        except ValueError:
            return None
        return value if value > 0 else None
