import pytest

from book import Book
from storage import (
    CatalogFormatError,
    StorageError,
    append_history,
    decode_record,
    encode_record,
    is_storable_text,
    read_catalog,
    write_catalog,
)


def test_encode_record():
    assert encode_record(Book(1, "Dune", "Frank Herbert")) == "1,Dune,Frank Herbert,0"
    assert encode_record(Book(2, "Emma", "Jane Austen", issued=True)) == "2,Emma,Jane Austen,1"

def test_decode_record():
    book = decode_record("42,The Hobbit,J. R. R. Tolkien,1")
    assert book.id == 42
    assert book.title == "The Hobbit"
    assert book.author == "J. R. R. Tolkien"
    assert book.issued is True

@pytest.mark.parametrize("line", [
    "x,Title,Author,0",
    "0,Title,Author,0",
    "1,Title,Author",
    "1,Title,Author,0,extra",
    "1,,Author,0",
    "1,Title,Author,yes",
])
def test_decode_record_rejects_malformed(line):
    with pytest.raises(CatalogFormatError) as exc_info:
        decode_record(line, 3)
    assert exc_info.value.line_number == 3
    assert exc_info.value.line == line

def test_write_then_read(tmp_path):
    path = str(tmp_path / "library.csv")
    books = [Book(3, "Dune", "Herbert", True), Book(1, "Emma", "Austen")]

    assert write_catalog(path, books) == 2
    loaded, errors = read_catalog(path)

    assert loaded == books
    assert errors == []

def test_write_overwrites_previous_content(tmp_path):
    path = tmp_path / "library.csv"
    path.write_text("9,Old,Record,0\n", encoding="utf-8")

    write_catalog(str(path), [Book(1, "Dune", "Herbert")])

    assert path.read_text(encoding="utf-8") == "1,Dune,Herbert,0\n"

def test_read_skips_blank_lines_and_reports_bad_ones(tmp_path):
    path = tmp_path / "library.csv"
    path.write_text("1,Dune,Herbert,0\n\n   \nnot a record\n2,Emma,Austen,1\r\n", encoding="utf-8")

    loaded, errors = read_catalog(str(path))

    assert [b.id for b in loaded] == [1, 2]
    assert loaded[1].issued is True
    assert len(errors) == 1
    assert errors[0].line_number == 4

def test_read_missing_file(tmp_path):
    with pytest.raises(StorageError) as exc_info:
        read_catalog(str(tmp_path / "nope.csv"))
    assert exc_info.value.operation == "read"

def test_write_to_directory_fails(tmp_path):
    with pytest.raises(StorageError):
        write_catalog(str(tmp_path), [Book(1, "Dune", "Herbert")])

def test_append_history(tmp_path):
    path = tmp_path / "history.csv"
    append_history(str(path), 1, "Issued")
    append_history(str(path), 1, "Returned")
    append_history(str(path), 7, "Issued")

    assert path.read_text(encoding="utf-8").splitlines() == ["1,Issued", "1,Returned", "7,Issued"]

def test_append_history_rejects_unknown_action(tmp_path):
    with pytest.raises(ValueError):
        append_history(str(tmp_path / "history.csv"), 1, "Lost")

@pytest.mark.parametrize("text,expected", [
    ("Dune", True),
    ("Smith, John", False),
    ("Two\nLines", False),
    ("Carriage\rReturn", False),
])
def test_is_storable_text(text, expected):
    assert is_storable_text(text) is expected

def test_read_reports_undecodable_line(tmp_path):
    path = tmp_path / "library.csv"
    path.write_bytes(b"1,Dune,Herbert,0\n2,Bad\xff,Title,0\r\n3,Emma,Austen,1\n")

    loaded, errors = read_catalog(str(path))

    assert [b.id for b in loaded] == [1, 3]
    assert len(errors) == 1
    assert errors[0].line_number == 2
    assert "UTF-8" in errors[0].reason
