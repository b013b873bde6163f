"""Example 01: Basic Usage - records, factories, conditions and paging.

This example demonstrates:
- Declaring a typed Record with Column[T] annotations
- Loading records by id, by condition and by page through a RecordFactory
- Changing a record and saving only the changed columns
- Paging with a cached total count
"""

from dataobject import Column, Record, RecordFactory, Where, open_driver


class Book(Record, table="books"):
    """A book in a small library."""

    id: Column[int] = Column(primary_key=True)
    title: Column[str]
    author: Column[str]
    year: Column[int]
    available: Column[bool] = True


BOOKS = [
    ("Dune", "Frank Herbert", 1965),
    ("Neuromancer", "William Gibson", 1984),
    ("Hyperion", "Dan Simmons", 1989),
    ("Foundation", "Isaac Asimov", 1951),
    ("The Left Hand of Darkness", "Ursula K. Le Guin", 1969),
]


def main():
    """Run the basic usage example."""
    db = open_driver(storage_uri="sqlite:///:memory:")
    db.execute_script(
        "CREATE TABLE books ("
        "  id INTEGER PRIMARY KEY, title TEXT, author TEXT, year INTEGER,"
        "  available INTEGER NOT NULL DEFAULT 1)"
    )
    for title, author, year in BOOKS:
        db.insert("books", {"title": title, "author": author, "year": year})

    books = RecordFactory(db, Book)

    # Lookup by primary key
    dune = books.get_one(1)
    print(f"get_one(1): {dune}")

    # Lookup by condition built from columns
    sixties = books.get_from_where(
        Where(Book.year >= 1960).add_and(Book.year < 1970),
        order=[Book.year.asc()],
    )
    print("Published in the 1960s:", [b.title for b in sixties])

    # Partial update: only "available" is written
    dune.available = False
    print("Pending changes:", dune.modified_fields)
    dune.save()

    # Negated condition
    on_shelf = books.get_from_where(Where(Book.available == False).negate())  # noqa: E712
    print("Available:", [b.title for b in on_shelf])

    # Paging
    paginator = books.get_paginator(2, 2, order=[Book.title.asc()])
    print(f"Page {paginator.page} of {paginator.total_pages} ({paginator.total} books):")
    for book in paginator:
        print(f"  - {book.title}")

    db.close()


if __name__ == "__main__":
    main()
