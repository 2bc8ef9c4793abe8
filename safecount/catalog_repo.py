from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, List, Tuple

from .dao import PrimaryKey, RelationalRepo, RowRef

logger = logging.getLogger(__name__)

SUPPLIERS_PK_TABLE = "SUPPLIERSPK"


@dataclass(frozen=True)
class BookAuthor:
    book_id: int
    title: str
    first: str
    last: str
    publisher: str
    type: str

    def __str__(self) -> str:
        return f"{self.book_id}  {self.title}  {self.first} {self.last}  {self.publisher}  {self.type}"


class CatalogRepo:
    """Supplier, coffee and book queries over the demo schema"""

    def __init__(self, repo: RelationalRepo):
        self.repo = repo

    def create_suppliers_table(self) -> None:
        self.repo.execute_update(
            f"CREATE TABLE IF NOT EXISTS {SUPPLIERS_PK_TABLE} "
            "(SUP_ID INTEGER NOT NULL, "
            "SUP_NAME VARCHAR(40), "
            "STREET VARCHAR(40), "
            "CITY VARCHAR(20), "
            "STATE CHAR(2), "
            "ZIP CHAR(5), "
            "PRIMARY KEY(SUP_ID))"
        )

    def supplier_primary_keys(self) -> List[PrimaryKey]:
        return self.repo.primary_keys(SUPPLIERS_PK_TABLE)

    def supplier_coffees(self, supplier_name: str = "Acme, Inc.") -> List[Tuple[str, str]]:
        """Coffees sold by suppliers whose name matches ``supplier_name`` (LIKE)"""
        with self.repo.execute_query(
            "SELECT SUPPLIERS.SUP_NAME, COFFEES.COF_NAME "
            "FROM COFFEES, SUPPLIERS "
            "WHERE SUPPLIERS.SUP_NAME LIKE ? AND SUPPLIERS.SUP_ID = COFFEES.SUP_ID "
            "ORDER BY COFFEES.COF_NAME",
            (supplier_name,),
        ) as cur:
            return [(row[0], row[1]) for row in cur]

    def books_with_authors(self) -> Iterator[BookAuthor]:
        """Yield each book joined to its author by following the AUTHOR reference"""
        books = self.repo.execute_query("SELECT BOOK_ID, TITLE, AUTHOR FROM BOOKS ORDER BY BOOK_ID").fetchall()
        for book in books:
            writer = self.repo.dereference(
                RowRef("WRITERS", "OID", book["AUTHOR"]),
                ("LAST_NAME", "FIRST_NAME", "PUBLISHER", "TYPE"),
            )
            if writer is None:
                logger.warning("Book %s has a dangling author reference %s", book["BOOK_ID"], book["AUTHOR"])
                continue
            yield BookAuthor(
                book_id=book["BOOK_ID"],
                title=book["TITLE"],
                first=writer["FIRST_NAME"],
                last=writer["LAST_NAME"],
                publisher=writer["PUBLISHER"],
                type=writer["TYPE"],
            )
