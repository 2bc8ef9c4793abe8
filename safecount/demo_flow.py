"""
Demo script for the relational examples and the counter race.
Uses the seed data from safecount.seed. For classroom demos only.

Run:
  python -m safecount.demo_flow

Relational steps log failures and carry on to the next step, so a missing
table in one example does not stop the others.
"""

from __future__ import annotations

import logging
import os

from .catalog_repo import CatalogRepo
from .counters import race_demo
from .dao import RelationalError, RelationalRepo
from .main import DEFAULT_DB_PATH
from .observability import configure_logging

logger = logging.getLogger(__name__)


def show_primary_keys(db_path: str) -> int:
    """Create SUPPLIERSPK and print its primary-key metadata"""
    try:
        with RelationalRepo.open(db_path) as repo:
            catalog = CatalogRepo(repo)
            catalog.create_suppliers_table()
            keys = catalog.supplier_primary_keys()
    except RelationalError as e:
        logger.error("Primary key lookup failed: %s", e)
        return 0
    for pk in keys:
        print(f"table name :  {pk.table_name}")
        print(f"column name:  {pk.column_name}")
        print(f"sequence in key:  {pk.key_seq}")
        print(f"primary key name:  {pk.pk_name}")
        print("")
    return len(keys)


def show_query(db_path: str, supplier: str = "Acme, Inc.") -> int:
    """Print every column of every row of an ad-hoc join, by position"""
    try:
        with RelationalRepo.open(db_path, create=False) as repo:
            with repo.execute_query(
                "SELECT SUPPLIERS.SUP_NAME, COFFEES.COF_NAME FROM COFFEES, SUPPLIERS "
                "WHERE SUPPLIERS.SUP_NAME LIKE ? AND SUPPLIERS.SUP_ID = COFFEES.SUP_ID",
                (supplier,),
            ) as cur:
                for row_number, row in enumerate(cur, start=1):
                    print(f"Row {row_number}:  ")
                    for col in cur.columns:
                        print(f"   Column {col.position}:  {row[col.position - 1]}")
                    print("")
                return cur.row_count
    except RelationalError as e:
        logger.error("Query failed: %s", e)
        return 0


def show_books(db_path: str) -> int:
    count = 0
    try:
        with RelationalRepo.open(db_path, create=False) as repo:
            for book in CatalogRepo(repo).books_with_authors():
                print(book)
                count += 1
    except RelationalError as e:
        logger.error("Book dereference failed: %s", e)
    return count


def main():
    configure_logging()
    db_path = os.environ.get("APP_DB_PATH", DEFAULT_DB_PATH)

    print("-- Primary keys --")
    show_primary_keys(db_path)
    print("-- Ad-hoc query --")
    show_query(db_path)
    print("-- Dereference --")
    show_books(db_path)

    print("-- Counter race --")
    result = race_demo()
    print(f"Expected: {result.expected}  unsafe: {result.unsafe_final}  safe: {result.safe_final}")


if __name__ == "__main__":
    main()
