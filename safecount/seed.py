#!/usr/bin/env python3
import os
import sys
import sqlite3

from .dao import get_connection
from .main import DEFAULT_DB_PATH, init_db


def seed_suppliers(conn: sqlite3.Connection):
    """Insert demo suppliers and the coffees they sell"""
    suppliers = [
        (101, "Acme, Inc.", "99 Market Street", "Groundsville", "CA", "95199"),
        (49, "Superior Coffee", "1 Party Place", "Mendocino", "CA", "95460"),
        (150, "The High Ground", "100 Coffee Lane", "Meadows", "CA", "93966"),
    ]
    coffees = [
        ("Colombian", 101, 7.99),
        ("French_Roast", 49, 8.99),
        ("Espresso", 150, 9.99),
        ("Colombian_Decaf", 101, 8.99),
        ("French_Roast_Decaf", 49, 9.99),
    ]
    for row in suppliers:
        conn.execute(
            "INSERT OR IGNORE INTO SUPPLIERS (SUP_ID, SUP_NAME, STREET, CITY, STATE, ZIP) VALUES (?, ?, ?, ?, ?, ?)",
            row,
        )
    for name, sup_id, price in coffees:
        cursor = conn.execute(
            "INSERT OR IGNORE INTO COFFEES (COF_NAME, SUP_ID, PRICE) VALUES (?, ?, ?)",
            (name, sup_id, price),
        )
        print(f"Inserted {name} - rowcount: {cursor.rowcount}")
    conn.commit()


def seed_books(conn: sqlite3.Connection):
    """Insert demo writers and books referencing them by OID"""
    writers = [
        (1, "Austen", "Jane", "Penguin", "Novelist"),
        (2, "Knuth", "Donald", "Addison-Wesley", "Scientist"),
    ]
    books = [
        (10, "Pride and Prejudice", 1),
        (11, "The Art of Computer Programming", 2),
        (12, "Emma", 1),
    ]
    conn.executemany(
        "INSERT OR IGNORE INTO WRITERS (OID, LAST_NAME, FIRST_NAME, PUBLISHER, TYPE) VALUES (?, ?, ?, ?, ?)",
        writers,
    )
    conn.executemany("INSERT OR IGNORE INTO BOOKS (BOOK_ID, TITLE, AUTHOR) VALUES (?, ?, ?)", books)
    conn.commit()
    print("Books seeded successfully!")


def seed(db_path: str) -> None:
    init_db(db_path)
    conn = get_connection(db_path)
    try:
        seed_suppliers(conn)
        seed_books(conn)
    finally:
        conn.close()


def main():
    db_path = os.environ.get("APP_DB_PATH", DEFAULT_DB_PATH)
    print(f"Seeding database at: {db_path}")
    try:
        seed(db_path)
    except sqlite3.Error as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
