import argparse
import json
from typing import List, Optional

import structlog

from adapters.base import DatabaseAdapter
from adapters.factory import get_adapter

logger = structlog.get_logger(__name__)


SAMPLE_DDL = [
    """
    CREATE TABLE IF NOT EXISTS users (
        id INTEGER PRIMARY KEY,
        name VARCHAR(100) NOT NULL,
        email VARCHAR(100) NOT NULL,
        age INTEGER,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS products (
        id INTEGER PRIMARY KEY,
        name VARCHAR(100) NOT NULL,
        price DECIMAL(10,2) NOT NULL,
        category VARCHAR(50),
        stock INTEGER DEFAULT 0,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS orders (
        id INTEGER PRIMARY KEY,
        user_id INTEGER REFERENCES users(id),
        product_id INTEGER REFERENCES products(id),
        quantity INTEGER NOT NULL,
        total_amount DECIMAL(10,2),
        order_date TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        status VARCHAR(20) DEFAULT 'PENDING'
    )
    """,
]

SAMPLE_ROWS = [
    """
    INSERT INTO users (id, name, email, age) VALUES
        (1, 'John Doe', 'john@example.com', 30),
        (2, 'Jane Smith', 'jane@example.com', 25),
        (3, 'Bob Johnson', 'bob@example.com', 35),
        (4, 'Alice Williams', 'alice@example.com', 28),
        (5, 'Charlie Brown', 'charlie@example.com', 42)
    """,
    """
    INSERT INTO products (id, name, price, category, stock) VALUES
        (1, 'Laptop', 999.99, 'Electronics', 50),
        (2, 'Mouse', 25.99, 'Electronics', 200),
        (3, 'Keyboard', 79.99, 'Electronics', 150),
        (4, 'Desk Chair', 299.99, 'Furniture', 30),
        (5, 'Monitor', 349.99, 'Electronics', 75),
        (6, 'Headphones', 149.99, 'Electronics', 100)
    """,
    """
    INSERT INTO orders (id, user_id, product_id, quantity, total_amount, status) VALUES
        (1, 1, 1, 1, 999.99, 'COMPLETED'),
        (2, 2, 2, 2, 51.98, 'COMPLETED'),
        (3, 3, 4, 1, 299.99, 'PENDING'),
        (4, 1, 5, 1, 349.99, 'COMPLETED'),
        (5, 4, 3, 1, 79.99, 'SHIPPED'),
        (6, 5, 6, 2, 299.98, 'COMPLETED')
    """,
]


def seed_sample_data(adapter: Optional[DatabaseAdapter] = None) -> bool:
    """Create the sample tables and load rows once. Returns True when rows were inserted."""
    adapter = adapter or get_adapter()
    adapter.execute_script(SAMPLE_DDL)

    _columns, rows = adapter.execute_query("SELECT COUNT(*) FROM users", timeout_ms=5000)
    if rows and int(rows[0][0]) > 0:
        logger.info("sample_data_present", engine=adapter.engine)
        return False

    adapter.execute_script(SAMPLE_ROWS)
    logger.info("sample_data_seeded", engine=adapter.engine, tables=["users", "products", "orders"])
    return True


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create and populate the sample users/products/orders tables.")
    parser.add_argument("--db-engine", default=None, help="sqlite or postgres (defaults to DB_ENGINE).")
    parser.add_argument("--db-path", default=None, help="SQLite database file (defaults to SQLITE_DB_PATH).")
    return parser.parse_args(argv)


if __name__ == "__main__":
    args = _parse_args()
    source_config = {"db_path": args.db_path} if args.db_path else None
    inserted = seed_sample_data(get_adapter(db_engine=args.db_engine, source_config=source_config))
    print(json.dumps({"status": "ok", "inserted": inserted}))
