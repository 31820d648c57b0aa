"""
Shared test fixtures.
"""

import logging
import sys
import uuid

import pytest
from sqlalchemy import create_engine, text

from ormgarden.config import GardenConfig

# === Test database ===

SHOP_DDL = [
    """
    CREATE TABLE customers (
        id INTEGER PRIMARY KEY,
        name VARCHAR(100) NOT NULL,
        email VARCHAR(255),
        notes TEXT,
        active BOOLEAN NOT NULL DEFAULT 1,
        created_at DATETIME
    )
    """,
    """
    CREATE TABLE orders (
        id INTEGER PRIMARY KEY,
        customer_id INTEGER NOT NULL REFERENCES customers(id),
        total NUMERIC(10, 2),
        placed_on DATE,
        class VARCHAR(20)
    )
    """,
    """
    CREATE TABLE products (
        id INTEGER PRIMARY KEY,
        sku CHAR(12) NOT NULL,
        title VARCHAR(200),
        price FLOAT,
        description TEXT
    )
    """,
    """
    CREATE TABLE order_product_map (
        order_id INTEGER NOT NULL REFERENCES orders(id),
        product_id INTEGER NOT NULL REFERENCES products(id),
        PRIMARY KEY (order_id, product_id)
    )
    """,
    """
    CREATE TABLE audit_log (
        message TEXT,
        logged_at TIMESTAMP
    )
    """,
]


@pytest.fixture
def db_path(tmp_path):
    """Path of a SQLite database holding the shop tables."""
    return tmp_path / "shop.db"


@pytest.fixture
def engine(db_path):
    """SQLite engine with the shop schema created."""
    engine = create_engine(f"sqlite:///{db_path}", echo=False)
    with engine.begin() as conn:
        for ddl in SHOP_DDL:
            conn.execute(text(ddl))
    yield engine
    engine.dispose()


@pytest.fixture
def prefix():
    """A garden prefix unique to the test, so generated modules never clash."""
    name = f"garden_{uuid.uuid4().hex[:8]}"
    yield name
    for module in [m for m in sys.modules if m == name or m.startswith(f"{name}.")]:
        del sys.modules[module]


@pytest.fixture
def config(prefix):
    """Config generating into the unique prefix without schema packages."""
    return GardenConfig(garden_prefix=prefix, find_schemas=False)


@pytest.fixture
def out_dir(tmp_path, monkeypatch):
    """Output directory that generated modules can be imported from."""
    path = tmp_path / "out"
    path.mkdir()
    monkeypatch.syspath_prepend(str(path))
    return path


@pytest.fixture(autouse=True)
def restore_logging():
    """configure_logging() replaces the ormgarden handlers; undo that after each test."""
    yield
    root = logging.getLogger("ormgarden")
    root.handlers.clear()
    root.propagate = True
    root.setLevel(logging.NOTSET)
