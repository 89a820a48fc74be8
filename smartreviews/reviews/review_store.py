"""
Review Store
============

Persistence of products and reviews.

ReviewStore is the interface the synthesis pipeline and the API layer
depend on; PostgresReviewStore implements it on top of a psycopg2
connection pool.

Usage:
    store = PostgresReviewStore(pool)
    store.init_schema()
    reviews = store.get_reviews("sku-123")
"""

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

import psycopg2
from psycopg2.extras import RealDictCursor

from ..errors import NotFoundError, StorageError
from .review_models import Product, Review

logger = logging.getLogger(__name__)


SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS products (
    id          BIGSERIAL PRIMARY KEY,
    external_id TEXT NOT NULL UNIQUE,
    shop_id     TEXT NOT NULL,
    keywords    TEXT NOT NULL DEFAULT '',
    created_at  TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at  TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_products_shop_id ON products (shop_id);

CREATE TABLE IF NOT EXISTS reviews (
    id           BIGSERIAL PRIMARY KEY,
    product_id   BIGINT NOT NULL REFERENCES products (id) ON DELETE CASCADE,
    author       TEXT NOT NULL,
    title        TEXT NOT NULL,
    content      TEXT NOT NULL,
    rating       INTEGER NOT NULL,
    is_synthetic BOOLEAN NOT NULL DEFAULT FALSE,
    created_at   TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at   TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_reviews_product_id ON reviews (product_id);

-- At most one synthesized summary review per product
CREATE UNIQUE INDEX IF NOT EXISTS uq_reviews_synthetic_per_product
    ON reviews (product_id) WHERE is_synthetic;
"""


class ReviewStore(ABC):
    """Storage interface for products and their reviews."""

    @abstractmethod
    def get_product(self, external_id: str) -> Optional[Product]:
        """Product by external id, or None. Reviews are not loaded."""

    @abstractmethod
    def get_reviews(self, external_id: str) -> List[Review]:
        """All reviews of a product, synthesized first then by creation order."""

    @abstractmethod
    def get_synthetic_review(self, product_id: int) -> Optional[Review]:
        """The synthesized summary review of a product, or None."""

    @abstractmethod
    def upsert_review(self, review: Review) -> int:
        """Insert a review without id, or update the one with that id. Returns the id."""

    @abstractmethod
    def create_product(self, product: Product) -> int:
        """Insert a product (or return the existing one with that external id)."""

    @abstractmethod
    def save_product(self, product: Product) -> int:
        """Persist product fields (keywords, shop). Creates it when it has no id."""

    @abstractmethod
    def get_products_by_shop(self, shop_id: str) -> List[Product]:
        """All products of a shop."""

    @abstractmethod
    def get_average_rating(self, external_id: str) -> float:
        """Mean rating of the human reviews; 0.0 when there are none."""

    @abstractmethod
    def get_review_count(self, external_id: str) -> int:
        """Number of human reviews."""

    def get_product_with_reviews(self, external_id: str) -> Optional[Product]:
        """Product with its reviews loaded, or None."""
        product = self.get_product(external_id)
        if product is None:
            return None
        product.reviews = self.get_reviews(external_id)
        return product


def _row_to_product(row: Dict[str, Any]) -> Product:
    return Product(
        id=row["id"],
        external_id=row["external_id"],
        shop_id=row["shop_id"],
        keywords=row["keywords"] or "",
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


def _row_to_review(row: Dict[str, Any]) -> Review:
    return Review(
        id=row["id"],
        product_id=row["product_id"],
        author=row["author"],
        title=row["title"],
        content=row["content"],
        rating=row["rating"],
        is_synthetic=row["is_synthetic"],
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


class PostgresReviewStore(ReviewStore):
    """
    ReviewStore backed by PostgreSQL.

    Every public method runs in its own transaction: committed on
    success, rolled back and re-raised as StorageError on any
    psycopg2 error.
    """

    def __init__(self, db_pool):
        self._pool = db_pool

    @contextmanager
    def get_db_connection(self):
        """
        Get a database connection from the pool.

        Example:
            with self.get_db_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute("SELECT 1")
        """
        try:
            conn = self._pool.getconn()
        except psycopg2.Error as e:
            raise StorageError(f"Database connection failed: {e}") from e

        try:
            yield conn
            conn.commit()
        except psycopg2.Error as e:
            conn.rollback()
            logger.error(f"Database operation failed: {e}")
            raise StorageError(f"Database operation failed: {e}") from e
        except Exception:
            conn.rollback()
            raise
        finally:
            self._pool.putconn(conn)

    def init_schema(self):
        """Create tables and indexes if missing."""
        with self.get_db_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(SCHEMA_SQL)
        logger.info("Review schema ready")

    # =========================================================================
    # Products
    # =========================================================================

    def get_product(self, external_id: str) -> Optional[Product]:
        with self.get_db_connection() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute("""
                    SELECT id, external_id, shop_id, keywords, created_at, updated_at
                    FROM products
                    WHERE external_id = %s
                """, (external_id,))
                row = cur.fetchone()
        return _row_to_product(row) if row else None

    def create_product(self, product: Product) -> int:
        with self.get_db_connection() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                # No-op update so RETURNING yields the existing row on conflict
                cur.execute("""
                    INSERT INTO products (external_id, shop_id, keywords)
                    VALUES (%s, %s, %s)
                    ON CONFLICT (external_id) DO UPDATE SET
                        external_id = EXCLUDED.external_id
                    RETURNING id, shop_id, keywords, created_at, updated_at
                """, (product.external_id, product.shop_id, product.keywords or ""))
                row = cur.fetchone()

        product.id = row["id"]
        product.shop_id = row["shop_id"]
        product.keywords = row["keywords"] or ""
        product.created_at = row["created_at"]
        product.updated_at = row["updated_at"]
        logger.info(f"Product {product.external_id} ready (id={product.id}, shop={product.shop_id})")
        return product.id

    def save_product(self, product: Product) -> int:
        if product.id is None:
            return self.create_product(product)

        with self.get_db_connection() as conn:
            with conn.cursor() as cur:
                cur.execute("""
                    UPDATE products
                    SET shop_id = %s, keywords = %s, updated_at = NOW()
                    WHERE id = %s
                """, (product.shop_id, product.keywords or "", product.id))
                updated = cur.rowcount

        if updated == 0:
            raise NotFoundError(f"Product {product.external_id} (id={product.id}) not found")
        return product.id

    def get_products_by_shop(self, shop_id: str) -> List[Product]:
        with self.get_db_connection() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute("""
                    SELECT id, external_id, shop_id, keywords, created_at, updated_at
                    FROM products
                    WHERE shop_id = %s
                    ORDER BY id
                """, (shop_id,))
                rows = cur.fetchall()
        return [_row_to_product(row) for row in rows]

    # =========================================================================
    # Reviews
    # =========================================================================

    def get_reviews(self, external_id: str) -> List[Review]:
        with self.get_db_connection() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute("""
                    SELECT r.id, r.product_id, r.author, r.title, r.content,
                           r.rating, r.is_synthetic, r.created_at, r.updated_at
                    FROM reviews r
                    JOIN products p ON p.id = r.product_id
                    WHERE p.external_id = %s
                    ORDER BY r.is_synthetic DESC, r.created_at, r.id
                """, (external_id,))
                rows = cur.fetchall()
        return [_row_to_review(row) for row in rows]

    def get_synthetic_review(self, product_id: int) -> Optional[Review]:
        with self.get_db_connection() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute("""
                    SELECT id, product_id, author, title, content,
                           rating, is_synthetic, created_at, updated_at
                    FROM reviews
                    WHERE product_id = %s AND is_synthetic
                    LIMIT 1
                """, (product_id,))
                row = cur.fetchone()
        return _row_to_review(row) if row else None

    def upsert_review(self, review: Review) -> int:
        if review.product_id is None:
            raise ValueError("review.product_id is required")

        with self.get_db_connection() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                if review.id is None:
                    # A concurrent synthetic insert for the same product
                    # lands on the partial unique index: last writer wins.
                    cur.execute("""
                        INSERT INTO reviews (
                            product_id, author, title, content, rating, is_synthetic
                        ) VALUES (%s, %s, %s, %s, %s, %s)
                        ON CONFLICT (product_id) WHERE is_synthetic DO UPDATE SET
                            content = EXCLUDED.content,
                            updated_at = NOW()
                        RETURNING id, created_at, updated_at
                    """, (
                        review.product_id, review.author, review.title,
                        review.content, review.rating, review.is_synthetic,
                    ))
                else:
                    cur.execute("""
                        UPDATE reviews
                        SET author = %s, title = %s, content = %s,
                            rating = %s, updated_at = NOW()
                        WHERE id = %s
                        RETURNING id, created_at, updated_at
                    """, (
                        review.author, review.title, review.content,
                        review.rating, review.id,
                    ))
                row = cur.fetchone()

        if row is None:
            raise NotFoundError(f"Review {review.id} not found")

        review.id = row["id"]
        review.created_at = row["created_at"]
        review.updated_at = row["updated_at"]
        return review.id

    # =========================================================================
    # Aggregates (human reviews only)
    # =========================================================================

    def get_average_rating(self, external_id: str) -> float:
        with self.get_db_connection() as conn:
            with conn.cursor() as cur:
                cur.execute("""
                    SELECT COALESCE(AVG(r.rating), 0)
                    FROM reviews r
                    JOIN products p ON p.id = r.product_id
                    WHERE p.external_id = %s AND NOT r.is_synthetic
                """, (external_id,))
                row = cur.fetchone()
        return float(row[0]) if row and row[0] is not None else 0.0

    def get_review_count(self, external_id: str) -> int:
        with self.get_db_connection() as conn:
            with conn.cursor() as cur:
                cur.execute("""
                    SELECT COUNT(*)
                    FROM reviews r
                    JOIN products p ON p.id = r.product_id
                    WHERE p.external_id = %s AND NOT r.is_synthetic
                """, (external_id,))
                row = cur.fetchone()
        return int(row[0]) if row else 0
