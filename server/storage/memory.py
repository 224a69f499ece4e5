from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from shared.protocol.messages import Product

from .sqlite_store import SQLiteStore

logger = logging.getLogger(__name__)

INIT_DATE_KEY = "init_date"
NEXT_ID_KEY = "next_id"


class ProductRepository:
    """
    In-memory product collection loaded from SQLite at startup.
    Changes stay in memory until `save()` writes the whole collection back.
    """

    def __init__(self, store: SQLiteStore) -> None:
        self.store = store
        self._products: Dict[int, Product] = {}
        self._errors: List[str] = []
        self.init_date = self._load_init_date()
        self._load()
        self._next_id = max(int(self.store.get_meta(NEXT_ID_KEY) or 1), max(self._products, default=0) + 1)

    def _load_init_date(self) -> datetime:
        stored = self.store.get_meta(INIT_DATE_KEY)
        if stored:
            return datetime.fromisoformat(stored)
        now = datetime.now(timezone.utc)
        self.store.set_meta(INIT_DATE_KEY, now.isoformat())
        return now

    def _load(self) -> None:
        for record in self.store.load_products():
            try:
                product = Product.model_validate(record)
            except ValidationError as exc:
                self._errors.append(f"product {record.get('id')}: {exc.errors()[0]['msg']}")
                continue
            if product.id is None or product.creation_date is None:
                self._errors.append(f"product {record.get('id')}: missing id or creation date")
                continue
            self._products[product.id] = product
        logger.info("Loaded %s products (%s invalid)", len(self._products), len(self._errors))

    def validate_all(self) -> bool:
        for error in self._errors:
            logger.error("Invalid stored product, %s", error)
        return not self._errors

    # --- Queries ---------------------------------------------------------
    def __len__(self) -> int:
        return len(self._products)

    def list_products(self) -> List[Product]:
        return [self._products[key] for key in sorted(self._products)]

    def get(self, product_id: int) -> Optional[Product]:
        return self._products.get(product_id)

    def head(self) -> Optional[Product]:
        products = self.list_products()
        return products[0] if products else None

    def sum_of_price(self) -> float:
        return sum(product.price for product in self._products.values())

    def filter_by_price(self, price: float) -> List[Product]:
        return [product for product in self.list_products() if product.price == price]

    def filter_contains_part_number(self, fragment: str) -> List[Product]:
        return [product for product in self.list_products() if fragment in product.part_number]

    def max_price(self) -> Optional[float]:
        return max((product.price for product in self._products.values()), default=None)

    def min_price(self) -> Optional[float]:
        return min((product.price for product in self._products.values()), default=None)

    def info(self) -> Dict[str, Any]:
        return {
            "type": "products",
            "init_date": self.init_date.isoformat(),
            "size": len(self._products),
        }

    # --- Mutations -------------------------------------------------------
    def add(self, product: Product) -> Product:
        new_id = self._next_id
        self._next_id += 1
        stored = product.model_copy(update={"id": new_id, "creation_date": datetime.now(timezone.utc)})
        self._products[new_id] = stored
        return stored

    def update(self, product_id: int, product: Product) -> Optional[Product]:
        current = self._products.get(product_id)
        if current is None:
            return None
        stored = product.model_copy(update={"id": product_id, "creation_date": current.creation_date})
        self._products[product_id] = stored
        return stored

    def remove(self, product_id: int) -> bool:
        return self._products.pop(product_id, None) is not None

    def clear(self) -> None:
        self._products.clear()

    def save(self) -> None:
        self.store.replace_products(product.model_dump(mode="json") for product in self.list_products())
        self.store.set_meta(NEXT_ID_KEY, str(self._next_id))
        logger.debug("Saved %s products", len(self._products))
