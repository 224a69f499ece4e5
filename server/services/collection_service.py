from __future__ import annotations

import functools
import logging
from collections.abc import Callable
from typing import Any, Dict, List, Optional

from server.storage.memory import ProductRepository
from shared.protocol.commands import expected_args
from shared.protocol.errors import ErrorCode, ProtocolError, StatusCode
from shared.protocol.messages import Product, Request, Response, make_response

logger = logging.getLogger(__name__)


def _reports_errors(method: Callable[..., Response]) -> Callable[..., Response]:
    """Turn a ProtocolError raised by a handler into an error response."""

    @functools.wraps(method)
    def wrapper(self: "CollectionService", request: Request) -> Response:
        try:
            return method(self, request)
        except ProtocolError as exc:
            logger.info("Command %s failed: %s", request.command_text, exc.message)
            return make_response(request, exc.status, exc.message)

    return wrapper


class CollectionService:
    """Handlers for the product collection commands."""

    def __init__(self, repository: ProductRepository) -> None:
        self.repository = repository

    @_reports_errors
    def handle_info(self, request: Request) -> Response:
        _check_args(request)
        return make_response(request, data=self.repository.info())

    @_reports_errors
    def handle_show(self, request: Request) -> Response:
        _check_args(request)
        products = self.repository.list_products()
        return make_response(request, message=f"{len(products)} product(s)", data=_dump(products))

    @_reports_errors
    def handle_add(self, request: Request) -> Response:
        _check_args(request)
        product = self.repository.add(_require_product(request))
        return make_response(request, message=f"Product {product.id} added", data=_dump([product])[0])

    @_reports_errors
    def handle_update(self, request: Request) -> Response:
        _check_args(request)
        product_id = _parse_id(request.payload.args[0])
        updated = self.repository.update(product_id, _require_product(request))
        if updated is None:
            return make_response(request, StatusCode.NOT_FOUND, f"No product with id {product_id}")
        return make_response(request, message=f"Product {product_id} updated", data=_dump([updated])[0])

    @_reports_errors
    def handle_remove_by_id(self, request: Request) -> Response:
        _check_args(request)
        product_id = _parse_id(request.payload.args[0])
        if not self.repository.remove(product_id):
            return make_response(request, StatusCode.NOT_FOUND, f"No product with id {product_id}")
        return make_response(request, message=f"Product {product_id} removed")

    @_reports_errors
    def handle_clear(self, request: Request) -> Response:
        _check_args(request)
        self.repository.clear()
        return make_response(request, message="Collection cleared")

    @_reports_errors
    def handle_head(self, request: Request) -> Response:
        _check_args(request)
        product = self.repository.head()
        if product is None:
            return make_response(request, StatusCode.NOT_FOUND, "Collection is empty")
        return make_response(request, data=_dump([product])[0])

    @_reports_errors
    def handle_add_if_max(self, request: Request) -> Response:
        _check_args(request)
        product = _require_product(request)
        current = self.repository.max_price()
        if current is not None and product.price <= current:
            return make_response(request, StatusCode.CONFLICT, f"Price {product.price} is not above maximum {current}")
        stored = self.repository.add(product)
        return make_response(request, message=f"Product {stored.id} added", data=_dump([stored])[0])

    @_reports_errors
    def handle_add_if_min(self, request: Request) -> Response:
        _check_args(request)
        product = _require_product(request)
        current = self.repository.min_price()
        if current is not None and product.price >= current:
            return make_response(request, StatusCode.CONFLICT, f"Price {product.price} is not below minimum {current}")
        stored = self.repository.add(product)
        return make_response(request, message=f"Product {stored.id} added", data=_dump([stored])[0])

    @_reports_errors
    def handle_sum_of_price(self, request: Request) -> Response:
        _check_args(request)
        return make_response(request, data=self.repository.sum_of_price())

    @_reports_errors
    def handle_filter_by_price(self, request: Request) -> Response:
        _check_args(request)
        price = _parse_price(request.payload.args[0])
        products = self.repository.filter_by_price(price)
        return make_response(request, message=f"{len(products)} product(s)", data=_dump(products))

    @_reports_errors
    def handle_filter_contains_part_number(self, request: Request) -> Response:
        _check_args(request)
        products = self.repository.filter_contains_part_number(request.payload.args[0])
        return make_response(request, message=f"{len(products)} product(s)", data=_dump(products))


class HelpService:
    """Lists the commands registered on a router."""

    def __init__(self, describe: Callable[[], Dict[str, str]]) -> None:
        self.describe = describe

    def handle_help(self, request: Request) -> Response:
        commands = self.describe()
        return make_response(request, message=f"{len(commands)} command(s)", data=commands)


def _check_args(request: Request) -> None:
    expected = expected_args(request.command_text)
    got = len(request.payload.args)
    if got != expected:
        raise ProtocolError(
            StatusCode.BAD_REQUEST,
            ErrorCode.PARAM_MISSING,
            f"{request.command_text} expects {expected} argument(s), got {got}",
        )


def _require_product(request: Request) -> Product:
    product: Optional[Product] = request.payload.product
    if product is None:
        raise ProtocolError(StatusCode.BAD_REQUEST, ErrorCode.INVALID_PRODUCT, "Product is required")
    return product


def _parse_id(value: str) -> int:
    try:
        product_id = int(value)
    except ValueError as exc:
        raise ProtocolError(StatusCode.BAD_REQUEST, message=f"Id must be an integer: {value!r}") from exc
    if product_id <= 0:
        raise ProtocolError(StatusCode.BAD_REQUEST, message="Id must be positive")
    return product_id


def _parse_price(value: str) -> float:
    try:
        return float(value)
    except ValueError as exc:
        raise ProtocolError(StatusCode.BAD_REQUEST, message=f"Price must be a number: {value!r}") from exc


def _dump(products: List[Product]) -> List[Dict[str, Any]]:
    return [product.model_dump(mode="json") for product in products]
