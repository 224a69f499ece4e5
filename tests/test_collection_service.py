from __future__ import annotations

import pytest

from server.main import build_router
from server.storage import ProductRepository, SQLiteStore
from shared.protocol.commands import CommandName
from shared.protocol.errors import StatusCode
from shared.protocol.messages import Product, Request, RequestPayload


@pytest.fixture
def repository(tmp_path):
    store = SQLiteStore(str(tmp_path / "products.db"))
    yield ProductRepository(store)
    store.close()


@pytest.fixture
def router(repository):
    return build_router(repository)


def _call(router, command, *args, product=None):
    return router.dispatch(Request(command=command, payload=RequestPayload(args=list(args), product=product)))


def _product(name="bolt", price=2.5, part_number="PN-100"):
    return Product(name=name, price=price, part_number=part_number)


def test_help_lists_every_command(router):
    response = _call(router, CommandName.HELP)

    assert response.ok
    assert set(response.payload.data) == {command.value for command in CommandName}


def test_add_then_show_lists_products(router):
    assert _call(router, CommandName.ADD, product=_product()).ok
    assert _call(router, CommandName.ADD, product=_product("nut", 1.0, "PN-200")).ok

    response = _call(router, CommandName.SHOW)

    assert response.ok
    assert [item["name"] for item in response.payload.data] == ["bolt", "nut"]
    assert [item["id"] for item in response.payload.data] == [1, 2]


def test_add_without_product_is_bad_request(router):
    assert _call(router, CommandName.ADD).status == StatusCode.BAD_REQUEST


def test_wrong_argument_count_is_bad_request(router):
    assert _call(router, CommandName.SHOW, "extra").status == StatusCode.BAD_REQUEST
    assert _call(router, CommandName.REMOVE_BY_ID).status == StatusCode.BAD_REQUEST


def test_update_and_remove_report_missing_ids(router):
    assert _call(router, CommandName.UPDATE, "7", product=_product()).status == StatusCode.NOT_FOUND
    assert _call(router, CommandName.REMOVE_BY_ID, "7").status == StatusCode.NOT_FOUND
    assert _call(router, CommandName.REMOVE_BY_ID, "seven").status == StatusCode.BAD_REQUEST


def test_update_keeps_id_and_creation_date(router, repository):
    _call(router, CommandName.ADD, product=_product())
    created = repository.get(1).creation_date

    response = _call(router, CommandName.UPDATE, "1", product=_product("bolt M8", 3.0, "PN-101"))

    assert response.ok
    assert repository.get(1).name == "bolt M8"
    assert repository.get(1).creation_date == created


def test_add_if_max_and_add_if_min(router, repository):
    _call(router, CommandName.ADD, product=_product(price=5.0))

    assert _call(router, CommandName.ADD_IF_MAX, product=_product(price=4.0)).status == StatusCode.CONFLICT
    assert _call(router, CommandName.ADD_IF_MAX, product=_product(price=6.0)).ok
    assert _call(router, CommandName.ADD_IF_MIN, product=_product(price=5.5)).status == StatusCode.CONFLICT
    assert _call(router, CommandName.ADD_IF_MIN, product=_product(price=1.0)).ok
    assert len(repository) == 3


def test_aggregates_and_filters(router):
    _call(router, CommandName.ADD, product=_product("bolt", 2.5, "PN-100"))
    _call(router, CommandName.ADD, product=_product("nut", 1.0, "XX-200"))

    assert _call(router, CommandName.SUM_OF_PRICE).payload.data == 3.5
    assert [p["name"] for p in _call(router, CommandName.FILTER_BY_PRICE, "1").payload.data] == ["nut"]
    assert _call(router, CommandName.FILTER_BY_PRICE, "cheap").status == StatusCode.BAD_REQUEST
    assert [p["name"] for p in _call(router, CommandName.FILTER_CONTAINS_PART_NUMBER, "PN").payload.data] == ["bolt"]


def test_head_info_and_clear(router):
    assert _call(router, CommandName.HEAD).status == StatusCode.NOT_FOUND
    _call(router, CommandName.ADD, product=_product())

    assert _call(router, CommandName.HEAD).payload.data["name"] == "bolt"
    assert _call(router, CommandName.INFO).payload.data["size"] == 1
    assert _call(router, CommandName.CLEAR).ok
    assert _call(router, CommandName.INFO).payload.data["size"] == 0
