"""
Tests pour le StockGuard: synchronisation, annulation et ordre des réponses.
"""
import asyncio

import pytest

from inventario.api.domain.exceptions import ApiRequestError
from inventario.api.models import ApiErrorDetail, StockItem
from inventario.movements.models import MovementFormState
from inventario.movements.stock_guard import StockGuard

CENTRAL = 1


def form(**fields) -> MovementFormState:
    return MovementFormState(**{"tipo": "uso", **fields})


@pytest.mark.asyncio
async def test_no_product_stays_idle(fake_api):
    guard = StockGuard(fake_api, CENTRAL)
    assert guard.sync(form()) is None
    assert guard.snapshot.status == "idle"
    assert fake_api.stock_calls == []


@pytest.mark.asyncio
async def test_lookup_resolves_to_ready(fake_api):
    fake_api.stock[(7, CENTRAL)] = 12
    guard = StockGuard(fake_api, CENTRAL)

    guard.sync(form(producto_id=7))
    assert guard.snapshot.status == "loading"
    snapshot = await guard.wait()

    assert snapshot.status == "ready"
    assert snapshot.value == 12
    assert (snapshot.producto_id, snapshot.locacion_id) == (7, CENTRAL)


@pytest.mark.asyncio
async def test_locale_formatted_stock_is_parsed(fake_api):
    fake_api.stock[(7, CENTRAL)] = "12,5"
    guard = StockGuard(fake_api, CENTRAL)
    guard.sync(form(producto_id=7))
    assert (await guard.wait()).value == 12.5


@pytest.mark.asyncio
async def test_unparsable_stock_leaves_value_empty(fake_api):
    fake_api.stock[(7, CENTRAL)] = "n/a"
    guard = StockGuard(fake_api, CENTRAL)
    guard.sync(form(producto_id=7))
    snapshot = await guard.wait()
    assert snapshot.status == "ready"
    assert snapshot.value is None


@pytest.mark.asyncio
async def test_effective_location(fake_api):
    guard = StockGuard(fake_api, CENTRAL)
    assert guard.effective_location_id("ingreso", 4) == CENTRAL
    assert guard.effective_location_id("traspaso", 4) == 4
    assert guard.effective_location_id("ajuste", None) == CENTRAL


@pytest.mark.asyncio
async def test_same_pair_does_not_refetch(fake_api):
    guard = StockGuard(fake_api, CENTRAL)
    guard.sync(form(producto_id=7, quantity="1"))
    await guard.wait()
    guard.sync(form(producto_id=7, quantity="2"))
    await guard.wait()
    assert fake_api.stock_calls == [(7, CENTRAL)]


@pytest.mark.asyncio
async def test_api_error_sets_error_snapshot(fake_api):
    fake_api.stock[(7, CENTRAL)] = ApiRequestError(ApiErrorDetail(status=500, message="Fallo interno"))
    guard = StockGuard(fake_api, CENTRAL)
    guard.sync(form(producto_id=7))
    snapshot = await guard.wait()
    assert snapshot.status == "error"
    assert snapshot.error == "Fallo interno"


@pytest.mark.asyncio
async def test_unexpected_error_is_normalized(fake_api):
    fake_api.stock[(7, CENTRAL)] = RuntimeError("boom")
    guard = StockGuard(fake_api, CENTRAL)
    guard.sync(form(producto_id=7))
    snapshot = await guard.wait()
    assert snapshot.status == "error"
    assert snapshot.error


@pytest.mark.asyncio
async def test_switching_product_cancels_previous_lookup(fake_api):
    loop = asyncio.get_running_loop()
    fake_api.gates[7] = loop.create_future()
    fake_api.gates[8] = loop.create_future()
    fake_api.stock[(7, CENTRAL)] = 100
    fake_api.stock[(8, CENTRAL)] = 20
    guard = StockGuard(fake_api, CENTRAL)

    task_a = guard.sync(form(producto_id=7))
    await asyncio.sleep(0)
    task_b = guard.sync(form(producto_id=8))
    await asyncio.wait({task_a})
    assert task_a.cancelled()

    fake_api.gates[8].set_result(None)
    fake_api.gates[7].set_result(None)
    snapshot = await guard.wait()

    assert task_b.done()
    assert snapshot.producto_id == 8
    assert snapshot.value == 20


class StubbornStockApi:
    """Client qui ignore l'annulation et livre quand même sa réponse."""

    def __init__(self):
        self.gates = {}

    async def get_stock(self, producto_id, locacion_id=None):
        gate = self.gates[producto_id]
        while not gate.done():
            try:
                await asyncio.shield(gate)
            except asyncio.CancelledError:
                continue
        return StockItem(producto_id=producto_id, locacion_id=locacion_id, stock=gate.result())


@pytest.mark.asyncio
async def test_late_response_of_superseded_pair_is_discarded():
    loop = asyncio.get_running_loop()
    api = StubbornStockApi()
    api.gates[7] = loop.create_future()
    api.gates[8] = loop.create_future()
    guard = StockGuard(api, CENTRAL)

    task_a = guard.sync(form(producto_id=7))
    await asyncio.sleep(0)
    guard.sync(form(producto_id=8))
    await asyncio.sleep(0)

    # B répond d'abord, puis A arrive en retard
    api.gates[8].set_result(20)
    await guard.wait()
    api.gates[7].set_result(100)
    await asyncio.wait({task_a})

    assert guard.snapshot.status == "ready"
    assert guard.snapshot.producto_id == 8
    assert guard.snapshot.value == 20


@pytest.mark.asyncio
async def test_clearing_product_returns_to_idle(fake_api):
    fake_api.gates[7] = asyncio.get_running_loop().create_future()
    guard = StockGuard(fake_api, CENTRAL)
    task = guard.sync(form(producto_id=7))
    await asyncio.sleep(0)

    guard.sync(form())
    await asyncio.wait({task})
    assert guard.snapshot.status == "idle"
    assert task.cancelled()


@pytest.mark.asyncio
async def test_close_cancels_outstanding_lookup(fake_api):
    fake_api.gates[7] = asyncio.get_running_loop().create_future()
    guard = StockGuard(fake_api, CENTRAL)
    task = guard.sync(form(producto_id=7))
    await asyncio.sleep(0)

    guard.close()
    await asyncio.wait({task})
    assert task.cancelled()
    assert guard.snapshot.status == "loading"


@pytest.mark.asyncio
async def test_reload_refetches_current_pair(fake_api):
    fake_api.stock[(7, CENTRAL)] = 3
    changes = []
    guard = StockGuard(fake_api, CENTRAL, on_change=changes.append)
    guard.sync(form(producto_id=7))
    await guard.wait()

    fake_api.stock[(7, CENTRAL)] = 9
    guard.reload()
    snapshot = await guard.wait()

    assert snapshot.value == 9
    assert len(fake_api.stock_calls) == 2
    assert [c.status for c in changes] == ["loading", "ready", "loading", "ready"]


@pytest.mark.asyncio
async def test_failing_callback_does_not_break_lookup(fake_api):
    seen = []

    def on_change(snapshot):
        seen.append(snapshot.status)
        raise RuntimeError("listener")

    fake_api.stock[(7, CENTRAL)] = 4
    guard = StockGuard(fake_api, CENTRAL, on_change=on_change)
    guard.sync(form(producto_id=7))
    snapshot = await guard.wait()

    assert snapshot.status == "ready"
    assert snapshot.value == 4.0
    assert seen == ["loading", "ready"]


@pytest.mark.asyncio
async def test_matches_effective_pair(fake_api):
    fake_api.stock[(7, CENTRAL)] = 4
    guard = StockGuard(fake_api, CENTRAL)
    guard.sync(form(producto_id=7))
    await guard.wait()

    assert guard.matches(form(producto_id=7)) is True
    assert guard.matches(form(producto_id=10)) is False
    assert guard.matches(form(producto_id=7, tipo="traspaso", from_location_id=4)) is False
    assert guard.matches(form()) is False
