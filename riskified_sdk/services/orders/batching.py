"""
Pull-based reading of historical orders.

Historical backfills can be arbitrarily large, so orders are pulled one at a
time from whatever the caller supplies (a list, a generator, a database
cursor, an async generator) and never materialized beyond the current batch.
"""

from typing import AsyncIterable, Iterable, Union

from riskified_sdk.domain.models import AbstractOrder

HISTORICAL_BATCH_SIZE = 10

OrdersInput = Union[Iterable[AbstractOrder], AsyncIterable[AbstractOrder]]


class _EndOfOrders:
    def __repr__(self):
        return "END_OF_ORDERS"


END_OF_ORDERS = _EndOfOrders()


class OrderSource:
    """
    Wraps a sync or async iterable behind a single ``pull()`` call.

    ``pull()`` returns the next order or ``END_OF_ORDERS``; once the underlying
    iterable is exhausted ``exhausted`` stays True and the iterable is never
    touched again.
    """

    def __init__(self, orders: OrdersInput):
        if hasattr(orders, "__aiter__"):
            self._async_iterator = orders.__aiter__()
            self._iterator = None
        else:
            self._async_iterator = None
            self._iterator = iter(orders)
        self.exhausted = False
        self.pulled = 0

    async def pull(self):
        """Return the next order, or END_OF_ORDERS when the source is drained."""
        if self.exhausted:
            return END_OF_ORDERS

        try:
            if self._async_iterator is not None:
                order = await self._async_iterator.__anext__()
            else:
                order = next(self._iterator)
        except (StopIteration, StopAsyncIteration):
            self.exhausted = True
            return END_OF_ORDERS

        self.pulled += 1
        return order
