"""Repository layer for order lookup and payment persistence."""

import logging
from decimal import Decimal
from typing import Optional, List, Union

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Order, Payment, PaymentState

logger = logging.getLogger(__name__)

# Largest value an INTEGER primary key can hold (SQLite and PostgreSQL bigint)
MAX_ORDER_ID = 2 ** 63 - 1


class OrderRepository:
    """Repository for Order lookups."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, order_id: Union[int, str, None]) -> Optional[Order]:
        """Get an order by its ID.

        Args:
            order_id: Order ID as int or digit string.

        Returns:
            Order instance if found, None otherwise (including non-numeric IDs
            and IDs no order row can have).
        """
        if isinstance(order_id, str):
            if not order_id.isdigit():
                return None
            order_id = int(order_id)
        if order_id is None or not 0 < order_id <= MAX_ORDER_ID:
            return None
        result = await self.session.execute(
            select(Order).where(Order.id == order_id)
        )
        return result.scalar_one_or_none()

    async def create(
        self,
        total_number: Decimal,
        currency_code: str,
        customer_name: Optional[str] = None,
    ) -> Order:
        order = Order(
            total_number=Decimal(str(total_number)),
            currency_code=currency_code,
            customer_name=customer_name,
        )
        self.session.add(order)
        await self.session.flush()
        logger.info(f"Created order {order.id}")
        return order


class PaymentRepository:
    """Repository for Payment persistence operations."""

    def __init__(self, session: AsyncSession):
        """Initialize the repository with a database session.

        Args:
            session: AsyncSession instance for database operations.
        """
        self.session = session

    async def get_by_order_and_remote_id(
        self,
        order_id: int,
        remote_id: Optional[str],
    ) -> Optional[Payment]:
        result = await self.session.execute(
            select(Payment).where(
                Payment.order_id == order_id,
                Payment.remote_id == remote_id,
            )
        )
        return result.scalars().first()

    async def get_by_remote_id(self, remote_id: str) -> Optional[Payment]:
        result = await self.session.execute(
            select(Payment).where(Payment.remote_id == remote_id)
        )
        return result.scalars().first()

    async def get_first_for_order(self, order_id: int) -> Optional[Payment]:
        result = await self.session.execute(
            select(Payment)
            .where(Payment.order_id == order_id)
            .order_by(Payment.created_at)
            .limit(1)
        )
        return result.scalars().first()

    async def list_by_order(self, order_id: int) -> List[Payment]:
        result = await self.session.execute(
            select(Payment)
            .where(Payment.order_id == order_id)
            .order_by(Payment.created_at)
        )
        return list(result.scalars().all())

    async def create_completed(
        self,
        order: Order,
        payment_gateway: str,
        remote_id: Optional[str],
        remote_state: Optional[str],
    ) -> Payment:
        """Record a completed payment for the full order total.

        Providers retry notifications and shoppers reload the return page, so
        an existing payment for the same order and remote id is returned
        instead of inserting a second one. Notifications may omit the remote
        id: without one, any payment already recorded for the order is
        returned, and a later call that knows the remote id fills it in on the
        payment recorded without one.

        Args:
            order: The order that was paid.
            payment_gateway: Gateway identifier stored on the payment.
            remote_id: Provider payment ID.
            remote_state: Provider status string.

        Returns:
            The new or already existing Payment instance.
        """
        if remote_id is None:
            existing = await self.get_first_for_order(order.id)
        else:
            existing = await self.get_by_order_and_remote_id(order.id, remote_id)
            if existing is None:
                existing = await self.get_by_order_and_remote_id(order.id, None)
                if existing is not None:
                    existing.remote_id = remote_id
                    await self.session.flush()
        if existing:
            logger.info(
                f"Payment {existing.id} already recorded for order {order.id} "
                f"(remote id {remote_id})"
            )
            return existing

        total = order.total_price
        payment = Payment(
            state=PaymentState.COMPLETED.value,
            amount=total.number,
            currency=total.currency_code,
            payment_gateway=payment_gateway,
            order_id=order.id,
            remote_id=remote_id,
            remote_state=remote_state,
        )
        self.session.add(payment)
        await self.session.flush()

        logger.info(f"Created payment {payment.id} for order {order.id} with state {payment.state}")
        return payment
