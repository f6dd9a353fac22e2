"""
Order status transitions.

Changing an order's status may also move stock and customer spend. All of
it happens in one database transaction:

    1. load the order (404 if missing, before any write)
    2. load its lines
    3. reserve or release stock for every sized line when the status
       crosses between {Pending, Cancelled} and the other statuses
    4. add or remove the order total from the owner's total_spent when
       the status enters or leaves Delivered, then re-evaluate the tier
    5. write the new status
    6. commit; any failure rolls all of the above back

Any status may move to any other. Moving to the current status succeeds
and changes nothing but the (identical) status column.
"""
import logging
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from config import settings
from db_models import Order, OrderItem
from domain.enums import OrderStatus, StockMovement, StockPolicy
from domain.errors import DomainError, InsufficientStockError, NotFoundError, TransactionFailureError
from domain.order_rules import coerce_status, spend_delta, stock_movement
from models import StockShortfall, TransitionResult
from services import inventory_service, membership_service

logger = logging.getLogger(__name__)


class OrderStatusEngine:
    """
    Applies status changes with their stock and spend side effects.

    Args:
        session_factory: async_sessionmaker used to open one session (and
            one transaction) per transition.
        stock_policy: what to do when a reservation exceeds stock. Defaults
            to settings.stock_shortfall_policy.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        stock_policy: StockPolicy | str | None = None,
    ):
        self._session_factory = session_factory
        self.stock_policy = StockPolicy(stock_policy or settings.stock_shortfall_policy)

    async def transition(self, order_id: int, new_status: OrderStatus | str) -> TransitionResult:
        """
        Move order `order_id` to `new_status`.

        Raises:
            ValidationError: new_status is not a known status
            NotFoundError: the order does not exist
            InsufficientStockError: strict policy and a size cannot cover its line
            TransactionFailureError: the datastore failed; nothing was applied
        """
        target = coerce_status(new_status)

        async with self._session_factory() as session:
            try:
                async with session.begin():
                    result = await self._apply(session, order_id, target)
            except DomainError:
                raise
            except SQLAlchemyError as exc:
                logger.error(f"Status change of order {order_id} to {target.value} rolled back: {exc}", exc_info=True)
                raise TransactionFailureError(
                    details={"order_id": order_id, "new_status": target.value, "cause": str(exc)}
                ) from exc

        logger.info(
            f"Order {order_id}: {result.old_status.value} -> {result.new_status.value} "
            f"(stock={result.stock_movement.value}, spend{result.money_change:+})"
        )
        return result

    async def _apply(self, session: AsyncSession, order_id: int, target: OrderStatus) -> TransitionResult:
        res = await session.execute(
            select(Order.status, Order.total_price, Order.user_id).where(Order.id == order_id)
        )
        order = res.one_or_none()
        if order is None:
            raise NotFoundError("Order", str(order_id))

        old_status = coerce_status(order.status)
        movement = stock_movement(old_status, target)

        items_res = await session.execute(
            select(OrderItem.size_id, OrderItem.quantity)
            .where(OrderItem.order_id == order_id)
            .order_by(OrderItem.id)
        )
        items = items_res.all()

        shortfalls: list[StockShortfall] = []
        if movement is StockMovement.RESERVE:
            shortfalls = await self._reserve(session, order_id, items)
        elif movement is StockMovement.RELEASE:
            for item in items:
                if item.size_id is None:
                    continue
                await inventory_service.release_stock(session, size_id=item.size_id, quantity=item.quantity)

        money_change = Decimal("0")
        total_spent = None
        membership_id = None
        if order.user_id is not None:
            money_change = spend_delta(old_status, target, Decimal(order.total_price))
            if money_change != 0:
                spend = await membership_service.apply_spend_change(session, order.user_id, money_change)
                total_spent = spend["total_spent"]
                membership_id = spend["membership_id"]

        await session.execute(
            update(Order)
            .where(Order.id == order_id)
            .values(status=target.value)
            .execution_options(synchronize_session=False)
        )

        return TransitionResult(
            order_id=order_id,
            old_status=old_status,
            new_status=target,
            stock_movement=movement,
            money_change=money_change,
            total_spent=total_spent,
            membership_id=membership_id,
            shortfalls=shortfalls,
        )

    async def _reserve(self, session: AsyncSession, order_id: int, items) -> list[StockShortfall]:
        shortfalls: list[StockShortfall] = []
        for item in items:
            if item.size_id is None:
                continue
            if await inventory_service.reserve_stock(session, size_id=item.size_id, quantity=item.quantity):
                continue

            available = await inventory_service.get_stock(session, size_id=item.size_id)
            if self.stock_policy is StockPolicy.STRICT:
                raise InsufficientStockError(item.size_id, item.quantity, available)

            logger.warning(
                f"Order {order_id}: size {item.size_id} short "
                f"(requested {item.quantity}, available {available}); stock left unchanged"
            )
            shortfalls.append(
                StockShortfall(size_id=item.size_id, requested=item.quantity, available=available)
            )
        return shortfalls
