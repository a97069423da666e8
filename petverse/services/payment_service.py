import logging
from typing import Optional, Tuple, Callable, Awaitable, Dict
from bson import ObjectId
from pymongo.errors import PyMongoError
from ..models import Order, Payment, Advertisement, User
from ..utils import utcnow, epoch_millis

logger = logging.getLogger(__name__)

# (transactionID, payment) produced once a resource's OTP has been verified
SettlementResult = Tuple[str, Optional[Payment]]


class PaymentService:
    """
    Side effects of a verified OTP on the resource it was bound to.
    """

    @staticmethod
    def new_transaction_id(prefix: str = "TXN") -> str:
        return f"{prefix}-{epoch_millis()}"

    @staticmethod
    async def deduct_loyalty_points(user_id: str, points: int) -> Optional[int]:
        """
        Take redeemed points off a user's balance, never going below zero.

        Returns:
            The new balance, or None if the user could not be updated
        """
        if points <= 0:
            return None
        if not ObjectId.is_valid(user_id):
            logger.error(f"Cannot deduct points, invalid user id {user_id}")
            return None
        try:
            user = await User.get(user_id)
            if not user:
                logger.error(f"User {user_id} not found for point deduction")
                return None
            user.loyaltyPoints = max(0, (user.loyaltyPoints or 0) - points)
            user.updatedAt = utcnow()
            await user.save()
        except PyMongoError as e:
            # Points are bookkeeping, the payment itself already went through
            logger.error(f"Failed to deduct {points} loyalty points from {user_id}: {e}")
            return None
        logger.info(f"Deducted {points} points from user {user_id}, new balance {user.loyaltyPoints}")
        return user.loyaltyPoints

    @staticmethod
    async def settle_order(order_id: str) -> SettlementResult:
        """
        Mark an order paid and record a successful payment for it.

        The order is updated before the payment is inserted. If the insert
        fails the order goes back to its previous payment status, so a
        failed settlement leaves neither a paid order nor a payment behind.

        Raises:
            PyMongoError: If the order or the payment cannot be written
        """
        transaction_id = PaymentService.new_transaction_id()
        order = await Order.get(order_id) if ObjectId.is_valid(order_id) else None
        if not order:
            logger.info(f"Order {order_id} not found for OTP verification")
            return transaction_id, None

        previous_status = order.paymentStatus
        order.paymentStatus = "success"
        await order.save()

        payment = Payment(
            orderID=str(order.id),
            transactionID=transaction_id,
            amount=order.totalAmount or 0,
            paymentType=order.paymentMethod or "card",
            status="success",
            paidAt=utcnow()
        )
        try:
            await payment.insert()
        except PyMongoError:
            await PaymentService._restore_order_status(order, previous_status)
            raise
        logger.info(f"Order {order_id} paid, payment {payment.paymentID}")

        if order.pointsRedeemed > 0:
            await PaymentService.deduct_loyalty_points(order.userID, order.pointsRedeemed)

        return transaction_id, payment

    @staticmethod
    async def _restore_order_status(order: Order, status: str):
        order.paymentStatus = status
        try:
            await order.save()
        except PyMongoError as e:
            logger.error(f"Order {order.id} left marked paid without a payment: {e}")

    @staticmethod
    async def open_advertisement_payment(ad_id: str) -> SettlementResult:
        """
        Create a pending payment for an advertisement; the amount is filled in
        when the advertiser actually pays.
        """
        transaction_id = PaymentService.new_transaction_id("TXN-AD")
        advertisement = await Advertisement.get(ad_id) if ObjectId.is_valid(ad_id) else None
        if not advertisement:
            logger.info(f"Advertisement {ad_id} not found for OTP verification")
            return transaction_id, None

        payment = Payment(
            ad_ID=str(advertisement.id),
            transactionID=transaction_id,
            amount=0,
            paymentType="card",
            status="pending",
            paidAt=None
        )
        await payment.insert()
        logger.info(f"Pending payment {payment.paymentID} opened for advertisement {ad_id}")
        return transaction_id, payment

    @staticmethod
    async def settle_verified_resource(resource_type: str, resource_id: str) -> SettlementResult:
        handler = RESOURCE_HANDLERS.get(resource_type)
        if handler is None:
            return PaymentService.new_transaction_id(), None
        return await handler(resource_id)


RESOURCE_HANDLERS: Dict[str, Callable[[str], Awaitable[SettlementResult]]] = {
    "order": PaymentService.settle_order,
    "advertisement": PaymentService.open_advertisement_payment,
}
