"""
What a verified OTP does to the resource it was bound to
"""
import re

import pytest
from pymongo.errors import PyMongoError

from petverse.exceptions import InfrastructureError
from petverse.models import Order, Payment, Advertisement, User, OTP
from petverse.services import OtpService, PaymentService


async def place_order(user: User, **overrides) -> Order:
    data = dict(userID=str(user.id), totalAmount=2500.0, paymentMethod="online", pointsRedeemed=0)
    data.update(overrides)
    order = Order(**data)
    await order.insert()
    return order


async def confirm(resource_type: str, resource_id: str):
    await OtpService.request_otp(resource_type, resource_id, "owner@petverse.com")
    return await OtpService.verify_otp(resource_type, resource_id, "111111")


class TestOrderSettlement:

    async def test_records_payment_and_marks_order_paid(self, otp_codes, pet_owner):
        order = await place_order(pet_owner)

        result = await confirm("order", str(order.id))

        assert result.valid is True
        assert result.transactionID.startswith("TXN-")
        payment = await Payment.find_one(Payment.orderID == str(order.id))
        assert payment.status == "success"
        assert payment.amount == 2500.0
        assert payment.paymentType == "online"
        assert payment.transactionID == result.transactionID
        assert payment.paidAt is not None
        assert re.fullmatch(r"PAY-\d{8}-\d{5}", payment.paymentID)
        assert result.paymentID == payment.paymentID
        assert result.paymentDocumentID == str(payment.id)
        assert result.orderID == str(order.id)
        assert result.advertisementID is None

        order = await Order.get(order.id)
        assert order.paymentStatus == "success"

    async def test_deducts_redeemed_points(self, otp_codes, pet_owner):
        order = await place_order(pet_owner, pointsRedeemed=30)

        await confirm("order", str(order.id))

        user = await User.get(pet_owner.id)
        assert user.loyaltyPoints == 70

    async def test_points_never_go_negative(self, otp_codes, pet_owner):
        order = await place_order(pet_owner, pointsRedeemed=250)

        await confirm("order", str(order.id))

        user = await User.get(pet_owner.id)
        assert user.loyaltyPoints == 0

    async def test_missing_points_owner_does_not_fail_payment(self, otp_codes, pet_owner):
        order = await place_order(pet_owner, pointsRedeemed=10, userID="not-an-object-id")

        result = await confirm("order", str(order.id))

        assert result.valid is True
        assert await Payment.find(Payment.orderID == str(order.id)).count() == 1

    async def test_unknown_order_still_verifies(self, otp_codes):
        result = await confirm("order", "ORD123")

        assert result.valid is True
        assert result.transactionID.startswith("TXN-")
        assert result.paymentID is None
        assert await Payment.find().count() == 0


class TestAdvertisementSettlement:

    async def test_opens_pending_payment(self, otp_codes, provider):
        ad = Advertisement(userID=str(provider.id), title="Weekend grooming offer")
        await ad.insert()

        result = await confirm("advertisement", str(ad.id))

        assert result.transactionID.startswith("TXN-AD-")
        payment = await Payment.find_one(Payment.ad_ID == str(ad.id))
        assert payment.status == "pending"
        assert payment.amount == 0
        assert payment.paidAt is None
        assert result.advertisementID == str(ad.id)
        assert result.paymentDocumentID == str(payment.id)


class TestOtherResources:

    async def test_generic_resource_gets_transaction_id(self, otp_codes):
        result = await confirm("appointment", "APT-9")

        assert result.valid is True
        assert result.transactionID.startswith("TXN-")
        assert await Payment.find().count() == 0

    def test_transaction_id_prefix(self):
        assert re.fullmatch(r"TXN-AD-\d{13}", PaymentService.new_transaction_id("TXN-AD"))


class TestPaymentModel:

    def test_requires_exactly_one_reference(self):
        with pytest.raises(ValueError):
            Payment(amount=10)
        with pytest.raises(ValueError):
            Payment(amount=10, orderID="a", ad_ID="b")

    def test_single_reference_is_accepted(self):
        payment = Payment(amount=10, appointmentID="apt-1")
        assert payment.status == "pending"


class TestSettlementFailures:

    @staticmethod
    async def database_down(self, *args, **kwargs):
        raise PyMongoError("primary stepped down")

    async def test_order_write_failure_releases_code(self, otp_codes, pet_owner, monkeypatch):
        order = await place_order(pet_owner)
        await OtpService.request_otp("order", str(order.id), "owner@petverse.com")

        with monkeypatch.context() as m:
            m.setattr(Order, "save", self.database_down)
            with pytest.raises(InfrastructureError) as exc:
                await OtpService.verify_otp("order", str(order.id), "111111")

        assert exc.value.message == "Failed to verify OTP"
        assert await Payment.find().count() == 0
        assert (await Order.get(order.id)).paymentStatus == "pending"
        record = await OTP.find_one(OTP.resourceID == str(order.id))
        assert record.consumed is False

        retry = await OtpService.verify_otp("order", str(order.id), "111111")
        assert retry.valid is True
        assert await Payment.find(Payment.orderID == str(order.id)).count() == 1
        assert (await Order.get(order.id)).paymentStatus == "success"

    async def test_payment_write_failure_restores_order(self, otp_codes, pet_owner, monkeypatch):
        order = await place_order(pet_owner, pointsRedeemed=30)
        await OtpService.request_otp("order", str(order.id), "owner@petverse.com")

        with monkeypatch.context() as m:
            m.setattr(Payment, "insert", self.database_down)
            with pytest.raises(InfrastructureError):
                await OtpService.verify_otp("order", str(order.id), "111111")

        assert await Payment.find().count() == 0
        assert (await Order.get(order.id)).paymentStatus == "pending"
        assert (await User.get(pet_owner.id)).loyaltyPoints == 100
        record = await OTP.find_one(OTP.resourceID == str(order.id))
        assert record.consumed is False
