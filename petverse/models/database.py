import logging
from motor.motor_asyncio import AsyncIOMotorClient  # async MongoDB driver
from beanie import init_beanie  # ODM for MongoDB
from typing import Type

from .user import User
from .otp import OTP
from .order import Order
from .payment import Payment
from .advertisement import Advertisement
from ..configs import settings

logger = logging.getLogger(__name__)

# Every Beanie model has to be registered here
DOCUMENT_MODELS: list[Type] = [User, OTP, Order, Payment, Advertisement]

client = None  # shared for the lifetime of the app


async def init_db():
    """
    Connect to MongoDB and initialise Beanie.
    Only one client is ever created.
    """
    global client

    if client is not None:
        return client

    if not settings.mongo_uri:
        raise ValueError("MONGO_URI is not set in the environment.")

    client = AsyncIOMotorClient(settings.mongo_uri)
    database = client.get_database(settings.mongo_db_name)

    await init_beanie(database=database, document_models=DOCUMENT_MODELS)
    logger.info(f"Connected to MongoDB database '{settings.mongo_db_name}'")

    return client
