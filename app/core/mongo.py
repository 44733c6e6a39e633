from motor.motor_asyncio import AsyncIOMotorClient

from app.core.config import MONGO_URI


_client: AsyncIOMotorClient | None = None


def get_sessions_collection():
    global _client
    if _client is None:
        _client = AsyncIOMotorClient(MONGO_URI)
    db_name = MONGO_URI.rsplit("/", 1)[-1] or "guesser"  # вытаскиваем имя базы из URI
    return _client[db_name]["quiz_sessions"]
