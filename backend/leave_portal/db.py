import os
import logging
from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ASCENDING, DESCENDING

logger = logging.getLogger(__name__)

# MongoDB Setup
client = None
db = None

USERS = "users"
LEAVE_REQUESTS = "leave_requests"
HOLIDAYS = "holidays"
DEPARTMENTS = "departments"
ACTIVITY_LOGS = "activity_logs"


def init_db(app):
    global client, db
    MONGODB_URI = os.getenv("MONGODB_URI", "mongodb://localhost:27017/leave_management")
    client = AsyncIOMotorClient(MONGODB_URI)
    db = client.get_default_database()
    app.state.db = db


def get_db():
    return db


def close_db():
    global client
    if client is not None:
        client.close()
        client = None


async def ensure_indexes():
    """Create the indexes the leave workflow and admin screens query on."""
    database = get_db()
    await database[USERS].create_index("email", unique=True, name="email_unique")
    await database[USERS].create_index([("role", ASCENDING), ("department", ASCENDING)], name="role_department")
    await database[DEPARTMENTS].create_index("name", unique=True, name="name_unique")
    await database[HOLIDAYS].create_index("date", name="date_index")
    await database[LEAVE_REQUESTS].create_index(
        [("employee", ASCENDING), ("createdAt", DESCENDING)], name="employee_created"
    )
    await database[LEAVE_REQUESTS].create_index(
        [("department", ASCENDING), ("createdAt", DESCENDING)], name="department_created"
    )
    await database[LEAVE_REQUESTS].create_index("status", name="status_index")
    logger.info("MongoDB indexes ensured")
