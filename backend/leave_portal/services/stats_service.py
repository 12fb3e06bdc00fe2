from datetime import datetime
from typing import List, Optional
from leave_portal.db import get_db, USERS, LEAVE_REQUESTS, HOLIDAYS
from leave_portal.utils.documents import months_ago

ORG_TREND_MONTHS = 6
DEPARTMENT_TREND_MONTHS = 3
EMPLOYEE_TREND_MONTHS = 12


def _count_if(field: str, value: str) -> dict:
    return {"$sum": {"$cond": [{"$eq": [f"${field}", value]}, 1, 0]}}


async def count_by(field: str, match: Optional[dict] = None) -> List[dict]:
    """``[{"_id": value, "count": n}]`` over leave requests grouped by ``field``."""
    db = get_db()
    pipeline = []
    if match:
        pipeline.append({"$match": match})
    pipeline.append({"$group": {"_id": f"${field}", "count": {"$sum": 1}}})
    return await db[LEAVE_REQUESTS].aggregate(pipeline).to_list(None)


async def monthly_trends(
    months: int,
    match: Optional[dict] = None,
    with_outcomes: bool = False,
    now: Optional[datetime] = None,
) -> List[dict]:
    """Requests created in the last ``months`` months, bucketed by (year, month) ascending."""
    db = get_db()
    since = months_ago(now or datetime.utcnow(), months)

    group = {
        "_id": {
            "year": {"$year": "$createdAt"},
            "month": {"$month": "$createdAt"},
        },
        "count": {"$sum": 1},
    }
    if with_outcomes:
        group["approved"] = _count_if("status", "approved")
        group["rejected"] = _count_if("status", "rejected")

    pipeline = [
        {"$match": {**(match or {}), "createdAt": {"$gte": since}}},
        {"$group": group},
        {"$sort": {"_id.year": 1, "_id.month": 1}},
    ]
    return await db[LEAVE_REQUESTS].aggregate(pipeline).to_list(None)


async def department_breakdown() -> List[dict]:
    db = get_db()
    pipeline = [
        {
            "$group": {
                "_id": "$department",
                "totalRequests": {"$sum": 1},
                "approvedRequests": _count_if("status", "approved"),
                "pendingRequests": _count_if("status", "pending"),
                "rejectedRequests": _count_if("status", "rejected"),
            }
        }
    ]
    return await db[LEAVE_REQUESTS].aggregate(pipeline).to_list(None)


async def user_role_department_counts() -> List[dict]:
    db = get_db()
    pipeline = [
        {"$group": {"_id": {"role": "$role", "department": "$department"}, "count": {"$sum": 1}}},
    ]
    return await db[USERS].aggregate(pipeline).to_list(None)


async def admin_dashboard(now: Optional[datetime] = None) -> dict:
    db = get_db()
    now = now or datetime.utcnow()

    total_users = await db[USERS].count_documents({})
    pending_requests = await db[LEAVE_REQUESTS].count_documents({"status": "pending"})
    departments = [d for d in await db[USERS].distinct("department") if d]

    first_day = datetime(now.year, now.month, 1)
    next_month = datetime(now.year + 1, 1, 1) if now.month == 12 else datetime(now.year, now.month + 1, 1)
    holidays_this_month = await db[HOLIDAYS].count_documents({"date": {"$gte": first_day, "$lt": next_month}})

    user_roles = {"employee": 0, "manager": 0, "admin": 0}
    role_counts = await db[USERS].aggregate([{"$group": {"_id": "$role", "count": {"$sum": 1}}}]).to_list(None)
    for role in role_counts:
        user_roles[role["_id"]] = role["count"]

    return {
        "totalUsers": total_users,
        "pendingRequests": pending_requests,
        "departments": len(departments),
        "holidaysThisMonth": holidays_this_month,
        "userRoles": user_roles,
    }


async def admin_counters() -> dict:
    db = get_db()
    return {
        "totalUsers": await db[USERS].count_documents({}),
        "totalLeaves": await db[LEAVE_REQUESTS].count_documents({}),
        "pendingLeaves": await db[LEAVE_REQUESTS].count_documents({"status": "pending"}),
        "approvedLeaves": await db[LEAVE_REQUESTS].count_documents({"status": "approved"}),
        "rejectedLeaves": await db[LEAVE_REQUESTS].count_documents({"status": "rejected"}),
        "totalHolidays": await db[HOLIDAYS].count_documents({}),
    }


async def admin_detailed() -> dict:
    return {
        "leaveStatusStats": await count_by("status"),
        "leaveTypeStats": await count_by("leaveType"),
        "departmentStats": await department_breakdown(),
        "monthlyTrends": await monthly_trends(ORG_TREND_MONTHS, with_outcomes=True),
        "userRoleDeptStats": await user_role_department_counts(),
    }
