"""
Leave request workflow.

Submission, role-scoped listing and the manager decision that moves a request
from ``pending`` to ``approved`` or ``rejected`` while keeping the employee's
leave balance consistent. Status changes are pushed to connected clients via
the in-process ``ConnectionManager``.
"""

from fastapi import HTTPException
from pymongo import ReturnDocument
from typing import List, Optional
from datetime import datetime

from leave_portal.db import get_db, USERS, LEAVE_REQUESTS, HOLIDAYS
from leave_portal.models.leave_request import LeaveRequest, LeaveStatus
from leave_portal.schemas.leave import LeaveCreate, LeaveDecision, LeaveOut
from leave_portal.schemas.user import UserRef
from leave_portal.utils.documents import parse_object_id, parse_calendar_date, with_str_id
from leave_portal.utils.logger import log_event, log_error, EventTypes
from leave_portal.utils.ws_manager import ConnectionManager, manager as ws_manager

LEAVE_STATUS_UPDATED = "leaveStatusUpdated"


class LeaveService:

    def __init__(self, publisher: ConnectionManager):
        self.publisher = publisher

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------
    async def populate(self, requests: List[dict]) -> List[LeaveOut]:
        """Convert raw documents to ``LeaveOut`` with ``employee``/``manager`` refs filled in."""
        db = get_db()
        user_ids = {r.get("employee") for r in requests} | {r.get("manager") for r in requests}
        user_ids.discard(None)

        refs = {}
        if user_ids:
            cursor = db[USERS].find({"_id": {"$in": list(user_ids)}}, {"name": 1, "email": 1})
            for user in await cursor.to_list(None):
                refs[user["_id"]] = UserRef(**with_str_id(user))

        result = []
        for request in requests:
            data = with_str_id(request)
            data["employee"] = refs.get(request.get("employee"))
            data["manager"] = refs.get(request.get("manager"))
            result.append(LeaveOut(**data))
        return result

    async def populate_one(self, request: dict) -> LeaveOut:
        return (await self.populate([request]))[0]

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------
    async def create_request(self, payload: LeaveCreate, current_user: dict) -> LeaveOut:
        db = get_db()

        start = parse_calendar_date(payload.startDate)
        end = parse_calendar_date(payload.endDate)
        if end < start:
            raise HTTPException(400, "End date must be after start date")

        holidays = await db[HOLIDAYS].find({"date": {"$gte": start, "$lte": end}}).sort("date", 1).to_list(None)
        if holidays:
            raise HTTPException(
                400,
                detail={
                    "message": "Leave request overlaps with holidays",
                    "holidays": [
                        {"_id": str(h["_id"]), "name": h.get("name"), "date": h["date"].date().isoformat()}
                        for h in holidays
                    ],
                },
            )

        # Re-read so the balance and department reflect the stored profile
        user = await db[USERS].find_one({"_id": current_user["_id"]})
        if not user:
            raise HTTPException(404, "User not found")

        leave_type = payload.leaveType.value
        available = (user.get("leaveBalance") or {}).get(leave_type, 0)
        if available < payload.totalDays:
            raise HTTPException(
                400,
                f"Insufficient {leave_type} leave balance. You have {available} days remaining."
            )

        leave_request = LeaveRequest(
            employee=user["_id"],
            department=user.get("department"),
            leaveType=payload.leaveType,
            startDate=start,
            endDate=end,
            totalDays=payload.totalDays,
            reason=payload.reason,
        )
        res = await db[LEAVE_REQUESTS].insert_one(leave_request.to_document())
        created = await db[LEAVE_REQUESTS].find_one({"_id": res.inserted_id})

        await log_event(
            EventTypes.LEAVE_REQUEST_CREATED,
            {"request_id": str(res.inserted_id), "leaveType": leave_type, "totalDays": payload.totalDays},
            user_id=str(user["_id"]),
        )
        return await self.populate_one(created)

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------
    def scope_filter(self, current_user: dict) -> dict:
        role = current_user.get("role")
        if role == "admin":
            return {}
        if role == "manager":
            return {"department": current_user.get("department")}
        return {"employee": current_user["_id"]}

    async def list_requests(self, filter_dict: dict, limit: Optional[int] = None) -> List[LeaveOut]:
        db = get_db()
        cursor = db[LEAVE_REQUESTS].find(filter_dict).sort("createdAt", -1)
        if limit:
            cursor = cursor.limit(limit)
        return await self.populate(await cursor.to_list(None))

    async def get_request(self, request_id: str, current_user: dict) -> LeaveOut:
        db = get_db()
        oid = parse_object_id(request_id, "leave request")
        request = await db[LEAVE_REQUESTS].find_one({"_id": oid})
        if not request:
            raise HTTPException(404, "Leave request not found")

        role = current_user.get("role")
        if role == "employee" and request["employee"] != current_user["_id"]:
            raise HTTPException(403, "Access denied")
        if role == "manager" and request.get("department") != current_user.get("department"):
            raise HTTPException(403, "Access denied")
        return await self.populate_one(request)

    # ------------------------------------------------------------------
    # Decision
    # ------------------------------------------------------------------
    async def decide(self, request_id: str, decision: LeaveDecision, current_user: dict) -> LeaveOut:
        db = get_db()
        oid = parse_object_id(request_id, "leave request")

        request = await db[LEAVE_REQUESTS].find_one({"_id": oid})
        if not request:
            raise HTTPException(404, "Leave request not found")

        if request.get("department") != current_user.get("department"):
            raise HTTPException(403, "Not authorized to update this leave request")

        if request["status"] != LeaveStatus.PENDING.value:
            raise HTTPException(400, "Leave request has already been processed")

        employee = await db[USERS].find_one({"_id": request["employee"]})
        leave_type = request["leaveType"]
        days = request["totalDays"]
        balance_field = f"leaveBalance.{leave_type}"
        now = datetime.utcnow()

        debited = False
        if decision.status == LeaveStatus.APPROVED.value:
            if not employee:
                raise HTTPException(404, "Employee not found")

            # Balance may have shrunk since submission; the filter makes the debit atomic
            debit = await db[USERS].find_one_and_update(
                {"_id": employee["_id"], balance_field: {"$gte": days}},
                {"$inc": {balance_field: -days}, "$set": {"updatedAt": now}},
                return_document=ReturnDocument.AFTER,
            )
            if debit is None:
                current = await db[USERS].find_one({"_id": employee["_id"]}) or employee
                remaining = (current.get("leaveBalance") or {}).get(leave_type, 0)
                raise HTTPException(
                    400,
                    f"Insufficient {leave_type} leave balance. Employee has {remaining} days remaining."
                )
            debited = True

        update = {
            "status": decision.status,
            "manager": current_user["_id"],
            "decidedAt": now,
            "updatedAt": now,
        }
        if decision.managerNote:
            update["managerNote"] = decision.managerNote

        updated = await db[LEAVE_REQUESTS].find_one_and_update(
            {"_id": oid, "status": LeaveStatus.PENDING.value},
            {"$set": update},
            return_document=ReturnDocument.AFTER,
        )
        if updated is None:
            # Another manager decided first
            if debited:
                await db[USERS].update_one({"_id": employee["_id"]}, {"$inc": {balance_field: days}})
                await log_event(
                    EventTypes.LEAVE_BALANCE_REFUNDED,
                    {"request_id": request_id, "leaveType": leave_type, "days": days},
                    user_id=str(employee["_id"]),
                )
            raise HTTPException(400, "Leave request has already been processed")

        action = (
            EventTypes.LEAVE_REQUEST_APPROVED
            if decision.status == LeaveStatus.APPROVED.value
            else EventTypes.LEAVE_REQUEST_REJECTED
        )
        await log_event(
            action,
            {"request_id": request_id, "employee_id": str(updated["employee"]), "totalDays": days},
            user_id=str(current_user["_id"]),
        )

        await self.publish_status_change(updated, employee, decision)
        return await self.populate_one(updated)

    async def publish_status_change(self, request: dict, employee: Optional[dict], decision: LeaveDecision):
        db = get_db()
        managers = await db[USERS].find(
            {"role": "manager", "department": request.get("department")}, {"_id": 1}
        ).to_list(None)
        manager_ids = [str(m["_id"]) for m in managers]
        employee_id = str(request["employee"])

        data = {
            "employeeId": employee_id,
            "employeeName": employee.get("name") if employee else None,
            "department": request.get("department"),
            "status": request["status"],
            "managers": manager_ids,
            "leaveRequest": {
                "id": str(request["_id"]),
                "status": request["status"],
                "startDate": request["startDate"].isoformat(),
                "endDate": request["endDate"].isoformat(),
                "leaveType": request["leaveType"],
                "managerNote": decision.managerNote,
            },
        }
        try:
            await self.publisher.publish(LEAVE_STATUS_UPDATED, data, [employee_id, *manager_ids])
        except Exception as e:
            log_error(f"Failed to publish {LEAVE_STATUS_UPDATED} for request {request['_id']}", e)


leave_service = LeaveService(ws_manager)
