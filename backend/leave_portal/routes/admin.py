from fastapi import APIRouter, Depends, HTTPException
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError
from typing import List, Optional
from datetime import datetime
from leave_portal.db import get_db, USERS, HOLIDAYS, DEPARTMENTS
from leave_portal.models.user import User, LeaveBalance
from leave_portal.models.holiday import Holiday
from leave_portal.models.department import Department
from leave_portal.schemas.user import UserCreate, UserUpdate, UserOut
from leave_portal.schemas.holiday import HolidayCreate, HolidayUpdate, HolidayOut
from leave_portal.schemas.department import DepartmentCreate, DepartmentOut
from leave_portal.services import stats_service
from leave_portal.services.auth_service import hash_password
from leave_portal.utils.auth import require_admin
from leave_portal.utils.documents import parse_object_id, with_str_id, to_datetime
from leave_portal.utils.logger import log_event, EventTypes

# Every admin route requires the admin role
router = APIRouter(dependencies=[Depends(require_admin)])


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

@router.get("/users", response_model=List[UserOut])
async def list_users(role: Optional[str] = None, department: Optional[str] = None):
    db = get_db()
    filter_dict = {}
    if role:
        filter_dict["role"] = role
    if department:
        filter_dict["department"] = department

    users = await db[USERS].find(filter_dict).sort("createdAt", -1).to_list(None)
    return [UserOut(**with_str_id(user)) for user in users]


@router.post("/users", response_model=UserOut, status_code=201)
async def create_user(user: UserCreate, current_user: dict = Depends(require_admin)):
    db = get_db()
    existing = await db[USERS].find_one({"email": user.email})
    if existing:
        raise HTTPException(400, "Email already in use")

    data = user.model_dump(exclude={"password", "leaveBalance"})
    new_user = User(
        hashed_password=hash_password(user.password),
        leaveBalance=user.leaveBalance or LeaveBalance(),
        **data,
    )
    res = await db[USERS].insert_one(new_user.to_document())
    created = await db[USERS].find_one({"_id": res.inserted_id})
    await log_event(EventTypes.USER_CREATED, {"target_user_id": str(res.inserted_id)}, user_id=str(current_user["_id"]))
    return UserOut(**with_str_id(created))


@router.put("/users/{user_id}", response_model=UserOut)
async def update_user(user_id: str, user_update: UserUpdate, current_user: dict = Depends(require_admin)):
    db = get_db()
    oid = parse_object_id(user_id, "user")

    update_dict = user_update.model_dump(exclude_unset=True, exclude={"password"})
    # Required profile fields cannot be cleared
    for key in ("name", "email", "role", "department", "leaveBalance"):
        if key in update_dict and update_dict[key] is None:
            del update_dict[key]
    # Omitted leave types keep their stored value
    for leave_type, days in update_dict.pop("leaveBalance", {}).items():
        update_dict[f"leaveBalance.{leave_type}"] = days
    if user_update.password:
        update_dict["hashed_password"] = hash_password(user_update.password)
    if "role" in update_dict:
        update_dict["role"] = user_update.role.value
    if "email" in update_dict:
        clash = await db[USERS].find_one({"email": update_dict["email"], "_id": {"$ne": oid}})
        if clash:
            raise HTTPException(400, "Email already in use")
    update_dict["updatedAt"] = datetime.utcnow()

    updated = await db[USERS].find_one_and_update(
        {"_id": oid}, {"$set": update_dict}, return_document=ReturnDocument.AFTER
    )
    if not updated:
        raise HTTPException(404, "User not found")

    await log_event(
        EventTypes.USER_UPDATED,
        {"target_user_id": user_id, "fields": sorted(k for k in update_dict if k != "hashed_password")},
        user_id=str(current_user["_id"]),
    )
    return UserOut(**with_str_id(updated))


@router.delete("/users/{user_id}")
async def delete_user(user_id: str, current_user: dict = Depends(require_admin)):
    db = get_db()
    oid = parse_object_id(user_id, "user")

    res = await db[USERS].delete_one({"_id": oid})
    if res.deleted_count == 0:
        raise HTTPException(404, "User not found")
    await log_event(EventTypes.USER_DELETED, {"target_user_id": user_id}, user_id=str(current_user["_id"]))
    return {"message": "User deleted successfully"}


# ---------------------------------------------------------------------------
# Holidays
# ---------------------------------------------------------------------------

@router.get("/holidays", response_model=List[HolidayOut])
async def list_holidays():
    db = get_db()
    holidays = await db[HOLIDAYS].find().sort("date", 1).to_list(None)
    return [HolidayOut(**with_str_id(h)) for h in holidays]


@router.post("/holidays", response_model=HolidayOut, status_code=201)
async def create_holiday(holiday: HolidayCreate, current_user: dict = Depends(require_admin)):
    db = get_db()
    doc = Holiday(
        date=to_datetime(holiday.date),
        name=holiday.name,
        description=holiday.description,
    ).to_document()
    res = await db[HOLIDAYS].insert_one(doc)
    created = await db[HOLIDAYS].find_one({"_id": res.inserted_id})
    await log_event(EventTypes.HOLIDAY_CREATED, {"holiday_id": str(res.inserted_id)}, user_id=str(current_user["_id"]))
    return HolidayOut(**with_str_id(created))


@router.put("/holidays/{holiday_id}", response_model=HolidayOut)
async def update_holiday(holiday_id: str, holiday_update: HolidayUpdate, current_user: dict = Depends(require_admin)):
    db = get_db()
    oid = parse_object_id(holiday_id, "holiday")

    update_dict = holiday_update.model_dump(exclude_unset=True)
    if update_dict.get("date") is not None:
        update_dict["date"] = to_datetime(update_dict["date"])
    update_dict["updatedAt"] = datetime.utcnow()

    updated = await db[HOLIDAYS].find_one_and_update(
        {"_id": oid}, {"$set": update_dict}, return_document=ReturnDocument.AFTER
    )
    if not updated:
        raise HTTPException(404, "Holiday not found")
    await log_event(EventTypes.HOLIDAY_UPDATED, {"holiday_id": holiday_id}, user_id=str(current_user["_id"]))
    return HolidayOut(**with_str_id(updated))


@router.delete("/holidays/{holiday_id}")
async def delete_holiday(holiday_id: str, current_user: dict = Depends(require_admin)):
    db = get_db()
    oid = parse_object_id(holiday_id, "holiday")

    res = await db[HOLIDAYS].delete_one({"_id": oid})
    if res.deleted_count == 0:
        raise HTTPException(404, "Holiday not found")
    await log_event(EventTypes.HOLIDAY_DELETED, {"holiday_id": holiday_id}, user_id=str(current_user["_id"]))
    return {"message": "Holiday deleted successfully"}


# ---------------------------------------------------------------------------
# Departments
# ---------------------------------------------------------------------------

@router.get("/departments", response_model=List[DepartmentOut])
async def list_departments():
    db = get_db()
    departments = await db[DEPARTMENTS].find().sort("name", 1).to_list(None)
    return [DepartmentOut(**with_str_id(d)) for d in departments]


@router.post("/departments", response_model=DepartmentOut, status_code=201)
async def create_department(department: DepartmentCreate, current_user: dict = Depends(require_admin)):
    db = get_db()
    if await db[DEPARTMENTS].find_one({"name": department.name}):
        raise HTTPException(400, "Department already exists")

    try:
        res = await db[DEPARTMENTS].insert_one(Department(**department.model_dump()).to_document())
    except DuplicateKeyError:
        raise HTTPException(400, "Department already exists")
    created = await db[DEPARTMENTS].find_one({"_id": res.inserted_id})
    await log_event(EventTypes.DEPARTMENT_CREATED, {"name": department.name}, user_id=str(current_user["_id"]))
    return DepartmentOut(**with_str_id(created))


@router.delete("/departments/{department_id}")
async def delete_department(department_id: str, current_user: dict = Depends(require_admin)):
    db = get_db()
    oid = parse_object_id(department_id, "department")

    res = await db[DEPARTMENTS].delete_one({"_id": oid})
    if res.deleted_count == 0:
        raise HTTPException(404, "Department not found")
    await log_event(EventTypes.DEPARTMENT_DELETED, {"department_id": department_id}, user_id=str(current_user["_id"]))
    return {"message": "Department deleted successfully"}


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------

@router.get("/dashboard")
async def get_dashboard_stats():
    return await stats_service.admin_dashboard()


@router.get("/stats")
async def get_stats():
    return await stats_service.admin_counters()


@router.get("/stats/detailed")
async def get_detailed_stats():
    return await stats_service.admin_detailed()
