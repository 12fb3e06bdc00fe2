from fastapi import APIRouter, Depends
from typing import List
from leave_portal.schemas.leave import LeaveCreate, LeaveDecision, LeaveOut
from leave_portal.services import stats_service
from leave_portal.services.leave_service import leave_service
from leave_portal.utils.auth import get_current_user, require_roles

router = APIRouter()

employee_only = require_roles("employee", detail="Only employees can create leave requests")
manager_decides = require_roles("manager", detail="Only managers can update leave requests")


@router.post("/", response_model=LeaveOut)
@router.post("", response_model=LeaveOut, include_in_schema=False)
async def create_leave_request(
    leave: LeaveCreate,
    current_user: dict = Depends(employee_only)
):
    return await leave_service.create_request(leave, current_user)


@router.get("/", response_model=List[LeaveOut])
@router.get("", response_model=List[LeaveOut], include_in_schema=False)
async def get_leave_requests(current_user: dict = Depends(get_current_user)):
    """Admins see everything, managers their department, employees their own requests."""
    return await leave_service.list_requests(leave_service.scope_filter(current_user))


@router.get("/department", response_model=List[LeaveOut])
async def get_department_leaves(
    current_user: dict = Depends(require_roles("manager", detail="Only managers can view department leaves"))
):
    return await leave_service.list_requests({"department": current_user.get("department")})


@router.get("/team", response_model=List[LeaveOut])
async def get_team_leaves(
    current_user: dict = Depends(require_roles("manager", detail="Only managers can view team leaves"))
):
    return await leave_service.list_requests({"department": current_user.get("department")})


@router.get("/my-leaves", response_model=List[LeaveOut])
async def get_my_leaves(current_user: dict = Depends(get_current_user)):
    return await leave_service.list_requests({"employee": current_user["_id"]})


@router.get("/manager/stats")
async def get_manager_stats(
    current_user: dict = Depends(require_roles("manager", detail="Not authorized to view manager statistics"))
):
    department = current_user.get("department")
    match = {"department": department}
    return {
        "departmentStats": await stats_service.count_by("status", match),
        "recentRequests": await leave_service.list_requests(match, limit=10),
        "monthlyDeptTrends": await stats_service.monthly_trends(stats_service.DEPARTMENT_TREND_MONTHS, match),
        "department": department,
    }


@router.get("/employee/stats")
async def get_employee_stats(current_user: dict = Depends(get_current_user)):
    match = {"employee": current_user["_id"]}
    return {
        "leaveHistory": await leave_service.list_requests(match),
        "leaveStatusStats": await stats_service.count_by("status", match),
        "leaveTypeStats": await stats_service.count_by("leaveType", match),
        "monthlyTrends": await stats_service.monthly_trends(stats_service.EMPLOYEE_TREND_MONTHS, match),
    }


@router.get("/{request_id}", response_model=LeaveOut)
async def get_leave_request(request_id: str, current_user: dict = Depends(get_current_user)):
    return await leave_service.get_request(request_id, current_user)


@router.patch("/{request_id}", response_model=LeaveOut)
async def decide_leave_request(
    request_id: str,
    decision: LeaveDecision,
    current_user: dict = Depends(manager_decides)
):
    return await leave_service.decide(request_id, decision, current_user)
