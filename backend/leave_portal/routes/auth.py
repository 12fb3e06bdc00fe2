from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request, status
from pymongo import ReturnDocument
from datetime import datetime
from leave_portal.db import get_db, USERS
from leave_portal.models.user import User, DEFAULT_LEAVE_BALANCE
from leave_portal.schemas.auth import UserRegister, UserLogin, TokenResponse, RoleUpdateResponse
from leave_portal.schemas.user import UserOut, RoleUpdate
from leave_portal.services.auth_service import verify_password, hash_password, create_access_token
from leave_portal.services.email_service import notify_login
from leave_portal.utils.auth import get_current_user, require_roles
from leave_portal.utils.documents import parse_object_id, with_str_id
from leave_portal.utils.logger import log_event, EventTypes

router = APIRouter()


@router.post("/register", response_model=TokenResponse, status_code=201)
async def register(user: UserRegister):
    db = get_db()
    existing = await db[USERS].find_one({"email": user.email})
    if existing:
        raise HTTPException(status_code=400, detail="User already exists")

    new_user = User(
        hashed_password=hash_password(user.password),
        **user.model_dump(exclude={"password"}),
    )
    res = await db[USERS].insert_one(new_user.to_document())
    created = await db[USERS].find_one({"_id": res.inserted_id})

    user_id = str(res.inserted_id)
    access_token = create_access_token({"sub": user_id})
    await log_event(EventTypes.USER_REGISTERED, {"role": created["role"]}, user_id=user_id)

    return {
        "token": access_token,
        "token_type": "bearer",
        "user": UserOut(**with_str_id(created)),
    }


@router.post("/login", response_model=TokenResponse)
async def login(user_login: UserLogin, request: Request, background_tasks: BackgroundTasks):
    db = get_db()
    user = await db[USERS].find_one({"email": user_login.email})
    ip_address = request.client.host if request.client else "unknown"

    if not user or not verify_password(user_login.password, user["hashed_password"]):
        await log_event(EventTypes.AUTH_FAILED, {"email": user_login.email}, ip_address=ip_address)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid credentials")

    update = {"lastLogin": datetime.utcnow()}
    # Accounts created before balances existed get the defaults on first login
    if not user.get("leaveBalance"):
        update["leaveBalance"] = dict(DEFAULT_LEAVE_BALANCE)
    user = await db[USERS].find_one_and_update(
        {"_id": user["_id"]},
        {"$set": update},
        return_document=ReturnDocument.AFTER,
    )

    user_id = str(user["_id"])
    access_token = create_access_token({"sub": user_id})
    await log_event(EventTypes.USER_LOGIN, {"role": user["role"]}, user_id=user_id, ip_address=ip_address)

    background_tasks.add_task(
        notify_login,
        user["email"],
        user.get("name"),
        {
            "ip": ip_address,
            "userAgent": request.headers.get("User-Agent"),
            "timestamp": datetime.utcnow().isoformat(),
        },
    )

    return {
        "token": access_token,
        "token_type": "bearer",
        "user": UserOut(**with_str_id(user)),
    }


@router.get("/me", response_model=UserOut)
async def get_me(current_user: dict = Depends(get_current_user)):
    user = current_user
    if not user.get("leaveBalance"):
        db = get_db()
        user = await db[USERS].find_one_and_update(
            {"_id": current_user["_id"]},
            {"$set": {"leaveBalance": dict(DEFAULT_LEAVE_BALANCE)}},
            return_document=ReturnDocument.AFTER,
        )
    return UserOut(**with_str_id(user))


@router.patch("/users/{user_id}/role", response_model=RoleUpdateResponse)
async def update_user_role(
    user_id: str,
    role_update: RoleUpdate,
    current_user: dict = Depends(require_roles("admin", detail="Not authorized to update user roles"))
):
    db = get_db()
    oid = parse_object_id(user_id, "user")

    updated = await db[USERS].find_one_and_update(
        {"_id": oid},
        {"$set": {"role": role_update.role.value, "updatedAt": datetime.utcnow()}},
        return_document=ReturnDocument.AFTER,
    )
    if not updated:
        raise HTTPException(404, "User not found")

    await log_event(
        EventTypes.ROLE_UPDATED,
        {"target_user_id": user_id, "role": role_update.role.value},
        user_id=str(current_user["_id"]),
    )
    return {
        "message": "User role updated successfully",
        "user": UserOut(**with_str_id(updated)),
    }
