"""
Home, registration and login endpoints

The home resource is the entry point every client starts from. POSTing to
it registers a login and DELETE removes the caller's own login.
"""

from fastapi import APIRouter, BackgroundTasks, Depends, status

from .auth import BankSystem, get_bank_system, get_caller, require_caller
from .schemas import (
    RegisterRequest, LoginRequest, ChangePasswordRequest,
    HomeResponse, RegisterResponse, LoginResponse, ChangePasswordResponse, VerificationResponse
)
from ..hypermedia import Caller, ANONYMOUS


router = APIRouter()


@router.get("/", response_model=HomeResponse)
async def get_home(
    caller: Caller = Depends(get_caller),
    system: BankSystem = Depends(get_bank_system)
):
    """Entry point; links depend on whether the caller is logged in"""
    login = system.login_manager.get_login(caller.login_id) if caller.authenticated else None
    return HomeResponse.build(login, caller)


@router.post("/", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
async def register(
    request: RegisterRequest,
    background_tasks: BackgroundTasks,
    caller: Caller = Depends(get_caller),
    system: BankSystem = Depends(get_bank_system)
):
    """Register a new login; it must verify its email before logging in"""
    login, _ = system.login_manager.register(
        request.email, request.password, defer=background_tasks.add_task
    )
    return RegisterResponse.build(login, caller)


@router.delete("/", response_model=HomeResponse)
async def delete_login(
    caller: Caller = Depends(require_caller),
    system: BankSystem = Depends(get_bank_system)
):
    """Delete the caller's login and everything it owns"""
    system.login_manager.delete_login(caller.login_id)
    return HomeResponse.build(None, ANONYMOUS)


@router.post("/login", response_model=LoginResponse)
async def login(
    request: LoginRequest,
    caller: Caller = Depends(get_caller),
    system: BankSystem = Depends(get_bank_system)
):
    """Exchange email and password for a bearer token"""
    token = system.login_manager.authenticate(request.email, request.password)
    return LoginResponse.build(token, caller)


@router.get("/verify/{token}", response_model=VerificationResponse)
async def verify_email(
    token: str,
    caller: Caller = Depends(get_caller),
    system: BankSystem = Depends(get_bank_system)
):
    """Follow the link from a verification mail"""
    login = system.login_manager.verify_email(token)
    return VerificationResponse.build(login, caller)


@router.put("/password", response_model=ChangePasswordResponse)
async def change_password(
    request: ChangePasswordRequest,
    caller: Caller = Depends(require_caller),
    system: BankSystem = Depends(get_bank_system)
):
    login = system.login_manager.change_password(
        caller.login_id, request.old_password, request.new_password
    )
    return ChangePasswordResponse.build(login, caller)
