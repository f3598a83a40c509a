"""
Recurring schedule endpoints, nested under an account
"""

from fastapi import APIRouter, HTTPException, Depends, status

from .auth import BankSystem, get_bank_system, require_caller, get_owned_account
from .schemas import ScheduleRequest, ScheduleResponse, ScheduleCollectionResponse
from ..hypermedia import Caller
from ..models import Account


router = APIRouter()


@router.get("", response_model=ScheduleCollectionResponse)
async def list_schedules(
    account: Account = Depends(get_owned_account),
    caller: Caller = Depends(require_caller),
    system: BankSystem = Depends(get_bank_system)
):
    schedules = system.schedule_manager.list_schedules(account)
    return ScheduleCollectionResponse.build(account, schedules, caller)


@router.post("", response_model=ScheduleResponse, status_code=status.HTTP_201_CREATED)
async def create_schedule(
    request: ScheduleRequest,
    account: Account = Depends(get_owned_account),
    caller: Caller = Depends(require_caller),
    system: BankSystem = Depends(get_bank_system)
):
    """Create a schedule that appends ``amount`` every ``time_period``"""
    schedule = system.schedule_manager.create_schedule(
        account, request.time_period, request.next_run, request.amount
    )
    return ScheduleResponse.build(account, schedule, caller)


@router.get("/{schedule_id}", response_model=ScheduleResponse)
async def get_schedule(
    schedule_id: str,
    account: Account = Depends(get_owned_account),
    caller: Caller = Depends(require_caller),
    system: BankSystem = Depends(get_bank_system)
):
    schedule = system.schedule_manager.get_schedule(account, schedule_id)
    if not schedule:
        raise HTTPException(status_code=404, detail="Schedule not found")
    return ScheduleResponse.build(account, schedule, caller)


@router.delete("/{schedule_id}", response_model=ScheduleResponse)
async def delete_schedule(
    schedule_id: str,
    account: Account = Depends(get_owned_account),
    caller: Caller = Depends(require_caller),
    system: BankSystem = Depends(get_bank_system)
):
    schedule = system.schedule_manager.get_schedule(account, schedule_id)
    if not schedule:
        raise HTTPException(status_code=404, detail="Schedule not found")
    system.schedule_manager.delete_schedule(account, schedule)
    return ScheduleResponse.build(account, schedule, caller, deleted=True)
