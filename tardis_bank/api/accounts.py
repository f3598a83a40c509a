"""
Account management endpoints
"""

from fastapi import APIRouter, Depends, status

from .auth import BankSystem, get_bank_system, require_caller, get_owned_account
from .schemas import AccountRequest, AccountResponse, AccountCollectionResponse
from ..hypermedia import Caller
from ..models import Account


router = APIRouter()


@router.get("", response_model=AccountCollectionResponse)
async def list_accounts(
    caller: Caller = Depends(require_caller),
    system: BankSystem = Depends(get_bank_system)
):
    """List the caller's accounts"""
    accounts = system.account_manager.list_accounts(caller.login_id)
    return AccountCollectionResponse.build(accounts, caller)


@router.post("", response_model=AccountResponse, status_code=status.HTTP_201_CREATED)
async def create_account(
    request: AccountRequest,
    caller: Caller = Depends(require_caller),
    system: BankSystem = Depends(get_bank_system)
):
    """Open a new account for the caller"""
    account = system.account_manager.create_account(caller.login_id, request.account_name)
    return AccountResponse.build(account, caller)


@router.get("/{account_id}", response_model=AccountResponse)
async def get_account(
    account: Account = Depends(get_owned_account),
    caller: Caller = Depends(require_caller)
):
    return AccountResponse.build(account, caller)


@router.delete("/{account_id}", response_model=AccountResponse)
async def delete_account(
    account: Account = Depends(get_owned_account),
    caller: Caller = Depends(require_caller),
    system: BankSystem = Depends(get_bank_system)
):
    """Delete an account together with its transactions and schedules"""
    system.account_manager.delete_account(account)
    return AccountResponse.build(account, caller, deleted=True)
