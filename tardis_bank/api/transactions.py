"""
Transaction endpoints, nested under an account
"""

from fastapi import APIRouter, HTTPException, Depends, status

from .auth import BankSystem, get_bank_system, require_caller, get_owned_account
from .schemas import TransactionRequest, TransactionResponse, TransactionCollectionResponse
from ..hypermedia import Caller
from ..models import Account


router = APIRouter()


@router.get("", response_model=TransactionCollectionResponse)
async def list_transactions(
    account: Account = Depends(get_owned_account),
    caller: Caller = Depends(require_caller),
    system: BankSystem = Depends(get_bank_system)
):
    """Most recent transactions first"""
    transactions = system.transaction_processor.list_transactions(account)
    return TransactionCollectionResponse.build(account, transactions, caller)


@router.post("", response_model=TransactionResponse, status_code=status.HTTP_201_CREATED)
async def create_transaction(
    request: TransactionRequest,
    account: Account = Depends(get_owned_account),
    caller: Caller = Depends(require_caller),
    system: BankSystem = Depends(get_bank_system)
):
    """Append a transaction; the response carries the new running balance"""
    transaction = system.transaction_processor.append_transaction(
        account, request.amount, transaction_date=request.transaction_date
    )
    return TransactionResponse.build(account, transaction, caller)


@router.get("/{transaction_id}", response_model=TransactionResponse)
async def get_transaction(
    transaction_id: str,
    account: Account = Depends(get_owned_account),
    caller: Caller = Depends(require_caller),
    system: BankSystem = Depends(get_bank_system)
):
    transaction = system.transaction_processor.get_transaction(account, transaction_id)
    if not transaction:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return TransactionResponse.build(account, transaction, caller)
