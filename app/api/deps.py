# app/api/deps.py
from fastapi import Request

from app.services.accounts import AccountService
from app.services.workflow import BorrowWorkflow


def get_workflow(request: Request) -> BorrowWorkflow:
    return request.app.state.workflow


def get_account_service(request: Request) -> AccountService:
    return request.app.state.accounts
