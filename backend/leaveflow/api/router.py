from fastapi import APIRouter

from leaveflow.api.balances import balances_router
from leaveflow.api.batches import batches_router
from leaveflow.api.employees import employees_router
from leaveflow.api.history import history_router
from leaveflow.api.leave_types import leave_types_router
from leaveflow.api.requests import requests_router
from leaveflow.api.statistics import statistics_router

api_router = APIRouter()
api_router.include_router(requests_router)
api_router.include_router(batches_router)
api_router.include_router(history_router)
api_router.include_router(statistics_router)
api_router.include_router(balances_router)
api_router.include_router(leave_types_router)
api_router.include_router(employees_router)
