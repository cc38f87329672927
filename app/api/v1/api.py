# app/api/v1/api.py
from fastapi import APIRouter

from app.api.v1.endpoints import auth, items, requests, records

api_router_v1 = APIRouter(prefix="/api/v1")

api_router_v1.include_router(auth.router, prefix="/auth")
api_router_v1.include_router(items.router, prefix="/items")
api_router_v1.include_router(requests.router, prefix="/requests")
api_router_v1.include_router(records.router, prefix="/records")
