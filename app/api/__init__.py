from fastapi import APIRouter
from app.api.v1 import workflowroute, item_request_route, vehicle_request_route

api_router = APIRouter()

api_router.include_router(workflowroute.router, prefix="/api/v1")
api_router.include_router(item_request_route.router, prefix="/api/v1")
api_router.include_router(vehicle_request_route.router, prefix="/api/v1")
