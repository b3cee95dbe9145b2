"""
API Version 1 Package

All v1 API endpoints are defined here.
"""
from fastapi import APIRouter
from stockwatch.api.v1.health import router as health_router
from stockwatch.api.v1.stocks import router as stocks_router

router = APIRouter()

router.include_router(health_router)
router.include_router(stocks_router)
