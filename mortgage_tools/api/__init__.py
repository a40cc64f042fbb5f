"""
API routes for the mortgage calculators.
"""

from fastapi import APIRouter

from mortgage_tools.api import calculations, tools

router = APIRouter()

# Include sub-routers
router.include_router(calculations.router, prefix="/calculate", tags=["calculations"])
router.include_router(tools.router, prefix="/tools", tags=["tools"])
