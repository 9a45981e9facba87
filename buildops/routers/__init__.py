"""Central router registry."""
from __future__ import annotations

from fastapi import FastAPI

from buildops.routers import approval_requests, procurement, validation_requests

ALL_ROUTERS = (
    approval_requests.router,
    procurement.case_router,
    procurement.router,
    validation_requests.router,
)


def include_all_routers(app: FastAPI) -> None:
    for router in ALL_ROUTERS:
        app.include_router(router)
