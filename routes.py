# routes.py
from fastapi import FastAPI
from controller.lookup_controller import lookup_router


def register_routes(app: FastAPI) -> None:
    """Register & Access control controllers here."""
    app.include_router(lookup_router)
