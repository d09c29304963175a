"""FastAPI dependencies shared by the routers."""

from fastapi import Request

from services import Services


def get_services(request: Request) -> Services:
    """The Services bundle built at startup (see main.create_app)."""
    return request.app.state.services
