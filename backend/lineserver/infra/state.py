# lineserver/infra/state.py

from fastapi import Request

from lineserver.services.relay_service import RelayService


def get_relay(request: Request) -> RelayService:
    """
    FastAPI dependency returning the process-wide relay state.
    Usage:
        def my_route(relay: RelayService = Depends(get_relay)):
            ...
    """
    return request.app.state.relay
