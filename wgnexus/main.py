from pathlib import Path
from typing import Dict, List, Optional

from fastapi import Body, FastAPI, HTTPException, Request
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel

from .logging_utility import logger
from .settings import AppSettings
from .tunnel.commands import CommandError
from .tunnel.exceptions import (
    GenerationInputError,
    InvalidEndpoint,
    ToggleFailed,
    TunnelError,
    TunnelExists,
    TunnelNotFound,
)
from .tunnel.manager import TunnelManager
from .tunnel.models import Tunnel

TEMPLATES_DIR = Path(__file__).parent / "templates"


class PeerView(BaseModel):
    allowed_ips: Optional[str] = None
    endpoint: Optional[str] = None
    public_key: Optional[str] = None


class TunnelView(BaseModel):
    name: str
    active: bool
    address: Optional[str] = None
    listen_port: Optional[int] = None
    public_key: Optional[str] = None
    peers: List[PeerView] = []

    @classmethod
    def from_tunnel(cls, tunnel: Tunnel) -> 'TunnelView':
        iface = tunnel.config.interface
        return cls(
            name=tunnel.name,
            active=tunnel.active,
            address=iface.address,
            listen_port=iface.listen_port,
            public_key=iface.public_key,
            peers=[
                PeerView(allowed_ips=p.allowed_ips, endpoint=p.endpoint, public_key=p.public_key)
                for p in tunnel.config.peers
            ],
        )


def _http_error(e: TunnelError, context: str) -> HTTPException:
    """Map an engine error onto an HTTP status, logging it on the way."""
    if isinstance(e, TunnelNotFound):
        status_code = 404
    elif isinstance(e, TunnelExists):
        status_code = 409
    elif isinstance(e, (InvalidEndpoint, CommandError)):
        status_code = 400
    elif isinstance(e, GenerationInputError):
        status_code = 422
    elif isinstance(e, ToggleFailed):
        status_code = 502
    else:
        status_code = 500

    if status_code >= 500:
        logger.error(f"{context}: {e}")
    else:
        logger.warning(f"{context}: {e}")
    return HTTPException(status_code=status_code, detail=str(e))


def create_app(settings: AppSettings, manager: Optional[TunnelManager] = None) -> FastAPI:
    """
    Build the web application.

    Args:
        settings: Application settings
        manager: Pre-built manager; when omitted one is created and tunnels
            are loaded from settings.tunnels_path

    Returns:
        FastAPI application
    """
    app = FastAPI(title="WireGuard Nexus")
    templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

    if manager is None:
        manager = TunnelManager(settings)
        try:
            manager.load_tunnels()
        except TunnelError as e:
            logger.error(f"Could not load tunnels: {e}")
    app.state.manager = manager

    @app.get("/")
    async def home(request: Request):
        """Home page with the managed tunnels"""
        return templates.TemplateResponse(request, "index.html", {
            "tunnels": [TunnelView.from_tunnel(t) for t in manager.list_tunnels()],
        })

    @app.get("/tunnels", response_model=List[TunnelView])
    async def list_tunnels():
        """List tunnels with their cached activation flag"""
        return [TunnelView.from_tunnel(t) for t in manager.list_tunnels()]

    @app.get("/tunnels/{name}/status")
    def tunnel_status(name: str):
        """Detect the current state of a tunnel"""
        try:
            state = manager.status(name)
        except TunnelError as e:
            raise _http_error(e, f"Error detecting state of {name}")
        return {"name": name, "state": state.value, "active": manager.get(name).active}

    @app.post("/tunnels/{name}/toggle")
    def toggle_tunnel(name: str):
        """Bring a tunnel up or down"""
        try:
            active = manager.toggle(name)
        except TunnelError as e:
            raise _http_error(e, f"Error toggling {name}")
        return {"status": "success", "name": name, "active": active}

    @app.post("/tunnels/generate", response_model=TunnelView, status_code=201)
    def generate_tunnel(fields: Dict[str, Optional[str]] = Body(...)):
        """Generate a new tunnel configuration with a fresh keypair"""
        try:
            tunnel = manager.generate(fields)
        except TunnelError as e:
            raise _http_error(e, "Error generating tunnel")
        return TunnelView.from_tunnel(tunnel)

    @app.delete("/tunnels/{name}")
    def remove_tunnel(name: str, delete_file: bool = False):
        """Stop managing a tunnel, optionally deleting its configuration file"""
        try:
            manager.remove(name, delete_file=delete_file)
        except TunnelError as e:
            raise _http_error(e, f"Error removing {name}")
        return {"status": "success", "message": f"Tunnel {name} removed"}

    return app
