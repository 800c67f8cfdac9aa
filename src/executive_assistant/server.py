"""
HTTP surface for the executive assistant.

POST /a2a/agent/execumate always answers 200 with an assistant response, even
when processing fails; only a body that is not a JSON object is rejected.
"""

from datetime import datetime, timezone
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .system import ExecutiveAssistantSystem


A2A_PATH = "/a2a/agent/execumate"


def create_app(system: ExecutiveAssistantSystem) -> FastAPI:
    """Create the FastAPI application for a system instance."""
    config = system.config
    logger = system.logging_manager.get_logger("ExecutiveAssistant.server")

    app = FastAPI(title=config.agent.name, description=config.agent.description, version=config.server.version)
    app.state.system = system

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        client = request.client.host if request.client else "unknown"
        logger.info(f"{request.method} {request.url.path} from {client}")
        return await call_next(request)

    @app.post(A2A_PATH)
    async def a2a_agent(request: Request) -> JSONResponse:
        try:
            payload = await request.json()
        except ValueError:
            logger.warning("Rejected A2A request with invalid JSON body")
            return JSONResponse(status_code=400, content={"success": False, "error": {"message": "Request body must be valid JSON"}})

        if not isinstance(payload, dict):
            logger.warning("Rejected A2A request whose body is not an object")
            return JSONResponse(status_code=400, content={"success": False, "error": {"message": "Request body must be a JSON object"}})

        logger.info(f"Received A2A request {payload.get('id', '')}".rstrip())
        response = await system.process_request(payload)
        return JSONResponse(content=response)

    @app.get("/health")
    async def health() -> dict:
        return {
            "status": "healthy",
            "service": config.agent.name,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": config.server.version,
        }

    @app.get("/agent/info")
    async def agent_info() -> dict:
        return {
            "name": config.agent.name,
            "description": config.agent.description,
            "capabilities": [
                "Calendar Management",
                "Email Management",
                "Task Management",
            ],
            "tools": {
                name: system.tool_registry.get_tool(name).actions
                for name in system.tool_registry.list_tools()
            },
            "endpoints": {
                "a2a": A2A_PATH,
                "health": "/health",
                "info": "/agent/info",
            },
        }

    @app.get("/")
    async def root() -> dict:
        return {
            "message": f"{config.agent.name} AI Assistant",
            "version": config.server.version,
            "status": "running",
            "documentation": "/agent/info",
        }

    return app
