"""
State model for the request workflow.
"""

from typing import Optional, Dict, Any
from pydantic import BaseModel, ConfigDict

from .dispatcher import DispatchOutcome
from .models import AgentOutput, OutboundResponse, RequestContext


class RequestState(BaseModel):
    """State of one inbound request as it moves through the workflow."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    payload: Dict[str, Any] = {}
    text: Optional[str] = None
    context: Optional[RequestContext] = None
    agent_output: Optional[AgentOutput] = None
    outcome: Optional[DispatchOutcome] = None
    response: Optional[OutboundResponse] = None
    error: Optional[str] = None
