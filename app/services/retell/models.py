"""Response schemas for the Retell API."""
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class AgentRef(BaseModel):
    """A voice agent as listed by the provider."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    agent_id: str
    agent_name: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.agent_name or self.agent_id


class WebCallResponse(BaseModel):
    """Result of create-web-call."""

    model_config = ConfigDict(extra="ignore")

    call_id: str = Field(min_length=1)
    access_token: str = Field(min_length=1)
    agent_id: Optional[str] = None
    call_status: Optional[str] = None


class BatchCallTask(BaseModel):
    to_number: str

    @field_validator("to_number")
    def validate_to_number(cls, v):
        if not v.strip():
            raise ValueError("to_number cannot be empty")
        return v.strip()


class BatchCallRequest(BaseModel):
    """Payload for create-batch-call."""

    from_number: str
    tasks: List[BatchCallTask] = Field(min_length=1)
    name: Optional[str] = None

    @field_validator("from_number")
    def validate_from_number(cls, v):
        if not v.strip():
            raise ValueError("from_number cannot be empty")
        return v.strip()


class BatchCallResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    batch_call_id: str = Field(min_length=1)


class CallSummary(BaseModel):
    """One entry of list-calls; unknown fields are kept for display."""

    model_config = ConfigDict(extra="allow")

    call_id: str
    agent_id: Optional[str] = None
    call_type: Optional[str] = None
    call_status: Optional[str] = None
    start_timestamp: Optional[int] = None
    end_timestamp: Optional[int] = None

    def as_dict(self) -> Dict[str, Any]:
        return self.model_dump()
