from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field

from hrportal.schemas.common import CamelModel
from hrportal.services.agents import AgentTaskType, TaskPriority


class DispatchRequest(CamelModel):
    task_type: AgentTaskType
    input: Dict[str, Any] = Field(..., min_length=1)
    priority: TaskPriority = TaskPriority.MEDIUM
    metadata: Dict[str, Any] = {}
    preferred_agents: List[str] = []
    timeout: Optional[float] = Field(None, gt=0, le=600)


class AgentResponseOut(CamelModel):
    task_id: str
    agent_id: str
    success: bool
    output: Dict[str, Any]
    confidence: float
    processing_time: int
    completed_at: datetime


class DispatchResponse(CamelModel):
    success: bool
    assigned_agent: str
    response: AgentResponseOut
    processing_time: int
    fallback_used: bool


class AgentStatusOut(CamelModel):
    total_requests: int
    error_count: int
    success_rate: float
    average_response_time: float
    last_active: Optional[datetime] = None


class AgentInfo(CamelModel):
    name: str
    type: str
    capabilities: List[str]
    task_types: List[str]
    status: AgentStatusOut


class CoordinatorInfo(CamelModel):
    name: str
    type: str = "COORDINATOR"
    registered_agents: int
    routes: Dict[str, str]


class SystemHealth(CamelModel):
    status: str
    provider: str
    model: str
    total_agents: int
    total_requests: int
    error_count: int


class AISystemStatus(CamelModel):
    system_health: SystemHealth
    available_agents: List[AgentInfo]
    coordinator: CoordinatorInfo


class MatchRequest(CamelModel):
    job_id: int
    candidate_ids: Optional[List[int]] = None


class MatchedCandidate(CamelModel):
    id: int
    first_name: str
    last_name: str
    email: str
    department: Optional[str] = None
    position: Optional[str] = None


class CandidateMatch(CamelModel):
    candidate: MatchedCandidate
    score: int
    reasons: List[str]


class MatchJob(CamelModel):
    id: int
    title: str
    description: str
    requirements: Optional[str] = None


class MatchResponse(CamelModel):
    job: MatchJob
    matches: List[CandidateMatch]
