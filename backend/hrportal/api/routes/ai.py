from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from hrportal.api.deps import get_agents, get_current_principal, get_db, require_roles
from hrportal.schemas.ai import (
    AgentInfo,
    AgentResponseOut,
    AISystemStatus,
    CoordinatorInfo,
    DispatchRequest,
    DispatchResponse,
    MatchRequest,
    MatchResponse,
)
from hrportal.services import job_service
from hrportal.services.access import HR_ROLES, Principal
from hrportal.services.agents import AgentContext, AgentCoordinator, AgentTask

router = APIRouter()
ta_router = APIRouter()


def _context(principal: Principal) -> AgentContext:
    return AgentContext(user_id=principal.id, company_id=principal.company_id, role=principal.role)


@router.post("/dispatch", response_model=DispatchResponse)
async def dispatch_task(
    task_in: DispatchRequest,
    principal: Principal = Depends(get_current_principal),
    coordinator: AgentCoordinator = Depends(get_agents),
) -> Any:
    """Hand a task to the agent registered for its type."""
    task = AgentTask(
        type=task_in.task_type,
        input=task_in.input,
        priority=task_in.priority,
        user_id=principal.id,
        metadata=task_in.metadata,
    )
    outcome = await coordinator.dispatch(
        task, _context(principal), preferred=task_in.preferred_agents, timeout=task_in.timeout
    )
    return DispatchResponse(
        success=outcome["success"],
        assigned_agent=outcome["assigned_agent"],
        response=AgentResponseOut.model_validate(outcome["response"]),
        processing_time=outcome["processing_time"],
        fallback_used=outcome["fallback_used"],
    )


@router.get("/dispatch", response_model=AISystemStatus)
async def system_status(
    principal: Principal = Depends(get_current_principal),
    coordinator: AgentCoordinator = Depends(get_agents),
) -> Any:
    agents = [
        AgentInfo(
            name=agent.name,
            type=agent.agent_type,
            capabilities=list(agent.capabilities),
            task_types=sorted(t.value for t in agent.task_types),
            status=agent.status(),
        )
        for agent in coordinator.agents
    ]
    return AISystemStatus(
        system_health=coordinator.health(),
        available_agents=agents,
        coordinator=CoordinatorInfo(
            name=coordinator.name,
            registered_agents=len(agents),
            routes=coordinator.routes(),
        ),
    )


@ta_router.post("/match", response_model=MatchResponse)
async def match_candidates(
    match_in: MatchRequest,
    principal: Principal = Depends(require_roles(*HR_ROLES)),
    coordinator: AgentCoordinator = Depends(get_agents),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Rank a posting's applicants by fit, best first."""
    agent = coordinator.get("ta")
    context = _context(principal)

    async def scorer(candidate: dict, job: dict) -> dict:
        return await agent.score_candidate(candidate, job, context)

    return await job_service.match_candidates(
        db, principal, scorer, match_in.job_id, match_in.candidate_ids
    )
