"""
HR specialist agents and the coordinator that routes tasks to them.

Each agent owns a set of task types. Statutory checks (payroll validation,
registration compliance, Form 34 preparation) are computed locally; the
advisory tasks ask the configured model for a JSON answer in a fixed shape.
"""

import asyncio
import json
import logging
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

from hrportal.core.config import settings
from hrportal.core.exceptions import HRPortalError, ValidationError
from hrportal.services.compliance import calculate_payroll
from hrportal.services.llm import LLMClient

logger = logging.getLogger("hrportal.agents")

MINIMUM_MONTHLY_WAGE = 1500.0


class AgentTaskType(str, Enum):
    # General
    ANALYZE = "ANALYZE"
    GENERATE = "GENERATE"
    CLASSIFY = "CLASSIFY"
    SUMMARIZE = "SUMMARIZE"
    TRANSLATE = "TRANSLATE"
    QUESTION_ANSWER = "QUESTION_ANSWER"
    CHAT = "CHAT"

    # Compliance
    PAYROLL_VALIDATE = "PAYROLL_VALIDATE"
    COMPLIANCE_CHECK = "COMPLIANCE_CHECK"

    # Talent acquisition
    RESUME_PARSE = "RESUME_PARSE"
    CANDIDATE_MATCH = "CANDIDATE_MATCH"
    CANDIDATE_RANKING = "CANDIDATE_RANKING"
    JOB_POST_OPTIMIZE = "JOB_POST_OPTIMIZE"
    INTERVIEW_ANALYTICS = "INTERVIEW_ANALYTICS"

    # Compensation & benefits
    SALARY_BENCHMARK = "SALARY_BENCHMARK"
    BENEFITS_PERSONALIZE = "BENEFITS_PERSONALIZE"
    PAY_EQUITY_ANALYZE = "PAY_EQUITY_ANALYZE"
    REWARDS_STATEMENT = "REWARDS_STATEMENT"
    COLA_FORECAST = "COLA_FORECAST"

    # Employee relations
    SENTIMENT_ANALYZE = "SENTIMENT_ANALYZE"
    MEDIATION_CHAT = "MEDIATION_CHAT"
    CULTURE_DASHBOARD = "CULTURE_DASHBOARD"
    ER_ESCALATION_PREDICT = "ER_ESCALATION_PREDICT"
    INVESTIGATION_DOC = "INVESTIGATION_DOC"

    # Industrial relations
    DISPUTE_PREDICT = "DISPUTE_PREDICT"
    LEGAL_SEARCH = "LEGAL_SEARCH"
    CASE_ANALYZE = "CASE_ANALYZE"
    FORM_34_GENERATE = "FORM_34_GENERATE"


class TaskPriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class AgentTimeoutError(HRPortalError):
    status_code = 504
    default_message = "AI task timed out"


@dataclass
class AgentTask:
    type: AgentTaskType
    input: Dict[str, Any]
    priority: TaskPriority = TaskPriority.MEDIUM
    user_id: Optional[int] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=lambda: f"task_{uuid.uuid4().hex[:12]}")
    created_at: datetime = field(default_factory=datetime.utcnow)


@dataclass
class AgentContext:
    user_id: int
    company_id: int
    role: str
    session_id: str = field(default_factory=lambda: f"api_{int(time.time() * 1000)}")


@dataclass
class AgentResult:
    task_id: str
    agent_id: str
    success: bool
    output: Dict[str, Any]
    confidence: float
    processing_time: int
    completed_at: datetime


@dataclass
class AgentStats:
    total_requests: int = 0
    error_count: int = 0
    total_time_ms: float = 0.0
    last_active: Optional[datetime] = None

    @property
    def success_rate(self) -> float:
        if not self.total_requests:
            return 1.0
        return (self.total_requests - self.error_count) / self.total_requests

    @property
    def average_response_time(self) -> float:
        return self.total_time_ms / self.total_requests if self.total_requests else 0.0


# task type -> (instruction, reply shape)
Prompt = Tuple[str, Dict[str, Any]]


class Agent:
    """
    Base class for a specialist.

    Subclasses declare ``prompts`` for model-backed task types and may
    override ``process`` for task types they compute locally.
    """

    name = "agent"
    agent_type = "GENERAL"
    system_prompt = "You are an HR assistant for a Malaysian company."
    capabilities: Tuple[str, ...] = ()
    prompts: Dict[AgentTaskType, Prompt] = {}
    local_tasks: frozenset = frozenset()
    temperature = 0.3
    max_tokens = 1000
    confidence = 0.85

    def __init__(self, llm: LLMClient):
        self.llm = llm
        self.stats = AgentStats()

    @property
    def task_types(self) -> frozenset:
        return frozenset(self.prompts) | self.local_tasks

    def can_handle(self, task_type: AgentTaskType) -> bool:
        return task_type in self.task_types

    async def run(self, task: AgentTask, context: AgentContext) -> AgentResult:
        started = time.perf_counter()
        self.stats.total_requests += 1
        self.stats.last_active = datetime.utcnow()
        try:
            output = await self.process(task, context)
        except Exception:
            self.stats.error_count += 1
            raise
        finally:
            self.stats.total_time_ms += (time.perf_counter() - started) * 1000

        return AgentResult(
            task_id=task.id,
            agent_id=self.name,
            success=True,
            output=output,
            confidence=self.confidence,
            processing_time=int((time.perf_counter() - started) * 1000),
            completed_at=datetime.utcnow(),
        )

    async def process(self, task: AgentTask, context: AgentContext) -> Dict[str, Any]:
        instruction, shape = self.prompts[task.type]
        prompt = f"{instruction}\n\nInput:\n{json.dumps(task.input, indent=2, default=str)}"
        return await self.ask(prompt, shape, context)

    async def ask(self, prompt: str, shape: Dict[str, Any], context: AgentContext) -> Dict[str, Any]:
        messages = [
            {
                "role": "system",
                "content": f"{self.system_prompt}\nThe requester is a {context.role} user of company {context.company_id}.",
            },
            {"role": "user", "content": prompt},
        ]
        return await self.llm.complete_json(
            messages, shape, temperature=self.temperature, max_tokens=self.max_tokens
        )

    def status(self) -> Dict[str, Any]:
        return {
            "total_requests": self.stats.total_requests,
            "error_count": self.stats.error_count,
            "success_rate": round(self.stats.success_rate, 3),
            "average_response_time": round(self.stats.average_response_time, 1),
            "last_active": self.stats.last_active,
        }


def _number(data: Dict[str, Any], key: str, default: Optional[float] = None) -> Optional[float]:
    value = data.get(key, default)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{key} must be a number")
    return float(value)


class ComplianceAgent(Agent):
    """Checks pay slips and statutory registrations without calling a model."""

    name = "compliance"
    agent_type = "COMPLIANCE"
    capabilities = ("payroll_validation", "statutory_registration_check")
    local_tasks = frozenset({AgentTaskType.PAYROLL_VALIDATE, AgentTaskType.COMPLIANCE_CHECK})
    confidence = 1.0

    async def process(self, task: AgentTask, context: AgentContext) -> Dict[str, Any]:
        if task.type == AgentTaskType.PAYROLL_VALIDATE:
            return self.validate_payroll(task.input)
        return self.check_registrations(task.input)

    def validate_payroll(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Recompute statutory amounts and compare them with the reported ones."""
        basic = _number(data, "basicSalary")
        if basic is None or basic <= 0:
            raise ValidationError("basicSalary must be greater than 0")
        allowances = _number(data, "allowances", 0.0)
        deductions = _number(data, "deductions", 0.0)
        if allowances < 0 or deductions < 0:
            raise ValidationError("allowances and deductions must not be negative")

        expected = calculate_payroll(basic, allowances, deductions)
        reported_fields = {
            "epfAmount": expected.epf_employee,
            "socsoAmount": expected.socso_employee,
            "eisAmount": expected.eis_amount,
            "taxAmount": expected.tax_amount,
            "netSalary": expected.net_salary,
        }
        issues = []
        for key, expected_value in reported_fields.items():
            reported = _number(data, key)
            if reported is not None and abs(reported - expected_value) > 0.01:
                issues.append(f"{key} is {reported:.2f}, expected {expected_value:.2f}")
        if basic < MINIMUM_MONTHLY_WAGE:
            issues.append(f"basicSalary is below the RM{MINIMUM_MONTHLY_WAGE:,.0f} minimum wage")

        return {
            "compliant": not issues,
            "issues": issues,
            "recommendations": ["Recalculate the pay slip with current statutory rates"] if issues else [],
            "expected": expected.to_dict(),
        }

    def check_registrations(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Every employee needs an NRIC and EPF, SOCSO and tax registrations."""
        required = {
            "nric": "NRIC is missing",
            "epfNo": "EPF (KWSP) registration is missing",
            "socsoNo": "SOCSO (PERKESO) registration is missing",
            "taxNo": "Income tax (LHDN) number is missing",
        }
        violations = [message for key, message in required.items() if not data.get(key)]
        salary = _number(data, "salary")
        if salary is not None and salary < MINIMUM_MONTHLY_WAGE:
            violations.append(f"Salary is below the RM{MINIMUM_MONTHLY_WAGE:,.0f} minimum wage")

        actions = []
        if any("registration" in v or "number" in v for v in violations):
            actions.append("Register the employee with the missing statutory bodies")
        if any("minimum wage" in v for v in violations):
            actions.append("Adjust salary to at least the minimum wage")
        return {"compliant": not violations, "violations": violations, "correctiveActions": actions}


class TalentAcquisitionAgent(Agent):
    name = "ta"
    agent_type = "TA"
    capabilities = ("resume_parsing", "candidate_matching", "candidate_screening",
                    "job_description_creation", "interview_question_generation")
    system_prompt = (
        "You are the Talent Acquisition agent for a Malaysian HR system. You screen and match "
        "candidates, write job posts and interview plans, and keep hiring fair and compliant "
        "with Malaysian employment law."
    )
    temperature = 0.2
    max_tokens = 1200
    prompts = {
        AgentTaskType.RESUME_PARSE: (
            "Extract structured data from this resume.",
            {"name": "", "email": "", "phone": "", "skills": [""], "experienceYears": 0,
             "education": [{"institution": "", "qualification": "", "year": 0}],
             "workHistory": [{"employer": "", "position": "", "startDate": "", "endDate": ""}]},
        ),
        AgentTaskType.CANDIDATE_MATCH: (
            "Match these candidates to the job opening.",
            {"matches": [{"candidateId": "", "matchScore": 0, "matchedSkills": [""], "experienceMatch": 0}],
             "insights": {"topSkills": [""], "commonGaps": [""]}},
        ),
        AgentTaskType.CANDIDATE_RANKING: (
            "Screen and rank these candidates against the job requirements.",
            {"rankedCandidates": [{"candidateId": "", "score": 0, "strengths": [""], "gaps": [""],
                                   "recommendation": ""}],
             "recommendations": [""]},
        ),
        AgentTaskType.JOB_POST_OPTIMIZE: (
            "Write an attractive job description for the Malaysian job market.",
            {"jobDescription": "", "requirements": [""], "responsibilities": [""]},
        ),
        AgentTaskType.INTERVIEW_ANALYTICS: (
            "Prepare technical, behavioural and situational interview questions for this role.",
            {"technicalQuestions": [{"question": "", "skill": "", "difficulty": "MEDIUM"}],
             "behavioralQuestions": [""], "situationalQuestions": [""]},
        ),
    }

    async def score_candidate(
        self, candidate: Dict[str, Any], job: Dict[str, Any], context: AgentContext
    ) -> Dict[str, Any]:
        """Score one applicant for one job, 0 to 100, with the reasons behind it."""
        prompt = (
            "Score how well this candidate fits the job from 0 to 100 and list the main reasons.\n\n"
            f"Job:\n{json.dumps(job, indent=2, default=str)}\n\n"
            f"Candidate:\n{json.dumps(candidate, indent=2, default=str)}"
        )
        reply = await self.ask(prompt, {"score": 0, "reasons": [""]}, context)

        score = reply.get("score", 0)
        if isinstance(score, bool) or not isinstance(score, (int, float)):
            score = 0
        reasons = reply.get("reasons") or []
        if not isinstance(reasons, list):
            reasons = [str(reasons)]
        return {
            "score": int(round(min(max(float(score), 0.0), 100.0))),
            "reasons": [str(r) for r in reasons if r],
        }


class CompensationAgent(Agent):
    name = "cb"
    agent_type = "CB"
    capabilities = ("salary_benchmarking", "benefits_optimization", "pay_equity_analysis",
                    "total_rewards_statement", "cost_of_living_forecast")
    system_prompt = (
        "You are the Compensation & Benefits agent for a Malaysian HR system. You benchmark pay "
        "against the Malaysian market, review benefits and pay equity, and keep statutory "
        "contributions (EPF, SOCSO, EIS) in view."
    )
    prompts = {
        AgentTaskType.SALARY_BENCHMARK: (
            "Benchmark this position's salary against the Malaysian market.",
            {"marketMedian": 0, "percentile25": 0, "percentile75": 0, "position": "", "notes": [""]},
        ),
        AgentTaskType.BENEFITS_PERSONALIZE: (
            "Recommend a benefits package for this employee profile.",
            {"recommendedBenefits": [{"benefit": "", "reason": "", "estimatedMonthlyCost": 0}],
             "totalEstimatedCost": 0},
        ),
        AgentTaskType.PAY_EQUITY_ANALYZE: (
            "Analyse this pay data for unexplained gaps between comparable employees.",
            {"equityScore": 0, "gaps": [{"group": "", "gapPercent": 0, "explanation": ""}],
             "recommendations": [""]},
        ),
        AgentTaskType.REWARDS_STATEMENT: (
            "Prepare a total rewards statement for this employee.",
            {"baseSalary": 0, "allowances": 0, "employerContributions": 0, "benefitsValue": 0,
             "totalRewards": 0, "summary": ""},
        ),
        AgentTaskType.COLA_FORECAST: (
            "Forecast a cost-of-living adjustment for the given location and period.",
            {"recommendedAdjustmentPercent": 0, "inflationAssumption": 0, "rationale": ""},
        ),
    }


class EmployeeRelationsAgent(Agent):
    name = "er"
    agent_type = "ER"
    capabilities = ("sentiment_analysis", "mediation_support", "culture_insights",
                    "escalation_prediction", "investigation_documentation")
    system_prompt = (
        "You are the Employee Relations agent for a Malaysian HR system. You read workplace "
        "sentiment, support mediation and document investigations impartially."
    )
    prompts = {
        AgentTaskType.SENTIMENT_ANALYZE: (
            "Analyse the sentiment of this employee feedback.",
            {"sentiment": "NEUTRAL", "score": 0, "themes": [""], "concerns": [""]},
        ),
        AgentTaskType.MEDIATION_CHAT: (
            "Suggest a mediator's next reply and steps for this workplace conflict.",
            {"reply": "", "suggestedSteps": [""], "tone": ""},
        ),
        AgentTaskType.CULTURE_DASHBOARD: (
            "Summarise culture and engagement signals from these survey results.",
            {"engagementScore": 0, "strengths": [""], "risks": [""], "actions": [""]},
        ),
        AgentTaskType.ER_ESCALATION_PREDICT: (
            "Estimate the risk that this grievance escalates and how to prevent it.",
            {"escalationRisk": "LOW", "probability": 0, "drivers": [""], "preventiveActions": [""]},
        ),
        AgentTaskType.INVESTIGATION_DOC: (
            "Draft a structured investigation record for this complaint.",
            {"summary": "", "allegations": [""], "evidenceNeeded": [""], "interviewPlan": [""],
             "nextSteps": [""]},
        ),
    }


class IndustrialRelationsAgent(Agent):
    name = "ir"
    agent_type = "IR"
    capabilities = ("dispute_prediction", "legal_research", "case_analysis", "form_34_preparation")
    system_prompt = (
        "You are the Industrial Relations agent for a Malaysian HR system. You work within the "
        "Employment Act 1955 and the Industrial Relations Act 1967 and flag where legal counsel "
        "is needed."
    )
    local_tasks = frozenset({AgentTaskType.FORM_34_GENERATE})
    prompts = {
        AgentTaskType.DISPUTE_PREDICT: (
            "Predict how likely this case is to become an industrial dispute.",
            {"disputeProbability": 0, "riskLevel": "LOW", "factors": [""], "recommendedActions": [""]},
        ),
        AgentTaskType.LEGAL_SEARCH: (
            "List Malaysian Industrial Court precedents relevant to these keywords.",
            {"precedents": [{"title": "", "year": 0, "relevance": 0, "holding": ""}], "summary": ""},
        ),
        AgentTaskType.CASE_ANALYZE: (
            "Analyse this disciplinary case.",
            {"severity": "Low", "legalStanding": "", "recommendedActions": [""], "timeline": "",
             "risks": [""]},
        ),
    }

    async def process(self, task: AgentTask, context: AgentContext) -> Dict[str, Any]:
        if task.type == AgentTaskType.FORM_34_GENERATE:
            return self.prepare_form_34(task.input)
        return await super().process(task, context)

    def prepare_form_34(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Assemble a notice of domestic inquiry and list what is still missing."""
        form = {
            "caseId": data.get("caseId"),
            "employeeName": data.get("employeeName"),
            "employerName": data.get("employerName"),
            "allegations": data.get("allegations") or [],
            "dateOfInquiry": data.get("dateOfInquiry"),
        }
        errors = []
        if not form["employeeName"]:
            errors.append("Employee name is required")
        if not form["employerName"]:
            errors.append("Employer name is required")
        if not form["allegations"]:
            errors.append("Allegations are required")
        if not form["dateOfInquiry"]:
            errors.append("Date of inquiry is required")

        checklist = [
            {"item": "All required fields completed", "status": "pending" if errors else "completed"},
            {"item": "Legal review conducted", "status": "pending"},
            {"item": "Employee notification sent", "status": "pending"},
        ]
        return {"formData": form, "validationErrors": errors, "complianceChecklist": checklist}


class AssistantAgent(Agent):
    name = "assistant"
    agent_type = "CHATBOT"
    capabilities = ("analysis", "generation", "classification", "summarization",
                    "translation", "question_answering")
    system_prompt = (
        "You are an HR assistant for a Malaysian company. Answer in the language of the request "
        "(Bahasa Malaysia or English) and say when a question needs HR or legal follow-up."
    )
    temperature = 0.5
    confidence = 0.75
    prompts = {
        task_type: (instruction, {"content": "", "keyPoints": [""]})
        for task_type, instruction in (
            (AgentTaskType.ANALYZE, "Analyse the following and explain the key findings."),
            (AgentTaskType.GENERATE, "Produce the requested HR content."),
            (AgentTaskType.CLASSIFY, "Classify the following and justify the category."),
            (AgentTaskType.SUMMARIZE, "Summarise the following."),
            (AgentTaskType.TRANSLATE, "Translate the following as requested."),
            (AgentTaskType.QUESTION_ANSWER, "Answer this HR question."),
            (AgentTaskType.CHAT, "Reply to this message."),
        )
    }


class AgentCoordinator:
    """Routes each task type to the agent registered for it."""

    name = "coordinator"

    def __init__(self, llm: LLMClient, agents: Iterable[Agent]):
        self.llm = llm
        self._agents: Dict[str, Agent] = {}
        self._routes: Dict[AgentTaskType, Agent] = {}
        for agent in agents:
            self._agents[agent.name] = agent
            for task_type in agent.task_types:
                self._routes.setdefault(task_type, agent)

    @property
    def agents(self) -> List[Agent]:
        return list(self._agents.values())

    def get(self, name: str) -> Optional[Agent]:
        return self._agents.get(name)

    def route(self, task_type: AgentTaskType, preferred: Iterable[str] = ()) -> Tuple[Agent, bool]:
        """
        The first preferred agent able to take the task wins. Otherwise the
        registered agent takes it, and the fallback is reported when a
        preference was given.
        """
        preferred = list(preferred)
        for name in preferred:
            agent = self._agents.get(name)
            if agent is not None and agent.can_handle(task_type):
                return agent, False

        agent = self._routes.get(task_type)
        if agent is None:
            raise ValidationError(f"No agent registered for task type: {task_type.value}")
        return agent, bool(preferred)

    async def dispatch(
        self,
        task: AgentTask,
        context: AgentContext,
        preferred: Iterable[str] = (),
        timeout: Optional[float] = None,
    ) -> Dict[str, Any]:
        started = time.perf_counter()
        agent, fallback_used = self.route(task.type, preferred)
        limit = timeout or settings.AI_TASK_TIMEOUT

        try:
            result = await asyncio.wait_for(agent.run(task, context), timeout=limit)
        except asyncio.TimeoutError:
            logger.warning(f"Task {task.id} ({task.type.value}) on {agent.name} timed out after {limit}s")
            raise AgentTimeoutError(f"AI task timed out after {limit:.0f}s")

        logger.info(f"Task {task.id} ({task.type.value}) handled by {agent.name} for user {context.user_id}")
        return {
            "success": result.success,
            "assigned_agent": agent.name,
            "response": result,
            "processing_time": int((time.perf_counter() - started) * 1000),
            "fallback_used": fallback_used,
        }

    def health(self) -> Dict[str, Any]:
        total = sum(a.stats.total_requests for a in self.agents)
        errors = sum(a.stats.error_count for a in self.agents)
        degraded = total >= 5 and errors / total > 0.2
        return {
            "status": "degraded" if degraded else "healthy",
            "provider": self.llm.provider,
            "model": self.llm.model,
            "total_agents": len(self._agents),
            "total_requests": total,
            "error_count": errors,
        }

    def routes(self) -> Dict[str, str]:
        return {task_type.value: agent.name for task_type, agent in sorted(self._routes.items())}


def build_coordinator(llm: LLMClient) -> AgentCoordinator:
    return AgentCoordinator(
        llm,
        [
            ComplianceAgent(llm),
            TalentAcquisitionAgent(llm),
            CompensationAgent(llm),
            EmployeeRelationsAgent(llm),
            IndustrialRelationsAgent(llm),
            AssistantAgent(llm),
        ],
    )
