"""
Tests for hrportal/services/agents.py - Agent routing and the locally computed tasks.
"""
import asyncio

import pytest

from hrportal.core.exceptions import ValidationError
from hrportal.services.agents import (
    AgentContext,
    AgentTask,
    AgentTaskType,
    AgentTimeoutError,
    ComplianceAgent,
    IndustrialRelationsAgent,
    TalentAcquisitionAgent,
    build_coordinator,
)
from hrportal.services.compliance import calculate_payroll
from hrportal.services.llm import LLMError

CONTEXT = AgentContext(user_id=1, company_id=1, role="HR")


class TestRouting:
    def test_every_task_type_has_an_agent(self, llm):
        coordinator = build_coordinator(llm)

        for task_type in AgentTaskType:
            agent, fallback = coordinator.route(task_type)
            assert agent.can_handle(task_type)
            assert fallback is False

    def test_preferred_agent_wins_when_capable(self, llm):
        coordinator = build_coordinator(llm)

        agent, fallback = coordinator.route(AgentTaskType.SUMMARIZE, ["cb", "assistant"])

        assert agent.name == "assistant"
        assert fallback is False

    def test_incapable_preference_falls_back(self, llm):
        coordinator = build_coordinator(llm)

        agent, fallback = coordinator.route(AgentTaskType.FORM_34_GENERATE, ["ta", "unknown"])

        assert agent.name == "ir"
        assert fallback is True


class TestDispatch:
    @pytest.mark.asyncio
    async def test_model_backed_task(self, llm):
        llm.responder = lambda messages, schema: {"sentiment": "NEGATIVE", "score": -0.6}
        coordinator = build_coordinator(llm)
        task = AgentTask(type=AgentTaskType.SENTIMENT_ANALYZE, input={"text": "Overtime again"})

        outcome = await coordinator.dispatch(task, CONTEXT)

        assert outcome["assigned_agent"] == "er"
        assert outcome["response"].output == {"sentiment": "NEGATIVE", "score": -0.6}
        assert outcome["response"].task_id == task.id
        assert "Overtime again" in llm.calls[0]["messages"][1]["content"]
        assert coordinator.get("er").stats.total_requests == 1

    @pytest.mark.asyncio
    async def test_agent_errors_are_counted_and_raised(self, llm):
        def fail(messages, schema):
            raise LLMError("AI service error (ollama)")

        llm.responder = fail
        coordinator = build_coordinator(llm)

        with pytest.raises(LLMError):
            await coordinator.dispatch(AgentTask(type=AgentTaskType.CHAT, input={"message": "hi"}), CONTEXT)

        assert coordinator.get("assistant").stats.error_count == 1

    @pytest.mark.asyncio
    async def test_timeout(self, llm, monkeypatch):
        coordinator = build_coordinator(llm)

        async def slow(task, context):
            await asyncio.sleep(1)

        monkeypatch.setattr(coordinator.get("assistant"), "process", slow)

        with pytest.raises(AgentTimeoutError) as exc:
            await coordinator.dispatch(
                AgentTask(type=AgentTaskType.CHAT, input={"message": "hi"}), CONTEXT, timeout=0.01
            )

        assert exc.value.status_code == 504


class TestComplianceAgent:
    def test_matching_payslip_is_compliant(self, llm):
        expected = calculate_payroll(5000, 500, 0)

        result = ComplianceAgent(llm).validate_payroll({
            "basicSalary": 5000,
            "allowances": 500,
            "epfAmount": expected.epf_employee,
            "netSalary": expected.net_salary,
        })

        assert result["compliant"] is True
        assert result["issues"] == []

    def test_wrong_epf_is_flagged(self, llm):
        expected = calculate_payroll(5000)

        result = ComplianceAgent(llm).validate_payroll({"basicSalary": 5000, "epfAmount": 100})

        assert result["compliant"] is False
        assert result["issues"] == [f"epfAmount is 100.00, expected {expected.epf_employee:.2f}"]

    @pytest.mark.parametrize("data", [{}, {"basicSalary": 0}, {"basicSalary": "5000"}, {"basicSalary": 5000, "allowances": -1}])
    def test_rejects_bad_input(self, llm, data):
        with pytest.raises(ValidationError):
            ComplianceAgent(llm).validate_payroll(data)

    def test_missing_registrations_and_low_salary(self, llm):
        result = ComplianceAgent(llm).check_registrations({"nric": "880312-07-9012", "epfNo": "E1", "salary": 1200})

        assert result["compliant"] is False
        assert result["violations"] == [
            "SOCSO (PERKESO) registration is missing",
            "Income tax (LHDN) number is missing",
            "Salary is below the RM1,500 minimum wage",
        ]
        assert len(result["correctiveActions"]) == 2

    @pytest.mark.asyncio
    async def test_never_calls_the_model(self, llm):
        await ComplianceAgent(llm).run(
            AgentTask(type=AgentTaskType.COMPLIANCE_CHECK, input={"nric": "x"}), CONTEXT
        )

        assert llm.calls == []


class TestIndustrialRelationsAgent:
    def test_form_34_lists_missing_fields(self, llm):
        result = IndustrialRelationsAgent(llm).prepare_form_34({"caseId": "IR-1", "employerName": "Tech Solutions"})

        assert result["validationErrors"] == [
            "Employee name is required",
            "Allegations are required",
            "Date of inquiry is required",
        ]
        assert result["complianceChecklist"][0]["status"] == "pending"

    def test_complete_form_34(self, llm):
        result = IndustrialRelationsAgent(llm).prepare_form_34({
            "employeeName": "Lim Wei",
            "employerName": "Tech Solutions",
            "allegations": ["Absent without leave"],
            "dateOfInquiry": "2025-03-01",
        })

        assert result["validationErrors"] == []
        assert result["complianceChecklist"][0]["status"] == "completed"


class TestCandidateScoring:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "reply,score",
        [({"score": 87.6, "reasons": ["Python"]}, 88), ({"score": 140}, 100), ({"score": "high"}, 0), ({"score": -3}, 0)],
    )
    async def test_score_is_clamped(self, llm, reply, score):
        llm.responder = lambda messages, schema: reply

        result = await TalentAcquisitionAgent(llm).score_candidate({"id": 1}, {"id": 2}, CONTEXT)

        assert result["score"] == score
        assert isinstance(result["reasons"], list)
