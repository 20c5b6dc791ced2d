"""
Abstract task agent.

A task agent turns domain facts into one TaskResult:
  build instructions → dispatch (JSON) → decode → map into payload.

Hard rules:
- run() never raises; every failure becomes an error TaskResult
- Error results carry confidence 0 and the failure message in details
- tokens_used and duration_seconds are stamped on every result
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Type

from agent.knowledge import RuleKnowledgeBase, StaticRuleKnowledgeBase
from agent.prompting import build_claim_prompt
from agent.state_schema import DomainFacts, TaskResult, TaskStatus
from agent.tasks.schemas import TaskAnswer
from agent.tracing import TraceMetadata
from inference import (
    AllProvidersExhausted,
    DecodeFailure,
    DispatchFailure,
    TaskRequest,
    TaskType,
    UnifiedDispatchClient,
)

logger = logging.getLogger(__name__)

ERROR_SUMMARY = "Agent encountered an error during processing"


class TaskAgent(ABC):
    task_type: TaskType
    agent_name: str
    temperature: float = 0.1
    max_output_tokens: int = 2000
    answer_shape: Type[TaskAnswer] = TaskAnswer
    error_reasoning: str = "Failed to complete analysis due to technical error"

    def __init__(
        self,
        client: UnifiedDispatchClient,
        knowledge: Optional[RuleKnowledgeBase] = None,
    ):
        """
        Args:
            client: Dispatch client shared by all agents
            knowledge: Rule lookups (built-in rules by default)
        """
        self.client = client
        self.knowledge = knowledge or StaticRuleKnowledgeBase()

    @abstractmethod
    async def system_instruction(self) -> str:
        raise NotImplementedError

    @abstractmethod
    async def focus(self, facts: DomainFacts) -> str:
        """Task-specific questions and context appended to the claim block."""
        raise NotImplementedError

    @abstractmethod
    async def build_payload(self, answer: TaskAnswer, facts: DomainFacts) -> Dict[str, Any]:
        raise NotImplementedError

    async def run(self, facts: DomainFacts, trace_metadata: Optional[TraceMetadata] = None) -> TaskResult:
        """
        Run this task against `facts`.

        Returns:
            TaskResult, status error on any failure
        """
        start = time.perf_counter()

        try:
            request = TaskRequest(
                system_instruction=await self.system_instruction(),
                user_instruction=build_claim_prompt(
                    facts.claim, facts.trip, facts.crew, await self.focus(facts)
                ),
                task_type=self.task_type,
                temperature=self.temperature,
                max_output_tokens=self.max_output_tokens,
            )
            answer, response = await self.client.dispatch_json(
                self.task_type, request, self.answer_shape, trace_metadata=trace_metadata
            )
            payload = await self.build_payload(answer, facts)
        except AllProvidersExhausted as e:
            return self._error_result(
                start,
                e,
                {
                    "failure": "providers_exhausted",
                    "attempted": [f"{f}/{m}" for f, m in e.attempted],
                    "remediation": e.remediation(),
                },
            )
        except DispatchFailure as e:
            return self._error_result(start, e, {"failure": "dispatch_failure"})
        except DecodeFailure as e:
            payload = {"failure": e.error_class.value}
            if e.failure is not None:
                payload["provider"] = f"{e.failure.backend_family}/{e.failure.model_id}"
            return self._error_result(start, e, payload)
        except Exception as e:
            logger.exception(f"{self.agent_name} failed unexpectedly")
            return self._error_result(start, e, {"failure": "unexpected_error"})

        payload["provider"] = f"{response.backend_family}/{response.model_id}"
        duration = time.perf_counter() - start
        logger.info(
            f"{self.agent_name}: {answer.status} (confidence {answer.confidence:.2f}) "
            f"via {payload['provider']} in {duration:.2f}s"
        )

        status = TaskStatus(answer.status)
        return TaskResult(
            task_type=self.task_type,
            agent_name=self.agent_name,
            status=status,
            confidence=0.0 if status == TaskStatus.ERROR else answer.confidence,
            summary=answer.summary,
            details=tuple(answer.details),
            reasoning=answer.reasoning,
            payload=payload,
            tokens_used=response.usage.total_tokens,
            duration_seconds=duration,
        )

    def _error_result(self, start: float, error: Exception, payload: Dict[str, Any]) -> TaskResult:
        message = getattr(error, "message", None) or str(error) or type(error).__name__
        logger.error(f"{self.agent_name} error: {message}")
        return TaskResult(
            task_type=self.task_type,
            agent_name=self.agent_name,
            status=TaskStatus.ERROR,
            confidence=0.0,
            summary=ERROR_SUMMARY,
            details=(message,),
            reasoning=self.error_reasoning,
            payload=payload,
            tokens_used=0,
            duration_seconds=time.perf_counter() - start,
        )
