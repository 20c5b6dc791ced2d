"""
LangGraph-based claim orchestrator.

Runs the task agents over one claim and hands their results to the final
decision.

Graph (sequential mode, the default):
    flight_time_node → premium_pay_node → compliance_node → decision_node

Graph (concurrent mode):
    tasks_node (asyncio.gather over all agents) → decision_node

Hard rules:
- Task nodes never branch; each appends exactly one TaskResult
- Result order is the configured agent order in both modes
- decision_node is the only writer of the verdict
- Tracing wraps every node and never affects the outcome
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Optional, Sequence
from uuid import uuid4

from langgraph.graph import StateGraph

from agent.decision import decide
from agent.state_schema import DomainFacts, ValidationState, Verdict
from agent.tasks import ComplianceAgent, FlightTimeAgent, PremiumPayAgent, TaskAgent
from agent.tracing import NoOpTracer, TraceMetadata, Tracer

logger = logging.getLogger(__name__)


class ClaimOrchestrator:
    """
    LangGraph orchestrator over a fixed sequence of task agents.

    Usage:
        orchestrator = ClaimOrchestrator(ClaimOrchestrator.default_agents(client, kb))
        verdict = await orchestrator.validate(claim.id, facts)
    """

    def __init__(
        self,
        agents: Sequence[TaskAgent],
        concurrent: bool = False,
        tracer: Optional[Tracer] = None,
    ):
        """
        Args:
            agents: Task agents in the order their results appear on the verdict
            concurrent: Run agents together with asyncio.gather
            tracer: Tracer instance for observability (NoOpTracer by default)
        """
        if not agents:
            raise ValueError("ClaimOrchestrator needs at least one task agent")
        self.agents = list(agents)
        self.concurrent = concurrent
        self.tracer = tracer or NoOpTracer()
        self.graph = self._build_graph()

    @staticmethod
    def default_agents(client, knowledge=None) -> Sequence[TaskAgent]:
        """Flight time, premium pay, compliance: the standard validation order."""
        return [
            FlightTimeAgent(client, knowledge),
            PremiumPayAgent(client, knowledge),
            ComplianceAgent(client, knowledge),
        ]

    def _build_graph(self):
        graph = StateGraph(ValidationState)
        graph.add_node("decision_node", self._wrap("decision_node", self._decision_node))

        if self.concurrent:
            graph.add_node("tasks_node", self._wrap("tasks_node", self._concurrent_tasks_node))
            graph.set_entry_point("tasks_node")
            graph.add_edge("tasks_node", "decision_node")
        else:
            names = []
            for agent in self.agents:
                name = f"{agent.task_type.value}_node"
                graph.add_node(name, self._wrap(name, self._task_node(agent)))
                names.append(name)
            graph.set_entry_point(names[0])
            for current, following in zip(names, names[1:] + ["decision_node"]):
                graph.add_edge(current, following)

        graph.set_finish_point("decision_node")
        return graph.compile()

    def _create_trace_metadata(self, state: ValidationState) -> TraceMetadata:
        return TraceMetadata(trace_id=state.trace_id, subject_id=state.subject_id)

    def _wrap(
        self, node_name: str, node_fn: Callable[[ValidationState], Awaitable[Dict[str, Any]]]
    ) -> Callable[[ValidationState], Awaitable[Dict[str, Any]]]:
        """
        Wrap a node with tracing.

        Spans at node entry/exit. Tracing failures are silent and non-blocking.
        """

        async def traced(state: ValidationState) -> Dict[str, Any]:
            span = None
            start_time = time.time()
            try:
                span = self.tracer.start_span(
                    name=node_name,
                    metadata={"node_name": node_name},
                    trace_metadata=self._create_trace_metadata(state),
                )
            except Exception:
                pass

            status = "failure"
            try:
                result = await node_fn(state)
                status = "success"
                return result
            finally:
                try:
                    self.tracer.end_span(
                        span=span,
                        status=status,
                        metadata={"duration_ms": (time.time() - start_time) * 1000},
                    )
                except Exception:
                    pass

        return traced

    # ─────────────────────────────────────────────────────
    # NODE IMPLEMENTATIONS
    # ─────────────────────────────────────────────────────

    def _task_node(self, agent: TaskAgent):
        async def node(state: ValidationState) -> Dict[str, Any]:
            logger.info(f"Running {agent.agent_name} for {state.subject_id}")
            result = await agent.run(state.facts, self._create_trace_metadata(state))
            return {"results": state.results + (result,)}

        return node

    async def _concurrent_tasks_node(self, state: ValidationState) -> Dict[str, Any]:
        logger.info(f"Running {len(self.agents)} agents concurrently for {state.subject_id}")
        trace_metadata = self._create_trace_metadata(state)
        results = await asyncio.gather(
            *(agent.run(state.facts, trace_metadata) for agent in self.agents)
        )
        return {"results": state.results + tuple(results)}

    async def _decision_node(self, state: ValidationState) -> Dict[str, Any]:
        historical = state.facts.historical if state.facts else None
        return {"verdict": decide(state.subject_id, state.results, historical)}

    # ─────────────────────────────────────────────────────
    # PUBLIC INTERFACE
    # ─────────────────────────────────────────────────────

    async def validate(
        self, subject_id: str, facts: DomainFacts, trace_id: Optional[str] = None
    ) -> Verdict:
        """
        Run every task agent over `facts` and return the verdict.

        Args:
            subject_id: Claim identifier
            facts: Domain facts; facts.claim must be present
            trace_id: Optional trace ID (generated if not provided)
        """
        started = time.perf_counter()
        logger.info(f"Starting claim validation for {subject_id}")

        initial_state = ValidationState(
            subject_id=subject_id,
            trace_id=trace_id or str(uuid4()),
            facts=facts,
        )
        result = await self.graph.ainvoke(initial_state)

        # LangGraph returns the final state as a plain dict
        if isinstance(result, dict):
            verdict = result.get("verdict")
        elif isinstance(result, ValidationState):
            verdict = result.verdict
        else:
            raise TypeError(f"Unexpected result type: {type(result)}")

        logger.info(f"Validation of {subject_id} complete in {time.perf_counter() - started:.2f}s")
        return verdict
