"""
LangGraph workflow for the movie agent.
Classification picks one of three resolution nodes.
"""
import logging
from typing import Any, Optional, TypedDict

from langgraph.graph import END, StateGraph

from app.agent.classifier import classify_query
from app.agent.list_agent import resolve_list, resolve_weekly
from app.agent.models import AgentToolkit
from app.agent.specific_agent import resolve_specific
from app.models.schemas import MovieAgentQuery, QueryKind

logger = logging.getLogger(__name__)

ROUTE_SPECIFIC = "specific"
ROUTE_LIST = "list"
ROUTE_WEEKLY = "weekly"


class AgentState(TypedDict):
    """State for the agent graph."""
    query: str
    media_type: str
    weekly: bool
    page: int
    page_size: int
    kind: Optional[QueryKind]
    route: str
    resolution: Any


class MovieAgent:
    """
    Runs one request through the classification and fusion pipeline.

    Flow:
    1. Classification (weekly requests skip straight to the weekly node)
    2. SPECIFIC -> specific node -> END
    3. LIST -> list node -> END
    4. weekly -> weekly node -> END
    """

    def __init__(self, toolkit: AgentToolkit):
        self.toolkit = toolkit
        self.graph = self._create_graph()

    async def classification_node(self, state: AgentState) -> AgentState:
        logger.info("=== CLASSIFICATION NODE ===")
        if state["weekly"]:
            state["route"] = ROUTE_WEEKLY
            return state

        settings = self.toolkit.settings
        kind = await classify_query(
            state["query"],
            self.toolkit.llm,
            provider=settings.CLASSIFIER_PROVIDER,
            short_query_max_words=settings.SHORT_QUERY_MAX_WORDS,
        )
        state["kind"] = kind
        state["route"] = ROUTE_LIST if kind is QueryKind.LIST else ROUTE_SPECIFIC
        return state

    async def specific_node(self, state: AgentState) -> AgentState:
        logger.info("=== SPECIFIC NODE ===")
        state["resolution"] = await resolve_specific(state["query"], state["media_type"], self.toolkit)
        return state

    async def list_node(self, state: AgentState) -> AgentState:
        logger.info("=== LIST NODE ===")
        state["resolution"] = await resolve_list(
            state["query"], state["media_type"], state["page"], state["page_size"], self.toolkit
        )
        return state

    async def weekly_node(self, state: AgentState) -> AgentState:
        logger.info("=== WEEKLY NODE ===")
        state["resolution"] = await resolve_weekly(
            state["media_type"], state["page"], state["page_size"], self.toolkit
        )
        return state

    @staticmethod
    def route_after_classification(state: AgentState) -> str:
        return state["route"]

    def _create_graph(self):
        workflow = StateGraph(AgentState)

        workflow.add_node("classification", self.classification_node)
        workflow.add_node("specific_resolution", self.specific_node)
        workflow.add_node("list_resolution", self.list_node)
        workflow.add_node("weekly_resolution", self.weekly_node)

        workflow.set_entry_point("classification")
        workflow.add_conditional_edges(
            "classification",
            self.route_after_classification,
            {
                ROUTE_SPECIFIC: "specific_resolution",
                ROUTE_LIST: "list_resolution",
                ROUTE_WEEKLY: "weekly_resolution",
            },
        )
        workflow.add_edge("specific_resolution", END)
        workflow.add_edge("list_resolution", END)
        workflow.add_edge("weekly_resolution", END)

        return workflow.compile()

    async def run(self, request: MovieAgentQuery) -> AgentState:
        """
        Run the graph for one request.

        Exceptions from the nodes (missing credentials, confidently absent
        titles, unexpected failures) propagate to the caller.
        """
        initial_state: AgentState = {
            "query": request.text,
            "media_type": request.type,
            "weekly": request.weekly,
            "page": request.page,
            "page_size": request.page_size,
            "kind": None,
            "route": "",
            "resolution": None,
        }
        return await self.graph.ainvoke(initial_state)
