import os

# Defaults for every Settings() built during the run, including the server's module-level state.
os.environ["PATHFLOW_STORE"] = "memory"
os.environ["MOCK_LLM"] = "1"
os.environ.pop("OPENROUTER_API_KEY", None)

import pytest

from pathflow.pathway.types import Pathway


@pytest.fixture
def splice_pathway() -> Pathway:
    """greeting -> yes/no question -> informational response -> transfer."""
    return Pathway.from_wire(
        {
            "nodes": [
                {"id": "greeting", "type": "greeting", "data": {"text": "Hello, this is Sam from HealthGuard."}},
                {"id": "age", "type": "question", "data": {"text": "Are you 65 or older?"}},
                {
                    "id": "info",
                    "type": "response",
                    "data": {"text": "Great, that helps me understand your situation."},
                    "position": {"x": 250, "y": 200},
                },
                {
                    "id": "transfer",
                    "type": "transfer",
                    "data": {"text": "Connecting you with a licensed agent now.", "transferNumber": "+15550100"},
                },
            ],
            "edges": [
                {"id": "e1", "source": "greeting", "target": "age", "label": "next"},
                {"id": "e2", "source": "age", "target": "info", "label": "next"},
                {"id": "e3", "source": "info", "target": "transfer", "label": "next"},
            ],
        }
    )


@pytest.fixture
def customer_response_pathway() -> Pathway:
    """Question already followed by a bare customer-response node."""
    return Pathway.from_wire(
        {
            "nodes": [
                {"id": "greeting", "type": "greeting", "data": {"text": "Hi there!"}},
                {"id": "ins", "type": "question", "data": {"text": "Do you currently have insurance through work?"}},
                {"id": "answer", "type": "customer-response", "data": {"text": "Waiting..."}},
                {"id": "transfer", "type": "transfer", "data": {"text": "One moment please."}},
                {"id": "bye", "type": "end-call", "data": {"text": "Goodbye!"}},
            ],
            "edges": [
                {"id": "e1", "source": "greeting", "target": "ins"},
                {"id": "e2", "source": "ins", "target": "answer"},
                {"id": "e3", "source": "answer", "target": "transfer"},
            ],
        }
    )


@pytest.fixture
def editor_graph() -> dict:
    return {
        "nodes": [
            {
                "id": "1",
                "type": "greeting",
                "position": {"x": 100, "y": 40},
                "data": {"name": "Start", "text": "Hey there, how are you doing today?", "isStart": True},
                "selected": True,
                "width": 220,
                "height": 80,
                "dragging": False,
            },
            {
                "id": "q",
                "type": "question",
                "position": {"x": 100, "y": 200},
                "data": {"name": "Interest", "text": "Would you like to hear more?"},
                "selected": False,
            },
            {
                "id": "end",
                "type": "end-call",
                "position": {"x": 300, "y": 360},
                "data": {"name": "End Call", "prompt": "Say goodbye to the user"},
            },
        ],
        "edges": [
            {
                "id": "edge_1_q_1712345678",
                "source": "1",
                "target": "q",
                "type": "custom",
                "animated": True,
                "data": {"label": "next"},
                "style": {"stroke": "#3b82f6", "strokeWidth": 2},
            },
            {
                "id": "edge_q_end_1712345999",
                "source": "q",
                "target": "end",
                "type": "custom",
                "animated": True,
                "data": {"label": "No"},
                "style": {"stroke": "#3b82f6", "strokeWidth": 2},
            },
        ],
    }
