"""Model-provider wrapper.

Supports:
- OpenRouter through the OpenAI SDK (OPENROUTER_API_KEY)
- mock/stub mode (MOCK_LLM=1) so tests can run without network/keys.

Only returns raw text; cleanup and repair happen in pathflow.pathway.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass

from .errors import UpstreamUnavailable
from .settings import Settings

logger = logging.getLogger(__name__)

APP_TITLE = "Pathflow Call Flow Builder"

PATHWAY_SYSTEM = """You design phone call flows for an AI voice agent.

Build one conversation for the user's request: greet with company and purpose,
discover the caller's situation, qualify with one focused question per node,
handle likely objections, then close with a transfer or a clear next step.

Node types:
- greeting: opening line, company name and call purpose
- question: exactly one question
- response: information or acknowledgement before a major transition
- customer-response: captures a Yes/No answer (data.options, data.variableName)
- webhook: call an external service (data.url, data.method)
- transfer: hand off to a human (data.text, data.transferNumber)
- end-call: thank the caller and say goodbye

Rules:
- question nodes connect directly to the next logical node
- do not add placeholder nodes that only wait for input
- give every node an "id", a "type", "data.text" and a "position" {x, y},
  greeting at y=0 and end nodes at the bottom
- edges are {"id", "source", "target", "label"}; label Yes/No on branches

Return ONLY a JSON object with "nodes" and "edges" arrays. No markdown,
no explanations, no code blocks.
"""

_STEP_SPLIT = re.compile(r"\s*(?:,\s*then|;\s*then|\bthen\b|[.;])\s*", re.IGNORECASE)


def _second_person(s: str) -> str:
    words = []
    for w in s.split():
        low = w.lower()
        words.append({"they": "you", "their": "your", "them": "you", "they're": "you're"}.get(low, w))
    return " ".join(words)


def _mock_node(i: int, step: str) -> dict:
    low = step.lower()
    for lead in ("ask if ", "ask whether "):
        if low.startswith(lead):
            rest = _second_person(step[len(lead):]).rstrip("?")
            return {"id": f"question_{i}", "type": "question", "data": {"text": f"Do you {rest.removeprefix('you ')}?"}}
    if low.startswith("ask "):
        rest = _second_person(step[4:]).rstrip("?")
        return {"id": f"question_{i}", "type": "question", "data": {"text": f"{rest[:1].upper()}{rest[1:]}?"}}
    for lead in ("collect ", "get ", "gather "):
        if low.startswith(lead):
            rest = _second_person(step[len(lead):])
            return {"id": f"question_{i}", "type": "question", "data": {"text": f"Please share your {rest}."}}
    if low.startswith("transfer"):
        return {
            "id": f"transfer_{i}",
            "type": "transfer",
            "data": {"text": "Let me connect you with a specialist now.", "transferNumber": "+10000000000"},
        }
    return {"id": f"response_{i}", "type": "response", "data": {"text": f"{step[:1].upper()}{step[1:]}."}}


def mock_pathway(prompt: str) -> dict:
    """Linear pathway: greeting, one node per step of the prompt, end-call."""
    steps = [s for s in _STEP_SPLIT.split(prompt or "") if s and s.strip()]
    nodes = [{"id": "greeting_1", "type": "greeting", "data": {"text": "Hello! Thanks for taking my call today."}}]
    for i, step in enumerate(steps, start=2):
        nodes.append(_mock_node(i, step.strip()))
    nodes.append({"id": "end_call", "type": "end-call", "data": {"text": "Thank you for your time. Goodbye!"}})
    for i, n in enumerate(nodes):
        n["position"] = {"x": 250, "y": i * 100}
    edges = [
        {"id": f"edge_{a['id']}_{b['id']}", "source": a["id"], "target": b["id"], "label": "next"}
        for a, b in zip(nodes, nodes[1:])
    ]
    return {"nodes": nodes, "edges": edges}


@dataclass
class LLM:
    settings: Settings

    def _mock(self, prompt: str) -> str:
        # Fenced on purpose; models do this too and cleanup must cope.
        return "```json\n" + json.dumps(mock_pathway(prompt), indent=2) + "\n```"

    def chat(self, *, system: str, user: str, model: str | None = None) -> str:
        if self.settings.mock_llm:
            return self._mock(user)

        if not self.settings.openrouter_api_key:
            raise UpstreamUnavailable(
                "Please set OPENROUTER_API_KEY or run with MOCK_LLM=1", status_code=401
            )

        import openai

        client = openai.OpenAI(
            api_key=self.settings.openrouter_api_key,
            base_url=self.settings.openrouter_base_url,
            default_headers={"HTTP-Referer": self.settings.app_url, "X-Title": APP_TITLE},
        )
        try:
            resp = client.chat.completions.create(
                model=model or self.settings.default_model,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": user},
                ],
                temperature=self.settings.temperature,
            )
        except openai.AuthenticationError as exc:
            raise UpstreamUnavailable(f"Provider rejected credentials: {exc}", status_code=401) from exc
        except openai.OpenAIError as exc:
            raise UpstreamUnavailable(f"Provider call failed: {exc}") from exc

        content = resp.choices[0].message.content if resp.choices else None
        if not content:
            raise UpstreamUnavailable("No content in provider response")
        return content

    def generate_pathway_text(self, prompt: str, *, model: str | None = None) -> str:
        logger.info("generating pathway (model=%s)", model or self.settings.default_model)
        return self.chat(system=PATHWAY_SYSTEM, user=prompt, model=model)
