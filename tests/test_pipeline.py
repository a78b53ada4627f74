"""End-to-end: prompt -> model text -> cleanup -> repair."""

import pytest

from pathflow.errors import MissingPrompt, UpstreamUnavailable
from pathflow.llm import LLM, mock_pathway
from pathflow.pathway.pipeline import generate, repair
from pathflow.settings import Settings

MEDICARE_PROMPT = "Ask if they have Medicare, then collect name and zip."


@pytest.fixture
def mock_llm() -> LLM:
    return LLM(Settings(mock_llm=True, store_backend="memory"))


class TestMockModel:
    def test_prompt_steps_become_nodes(self):
        data = mock_pathway(MEDICARE_PROMPT)
        texts = [n["data"]["text"] for n in data["nodes"]]
        assert texts[1] == "Do you have Medicare?"
        assert texts[2] == "Please share your name and zip."
        assert data["nodes"][-1]["type"] == "end-call"
        assert len(data["edges"]) == len(data["nodes"]) - 1

    def test_output_is_fenced(self, mock_llm):
        assert mock_llm.generate_pathway_text(MEDICARE_PROMPT).startswith("```json\n")

    def test_missing_key_is_401(self):
        llm = LLM(Settings(mock_llm=False, openrouter_api_key=None))
        with pytest.raises(UpstreamUnavailable) as exc_info:
            llm.generate_pathway_text("anything")
        assert exc_info.value.status_code == 401


class TestGenerate:
    def test_medicare_scenario(self, mock_llm):
        out = generate(llm=mock_llm, prompt=MEDICARE_PROMPT)
        p = out.pathway
        medicare = next(n for n in p.nodes if "medicare" in n.text.lower())
        yes = [e for e in p.outgoing(medicare.id) if e.label == "Yes"]
        no = [e for e in p.outgoing(medicare.id) if e.label == "No"]
        assert len(yes) == 1 and len(no) == 1
        assert "name and zip" in p.node(yes[0].target).text
        assert p.node(no[0].target).kind == "end-call"

    def test_edges_are_canonical(self, mock_llm):
        p = generate(llm=mock_llm, prompt=MEDICARE_PROMPT).pathway
        assert all(e.id.startswith(f"edge-{e.source}-{e.target}") for e in p.edges)

    def test_blank_prompt(self, mock_llm):
        with pytest.raises(MissingPrompt):
            generate(llm=mock_llm, prompt="   ")


class TestRepair:
    def test_raw_text_is_cleaned_and_repaired(self):
        raw = (
            "```json\n"
            '{"nodes": ['
            '{"id": "q", "type": "question", "data": {"text": "Are you interested in a free quote?"}},'
            '{"id": "r", "type": "response", "data": {"text": "Our quotes take two minutes."}},'
            '{"id": "t", "type": "transfer", "data": {"text": "Transferring now."}}],'
            '"edges": [{"source": "q", "target": "r"}, {"source": "r", "target": "t"}]}\n'
            "```"
        )
        out = repair(raw)
        assert out.report.decisions == {"q": "spliced"}
        assert out.pathway.node("r") is None
        assert out.parsed.cleaned.startswith('{"nodes"')
