from __future__ import annotations

from dataclasses import dataclass

from .convert import canonicalize
from .ingest import ParsedPayload, parse_model_output
from .normalize import RepairReport, normalize
from .types import Pathway
from ..errors import MissingPrompt
from ..llm import LLM


@dataclass
class Generated:
    pathway: Pathway
    report: RepairReport
    parsed: ParsedPayload


def repair(raw_text: str) -> Generated:
    # cleanup
    parsed = parse_model_output(raw_text)
    # repair
    out = normalize(Pathway.from_wire(parsed.data))
    return Generated(pathway=canonicalize(out.pathway), report=out.report, parsed=parsed)


def generate(*, llm: LLM, prompt: str, model: str | None = None) -> Generated:
    if not (prompt or "").strip():
        raise MissingPrompt()
    raw = llm.generate_pathway_text(prompt, model=model)
    return repair(raw)
