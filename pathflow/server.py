from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from dotenv import find_dotenv, load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .errors import InvalidShape, MalformedPayload, MissingPrompt, UpstreamUnavailable
from .llm import LLM
from .pathway.convert import to_canonical, to_editor
from .pathway.normalize import normalize
from .pathway.pipeline import generate
from .pathway.types import Pathway
from .settings import Settings
from .store_memory import MemoryPathwayStore
from .store_sqlite import SQLitePathwayStore

logger = logging.getLogger(__name__)


@dataclass
class AppState:
    settings: Settings
    llm: LLM
    store: Any


def make_state(settings: Settings | None = None) -> AppState:
    st = settings or Settings()
    llm = LLM(st)

    if st.store_backend == "memory":
        store = MemoryPathwayStore(st)
    else:
        store = SQLitePathwayStore(st)
    store.ensure_schema()

    return AppState(settings=st, llm=llm, store=store)


class GenerateRequest(BaseModel):
    prompt: str | None = None
    model: str | None = None
    debug: bool = False


class SavePathwayRequest(BaseModel):
    name: str = ""
    description: str = ""
    nodes: list[dict[str, Any]]
    edges: list[dict[str, Any]]


load_dotenv(find_dotenv(usecwd=True))

app = FastAPI(title="pathflow", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

STATE = make_state()


@app.get("/health")
def health():
    return {
        "ok": True,
        "store": STATE.settings.store_backend,
        "mock_llm": STATE.settings.mock_llm,
        "model": STATE.settings.default_model,
    }


@app.post("/generate-pathway")
def generate_pathway(body: GenerateRequest):
    """Prompt -> model text -> cleanup -> normalize -> wire pathway.

    Errors come back as {"error", "message"?, ...}: 400 without a prompt,
    401 without provider credentials, 500 for anything else. With debug=true
    the raw and cleaned model text ride along.
    """
    debug = body.debug
    model = body.model or STATE.settings.default_model
    logger.info("generate-pathway model=%s prompt=%r", model, (body.prompt or "")[:200])

    try:
        out = generate(llm=STATE.llm, prompt=body.prompt or "", model=model)
    except MissingPrompt as exc:
        return JSONResponse(status_code=400, content={"error": str(exc)})
    except UpstreamUnavailable as exc:
        logger.error("provider failure: %s", exc)
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": "Failed to generate pathway", "message": str(exc)},
        )
    except MalformedPayload as exc:
        logger.error("model output is not JSON: %s", exc)
        content: dict[str, Any] = {"error": "Failed to parse JSON", "message": str(exc)}
        if debug:
            content.update(
                rawContent=exc.raw,
                cleanedContent=exc.cleaned,
                moreAggressiveCleaning=exc.aggressive,
            )
        return JSONResponse(status_code=500, content=content)
    except InvalidShape as exc:
        logger.error("model output has the wrong shape: %s", exc)
        content = {"error": str(exc)}
        if debug:
            content.update(parsedContent=exc.parsed, rawContent=exc.raw)
        return JSONResponse(status_code=500, content=content)

    logger.info(
        "generated pathway with %d nodes and %d edges", len(out.pathway.nodes), len(out.pathway.edges)
    )
    result = out.pathway.to_wire()
    if debug:
        result["_debug"] = {
            "rawContent": out.parsed.raw,
            "cleanedContent": out.parsed.cleaned,
            "moreAggressiveCleaning": out.parsed.aggressive,
            "repairs": out.report.to_dict(),
        }
    return result


@app.post("/pathways/normalize")
def normalize_pathway(body: dict):
    """Run the repair pass on a wire pathway; returns {pathway, report}."""
    out = normalize(Pathway.from_wire(body))
    return {"pathway": out.pathway.to_wire(), "report": out.report.to_dict()}


@app.post("/pathways/canonical")
def canonical(body: dict):
    return to_canonical(body).to_wire()


@app.post("/pathways/editor")
def editor(body: dict):
    return to_editor(Pathway.from_wire(body))


@app.get("/pathways")
def list_pathways(limit: int = 100):
    return {"pathways": STATE.store.list(limit=limit)}


@app.put("/pathways/{pathway_id}")
def save_pathway(pathway_id: str, body: SavePathwayRequest):
    """Save an editor graph as-is (converted to canonical, no repair pass)."""
    pathway = to_canonical({"nodes": body.nodes, "edges": body.edges})
    STATE.store.save(pathway_id, pathway, name=body.name, description=body.description)
    return {"ok": True, "id": pathway_id, "pathway": pathway.to_wire()}


@app.get("/pathways/{pathway_id}")
def load_pathway(pathway_id: str):
    pathway = STATE.store.load(pathway_id)
    if pathway is None:
        return JSONResponse(status_code=404, content={"error": "pathway_not_found", "id": pathway_id})
    return to_editor(pathway)
