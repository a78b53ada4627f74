import json
import logging
from pathlib import Path

import typer
from rich import print, print_json
from dotenv import find_dotenv, load_dotenv

from .errors import InvalidShape, MalformedPayload, PathflowError
from .settings import Settings
from .llm import LLM
from .pathway.convert import to_canonical, to_editor
from .pathway.normalize import normalize
from .pathway.pipeline import generate as generate_pathway
from .pathway.types import Pathway
from .store_memory import MemoryPathwayStore
from .store_sqlite import SQLitePathwayStore

app = typer.Typer(add_completion=False)


def _settings() -> Settings:
    load_dotenv(find_dotenv(usecwd=True))
    st = Settings()
    logging.basicConfig(level=st.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")
    return st


def _store(settings: Settings):
    if settings.store_backend == "memory":
        return MemoryPathwayStore(settings)
    return SQLitePathwayStore(settings)


def _read_json(path: Path) -> dict:
    return json.loads(path.read_text(encoding="utf-8"))


def _emit(data: dict, out: Path | None) -> None:
    text = json.dumps(data, indent=2)
    if out:
        out.write_text(text + "\n", encoding="utf-8")
        print(f"[green]OK[/green] wrote {out}")
    else:
        print_json(text)


@app.command()
def init_store():
    """Initialize the pathway store schema.

    - PATHFLOW_STORE=sqlite: creates the pathways table
    - PATHFLOW_STORE=memory: no-op
    """
    st = _settings()
    _store(st).ensure_schema()
    print(f"[green]OK[/green] schema ensured (store={st.store_backend})")


@app.command()
def generate(
    prompt: str,
    model: str = typer.Option(None, help="Provider model id; defaults to PATHFLOW_MODEL."),
    out: Path = typer.Option(None, help="Write the wire pathway here instead of stdout."),
    debug: bool = typer.Option(False, help="Show cleaned text and the repair report."),
):
    """Generate a call flow from a prompt, clean it up and repair its yes/no branches."""
    st = _settings()
    try:
        result = generate_pathway(llm=LLM(st), prompt=prompt, model=model)
    except MalformedPayload as exc:
        print(f"[red]Model output is not JSON:[/red] {exc}")
        if debug:
            print("\n[bold]Raw:[/bold]\n" + exc.raw)
            print("\n[bold]Cleaned:[/bold]\n" + exc.cleaned)
            print("\n[bold]Aggressive:[/bold]\n" + exc.aggressive)
        raise typer.Exit(code=1)
    except InvalidShape as exc:
        print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)
    except PathflowError as exc:
        print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1)

    if debug:
        print("\n[bold]Cleaned model output:[/bold]\n" + result.parsed.cleaned)
        print("\n[bold]Repairs:[/bold]")
        print(result.report.to_dict())
    _emit(result.pathway.to_wire(), out)


@app.command("normalize")
def normalize_cmd(path: Path, out: Path = typer.Option(None)):
    """Repair yes/no branches of a wire pathway JSON file."""
    _settings()
    result = normalize(Pathway.from_wire(_read_json(path)))
    for qid, case in result.report.decisions.items():
        print(f"- {qid}: {case}")
    _emit(result.pathway.to_wire(), out)


@app.command("to-editor")
def to_editor_cmd(path: Path, out: Path = typer.Option(None)):
    """Convert a wire pathway JSON file to the editor graph format."""
    _settings()
    _emit(to_editor(Pathway.from_wire(_read_json(path))), out)


@app.command("to-canonical")
def to_canonical_cmd(path: Path, out: Path = typer.Option(None)):
    """Convert an editor graph JSON file to the canonical wire format."""
    _settings()
    _emit(to_canonical(_read_json(path)).to_wire(), out)


@app.command()
def serve(host: str = "127.0.0.1", port: int = 8099):
    """Run the HTTP API. Requires: pip install -e .[server]"""
    _settings()
    import uvicorn
    uvicorn.run("pathflow.server:app", host=host, port=port, reload=False)


if __name__ == "__main__":
    app()
