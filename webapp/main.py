from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse
from pydantic import BaseModel

from assign_analyzer import (
	EMPTY_INPUT_MESSAGE,
	AnalysisArtifacts,
	AnalysisError,
	AssignmentAnalyzerEngine,
	Token,
)


app = FastAPI(title="Assignment Statement Analyzer", version="1.0.0")

app.add_middleware(
	CORSMiddleware,
	allow_origins=["*"],
	allow_credentials=True,
	allow_methods=["*"],
	allow_headers=["*"],
)


class AnalyzeRequest(BaseModel):
	# Example: "ABC[1, I] := ABC1 + 135;"
	line: str


def _token_json(token: Token) -> Dict[str, Any]:
	return {
		"kind": token.kind.name,
		"lexeme": token.lexeme,
		"value": token.value,
		"offset": token.offset,
	}


def _error_json(error: Optional[AnalysisError]) -> Optional[Dict[str, Any]]:
	if error is None:
		return None
	return {"kind": error.kind.name, "offset": error.offset, "message": error.message}


def _empty_input() -> Dict[str, Any]:
	return {"accepted": False, "output": EMPTY_INPUT_MESSAGE, "error": None}


def _analyze(line: str) -> AnalysisArtifacts:
	engine = AssignmentAnalyzerEngine()
	return engine.analyze(line)


@app.get("/", response_class=HTMLResponse)
def index() -> HTMLResponse:
	return HTMLResponse(
		"<h2>Assignment Statement Analyzer API</h2>"
		"<p>POST <code>/api/analyze</code> or <code>/api/semantics</code> with JSON: "
		"<code>{\"line\": \"X[1, I] := Y + 2;\"}</code></p>"
	)


@app.get("/health")
def health() -> Dict[str, str]:
	return {"status": "ok"}


@app.post("/api/analyze")
def analyze_line(req: AnalyzeRequest) -> Dict[str, Any]:
	if not req.line:
		return {**_empty_input(), "tokens": [], "duration_ms": 0.0}
	art = _analyze(req.line)
	return {
		"accepted": art.accepted,
		"output": art.verdict(),
		"tokens": [_token_json(t) for t in art.tokens],
		"error": _error_json(art.error),
		"duration_ms": art.duration_ms,
	}


@app.post("/api/semantics")
def semantics(req: AnalyzeRequest) -> Dict[str, Any]:
	"""Role classification of every identifier and constant, or the cursor report of the first error."""
	if not req.line:
		return {**_empty_input(), "identifiers": None, "constants": None, "roles": None}
	art = _analyze(req.line)
	return {
		"accepted": art.accepted,
		"output": art.semantics(),
		"identifiers": art.identifiers,
		"constants": art.constants,
		"roles": art.roles.as_dict() if art.accepted else None,
		"error": _error_json(art.error),
	}
