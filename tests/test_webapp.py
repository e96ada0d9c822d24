import pytest
from fastapi.testclient import TestClient

from assign_analyzer import ACCEPTED_MESSAGE, EMPTY_INPUT_MESSAGE
from webapp.main import app


@pytest.fixture
def client():
	return TestClient(app)


def test_health(client):
	assert client.get("/health").json() == {"status": "ok"}


def test_index_page(client):
	resp = client.get("/")
	assert resp.status_code == 200
	assert "/api/analyze" in resp.text


def test_analyze_accepted(client):
	data = client.post("/api/analyze", json={"line": "X[i] := 5;"}).json()
	assert data["accepted"] is True
	assert data["output"] == f"X[i] := 5;\n{ACCEPTED_MESSAGE}"
	assert data["error"] is None
	assert data["tokens"][2] == {"kind": "IDENT", "lexeme": "i", "value": "I", "offset": 2}
	assert data["tokens"][5] == {"kind": "NUMBER", "lexeme": "5", "value": 5, "offset": 8}


def test_analyze_rejected(client):
	data = client.post("/api/analyze", json={"line": "ABC[1] := ABC + 1;"}).json()
	assert data["accepted"] is False
	assert data["error"] == {
		"kind": "SEMANTIC",
		"offset": 10,
		"message": "array cannot appear on the right-hand side",
	}
	assert data["output"].splitlines()[1] == " " * 10 + "^"


def test_analyze_empty_line(client):
	data = client.post("/api/analyze", json={"line": ""}).json()
	assert data["accepted"] is False
	assert data["output"] == EMPTY_INPUT_MESSAGE


def test_semantics_roles(client):
	data = client.post("/api/semantics", json={"line": "ABC[1,I,LF,25] := ABC1 + 135 - LF;"}).json()
	assert data["accepted"] is True
	assert data["roles"] == {
		"array_identifiers": ["ABC"],
		"index_identifiers": ["I", "LF"],
		"expression_identifiers": ["ABC1", "LF"],
		"index_constants": [1, 25],
		"expression_constants": [135],
	}
	assert data["constants"] == "1 - index\n25 - index\n135 - expression\n"
	assert data["output"] == data["identifiers"] + "\n" + data["constants"]


def test_semantics_error(client):
	data = client.post("/api/semantics", json={"line": "X := 0;"}).json()
	assert data["accepted"] is False
	assert data["roles"] is None
	assert data["error"]["kind"] == "SEMANTIC"


def test_missing_line_is_validation_error(client):
	assert client.post("/api/analyze", json={}).status_code == 422


def test_analyze_whitespace_only_line_reaches_analyzer(client):
	data = client.post("/api/analyze", json={"line": "   "}).json()
	assert data["accepted"] is False
	assert data["error"] == {"kind": "SYNTAX", "offset": 2, "message": "expected an identifier"}


def test_semantics_empty_line(client):
	data = client.post("/api/semantics", json={"line": ""}).json()
	assert data["accepted"] is False
	assert data["output"] == EMPTY_INPUT_MESSAGE
	assert data["roles"] is None
