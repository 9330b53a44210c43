import asyncio
import json
import logging

import httpx
import pytest

from hanatore.errors import UpstreamEvaluationFailure
from hanatore.evaluation import (
	NO_FIXED_FORMAT,
	EvaluationGateway,
	GeminiEvaluator,
	build_evaluation_prompt,
	build_gateway,
	result_from_backend,
)
from hanatore.gemini_client import GeminiClient, parse_json_response
from hanatore.schemas import EvaluationRequest
from hanatore.scoring import score_answer
from hanatore.settings import Settings


def _request(answer: str = "結論から言うと、3つの理由があります。", **kwargs) -> EvaluationRequest:
	params = {"question": "進捗を報告してください", "answer": answer, "method": "PREP", "difficulty": 2}
	params.update(kwargs)
	return EvaluationRequest(**params)


def _backend_payload(**overrides) -> dict:
	payload = {
		"specificity": 80,
		"structure": 70,
		"persuasiveness": 90,
		"feedback": "よくできています。",
		"improvements": ["数字を増やす"],
	}
	payload.update(overrides)
	return payload


class _FakeClient:
	def __init__(self, reply=None, error: Exception | None = None, delay: float = 0.0) -> None:
		self.reply = reply
		self.error = error
		self.delay = delay
		self.closed = False
		self.prompts = []

	async def generate_json(self, prompt: str):
		self.prompts.append(prompt)
		if self.delay:
			await asyncio.sleep(self.delay)
		if self.error is not None:
			raise self.error
		return self.reply

	async def aclose(self) -> None:
		self.closed = True


class _RaisingEvaluator:
	async def evaluate(self, request):
		raise RuntimeError("backend down")


# ---------------------------------------------------------------------------
# JSON parsing
# ---------------------------------------------------------------------------

def test_parse_fenced_block() -> None:
	text = 'Here you go:\n```json\n{"structure": 50}\n```\nThanks'
	assert parse_json_response(text) == {"structure": 50}


def test_parse_bare_body() -> None:
	assert parse_json_response('  {"structure": 50}  ') == {"structure": 50}


def test_parse_retries_after_stripping_unclosed_fence() -> None:
	assert parse_json_response('```json{"structure": 50}') == {"structure": 50}


def test_parse_gives_up_on_prose() -> None:
	with pytest.raises(json.JSONDecodeError):
		parse_json_response("I cannot grade this answer.")


# ---------------------------------------------------------------------------
# Backend result validation
# ---------------------------------------------------------------------------

def test_backend_scores_are_clamped_and_rescored() -> None:
	data = _backend_payload(
		specificity=150,
		structure=-20,
		persuasiveness=70,
		score=99,
		improvements=["a", "b", "c", "d", "e"],
	)
	result = result_from_backend(data)
	assert result.score_detail.specificity == 100
	assert result.score_detail.structure == 0
	assert result.score_detail.persuasiveness == 70
	assert result.score == 57
	assert result.improvements == ["a", "b", "c"]
	assert result.xp_earned == 57


def test_backend_result_uses_difficulty_for_xp() -> None:
	result = result_from_backend(_backend_payload(), difficulty=3)
	assert result.score == 80
	assert result.xp_earned == 112


@pytest.mark.parametrize(
	"data",
	[
		{"specificity": 80, "structure": 70, "feedback": "x", "improvements": []},
		_backend_payload(structure="high"),
		_backend_payload(improvements="not a list"),
		["not", "an", "object"],
	],
)
def test_backend_result_rejects_malformed_payload(data) -> None:
	with pytest.raises(Exception):
		result_from_backend(data)


# ---------------------------------------------------------------------------
# Prompt
# ---------------------------------------------------------------------------

def test_prompt_embeds_question_method_and_answer() -> None:
	prompt = build_evaluation_prompt(_request())
	assert "進捗を報告してください" in prompt
	assert "P (Point): 結論を先に述べる" in prompt
	assert "結論から言うと、3つの理由があります。" in prompt
	assert '"persuasiveness"' in prompt


def test_prompt_for_unknown_method() -> None:
	prompt = build_evaluation_prompt(_request(method="ロジックツリー"))
	assert NO_FIXED_FORMAT in prompt


# ---------------------------------------------------------------------------
# Gateway
# ---------------------------------------------------------------------------

def test_unconfigured_gateway_uses_heuristic(caplog) -> None:
	gateway = EvaluationGateway(primary=None)
	request = _request()
	with caplog.at_level(logging.INFO, logger="hanatore.evaluation"):
		result = asyncio.run(gateway.evaluate(request))
	assert result == score_answer(request.answer, request.method, request.difficulty)
	assert "not configured" in caplog.text


def test_gateway_returns_backend_result() -> None:
	client = _FakeClient(reply=_backend_payload())
	gateway = EvaluationGateway(GeminiEvaluator(lambda: client))
	result = asyncio.run(gateway.evaluate(_request()))
	assert result.score == 80
	assert result.feedback == "よくできています。"
	assert result.xp_earned == 96
	assert client.closed is True
	assert len(client.prompts) == 1


@pytest.mark.parametrize("answer", ["", "はい", "結論として売上は3割伸びました。" * 10])
def test_gateway_falls_back_when_backend_raises(answer: str) -> None:
	gateway = EvaluationGateway(_RaisingEvaluator())
	request = _request(answer=answer)
	result = asyncio.run(gateway.evaluate(request))
	assert result == score_answer(answer, request.method, request.difficulty)


def test_empty_answer_fallback_scores_low() -> None:
	gateway = EvaluationGateway(_RaisingEvaluator())
	result = asyncio.run(gateway.evaluate(_request(answer="")))
	assert result.score <= 30


def test_gateway_falls_back_on_timeout() -> None:
	client = _FakeClient(reply=_backend_payload(), delay=1.0)
	gateway = EvaluationGateway(GeminiEvaluator(lambda: client), timeout=0.01)
	request = _request()
	result = asyncio.run(gateway.evaluate(request))
	assert result == score_answer(request.answer, request.method, request.difficulty)


def test_gateway_falls_back_on_malformed_reply() -> None:
	client = _FakeClient(reply={"specificity": 90})
	gateway = EvaluationGateway(GeminiEvaluator(lambda: client))
	request = _request()
	result = asyncio.run(gateway.evaluate(request))
	assert result == score_answer(request.answer, request.method, request.difficulty)
	assert client.closed is True


def test_gemini_evaluator_wraps_failures() -> None:
	evaluator = GeminiEvaluator(lambda: _FakeClient(error=ValueError("bad json")))
	with pytest.raises(UpstreamEvaluationFailure) as excinfo:
		asyncio.run(evaluator.evaluate(_request()))
	assert excinfo.value.to_dict()["error"] == "upstream_evaluation_failure"


def test_evaluate_many_keeps_order() -> None:
	gateway = EvaluationGateway(primary=None)
	requests = [_request(answer="あ" * n) for n in (0, 100, 500)]
	results = asyncio.run(gateway.evaluate_many(requests))
	assert [r.score for r in results] == [0, 20, 100]


def test_build_gateway_follows_settings() -> None:
	assert build_gateway(Settings(GEMINI_API_KEY="")).remote_available is False
	gateway = build_gateway(Settings(GEMINI_API_KEY="secret", GEMINI_TIMEOUT_SECONDS=5))
	assert gateway.remote_available is True
	assert gateway.timeout == 5


# ---------------------------------------------------------------------------
# Gemini over HTTP
# ---------------------------------------------------------------------------

def _gemini_reply(text: str) -> dict:
	return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def test_gemini_client_round_trip_through_gateway() -> None:
	seen = []

	def handler(request: httpx.Request) -> httpx.Response:
		seen.append(request)
		body = "```json\n" + json.dumps(_backend_payload(structure=120)) + "\n```"
		return httpx.Response(200, json=_gemini_reply(body))

	factory = lambda: GeminiClient(api_key="k", model="gemini-test", transport=httpx.MockTransport(handler))
	gateway = EvaluationGateway(GeminiEvaluator(factory))
	result = asyncio.run(gateway.evaluate(_request()))

	assert result.score_detail.structure == 100
	assert result.score == 90
	assert seen[0].url.params["key"] == "k"
	assert "gemini-test:generateContent" in str(seen[0].url)
	prompt = json.loads(seen[0].content)["contents"][0]["parts"][0]["text"]
	assert "PREP法" in prompt


def test_vertex_provider_sends_key_in_header() -> None:
	seen = []

	def handler(request: httpx.Request) -> httpx.Response:
		seen.append(request)
		return httpx.Response(200, json=_gemini_reply("ok"))

	config = Settings(GEMINI_API_KEY="k", GEMINI_PROVIDER="vertex", GEMINI_VERTEX_PROJECT="proj")
	client = GeminiClient(config=config, transport=httpx.MockTransport(handler))
	assert asyncio.run(client.generate("hello")) == "ok"
	assert seen[0].headers["x-goog-api-key"] == "k"
	assert "projects/proj" in str(seen[0].url)
	asyncio.run(client.aclose())


def test_http_error_falls_back_to_heuristic() -> None:
	def handler(request: httpx.Request) -> httpx.Response:
		return httpx.Response(503, json={"error": "unavailable"})

	factory = lambda: GeminiClient(api_key="k", transport=httpx.MockTransport(handler))
	gateway = EvaluationGateway(GeminiEvaluator(factory))
	request = _request()
	result = asyncio.run(gateway.evaluate(request))
	assert result == score_answer(request.answer, request.method, request.difficulty)


def test_client_requires_api_key() -> None:
	with pytest.raises(ValueError):
		GeminiClient(config=Settings(GEMINI_API_KEY=""))
