"""
Answer evaluation.

Two ``Evaluator`` implementations share one result shape:

- ``GeminiEvaluator`` asks the generative backend to grade the answer against
  a rubric and treats the reply as untrusted: it must parse as JSON, carry all
  five keys, and its scores are clamped and re-averaged locally.
- ``HeuristicEvaluator`` wraps the deterministic local scorer.

``EvaluationGateway`` composes them: the backend is tried under a timeout
and any failure at all is logged and answered by the heuristic, so callers
always receive a usable result.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, List, Optional, Protocol

from pydantic import BaseModel

from .errors import UpstreamEvaluationFailure
from .gemini_client import GeminiClient
from .scoring import DEFAULT_LEXICON, Lexicon, calculate_xp, clamp_score, score_answer
from .schemas import EvaluationRequest, EvaluationResult, ScoreDetail
from .settings import Settings


logger = logging.getLogger(__name__)


METHOD_DESCRIPTIONS = {
	"PREP": (
		"PREP法:\n"
		"- P (Point): 結論を先に述べる\n"
		"- R (Reason): 理由を説明する\n"
		"- E (Example): 具体例を挙げる\n"
		"- P (Point): 結論を繰り返す"
	),
	"STAR": (
		"STAR法:\n"
		"- S (Situation): 状況を説明する\n"
		"- T (Task): 課題・目標を述べる\n"
		"- A (Action): 取った行動を説明する\n"
		"- R (Result): 結果を述べる"
	),
	"DESC": (
		"DESC法:\n"
		"- D (Describe): 状況を客観的に描写する\n"
		"- E (Express): 自分の気持ちを表現する\n"
		"- S (Specify): 具体的な提案をする\n"
		"- C (Consequences): 結果や影響を述べる"
	),
	"SDS": (
		"SDS法:\n"
		"- S (Summary): 要約を述べる\n"
		"- D (Details): 詳細を説明する\n"
		"- S (Summary): 再度要約する"
	),
}

NO_FIXED_FORMAT = "特定のフォーマットなし"


def method_description(method: Optional[str]) -> str:
	if method and method in METHOD_DESCRIPTIONS:
		return METHOD_DESCRIPTIONS[method]
	return NO_FIXED_FORMAT


def build_evaluation_prompt(request: EvaluationRequest) -> str:
	method_name = request.method or "指定なし"
	return f"""
あなたは話し方トレーニングアプリの採点AIです。
以下の回答を採点し、JSON形式でフィードバックを返してください。

## 質問
{request.question}

## 使用メソッド
{method_name}
{method_description(request.method)}

## ユーザーの回答
{request.answer}

## 採点基準

### 1. 具体性 (specificity): 0-100点
- 抽象的な表現を避け、具体的なエピソードや数字があるか
- 「いい感じ」「頑張った」などの曖昧な表現を避けているか
- 5W1Hが明確か

### 2. 構造 (structure): 0-100点
- 指定されたメソッド（{request.method or 'なし'}）に沿っているか
- 論理的な流れがあるか
- 冗長な部分がないか

### 3. 説得力 (persuasiveness): 0-100点
- 理由や根拠が明確か
- 相手の立場を考慮しているか
- 結論が明確か

## 出力形式
以下のJSON形式で回答してください：

```json
{{
  "specificity": <0-100の整数>,
  "structure": <0-100の整数>,
  "persuasiveness": <0-100の整数>,
  "feedback": "<2-3文の総合フィードバック（日本語）>",
  "improvements": ["<改善点1>", "<改善点2>", "<改善点3>"]
}}
```

注意:
- 各スコアは0-100の整数で返してください
- feedbackは励ましつつ具体的な改善点を示してください
- improvementsは1-3個の簡潔な改善提案を返してください
- 回答が短すぎる場合や質問に答えていない場合は低いスコアをつけてください
""".strip()


class BackendEvaluation(BaseModel):
	"""Shape the backend must return; anything else counts as a failure."""
	specificity: float
	structure: float
	persuasiveness: float
	feedback: str
	improvements: List[str]


def result_from_backend(data: object, difficulty: Optional[int] = None) -> EvaluationResult:
	parsed = BackendEvaluation.model_validate(data)
	detail = ScoreDetail(
		specificity=clamp_score(parsed.specificity),
		structure=clamp_score(parsed.structure),
		persuasiveness=clamp_score(parsed.persuasiveness),
	)
	# Overall score is always recomputed from the clamped dimensions
	score = clamp_score((detail.specificity + detail.structure + detail.persuasiveness) / 3)
	return EvaluationResult(
		score=score,
		score_detail=detail,
		feedback=parsed.feedback,
		improvements=parsed.improvements[:3],
		xp_earned=calculate_xp(score, difficulty),
	)


# ============================================================================
# EVALUATORS
# ============================================================================

class Evaluator(Protocol):
	async def evaluate(self, request: EvaluationRequest) -> EvaluationResult: ...


class HeuristicEvaluator:
	def __init__(self, lexicon: Lexicon = DEFAULT_LEXICON) -> None:
		self.lexicon = lexicon

	async def evaluate(self, request: EvaluationRequest) -> EvaluationResult:
		return score_answer(request.answer, request.method, request.difficulty, self.lexicon)


ClientFactory = Callable[[], GeminiClient]


class GeminiEvaluator:
	def __init__(self, client_factory: ClientFactory) -> None:
		self.client_factory = client_factory

	async def evaluate(self, request: EvaluationRequest) -> EvaluationResult:
		client = self.client_factory()
		try:
			data = await client.generate_json(build_evaluation_prompt(request))
			return result_from_backend(data, request.difficulty)
		except Exception as err:
			raise UpstreamEvaluationFailure(f"{type(err).__name__}: {err}") from err
		finally:
			await client.aclose()


class EvaluationGateway:
	def __init__(
		self,
		primary: Optional[Evaluator],
		fallback: Optional[HeuristicEvaluator] = None,
		timeout: float = 30.0,
	) -> None:
		self.primary = primary
		self.fallback = fallback or HeuristicEvaluator()
		self.timeout = timeout

	@property
	def remote_available(self) -> bool:
		return self.primary is not None

	async def evaluate(self, request: EvaluationRequest) -> EvaluationResult:
		if self.primary is None:
			logger.info("Generative backend not configured, using heuristic evaluation")
			return await self.fallback.evaluate(request)
		try:
			result = await asyncio.wait_for(self.primary.evaluate(request), timeout=self.timeout)
			logger.debug("Backend evaluation succeeded (score=%s)", result.score)
			return result
		except Exception as err:
			logger.warning("Backend evaluation failed, falling back to heuristic: %r", err)
			return await self.fallback.evaluate(request)

	async def evaluate_many(self, requests: List[EvaluationRequest]) -> List[EvaluationResult]:
		return list(await asyncio.gather(*(self.evaluate(r) for r in requests)))


def build_gateway(config: Settings, client_factory: Optional[ClientFactory] = None) -> EvaluationGateway:
	primary: Optional[Evaluator] = None
	if config.gemini_configured:
		factory = client_factory or (lambda: GeminiClient(config=config))
		primary = GeminiEvaluator(factory)
	return EvaluationGateway(primary, HeuristicEvaluator(), timeout=config.gemini_timeout_seconds)
