"""
Local answer scoring.

Deterministic, backend-free evaluation used whenever the generative backend
is not configured or fails. It rates three dimensions from answer length plus
a few lexical cues, then picks feedback from a fixed ladder keyed on the
overall band and on which cues were missing.

Length proxy:
    base = min(len(answer) / 5, 100)

Dimensions (each clamped to 0-100):
    specificity    = base + 15 if numerals + 10 if specificity words
    structure      = base + 20 if the method's keywords appear
    persuasiveness = base + 15 if reasoning words

XP:
    round(10 * (1 + 0.2 * (difficulty - 1)) * (score / 100) * 10)
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Pattern

from .schemas import EvaluationResult, ScoreDetail


BASE_XP = 10
MIN_DIFFICULTY = 1
MAX_DIFFICULTY = 5


def round_half_up(value: float) -> int:
	return int(math.floor(value + 0.5))


def clamp_score(value: float) -> int:
	return max(0, min(100, round_half_up(value)))


def calculate_xp(score: int, difficulty: Optional[int] = None) -> int:
	"""XP for one answer; difficulty 1-5 scales the base from 1.0x to 1.8x."""
	level = MIN_DIFFICULTY if difficulty is None else max(MIN_DIFFICULTY, min(MAX_DIFFICULTY, int(difficulty)))
	multiplier = 1 + (level - 1) * 0.2
	return max(0, round_half_up(BASE_XP * multiplier * (score / 100) * 10))


# ============================================================================
# LEXICONS
# ============================================================================

@dataclass(frozen=True)
class FeedbackMessages:
	excellent: str = "素晴らしい回答です！構造的で具体的な内容になっています。"
	good: str = "良い回答です。いくつかのポイントを改善するとさらに良くなります。"
	fair: str = "基本的なポイントは押さえていますが、改善の余地があります。"
	poor: str = "回答をより具体的に、構造的にすることで大きく改善できます。"
	add_data: str = "具体的な数字やデータを入れるとより説得力が増します"
	follow_method: str = "{method}法の構造をより意識してみましょう"
	conclusion_first: str = "結論を最初に述べることを意識してみましょう"
	add_episode: str = "具体的な数字やエピソードを追加しましょう"
	state_reasons: str = "理由や根拠を明確に示しましょう"
	clarify_conclusion: str = "まず結論を明確にしましょう"
	add_examples: str = "具体的なエピソードや数字を入れましょう"
	explain_why: str = "理由を「なぜなら」を使って説明しましょう"


@dataclass(frozen=True)
class Lexicon:
	"""Locale-specific cue words and feedback text for the local scorer."""
	numerals: Pattern[str] = re.compile(r"[0-9０-９]")
	specificity_words: Pattern[str] = re.compile(r"(具体的|例えば|特に|実際|結果)")
	reasoning_words: Pattern[str] = re.compile(r"(なぜなら|理由|から|ため|よって|したがって)")
	method_keywords: Dict[str, Pattern[str]] = field(default_factory=lambda: {
		"PREP": re.compile(r"(結論|理由|例|具体例|したがって)"),
		"STAR": re.compile(r"(状況|課題|行動|結果)"),
		"DESC": re.compile(r"(状況|気持ち|提案|影響)"),
		"SDS": re.compile(r"(要約|詳細|まとめ)"),
	})
	messages: FeedbackMessages = field(default_factory=FeedbackMessages)


DEFAULT_LEXICON = Lexicon()


# ============================================================================
# SCORING
# ============================================================================

def _feedback_for(
	score: int,
	method: Optional[str],
	has_numbers: bool,
	has_structure: bool,
	has_reasoning: bool,
	messages: FeedbackMessages,
) -> tuple[str, List[str]]:
	improvements: List[str] = []
	if score >= 80:
		return messages.excellent, improvements
	if score >= 60:
		if not has_numbers:
			improvements.append(messages.add_data)
		if not has_structure and method:
			improvements.append(messages.follow_method.format(method=method))
		return messages.good, improvements
	if score >= 40:
		improvements.append(messages.conclusion_first)
		if not has_numbers:
			improvements.append(messages.add_episode)
		if not has_reasoning:
			improvements.append(messages.state_reasons)
		return messages.fair, improvements
	improvements.extend([messages.clarify_conclusion, messages.add_examples, messages.explain_why])
	return messages.poor, improvements


def score_answer(
	answer: str,
	method: Optional[str] = None,
	difficulty: Optional[int] = None,
	lexicon: Lexicon = DEFAULT_LEXICON,
) -> EvaluationResult:
	"""Score ``answer`` locally. Any string is valid input, including ""."""
	text = answer or ""
	base = min(len(text) / 5, 100)

	has_numbers = bool(lexicon.numerals.search(text))
	has_specific_words = bool(lexicon.specificity_words.search(text))
	specificity = clamp_score(base + (15 if has_numbers else 0) + (10 if has_specific_words else 0))

	method_pattern = lexicon.method_keywords.get(method) if method else None
	has_structure = bool(method_pattern.search(text)) if method_pattern else False
	structure = clamp_score(base + (20 if has_structure else 0))

	has_reasoning = bool(lexicon.reasoning_words.search(text))
	persuasiveness = clamp_score(base + (15 if has_reasoning else 0))

	score = clamp_score((specificity + structure + persuasiveness) / 3)
	feedback, improvements = _feedback_for(
		score, method, has_numbers, has_structure, has_reasoning, lexicon.messages
	)
	return EvaluationResult(
		score=score,
		score_detail=ScoreDetail(
			specificity=specificity,
			structure=structure,
			persuasiveness=persuasiveness,
		),
		feedback=feedback,
		improvements=improvements[:3],
		xp_earned=calculate_xp(score, difficulty),
	)
