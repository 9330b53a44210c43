from __future__ import annotations

from typing import List, Optional, Tuple

from .errors import NotFoundError
from .schemas import PublicQuestion, Question, TrainingMode, TrainingType


# Defined at deploy time, read-only at runtime
QUESTION_BANK: Tuple[Question, ...] = (
	Question(
		id="q-001",
		mode=TrainingMode.BUSINESS,
		training_type=TrainingType.STRUCTURED,
		method="PREP",
		title="上司に進捗報告をしてください。プロジェクトは予定より1週間遅れています。",
		context="あなたは新規サービス開発プロジェクトのリーダーです。週次ミーティングで上司に状況を報告する場面です。",
		hint="PREP法を使いましょう: Point(結論) → Reason(理由) → Example(具体例) → Point(結論)",
		sample_answer=(
			"結論から申し上げますと、プロジェクトは1週間遅延しております。"
			"理由は、外部APIの仕様変更により追加開発が必要になったためです。"
			"具体的には、認証フローの再実装に3日、テストに2日を要しました。"
			"したがって、リリースは来週金曜日となる見込みです。"
		),
		difficulty=2,
		is_premium=False,
	),
	Question(
		id="q-002",
		mode=TrainingMode.BUSINESS,
		training_type=TrainingType.STRUCTURED,
		method="PREP",
		title="新しいツールの導入を提案してください。",
		context="チームの生産性向上のため、新しいプロジェクト管理ツールの導入を提案します。",
		hint="なぜ必要か、どんなメリットがあるかを具体的に説明しましょう。",
		difficulty=2,
		is_premium=False,
	),
	Question(
		id="q-003",
		mode=TrainingMode.BUSINESS,
		training_type=TrainingType.QUICK,
		method=None,
		title="会議の終了時間が迫っています。議論をまとめてください。",
		context="1時間の会議の残り5分。まだ結論が出ていません。",
		hint="30秒以内に、決定事項・保留事項・次のアクションをまとめましょう。",
		difficulty=3,
		is_premium=False,
	),
	Question(
		id="q-004",
		mode=TrainingMode.PRESENTATION,
		training_type=TrainingType.STRUCTURED,
		method="STAR",
		title="前職での成功体験を面接官に説明してください。",
		context="転職面接で、これまでの実績をアピールする場面です。",
		hint="STAR法を使いましょう: Situation(状況) → Task(課題) → Action(行動) → Result(結果)",
		difficulty=3,
		is_premium=False,
	),
	Question(
		id="q-005",
		mode=TrainingMode.PRESENTATION,
		training_type=TrainingType.STRUCTURED,
		method="5W1H",
		title="新サービスの企画を経営陣にプレゼンしてください。",
		context="3分間で新規事業の概要を伝える必要があります。",
		hint="5W1Hで整理: Why(なぜ) → What(何を) → Who(誰に) → When(いつ) → Where(どこで) → How(どうやって)",
		difficulty=4,
		is_premium=True,
	),
	Question(
		id="q-006",
		mode=TrainingMode.ONE_ON_ONE,
		training_type=TrainingType.AI_DIALOG,
		method=None,
		title="部下のモチベーション低下について話し合います。",
		context="最近、部下の仕事への意欲が下がっているように見えます。1on1で状況を聞き出しましょう。",
		hint="傾聴を心がけ、オープンクエスチョンを使いましょう。",
		difficulty=3,
		is_premium=True,
	),
	Question(
		id="q-007",
		mode=TrainingMode.DAILY_TALK,
		training_type=TrainingType.QUICK,
		method=None,
		title="初対面の人と雑談をしてください。",
		context="社内の懇親会で、他部署の人と話すことになりました。",
		hint="相手に興味を持ち、質問を交えながら会話を広げましょう。",
		difficulty=1,
		is_premium=False,
	),
	Question(
		id="q-008",
		mode=TrainingMode.THINKING,
		training_type=TrainingType.STRUCTURED,
		method="ロジックツリー",
		title="売上が下がった原因を分析してください。",
		context="前月比で売上が20%減少しました。原因を特定する必要があります。",
		hint="ロジックツリーで要因を分解: 売上 = 客数 × 客単価 → それぞれの要因を深掘り",
		difficulty=4,
		is_premium=True,
	),
	Question(
		id="q-009",
		mode=TrainingMode.BUSINESS,
		training_type=TrainingType.QUICK,
		method=None,
		title="エレベーターピッチ: 30秒で自己紹介をしてください。",
		context="カンファレンスで偶然、業界の有名人とエレベーターで一緒になりました。",
		hint="自分の強みと相手へのメリットを簡潔に伝えましょう。",
		difficulty=2,
		is_premium=False,
	),
	Question(
		id="q-010",
		mode=TrainingMode.PRESENTATION,
		training_type=TrainingType.QUICK,
		method=None,
		title="急な質問に答えてください: 「なぜ御社を志望しましたか？」",
		context="面接で予想外の質問をされました。",
		hint="結論から話し、具体的なエピソードを添えましょう。",
		difficulty=2,
		is_premium=False,
	),
)

DAILY_QUESTION_COUNT = 5


def get_question(question_id: str) -> Question:
	for question in QUESTION_BANK:
		if question.id == question_id:
			return question
	raise NotFoundError("Question not found")


def list_questions(
	mode: Optional[TrainingMode] = None,
	training_type: Optional[TrainingType] = None,
	difficulty: Optional[int] = None,
	limit: int = 10,
	offset: int = 0,
) -> Tuple[List[PublicQuestion], int]:
	"""Filtered page of public questions plus the filtered total."""
	matches = [
		q for q in QUESTION_BANK
		if (mode is None or q.mode == mode)
		and (training_type is None or q.training_type == training_type)
		and (difficulty is None or q.difficulty == difficulty)
	]
	page = matches[offset:offset + limit]
	return [q.public() for q in page], len(matches)


def daily_questions() -> List[PublicQuestion]:
	return [q.public() for q in QUESTION_BANK if not q.is_premium][:DAILY_QUESTION_COUNT]
