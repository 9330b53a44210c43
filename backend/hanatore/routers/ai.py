from __future__ import annotations

from fastapi import APIRouter, Depends

from ..deps import get_gateway
from ..evaluation import EvaluationGateway
from ..schemas import AIStatus, EvaluationRequest, EvaluationResult
from ..settings import settings


router = APIRouter(prefix="/ai", tags=["ai"])


@router.post("/evaluate", response_model=EvaluationResult)
async def evaluate(req: EvaluationRequest, gateway: EvaluationGateway = Depends(get_gateway)):
	return await gateway.evaluate(req)


@router.get("/status", response_model=AIStatus)
def status(gateway: EvaluationGateway = Depends(get_gateway)):
	return AIStatus(available=gateway.remote_available, model=settings.gemini_model)
