import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import FastAPI, APIRouter, Depends, HTTPException

from helper.jwt_helper import get_user
from quiz.generator import GenerationError, generator_from_env
from schema.db import Question

ai_app = FastAPI()

protected_router = APIRouter(dependencies=[Depends(get_user)])

generator = generator_from_env()

logger = logging.getLogger(__name__)


@dataclass
class GenerateReq:
    difficulty: int
    category: Optional[str] = None


@protected_router.post("/generate-question")
async def generate_question(req: GenerateReq) -> Question:
    if not 1 <= req.difficulty <= 15:
        raise HTTPException(422, "difficulty must be between 1 and 15")
    if generator is None:
        raise HTTPException(503, "Question generator is not configured")
    try:
        return await generator.generate_question(req.difficulty, req.category)
    except GenerationError:
        logger.error("Question generation failed", exc_info=True)
        raise HTTPException(502, "AI error")


ai_app.include_router(protected_router)
