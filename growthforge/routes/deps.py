"""Shared FastAPI dependencies for routers"""
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from growthforge.database import get_db
from growthforge.services.generation import GenerationPipeline
from growthforge.services.google_oauth import GoogleOAuthClient
from growthforge.services.llm_client import LLMClient, get_llm_client
from growthforge.services.persister import Persister


def get_llm() -> LLMClient:
    return get_llm_client()


def get_oauth_client() -> GoogleOAuthClient:
    return GoogleOAuthClient()


async def get_pipeline(
    db: AsyncSession = Depends(get_db),
    llm: LLMClient = Depends(get_llm),
) -> GenerationPipeline:
    return GenerationPipeline(db, llm)


async def get_persister(db: AsyncSession = Depends(get_db)) -> Persister:
    return Persister(db)
