"""Regulation recommendations for an engagement; not tied to a stored document."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter
from pydantic import AliasChoices, BaseModel, Field

from firm_docs.models.generation import RegulationRecommendation
from firm_docs.routes.documents import Caller, Engine

router = APIRouter(prefix="/regulations", tags=["regulations"])


class RecommendationBody(BaseModel):
    provider_id: str = Field(validation_alias=AliasChoices("provider_id", "providerId"))
    project_type: str = Field(
        default="", validation_alias=AliasChoices("project_type", "projectType")
    )
    industry: str = ""
    business_scope: str = Field(
        default="", validation_alias=AliasChoices("business_scope", "businessScope")
    )
    additional_info: str = Field(
        default="", validation_alias=AliasChoices("additional_info", "additionalInfo")
    )

    def context_fields(self) -> dict[str, Any]:
        return self.model_dump(exclude={"provider_id"})


@router.post("/recommendations", response_model=RegulationRecommendation)
async def recommend_regulations(body: RecommendationBody, engine: Engine, caller: Caller):
    return await engine.recommend_regulations(body.provider_id, body.context_fields(), caller)
