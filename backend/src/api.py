import logging
import os
from typing import List, Optional

import sentry_sdk
from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
from sentry_sdk.integrations.aws_lambda import AwsLambdaIntegration

from analysis.analyze import analyze
from analysis.core_analysis import AoEAbility, BuffExtensionSettings, CoreAnalysisConfig
from report import Fight, InvalidFight

SENTRY_DSN = os.environ.get("SENTRY_DSN")
SENTRY_ENABLED = os.environ.get("AWS_EXECUTION_ENV") is not None and bool(SENTRY_DSN)
if SENTRY_ENABLED:
    sentry_sdk.init(
        dsn=SENTRY_DSN,
        traces_sample_rate=float(os.environ.get("SENTRY_TRACES_SAMPLE_RATE", 0.05)),
        attach_stacktrace=True,
        integrations=[AwsLambdaIntegration()],
    )
app = FastAPI()

CORS_ALLOW_ORIGINS = os.environ.get(
    "CORS_ALLOW_ORIGINS",
    "http://localhost:5173,https://www.warcraftlogs.com",
).split(",")


async def catch_exceptions_middleware(request, call_next):
    try:
        return await call_next(request)
    except Exception as e:
        logging.exception(e)
        return Response("Internal server error", status_code=500)


# Add this middleware first so 500 errors have CORS headers
app.middleware("http")(catch_exceptions_middleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOW_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)


class Actor(BaseModel):
    id: int
    name: Optional[str] = None
    type: Optional[str] = None
    hostile: bool = False
    pets: List[int] = Field(default_factory=list)


class AnalyzeRequest(BaseModel):
    source_id: Optional[int] = None
    encounter: Optional[str] = None
    events: List[dict]
    actors: List[Actor] = Field(default_factory=list)
    aoe_abilities: List[AoEAbility] = Field(default_factory=list)
    buff_extensions: BuffExtensionSettings = Field(
        default_factory=BuffExtensionSettings
    )


class AnalyzeResponse(BaseModel):
    data: dict


@app.post("/analyze_fight")
def analyze_fight(request: AnalyzeRequest, response: Response):
    try:
        fight = Fight(
            request.events,
            [actor.model_dump() for actor in request.actors],
            source_id=request.source_id,
            encounter_name=request.encounter,
        )
    except InvalidFight as e:
        response.status_code = 400
        return {"error": str(e)}

    logging.info(
        f"Analyzing {len(request.events)} events for source {request.source_id}"
    )
    config = CoreAnalysisConfig(request.aoe_abilities, request.buff_extensions)
    return AnalyzeResponse(data=analyze(fight, config))
