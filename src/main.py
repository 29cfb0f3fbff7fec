from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Dict, List, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import BaseModel, Field

from config import Configuration
from models import CandidateEntry, Matched, PlaceQuery, ScoreBreakdown
from services.cooldown import CooldownActive
from services.engine import Engine, InvalidQueryError


@asynccontextmanager
async def lifespan(app: FastAPI):
    load_dotenv()
    cfg = Configuration.from_env()
    logger.info("cfg: {}", cfg.log_summary())
    app.state.engine = Engine(cfg)
    try:
        yield
    finally:
        app.state.engine.close()


app = FastAPI(title="Place Resolver", lifespan=lifespan)


def _engine(request: Request) -> Engine:
    return request.app.state.engine


class ResolveRequest(BaseModel):
    name: str = Field(..., description="Place name as the user knows it")
    address: Optional[str] = Field(None, description="Free-form street address")
    lat: Optional[float] = Field(None, description="Latitude of the place")
    lon: Optional[float] = Field(None, description="Longitude of the place")

    def to_query(self) -> PlaceQuery:
        coordinate = None
        if self.lat is not None and self.lon is not None:
            coordinate = (self.lat, self.lon)
        return PlaceQuery(name=self.name, address=self.address, coordinate=coordinate)


class CandidatePayload(BaseModel):
    source: str
    language: str
    title: str
    summary: str
    lat: Optional[float] = None
    lon: Optional[float] = None
    thumbnail: Optional[str] = None


class ScorePayload(BaseModel):
    semantic: float
    geographic: float
    type: float
    weights: List[float]
    total: float
    confidence_threshold: float


class ResolveResponse(BaseModel):
    matched: bool
    reason: Optional[str] = None
    candidate: Optional[CandidatePayload] = None
    score: Optional[ScorePayload] = None


def _candidate_payload(entry: CandidateEntry) -> CandidatePayload:
    lat, lon = entry.coordinate if entry.coordinate else (None, None)
    return CandidatePayload(
        source=entry.source,
        language=entry.language,
        title=entry.title,
        summary=entry.summary,
        lat=lat,
        lon=lon,
        thumbnail=entry.thumbnail_ref,
    )


def _score_payload(score: ScoreBreakdown) -> ScorePayload:
    return ScorePayload(
        semantic=score.semantic,
        geographic=score.geographic,
        type=score.type,
        weights=list(score.weights),
        total=score.total,
        confidence_threshold=score.confidence_threshold,
    )


@app.get("/healthz")
def healthz() -> dict:
    return {"status": "ok"}


@app.post("/resolve", response_model=ResolveResponse)
async def resolve(req: ResolveRequest, request: Request):
    engine = _engine(request)
    try:
        result = await engine.resolve(req.to_query())
    except InvalidQueryError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except CooldownActive as exc:
        return JSONResponse(
            status_code=429,
            content={"detail": str(exc)},
            headers={"Retry-After": str(max(1, round(exc.retry_after)))},
        )
    except Exception as exc:
        logger.exception("resolve failed: {}", exc)
        raise HTTPException(status_code=500, detail="internal error")

    if isinstance(result, Matched):
        return ResolveResponse(
            matched=True,
            candidate=_candidate_payload(result.candidate),
            score=_score_payload(result.score),
        )
    return ResolveResponse(matched=False, reason=result.reason.value)


@app.post("/cache/invalidate")
def invalidate(req: ResolveRequest, request: Request) -> Dict[str, bool]:
    return {"removed": _engine(request).invalidate(req.to_query())}


@app.get("/cache/stats")
def cache_stats(request: Request) -> Dict[str, int]:
    return _engine(request).cache.stats()


@app.delete("/cache")
def clear_cache(request: Request) -> Dict[str, str]:
    _engine(request).cache.clear()
    logger.info("cache cleared")
    return {"status": "cleared"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8010, reload=True)
