import logging
import os
from typing import Optional, Union

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from backend.db import log_saved_scenario, log_uptake_run, recent_uptake_runs
from core.coefficients import get_experiment
from core.errors import ValidationError
from core.metrics import build_wtp_table, compute_cost_benefit, wtp_risk_comparison
from core.session import DecisionSession
from core.state_store import build_scenario

logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO"))
logger = logging.getLogger(__name__)

app = FastAPI(title="T2DM Health Plan Uptake Decision Aid API")
app.state.session = DecisionSession()

# CORS middleware for frontend integration
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, specify actual origins
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Pydantic models
Level = Union[str, int, None]

class ScenarioRequest(BaseModel):
    experiment: Level = None
    efficacy: Level = None
    risk: Level = None
    cost: Level = None
    efficacy_others: Level = None
    risk_others: Level = None
    cost_others: Level = None

class CostBenefitRequest(BaseModel):
    qaly_scenario: str
    uptake_probability: Optional[float] = None


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    logger.info("rejected %s: %s", request.url.path, exc)
    return JSONResponse(status_code=422, content={"detail": str(exc), "errors": exc.errors})


def session() -> DecisionSession:
    return app.state.session


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"ok": True}

@app.post("/uptake")
async def compute_uptake(request: ScenarioRequest):
    """Predict plan uptake for a scenario and make it the session's current one"""
    scenario = build_scenario(**request.model_dump())
    result = session().compute(scenario)

    response = {
        "experiment": scenario.experiment.value,
        "probability": round(result.probability, 2),
        "tier": result.tier,
        "message": result.message,
    }

    # Log the run
    log_uptake_run(scenario.experiment.value, request.model_dump(), response)

    return response

@app.get("/wtp-comparison")
async def wtp_comparison():
    """Average risk WTP across experiments that have saved scenarios"""
    return wtp_risk_comparison(session().store.list())

@app.get("/wtp/{experiment}")
async def wtp_table(experiment: str):
    exp = get_experiment(experiment)
    return {
        "experiment": exp.value,
        "records": [r.__dict__ for r in build_wtp_table(exp)],
    }

@app.post("/cost-benefit")
async def cost_benefit(request: CostBenefitRequest):
    """Cost/QALY analysis for an explicit uptake or the session's last result"""
    if request.uptake_probability is None:
        cb = session().cost_benefit(request.qaly_scenario)
    else:
        cb = compute_cost_benefit(request.uptake_probability, request.qaly_scenario)
    return cb.__dict__

@app.post("/scenarios")
async def save_scenario():
    """Save the session's last computed scenario"""
    saved = session().save()
    row = saved.as_row()
    log_saved_scenario(row)
    return row

@app.get("/scenarios")
async def list_scenarios(experiment: Optional[str] = None):
    exp = get_experiment(experiment) if experiment else None
    return [s.as_row() for s in session().store.filter(exp)]

@app.delete("/scenarios")
async def clear_scenarios():
    session().reset()
    return {"ok": True}

@app.get("/runs")
async def runs(limit: int = 20):
    """Most recent uptake computations from the run log"""
    return recent_uptake_runs(limit)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
