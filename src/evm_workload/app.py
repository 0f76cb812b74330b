import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI, HTTPException
from pydantic import BaseModel, NonNegativeFloat, NonNegativeInt, PositiveInt

from evm_workload.config import RunConfig, load_config
from evm_workload.errors import ConfigError
from evm_workload.logging_config import setup_logging
from evm_workload.workload import Workload

setup_logging()
log = logging.getLogger("evm_workload.app")


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.workload = None
    app.state.task = None
    try:
        app.state.cfg = load_config()
    except ConfigError as e:
        log.error("Invalid configuration: %s", e)
        raise
    log.info("Workload service ready (rpc=%s)", app.state.cfg["rpc"].get("url"))
    try:
        yield
    finally:
        task = app.state.task
        if task is not None and not task.done():
            log.info("Shutting down, cancelling run %s", app.state.workload.report.run_id)
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        log.info("Shutdown complete")


app = FastAPI(
    title="EVM Workload",
    lifespan=lifespan,
    openapi_tags=[
        {"name": "Workload", "description": "Start and inspect transaction runs"},
    ],
)

r_workload = APIRouter(prefix="/workload", tags=["Workload"])


class RunReq(BaseModel):
    wallets: PositiveInt | None = None
    txns: PositiveInt | None = None
    wait: NonNegativeFloat | None = None
    max_concurrency: NonNegativeInt | None = None
    rpc_url: str | None = None


class RunResp(BaseModel):
    run_id: str
    state: str


@app.get("/health")
def health():
    return {"status": "ok"}


@r_workload.post("/run", response_model=RunResp, status_code=202)
async def start_run(req: RunReq | None = None):
    task = app.state.task
    if task is not None and not task.done():
        raise HTTPException(status_code=409, detail=f"run {app.state.workload.report.run_id} still in progress")

    req = req or RunReq()
    conf = RunConfig.from_config(app.state.cfg, **req.model_dump())
    try:
        conf.validate()
    except ConfigError as e:
        raise HTTPException(status_code=400, detail=str(e))

    workload = Workload(conf)
    app.state.workload = workload
    app.state.task = asyncio.create_task(workload.run(), name=f"run-{workload.report.run_id}")
    return RunResp(run_id=workload.report.run_id, state=str(workload.state))


@r_workload.get("/status")
async def run_status():
    workload = app.state.workload
    if workload is None:
        raise HTTPException(status_code=404, detail="no run has been started")
    return workload.report.to_dict()


app.include_router(r_workload)
