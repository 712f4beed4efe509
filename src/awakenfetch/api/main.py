import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from awakenfetch.api.deps import get_registry
from awakenfetch.api.proxy import router as proxy_router
from awakenfetch.api.schemas.proxy import ErrorResponse
from awakenfetch.container import Container
from awakenfetch.exceptions import ProxyError
from awakenfetch.infra.blockchain.registry import ChainAdapterRegistry, ChainInfo

logger = logging.getLogger("awakenfetch.api")

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    container = Container()
    app.state.container = container
    if container.settings().debug:
        logging.getLogger("awakenfetch").setLevel(logging.DEBUG)
    yield
    http_client = container.http_client()
    await http_client.close()


app = FastAPI(title="AwakenFetch", version=VERSION, lifespan=lifespan)


@app.exception_handler(ProxyError)
async def proxy_error_handler(request: Request, exc: ProxyError):
    return JSONResponse(status_code=exc.status_code, content=ErrorResponse(error=exc.message).model_dump())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    tb = traceback.format_exception(type(exc), exc, exc.__traceback__)
    logger.error("Unhandled error on %s %s:\n%s", request.method, request.url.path, "".join(tb))
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(error=str(exc) or "Internal server error").model_dump(),
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
)

app.include_router(proxy_router)


@app.get("/api/health")
async def health():
    return {"status": "ok", "version": VERSION}


@app.get("/api/chains", response_model=list[ChainInfo])
async def list_chains(registry: ChainAdapterRegistry = Depends(get_registry)):
    return registry.available_chains()
