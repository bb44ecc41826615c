import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from dream_interpreter.admission import DREAMS_SCOPE, INTERPRET_SCOPE, AdmissionController
from dream_interpreter.cache import InterpretationCache, sweep_periodically
from dream_interpreter.config import PERSONAS, Settings
from dream_interpreter.dream_analyzer import DreamInterpreter, InterpretationService
from dream_interpreter.errors import AdmissionRejected, DreamNotFoundError, DreamValidationError
from dream_interpreter.history import HistoryContextBuilder, JsonFileHistoryStore
from dream_interpreter.knowledge_base import DreamKnowledgeBase
from dream_interpreter.models import FavoriteRequest, InterpretationResult, InterpretRequest, SaveDreamRequest
from dream_interpreter.providers import available_providers, build_provider_chain

logger = logging.getLogger("dream_interpreter.api")

settings = Settings.from_env()

# Global service instances
service: Optional[InterpretationService] = None
knowledge_base: Optional[DreamKnowledgeBase] = None
admission: AdmissionController = AdmissionController.from_settings(settings)


def build_service(settings: Settings) -> InterpretationService:
    global knowledge_base
    knowledge_base = DreamKnowledgeBase.from_file(settings.symbols_path)
    history_store = JsonFileHistoryStore(settings.history_path)
    interpreter = DreamInterpreter(
        providers=build_provider_chain(settings),
        knowledge_base=knowledge_base,
        history=HistoryContextBuilder(history_store),
    )
    return InterpretationService(
        interpreter=interpreter,
        cache=InterpretationCache(ttl=settings.cache_ttl_seconds),
        history_store=history_store,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    global service
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    service = build_service(settings)
    sweeper = asyncio.create_task(sweep_periodically(service.cache, settings.cache_check_period))
    logger.info("Dream interpretation API ready, providers: %s", service.interpreter.provider_names)
    yield
    sweeper.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await sweeper
    service = None


app = FastAPI(
    title="Dream Interpretation API",
    description="Interprets dream narratives through a chain of LLM providers",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(DreamValidationError)
async def validation_error_handler(request: Request, exc: DreamValidationError):
    return JSONResponse(status_code=400, content={"error": "Validation Error", "message": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request body") if errors else "Invalid request body"
    return JSONResponse(status_code=400, content={"error": "Validation Error", "message": message})


@app.exception_handler(DreamNotFoundError)
async def not_found_handler(request: Request, exc: DreamNotFoundError):
    return JSONResponse(status_code=404, content={"error": "Not Found", "message": exc.message})


@app.exception_handler(AdmissionRejected)
async def admission_rejected_handler(request: Request, exc: AdmissionRejected):
    return JSONResponse(status_code=429, content={"error": "Too Many Requests", "message": exc.message})


# Dependencies
def get_service() -> InterpretationService:
    if service is None:
        raise HTTPException(status_code=500, detail="Service not initialized")
    return service


def get_admission() -> AdmissionController:
    return admission


def get_knowledge_base() -> DreamKnowledgeBase:
    if knowledge_base is None:
        raise HTTPException(status_code=500, detail="Knowledge base not initialized")
    return knowledge_base


def client_id(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def rate_limited(scope: str):
    def _check(
        request: Request,
        response: Response,
        controller: AdmissionController = Depends(get_admission),
    ) -> None:
        client = client_id(request)
        controller.check(scope, client)
        remaining = controller.remaining(scope, client)
        if remaining is not None:
            response.headers["X-RateLimit-Remaining"] = str(remaining)
    return _check


# Routes
@app.get("/")
async def root():
    return {"message": "Dream Interpretation API", "version": "1.0.0"}


@app.post(
    "/api/interpret",
    response_model=InterpretationResult,
    dependencies=[Depends(rate_limited(INTERPRET_SCOPE))],
)
async def interpret_dream(
    request: InterpretRequest,
    interpretation_service: InterpretationService = Depends(get_service),
):
    """Interpret a single dream. Degraded answers still come back as 200."""
    return await interpretation_service.interpret(request)


@app.get("/api/dreams", dependencies=[Depends(rate_limited(DREAMS_SCOPE))])
async def list_dreams(
    user_id: Optional[str] = Query(None, alias="userId"),
    interpretation_service: InterpretationService = Depends(get_service),
):
    entries = await interpretation_service.list_dreams(user_id)
    return [entry.model_dump(mode="json", by_alias=True) for entry in entries]


@app.post("/api/dreams", status_code=201, dependencies=[Depends(rate_limited(DREAMS_SCOPE))])
async def save_dream(
    request: SaveDreamRequest,
    interpretation_service: InterpretationService = Depends(get_service),
):
    entry = await interpretation_service.save_dream(request)
    return {"id": entry.id, "message": "Dream saved"}


@app.delete("/api/dreams/{dream_id}", dependencies=[Depends(rate_limited(DREAMS_SCOPE))])
async def delete_dream(
    dream_id: str,
    user_id: Optional[str] = Query(None, alias="userId"),
    interpretation_service: InterpretationService = Depends(get_service),
):
    """Only the owner can delete a dream; anything else is a 404."""
    await interpretation_service.delete_dream(dream_id, user_id)
    return {"message": "Dream deleted"}


@app.patch("/api/dreams/{dream_id}/favorite", dependencies=[Depends(rate_limited(DREAMS_SCOPE))])
async def set_favorite(
    dream_id: str,
    request: FavoriteRequest,
    interpretation_service: InterpretationService = Depends(get_service),
):
    entry = await interpretation_service.set_favorite(dream_id, request)
    return entry.model_dump(mode="json", by_alias=True)


@app.get("/api/personas")
async def get_personas():
    """Available persona keys and their voices."""
    return {key: persona.role for key, persona in PERSONAS.items()}


@app.get("/api/symbols")
async def get_symbols(kb: DreamKnowledgeBase = Depends(get_knowledge_base)):
    return kb.all_symbols()


@app.get("/api/providers", response_model=List[str])
async def get_providers():
    return available_providers(settings)


@app.get("/health")
async def health_check(interpretation_service: InterpretationService = Depends(get_service)):
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "providers": interpretation_service.interpreter.provider_names,
        "cache": interpretation_service.cache.stats(),
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=True,
        log_level=settings.log_level.lower(),
    )
