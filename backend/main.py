"""Main entry point for the Red AI conversation pipeline API."""
import logging
from typing import NoReturn
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from config import PORT, LOG_LEVEL, LOG_FORMAT, CORS_ORIGINS
from logger import setup_logging
from models.api import (
    IngestRequest,
    IngestResponse,
    CompletionRequest,
    CompletionResponse,
    SynthesisRequest,
    SynthesisResponse,
    ChatRequest,
    ChatResponse,
)
from services.errors import (
    PipelineError,
    ConfigurationError,
    InvalidRequestError,
    StorageWriteError,
    HistoryFetchError,
    CompletionTransportError,
    CompletionParseError,
    SynthesisError,
    PublishError,
)
from services.factory import build_pipeline
from services.pipeline import ConversationPipeline
from services.workflow import ConversationWorkflow

if LOG_FORMAT == "json":
    setup_logging(LOG_LEVEL)

# Initialize logging
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Red AI Conversation Pipeline",
    description="Chat history, completions, and synthesized speech for conversational agents",
    version="1.0.0"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

ERROR_STATUS_CODES = {
    InvalidRequestError: 400,
    ConfigurationError: 500,
    CompletionTransportError: 502,
    CompletionParseError: 502,
    SynthesisError: 502,
    StorageWriteError: 503,
    HistoryFetchError: 503,
    PublishError: 503,
}

# Initialize services (will be done on startup)
pipeline: ConversationPipeline = None
workflow: ConversationWorkflow = None


@app.on_event("startup")
async def startup_event():
    """Initialize services on startup."""
    global pipeline, workflow

    logger.info("Initializing conversation pipeline services...")

    try:
        pipeline = build_pipeline()
        workflow = ConversationWorkflow(pipeline)
        logger.info("All services initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize services: {e}", exc_info=True)
        raise


def _raise_http_error(e: PipelineError) -> NoReturn:
    """Translate a pipeline failure into an HTTP error with a structured body."""
    status_code = ERROR_STATUS_CODES.get(type(e), 500)
    error = e.error
    logger.error(f"{error.code} in {error.details.get('flow')}.{error.details.get('stage')}: {error.message}")
    raise HTTPException(
        status_code=status_code,
        detail={
            "error": {
                "code": error.code,
                "message": error.message,
                "details": error.details
            }
        }
    )


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "message": "Red AI Conversation Pipeline API"}


@app.get("/health")
async def health():
    """Detailed health check."""
    return {
        "status": "healthy" if pipeline is not None else "starting",
        "service": "red-ai-pipeline",
        "version": "1.0.0"
    }


@app.post("/ingest", response_model=IngestResponse)
def ingest_endpoint(request: IngestRequest) -> IngestResponse:
    """Persist a user message and echo it back for the next stage."""
    try:
        return pipeline.ingest(request.user_id, request.message)
    except PipelineError as e:
        _raise_http_error(e)


@app.post("/complete", response_model=CompletionResponse)
def complete_endpoint(request: CompletionRequest) -> CompletionResponse:
    """Generate a completion from the user's stored conversation."""
    try:
        return pipeline.complete(request.user_id, request.prompt)
    except PipelineError as e:
        _raise_http_error(e)


@app.post("/synthesize", response_model=SynthesisResponse)
def synthesize_endpoint(request: SynthesisRequest) -> SynthesisResponse:
    """Synthesize text to speech and return the published audio URL."""
    try:
        return pipeline.synthesize(request.text)
    except PipelineError as e:
        _raise_http_error(e)


@app.post("/chat", response_model=ChatResponse)
def chat_endpoint(request: ChatRequest) -> ChatResponse:
    """
    Run the full workflow for one user message.

    Ingests the message, completes over the stored history, and synthesizes
    the completion unless speak is false or the completion is empty.
    """
    try:
        return workflow.run(request.user_id, request.message, speak=request.speak)
    except PipelineError as e:
        _raise_http_error(e)


if __name__ == "__main__":
    import uvicorn
    logger.info(f"Starting Red AI Conversation Pipeline API on port {PORT}")
    uvicorn.run(app, host="0.0.0.0", port=PORT)
