from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any, Dict, List

from fastapi import Depends, FastAPI, Header, HTTPException, Query, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from linebot.v3 import WebhookParser
from linebot.v3.exceptions import InvalidSignatureError
from starlette.concurrency import run_in_threadpool

from config.settings import get_settings
from relay.backend import GeminiBackend
from relay.core.models import EventKind, FailureReason, RelayResult
from relay.core.prompt import priming_seed
from relay.dispatcher import LineMessenger, ReplyDispatcher
from relay.engine import RelayEngine
from relay.exceptions import RelayError, SignatureInvalid, WebhookParseFailure
from relay.normalizer import normalize_event


settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="[%(asctime)s] %(levelname)s - %(message)s",
)
logger = logging.getLogger("gemini_relay")

app = FastAPI(title="Gemini LINE Relay", version="1.0.0")


@lru_cache(maxsize=1)
def _build_engine() -> RelayEngine:
    settings = get_settings()
    backend = GeminiBackend.from_settings(settings)
    seed = priming_seed(settings.persona_prompt, settings.persona_acknowledgement)
    logger.info("Config: model=%s timeout=%ss", settings.gemini_model, settings.backend_timeout)
    return RelayEngine(backend, seed=seed)


def get_engine() -> RelayEngine:
    return _build_engine()


@lru_cache(maxsize=1)
def _build_dispatcher() -> ReplyDispatcher:
    return ReplyDispatcher(LineMessenger.from_settings())


def get_dispatcher() -> ReplyDispatcher:
    try:
        return _build_dispatcher()
    except RuntimeError as e:
        raise HTTPException(status_code=500, detail=str(e))


def get_webhook_parser() -> WebhookParser:
    secret = get_settings().line_channel_secret
    if not secret:
        raise HTTPException(
            status_code=500,
            detail="Missing LINE_CHANNEL_SECRET in environment or .env",
        )
    return WebhookParser(secret)


@app.exception_handler(RelayError)
async def relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.http_status,
        content={"detail": exc.message, "code": exc.code.value},
    )


def parse_webhook(parser: WebhookParser, body: bytes, signature: str) -> List[Any]:
    try:
        # Undecodable bytes are replaced, so such a body fails the signature check
        return parser.parse(body.decode("utf-8", errors="replace"), signature)
    except InvalidSignatureError as e:
        logger.warning("Invalid webhook signature: %s", e)
        raise SignatureInvalid("Invalid signature") from e
    except Exception as e:
        logger.exception("Cannot parse webhook request: %s", e)
        raise WebhookParseFailure(f"Cannot parse request: {e}") from e


def process_events(events: List[Any], engine: RelayEngine, dispatcher: ReplyDispatcher) -> None:
    for event in events:
        inbound = normalize_event(event)
        if inbound.kind is EventKind.UNSUPPORTED:
            logger.info(
                "%s: skipping %s",
                FailureReason.UNSUPPORTED_MESSAGE_KIND.value,
                inbound.message_type,
            )
            continue
        if inbound.forwards_to_backend:
            result = engine.relay(inbound.text)
        else:
            result = RelayResult.success(inbound.text)
        dispatcher.dispatch_webhook(result, inbound.reply_target)


@app.get("/")
def index() -> Dict[str, str]:
    return {"message": "OK"}


@app.get("/ping")
def ping() -> Dict[str, str]:
    return {"message": "pong"}


@app.get("/question")
def question(
    q: str = Query(..., description="Prompt to send to the model"),
    engine: RelayEngine = Depends(get_engine),
) -> Dict[str, str]:
    logger.info("Incoming question: %s chars, history=%s turns", len(q), len(engine.context))
    result = engine.relay(q)
    return ReplyDispatcher.to_http(result)


@app.post("/callback")
async def callback(
    request: Request,
    x_line_signature: str = Header(default=""),
    parser: WebhookParser = Depends(get_webhook_parser),
    engine: RelayEngine = Depends(get_engine),
    dispatcher: ReplyDispatcher = Depends(get_dispatcher),
) -> PlainTextResponse:
    body = await request.body()
    events = parse_webhook(parser, body, x_line_signature)
    logger.info("Webhook delivered %s event(s)", len(events))
    # Relays block on the conversation lock; keep them off the event loop
    await run_in_threadpool(process_events, events, engine, dispatcher)
    return PlainTextResponse("OK")


@app.get("/newTopic")
def new_topic(engine: RelayEngine = Depends(get_engine)) -> Dict[str, str]:
    engine.reset_topic()
    return {"message": "OK"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.port)
