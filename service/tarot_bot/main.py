import json

from fastapi import Depends, FastAPI, Header, HTTPException, Request

from tarot_bot.config import get_settings
from tarot_bot.telegram_bot.bot import get_bot_context, handle_telegram_update, initialize_bot, shutdown_bot
from tarot_bot.telegram_bot.context import BotContext
from tarot_bot.telegram_bot.logging_config import bot_logger as logger

VERSION = "0.1.0"

app = FastAPI(
    title="Tarot Reading Bot",
    description="Telegram bot answering /reading with an AI tarot card draw",
    version=VERSION
)


# Lifecycle events
@app.on_event("startup")
async def startup_event():
    """Initialize bot on startup."""
    logger.info("[STARTUP] Initializing Telegram bot...")
    await initialize_bot()
    logger.info("[STARTUP] Bot ready")


@app.on_event("shutdown")
async def shutdown_event():
    """Shutdown bot on application shutdown."""
    logger.info("[SHUTDOWN] Shutting down Telegram bot...")
    await shutdown_bot()
    logger.info("[SHUTDOWN] Bot stopped")


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    settings = get_settings()
    return {
        "status": "ok",
        "environment": settings.environment,
        "version": VERSION
    }


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": "Tarot Reading Bot",
        "docs": "/docs"
    }


async def _read_update(request: Request) -> dict:
    try:
        update_data = await request.json()
    except json.JSONDecodeError:
        raise HTTPException(status_code=400, detail="Invalid JSON body")

    if not isinstance(update_data, dict):
        raise HTTPException(status_code=400, detail="Update must be a JSON object")
    return update_data


# Telegram webhook endpoint
@app.post("/telegram/webhook")
async def telegram_webhook(
    request: Request,
    x_telegram_bot_api_secret_token: str = Header(None),
    ctx: BotContext = Depends(get_bot_context)
):
    """
    Webhook endpoint for Telegram updates.

    The update is processed before answering; every handled or gracefully
    failed update gets 200 so Telegram doesn't redeliver it.
    """
    # Verify secret token if configured
    secret = ctx.settings.telegram_webhook_secret
    if secret and x_telegram_bot_api_secret_token != secret:
        logger.warning("Webhook call with invalid secret token")
        raise HTTPException(status_code=401, detail="Invalid secret token")

    update_data = await _read_update(request)

    try:
        await handle_telegram_update(update_data, ctx)
    except Exception as e:
        logger.error(f"Unexpected webhook failure: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")

    return {"ok": True}


@app.post("/telegram/chat-id")
async def telegram_chat_id(request: Request, ctx: BotContext = Depends(get_bot_context)):
    """
    Reply in the chat with its id.

    Point a webhook here once to find the value for DESIGNATED_CHAT_ID.
    """
    update_data = await _read_update(request)

    try:
        chat = (update_data.get("message") or {}).get("chat") or {}
        chat_id, chat_type = chat.get("id"), chat.get("type")

        if chat_id and chat_type:
            logger.info(f"Chat ID: {chat_id}, Type: {chat_type}")
            await ctx.gateway.send_message(chat_id, f"This {chat_type}'s ID is: {chat_id}")
    except Exception as e:
        logger.error(f"Error in chat-id endpoint: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")

    return {"message": "OK"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
