import asyncio
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import PlainTextResponse
from pydantic import ValidationError

from groupbot.cache import KVCache
from groupbot.dependencies import get_copywriting_cache, get_horoscope_cache, get_message_handler
from groupbot.handlers.message_handler import MessageHandler
from groupbot.models.dc_models import LineEventModel, WebhookBodyModel
from groupbot.services.copywriting import preload_all_copywritings
from groupbot.services.horoscope import preload_all_horoscopes

webhook_router = APIRouter()


class WebhookAPI:
    @staticmethod
    @webhook_router.post("/", response_class=PlainTextResponse)
    @webhook_router.post("/callback", response_class=PlainTextResponse)
    async def receive_events(
        request: Request,
        background_tasks: BackgroundTasks,
        message_handler: MessageHandler = Depends(get_message_handler),
    ):
        """Handle one LINE webhook delivery

        Events are handled in parallel; a failing event is logged and does not
        affect the others or the response.
        """
        try:
            body = WebhookBodyModel.model_validate(await request.json())
        except (ValueError, ValidationError) as e:
            logging.error(f"Invalid webhook body: {e}")
            return PlainTextResponse("Error", status_code=500)

        async def handle(event: LineEventModel) -> None:
            try:
                await message_handler.handle_message(event, background_tasks.add_task)
            except Exception as e:
                logging.error(f"Failed to handle {event.type} event: {e}")

        await asyncio.gather(*(handle(event) for event in body.events))
        return "OK"

    @staticmethod
    @webhook_router.get("/", response_class=PlainTextResponse)
    async def health():
        return "OK"


class PreloadAPI:
    @staticmethod
    @webhook_router.get("/preload", response_class=PlainTextResponse)
    async def preload(
        horoscope_cache: KVCache = Depends(get_horoscope_cache),
        copywriting_cache: KVCache = Depends(get_copywriting_cache),
    ):
        try:
            await asyncio.gather(
                preload_all_horoscopes(horoscope_cache),
                preload_all_copywritings(copywriting_cache),
            )
        except Exception as e:
            logging.error(f"Preload failed: {e}")
            return PlainTextResponse("Preload failed", status_code=500)
        return "Preload completed"

    @staticmethod
    @webhook_router.get("/preload-copywriting", response_class=PlainTextResponse)
    async def preload_copywriting(copywriting_cache: KVCache = Depends(get_copywriting_cache)):
        try:
            await preload_all_copywritings(copywriting_cache)
        except Exception as e:
            logging.error(f"Copywriting preload failed: {e}")
            return PlainTextResponse("Copywriting preload failed", status_code=500)
        return "Copywriting preload completed"
