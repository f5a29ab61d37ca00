# Path: api/app.py
# Purpose: Expose a FastAPI application that turns prompts into images for the wall.
# Layer: api.
# Details: Provides health checks, a test echo route, the generation route, and a chat route for the configured LLM.

import logging
import time
from typing import Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from config import AppSettings
from core.gateway import AcquisitionValidationError, GatewayError, ImageGateway, create_gateway
from core.llm import ChatProvider, create_chat_provider

logger = logging.getLogger(__name__)


def create_app(
    gateway: Optional[ImageGateway] = None,
    settings: Optional[AppSettings] = None,
    chat: Optional[ChatProvider] = None,
) -> FastAPI:
    """Create a FastAPI app instance configured with the provided image gateway and chat provider.

    When ``chat`` is omitted the provider is built from ``settings.llm`` on every chat request, so a
    missing key only fails that route.
    """

    settings = settings or AppSettings.from_env()
    if gateway is None:
        # The server always calls providers in-process; forwarding to itself would loop.
        gateway = create_gateway(settings.gateway.model_copy(update={"endpoint": None}))

    app = FastAPI(title="Picture Wall API", version="0.1.0")

    @app.get("/health")
    def health() -> Dict[str, str]:
        """Return a simple health status payload."""

        return {"status": "ok"}

    @app.get("/api/test")
    def test_get():
        return {"message": "API route is working", "timestamp": int(time.time() * 1000)}

    @app.post("/api/test")
    async def test_post(request: Request):
        try:
            body = await request.json()
        except ValueError as exc:
            return JSONResponse({"error": "Failed to parse request", "details": str(exc)}, status_code=400)
        return {"message": "POST is working", "received": body, "timestamp": int(time.time() * 1000)}

    @app.post("/api/generate-image")
    async def generate_image(request: Request):
        """Generate an image for the prompt in the JSON body.

        External calls:
        - core/gateway/base.py::ImageGateway.acquire_from_prompt - validates and runs the configured provider.
        """

        try:
            body = await request.json()
        except ValueError:
            return JSONResponse({"error": "Invalid JSON in request body"}, status_code=400)

        prompt = body.get("prompt") if isinstance(body, dict) else None
        if not isinstance(prompt, str) or not prompt.strip():
            return JSONResponse({"error": "Prompt is required and must be a string"}, status_code=400)

        try:
            image = await gateway.acquire_from_prompt(prompt)
        except AcquisitionValidationError as exc:
            return JSONResponse({"error": str(exc)}, status_code=400)
        except GatewayError as exc:
            logger.error("Image generation failed: %s", exc)
            return JSONResponse({"error": str(exc)}, status_code=502)
        except Exception:  # noqa: BLE001 - unexpected provider failures become a generic 500
            logger.exception("Unexpected error while generating an image")
            return JSONResponse({"error": "Failed to generate image"}, status_code=500)
        return image.to_dict()

    @app.post("/api/chat")
    async def chat_route(request: Request):
        """Answer one chat message with the configured LLM.

        External calls:
        - core/llm/providers.py::ChatProvider.complete - sends the message upstream.
        """

        try:
            body = await request.json()
        except ValueError:
            body = None
        message = body.get("message") if isinstance(body, dict) else None
        if not isinstance(message, str) or not message:
            return JSONResponse({"error": "Message is required and must be a string"}, status_code=400)

        try:
            provider = chat or create_chat_provider(settings.llm)
            reply = await provider.complete(message)
        except Exception:  # noqa: BLE001 - every chat failure maps to the same 500 payload
            logger.exception("Chat request failed")
            return JSONResponse({"error": "Failed to get response from LLM"}, status_code=500)
        return {"response": reply}

    return app
