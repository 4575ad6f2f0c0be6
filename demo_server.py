#!/usr/bin/env python3
"""
Demo: a custom `/api/chat` handler on top of the Ollama facade.

Points Ollama clients (e.g. Open WebUI) at a local LM Studio server and
pins every conversation to a fixed persona by replacing the system prompt
before the conversation is forwarded.

    python demo_server.py --model lm-studio --persona "Answer like a pirate."
"""

from __future__ import annotations

import argparse
from typing import List, Optional

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.responses import Response

load_dotenv()

from ollama_facade.config.settings import BACKEND_PRESETS, DEFAULT_HOST, DEFAULT_PORT, resolve_api_key
from ollama_facade.services import ChatCompletionClient, ChatMessage
from ollama_facade.services.types import SYSTEM
from ollama_facade.web import (
    ChatRequest,
    change_system_prompt,
    map_post_api_chat,
    stream_to_response,
    to_chat_history,
    to_execution_settings,
)

DEFAULT_PERSONA = "You are a concise assistant. Answer in at most three sentences."


def persona_handler(persona: str):
    def handle(chat_request: ChatRequest, client: ChatCompletionClient, request: Request) -> Response:
        history = to_chat_history(chat_request)
        if len(history) and history[0].role == SYSTEM:
            change_system_prompt(history, persona)
        else:
            history.messages.insert(0, ChatMessage(role=SYSTEM, content=persona))
        return stream_to_response(client.stream(history, to_execution_settings(chat_request.options)))

    return handle


def build_demo_app(client: ChatCompletionClient, persona: str = DEFAULT_PERSONA) -> FastAPI:
    app = FastAPI(title="Ollama Facade Demo")
    map_post_api_chat(app, client, persona_handler(persona), model_name="facade-demo")
    return app


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    preset = BACKEND_PRESETS["lmstudio"]
    parser = argparse.ArgumentParser(description="Ollama facade demo with a fixed persona")
    parser.add_argument("--base-url", default=preset.base_url)
    parser.add_argument("--model", default=preset.model)
    parser.add_argument("--persona", default=DEFAULT_PERSONA)
    parser.add_argument("--host", default=DEFAULT_HOST)
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    client = ChatCompletionClient(
        base_url=args.base_url,
        model=args.model,
        api_key=resolve_api_key("OPENAI_API_KEY"),
    )
    uvicorn.run(build_demo_app(client, args.persona), host=args.host, port=args.port)


if __name__ == "__main__":
    main()
