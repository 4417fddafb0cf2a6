# daily_coin/utils/llm_client.py

import asyncio
import json
import logging
import time
from typing import Optional

import google.generativeai as genai

from daily_coin.core.exceptions import GenerationError

logger = logging.getLogger(__name__)

# chat role -> Gemini content role
_GEMINI_ROLES = {"user": "user", "assistant": "model"}


class LLMClient:
    """
    Gemini wrapper taking chat-style messages:
        [{"role": "system" | "user" | "assistant", "content": "..."}]
    System messages become the system instruction. With response_schema the
    reply is JSON constrained to that schema, otherwise free text.
    """

    def __init__(self, api_key: Optional[str], model_name: str):
        genai.configure(api_key=api_key)
        self.model_name = model_name
        logger.info(f"Gemini configured ({model_name})")

    def _build_request(self, messages: list[dict], response_schema: Optional[dict]):
        system_instruction = "\n".join(m["content"] for m in messages if m["role"] == "system") or None
        contents = [
            {"role": _GEMINI_ROLES[m["role"]], "parts": [m["content"]]}
            for m in messages if m["role"] != "system"
        ]
        generation_config = None
        if response_schema is not None:
            generation_config = {
                "response_mime_type": "application/json",
                "response_schema": response_schema,
            }
        return system_instruction, contents, generation_config

    async def generate(self, messages: list[dict], response_schema: Optional[dict] = None) -> str:
        system_instruction, contents, generation_config = self._build_request(messages, response_schema)
        model = genai.GenerativeModel(self.model_name, system_instruction=system_instruction)
        start_time = time.time()

        try:
            # the SDK call blocks, keep it off the event loop
            response = await asyncio.to_thread(
                model.generate_content, contents, generation_config=generation_config
            )
            # .text raises when the reply was blocked or has no parts
            text = response.text
        except Exception as e:
            error_log = {
                "event": "GEMINI_FAILED",
                "model": self.model_name,
                "structured": response_schema is not None,
                "duration": f"{time.time() - start_time:.3f}s",
                "error_cause": str(e),
            }
            logger.error(json.dumps(error_log, ensure_ascii=False), exc_info=True)
            raise GenerationError(f"Gemini call failed: {e}") from e

        success_log = {
            "event": "GEMINI_SUCCESS",
            "model": self.model_name,
            "structured": response_schema is not None,
            "duration": f"{time.time() - start_time:.3f}s",
            "output_preview": text[:200],
        }
        logger.info(json.dumps(success_log, ensure_ascii=False))
        return text
