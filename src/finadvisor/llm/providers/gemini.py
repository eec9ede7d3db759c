"""Google Gemini function-calling chat service.

Uses the official Google GenAI SDK for async generation.
Reference: https://github.com/googleapis/python-genai

Turns are kept as the JSON the SDK produces (camelCase, bytes as base64),
which preserves ``thoughtSignature`` fields exactly across calls and
across persistence.
"""

import asyncio
import datetime as dt
import json
import logging
from collections.abc import Callable
from typing import Any

import httpx
from google import genai
from google.genai import errors, types

from ...config import DEFAULT_GEMINI_MODEL, EMPTY_RESPONSE_RETRIES, MAX_FUNCTION_ROUNDS
from ...prompts import get_system_prompt
from ..base import ChatService, FunctionExecutor
from ..errors import MalformedResponseError, TransportError
from ..models import ChatReply, ConversationTurn

logger = logging.getLogger(__name__)


def content_to_turn(content: types.Content) -> ConversationTurn:
    """Serialize an SDK content block into a storable turn."""
    return content.model_dump(mode="json", by_alias=True, exclude_none=True)


def turn_to_content(turn: ConversationTurn) -> types.Content:
    """Rehydrate a stored turn into an SDK content block.

    JSON validation decodes base64 bytes back into the original signature.
    """
    return types.Content.model_validate_json(json.dumps(turn))


def _function_calls(content: types.Content) -> list[types.FunctionCall]:
    return [part.function_call for part in content.parts or [] if part.function_call]


def _extract_text(content: types.Content) -> str:
    texts = [part.text for part in content.parts or [] if part.text and not part.thought]
    return "".join(texts).strip()


class GeminiChatService(ChatService):
    """Gemini chat with function calling over a FunctionExecutor.

    Hidden design decisions:
    - Google GenAI client initialization
    - Function declaration conversion
    - Function-call rounds (all calls of a round run concurrently)
    - Retry logic for empty responses (known Gemini issue)
    """

    def __init__(
        self,
        api_key: str,
        executor: FunctionExecutor,
        model: str = DEFAULT_GEMINI_MODEL,
        max_function_rounds: int = MAX_FUNCTION_ROUNDS,
        max_retries: int = EMPTY_RESPONSE_RETRIES,
        temperature: float = 0.7,
        client: Any | None = None,
        today: Callable[[], dt.date] = dt.date.today,
        **client_kwargs: Any
    ):
        """Initialize the Gemini chat service.

        Args:
            api_key: Google AI API key
            executor: Runs the functions the model calls
            model: Default model (gemini-2.5-flash, gemini-2.5-pro, ...)
            max_function_rounds: Function-call rounds before forcing a text answer
            max_retries: Max retries for empty responses
            temperature: Sampling temperature
            client: Pre-built client (mainly for tests)
            today: Clock used for the date shown to the model
            **client_kwargs: Additional kwargs for genai.Client
        """
        self._executor = executor
        self._model = model
        self._max_function_rounds = max(1, max_function_rounds)
        self._max_retries = max(1, max_retries)
        self._temperature = temperature
        self._today = today
        self._client = client or genai.Client(api_key=api_key, **client_kwargs)

    @property
    def model(self) -> str:
        return self._model

    def _tools(self) -> list[types.Tool]:
        return [types.Tool(function_declarations=[
            types.FunctionDeclaration(
                name=declaration["name"],
                description=declaration["description"],
                parameters_json_schema=declaration["parameters"],
            )
            for declaration in self._executor.declarations
        ])]

    async def _config(self, user_id: str, period_selector: str, allow_functions: bool) -> types.GenerateContentConfig:
        today = self._today()
        system_instruction = get_system_prompt(
            date=today.isoformat(),
            weekday=today.strftime("%A"),
            currency=await self._executor.user_currency(user_id),
            period=period_selector,
        )
        mode = "AUTO" if allow_functions else "NONE"
        return types.GenerateContentConfig(
            temperature=self._temperature,
            system_instruction=system_instruction,
            tools=self._tools(),
            tool_config=types.ToolConfig(
                function_calling_config=types.FunctionCallingConfig(mode=mode)
            ),
        )

    async def _generate(self, contents: list[types.Content], config: types.GenerateContentConfig) -> types.Content:
        for attempt in range(self._max_retries):
            try:
                response = await self._client.aio.models.generate_content(
                    model=self._model,
                    contents=contents,
                    config=config,
                )
            except errors.APIError as e:
                raise TransportError(e.message or str(e), status=e.code) from e
            except httpx.HTTPError as e:
                raise TransportError(str(e)) from e

            if response.candidates:
                content = response.candidates[0].content
                if content is not None and content.parts:
                    return content

            if attempt < self._max_retries - 1:
                logger.debug("Empty Gemini response, retrying (attempt %d)", attempt + 1)
                await asyncio.sleep(0.5 * (attempt + 1))

        raise MalformedResponseError(f"no content after {self._max_retries} attempts")

    async def chat(
        self,
        user_text: str,
        user_id: str,
        prior_context: list[ConversationTurn],
        period_selector: str,
        **kwargs: Any
    ) -> ChatReply:
        try:
            contents = [turn_to_content(turn) for turn in prior_context]
        except ValueError as e:
            raise MalformedResponseError(f"stored context is not valid Gemini content: {e}") from e
        contents.append(types.Content(role="user", parts=[types.Part(text=user_text)]))

        config = await self._config(user_id, period_selector, allow_functions=True)
        content = await self._generate(contents, config)

        executed: list[tuple[str, dict[str, Any]]] = []
        rounds = 0
        while calls := _function_calls(content):
            rounds += 1
            logger.info("Gemini requested %d function call(s): %s", len(calls), [c.name for c in calls])
            outcomes = await asyncio.gather(*(
                self._executor.execute(call.name, call.args, user_id) for call in calls
            ))
            executed.extend((call.name, outcome) for call, outcome in zip(calls, outcomes))

            # The model turn goes back unmodified so its thought signatures stay attached
            contents.append(content)
            contents.append(types.Content(role="user", parts=[
                types.Part(function_response=types.FunctionResponse(id=call.id, name=call.name, response=outcome))
                for call, outcome in zip(calls, outcomes)
            ]))

            if rounds >= self._max_function_rounds:
                config = await self._config(user_id, period_selector, allow_functions=False)
            content = await self._generate(contents, config)

        contents.append(content)
        function_result = self._executor.summarize(executed)

        return ChatReply(
            text=_extract_text(content),
            history=[content_to_turn(c) for c in contents],
            function_called=function_result.function_name if function_result else None,
            function_result=function_result,
        )

    async def close(self) -> None:
        """Close the Gemini client.

        Note: The Google GenAI client doesn't require explicit closing,
        but we implement this for interface consistency.
        """
        pass
