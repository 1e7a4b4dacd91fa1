"""Generative capability providers.

A capability is one named text-generation function (prompt/chat, summarization,
rewriting, writing). Each capability family has a provider exposing a runtime
availability probe and session creation; sessions expose the capability calls and
``release()``.

The default providers are backed by LangChain chat models. Any object following
``CapabilityProvider`` can replace them, e.g. an on-device runtime that reports
``after-download`` until its assets are fetched.
"""

import asyncio
import logging
from enum import Enum
from typing import Dict, Optional, Protocol, runtime_checkable

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_core.prompts import PromptTemplate
from langchain_openai import ChatOpenAI

from config import Config
from constants import (
    LANGUAGE_NAMES,
    REWRITER_SYSTEM_PROMPT,
    SUMMARIZER_SYSTEM_PROMPT,
    SYSTEM_PROMPT,
    WRITER_SYSTEM_PROMPT,
)

logger = logging.getLogger(__name__)


class CapabilityName(str, Enum):
    PROMPT = "prompt"
    SUMMARIZER = "summarizer"
    REWRITER = "rewriter"
    WRITER = "writer"


class Availability(str, Enum):
    UNAVAILABLE = "unavailable"
    AFTER_DOWNLOAD = "after-download"
    READILY = "readily"
    ERROR = "error"


@runtime_checkable
class CapabilitySession(Protocol):
    """Protocol for a live capability session."""

    async def release(self) -> None: ...


@runtime_checkable
class CapabilityProvider(Protocol):
    """Protocol for capability provider implementations."""

    @property
    def name(self) -> CapabilityName: ...

    @property
    def requires_authorization(self) -> bool: ...

    def is_present(self) -> bool: ...

    async def probe_availability(self) -> str: ...

    async def create_session(self, output_language: Optional[str] = None) -> CapabilitySession: ...


# --- SESSIONS ---

class ChatSession:
    """Prompt session: a chat model bound to one system prompt and output language."""

    def __init__(self, llm: ChatOpenAI, system_prompt: str):
        self._llm = llm
        self._system_prompt = system_prompt

    async def generate(self, prompt: str) -> str:
        if self._llm is None:
            raise RuntimeError("Session has been released")
        messages = [SystemMessage(content=self._system_prompt), HumanMessage(content=prompt)]
        response = await asyncio.to_thread(self._llm.invoke, messages)
        return response.content

    async def release(self) -> None:
        self._llm = None


class SummarizerSession(ChatSession):
    async def summarize(self, text: str) -> str:
        return await self.generate(f"Summarize the following text:\n\n{text}")


class RewriterSession(ChatSession):
    async def rewrite(self, text: str, context: str = "") -> str:
        prompt = PromptTemplate(
            template="Instructions: {context}\n\nText to rewrite:\n{text}\n\nRewritten text:",
            input_variables=["context", "text"],
        )
        return await self.generate(prompt.format(context=context or "Rewrite the text", text=text))


class WriterSession(ChatSession):
    async def write(self, task: str, context: str = "") -> str:
        prompt = task if not context else f"{task}\n\nContext:\n{context}"
        return await self.generate(prompt)


# --- PROVIDERS ---

class ChatModelProvider:
    """Capability provider backed by an OpenAI chat model.

    Present when an API key is configured; always ``readily`` when present since a
    hosted model needs no local assets.
    """

    session_class = ChatSession
    requires_authorization = True

    def __init__(self, name: CapabilityName, model: str, temperature: float,
                 system_prompt: str, api_key: Optional[str] = None):
        self._name = name
        self._model = model
        self._temperature = temperature
        self._system_prompt = system_prompt
        self._api_key = api_key

    @property
    def name(self) -> CapabilityName:
        return self._name

    def is_present(self) -> bool:
        return bool(self._api_key)

    async def probe_availability(self) -> str:
        if not self.is_present():
            return Availability.UNAVAILABLE.value
        return Availability.READILY.value

    def _system_prompt_for(self, output_language: Optional[str]) -> str:
        return self._system_prompt

    async def create_session(self, output_language: Optional[str] = None):
        if not self.is_present():
            raise RuntimeError(f"{self._name.value} capability is not configured")

        logger.info(f"Creating {self._name.value} session (model={self._model}, language={output_language})")
        llm = ChatOpenAI(
            openai_api_key=self._api_key,
            model=self._model,
            temperature=self._temperature,
        )
        return self.session_class(llm, self._system_prompt_for(output_language))


class PromptProvider(ChatModelProvider):
    session_class = ChatSession

    def _system_prompt_for(self, output_language: Optional[str]) -> str:
        language = LANGUAGE_NAMES.get(output_language or "en", output_language or "English")
        return self._system_prompt.format(language=language)


class SummarizerProvider(ChatModelProvider):
    session_class = SummarizerSession


class RewriterProvider(ChatModelProvider):
    session_class = RewriterSession


class WriterProvider(ChatModelProvider):
    session_class = WriterSession


def build_default_providers(config=Config) -> Dict[CapabilityName, CapabilityProvider]:
    """Create one provider per capability from the application configuration."""
    api_key = config.OPENAI_API_KEY
    return {
        CapabilityName.PROMPT: PromptProvider(
            CapabilityName.PROMPT, config.PROMPT_MODEL, config.PROMPT_TEMPERATURE,
            SYSTEM_PROMPT, api_key,
        ),
        CapabilityName.SUMMARIZER: SummarizerProvider(
            CapabilityName.SUMMARIZER, config.SUMMARIZER_MODEL, config.SUMMARIZER_TEMPERATURE,
            SUMMARIZER_SYSTEM_PROMPT, api_key,
        ),
        CapabilityName.REWRITER: RewriterProvider(
            CapabilityName.REWRITER, config.REWRITER_MODEL, config.REWRITER_TEMPERATURE,
            REWRITER_SYSTEM_PROMPT, api_key,
        ),
        CapabilityName.WRITER: WriterProvider(
            CapabilityName.WRITER, config.WRITER_MODEL, config.WRITER_TEMPERATURE,
            WRITER_SYSTEM_PROMPT, api_key,
        ),
    }
