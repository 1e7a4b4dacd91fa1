from typing import List

import pytest
from langchain_core.language_models.fake_chat_models import GenericFakeChatModel
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

import capabilities
from capabilities import (
    Availability, CapabilityName, CapabilityProvider, ChatSession, PromptProvider,
    RewriterSession, SummarizerSession, WriterSession, build_default_providers,
)
from config import Config


class NoKeyConfig(Config):
    OPENAI_API_KEY = None


class KeyedConfig(Config):
    OPENAI_API_KEY = "sk-test"


class RecordingChatModel(GenericFakeChatModel):
    """Fake chat model that remembers the messages of every call."""

    calls: List[list] = []

    def _generate(self, messages, stop=None, run_manager=None, **kwargs):
        self.calls.append(list(messages))
        return super()._generate(messages, stop=stop, run_manager=run_manager, **kwargs)


@pytest.fixture
def fake_llm(monkeypatch):
    """Replace ChatOpenAI with a recording fake; returns the fake and the constructor kwargs."""
    created = []

    def factory(**kwargs):
        created.append(kwargs)
        return RecordingChatModel(messages=iter([AIMessage(content=f"reply {i}") for i in range(10)]))

    monkeypatch.setattr(capabilities, "ChatOpenAI", factory)
    return created


def last_call(session):
    return session._llm.calls[-1]


def test_default_providers_cover_every_capability():
    providers = build_default_providers(KeyedConfig)

    assert set(providers) == set(CapabilityName)
    assert isinstance(providers[CapabilityName.PROMPT], PromptProvider)
    assert all(isinstance(p, CapabilityProvider) for p in providers.values())
    assert all(p.name is name for name, p in providers.items())
    assert all(p.requires_authorization for p in providers.values())


@pytest.mark.asyncio
async def test_providers_without_api_key_are_unavailable(fake_llm):
    providers = build_default_providers(NoKeyConfig)

    for provider in providers.values():
        assert not provider.is_present()
        assert await provider.probe_availability() == Availability.UNAVAILABLE.value

    with pytest.raises(RuntimeError):
        await providers[CapabilityName.PROMPT].create_session("en")
    assert fake_llm == []


@pytest.mark.asyncio
async def test_providers_with_api_key_are_ready(fake_llm):
    providers = build_default_providers(KeyedConfig)

    for provider in providers.values():
        assert provider.is_present()
        assert await provider.probe_availability() == Availability.READILY.value

    session = await providers[CapabilityName.SUMMARIZER].create_session()
    assert isinstance(session, SummarizerSession)
    assert fake_llm[0]["model"] == KeyedConfig.SUMMARIZER_MODEL
    assert fake_llm[0]["openai_api_key"] == "sk-test"


@pytest.mark.asyncio
async def test_prompt_session_uses_language_specific_system_prompt(fake_llm):
    provider = build_default_providers(KeyedConfig)[CapabilityName.PROMPT]

    japanese = await provider.create_session("ja")
    unknown = await provider.create_session("pt")
    default = await provider.create_session(None)

    assert await japanese.generate("List the risks") == "reply 0"

    system, human = last_call(japanese)
    assert isinstance(system, SystemMessage)
    assert system.content.endswith("Write all natural-language output in Japanese.")
    assert human == HumanMessage(content="List the risks")

    assert unknown._system_prompt.endswith("output in pt.")
    assert default._system_prompt.endswith("output in English.")


@pytest.mark.asyncio
async def test_released_session_refuses_to_generate(fake_llm):
    session = await build_default_providers(KeyedConfig)[CapabilityName.PROMPT].create_session("en")

    await session.release()
    await session.release()

    with pytest.raises(RuntimeError, match="released"):
        await session.generate("hello")


@pytest.mark.asyncio
async def test_rewriter_renders_instructions_and_text(fake_llm):
    session = await build_default_providers(KeyedConfig)[CapabilityName.REWRITER].create_session()
    assert isinstance(session, RewriterSession)

    await session.rewrite("Heretofore the party", context="Use plain words")
    prompt = last_call(session)[1].content
    assert prompt == "Instructions: Use plain words\n\nText to rewrite:\nHeretofore the party\n\nRewritten text:"

    await session.rewrite("Heretofore the party")
    assert last_call(session)[1].content.startswith("Instructions: Rewrite the text\n\n")


@pytest.mark.asyncio
async def test_summarizer_and_writer_prompts(fake_llm):
    providers = build_default_providers(KeyedConfig)
    summarizer = await providers[CapabilityName.SUMMARIZER].create_session()
    writer = await providers[CapabilityName.WRITER].create_session()
    assert isinstance(writer, WriterSession)

    await summarizer.summarize("Long text")
    assert last_call(summarizer)[1].content == "Summarize the following text:\n\nLong text"

    await writer.write("Summarize each section")
    assert last_call(writer)[1].content == "Summarize each section"

    await writer.write("Summarize each section", context="Section 1")
    assert last_call(writer)[1].content == "Summarize each section\n\nContext:\nSection 1"


@pytest.mark.asyncio
async def test_chat_session_wraps_any_chat_model():
    llm = RecordingChatModel(messages=iter(["plain answer"]))
    session = ChatSession(llm, "system text")

    assert await session.generate("question") == "plain answer"
    assert last_call(session)[0].content == "system text"
