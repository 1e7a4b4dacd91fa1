import asyncio
import json

import pytest

from capabilities import CapabilityName

LEGAL_TEXT = (
    "This Privacy Policy explains how we collect personal data. "
    "We share information with third parties for advertising. "
    "Disputes are resolved through binding arbitration and you waive class actions. "
    "Your subscription renews automatically unless cancelled before the renewal date."
)

RISKS_RESPONSE = json.dumps({
    "risks": [
        {"severity": "high", "clause": "Arbitration", "issue": "Binding arbitration",
         "explanation": "You cannot go to court."},
        {"severity": "medium", "clause": "Sharing", "issue": "Data shared with third parties",
         "explanation": "Advertisers receive your data."},
        {"severity": "medium", "clause": "Renewal", "issue": "Automatic renewal",
         "explanation": "You are charged until you cancel."},
        {"severity": "critical", "clause": "Bogus", "issue": "Not a valid severity"},
        {"clause": "Missing severity", "issue": "Dropped"},
    ]
})

TERMS_RESPONSE = "```json\n" + json.dumps({
    "terms": [
        {"term": "Arbitration", "definition": "A private way to settle disputes."},
        {"term": "Third parties", "definition": 42},
    ]
}) + "\n```"

KEY_POINTS_RESPONSE = 'Here you go: {"keyPoints": ["Data is shared", "Arbitration applies"]} Thanks!'


def default_responder(prompt):
    if "concerning clauses" in prompt:
        return RISKS_RESPONSE
    if "legal and technical terms" in prompt:
        return TERMS_RESPONSE
    if "key points" in prompt:
        return KEY_POINTS_RESPONSE
    if "comprehensive summary" in prompt:
        return "  Section by section summary.  "
    if "2-3 sentences" in prompt:
        return "Prompt executive summary."
    if "simple, everyday language" in prompt:
        return "Prompt simplified text."
    return "Generic response."


class FakeSession:
    def __init__(self, provider, language):
        self.provider = provider
        self.language = language
        self.prompts = []

    async def generate(self, prompt):
        self.prompts.append(prompt)
        self.provider.prompts.append(prompt)
        return self.provider.respond(prompt)

    async def summarize(self, text):
        self.provider.prompts.append(text)
        return " Summarizer executive summary. "

    async def rewrite(self, text, context=""):
        self.provider.prompts.append(text)
        return "Rewritten text."

    async def write(self, task, context=""):
        self.provider.prompts.append(task)
        return "Written text."

    async def release(self):
        self.provider.release_count += 1


class FakeProvider:
    """Provider double with scripted availability states.

    ``states`` are returned in order by successive probes; the last one repeats.
    """

    def __init__(self, name, states=("readily",), present=True, requires_authorization=True,
                 responder=default_responder, create_error=None, create_delay=0.0,
                 probe_error=None):
        self._name = CapabilityName(name)
        self._states = list(states)
        self._present = present
        self.requires_authorization = requires_authorization
        self.responder = responder
        self.create_error = create_error
        self.create_delay = create_delay
        self.probe_error = probe_error
        self.create_count = 0
        self.release_count = 0
        self.probe_count = 0
        self.prompts = []
        self.languages = []

    @property
    def name(self):
        return self._name

    def is_present(self):
        return self._present

    async def probe_availability(self):
        self.probe_count += 1
        if self.probe_error is not None:
            raise self.probe_error
        if len(self._states) > 1:
            return self._states.pop(0)
        return self._states[0]

    async def create_session(self, output_language=None):
        self.create_count += 1
        self.languages.append(output_language)
        if self.create_delay:
            await asyncio.sleep(self.create_delay)
        if self.create_error is not None:
            raise self.create_error
        return FakeSession(self, output_language)

    def respond(self, prompt):
        if isinstance(self.responder, Exception):
            raise self.responder
        return self.responder(prompt)


def make_providers(**overrides):
    """Build one ready fake provider per capability, with keyword overrides by name."""
    providers = {}
    for name in CapabilityName:
        providers[name] = overrides.get(name.value) or FakeProvider(name)
    return providers


class FakeClock:
    def __init__(self):
        self.now = 0.0
        self.sleeps = 0

    def __call__(self):
        return self.now

    async def sleep(self, seconds):
        self.sleeps += 1
        self.now += seconds


@pytest.fixture
def providers():
    return make_providers()


@pytest.fixture
def clock():
    return FakeClock()
