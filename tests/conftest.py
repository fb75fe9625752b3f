import copy
import json

import pytest

from rewiki.clients import ServiceCapabilities
from rewiki.history import LocalStore

BASE_PAYLOAD = {
    "topic": "Black Holes",
    "summary": "Regions of spacetime where gravity is so strong nothing escapes.",
    "sections": [
        {
            "section_id": "formation",
            "heading": "Formation",
            "body": "Most black holes form when massive stars collapse.",
        },
        {
            "section_id": "event-horizon",
            "heading": "Event horizon",
            "body": "The event horizon is the boundary beyond which light cannot escape.",
        },
        {
            "section_id": "observation",
            "heading": "Observation",
            "body": "Astronomers imaged the shadow of M87* in 2019.",
        },
    ],
    "image_prompts": ["An accretion disk glowing around a black hole"],
    "primary_image_url": "https://images.example.com/bh-primary.jpg",
    "secondary_image_url": "https://images.example.com/bh-secondary.jpg",
    "original_style_snippet": "A black hole is a region of spacetime exhibiting gravitational acceleration so strong that...",
    "last_updated": "10/19/2026",
    "change_log": "Removed jargon and shortened paragraphs.",
    "fun_fact": "Time runs slower near a black hole.",
    "study_tips": ["Define the event horizon", "Explain stellar collapse", "Cite the 2019 image"],
    "related_topics": ["Neutron Stars", "General Relativity", "Quasars"],
    "quiz": [
        {
            "question": "What forms most black holes?",
            "options": ["Collapsing massive stars", "Comets", "Solar wind"],
            "correct_option_index": 0,
        }
    ],
}


def make_payload(**overrides):
    payload = copy.deepcopy(BASE_PAYLOAD)
    payload.update(overrides)
    return payload


class FakeTextGenerator:
    """Returns queued responses in order; an Exception instance is raised instead."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def generate(self, prompt, *, web_search=False):
        self.calls.append({"prompt": prompt, "web_search": web_search})
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        if isinstance(response, dict):
            return json.dumps(response)
        return response


class FakeImageGenerator:
    def __init__(self, result="data:image/png;base64,aGVsbG8=", error=None):
        self.result = result
        self.error = error
        self.prompts = []

    def generate(self, prompt):
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return self.result


@pytest.fixture
def store(tmp_path):
    return LocalStore(tmp_path / "local")


@pytest.fixture
def capabilities_factory():
    def _make(article_responses=None, revision_responses=None, image=None):
        return ServiceCapabilities(
            article=FakeTextGenerator(*(article_responses or [make_payload()])),
            revision=FakeTextGenerator(
                *(revision_responses or [{"accepted": False, "reasoning": "Not verifiable."}])
            ),
            image=image,
        )

    return _make
