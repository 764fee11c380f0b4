"""Tests for story prompt construction."""

from taleforger.models import Story
from taleforger.services import build_creation_prompt, build_regeneration_prompt
from taleforger.services.stories import (
    CREATION_SYSTEM_INSTRUCTION,
    REGENERATION_SYSTEM_INSTRUCTION,
)


def test_creation_prompt_lists_title_genres_and_hints() -> None:
    system, prompt = build_creation_prompt(
        "The Lighthouse", "a keeper who hears voices", ["Mystery", "Horror"]
    )

    assert system == CREATION_SYSTEM_INSTRUCTION
    assert prompt == (
        'Story Title: "The Lighthouse"\n'
        "Genres: Mystery, Horror\n"
        "Core Plot and Elements to Include (Hints): a keeper who hears voices"
    )


def test_creation_instruction_forbids_titles_and_endings() -> None:
    assert "Do not include a title" in CREATION_SYSTEM_INSTRUCTION
    assert '"The End"' in CREATION_SYSTEM_INSTRUCTION


def test_regeneration_prompt_uses_current_story() -> None:
    story = Story(title="The Lighthouse", hints="a keeper who hears voices", genres=["Mystery"])

    system, prompt = build_regeneration_prompt(story, "make it end happily")

    assert system == REGENERATION_SYSTEM_INSTRUCTION
    assert prompt == (
        'Original Story Title: "The Lighthouse"\n'
        "Original Hints: a keeper who hears voices\n"
        "User Edit Prompts: make it end happily"
    )
