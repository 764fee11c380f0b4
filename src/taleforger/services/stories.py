"""Story creation, regeneration and editing.

Builds prompts from the user's title, hints and genres, runs them through
the injected ``StoryGenerator`` and persists the result. Generation
failures (``GenerationExhaustedError``) propagate unchanged; nothing is
written when generation fails.
"""

import logging
from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taleforger.generation import StoryGenerator
from taleforger.models.story import Story
from taleforger.models.user import User

from .errors import GeneratorNotConfiguredError, StoryAccessDeniedError, StoryNotFoundError

logger = logging.getLogger(__name__)

CREATION_SYSTEM_INSTRUCTION = (
    "You are a professional, creative fiction author. Your task is to write a "
    "compelling, continuous short story based on the user's title, hints, and "
    "specified genre(s). The story must be engaging and flow naturally without "
    "using explicit chapter titles, subheadings, or bullet points. Do not include "
    'a title or any concluding commentary (like "The End"). Simply output the '
    "story text. Use a decent English vocabulary not too simple nor too complex."
)

REGENERATION_SYSTEM_INSTRUCTION = (
    "You are a professional, creative fiction author. Regenerate or edit the "
    "following story content based on the user's prompts. Keep the same tone and "
    "continuity where possible unless the prompts request otherwise."
)


def build_creation_prompt(title: str, hints: str, genres: Sequence[str]) -> tuple[str, str]:
    """Return the (system instruction, user prompt) pair for a new story."""
    user_prompt = (
        f'Story Title: "{title}"\n'
        f"Genres: {', '.join(genres)}\n"
        f"Core Plot and Elements to Include (Hints): {hints}"
    )
    return CREATION_SYSTEM_INSTRUCTION, user_prompt


def build_regeneration_prompt(story: Story, prompts: str) -> tuple[str, str]:
    """Return the (system instruction, user prompt) pair for rewriting a story."""
    user_prompt = (
        f'Original Story Title: "{story.title}"\n'
        f"Original Hints: {story.hints}\n"
        f"User Edit Prompts: {prompts}"
    )
    return REGENERATION_SYSTEM_INSTRUCTION, user_prompt


class StoryService:
    """Service for a user's stories.

    Args:
        db: Database session
        generator: Story generator; only needed for create and regenerate
    """

    def __init__(self, db: AsyncSession, generator: StoryGenerator | None = None):
        self.db = db
        self.generator = generator

    def _require_generator(self) -> StoryGenerator:
        if self.generator is None:
            raise GeneratorNotConfiguredError()
        return self.generator

    async def create(
        self,
        owner: User,
        title: str,
        hints: str,
        genres: list[str],
    ) -> Story:
        """Generate and store a new story.

        Raises:
            GenerationExhaustedError: If generation failed on every attempt
        """
        generator = self._require_generator()
        system_instruction, user_prompt = build_creation_prompt(title, hints, genres)
        content = await generator.generate(system_instruction, user_prompt)
        logger.info(f"Story generation successful for user {owner.id}")

        story = Story(
            user_id=owner.id,
            title=title,
            hints=hints,
            genres=list(genres),
            content=content,
        )
        self.db.add(story)
        await self.db.commit()
        await self.db.refresh(story)
        return story

    async def list_for(self, owner: User) -> list[Story]:
        """Return the owner's stories, newest first."""
        result = await self.db.execute(
            select(Story)
            .where(Story.user_id == owner.id)
            .order_by(Story.created_at.desc(), Story.id.desc())
        )
        return list(result.scalars().all())

    async def get_owned(self, owner: User, story_id: int) -> Story:
        """Fetch a story, checking that ``owner`` owns it.

        Raises:
            StoryNotFoundError: If no story has this ID
            StoryAccessDeniedError: If the story belongs to someone else
        """
        result = await self.db.execute(select(Story).where(Story.id == story_id))
        story = result.scalar_one_or_none()
        if story is None:
            raise StoryNotFoundError(story_id)
        if story.user_id != owner.id:
            raise StoryAccessDeniedError()
        return story

    async def regenerate(
        self,
        story: Story,
        prompts: str,
        title: str | None = None,
        hints: str | None = None,
    ) -> Story:
        """Rewrite a story's content from the user's edit prompts.

        The prompt is built from the story's current title and hints; the
        new title and hints, when given, are applied afterwards.

        Raises:
            GenerationExhaustedError: If generation failed on every attempt
        """
        generator = self._require_generator()
        system_instruction, user_prompt = build_regeneration_prompt(story, prompts)
        content = await generator.generate(system_instruction, user_prompt)

        story.content = content
        if hints:
            story.hints = hints
        if title:
            story.title = title
        await self.db.commit()
        await self.db.refresh(story)
        return story

    async def update(
        self,
        story: Story,
        content: str | None = None,
        title: str | None = None,
        hints: str | None = None,
        genres: list[str] | None = None,
    ) -> Story:
        """Apply manual edits.

        ``content`` is applied whenever it is given, even if empty; the other
        fields only when non-empty.
        """
        if content is not None:
            story.content = content
        if title:
            story.title = title
        if hints:
            story.hints = hints
        if genres:
            story.genres = list(genres)
        await self.db.commit()
        await self.db.refresh(story)
        return story

    async def delete(self, story: Story) -> None:
        await self.db.delete(story)
        await self.db.commit()
        logger.info(f"Deleted story {story.id}")
