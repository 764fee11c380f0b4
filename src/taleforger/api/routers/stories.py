"""Stories router for story generation and management.

Story creation and regeneration call the generation API inline; a request
waits for the retry loop to finish. Exhausted retries surface as 503.
"""

from datetime import datetime

from fastapi import APIRouter, Response, status
from pydantic import BaseModel, Field

from taleforger.api.deps import CurrentUser, Stories
from taleforger.models.story import Story

router = APIRouter()


# =============================================================================
# Schemas
# =============================================================================


class StoryCreateRequest(BaseModel):
    """Request to generate a new story."""

    title: str = Field(..., min_length=1, max_length=255)
    hints: str = Field(..., min_length=1, description="Plot points and elements to include")
    genres: list[str] = Field(..., min_length=1, max_length=10)


class StoryUpdateRequest(BaseModel):
    """Request to edit a story.

    When ``prompts`` is given the content is regenerated from it; otherwise
    the remaining fields are applied as manual edits.
    """

    prompts: str | None = Field(default=None, description="Edit instructions for regeneration")
    content: str | None = None
    title: str | None = Field(default=None, max_length=255)
    hints: str | None = None
    genres: list[str] | None = Field(default=None, max_length=10)


class StoryResponse(BaseModel):
    """Story information response."""

    id: int
    user_id: int
    title: str
    hints: str
    genres: list[str]
    content: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# =============================================================================
# Endpoints
# =============================================================================


@router.post("", response_model=StoryResponse, status_code=status.HTTP_201_CREATED)
async def create_story(
    request: StoryCreateRequest,
    user: CurrentUser,
    stories: Stories,
) -> Story:
    """Generate a story from title, hints and genres and save it.

    Raises:
        GenerationExhaustedError: If generation failed on every attempt (503)
    """
    return await stories.create(
        owner=user,
        title=request.title,
        hints=request.hints,
        genres=request.genres,
    )


@router.get("", response_model=list[StoryResponse])
async def list_stories(user: CurrentUser, stories: Stories) -> list[Story]:
    """List the current user's stories, newest first."""
    return await stories.list_for(user)


@router.get("/{story_id}", response_model=StoryResponse)
async def get_story(story_id: int, user: CurrentUser, stories: Stories) -> Story:
    """Get a single story owned by the current user."""
    return await stories.get_owned(user, story_id)


@router.put("/{story_id}", response_model=StoryResponse)
async def update_story(
    story_id: int,
    request: StoryUpdateRequest,
    user: CurrentUser,
    stories: Stories,
) -> Story:
    """Regenerate a story from edit prompts, or apply manual edits."""
    story = await stories.get_owned(user, story_id)

    if request.prompts:
        return await stories.regenerate(
            story,
            prompts=request.prompts,
            title=request.title,
            hints=request.hints,
        )

    return await stories.update(
        story,
        content=request.content,
        title=request.title,
        hints=request.hints,
        genres=request.genres,
    )


@router.delete("/{story_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_story(story_id: int, user: CurrentUser, stories: Stories) -> Response:
    """Delete a story owned by the current user."""
    story = await stories.get_owned(user, story_id)
    await stories.delete(story)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
