from __future__ import annotations
from typing import Optional

from pydantic import Field

from ..context import RequestContext
from ..gemini_client import generate_text
from ..rpc import AccessTier, ProcedureRouter
from ..schemas import CamelModel


router = ProcedureRouter("ai")

ACTIVITY_SYSTEM_PROMPT = "You are an expert educator creating engaging classroom activities."


class GenerateActivityInput(CamelModel):
	subject: str = Field(min_length=1, max_length=100)
	topic: str = Field(min_length=1, max_length=200)
	age_group: str = Field(min_length=1, max_length=50)
	activity_type: str = Field(min_length=1, max_length=100)


class SidekickInput(CamelModel):
	message: str = Field(min_length=1, max_length=4000)
	context: Optional[str] = Field(default=None, max_length=4000)


def build_activity_prompt(data: GenerateActivityInput) -> str:
	return (
		f"Create a {data.activity_type} activity for {data.age_group} year olds about \"{data.topic}\" in {data.subject}.\n"
		"Make it engaging and educational. Include clear instructions and expected outcomes."
	)


def build_sidekick_system_prompt(context: Optional[str]) -> str:
	prompt = (
		"You are HydraLearn Sidekick, an AI tutor helping students learn.\n"
		"Be encouraging, clear, and adapt to their learning level."
	)
	if context:
		prompt += f"\nContext: {context}"
	return prompt


# Neither procedure persists the generated text


@router.mutation("generateActivity", tier=AccessTier.TEACHER_OR_ADMIN, input=GenerateActivityInput)
async def generate_activity(ctx: RequestContext, data: GenerateActivityInput):
	text = await generate_text(ctx.llm, build_activity_prompt(data), ACTIVITY_SYSTEM_PROMPT)
	return {"activity": text}


@router.mutation("chatWithSidekick", tier=AccessTier.AUTHENTICATED, input=SidekickInput)
async def chat_with_sidekick(ctx: RequestContext, data: SidekickInput):
	text = await generate_text(ctx.llm, data.message, build_sidekick_system_prompt(data.context))
	return {"response": text}
