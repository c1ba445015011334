"""Plan model produced by the set_plan tool."""

from pydantic import BaseModel, ConfigDict, Field, field_validator

MIN_PLAN_STEPS = 2
MAX_PLAN_STEPS = 6


class Plan(BaseModel):
    """A short, structured statement of what the agent intends to do this turn.

    Attributes:
        goal: Objective in one sentence.
        steps: Ordered steps, between 2 and 6 inclusive.
        needs_user: Things the user must provide or do (deduplicated, order kept).
        confirm_required: True if the task needs explicit user confirmation
                          (send, pay, delete, publish, login).
    """

    model_config = ConfigDict(frozen=True)

    goal: str = Field(min_length=1)
    steps: list[str] = Field(min_length=MIN_PLAN_STEPS, max_length=MAX_PLAN_STEPS)
    needs_user: list[str] = []
    confirm_required: bool = False

    @field_validator("steps")
    @classmethod
    def steps_must_not_be_blank(cls, v: list[str]) -> list[str]:
        """Validate that every step carries text."""
        if any(not step.strip() for step in v):
            raise ValueError("steps must not be blank")
        return v

    @field_validator("needs_user")
    @classmethod
    def dedupe_needs_user(cls, v: list[str]) -> list[str]:
        """Drop duplicate entries while keeping first-seen order."""
        return list(dict.fromkeys(v))

    def summary_lines(self) -> list[str]:
        """Render the plan as tool log lines."""
        lines = [f"PLAN: {self.goal}"]
        lines.extend(f"  {i}. {step}" for i, step in enumerate(self.steps, start=1))
        if self.confirm_required:
            lines.append("Requires user confirmation.")
        if self.needs_user:
            lines.append(f"Needs from user: {' | '.join(self.needs_user)}")
        return lines
