"""Choice branch models: catalog options, presented prompts and resolutions."""

from pydantic import BaseModel, Field


class ChoiceOption(BaseModel):
    """A catalog entry such as ``feat: add-caching-layer (+$300)``."""

    label: str = Field(min_length=1)
    reward: float = Field(ge=0)

    @property
    def display(self) -> str:
        return f"{self.label} (+${self.reward:g})"


class ChoicePrompt(BaseModel):
    """The distinct options presented at one choice branch."""

    prompt_id: str
    options: list[ChoiceOption]


class ChoiceResolution(BaseModel):
    """The option selected for a prompt and the cash balance after the reward."""

    prompt_id: str
    option: ChoiceOption
    cash_after: float
