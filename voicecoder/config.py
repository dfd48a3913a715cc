"""Runtime configuration read from the environment."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

DEFAULT_PROVIDER = "anthropic"


class AssistantConfig(BaseModel):
    """Settings for the command-line host.

    Environment variables:
        VOICECODER_PROVIDER: Provider used when none is selected (default: anthropic)
        VOICECODER_MODEL: Model override for every request
        VOICECODER_STATE_DIR: Where usage and keys are stored (default: ~/.voicecoder)
    """

    provider: str = DEFAULT_PROVIDER
    model: Optional[str] = None
    state_dir: Path = Field(default_factory=lambda: Path("~/.voicecoder").expanduser())
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None

    @property
    def state_path(self) -> Path:
        return self.state_dir / "state.json"

    @property
    def secrets_path(self) -> Path:
        return self.state_dir / "secrets.json"

    @classmethod
    def from_env(cls) -> AssistantConfig:
        values: dict = {}
        if os.environ.get("VOICECODER_PROVIDER"):
            values["provider"] = os.environ["VOICECODER_PROVIDER"]
        if os.environ.get("VOICECODER_MODEL"):
            values["model"] = os.environ["VOICECODER_MODEL"]
        if os.environ.get("VOICECODER_STATE_DIR"):
            values["state_dir"] = Path(os.environ["VOICECODER_STATE_DIR"]).expanduser()
        return cls(**values)
