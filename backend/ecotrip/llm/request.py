from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple

from google.genai import types


@dataclass(frozen=True)
class GenerationConfig:
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    top_k: Optional[int] = None
    max_output_tokens: Optional[int] = None
    system_instruction: Optional[str] = None
    tools: Tuple[types.FunctionDeclaration, ...] = ()
    # AUTO, ANY or NONE; only sent when tools are declared
    function_calling_mode: Optional[str] = None
    json_output: bool = False

    def to_genai(self) -> types.GenerateContentConfig:
        kwargs: dict = {
            "temperature": self.temperature,
            "top_p": self.top_p,
            "top_k": self.top_k,
            "max_output_tokens": self.max_output_tokens,
            "system_instruction": self.system_instruction,
        }
        if self.tools:
            kwargs["tools"] = [types.Tool(function_declarations=list(self.tools))]
            kwargs["automatic_function_calling"] = types.AutomaticFunctionCallingConfig(
                disable=True
            )
            if self.function_calling_mode:
                kwargs["tool_config"] = types.ToolConfig(
                    function_calling_config=types.FunctionCallingConfig(
                        mode=self.function_calling_mode
                    )
                )
        if self.json_output:
            kwargs["response_mime_type"] = "application/json"
        return types.GenerateContentConfig(
            **{key: value for key, value in kwargs.items() if value is not None}
        )


@dataclass(frozen=True)
class GenerationRequest:
    """Prompt plus config. Only the key and model change between attempts."""

    prompt: str
    config: GenerationConfig = field(default_factory=GenerationConfig)

    def contents(self) -> list[types.Content]:
        return [types.Content(role="user", parts=[types.Part.from_text(text=self.prompt)])]
