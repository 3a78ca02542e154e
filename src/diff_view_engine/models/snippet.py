"""
Code snippet model.
"""

from pydantic import BaseModel, Field, model_validator


class CodeSnippet(BaseModel):
    """A selected range of code captured from a diff or file view."""

    id: str = Field(description="Caller-generated unique token")
    file_path: str = Field(description="Path of the file the selection belongs to")
    start_line: int = Field(ge=1, description="First selected line (1-based)")
    end_line: int = Field(ge=1, description="Last selected line (1-based, inclusive)")
    content: str = Field(description="Selected text, verbatim")
    language: str = Field(default="plaintext", description="Language tag")

    class Config:
        frozen = True

    @model_validator(mode="after")
    def _check_range(self) -> "CodeSnippet":
        if self.start_line > self.end_line:
            raise ValueError("start_line must not exceed end_line")
        return self

    @property
    def line_count(self) -> int:
        """Number of lines covered by the snippet."""
        return self.end_line - self.start_line + 1
