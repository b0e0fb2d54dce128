"""Location strategies for finding page elements.

A strategy is a tagged variant: ``Id``, ``CssSelector`` or ``XPath``. The
driver adapter dispatches on the variant type, so callers never build
engine-specific selector strings themselves.

Example:
    >>> str(CssSelector("h1.text-heading-xlarge"))
    'css=h1.text-heading-xlarge'
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class _Strategy(BaseModel):
    """Shared shape of every location strategy (frozen and hashable)."""

    model_config = ConfigDict(frozen=True)

    value: str = Field(..., min_length=1)

    def __init__(self, value: str, **data: Any) -> None:
        super().__init__(value=value, **data)

    def __str__(self) -> str:
        return f"{self.kind}={self.value}"


class Id(_Strategy):
    """Match the element whose id attribute equals ``value``."""

    kind: Literal["id"] = "id"


class CssSelector(_Strategy):
    """Match elements with a CSS selector."""

    kind: Literal["css"] = "css"


class XPath(_Strategy):
    """Match elements with an XPath expression."""

    kind: Literal["xpath"] = "xpath"


LocationStrategy = Id | CssSelector | XPath


def describe(strategies: tuple[LocationStrategy, ...] | list[LocationStrategy]) -> list[str]:
    """Render strategies for logs and exception context."""
    return [str(strategy) for strategy in strategies]
