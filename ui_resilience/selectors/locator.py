from __future__ import annotations

"""Locators and locator chains
------------------------------
A Locator is one selector plus the strategy it belongs to. A LocatorChain is
an ordered, immutable sequence of locators resolved step by step, each step
searching inside the node found by the previous one.
"""

from enum import Enum
from typing import Iterable, Iterator, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LocatorStrategy(str, Enum):
    css = "css selector"
    xpath = "xpath"
    text = "text"
    id = "id"
    name = "name"


def _quote(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


class Locator(BaseModel):
    model_config = ConfigDict(frozen=True)

    strategy: LocatorStrategy = Field(default=LocatorStrategy.css)
    value: str = Field(..., description="Selector string for the strategy")

    @field_validator("value")
    @classmethod
    def _non_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("locator value cannot be empty")
        return v

    def to_selector(self) -> str:
        """Playwright selector string for this locator."""
        if self.strategy == LocatorStrategy.css:
            return f"css={self.value}"
        if self.strategy == LocatorStrategy.xpath:
            return f"xpath={self.value}"
        if self.strategy == LocatorStrategy.text:
            return f"text={self.value}"
        if self.strategy == LocatorStrategy.id:
            return f"css=[id={_quote(self.value)}]"
        return f"css=[name={_quote(self.value)}]"

    def __str__(self) -> str:
        return f"By({self.strategy.value}, {self.value})"


class By:
    """Locator factories, named after the strategy they build."""

    @staticmethod
    def css(selector: str) -> Locator:
        return Locator(strategy=LocatorStrategy.css, value=selector)

    @staticmethod
    def xpath(expression: str) -> Locator:
        return Locator(strategy=LocatorStrategy.xpath, value=expression)

    @staticmethod
    def id(element_id: str) -> Locator:
        return Locator(strategy=LocatorStrategy.id, value=element_id)

    @staticmethod
    def name(name: str) -> Locator:
        return Locator(strategy=LocatorStrategy.name, value=name)

    @staticmethod
    def text(text: str) -> Locator:
        return Locator(strategy=LocatorStrategy.text, value=text)


class LocatorChain:
    """Non-empty, immutable sequence of locators; appending returns a new chain."""

    __slots__ = ("_locators",)

    def __init__(self, locators: Iterable[Locator]):
        items: Tuple[Locator, ...] = tuple(locators)
        if not items:
            raise ValueError("locator chain cannot be empty")
        for item in items:
            if not isinstance(item, Locator):
                raise TypeError(f"expected Locator, got {type(item).__name__}")
        self._locators = items

    @classmethod
    def of(cls, *locators: Locator) -> "LocatorChain":
        return cls(locators)

    @classmethod
    def coerce(cls, value: Union[Locator, "LocatorChain", Iterable[Locator]]) -> "LocatorChain":
        if isinstance(value, LocatorChain):
            return value
        if isinstance(value, Locator):
            return cls((value,))
        return cls(value)

    @property
    def own(self) -> Locator:
        """The last locator: the one this chain contributes when rebased."""
        return self._locators[-1]

    @property
    def locators(self) -> Tuple[Locator, ...]:
        return self._locators

    def append(self, locator: Locator) -> "LocatorChain":
        return LocatorChain(self._locators + (locator,))

    def prefix(self, length: int) -> "LocatorChain":
        return LocatorChain(self._locators[:length])

    def __iter__(self) -> Iterator[Locator]:
        return iter(self._locators)

    def __len__(self) -> int:
        return len(self._locators)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LocatorChain):
            return NotImplemented
        return self._locators == other._locators

    def __hash__(self) -> int:
        return hash(self._locators)

    def __str__(self) -> str:
        return ", ".join(str(locator) for locator in self._locators)

    def __repr__(self) -> str:
        return f"LocatorChain({str(self)})"
