"""Selector-based dispatch over interchangeable backends.

A dispatch provider owns a fixed mapping from selector value (a provider
name or a processing mode) to a pre-built target. ``dispatch`` pops the
selector out of the argument bag and forwards the rest, unchanged, to the
selected target. Results and errors from the target propagate as-is.

Example usage:
    router = WebSearchRouter({"tavily": tavily, "brave": brave})
    results = await router.dispatch({"provider": "brave", "query": "mcp"})
"""

import logging
from abc import ABC, abstractmethod
from types import MappingProxyType
from typing import Any, Generic, Mapping, Optional, TypeVar

from omnisearch_mcp.core.errors import ErrorHandler

logger = logging.getLogger(__name__)

P = TypeVar("P")


class DispatchProvider(ABC, Generic[P]):
    """Route a call to one of several targets by a selector field.

    Attributes:
        name: Router name; selector errors are attributed to it
        description: Free-text description exposed as the tool description
        selector: Argument that picks the target (``provider``, ``mode`` ...)
        default_selector: Used when the selector is absent, if set
    """

    name: str = ""
    description: str = ""
    selector: str = "provider"
    default_selector: Optional[str] = None

    def __init__(self, targets: Mapping[str, P]):
        if not targets:
            raise ValueError(f"{self.name or type(self).__name__} needs at least one target")
        self._targets = MappingProxyType(dict(targets))
        self.errors = ErrorHandler(self.name)

    @property
    def valid_options(self) -> list[str]:
        return list(self._targets)

    def select(self, arguments: Mapping[str, Any]) -> tuple[P, dict[str, Any]]:
        """Return the selected target and the arguments minus the selector.

        Raises:
            InvalidInputError: The selector is missing or unknown.
        """
        payload = dict(arguments)
        choice = payload.pop(self.selector, None)
        if choice is None:
            choice = self.default_selector
        if choice is None or choice == "":
            raise self.errors.invalid_input(f"{self.selector} is required")
        if not isinstance(choice, str) or choice not in self._targets:
            raise self.errors.invalid_input(
                f"Invalid {self.selector}: {choice}. "
                f"Valid options: {', '.join(self.valid_options)}"
            )
        logger.debug("%s routing to %s=%s", self.name, self.selector, choice)
        return self._targets[choice], payload

    async def dispatch(self, arguments: Mapping[str, Any]) -> Any:
        target, payload = self.select(arguments)
        return await self.forward(target, payload)

    @abstractmethod
    async def forward(self, target: P, payload: dict[str, Any]) -> Any:
        """Invoke ``target`` with the remaining arguments."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(options={self.valid_options})"
