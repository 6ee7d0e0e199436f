"""Command data contracts."""
from typing import Any, Dict, Generic, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict

TResult = TypeVar("TResult")


class CommandBase(BaseModel):
    """
    Base class for all commands.

    Commands are immutable and identified by their type. The string form of a
    command is its JSON representation, meant for logs and diagnostics only.
    """

    model_config = ConfigDict(frozen=True)

    correlation_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Return a plain dictionary of the command's fields."""
        return self.model_dump()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CommandBase":
        """Create a command from a plain dictionary."""
        return cls.model_validate(data)

    def __str__(self) -> str:
        return self.model_dump_json()


class Command(CommandBase):
    """A command that produces no result value."""


class QueryCommand(CommandBase, Generic[TResult]):
    """A command that produces a typed result value."""

    @classmethod
    def result_type(cls) -> Optional[Type[Any]]:
        """
        Get the result type a concrete query command was declared with.

        Returns:
            The bound result type, or None if the class is still generic
        """
        for klass in cls.__mro__:
            metadata = getattr(klass, "__pydantic_generic_metadata__", None)
            if not metadata or metadata.get("origin") is not QueryCommand:
                continue
            args = metadata.get("args") or ()
            if args and not isinstance(args[0], TypeVar):
                return args[0]
        return None
