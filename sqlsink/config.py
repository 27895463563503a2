from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from .db.params import (
    FunctionParameterSourceFactory,
    ParameterSourceFactory,
    PropertyParameterSourceFactory,
)


@dataclass(frozen=True)
class UpdateConfig:
    """
    Static configuration of an UpdateExecutor.

    sql: statement with `:name` placeholders
    keys_generated: return generated-key rows instead of the UPDATED row count
    parameter_source_factory: builds bind values from each request; None binds nothing
    key_column: name given to a driver-reported lastrowid in generated-key rows
    """
    sql: str
    keys_generated: bool = False
    parameter_source_factory: Optional[ParameterSourceFactory] = field(
        default_factory=PropertyParameterSourceFactory
    )
    key_column: str = "id"

    def __post_init__(self) -> None:
        factory = self.parameter_source_factory
        if factory is not None and not hasattr(factory, "create_parameter_source"):
            if not callable(factory):
                raise TypeError(
                    "parameter_source_factory must provide create_parameter_source() or be callable"
                )
            object.__setattr__(
                self, "parameter_source_factory", FunctionParameterSourceFactory(factory)
            )
