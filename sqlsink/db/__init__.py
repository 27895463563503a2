from .keys import GeneratedKeys
from .params import (
    FunctionParameterSourceFactory,
    MapParameterSource,
    MapParameterSourceFactory,
    ParameterSource,
    ParameterSourceFactory,
    PropertyParameterSource,
    PropertyParameterSourceFactory,
)
from .session import DbSession
from .template import NamedTemplate
from .tx import DbFactory, DbTransaction, DbTx

__all__ = [
    "DbSession",
    "DbTx",
    "DbTransaction",
    "DbFactory",
    "GeneratedKeys",
    "NamedTemplate",
    "ParameterSource",
    "ParameterSourceFactory",
    "MapParameterSource",
    "MapParameterSourceFactory",
    "PropertyParameterSource",
    "PropertyParameterSourceFactory",
    "FunctionParameterSourceFactory",
]
