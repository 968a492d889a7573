"""Resolver selection by type."""

from typing import Dict, Optional, Tuple, Type

from ..exceptions import ConfigurationError
from .base import Resolver, ResolverParams, ResolverType
from .minimum_search import MinimumSearchParams, MinimumSearchResolver
from .noise_amplitude import NoiseAmplitudeParams, NoiseAmplitudeResolver
from .wavelet import WaveletParams, WaveletResolver

RESOLVERS: Dict[ResolverType, Tuple[Type[Resolver], Type[ResolverParams]]] = {
    ResolverType.MINIMUM_SEARCH: (MinimumSearchResolver, MinimumSearchParams),
    ResolverType.WAVELET: (WaveletResolver, WaveletParams),
    ResolverType.NOISE_AMPLITUDE: (NoiseAmplitudeResolver, NoiseAmplitudeParams),
}


def default_params(resolver_type: ResolverType) -> ResolverParams:
    """Default parameters of a resolver type."""
    if resolver_type not in RESOLVERS:
        raise ConfigurationError(f"Unknown resolver type: {resolver_type}")
    return RESOLVERS[resolver_type][1]()


def create_resolver(
    resolver_type: Optional[ResolverType],
    params: Optional[ResolverParams] = None,
) -> Resolver:
    """Instantiate a resolver.

    Args:
        resolver_type: Resolver strategy (a ``ResolverType`` or its value)
        params: Strategy parameters; defaults if None

    Returns:
        Configured resolver

    Raises:
        ConfigurationError: If no resolver is selected, the type is unknown,
            or ``params`` belong to another resolver type
    """
    if resolver_type is None:
        raise ConfigurationError("No resolver selected")
    if not isinstance(resolver_type, ResolverType):
        try:
            resolver_type = ResolverType(resolver_type)
        except ValueError:
            raise ConfigurationError(f"Unknown resolver type: {resolver_type!r}") from None

    resolver_cls, params_cls = RESOLVERS[resolver_type]
    if params is None:
        params = params_cls()
    elif not isinstance(params, params_cls):
        raise ConfigurationError(
            f"{resolver_type.value} resolver needs {params_cls.__name__}, got {type(params).__name__}"
        )
    return resolver_cls(params)
