"""Feature resolving.

This module provides:
- resolve_feature_list: resolve every trace of a single-file feature list
- FeatureResolverTask: the same as a cancellable background task
- MS2 grouping of resolved features
"""

from .parameters import (
    ResolverParameters,
)

from .ms2_grouping import (
    GroupMS2Params,
    GroupMS2Processor,
)

from .resolver_task import (
    resolve_feature_list,
    FeatureResolverTask,
)

__all__ = [
    # Parameters
    'ResolverParameters',

    # MS2 grouping
    'GroupMS2Params',
    'GroupMS2Processor',

    # Resolving
    'resolve_feature_list',
    'FeatureResolverTask',
]
