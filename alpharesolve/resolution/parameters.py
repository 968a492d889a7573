"""Parameters of the feature resolving step."""

import dataclasses
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..datamodel.center import DEFAULT_MZ_CENTER, CenterFunction
from ..datamodel.project import OriginalFeatureListHandling
from ..resolvers.base import ChromatographyType, Resolver, ResolverParams, ResolverType
from ..resolvers.minimum_search import MinimumSearchParams
from ..resolvers.registry import create_resolver
from ..resolvers.wavelet import WaveletParams
from .ms2_grouping import GroupMS2Params


@dataclass
class ResolverParameters:
    """Everything the resolver task needs besides the input list.

    Attributes
    ----------
    resolver_type : ResolverType
        Strategy to split traces with (None means no resolver selected)
    resolver_params : ResolverParams, optional
        Strategy parameters; defaults of ``resolver_type`` if None
    suffix : str
        Appended to the input list name for the new list
    handle_original : OriginalFeatureListHandling
        What happens to the input list once the new one is published
    group_ms2 : GroupMS2Params, optional
        Run MS2 grouping after resolving if given
    mz_center : CenterFunction
        Statistic for the feature m/z
    """

    resolver_type: Optional[ResolverType] = ResolverType.MINIMUM_SEARCH
    resolver_params: Optional[ResolverParams] = None
    suffix: str = "r"
    handle_original: OriginalFeatureListHandling = OriginalFeatureListHandling.KEEP
    group_ms2: Optional[GroupMS2Params] = None
    mz_center: CenterFunction = DEFAULT_MZ_CENTER

    @classmethod
    def for_chromatography(
        cls,
        chromatography: ChromatographyType,
        resolver_type: ResolverType = ResolverType.MINIMUM_SEARCH,
        **kwargs,
    ) -> 'ResolverParameters':
        """Parameters with separation-specific resolver presets."""
        if resolver_type == ResolverType.MINIMUM_SEARCH:
            resolver_params = MinimumSearchParams.for_chromatography(chromatography)
        elif resolver_type == ResolverType.WAVELET:
            resolver_params = WaveletParams.for_chromatography(chromatography)
        else:
            resolver_params = None
        return cls(resolver_type=resolver_type, resolver_params=resolver_params, **kwargs)

    def create_resolver(self) -> Resolver:
        """Instantiate the selected resolver.

        Raises
        ------
        ConfigurationError
            If no resolver is selected or the parameters do not fit it
        """
        return create_resolver(self.resolver_type, self.resolver_params)

    def to_dict(self) -> Dict[str, Any]:
        """Flat provenance record."""
        record: Dict[str, Any] = {
            'suffix': self.suffix,
            'handle_original': self.handle_original.value,
            'mz_center': f"{self.mz_center.measure.value}/{self.mz_center.weighting.value}",
            'group_ms2': dataclasses.asdict(self.group_ms2) if self.group_ms2 is not None else None,
        }
        return record
