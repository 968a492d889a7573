"""Feature data model.

This module provides:
- Raw file and scan metadata (RawDataFile, Scan)
- Immutable features with detection status and metadata tags
- Feature lists with stable row ids and provenance records
- Project container and the original-list handling policy
- Center functions for the representative m/z
"""

from .raw import (
    Scan,
    RawDataFile,
)

from .center import (
    CenterMeasure,
    Weighting,
    CenterFunction,
    DEFAULT_MZ_CENTER,
)

from .features import (
    FeatureStatus,
    MobilityUnit,
    Feature,
)

from .feature_list import (
    AppliedMethod,
    FeatureListRow,
    FeatureList,
)

from .project import (
    Project,
    OriginalFeatureListHandling,
)

from .access import (
    FeatureDataType,
    FeatureDataAccess,
)

__all__ = [
    # Raw data
    'Scan',
    'RawDataFile',

    # Center functions
    'CenterMeasure',
    'Weighting',
    'CenterFunction',
    'DEFAULT_MZ_CENTER',

    # Features
    'FeatureStatus',
    'MobilityUnit',
    'Feature',

    # Feature lists
    'AppliedMethod',
    'FeatureListRow',
    'FeatureList',

    # Project
    'Project',
    'OriginalFeatureListHandling',

    # Ion series access
    'FeatureDataType',
    'FeatureDataAccess',
]
