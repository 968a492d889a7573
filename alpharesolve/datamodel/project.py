"""Project holding feature lists, and the policy for original lists."""

import logging
from enum import Enum
from typing import List, Optional

from .feature_list import FeatureList

logger = logging.getLogger(__name__)


class Project:
    """Ordered collection of feature lists."""

    def __init__(self, name: str = "project"):
        self.name = name
        self._feature_lists: List[FeatureList] = []

    def __repr__(self) -> str:
        return f"Project({self.name!r}, feature_lists={len(self._feature_lists)})"

    @property
    def feature_lists(self) -> List[FeatureList]:
        return list(self._feature_lists)

    def __contains__(self, feature_list: FeatureList) -> bool:
        return any(f is feature_list for f in self._feature_lists)

    def _index(self, feature_list: FeatureList) -> int:
        for i, f in enumerate(self._feature_lists):
            if f is feature_list:
                return i
        raise ValueError(f"Feature list {feature_list} is not part of {self.name}")

    def add_feature_list(self, feature_list: FeatureList) -> None:
        if feature_list not in self:
            self._feature_lists.append(feature_list)

    def remove_feature_list(self, feature_list: FeatureList) -> None:
        del self._feature_lists[self._index(feature_list)]

    def replace_feature_list(self, old: FeatureList, new: FeatureList) -> None:
        self._feature_lists[self._index(old)] = new

    def get_feature_list(self, name: str) -> Optional[FeatureList]:
        for f in self._feature_lists:
            if f.name == name:
                return f
        return None


class OriginalFeatureListHandling(Enum):
    """What happens to the input list once a processed list is published."""
    KEEP = "keep"
    REMOVE = "remove"
    PROCESS_IN_PLACE = "process_in_place"

    def reflect_new_feature_list(
        self,
        suffix: str,
        project: Optional[Project],
        new_list: FeatureList,
        original: FeatureList,
    ) -> None:
        """Publish ``new_list`` to ``project`` according to this policy.

        KEEP appends the new list, REMOVE appends it and removes the original,
        PROCESS_IN_PLACE puts it at the original's position under the
        original's name. Without a project nothing is published.
        """
        if self == OriginalFeatureListHandling.PROCESS_IN_PLACE:
            new_list.name = original.name
        elif suffix:
            new_list.name = f"{original.name} {suffix}"

        if project is None:
            return

        if self == OriginalFeatureListHandling.KEEP:
            project.add_feature_list(new_list)
        elif self == OriginalFeatureListHandling.REMOVE:
            project.add_feature_list(new_list)
            if original in project:
                project.remove_feature_list(original)
        elif original in project:
            project.replace_feature_list(original, new_list)
        else:
            project.add_feature_list(new_list)
        logger.info(f"Published {new_list.name} ({self.value} original {original.name})")
