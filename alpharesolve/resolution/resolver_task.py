"""Feature resolving: split every trace of a feature list into peaks.

``resolve_feature_list`` is the row loop; ``FeatureResolverTask`` wraps it
with status handling, RT sorting, optional MS2 grouping and publication to
a project.

The input list is never modified. The resolver sees each trace zero-filled
onto the list's selected scans; every resolved RT range is then cut from the
feature's detected data points, so resolved features keep the original
data points and no invented zeros.

Examples
--------
>>> params = ResolverParameters(
...     resolver_type=ResolverType.MINIMUM_SEARCH,
...     resolver_params=MinimumSearchParams(min_absolute_height=1e4),
... )
>>> resolved = resolve_feature_list(chromatograms, params.create_resolver(), parameters=params)
"""

import logging
import time
from datetime import datetime
from typing import Callable, Optional

from ..datamodel.access import FeatureDataAccess, FeatureDataType
from ..datamodel.feature_list import AppliedMethod, FeatureList, FeatureListRow
from ..datamodel.features import Feature
from ..datamodel.project import Project
from ..exceptions import ConfigurationError
from ..resolvers.base import Resolver
from ..taskcontrol.task import AbstractTask, CancellationToken
from ..xic.storage import MemoryMapStorage
from .ms2_grouping import GroupMS2Processor
from .parameters import ResolverParameters

logger = logging.getLogger(__name__)

# Resolved features with at most this many points are reported as short
SHORT_FEATURE_POINTS = 3


def resolve_feature_list(
    feature_list: FeatureList,
    resolver: Resolver,
    storage: Optional[MemoryMapStorage] = None,
    parameters: Optional[ResolverParameters] = None,
    cancel_token: Optional[CancellationToken] = None,
    progress: Optional[Callable[[int, int], None]] = None,
    call_date: Optional[datetime] = None,
) -> Optional[FeatureList]:
    """Resolve every row of ``feature_list`` into a new feature list.

    Parameters
    ----------
    feature_list : FeatureList
        Input list with exactly one raw file
    resolver : Resolver
        Configured resolver
    storage : MemoryMapStorage, optional
        Arena for the resolved series; in-memory copies if None
    parameters : ResolverParameters, optional
        Naming, m/z center function and provenance
    cancel_token : CancellationToken, optional
        Checked once per row
    progress : callable, optional
        Called as ``progress(processed_rows, total_rows)`` after each row
    call_date : datetime, optional
        Timestamp of the applied-method record

    Returns
    -------
    FeatureList or None
        New list with rows in resolution order and ids 1..n, or None if
        cancelled

    Raises
    ------
    ConfigurationError
        If the list has more than one raw file (before any row is read)
    StorageError
        If the backing storage is closed
    """
    if parameters is None:
        parameters = ResolverParameters(
            resolver_type=resolver.resolver_type, resolver_params=resolver.params
        )
    raw_file = feature_list.raw_file

    resolved_list = FeatureList(
        f"{feature_list.name} {parameters.suffix}".strip(), [raw_file], storage=storage
    )
    resolved_list.set_selected_scans(raw_file, feature_list.get_selected_scans(raw_file))
    for method in feature_list.applied_methods:
        resolved_list.add_applied_method(method)

    access = FeatureDataAccess(feature_list, FeatureDataType.INCLUDE_ZEROS, raw_file)
    total_rows = access.number_of_features
    processed_rows = 0
    next_id = 1
    short = 0
    dropped = 0

    logger.info(f"Resolving {total_rows} rows of {feature_list} with {resolver.name}")
    start = time.perf_counter()

    while access.has_next():
        if cancel_token is not None and cancel_token.is_cancelled:
            logger.info(f"Resolving {feature_list} canceled after {processed_rows}/{total_rows} rows")
            return None

        series = access.next()
        original_row = access.current_row
        original = original_row.feature

        for candidate in resolver.resolve(series):
            rt_min, rt_max = candidate.rt_range
            detected = original.series.subseries_by_rt(rt_min, rt_max)
            if len(detected) < resolver.min_data_points:
                dropped += 1
                continue

            feature = Feature.from_series(
                raw_file,
                detected.copy_to(storage),
                status=original.status,
                mz_center=parameters.mz_center,
                fallback_mz=original.mz,
                mobility_unit=original.mobility_unit,
                is_image=original.is_image,
                maldi_spot=original.maldi_spot,
                parent_row_id=original_row.row_id,
            )
            resolved_list.add_row(FeatureListRow(next_id, feature))
            next_id += 1
            if len(detected) <= SHORT_FEATURE_POINTS:
                short += 1

        processed_rows += 1
        if progress is not None:
            progress(processed_rows, total_rows)

    if dropped:
        logger.debug(f"Dropped {dropped} resolved ranges with fewer than {resolver.min_data_points} detected points")
    logger.info(
        f"{short}/{resolved_list.number_of_rows} resolved features have less than "
        f"{SHORT_FEATURE_POINTS + 1} scans"
    )
    logger.info(
        f"Resolved {total_rows} rows into {resolved_list.number_of_rows} features "
        f"in {time.perf_counter() - start:.2f}s"
    )

    resolved_list.add_applied_method(AppliedMethod(
        name=f"Feature resolving ({resolver.name})",
        parameters={**resolver.describe(), **parameters.to_dict()},
        call_date=call_date if call_date is not None else datetime.now(),
    ))
    return resolved_list


class FeatureResolverTask(AbstractTask):
    """Background task resolving one feature list.

    Parameters
    ----------
    project : Project, optional
        Project the new list is published to
    feature_list : FeatureList
        Input list with exactly one raw file
    parameters : ResolverParameters
        Resolver selection and handling of the original list
    storage : MemoryMapStorage, optional
        Arena for the resolved series
    cancel_token : CancellationToken, optional
        Shared cancellation flag

    Notes
    -----
    With MS2 grouping enabled the resolving phase fills the first half of
    the progress range and MS2 grouping the second, so progress never
    decreases when the phase changes.
    """

    def __init__(
        self,
        project: Optional[Project],
        feature_list: FeatureList,
        parameters: ResolverParameters,
        storage: Optional[MemoryMapStorage] = None,
        cancel_token: Optional[CancellationToken] = None,
    ):
        super().__init__(cancel_token)
        self.project = project
        self.original_list = feature_list
        self.parameters = parameters
        self.storage = storage
        self.call_date = datetime.now()
        self.resolved_list: Optional[FeatureList] = None
        self._ms2_processor: Optional[GroupMS2Processor] = None
        self._resolve_share = 0.5 if parameters.group_ms2 is not None else 1.0
        self.set_description(f"Feature resolving on {feature_list}")

    @property
    def task_description(self) -> str:
        if self._ms2_processor is not None:
            return self._ms2_processor.task_description
        return super().task_description

    def _resolve_progress(self, processed: int, total: int) -> None:
        self.set_progress(self._resolve_share * processed / total if total else 0.0)

    def _ms2_progress(self, processed: int, total: int) -> None:
        fraction = processed / total if total else 1.0
        self.set_progress(self._resolve_share + (1.0 - self._resolve_share) * fraction)

    def process(self) -> Optional[FeatureList]:
        logger.info(f"Started feature resolving on {self.original_list}")

        # Both checks happen before any row is read
        if self.original_list.number_of_raw_files != 1:
            raise ConfigurationError(
                "Feature resolving can only be performed on feature lists with a single raw data file"
            )
        resolver = self.parameters.create_resolver()

        resolved = resolve_feature_list(
            self.original_list,
            resolver,
            storage=self.storage,
            parameters=self.parameters,
            cancel_token=self.cancel_token,
            progress=self._resolve_progress,
            call_date=self.call_date,
        )
        if resolved is None:
            return None

        # Same ordering for every resolved list
        resolved.sort_by_default_rt(reset_ids=True)

        if self.parameters.group_ms2 is not None:
            self._ms2_processor = GroupMS2Processor(
                resolved, self.parameters.group_ms2, self.cancel_token, self._ms2_progress
            )
            try:
                self._ms2_processor.process()
            except Exception as e:
                message = f"MS2 grouping failed on {resolved}: {e}"
                logger.warning(message)
                resolved.processing_warnings.append(message)
            finally:
                self._ms2_processor = None

        if self.is_canceled():
            return None
        return resolved

    def commit(self, resolved: Optional[FeatureList]) -> None:
        if resolved is None:
            return
        self.parameters.handle_original.reflect_new_feature_list(
            self.parameters.suffix, self.project, resolved, self.original_list
        )
        self.resolved_list = resolved
        logger.info(f"Finished feature resolving on {self.original_list}")
