"""Wiring of the engine components.

Components are constructed explicitly and passed to each other; nothing
here is a module-level singleton. The CLI and the JSON API both build
their object graph through ``build_services``.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from .dosing import DoseCalculator
from .interactions import InteractionChecker
from .reference import DrugProvider, MaterialProvider, ProcedureProvider
from .sync import StatusChannel, SyncOrchestrator
from .validation import ContentValidator

logger = logging.getLogger(__name__)


@dataclass
class ClinicalServices:
    drugs: DrugProvider
    procedures: ProcedureProvider
    materials: MaterialProvider
    validator: ContentValidator
    dose_calculator: DoseCalculator
    interaction_checker: InteractionChecker
    sync: SyncOrchestrator


def build_services(
    store=None,
    data_dir: Path | None = None,
    drugs: DrugProvider | None = None,
    procedures: ProcedureProvider | None = None,
    materials: MaterialProvider | None = None,
    **sync_options,
) -> ClinicalServices:
    """Construct the full component graph.

    Args:
        store: Key/value store for the sync cache (CacheStore or MemoryStore).
        data_dir: Directory holding the reference JSON files.
        drugs: Pre-built drug provider (tests inject failing loaders here).
        procedures: Pre-built procedure provider.
        materials: Pre-built material provider.
        **sync_options: Passed through to SyncOrchestrator.
    """
    drugs = drugs or DrugProvider(data_dir=data_dir)
    procedures = procedures or ProcedureProvider(data_dir=data_dir)
    materials = materials or MaterialProvider(data_dir=data_dir)
    validator = ContentValidator()
    interaction_checker = InteractionChecker(drugs)

    sync = SyncOrchestrator(
        drugs,
        procedures,
        materials,
        validator=validator,
        store=store,
        interaction_checker=interaction_checker,
        channel=StatusChannel(),
        **sync_options,
    )
    logger.debug("Clinical services constructed")

    return ClinicalServices(
        drugs=drugs,
        procedures=procedures,
        materials=materials,
        validator=validator,
        dose_calculator=DoseCalculator(drugs, validator),
        interaction_checker=interaction_checker,
        sync=sync,
    )
