"""
Wiring of configuration, data stores and the availability service.
"""

import logging
from pathlib import Path
from typing import Optional

from .adapters.mock_store import MockClinicStore
from .adapters.postgrest_store import PostgrestStore
from .config import AppConfig
from .services.availability import AvailabilityService

logger = logging.getLogger(__name__)


def build_service(
    config: AppConfig,
    mock: bool = False,
    mock_data_file: Optional[Path] = None
) -> AvailabilityService:
    """
    Create an AvailabilityService backed by Supabase or by mock data.

    Raises:
        ValueError: If Supabase is required but not configured
    """
    options = dict(
        clinic_timezone=config.timezone,
        granularity_minutes=config.defaults.granularity_minutes,
        cancelled_statuses=config.cancelled_statuses,
    )

    if mock:
        logger.info("Using mock clinic data")
        return AvailabilityService.from_store(
            MockClinicStore(data_file=mock_data_file, cancelled_statuses=config.cancelled_statuses),
            **options,
        )

    if config.supabase is None:
        raise ValueError(
            "No 'supabase' section in the configuration. "
            "Add one or run with --mock."
        )

    store = PostgrestStore(
        base_url=config.supabase.url,
        service_key=config.supabase.get_service_key(),
        timeout=config.supabase.timeout_seconds,
        cancelled_statuses=config.cancelled_statuses,
    )
    return AvailabilityService.from_store(store, **options)
