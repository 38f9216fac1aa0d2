"""
Catalog snapshot loading.

Reads the published guide catalog (a JSON list of guides, or an object
with a "guides" list) into GuideEntry records.
"""

import json
import logging
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Union

from .domain.entities import GuideEntry
from .domain.exceptions import CatalogUnavailableException, MalformedEntryException

logger = logging.getLogger(__name__)


def parse_catalog(records: Iterable[Union[GuideEntry, Mapping[str, Any]]]) -> List[GuideEntry]:
    """
    Convert raw catalog records into guides.

    Records missing required textual fields are kept with empty strings
    in their place; each missing field is logged.

    Args:
        records: GuideEntry objects or raw guide mappings

    Returns:
        List of GuideEntry in catalog order
    """
    guides = []
    for record in records:
        if isinstance(record, GuideEntry):
            guides.append(record)
            continue
        if not isinstance(record, Mapping):
            logger.warning(f"Skipping catalog record of type {type(record).__name__}")
            continue

        for field in GuideEntry.missing_fields(record):
            logger.warning(MalformedEntryException(str(record.get("name") or ""), field).message)

        try:
            guides.append(GuideEntry.from_dict(record))
        except (TypeError, ValueError) as e:
            logger.warning(f"Skipping invalid catalog record {record.get('name')!r}: {e}")
    return guides


def load_catalog(path: Union[str, Path]) -> List[GuideEntry]:
    """
    Load a catalog snapshot from a JSON file.

    Args:
        path: Path of the JSON file

    Returns:
        List of GuideEntry

    Raises:
        CatalogUnavailableException: If the file cannot be read or parsed
    """
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise CatalogUnavailableException(f"cannot read {path}: {e}") from e

    if isinstance(data, Mapping):
        data = data.get("guides")
    if not isinstance(data, list):
        raise CatalogUnavailableException(f"{path} does not contain a guide list")

    guides = parse_catalog(data)
    logger.info(f"Loaded {len(guides)} guides from {path}")
    return guides
