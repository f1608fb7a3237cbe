"""
Channel identifier sources

Two optional text files feed the channel side of the XMLTV output:

    chanidents      '<service_id> <xmltv channel id>' per line, mapping
                    services to externally agreed identifiers
    channels.conf   [cst]zap tuning list; field 0 is the channel name and
                    field 8 (0-based) the service id
"""

import logging
from pathlib import Path
from typing import Dict, List, Tuple, Union


logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

ZAP_SERVICE_ID_FIELD = 8


def parse_chanidents(lines) -> Dict[int, str]:
    """
    Parse an alias table.

    Blank lines and lines starting with '#' are skipped, as are lines
    whose first field is not an integer.
    """
    table: Dict[int, str] = {}
    for number, line in enumerate(lines, 1):
        line = line.strip()
        if not line or line.startswith('#'):
            continue
        parts = line.split(None, 1)
        if len(parts) != 2:
            logger.warning("chanidents line %d has no identifier: %r", number, line)
            continue
        try:
            key = int(parts[0], 0)
        except ValueError:
            logger.warning("chanidents line %d has a non-numeric key: %r", number, line)
            continue
        table[key] = parts[1].strip()
    return table


def load_chanidents(path: PathLike) -> Dict[int, str]:
    """
    Load an alias table from a file.

    A missing or unreadable file is reported and yields an empty table.
    """
    try:
        with open(path, 'r', encoding='utf-8', errors='replace') as f:
            return parse_chanidents(f)
    except OSError as e:
        logger.warning("Error loading %s, continuing: %s", path, e)
        return {}


def parse_zap_channels(lines) -> List[Tuple[int, str]]:
    """Extract (service_id, name) pairs from channels.conf lines."""
    channels = []
    for line in lines:
        fields = line.rstrip('\r\n').split(':')
        if len(fields) <= ZAP_SERVICE_ID_FIELD or not fields[0]:
            continue
        try:
            service_id = int(fields[ZAP_SERVICE_ID_FIELD])
        except ValueError:
            continue
        if service_id:
            channels.append((service_id, fields[0]))
    return channels


def read_zap_channels(path: PathLike) -> List[Tuple[int, str]]:
    """Read channels.conf; a missing file is a notice, not an error."""
    try:
        with open(path, 'r', encoding='utf-8', errors='replace') as f:
            return parse_zap_channels(f)
    except OSError:
        logger.info("No [cst]zap %s to produce channel info", path)
        return []
