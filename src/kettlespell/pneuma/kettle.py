"""Kettle address resolution."""

from __future__ import annotations

import logging
from typing import Optional

from ..errors import ConfigurationError, NoKettleFoundError
from ..utils import checksum

logger = logging.getLogger(__name__)


def resolve_kettle_address(endpoint, explicit: Optional[str] = None) -> str:
    """
    Resolve the kettle that must execute our confidential requests.

    An explicit address wins and is not checked against the endpoint.
    Otherwise the endpoint is asked once via ``eth_kettleAddress`` and the
    first address it reports is used.

    Raises:
        NoKettleFoundError: If the endpoint reports no kettle
        TransportError: If the query itself fails (not retried)
    """
    if explicit:
        try:
            return checksum(explicit)
        except ValueError as exc:
            raise ConfigurationError(f"Invalid kettle address: {explicit}") from exc

    addresses = endpoint.kettle_addresses()
    if not addresses:
        raise NoKettleFoundError("no kettle address found")

    logger.debug("endpoint reports %d kettle(s), using %s", len(addresses), addresses[0])
    return addresses[0]
