"""Neo4j driver management for the record store."""

from __future__ import annotations

from neo4j import Driver, GraphDatabase

from fwledger.config.models import Neo4jConfig
from fwledger.utils.logging import get_logger

log = get_logger(__name__)


def create_driver(config: Neo4jConfig) -> Driver:
    """Create and verify a Neo4j driver connection."""
    driver = GraphDatabase.driver(
        config.uri,
        auth=(config.username, config.password),
        max_connection_pool_size=config.max_connection_pool_size,
    )
    driver.verify_connectivity()
    log.info("record_store_connected", uri=config.uri, database=config.database)
    return driver

