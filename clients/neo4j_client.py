# File: clients/neo4j_client.py
import os
import logging

from neo4j import GraphDatabase, Driver

logger = logging.getLogger(__name__)


def create_neo4j_driver() -> Driver:
    """
    Build a Neo4j driver from NEO4J_URI / NEO4J_USER / NEO4J_PASSWORD.
    The caller owns the driver and must close it at shutdown.
    """
    uri = os.getenv("NEO4J_URI")
    user = os.getenv("NEO4J_USER")
    password = os.getenv("NEO4J_PASSWORD")

    if not uri or not user or not password:
        message = (
            "Missing Neo4j environment variables (NEO4J_URI, NEO4J_USER, NEO4J_PASSWORD). "
            "Please ensure they are defined in your .env file."
        )
        logger.error(message)
        raise ValueError(message)

    logger.info(f"Connecting to Neo4j at: {uri}")
    return GraphDatabase.driver(uri, auth=(user, password))
