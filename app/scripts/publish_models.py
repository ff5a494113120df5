"""
Publish Models Script
Publishes every model definition JSON file found in a directory, then
synchronizes all tables. Can be run manually or as part of a deploy job:

    python -m app.scripts.publish_models ./definitions
"""

import asyncio
import json
import sys
from pathlib import Path

from app.config import settings
from app.core.exceptions import ModelValidationError
from app.database.engine import create_engine
from app.database.schema_sync import SchemaSynchronizer
from app.modules.models.registry import ModelRegistry
from app.modules.models.service import PublicationService
from app.modules.models.storage import ModelDefinitionStorage
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def publish_directory(source_dir: Path, service: PublicationService) -> int:
    """Publish each *.json file in source_dir; returns the number published"""
    published = 0
    for path in sorted(source_dir.glob("*.json")):
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except ValueError as e:
            logger.error(f"Skipping {path.name}: invalid JSON ({e})")
            continue
        try:
            response = await service.publish(raw)
        except ModelValidationError as e:
            logger.error(f"Skipping {path.name}: {e.message}")
            continue
        failed = [r for r in response.synchronization if not r["ok"]]
        for result in failed:
            logger.warning(f"Table for {result['model']} not synchronized: {result['error']}")
        logger.info(response.message)
        published += 1
    return published


async def run(source_dir: Path) -> int:
    engine = create_engine(settings)
    try:
        service = PublicationService(
            ModelRegistry(),
            ModelDefinitionStorage(settings.models_dir),
            SchemaSynchronizer(engine),
        )
        await service.load_and_synchronize()
        return await publish_directory(source_dir, service)
    finally:
        await engine.dispose()


def main():
    """Main function to publish model definitions"""
    if len(sys.argv) != 2:
        logger.error("Usage: python -m app.scripts.publish_models <definitions-dir>")
        sys.exit(2)
    source_dir = Path(sys.argv[1])
    if not source_dir.is_dir():
        logger.error(f"Not a directory: {source_dir}")
        sys.exit(2)
    try:
        count = asyncio.run(run(source_dir))
        logger.info(f"Publishing completed: {count} models published")
    except Exception as e:
        logger.error(f"Error during publishing: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
