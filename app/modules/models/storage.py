import json
import logging
from pathlib import Path
from typing import List
from urllib.parse import quote

from pydantic import ValidationError

from app.modules.models.schemas import ModelDefinition

logger = logging.getLogger(__name__)


class ModelDefinitionStorage:
    """Durable storage of model definitions: one <model>.json file per model"""

    def __init__(self, models_dir: str):
        self.models_dir = Path(models_dir)

    def ensure_dir(self) -> None:
        if not self.models_dir.exists():
            logger.info(f"Creating models directory: {self.models_dir}")
        self.models_dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, model_name: str) -> Path:
        # Percent-encoding keeps the file name deterministic, flat and collision-free
        return self.models_dir / f"{quote(model_name.lower(), safe='')}.json"

    def save(self, definition: ModelDefinition) -> Path:
        """Write the definition, replacing any previous file for the same name"""
        self.ensure_dir()
        path = self.path_for(definition.name)
        tmp = path.with_suffix(path.suffix + ".tmp")
        tmp.write_text(json.dumps(definition.to_json(), indent=2), encoding="utf-8")
        tmp.replace(path)
        logger.info(f"Published model definition: {path}")
        return path

    def load_all(self) -> List[ModelDefinition]:
        """Read every stored definition, skipping files that fail to parse"""
        self.ensure_dir()
        logger.info("Loading models from disk...")
        definitions = []
        for path in sorted(self.models_dir.glob("*.json")):
            try:
                raw = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, ValueError) as e:
                logger.error(f"Failed to load model {path.name}: {e}")
                continue
            if not isinstance(raw, dict) or not raw.get("name"):
                logger.warning(f"Skipping {path.name}: missing 'name' property.")
                continue
            try:
                definition = ModelDefinition.model_validate(raw)
            except ValidationError as e:
                logger.warning(f"Skipping {path.name}: invalid definition ({e.error_count()} errors)")
                continue
            logger.info(f"Loaded model: {definition.name}")
            definitions.append(definition)
        return definitions
