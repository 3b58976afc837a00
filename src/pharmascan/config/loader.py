"""Scan-target loading from a directory of YAML recipes."""

from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import ValidationError

from ..utils.logging import get_structured_logger
from .types import ConfigLoadError, ConfigValidationError, ScanTarget

logger = get_structured_logger(__name__)


class ConfigLoader:
    """Loads one ``ScanTarget`` per ``*.yaml`` file in a recipe directory.

    Files containing ``.disabled`` in their name, or whose name starts with
    ``sample``, are ignored. A broken file is logged and skipped so one bad
    recipe never hides the others.
    """

    def __init__(self, config_dir: Union[str, Path, None] = None):
        self.config_dir = Path(config_dir or "config/pharmacies")

    def resolve_dir(self) -> Optional[Path]:
        """Return the absolute recipe directory, or ``None`` when it is missing."""
        base = self.config_dir.expanduser().resolve()
        return base if base.is_dir() else None

    def recipe_files(self) -> list[Path]:
        base = self.resolve_dir()
        if base is None:
            logger.warning("Scan target directory not found", path=str(self.config_dir))
            return []

        files = [
            f
            for f in sorted(base.glob("*.yaml"))
            if ".disabled" not in f.name and not f.name.lower().startswith("sample")
        ]
        logger.info("Found scan target files", count=len(files), path=str(base))
        return files

    def load_file(self, path: Path) -> ScanTarget:
        """Parse and validate a single recipe file."""
        try:
            with open(path, encoding="utf-8") as f:
                data: Any = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigLoadError(f"Failed to parse YAML in {path.name}: {str(e)}") from e
        except OSError as e:
            raise ConfigLoadError(f"Failed to read {path.name}: {str(e)}") from e

        if not isinstance(data, dict):
            raise ConfigValidationError(f"{path.name} does not contain a mapping")

        try:
            return ScanTarget.model_validate(data)
        except ValidationError as e:
            raise ConfigValidationError(f"Invalid scan target {path.name}: {str(e)}") from e

    def load_all(self) -> list[ScanTarget]:
        """Load every enabled recipe, skipping the ones that fail."""
        targets = []
        for path in self.recipe_files():
            try:
                target = self.load_file(path)
            except (ConfigLoadError, ConfigValidationError) as e:
                logger.error("Failed to load scan target", file=path.name, error=str(e))
                continue

            targets.append(target)
            logger.info("Loaded scan target", target_id=target.id, file=path.name)

        return targets
