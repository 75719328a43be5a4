import yaml
from pathlib import Path
from typing import Dict, Any, Optional

from .errors import InvalidArgumentError


def load_config(config_path: Path) -> Dict[str, Any]:
    """Load YAML configuration file."""
    with open(config_path, 'r') as f:
        config = yaml.safe_load(f)
    return config or {}


def merge_configs(*configs: Dict[str, Any]) -> Dict[str, Any]:
    """Merge configuration dictionaries; later sections replace earlier ones."""
    result = {}
    for config in configs:
        if config:
            result.update(config)
    return result


def get_default_config_path(builder_name: str) -> Path:
    """Path of the bundled config for a builder."""
    return Path(__file__).parent.parent.parent / "configs" / f"{builder_name}.yaml"


def get_builder_config(builder_name: str, config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load a builder's configuration.

    The bundled default is optional so the builders still run from an installed
    copy without ``configs/``. Top-level sections of an explicitly requested
    file, which must exist, replace the matching default sections.
    """
    default_path = get_default_config_path(builder_name)
    defaults = load_config(default_path) if default_path.is_file() else {}

    if config_path is None:
        return defaults

    config_path = Path(config_path)
    if not config_path.is_file():
        raise InvalidArgumentError(f"Config file not found: {config_path}")
    return merge_configs(defaults, load_config(config_path))


def get_engine_specs(config: Dict[str, Any]) -> Dict[str, str]:
    """Import specs for the word and script engines."""
    engines = config.get('engines', {})
    return {
        'words': engines.get('words', 'ithkuil.generate:WordEngine'),
        'script': engines.get('script', 'ithkuil.script:ScriptEngine'),
    }
