"""Plugin discovery and loading utilities."""

import importlib
import importlib.util
import logging
from pathlib import Path
from types import ModuleType

from hal_router.interfaces.plugin import PluginDefinition

logger = logging.getLogger(__name__)


class PluginLoadError(Exception):
    """Raised when a plugin fails to load."""


class PluginLoader:
    """Discovers plugin definitions in Python modules.

    Any module-level attribute that is a PluginDefinition is picked up,
    so one file may provide several plugins.

    Supports loading plugins from:
    - Python module paths (e.g., "my_package.plugins.deploy")
    - File paths (e.g., "/path/to/deploy.py")
    - Directory scanning for plugin files

    Example usage:
        loader = PluginLoader()

        # Load from module path
        plugins = loader.load_module("my_plugins.deploy")

        # Load from file
        plugins = loader.load_file("/path/to/deploy.py")

        # Discover all plugins in a directory
        plugins = loader.discover("/path/to/plugins/")
    """

    def load_module(self, module_path: str) -> list[PluginDefinition]:
        """Load plugin definitions from a Python module path.

        Args:
            module_path: Dotted module path (e.g., "my_package.plugins.deploy")

        Returns:
            Plugin definitions found in the module

        Raises:
            PluginLoadError: If the module cannot be imported or has no plugins
        """
        try:
            module = importlib.import_module(module_path)
        except ImportError as e:
            raise PluginLoadError(f"Failed to import module '{module_path}': {e}")
        except Exception as e:
            raise PluginLoadError(f"Failed to load plugins from '{module_path}': {e}")
        return self._find_plugins(module, module_path)

    def load_file(self, file_path: str | Path) -> list[PluginDefinition]:
        """Load plugin definitions from a Python file.

        Args:
            file_path: Path to the Python file containing the plugins

        Returns:
            Plugin definitions found in the file

        Raises:
            PluginLoadError: If the file cannot be loaded or has no plugins
        """
        file_path = Path(file_path)
        if not file_path.exists():
            raise PluginLoadError(f"Plugin file not found: {file_path}")

        if not file_path.suffix == ".py":
            raise PluginLoadError(f"Plugin file must be a .py file: {file_path}")

        try:
            module_name = f"_hal_plugin_{file_path.stem}"

            spec = importlib.util.spec_from_file_location(module_name, file_path)
            if spec is None or spec.loader is None:
                raise PluginLoadError(f"Could not load spec for: {file_path}")

            module = importlib.util.module_from_spec(spec)
            spec.loader.exec_module(module)
        except PluginLoadError:
            raise
        except Exception as e:
            raise PluginLoadError(f"Failed to load plugins from '{file_path}': {e}")

        return self._find_plugins(module, str(file_path))

    def discover(self, directory: str | Path) -> list[PluginDefinition]:
        """Discover all plugin definitions in a directory.

        Files starting with underscore are skipped, as are files that
        fail to load.

        Args:
            directory: Path to directory containing plugin files

        Returns:
            Plugin definitions in file name order
        """
        directory = Path(directory)
        if not directory.exists():
            logger.warning(f"Plugin directory does not exist: {directory}")
            return []

        if not directory.is_dir():
            raise PluginLoadError(f"Not a directory: {directory}")

        plugins: list[PluginDefinition] = []
        for file_path in sorted(directory.glob("*.py")):
            if file_path.name.startswith("_"):
                continue

            try:
                found = self.load_file(file_path)
            except PluginLoadError as e:
                logger.warning(f"Skipping {file_path}: {e}")
                continue

            for plugin in found:
                logger.info(f"Loaded plugin '{plugin.name}' from {file_path}")
            plugins.extend(found)

        return plugins

    def _find_plugins(self, module: ModuleType, source: str) -> list[PluginDefinition]:
        """Collect the PluginDefinition attributes of a module.

        Raises:
            PluginLoadError: If the module defines no plugins
        """
        plugins: list[PluginDefinition] = []
        for name in dir(module):
            obj = getattr(module, name)
            if isinstance(obj, PluginDefinition) and obj not in plugins:
                plugins.append(obj)

        if not plugins:
            raise PluginLoadError(f"No PluginDefinition found in '{source}'")

        return plugins
