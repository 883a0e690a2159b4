import importlib
import logging
import pkgutil

logger = logging.getLogger(__name__)

# Import every module in this package so its @register_tool functions land
# in the server's tool registry.
for _, name, _ in pkgutil.iter_modules(__path__):
    importlib.import_module(f".{name}", __package__)
    logger.debug("Loaded tools from: %s.py", name)
