"""Load resource declarations from a Python file."""

import importlib.util
import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from .errors import ConfigurationError
from .resources.base import Resource

logger = logging.getLogger(__name__)

# Name of an optional module-level list that fixes the declaration order
DECLARATION_LIST = "RESOURCES"


def load_resources(main_file: Path) -> list[Resource]:
    """
    Load resources from a declaration file by executing it.

    If the module defines ``RESOURCES``, that sequence is the declaration
    list; nested lists such as ``packages([...])`` are flattened in place.
    Otherwise every module-level Resource (and every list or tuple of
    Resources) is collected in definition order; an object reachable twice
    is kept once, at its first position.

    Args:
        main_file: Path to the declaration file

    Returns:
        List of Resource objects in declaration order. Items of
        ``RESOURCES`` that are not Resources are returned too, so that
        validation reports them.

    Raises:
        ConfigurationError: If the file is missing, fails to execute, or
            declares no resources
    """
    main_file = Path(main_file)
    if not main_file.exists():
        raise ConfigurationError(f"File not found: {main_file}")

    # Load the module dynamically
    spec = importlib.util.spec_from_file_location("converge_declarations", main_file)
    if spec is None or spec.loader is None:
        raise ConfigurationError(f"Could not load {main_file}")

    module = importlib.util.module_from_spec(spec)
    try:
        spec.loader.exec_module(module)
    except Exception as e:
        raise ConfigurationError(f"Error while executing {main_file}: {e}") from e

    namespace = vars(module)
    if DECLARATION_LIST in namespace:
        # The declared list is taken as written; anything that is not a
        # Resource is left in place for validate_resources to report
        resources = list(_flatten(namespace[DECLARATION_LIST]))
    else:
        resources = []
        seen: set[int] = set()
        for obj in namespace.values():
            for item in _flatten(obj):
                if isinstance(item, Resource) and id(item) not in seen:
                    seen.add(id(item))
                    resources.append(item)

    for item in resources:
        if isinstance(item, Resource):
            logger.debug(f"Found resource: {item.name} ({type(item).__name__})")

    if not resources:
        raise ConfigurationError(f"No resources found in {main_file}")

    return resources


def _flatten(obj: Any) -> Iterator[Any]:
    """Yield items of arbitrarily nested lists and tuples in order."""
    if isinstance(obj, (list, tuple)):
        for item in obj:
            yield from _flatten(item)
    else:
        yield obj
