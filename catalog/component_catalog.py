"""
Component Catalog

Loads and validates the fixed set of weighted inspection components.
"""

import logging
from typing import Dict, Iterable, Iterator, List, Optional

import yaml

from models import ComponentDefinition
from catalog.defaults import DEFAULT_COMPONENTS

logger = logging.getLogger(__name__)


class ComponentCatalog:
    """
    Ordered, immutable collection of component definitions.

    Validation happens here, once, when the catalog is built: weights must be
    in (0, 1], categories must be known and ids must be unique. Scoring can
    then rely on every weight being positive.

    Example:
        >>> catalog = ComponentCatalog.from_config('config.yaml')
        >>> catalog.get('aroma').weight
        0.15
        >>> [d.id for d in catalog.required()][:2]
        ['aroma', 'floor_cleanliness']
    """

    def __init__(self, definitions: Iterable[ComponentDefinition]):
        self._definitions: Dict[str, ComponentDefinition] = {}
        for definition in definitions:
            if definition.id in self._definitions:
                raise ValueError(f"Duplicate component id in catalog: {definition.id}")
            self._definitions[definition.id] = definition

        if not self._definitions:
            raise ValueError("Component catalog must contain at least one component")

    @classmethod
    def from_dicts(cls, items: Iterable[dict]) -> 'ComponentCatalog':
        return cls(ComponentDefinition.from_dict(item) for item in items)

    @classmethod
    def default(cls) -> 'ComponentCatalog':
        """Catalog of the built-in restroom components."""
        return cls.from_dicts(DEFAULT_COMPONENTS)

    @classmethod
    def from_config(cls, config_path: str = 'config.yaml') -> 'ComponentCatalog':
        """
        Create a catalog from the `catalog.components` list of a YAML config.

        Falls back to the built-in components when the section is absent.
        """
        with open(config_path, 'r') as f:
            config = yaml.safe_load(f) or {}

        items = (config.get('catalog') or {}).get('components')
        if not items:
            logger.info("No catalog in config, using default components")
            return cls.default()

        catalog = cls.from_dicts(items)
        logger.info(f"Loaded {len(catalog)} components from {config_path}")
        return catalog

    def get(self, component_id: str) -> Optional[ComponentDefinition]:
        return self._definitions.get(component_id)

    def required(self) -> List[ComponentDefinition]:
        return [d for d in self._definitions.values() if d.required]

    def photo_components(self) -> List[ComponentDefinition]:
        return [d for d in self._definitions.values() if d.allow_photo]

    def ids(self) -> List[str]:
        return list(self._definitions)

    def total_weight(self) -> float:
        return sum(d.weight for d in self._definitions.values())

    def to_list(self) -> List[dict]:
        return [d.to_dict() for d in self._definitions.values()]

    def __contains__(self, component_id: str) -> bool:
        return component_id in self._definitions

    def __iter__(self) -> Iterator[ComponentDefinition]:
        return iter(self._definitions.values())

    def __len__(self) -> int:
        return len(self._definitions)

    def __repr__(self) -> str:
        return f"ComponentCatalog(components={len(self)}, total_weight={self.total_weight():.2f})"
