"""
Fetching model records behind listing pages, filtered by named scopes
"""

import importlib
import logging
from typing import Any, Dict, List, Optional, Protocol, Tuple

from sqlalchemy.orm import Session

from sitemap_engine.core.exceptions import UnknownModelError

logger = logging.getLogger(__name__)


def parse_scope(scope_definition: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    """
    Split a scope definition like ``published:yesterday`` into name and parameter
    """
    if not scope_definition:
        return None, None
    name, _, parameter = scope_definition.partition(':')
    return name.strip() or None, parameter or None


class ModelQuery(Protocol):
    """Model lookup used by the pages generator"""

    def has_model(self, model_class: str) -> bool: ...

    def fetch(self, model_class: str, scope_definition: Optional[str] = None) -> List[Any]: ...


class SqlAlchemyModelQuery:
    """
    Resolves model classes by registered name or dotted import path and
    queries them through a session

    A scope named ``published`` is looked up on the model as
    ``scope_published`` (or ``published``) and called as
    ``scope(query, parameter)``; it must return the filtered query.
    """

    def __init__(self, session: Session, models: Optional[Dict[str, type]] = None):
        self.session = session
        self.models: Dict[str, type] = dict(models or {})

    def register(self, name: str, model: type) -> None:
        self.models[name] = model

    def resolve_model(self, model_class: str) -> Optional[type]:
        """Get a model class by registered name or import path"""
        if not model_class:
            return None
        if model_class in self.models:
            return self.models[model_class]

        module_name, _, class_name = model_class.rpartition('.')
        if not module_name:
            return None
        try:
            module = importlib.import_module(module_name)
        except ImportError:
            return None
        model = getattr(module, class_name, None)
        return model if isinstance(model, type) else None

    def has_model(self, model_class: str) -> bool:
        return self.resolve_model(model_class) is not None

    def fetch(self, model_class: str, scope_definition: Optional[str] = None) -> List[Any]:
        """
        Fetch all records of a model, filtered by a scope when given

        Raises:
            UnknownModelError: If the model or the scope does not exist
        """
        model = self.resolve_model(model_class)
        if model is None:
            raise UnknownModelError(f"Unknown model class: {model_class}")

        query = self.session.query(model)

        scope_name, scope_parameter = parse_scope(scope_definition)
        if scope_name is None:
            return query.all()

        scope = getattr(model, f"scope_{scope_name}", None) or getattr(model, scope_name, None)
        if not callable(scope):
            raise UnknownModelError(f"Model {model_class} has no scope '{scope_name}'")

        return scope(query, scope_parameter).all()
