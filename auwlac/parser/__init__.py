from .document import parse_component_source
from .parser import parse_markup

__all__ = ["parse_component_source", "parse_markup"]
