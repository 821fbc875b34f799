from .generator import CodeGenerator, GeneratedModule, generate_module
from .routes import RouteMeta, build_route, default_route

__all__ = ["CodeGenerator", "GeneratedModule", "RouteMeta", "build_route", "default_route", "generate_module"]
