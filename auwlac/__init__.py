"""
The auwla component compiler: rewrites markup-embedded component files into
modules that drive the auwla builder API.
"""

from .compiler import CompileResult, compile_component

__all__ = ["CompileResult", "compile_component"]
