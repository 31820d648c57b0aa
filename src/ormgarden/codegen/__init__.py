"""
ormgarden code generation.

Generates SQLAlchemy model modules and WTForms form modules from table
metadata.
"""

from ormgarden.codegen.forms import FormCodeGenerator
from ormgarden.codegen.generator import CodeGenerator, GeneratedFile, GenerationResult
from ormgarden.codegen.models import ModelCodeGenerator, ModelTarget

__all__ = [
    "CodeGenerator",
    "GeneratedFile",
    "GenerationResult",
    "ModelCodeGenerator",
    "ModelTarget",
    "FormCodeGenerator",
]
