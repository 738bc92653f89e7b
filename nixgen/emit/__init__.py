"""Text emission for options blocks, declarations and module files."""

from .emitter import ModuleEmitter, render_option
from .module_file import ModuleFileBuilder, OptionEntry, generate_module_file

__all__ = [
    "ModuleEmitter",
    "ModuleFileBuilder",
    "OptionEntry",
    "generate_module_file",
    "render_option",
]
