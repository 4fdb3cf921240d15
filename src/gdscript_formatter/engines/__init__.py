from gdscript_formatter.engines.passthrough import PassthroughEngine
from gdscript_formatter.engines.topiary import TopiaryEngine, build_configuration_overlay

__all__ = [
    "PassthroughEngine",
    "TopiaryEngine",
    "build_configuration_overlay",
]
