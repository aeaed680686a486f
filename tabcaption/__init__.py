"""
TabCaption — template-driven document captions that follow the project tree.

Expands a caption template such as "$(ProjectName ':')$(FolderPath)$(Filename)"
for every open document and keeps the result current as files move, folders
are renamed and projects come and go.

Usage:
    from tabcaption import Options, SerialDispatcher, Synchronizer

    dispatcher = SerialDispatcher()
    dispatcher.start()
    sync = Synchronizer(Options(), solution, event_source, dispatcher)
"""

__version__ = "1.0.0"

from tabcaption.engine.config import Options, OptionsModel, load_config  # noqa: F401
from tabcaption.engine.dispatcher import SerialDispatcher  # noqa: F401
from tabcaption.engine.events import ChangeEventSource, Signal, Subscription  # noqa: F401
from tabcaption.engine.synchronizer import Synchronizer  # noqa: F401
from tabcaption.template.expander import TemplateExpander  # noqa: F401
from tabcaption.template.variables import VARIABLE_NAMES, build_default_registry  # noqa: F401

__all__ = [
    "ChangeEventSource",
    "Options",
    "OptionsModel",
    "SerialDispatcher",
    "Signal",
    "Subscription",
    "Synchronizer",
    "TemplateExpander",
    "VARIABLE_NAMES",
    "build_default_registry",
    "load_config",
]
