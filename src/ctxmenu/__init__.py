"""ctxmenu - PowerToys context menu editing via Nilesoft Shell"""

__version__ = "0.1.0"
__description__ = "Generate and apply Nilesoft Shell context menu configuration"

__all__ = ["main", "ContextMenuEditModule", "__version__"]


def __getattr__(name: str):
    """Lazy import so ``ctxmenu.generator`` and friends load without plyer.

    The module surface pulls in desktop notification and registry adapters;
    the pure pieces should stay importable on headless CI machines.
    """
    if name == "ContextMenuEditModule":
        from .main import ContextMenuEditModule

        return ContextMenuEditModule
    if name == "main":
        from .main import main

        return main
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
