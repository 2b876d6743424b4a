"""Live workspace projection of the active environment."""
from .linker import WorkspaceLinker, Linked, Detached, Projection

__all__ = ["WorkspaceLinker", "Linked", "Detached", "Projection"]
