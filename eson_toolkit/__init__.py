"""Top-level package of ESON Toolkit.

The toolkit edits JSON documents through an immutable annotated tree (ESON)
and JSON Patch. Front-ends should only depend on the public API exposed
here rather than importing internal modules directly.
"""

from .core.models import EsonNode, Selection  # re-export for convenience
from .core.services import EditorService

__version__ = "1.0.0"

__all__: list[str] = [
    "EsonNode",
    "Selection",
    "EditorService",
]
