"""
Import hook compiling modules as they are imported.

    import typecomb.hook

    typecomb.hook.install(["myapp"])
    import myapp.models          # compiled with runtime type checks

Only modules inside the listed packages are compiled; everything else is
imported normally.
"""

from __future__ import annotations

import importlib.abc
import importlib.machinery
import importlib.util
import logging
import sys
from typing import Iterable, Optional, Sequence

from typecomb.compiler import CompilationPipeline
from typecomb.config import CompilerOptions

logger = logging.getLogger("typecomb.hook")


class TypecombLoader(importlib.machinery.SourceFileLoader):
    """Source loader that runs module source through the pipeline."""

    def __init__(self, fullname: str, path: str, pipeline: CompilationPipeline) -> None:
        super().__init__(fullname, path)
        self.pipeline = pipeline

    def get_code(self, fullname):
        # Bytecode caches are bypassed: they would hold uncompiled code
        path = self.get_filename(fullname)
        source = importlib.util.decode_source(self.get_data(path))
        result = self.pipeline.compile(source, path)
        logger.debug(f"Compiled {fullname} from {path}")
        return compile(result.python_code, path, "exec", dont_inherit=True)


class TypecombFinder(importlib.abc.MetaPathFinder):
    """Finds modules inside the selected packages and loads them compiled."""

    def __init__(self, packages: Iterable[str], options: Optional[CompilerOptions] = None) -> None:
        self.packages = tuple(packages)
        self.pipeline = CompilationPipeline(options)

    def _selected(self, fullname: str) -> bool:
        return any(fullname == p or fullname.startswith(p + ".") for p in self.packages)

    def find_spec(self, fullname: str, path: Optional[Sequence[str]], target=None):
        if not self._selected(fullname):
            return None
        spec = importlib.machinery.PathFinder.find_spec(fullname, path)
        if spec is None or not isinstance(spec.loader, importlib.machinery.SourceFileLoader):
            return spec
        spec.loader = TypecombLoader(fullname, spec.origin, self.pipeline)
        return spec


_installed: list[TypecombFinder] = []


def install(packages: Iterable[str], options: Optional[CompilerOptions] = None) -> TypecombFinder:
    """Compile the given packages on import. Returns the installed finder."""
    finder = TypecombFinder(packages, options)
    sys.meta_path.insert(0, finder)
    _installed.append(finder)
    logger.info(f"Installed import hook for {', '.join(finder.packages)}")
    return finder


def uninstall(finder: Optional[TypecombFinder] = None) -> None:
    """Remove one installed finder, or all of them."""
    targets = [finder] if finder is not None else list(_installed)
    for target in targets:
        if target in sys.meta_path:
            sys.meta_path.remove(target)
        if target in _installed:
            _installed.remove(target)
