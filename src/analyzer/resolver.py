import json
import logging
from pathlib import Path
from typing import Optional, Dict, List

logger = logging.getLogger(__name__)


def load_tsconfig_paths(project_root: Path) -> Dict[str, List[str]]:
    """Read `compilerOptions.paths` from tsconfig.json or jsconfig.json.

    Returns an empty dict when neither file exists or the file is not plain JSON
    (tsconfig files with comments are skipped rather than half-parsed).
    """
    for name in ('tsconfig.json', 'jsconfig.json'):
        config_file = Path(project_root) / name
        if not config_file.is_file():
            continue
        try:
            data = json.loads(config_file.read_text(encoding='utf-8'))
        except (OSError, ValueError) as e:
            logger.warning("Ignoring %s: %s", config_file, e)
            return {}
        paths = data.get('compilerOptions', {}).get('paths', {})
        return paths if isinstance(paths, dict) else {}
    return {}


class ModuleResolver:
    """
    Resolves module specifiers to absolute file paths on disk using
    Node/TypeScript resolution conventions.
    """

    EXTENSIONS = ['.ts', '.tsx', '.d.ts', '.js', '.jsx', '.mjs', '.cjs', '.json']

    def __init__(self, project_root: Path, tsconfig_paths: Optional[Dict[str, List[str]]] = None):
        self.root = Path(project_root).resolve()
        # Normalize tsconfig paths: {"@app/*": ["src/*"]} -> {"@app": "src"}
        self.ts_aliases = {}
        if tsconfig_paths:
            for alias, targets in tsconfig_paths.items():
                clean_alias = alias.replace("/*", "")
                # First target wins
                if targets:
                    clean_target = targets[0].replace("/*", "")
                    self.ts_aliases[clean_alias] = clean_target

    def resolve(self, importing_file: Path, specifier: str) -> Optional[Path]:
        """
        Determines the absolute file path of an imported module.

        Args:
            importing_file: The path of the file containing the import.
            specifier: The string used in the import statement (e.g., './utils', '@app/api').
        """
        if not specifier:
            return None

        importing_file = Path(importing_file)

        # 1. Relative Imports
        if specifier.startswith('.'):
            candidate = (importing_file.parent / specifier).resolve()
            return self._probe(candidate)

        # 2. Path Aliases (tsconfig)
        for alias, target in self.ts_aliases.items():
            if specifier == alias or specifier.startswith(alias + '/'):
                remainder = specifier[len(alias):].lstrip('/')
                candidate = self.root / target / remainder
                resolved = self._probe(candidate)
                if resolved:
                    return resolved

        # 3. Bare specifiers relative to the project root (baseUrl style)
        resolved = self._probe(self.root / specifier)
        if resolved is None:
            logger.debug("Unresolved module '%s' from %s", specifier, importing_file)
        return resolved

    def _probe(self, path: Path) -> Optional[Path]:
        """
        Probes for file existence using JS resolution rules:
        1. Exact match
        2. Extensions (.ts, .tsx, .js, ...)
        3. Directory index files
        """
        if path.is_file():
            return path

        for ext in self.EXTENSIONS:
            candidate = Path(str(path) + ext)
            if candidate.is_file():
                return candidate

        if path.is_dir():
            for ext in self.EXTENSIONS:
                index_file = path / f"index{ext}"
                if index_file.is_file():
                    return index_file

        return None
