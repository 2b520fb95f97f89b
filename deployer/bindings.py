"""
Bindings Exporter
Collects contract ABIs from forge build output into a versioned file
"""

import json
from pathlib import Path
from typing import Dict, List, Union
from loguru import logger

from . import __version__


class BindingsExporter:
    """
    Writes <out_dir>/<name>.<version>.json from forge artifacts

    Forge build is not run here: the contracts are built separately
    with --via-ir.
    """

    def __init__(self, settings: dict, project_root: Union[str, Path] = "."):
        """
        Initialize exporter

        Args:
            settings: Deployment settings (bindings section)
            project_root: Directory holding package.json, out/ and abis/
        """
        bindings = settings['bindings']

        self.project_root = Path(project_root)
        self.forge_out = self.project_root / bindings['forge_out']
        self.out_dir = self.project_root / bindings['out_dir']
        self.name = bindings['name']
        self.include: List[str] = list(bindings['include'])

    def get_version(self) -> str:
        """Version from package.json when present, else this package's version"""
        package_json = self.project_root / "package.json"

        if package_json.exists():
            version = json.loads(package_json.read_text()).get("version")
            if version:
                return version

        return __version__

    def output_path(self) -> Path:
        return self.out_dir / f"{self.name}.{self.get_version()}.json"

    def collect_abis(self) -> Dict[str, list]:
        """
        Read the ABI of every artifact matching the include patterns

        Returns:
            Contract name -> ABI
        """
        abis = {}

        for pattern in self.include:
            # "Contract.sol/**" selects everything under out/Contract.sol/
            artifact_dir = self.forge_out / pattern.rstrip("/*")

            if not artifact_dir.is_dir():
                logger.warning(f"No forge artifacts for {pattern} in {self.forge_out}")
                continue

            for artifact in sorted(artifact_dir.rglob("*.json")):
                try:
                    data = json.loads(artifact.read_text())
                except ValueError as e:
                    logger.warning(f"Skipping {artifact}: invalid JSON ({e})")
                    continue

                if not isinstance(data, dict) or "abi" not in data:
                    logger.debug(f"Skipping {artifact}: no abi")
                    continue

                abis[artifact.stem] = data["abi"]
                logger.debug(f"{artifact.stem}: {len(data['abi'])} ABI entries")

        return abis

    def export(self) -> Path:
        """
        Write the bindings file

        Returns:
            Path of the written file
        """
        abis = self.collect_abis()

        if not abis:
            raise FileNotFoundError(
                f"No contract artifacts found in {self.forge_out}, run 'forge build --via-ir' first"
            )

        out_path = self.output_path()
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(json.dumps(abis, indent=2) + "\n")

        logger.success(f"Exported {len(abis)} contract ABIs to {out_path}")
        return out_path
