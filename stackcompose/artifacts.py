from __future__ import annotations

import logging
import zipfile
from pathlib import Path
from typing import Dict, Iterable

import yaml

from .errors import BuildError
from .models import BuildManifest, ScriptFragment
from .utils import dump_json, ensure_directory, sha256_file, write_script

logger = logging.getLogger(__name__)

COMPOSE_FILE = "docker-compose.yml"
PREBUILD_FILE = "prebuild.sh"
POSTBUILD_FILE = "postbuild.sh"
MANIFEST_FILE = "build_manifest.json"
ARCHIVE_FILE = "stack.zip"


def render_compose(manifest: BuildManifest) -> str:
    return yaml.safe_dump(manifest.document, sort_keys=False, default_flow_style=False)


def render_script(fragments: Iterable[ScriptFragment], title: str) -> str:
    """Concatenate fragments in order under a per-fragment comment header."""

    parts = ["#!/bin/bash", f"# {title}", ""]
    for fragment in fragments:
        parts.append(f"# {fragment.service_name}: {fragment.comment}")
        if fragment.multiline_comment:
            parts.extend(f"# {line}" for line in fragment.multiline_comment.splitlines())
        parts.append(fragment.code.strip("\n"))
        parts.append("")
    return "\n".join(parts) + "\n"


def write_artifacts(manifest: BuildManifest, output_dir: str | Path) -> Dict[str, object]:
    """Write the compose file, build scripts, manifest and zip archive."""

    output_dir = ensure_directory(output_dir)
    compose_path = output_dir / COMPOSE_FILE
    compose_path.write_text(render_compose(manifest))
    prebuild_path = write_script(output_dir / PREBUILD_FILE, render_script(manifest.prebuild_scripts, "Pre-build"))
    postbuild_path = write_script(output_dir / POSTBUILD_FILE, render_script(manifest.postbuild_scripts, "Post-build"))
    manifest_path = output_dir / MANIFEST_FILE
    dump_json(manifest_path, manifest.to_dict())

    archive_path = output_dir / ARCHIVE_FILE
    with zipfile.ZipFile(archive_path, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for generated in (compose_path, prebuild_path, postbuild_path):
            archive.write(generated, arcname=generated.name)
        for entry in manifest.zip_list:
            if not Path(entry.full_path).is_file():
                raise BuildError(
                    component="Packager::write_artifacts()",
                    service_name="packager",
                    message=f"Zip entry source {entry.full_path} is missing",
                    input_snapshot={"zip_entry": entry.to_dict()},
                )
            archive.write(entry.full_path, arcname=entry.zip_name.lstrip("/"))
            logger.debug("Packed %s as %s", entry.full_path, entry.zip_name)

    summary: Dict[str, object] = {
        "compose_file": str(compose_path),
        "prebuild_script": str(prebuild_path),
        "postbuild_script": str(postbuild_path),
        "manifest_path": str(manifest_path),
        "archive_path": str(archive_path),
        "archive_sha256": sha256_file(archive_path),
        "artifact_count": len(manifest.zip_list) + 3,
    }
    logger.info("Wrote build artifacts to %s", output_dir)
    return summary
