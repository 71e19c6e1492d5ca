from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from .artifacts import write_artifacts
from .catalog import ServiceCatalog
from .config import Settings
from .models import BuildOptions
from .pipeline import BuildPipeline, FailurePolicy, PipelineContext


def _load_settings(args: argparse.Namespace) -> Settings:
    if args.settings:
        return Settings.from_file(args.settings)
    return Settings.from_env()


def _load_build_options(args: argparse.Namespace, catalog: ServiceCatalog) -> BuildOptions:
    if args.options:
        options = BuildOptions.from_file(args.options)
    else:
        options = BuildOptions()
    if args.services:
        names = [name.strip() for name in args.services.split(",") if name.strip()]
        options.selected_services = catalog.catalog_order(names) + [
            name for name in names if name not in catalog
        ]
    return options


def cmd_list(args: argparse.Namespace) -> int:
    catalog = ServiceCatalog.default()
    settings = _load_settings(args)
    for name in catalog.iter_services():
        meta = catalog.create(name, settings).get_meta()
        print(f"{name}\t{meta.display_name}\t{','.join(meta.service_type_tags)}")
    return 0


def cmd_describe(args: argparse.Namespace) -> int:
    catalog = ServiceCatalog.default()
    template = catalog.create(args.service, _load_settings(args))
    payload = {
        "options": template.get_config_options().to_dict(),
        "help": template.get_help().to_dict(),
        "meta": template.get_meta().to_dict(),
        "commands": template.get_commands(),
    }
    print(json.dumps(payload, indent=2))
    return 0


def cmd_build(args: argparse.Namespace) -> int:
    catalog = ServiceCatalog.default()
    settings = _load_settings(args)
    options = _load_build_options(args, catalog)
    output_dir = Path(args.output) if args.output else settings.output_dir
    policy = FailurePolicy.SKIP_SERVICE if args.skip_failed else None

    context = PipelineContext(build_options=options, settings=settings, workspace=output_dir / ".work")
    manifest = BuildPipeline(context, catalog=catalog, policy=policy).run()
    summary = write_artifacts(manifest, output_dir)
    summary["issues"] = [issue.to_dict() for issue in manifest.issues]
    summary["states"] = manifest.states
    print(json.dumps(summary, indent=2))
    return 1 if manifest.issues else 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Compose a docker-compose stack from the service catalog")
    parser.add_argument(
        "--settings",
        default=None,
        help="Path to a JSON or YAML settings file. Defaults to STACKCOMPOSE_* environment variables.",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    list_parser = subparsers.add_parser("list", help="List services in the catalog")
    list_parser.set_defaults(func=cmd_list)

    describe_parser = subparsers.add_parser("describe", help="Show options, help and commands for a service")
    describe_parser.add_argument("--service", required=True)
    describe_parser.set_defaults(func=cmd_describe)

    build_cmd = subparsers.add_parser("build", help="Run the build pipeline and write artifacts")
    build_cmd.add_argument("--services", default=None, help="Comma separated service names.")
    build_cmd.add_argument("--options", default=None, help="JSON or YAML build options file.")
    build_cmd.add_argument("--output", default=None, help="Directory for generated artifacts.")
    build_cmd.add_argument(
        "--skip-failed",
        action="store_true",
        help="Skip services whose phases fail instead of aborting the run.",
    )
    build_cmd.set_defaults(func=cmd_build)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(levelname)s %(name)s: %(message)s")
    return args.func(args)


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
